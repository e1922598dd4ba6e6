"""Voter roster — the whitelist of identities admitted to the session.

The roster is the source of truth for who may submit proposals and votes.
Entries are created or overwritten by administrator registration and are
never deleted; revocation only clears ``is_registered``.

Re-registering an identity that is already on the roster resets its vote
state (has_voted=False, voted_proposal_id=0). This re-admission behaviour
is deliberate and covered by tests. Registration is only open before any
ballot can exist, so the reset never orphans a ledger entry.

Thread-safety: this class is not thread-safe. The caller must
synchronise access if used from multiple threads.
"""

from __future__ import annotations

from typing import Optional

from phasevote.engine.state_machine import require_phase
from phasevote.errors import Unauthorized
from phasevote.models.voting import UNSET_PROPOSAL_ID, Voter, WorkflowStatus


class VoterRoster:
    """Registry of admitted identities and their voting state."""

    def __init__(self) -> None:
        self._voters: dict[str, Voter] = {}

    @classmethod
    def from_records(cls, voters: list[Voter]) -> VoterRoster:
        roster = cls()
        for v in voters:
            roster._voters[v.voter_id] = v.copy()
        return roster

    def register(self, voter_id: str, phase: WorkflowStatus) -> Voter:
        """Admit an identity, or reset an existing entry.

        Raises PhaseViolation outside RegisteringVoters and ValueError for
        a blank identity.
        """
        require_phase(phase, WorkflowStatus.REGISTERING_VOTERS)
        canonical = _canonical(voter_id)
        entry = Voter(voter_id=canonical)
        self._voters[canonical] = entry
        return entry.copy()

    def revoke(self, voter_id: str) -> Optional[Voter]:
        """Clear is_registered, keeping vote history. Any phase.

        Returns the updated entry, or None if the identity was never
        registered.
        """
        entry = self._voters.get(voter_id.strip())
        if entry is None:
            return None
        entry.is_registered = False
        return entry.copy()

    def record_vote(self, voter_id: str, proposal_id: int) -> None:
        """Mark a voter as having voted. Called by the ballot ledger only."""
        entry = self._voters[voter_id.strip()]
        entry.is_registered = True
        entry.has_voted = True
        entry.voted_proposal_id = proposal_id

    def clear_votes(self) -> None:
        """Reset vote state on every entry, preserving is_registered."""
        for entry in self._voters.values():
            entry.has_voted = False
            entry.voted_proposal_id = UNSET_PROPOSAL_ID

    def is_registered(self, voter_id: str) -> bool:
        entry = self._voters.get(voter_id.strip())
        return entry is not None and entry.is_registered

    def require_whitelisted(self, caller: str) -> None:
        """Capability gate shared by proposal, ballot and read operations."""
        if not self.is_registered(caller):
            raise Unauthorized(caller, "a registered voter")

    def get(self, voter_id: str) -> Optional[Voter]:
        entry = self._voters.get(voter_id.strip())
        return entry.copy() if entry is not None else None

    def has_voted(self, voter_id: str) -> bool:
        entry = self._voters.get(voter_id.strip())
        return entry is not None and entry.has_voted

    def all_voters(self) -> list[Voter]:
        return [v.copy() for v in self._voters.values()]

    @property
    def count(self) -> int:
        return len(self._voters)

    @property
    def registered_count(self) -> int:
        return sum(1 for v in self._voters.values() if v.is_registered)


def _canonical(voter_id: str) -> str:
    canonical = voter_id.strip()
    if not canonical:
        raise ValueError("Cannot register voter with blank ID")
    return canonical
