"""Ballot ledger — append-only record of cast votes.

Each registered identity casts at most one ballot per session. A ballot
is only accepted while voting is open and only for a proposal that exists
at cast time. Resubmission is rejected with AlreadyVoted; a ballot is
never overwritten.

Invariant: every ballot in the ledger corresponds to a roster entry with
has_voted=True and voted_proposal_id equal to the ballot's proposal id.
"""

from __future__ import annotations

from phasevote.engine.state_machine import require_phase
from phasevote.errors import AlreadyVoted, IndexOutOfRange
from phasevote.models.voting import Ballot, WorkflowStatus
from phasevote.registry.proposals import ProposalRegistry
from phasevote.registry.roster import VoterRoster


class BallotLedger:
    """Ordered ballots plus the roster/registry checks a cast requires."""

    def __init__(self, roster: VoterRoster, registry: ProposalRegistry) -> None:
        self._roster = roster
        self._registry = registry
        self._ballots: list[Ballot] = []

    @classmethod
    def from_records(
        cls,
        roster: VoterRoster,
        registry: ProposalRegistry,
        ballots: list[Ballot],
    ) -> BallotLedger:
        """Rebuild a ledger, verifying each ballot against roster and registry."""
        ledger = cls(roster, registry)
        seen: set[str] = set()
        for seq, b in enumerate(ballots):
            if b.voter_id in seen:
                raise ValueError(f"Duplicate ballot for voter {b.voter_id!r}")
            voter = roster.get(b.voter_id)
            if voter is None or not voter.has_voted or voter.voted_proposal_id != b.proposal_id:
                raise ValueError(f"Ballot {seq} does not match roster entry for {b.voter_id!r}")
            if not registry.exists(b.proposal_id):
                raise ValueError(f"Ballot {seq} references unknown proposal {b.proposal_id}")
            seen.add(b.voter_id)
            ledger._ballots.append(Ballot(sequence=seq, voter_id=b.voter_id, proposal_id=b.proposal_id))
        return ledger

    def cast(self, voter_id: str, proposal_id: int, phase: WorkflowStatus) -> Ballot:
        """Record a vote. The caller has already passed the whitelist gate.

        Raises PhaseViolation, AlreadyVoted, InvalidProposalId or
        ProposalNotFound before touching any state.
        """
        require_phase(phase, WorkflowStatus.VOTING_SESSION_STARTED)
        if self._roster.has_voted(voter_id):
            raise AlreadyVoted(voter_id, proposal_id)
        pid = self._registry.validate_id(proposal_id)
        self._registry.require(pid)

        ballot = Ballot(
            sequence=len(self._ballots),
            voter_id=voter_id.strip(),
            proposal_id=pid,
        )
        self._roster.record_vote(ballot.voter_id, pid)
        self._ballots.append(ballot)
        return ballot

    def ballots(self) -> list[Ballot]:
        return list(self._ballots)

    def ballot_at(self, index: int) -> Ballot:
        if not 0 <= index < len(self._ballots):
            raise IndexOutOfRange(index, len(self._ballots))
        return self._ballots[index]

    def voter_ids(self) -> list[str]:
        """Identities that have cast a ballot, in cast order."""
        return [b.voter_id for b in self._ballots]

    @property
    def count(self) -> int:
        return len(self._ballots)
