"""State store — JSON snapshot of a voting session.

The snapshot preserves the roster map, the proposal map in registration
order, the ballot list, the current phase and the winner. It is written
whole on every committed mutation: the new document goes to a temporary
sibling file which then replaces the old one, so a reader never sees a
half-written snapshot.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

from phasevote.models.voting import Ballot, Proposal, Voter, Winner, WorkflowStatus
from phasevote.registry.proposals import ProposalRegistry
from phasevote.registry.roster import VoterRoster
from phasevote.session import VotingSession

SNAPSHOT_VERSION = 1


def session_to_dict(session: VotingSession) -> dict[str, Any]:
    winner = session.get_winner()
    return {
        "version": SNAPSHOT_VERSION,
        "admin_id": session.admin_id,
        "phase": session.current_phase().value,
        "voters": [
            {
                "voter_id": v.voter_id,
                "is_registered": v.is_registered,
                "has_voted": v.has_voted,
                "voted_proposal_id": v.voted_proposal_id,
            }
            for v in session.voters()
        ],
        "proposals": [
            {
                "proposal_id": p.proposal_id,
                "description": p.description,
                "vote_count": p.vote_count,
                "submitted_by": p.submitted_by,
            }
            for p in session.list_proposals()
        ],
        "ballots": [
            {"voter_id": b.voter_id, "proposal_id": b.proposal_id}
            for b in session.ballots()
        ],
        "winner": None if winner is None else {
            "proposal_id": winner.proposal_id,
            "description": winner.description,
            "vote_count": winner.vote_count,
        },
    }


def session_from_dict(data: dict[str, Any], allow_reset: bool = True) -> VotingSession:
    """Rebuild a session. Raises ValueError on malformed or inconsistent data."""
    version = data.get("version")
    if version != SNAPSHOT_VERSION:
        raise ValueError(f"Unsupported snapshot version: {version!r}")

    roster = VoterRoster.from_records([Voter(**v) for v in data["voters"]])
    registry = ProposalRegistry.from_records([Proposal(**p) for p in data["proposals"]])
    ballots = [
        Ballot(sequence=i, voter_id=b["voter_id"], proposal_id=b["proposal_id"])
        for i, b in enumerate(data["ballots"])
    ]
    winner_data = data.get("winner")
    winner = Winner(**winner_data) if winner_data else None

    return VotingSession(
        admin_id=data["admin_id"],
        allow_reset=allow_reset,
        roster=roster,
        registry=registry,
        ballots=ballots,
        status=WorkflowStatus(data["phase"]),
        winner=winner,
    )


class StateStore:
    """File-backed snapshot persistence for a single session."""

    def __init__(self, storage_path: Path) -> None:
        self._storage_path = storage_path

    def save(self, session: VotingSession) -> None:
        """Write a snapshot. Raises OSError on I/O failure."""
        self._storage_path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._storage_path.with_suffix(self._storage_path.suffix + ".tmp")
        tmp.write_text(
            json.dumps(session_to_dict(session), indent=2, sort_keys=True),
            encoding="utf-8",
        )
        tmp.replace(self._storage_path)

    def load(self, allow_reset: bool = True) -> Optional[VotingSession]:
        """Return the stored session, or None if nothing was saved yet."""
        if not self._storage_path.exists():
            return None
        data = json.loads(self._storage_path.read_text(encoding="utf-8"))
        return session_from_dict(data, allow_reset=allow_reset)
