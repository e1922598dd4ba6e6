"""Proposal registry — proposals keyed by submitter-chosen id.

A proposal exists if and only if its id is a key of the registry. Ids are
positive integers; id 0 is reserved and can never be registered, so it can
never accumulate votes. Registration order is kept separately and defines
the tie-break order used by the tally.

vote_count is written by the tally engine only, through set_counts().
"""

from __future__ import annotations

from typing import Optional

from phasevote.engine.state_machine import require_phase
from phasevote.errors import (
    DuplicateProposalId,
    EmptyDescription,
    InvalidProposalId,
    ProposalNotFound,
)
from phasevote.models.voting import Proposal, WorkflowStatus


class ProposalRegistry:
    """Stores proposals and their registration order."""

    def __init__(self) -> None:
        self._proposals: dict[int, Proposal] = {}
        self._order: list[int] = []

    @classmethod
    def from_records(cls, proposals: list[Proposal]) -> ProposalRegistry:
        """Rebuild from proposals listed in registration order."""
        registry = cls()
        for p in proposals:
            if p.proposal_id in registry._proposals:
                raise ValueError(f"Duplicate proposal id in records: {p.proposal_id}")
            registry._proposals[p.proposal_id] = p.copy()
            registry._order.append(p.proposal_id)
        return registry

    @staticmethod
    def validate_id(proposal_id: object) -> int:
        """Return proposal_id if it is a positive int, else raise."""
        # bool is an int subclass; True must not pass as id 1
        if (
            not isinstance(proposal_id, int)
            or isinstance(proposal_id, bool)
            or proposal_id <= 0
        ):
            raise InvalidProposalId(proposal_id)
        return proposal_id

    def submit(
        self,
        proposal_id: int,
        description: str,
        phase: WorkflowStatus,
        submitted_by: Optional[str] = None,
    ) -> Proposal:
        """Register a new proposal.

        Checks, each with its own error: phase, id validity, id
        uniqueness, non-blank description. Nothing is stored on failure.
        """
        require_phase(phase, WorkflowStatus.PROPOSALS_REGISTRATION_STARTED)
        pid = self.validate_id(proposal_id)
        if pid in self._proposals:
            raise DuplicateProposalId(pid)
        if not description or not description.strip():
            raise EmptyDescription()

        proposal = Proposal(
            proposal_id=pid,
            description=description,
            submitted_by=submitted_by,
        )
        self._proposals[pid] = proposal
        self._order.append(pid)
        return proposal.copy()

    def exists(self, proposal_id: int) -> bool:
        return proposal_id in self._proposals

    def require(self, proposal_id: int) -> Proposal:
        """Return the stored proposal or raise ProposalNotFound."""
        proposal = self._proposals.get(proposal_id)
        if proposal is None:
            raise ProposalNotFound(proposal_id)
        return proposal

    def get(self, proposal_id: int) -> Optional[Proposal]:
        proposal = self._proposals.get(proposal_id)
        return proposal.copy() if proposal is not None else None

    def all_proposals(self) -> list[Proposal]:
        """All proposals in registration order."""
        return [self._proposals[pid].copy() for pid in self._order]

    @property
    def registration_order(self) -> list[int]:
        return list(self._order)

    def set_counts(self, counts: dict[int, int]) -> None:
        """Overwrite every proposal's vote_count; ids absent from counts get 0."""
        for pid, proposal in self._proposals.items():
            proposal.vote_count = counts.get(pid, 0)

    @property
    def count(self) -> int:
        return len(self._proposals)
