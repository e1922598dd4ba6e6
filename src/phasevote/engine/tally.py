"""Tally engine — deterministic vote aggregation and winner selection.

Counts are recomputed from the full ballot ledger on every call, so
re-running a tally with no new ballots yields identical counts. Each
ballot is looked up by its recorded proposal id, never by its position
in the ledger.

Winner rule:
- Highest vote_count wins.
- Ties go to the proposal registered first.
- With zero ballots cast there is no winner (winner=None); a zero-vote
  proposal is never crowned.

Pure computation: the session applies the counts and stores the winner.
"""

from __future__ import annotations

from typing import Optional

from phasevote.engine.state_machine import require_phase
from phasevote.models.voting import Ballot, Proposal, TallyResult, Winner, WorkflowStatus
from phasevote.registry.proposals import ProposalRegistry


class TallyEngine:
    """Aggregates ballots into per-proposal counts."""

    @staticmethod
    def count(ballots: list[Ballot], registry: ProposalRegistry) -> dict[int, int]:
        """Return {proposal_id: votes} over every registered proposal.

        Raises ProposalNotFound if a ballot references a proposal that is
        no longer registered, which would mean the ledger is corrupt.
        """
        counts = {pid: 0 for pid in registry.registration_order}
        for ballot in ballots:
            registry.require(ballot.proposal_id)
            counts[ballot.proposal_id] += 1
        return counts

    @staticmethod
    def select_winner(
        proposals: list[Proposal], counts: dict[int, int]
    ) -> Optional[Winner]:
        """Pick the max-count proposal; proposals must be in registration order."""
        if sum(counts.values()) == 0:
            return None
        best: Optional[Proposal] = None
        best_votes = -1
        for p in proposals:
            votes = counts.get(p.proposal_id, 0)
            # Strict > keeps the earliest-registered proposal on ties
            if votes > best_votes:
                best, best_votes = p, votes
        if best is None:
            return None
        return Winner(
            proposal_id=best.proposal_id,
            description=best.description,
            vote_count=best_votes,
        )

    def tally(
        self,
        ballots: list[Ballot],
        registry: ProposalRegistry,
        phase: WorkflowStatus,
    ) -> TallyResult:
        """Recompute counts and the winner. Requires VotingSessionEnded."""
        require_phase(phase, WorkflowStatus.VOTING_SESSION_ENDED)
        counts = self.count(ballots, registry)
        winner = self.select_winner(registry.all_proposals(), counts)
        return TallyResult(
            counts=counts,
            total_votes=len(ballots),
            winner=winner,
        )
