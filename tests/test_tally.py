"""Tests for the tally engine — id-keyed counting, idempotence, tie-break."""

import pytest

from phasevote.engine.tally import TallyEngine
from phasevote.errors import PhaseViolation
from phasevote.models.voting import Ballot, WorkflowStatus
from phasevote.registry.proposals import ProposalRegistry


ENDED = WorkflowStatus.VOTING_SESSION_ENDED


def _registry(*entries: tuple[int, str]) -> ProposalRegistry:
    registry = ProposalRegistry()
    for pid, desc in entries:
        registry.submit(pid, desc, WorkflowStatus.PROPOSALS_REGISTRATION_STARTED)
    return registry


def _ballots(*pairs: tuple[str, int]) -> list[Ballot]:
    return [Ballot(sequence=i, voter_id=v, proposal_id=p) for i, (v, p) in enumerate(pairs)]


class TestCount:
    def test_counts_by_proposal_id(self) -> None:
        registry = _registry((1, "A"), (2, "B"))
        result = TallyEngine().tally(
            _ballots(("v1", 1), ("v2", 2), ("v3", 1)), registry, ENDED,
        )
        assert result.counts == {1: 2, 2: 1}
        assert result.total_votes == 3
        assert result.winner.proposal_id == 1
        assert result.winner.description == "A"
        assert result.winner.vote_count == 2

    def test_lookup_is_not_positional(self) -> None:
        """Ids registered out of numeric order still count against the right proposal."""
        registry = _registry((10, "Ten"), (3, "Three"))
        counts = TallyEngine.count(_ballots(("v1", 3), ("v2", 3), ("v3", 10)), registry)
        assert counts == {10: 1, 3: 2}

    def test_zero_vote_proposals_listed(self) -> None:
        registry = _registry((1, "A"), (2, "B"), (3, "C"))
        counts = TallyEngine.count(_ballots(("v1", 2)), registry)
        assert counts == {1: 0, 2: 1, 3: 0}

    def test_requires_voting_ended(self) -> None:
        registry = _registry((1, "A"))
        with pytest.raises(PhaseViolation, match="VotingSessionEnded"):
            TallyEngine().tally([], registry, WorkflowStatus.VOTING_SESSION_STARTED)

    def test_recount_is_idempotent(self) -> None:
        registry = _registry((1, "A"), (2, "B"))
        ballots = _ballots(("v1", 1), ("v2", 2))
        engine = TallyEngine()
        first = engine.tally(ballots, registry, ENDED)
        second = engine.tally(ballots, registry, ENDED)
        assert first == second


class TestWinner:
    def test_tie_goes_to_first_registered(self) -> None:
        registry = _registry((2, "B"), (1, "A"))
        result = TallyEngine().tally(
            _ballots(("v1", 1), ("v2", 2), ("v3", 1), ("v4", 2)), registry, ENDED,
        )
        assert result.counts == {2: 2, 1: 2}
        assert result.winner.proposal_id == 2

    def test_tie_with_ids_in_registration_order(self) -> None:
        registry = _registry((1, "A"), (2, "B"))
        result = TallyEngine().tally(_ballots(("v1", 2), ("v2", 1)), registry, ENDED)
        assert result.winner.proposal_id == 1

    def test_no_votes_means_no_winner(self) -> None:
        registry = _registry((1, "A"), (2, "B"))
        result = TallyEngine().tally([], registry, ENDED)
        assert result.winner is None
        assert result.total_votes == 0

    def test_no_proposals_no_winner(self) -> None:
        result = TallyEngine().tally([], ProposalRegistry(), ENDED)
        assert result.counts == {}
        assert result.winner is None
