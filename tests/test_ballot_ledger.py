"""Tests for the ballot ledger — one vote per identity, existing proposals only."""

import pytest

from phasevote.errors import (
    AlreadyVoted,
    IndexOutOfRange,
    InvalidProposalId,
    PhaseViolation,
    ProposalNotFound,
)
from phasevote.ledger.ballots import BallotLedger
from phasevote.models.voting import Ballot, WorkflowStatus
from phasevote.registry.proposals import ProposalRegistry
from phasevote.registry.roster import VoterRoster


VOTING = WorkflowStatus.VOTING_SESSION_STARTED


@pytest.fixture
def ledger() -> BallotLedger:
    roster = VoterRoster()
    for vid in ("alice", "bob", "carol"):
        roster.register(vid, WorkflowStatus.REGISTERING_VOTERS)
    registry = ProposalRegistry()
    registry.submit(1, "A", WorkflowStatus.PROPOSALS_REGISTRATION_STARTED)
    registry.submit(2, "B", WorkflowStatus.PROPOSALS_REGISTRATION_STARTED)
    return BallotLedger(roster, registry)


class TestCast:
    def test_cast_updates_roster_and_ledger(self, ledger: BallotLedger) -> None:
        ballot = ledger.cast("alice", 2, VOTING)
        assert ballot == Ballot(sequence=0, voter_id="alice", proposal_id=2)
        assert ledger.count == 1
        assert ledger._roster.get("alice").has_voted
        assert ledger._roster.get("alice").voted_proposal_id == 2

    def test_wrong_phase(self, ledger: BallotLedger) -> None:
        with pytest.raises(PhaseViolation, match="VotingSessionStarted"):
            ledger.cast("alice", 1, WorkflowStatus.VOTING_SESSION_ENDED)
        assert ledger.count == 0

    def test_second_vote_rejected_for_any_id(self, ledger: BallotLedger) -> None:
        ledger.cast("alice", 1, VOTING)
        for pid in (1, 2, 99):
            with pytest.raises(AlreadyVoted):
                ledger.cast("alice", pid, VOTING)
        assert ledger.count == 1
        assert ledger._roster.get("alice").voted_proposal_id == 1

    def test_nonexistent_proposal(self, ledger: BallotLedger) -> None:
        with pytest.raises(ProposalNotFound):
            ledger.cast("alice", 3, VOTING)
        assert ledger.count == 0
        assert not ledger._roster.has_voted("alice")

    def test_id_zero_is_invalid(self, ledger: BallotLedger) -> None:
        with pytest.raises(InvalidProposalId):
            ledger.cast("alice", 0, VOTING)
        assert ledger.count == 0


class TestEnumeration:
    def test_ballot_order(self, ledger: BallotLedger) -> None:
        ledger.cast("carol", 1, VOTING)
        ledger.cast("alice", 2, VOTING)
        assert ledger.voter_ids() == ["carol", "alice"]
        assert ledger.ballot_at(1).voter_id == "alice"

    @pytest.mark.parametrize("index", [-1, 1, 5])
    def test_index_out_of_range(self, ledger: BallotLedger, index: int) -> None:
        ledger.cast("alice", 1, VOTING)
        with pytest.raises(IndexOutOfRange):
            ledger.ballot_at(index)


class TestFromRecords:
    def test_rejects_ballot_not_matching_roster(self, ledger: BallotLedger) -> None:
        with pytest.raises(ValueError, match="does not match"):
            BallotLedger.from_records(
                ledger._roster, ledger._registry,
                [Ballot(sequence=0, voter_id="alice", proposal_id=1)],
            )

    def test_rejects_duplicate_voter(self, ledger: BallotLedger) -> None:
        ledger.cast("alice", 1, VOTING)
        with pytest.raises(ValueError, match="Duplicate"):
            BallotLedger.from_records(
                ledger._roster, ledger._registry,
                [Ballot(0, "alice", 1), Ballot(1, "alice", 1)],
            )
