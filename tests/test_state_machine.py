"""Tests for the workflow state machine — strictly sequential, one-way phases."""

import pytest

from phasevote.engine.state_machine import WorkflowStateMachine, require_phase
from phasevote.errors import PhaseViolation, TerminalPhase
from phasevote.models.voting import WorkflowStatus


ORDER = [
    WorkflowStatus.REGISTERING_VOTERS,
    WorkflowStatus.PROPOSALS_REGISTRATION_STARTED,
    WorkflowStatus.PROPOSALS_REGISTRATION_ENDED,
    WorkflowStatus.VOTING_SESSION_STARTED,
    WorkflowStatus.VOTING_SESSION_ENDED,
    WorkflowStatus.VOTES_TALLIED,
]


class TestPhaseOrdering:
    def test_declaration_order_is_progression_order(self) -> None:
        assert list(WorkflowStatus) == ORDER

    def test_initial_phase(self) -> None:
        assert WorkflowStatus.initial() is WorkflowStatus.REGISTERING_VOTERS
        assert WorkflowStateMachine().status is WorkflowStatus.REGISTERING_VOTERS

    def test_next_is_one_step(self) -> None:
        for current, expected in zip(ORDER, ORDER[1:]):
            assert current.next() is expected

    def test_terminal_has_no_next(self) -> None:
        assert WorkflowStatus.VOTES_TALLIED.next() is None
        assert WorkflowStatus.VOTES_TALLIED.is_terminal
        assert not WorkflowStatus.VOTING_SESSION_ENDED.is_terminal

    def test_values_are_wire_names(self) -> None:
        assert WorkflowStatus.VOTING_SESSION_STARTED.value == "VotingSessionStarted"


class TestAdvance:
    def test_advance_returns_previous_and_next(self) -> None:
        machine = WorkflowStateMachine()
        previous, target = machine.advance()
        assert previous is WorkflowStatus.REGISTERING_VOTERS
        assert target is WorkflowStatus.PROPOSALS_REGISTRATION_STARTED
        assert machine.status is target

    def test_six_steps_reach_terminal_seventh_fails(self) -> None:
        machine = WorkflowStateMachine()
        for _ in range(5):
            machine.advance()
        assert machine.status is WorkflowStatus.VOTES_TALLIED
        with pytest.raises(TerminalPhase, match="VotesTallied"):
            machine.advance()
        assert machine.status is WorkflowStatus.VOTES_TALLIED

    def test_reset_returns_to_initial(self) -> None:
        machine = WorkflowStateMachine(WorkflowStatus.VOTING_SESSION_ENDED)
        left = machine.reset()
        assert left is WorkflowStatus.VOTING_SESSION_ENDED
        assert machine.status is WorkflowStatus.REGISTERING_VOTERS


class TestRequirePhase:
    def test_matching_phase_passes(self) -> None:
        require_phase(WorkflowStatus.VOTING_SESSION_STARTED, WorkflowStatus.VOTING_SESSION_STARTED)

    def test_mismatch_names_required_phase(self) -> None:
        with pytest.raises(PhaseViolation, match="requires phase VotingSessionStarted") as exc:
            require_phase(WorkflowStatus.REGISTERING_VOTERS, WorkflowStatus.VOTING_SESSION_STARTED)
        assert exc.value.required is WorkflowStatus.VOTING_SESSION_STARTED
        assert exc.value.current is WorkflowStatus.REGISTERING_VOTERS
        assert exc.value.kind == "phase_violation"
