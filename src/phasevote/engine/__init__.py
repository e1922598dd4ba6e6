"""Workflow engine — phase state machine and tally."""

from phasevote.engine.state_machine import WorkflowStateMachine
from phasevote.engine.tally import TallyEngine

__all__ = ["TallyEngine", "WorkflowStateMachine"]
