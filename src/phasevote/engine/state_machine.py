"""Workflow state machine — owns the current phase and its single transition.

Progression is strictly sequential: the only forward move is to the
immediately following phase. There is no skip and no direct jump. The one
backwards move is an explicit reset to the initial phase, which the
session performs together with clearing the other components.

Fail-closed: the terminal phase has no outgoing transition.
"""

from __future__ import annotations

from typing import Optional

from phasevote.errors import PhaseViolation, TerminalPhase
from phasevote.models.voting import WorkflowStatus


def require_phase(current: WorkflowStatus, required: WorkflowStatus) -> None:
    """Raise PhaseViolation unless current is the required phase."""
    if current is not required:
        raise PhaseViolation(required=required, current=current)


class WorkflowStateMachine:
    """Holds the single process-wide workflow phase.

    Authorization is checked by the caller (the session); this class only
    enforces ordering.
    """

    def __init__(self, status: Optional[WorkflowStatus] = None) -> None:
        self._status = status or WorkflowStatus.initial()

    @property
    def status(self) -> WorkflowStatus:
        return self._status

    def peek_next(self) -> WorkflowStatus:
        """Return the phase advance() would move to, or raise TerminalPhase."""
        target = self._status.next()
        if target is None:
            raise TerminalPhase(self._status)
        return target

    def advance(self) -> tuple[WorkflowStatus, WorkflowStatus]:
        """Move one step forward. Returns (previous, next)."""
        previous = self._status
        target = self.peek_next()
        self._status = target
        return previous, target

    def reset(self) -> WorkflowStatus:
        """Return to the initial phase. Returns the phase that was left."""
        previous = self._status
        self._status = WorkflowStatus.initial()
        return previous
