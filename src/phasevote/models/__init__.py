"""Core data models for the voting workflow."""

from phasevote.models.voting import (
    UNSET_PROPOSAL_ID,
    Ballot,
    Notification,
    NotificationKind,
    Proposal,
    TallyResult,
    Voter,
    Winner,
    WorkflowStatus,
)

__all__ = [
    "UNSET_PROPOSAL_ID",
    "Ballot",
    "Notification",
    "NotificationKind",
    "Proposal",
    "TallyResult",
    "Voter",
    "Winner",
    "WorkflowStatus",
]
