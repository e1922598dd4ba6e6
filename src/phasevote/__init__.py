"""phasevote — permissioned, phase-gated proposal voting."""

from phasevote.models.voting import WorkflowStatus
from phasevote.session import VotingSession
from phasevote.service import ServiceResult, VotingService

__all__ = ["ServiceResult", "VotingService", "VotingSession", "WorkflowStatus"]

__version__ = "0.1.0"
