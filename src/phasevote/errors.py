"""Error taxonomy for the voting workflow.

Every precondition failure raises a distinct subclass of VotingError so
that callers can render a specific message. Each class carries a stable
``kind`` string used by the service layer and the CLI.

All errors are raised before any state mutation. An operation that raises
has had no effect.
"""

from __future__ import annotations

from typing import Optional


class VotingError(Exception):
    """Base class for all workflow precondition failures."""
    kind = "voting_error"


class Unauthorized(VotingError):
    """Caller lacks the administrator or whitelist capability."""
    kind = "unauthorized"

    def __init__(self, caller: str, capability: str) -> None:
        self.caller = caller
        self.capability = capability
        super().__init__(f"Caller {caller!r} is not {capability}")


class PhaseViolation(VotingError):
    """Operation invoked outside its required workflow phase."""
    kind = "phase_violation"

    def __init__(self, required: object, current: object) -> None:
        self.required = required
        self.current = current
        super().__init__(
            f"Operation requires phase {_label(required)}, "
            f"current phase is {_label(current)}"
        )


class TerminalPhase(VotingError):
    """Attempt to advance past the final workflow phase."""
    kind = "terminal_phase"

    def __init__(self, current: object) -> None:
        self.current = current
        super().__init__(f"Cannot advance past terminal phase {_label(current)}")


class DuplicateProposalId(VotingError):
    kind = "duplicate_proposal_id"

    def __init__(self, proposal_id: int) -> None:
        self.proposal_id = proposal_id
        super().__init__(f"Proposal id {proposal_id} is already registered")


class EmptyDescription(VotingError):
    kind = "empty_description"

    def __init__(self) -> None:
        super().__init__("Proposal description cannot be empty")


class InvalidProposalId(VotingError):
    """Proposal id is not a positive integer."""
    kind = "invalid_proposal_id"

    def __init__(self, proposal_id: object) -> None:
        self.proposal_id = proposal_id
        super().__init__(f"Proposal id must be a positive integer, got {proposal_id!r}")


class ProposalNotFound(VotingError):
    kind = "proposal_not_found"

    def __init__(self, proposal_id: int) -> None:
        self.proposal_id = proposal_id
        super().__init__(f"Proposal not found: {proposal_id}")


class AlreadyVoted(VotingError):
    kind = "already_voted"

    def __init__(self, voter_id: str, proposal_id: Optional[int] = None) -> None:
        self.voter_id = voter_id
        self.proposal_id = proposal_id
        super().__init__(f"Voter {voter_id!r} has already voted")


class IndexOutOfRange(VotingError):
    kind = "index_out_of_range"

    def __init__(self, index: int, size: int) -> None:
        self.index = index
        self.size = size
        super().__init__(f"Index {index} out of range for {size} entries")


class ResetDisabled(VotingError):
    """Session reset requested but the capability is switched off."""
    kind = "reset_disabled"

    def __init__(self) -> None:
        super().__init__("Session reset is disabled by configuration")


def _label(phase: object) -> str:
    return getattr(phase, "value", str(phase))
