"""Voting data models.

The workflow runs through six phases in a fixed order:

    RegisteringVoters → ProposalsRegistrationStarted →
    ProposalsRegistrationEnded → VotingSessionStarted →
    VotingSessionEnded → VotesTallied

Voters, proposals and ballots are plain dataclasses. Ownership of each
mutable record belongs to exactly one component (roster, registry,
ledger); everything handed out to readers is a copy or a frozen snapshot.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Optional


# Proposal id 0 is reserved and never refers to a proposal.
UNSET_PROPOSAL_ID = 0


class WorkflowStatus(str, enum.Enum):
    """Workflow phases, declared in progression order."""
    REGISTERING_VOTERS = "RegisteringVoters"
    PROPOSALS_REGISTRATION_STARTED = "ProposalsRegistrationStarted"
    PROPOSALS_REGISTRATION_ENDED = "ProposalsRegistrationEnded"
    VOTING_SESSION_STARTED = "VotingSessionStarted"
    VOTING_SESSION_ENDED = "VotingSessionEnded"
    VOTES_TALLIED = "VotesTallied"

    @property
    def ordinal(self) -> int:
        return _PHASE_ORDER.index(self)

    def next(self) -> Optional[WorkflowStatus]:
        """Return the following phase, or None at the terminal phase."""
        idx = self.ordinal + 1
        return _PHASE_ORDER[idx] if idx < len(_PHASE_ORDER) else None

    @property
    def is_terminal(self) -> bool:
        return self is _PHASE_ORDER[-1]

    @classmethod
    def initial(cls) -> WorkflowStatus:
        return _PHASE_ORDER[0]


_PHASE_ORDER: list[WorkflowStatus] = list(WorkflowStatus)


@dataclass
class Voter:
    """Per-identity roster entry.

    voted_proposal_id is UNSET_PROPOSAL_ID until the voter casts a ballot.
    """
    voter_id: str
    is_registered: bool = True
    has_voted: bool = False
    voted_proposal_id: int = UNSET_PROPOSAL_ID

    def copy(self) -> Voter:
        return Voter(
            voter_id=self.voter_id,
            is_registered=self.is_registered,
            has_voted=self.has_voted,
            voted_proposal_id=self.voted_proposal_id,
        )


@dataclass
class Proposal:
    """A registered proposal. Presence in the registry means it exists."""
    proposal_id: int
    description: str
    vote_count: int = 0
    submitted_by: Optional[str] = None

    def copy(self) -> Proposal:
        return Proposal(
            proposal_id=self.proposal_id,
            description=self.description,
            vote_count=self.vote_count,
            submitted_by=self.submitted_by,
        )


@dataclass(frozen=True)
class Ballot:
    """One cast vote. sequence is the 0-based position in the ledger."""
    sequence: int
    voter_id: str
    proposal_id: int


@dataclass(frozen=True)
class Winner:
    """Snapshot of the winning proposal at tally time."""
    proposal_id: int
    description: str
    vote_count: int


@dataclass(frozen=True)
class TallyResult:
    """Outcome of a tally pass.

    counts is keyed by proposal id and lists every registered proposal in
    registration order, including those with zero votes. winner is None
    when no ballots were cast.
    """
    counts: dict[int, int]
    total_votes: int
    winner: Optional[Winner] = None


class NotificationKind(str, enum.Enum):
    """State-change notifications emitted to external observers."""
    VOTER_REGISTERED = "voter_registered"
    VOTER_REVOKED = "voter_revoked"
    PROPOSAL_REGISTERED = "proposal_registered"
    VOTED = "voted"
    WORKFLOW_STATUS_CHANGED = "workflow_status_changed"
    VOTES_TALLIED = "votes_tallied"
    SESSION_RESET = "session_reset"


@dataclass(frozen=True)
class Notification:
    """A committed state change. actor_id is the caller that caused it."""
    kind: NotificationKind
    actor_id: str
    payload: dict[str, Any] = field(default_factory=dict)
