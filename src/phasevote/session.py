"""Voting session — composes roster, registry, ledger, phase and tally.

This is the core of the workflow. Every operation takes the caller
identity explicitly; there is no ambient "current caller". Components
receive the current phase as a read-only argument and never read it from
shared state themselves.

Every public operation either commits completely or raises a VotingError
(or ValueError for malformed input) with no side effect. Notifications are
dispatched to subscribers only after the operation has committed.

Thread-safety: this class is not thread-safe. VotingService wraps each
call in a single lock.
"""

from __future__ import annotations

from typing import Callable, Optional

from phasevote.engine.state_machine import WorkflowStateMachine
from phasevote.engine.tally import TallyEngine
from phasevote.errors import ResetDisabled, Unauthorized
from phasevote.ledger.ballots import BallotLedger
from phasevote.models.voting import (
    Ballot,
    Notification,
    NotificationKind,
    Proposal,
    TallyResult,
    Voter,
    Winner,
    WorkflowStatus,
)
from phasevote.registry.proposals import ProposalRegistry
from phasevote.registry.roster import VoterRoster

Listener = Callable[[Notification], None]


class VotingSession:
    """Single-administrator, phase-gated proposal vote.

    Usage:
        session = VotingSession(admin_id="admin")
        session.register_voter("admin", "alice")
        session.advance_phase("admin")
        session.submit_proposal("alice", 1, "Build a bridge")
        session.advance_phase("admin")
        session.advance_phase("admin")
        session.submit_vote("alice", 1)
        session.advance_phase("admin")
        winner = session.determine_winner("admin")
    """

    def __init__(
        self,
        admin_id: str,
        allow_reset: bool = True,
        *,
        roster: Optional[VoterRoster] = None,
        registry: Optional[ProposalRegistry] = None,
        ballots: Optional[list[Ballot]] = None,
        status: Optional[WorkflowStatus] = None,
        winner: Optional[Winner] = None,
    ) -> None:
        admin = admin_id.strip()
        if not admin:
            raise ValueError("Administrator identity cannot be blank")
        self._admin_id = admin
        self._allow_reset = allow_reset
        self._roster = roster or VoterRoster()
        self._registry = registry or ProposalRegistry()
        self._ledger = BallotLedger.from_records(self._roster, self._registry, ballots or [])
        self._machine = WorkflowStateMachine(status)
        self._tally_engine = TallyEngine()
        self._winner = winner
        self._listeners: list[Listener] = []

    @property
    def admin_id(self) -> str:
        return self._admin_id

    @property
    def allow_reset(self) -> bool:
        return self._allow_reset

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, kind: NotificationKind, actor_id: str, **payload: object) -> None:
        notification = Notification(kind=kind, actor_id=actor_id, payload=dict(payload))
        for listener in list(self._listeners):
            listener(notification)

    # ------------------------------------------------------------------
    # Capability gates
    # ------------------------------------------------------------------

    def is_admin(self, caller: str) -> bool:
        return caller.strip() == self._admin_id

    def _require_admin(self, caller: str) -> None:
        if not self.is_admin(caller):
            raise Unauthorized(caller, "the administrator")

    # ------------------------------------------------------------------
    # Workflow
    # ------------------------------------------------------------------

    def current_phase(self) -> WorkflowStatus:
        return self._machine.status

    def advance_phase(self, caller: str) -> WorkflowStatus:
        """Move to the next phase. Raises TerminalPhase at VotesTallied."""
        self._require_admin(caller)
        previous, target = self._machine.advance()
        self._emit(
            NotificationKind.WORKFLOW_STATUS_CHANGED,
            caller,
            previous=previous.value,
            next=target.value,
        )
        return target

    def reset_session(self, caller: str) -> None:
        """Return to RegisteringVoters, clearing proposals, ballots and winner.

        Voters keep is_registered; their vote state is cleared. New
        components are built first and swapped in together, so readers
        never see a partial reset.
        """
        self._require_admin(caller)
        if not self._allow_reset:
            raise ResetDisabled()

        roster = VoterRoster.from_records(self._roster.all_voters())
        roster.clear_votes()
        registry = ProposalRegistry()
        ledger = BallotLedger(roster, registry)

        self._roster, self._registry, self._ledger = roster, registry, ledger
        self._winner = None
        previous = self._machine.reset()
        self._emit(
            NotificationKind.SESSION_RESET,
            caller,
            previous=previous.value,
            next=self._machine.status.value,
        )

    # ------------------------------------------------------------------
    # Roster
    # ------------------------------------------------------------------

    def register_voter(self, caller: str, voter_id: str) -> Voter:
        """Admit (or re-admit, resetting vote state) an identity."""
        self._require_admin(caller)
        voter = self._roster.register(voter_id, self._machine.status)
        self._emit(NotificationKind.VOTER_REGISTERED, caller, voter_id=voter.voter_id)
        return voter

    def revoke_voter(self, caller: str, voter_id: str) -> Optional[Voter]:
        """Withdraw an identity's whitelist capability. Any phase."""
        self._require_admin(caller)
        voter = self._roster.revoke(voter_id)
        if voter is not None:
            self._emit(NotificationKind.VOTER_REVOKED, caller, voter_id=voter.voter_id)
        return voter

    def is_registered(self, identity: str) -> bool:
        return self._roster.is_registered(identity)

    def get_voter(self, caller: str, identity: str) -> Voter:
        """Return an identity's roster entry, or unregistered defaults."""
        self._roster.require_whitelisted(caller)
        voter = self._roster.get(identity)
        if voter is None:
            return Voter(voter_id=identity.strip(), is_registered=False)
        return voter

    # ------------------------------------------------------------------
    # Proposals
    # ------------------------------------------------------------------

    def submit_proposal(self, caller: str, proposal_id: int, description: str) -> Proposal:
        self._roster.require_whitelisted(caller)
        proposal = self._registry.submit(
            proposal_id, description, self._machine.status, submitted_by=caller.strip(),
        )
        self._emit(
            NotificationKind.PROPOSAL_REGISTERED, caller, proposal_id=proposal.proposal_id,
        )
        return proposal

    def get_proposal(self, proposal_id: int) -> Optional[Proposal]:
        return self._registry.get(proposal_id)

    def list_proposals(self) -> list[Proposal]:
        return self._registry.all_proposals()

    # ------------------------------------------------------------------
    # Ballots
    # ------------------------------------------------------------------

    def submit_vote(self, caller: str, proposal_id: int) -> Ballot:
        self._roster.require_whitelisted(caller)
        ballot = self._ledger.cast(caller, proposal_id, self._machine.status)
        self._emit(
            NotificationKind.VOTED,
            caller,
            voter_id=ballot.voter_id,
            proposal_id=ballot.proposal_id,
        )
        return ballot

    def list_voters(self, caller: str) -> list[Voter]:
        """Roster entries of identities that voted, in cast order."""
        self._roster.require_whitelisted(caller)
        return [self._roster.get(vid) for vid in self._ledger.voter_ids()]

    def get_voter_at(self, caller: str, index: int) -> Voter:
        self._roster.require_whitelisted(caller)
        ballot = self._ledger.ballot_at(index)
        return self._roster.get(ballot.voter_id)

    def count_voters(self, caller: str) -> int:
        self._roster.require_whitelisted(caller)
        return self._ledger.count

    def ballots(self) -> list[Ballot]:
        return self._ledger.ballots()

    # ------------------------------------------------------------------
    # Tally
    # ------------------------------------------------------------------

    def tally(self, caller: str) -> TallyResult:
        """Recompute every proposal's vote_count from the ledger."""
        self._require_admin(caller)
        result = self._tally_engine.tally(
            self._ledger.ballots(), self._registry, self._machine.status,
        )
        self._registry.set_counts(result.counts)
        return result

    def determine_winner(self, caller: str) -> Optional[Winner]:
        """Tally, then store and return the winner (None if no votes)."""
        result = self.tally(caller)
        self._winner = result.winner
        self._emit(
            NotificationKind.VOTES_TALLIED,
            caller,
            total_votes=result.total_votes,
            winner_id=result.winner.proposal_id if result.winner else None,
        )
        return result.winner

    def get_winner(self) -> Optional[Winner]:
        return self._winner

    # ------------------------------------------------------------------
    # Read-only views for persistence and status
    # ------------------------------------------------------------------

    def voters(self) -> list[Voter]:
        return self._roster.all_voters()

    def status(self) -> dict[str, object]:
        winner = self._winner
        return {
            "phase": self._machine.status.value,
            "voters": self._roster.registered_count,
            "proposals": self._registry.count,
            "ballots": self._ledger.count,
            "winner": None if winner is None else {
                "proposal_id": winner.proposal_id,
                "description": winner.description,
                "vote_count": winner.vote_count,
            },
        }
