"""Voting service — thread-safe facade over a VotingSession.

This is the primary interface for programmatic access. It adds the
concerns the core leaves to its environment:
- Serialisation: one lock around every call, so a phase check and the
  mutation it guards can never interleave with another caller.
- Typed results: precondition failures become ServiceResult values with
  a stable error_kind instead of exceptions.
- Audit trail: every notification is appended to the event log.
- Persistence: the whole session is snapshotted after each commit.

A mutation commits only when both writes succeed. The snapshot is written
first; if it fails, in-memory state is rolled back and the call fails with
error_kind "persistence_failure". The audit append follows; if it fails,
in-memory state is rolled back, the previous snapshot is rewritten, and
the call fails with error_kind "audit_failure". No event is ever logged
for a change that did not commit.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from phasevote.errors import VotingError
from phasevote.models.voting import Notification, Proposal, Winner, WorkflowStatus
from phasevote.persistence.event_log import EventLog, EventRecord
from phasevote.persistence.state_store import StateStore, session_from_dict, session_to_dict
from phasevote.session import VotingSession

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServiceResult:
    """Result of a service operation."""
    success: bool
    errors: list[str] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)
    error_kind: Optional[str] = None


class VotingService:
    """Serialised, audited, optionally persistent voting workflow.

    Usage:
        service = VotingService(admin_id="admin")
        service.register_voter("admin", "alice")
        service.advance_phase("admin")
        result = service.submit_proposal("alice", 1, "Build a bridge")

    Persistence (optional):
        service = VotingService("admin", event_log=log, state_store=store)
        # State is loaded on construction and saved on each mutation.
    """

    def __init__(
        self,
        admin_id: str,
        allow_reset: bool = True,
        event_log: Optional[EventLog] = None,
        state_store: Optional[StateStore] = None,
    ) -> None:
        self._lock = threading.RLock()
        self._event_log = event_log
        self._state_store = state_store
        self._pending: list[Notification] = []

        session = state_store.load(allow_reset=allow_reset) if state_store else None
        if session is None:
            session = VotingSession(admin_id, allow_reset=allow_reset)
        elif session.admin_id != admin_id.strip():
            raise ValueError(
                f"Stored session belongs to administrator {session.admin_id!r}, "
                f"not {admin_id.strip()!r}"
            )
        self._attach(session)
        self._event_counter = event_log.count if event_log is not None else 0

    def _attach(self, session: VotingSession) -> None:
        self._session = session
        session.subscribe(self._pending.append)

    # ------------------------------------------------------------------
    # Workflow
    # ------------------------------------------------------------------

    def advance_phase(self, caller: str) -> ServiceResult:
        def op() -> dict[str, Any]:
            previous = self._session.current_phase()
            target = self._session.advance_phase(caller)
            return {"previous": previous.value, "phase": target.value}
        return self._mutate("advance_phase", caller, op)

    def reset_session(self, caller: str) -> ServiceResult:
        def op() -> dict[str, Any]:
            self._session.reset_session(caller)
            return {"phase": self._session.current_phase().value}
        return self._mutate("reset_session", caller, op)

    def current_phase(self) -> WorkflowStatus:
        with self._lock:
            return self._session.current_phase()

    # ------------------------------------------------------------------
    # Roster
    # ------------------------------------------------------------------

    def register_voter(self, caller: str, voter_id: str) -> ServiceResult:
        def op() -> dict[str, Any]:
            voter = self._session.register_voter(caller, voter_id)
            return {"voter_id": voter.voter_id}
        return self._mutate("register_voter", caller, op)

    def revoke_voter(self, caller: str, voter_id: str) -> ServiceResult:
        def op() -> dict[str, Any]:
            voter = self._session.revoke_voter(caller, voter_id)
            if voter is None:
                raise ValueError(f"Voter not found: {voter_id}")
            return {"voter_id": voter.voter_id}
        return self._mutate("revoke_voter", caller, op)

    def is_registered(self, identity: str) -> bool:
        with self._lock:
            return self._session.is_registered(identity)

    def get_voter(self, caller: str, identity: str) -> ServiceResult:
        def op() -> dict[str, Any]:
            v = self._session.get_voter(caller, identity)
            return _voter_data(v)
        return self._read("get_voter", caller, op)

    # ------------------------------------------------------------------
    # Proposals
    # ------------------------------------------------------------------

    def submit_proposal(self, caller: str, proposal_id: int, description: str) -> ServiceResult:
        def op() -> dict[str, Any]:
            p = self._session.submit_proposal(caller, proposal_id, description)
            return {"proposal_id": p.proposal_id}
        return self._mutate("submit_proposal", caller, op)

    def get_proposal(self, proposal_id: int) -> Optional[Proposal]:
        with self._lock:
            return self._session.get_proposal(proposal_id)

    def list_proposals(self) -> list[Proposal]:
        with self._lock:
            return self._session.list_proposals()

    # ------------------------------------------------------------------
    # Ballots
    # ------------------------------------------------------------------

    def submit_vote(self, caller: str, proposal_id: int) -> ServiceResult:
        def op() -> dict[str, Any]:
            b = self._session.submit_vote(caller, proposal_id)
            return {"voter_id": b.voter_id, "proposal_id": b.proposal_id}
        return self._mutate("submit_vote", caller, op)

    def list_voters(self, caller: str) -> ServiceResult:
        def op() -> dict[str, Any]:
            return {"voters": [_voter_data(v) for v in self._session.list_voters(caller)]}
        return self._read("list_voters", caller, op)

    def get_voter_at(self, caller: str, index: int) -> ServiceResult:
        def op() -> dict[str, Any]:
            return _voter_data(self._session.get_voter_at(caller, index))
        return self._read("get_voter_at", caller, op)

    def count_voters(self, caller: str) -> ServiceResult:
        def op() -> dict[str, Any]:
            return {"count": self._session.count_voters(caller)}
        return self._read("count_voters", caller, op)

    # ------------------------------------------------------------------
    # Tally
    # ------------------------------------------------------------------

    def tally(self, caller: str) -> ServiceResult:
        def op() -> dict[str, Any]:
            result = self._session.tally(caller)
            return {"counts": dict(result.counts), "total_votes": result.total_votes}
        return self._mutate("tally", caller, op)

    def determine_winner(self, caller: str) -> ServiceResult:
        def op() -> dict[str, Any]:
            return {"winner": _winner_data(self._session.determine_winner(caller))}
        return self._mutate("determine_winner", caller, op)

    def get_winner(self) -> Optional[Winner]:
        with self._lock:
            return self._session.get_winner()

    def status(self) -> dict[str, Any]:
        with self._lock:
            data = self._session.status()
            data["events"] = self._event_log.count if self._event_log is not None else 0
            return data

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _read(
        self, action: str, caller: str, op: Callable[[], dict[str, Any]]
    ) -> ServiceResult:
        with self._lock:
            try:
                return ServiceResult(success=True, data=op())
            except (VotingError, ValueError) as e:
                return self._rejected(action, caller, e)

    def _mutate(
        self, action: str, caller: str, op: Callable[[], dict[str, Any]]
    ) -> ServiceResult:
        """Run op under the lock, then persist and audit what it committed."""
        with self._lock:
            before = session_to_dict(self._session)
            self._pending.clear()
            try:
                data = op()
            except (VotingError, ValueError) as e:
                self._pending.clear()
                return self._rejected(action, caller, e)

            pending = list(self._pending)
            self._pending.clear()

            err = self._safe_persist(on_rollback=lambda: self._restore(before))
            if err:
                LOGGER.error("%s by %s rolled back: %s", action, caller, err)
                return ServiceResult(
                    success=False, errors=[err], error_kind="persistence_failure",
                )

            err = self._record_events(pending)
            if err:
                LOGGER.error("%s by %s rolled back: %s", action, caller, err)
                self._restore(before)
                restore_err = self._safe_persist()
                if restore_err:
                    LOGGER.error("Snapshot not restored after audit failure: %s", restore_err)
                return ServiceResult(
                    success=False, errors=[err], error_kind="audit_failure",
                )

            LOGGER.info("%s by %s committed: %s", action, caller, data)
            return ServiceResult(success=True, data=data)

    def _rejected(self, action: str, caller: str, e: Exception) -> ServiceResult:
        kind = getattr(e, "kind", "invalid_argument")
        LOGGER.warning("%s by %s rejected (%s): %s", action, caller, kind, e)
        return ServiceResult(success=False, errors=[str(e)], error_kind=kind)

    def _restore(self, before: dict[str, Any]) -> None:
        self._pending.clear()
        self._attach(session_from_dict(before, allow_reset=self._session.allow_reset))

    def _next_event_id(self) -> str:
        self._event_counter += 1
        return f"EVT-{self._event_counter:06d}"

    def _record_events(self, pending: list[Notification]) -> Optional[str]:
        """Append notifications to the event log. Returns error or None."""
        if self._event_log is None:
            return None
        for notification in pending:
            try:
                self._event_log.append(
                    EventRecord.from_notification(self._next_event_id(), notification)
                )
            except (ValueError, OSError) as e:
                return f"Event log failure: {e}"
        return None

    def _safe_persist(
        self, on_rollback: Optional[Callable[[], None]] = None
    ) -> Optional[str]:
        """Snapshot the session. Returns an error string on failure, None on success.

        On failure on_rollback runs before returning, so the caller's
        in-memory change never outlives a snapshot that did not land.
        """
        if self._state_store is None:
            return None
        try:
            self._state_store.save(self._session)
            return None
        except OSError as e:
            if on_rollback is not None:
                on_rollback()
            return f"Persistence failure: {e}"


def _voter_data(v: Any) -> dict[str, Any]:
    return {
        "voter_id": v.voter_id,
        "is_registered": v.is_registered,
        "has_voted": v.has_voted,
        "voted_proposal_id": v.voted_proposal_id,
    }


def _winner_data(w: Optional[Winner]) -> Optional[dict[str, Any]]:
    if w is None:
        return None
    return {
        "proposal_id": w.proposal_id,
        "description": w.description,
        "vote_count": w.vote_count,
    }
