"""
Finite state machine for one booking attempt's conflict gate.

A booking attempt moves Idle -> Checking -> Clear or Conflicted. A clear
attempt is committed; a conflicted one needs an explicit force-book or
cancel. The check and the commit are separate steps so a confirmation
dialog can sit between them without holding any lock.

Each check is stamped with a generation token. Cancelling bumps the
generation, so a calendar response that arrives after the attempt was
abandoned is discarded instead of mutating state.

Usage:
    gate = ConflictGate(checker)
    conflicts = await gate.check(start, end)
    if conflicts:
        gate.force_book()   # or gate.cancel()
    else:
        gate.commit()
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from booking_engine.engine.conflicts import ConflictChecker
from booking_engine.logging_context import get_attempt_logger
from booking_engine.schemas.calendar_schema import CalendarConflict

logger = get_attempt_logger(__name__)


class GateState(str, Enum):
    """Lifecycle of a single booking attempt."""
    IDLE = "idle"
    CHECKING = "checking"
    CLEAR = "clear"
    CONFLICTED = "conflicted"


class GateTrigger(str, Enum):
    """Events that move the gate between states."""
    CHECK_STARTED = "check_started"
    NO_CONFLICTS = "no_conflicts"
    CONFLICTS_FOUND = "conflicts_found"
    COMMITTED = "committed"
    FORCE_BOOK = "force_book"
    CANCEL = "cancel"
    PERSIST_FAILED = "persist_failed"


@dataclass
class Transition:
    """A single valid state transition."""
    from_state: GateState
    to_state: GateState
    trigger: GateTrigger


@dataclass
class StateEntry:
    """Recorded history entry for a state visit."""
    state: GateState
    entered_at: datetime
    trigger: Optional[GateTrigger] = None


class InvalidTransitionError(Exception):
    """Raised when a transition is not valid from the current state."""


class ConflictGate:
    """Per-attempt conflict gate. Create one for each booking dialog session."""

    TRANSITIONS: list[Transition] = [
        # --- Check ---
        Transition(GateState.IDLE, GateState.CHECKING, GateTrigger.CHECK_STARTED),
        Transition(GateState.CHECKING, GateState.CLEAR, GateTrigger.NO_CONFLICTS),
        Transition(GateState.CHECKING, GateState.CONFLICTED, GateTrigger.CONFLICTS_FOUND),
        Transition(GateState.CHECKING, GateState.IDLE, GateTrigger.CANCEL),

        # --- Clear ---
        Transition(GateState.CLEAR, GateState.IDLE, GateTrigger.COMMITTED),
        Transition(GateState.CLEAR, GateState.IDLE, GateTrigger.CANCEL),
        Transition(GateState.CLEAR, GateState.IDLE, GateTrigger.PERSIST_FAILED),

        # --- Conflicted ---
        Transition(GateState.CONFLICTED, GateState.IDLE, GateTrigger.FORCE_BOOK),
        Transition(GateState.CONFLICTED, GateState.IDLE, GateTrigger.CANCEL),
    ]

    def __init__(self, checker: ConflictChecker) -> None:
        self._checker = checker
        self._current_state = GateState.IDLE
        self._history: list[StateEntry] = [
            StateEntry(state=GateState.IDLE, entered_at=datetime.now(timezone.utc))
        ]
        self._generation: int = 0
        self._conflicts: list[CalendarConflict] = []

    @property
    def current_state(self) -> GateState:
        return self._current_state

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def conflicts(self) -> list[CalendarConflict]:
        return list(self._conflicts)

    def transition(self, trigger: GateTrigger) -> GateState:
        """
        Execute a state transition.

        Raises:
            InvalidTransitionError: If no valid transition exists.
        """
        for t in self.TRANSITIONS:
            if t.from_state == self._current_state and t.trigger == trigger:
                old_state = self._current_state
                self._current_state = t.to_state
                self._history.append(StateEntry(
                    state=self._current_state,
                    entered_at=datetime.now(timezone.utc),
                    trigger=trigger,
                ))
                logger.debug(
                    "Gate transition: %s -> %s (trigger: %s)",
                    old_state.value, self._current_state.value, trigger.value,
                )
                return self._current_state

        raise self._invalid(trigger)

    def _invalid(self, trigger: GateTrigger) -> InvalidTransitionError:
        valid = [t.value for t in self.get_valid_triggers()]
        return InvalidTransitionError(
            f"No valid transition from '{self._current_state.value}' "
            f"with trigger '{trigger.value}'. Valid triggers: {valid}"
        )

    def require(self, trigger: GateTrigger) -> None:
        """Raise InvalidTransitionError unless ``trigger`` is valid right now."""
        if trigger not in self.get_valid_triggers():
            raise self._invalid(trigger)

    def get_valid_triggers(self) -> list[GateTrigger]:
        """Return all triggers valid from the current state."""
        return [t.trigger for t in self.TRANSITIONS if t.from_state == self._current_state]

    def get_history(self) -> list[StateEntry]:
        return list(self._history)

    def get_state_trace(self) -> list[str]:
        """Return ordered list of state names visited."""
        return [entry.state.value for entry in self._history]

    async def check(
        self,
        start: datetime,
        end: datetime,
        exclude_job_id: Optional[str] = None,
    ) -> Optional[list[CalendarConflict]]:
        """
        Run the conflict check for this attempt.

        Returns:
            The conflict list (empty when clear), or None when the attempt
            was cancelled while the check was in flight.
        """
        self.transition(GateTrigger.CHECK_STARTED)
        self._generation += 1
        token = self._generation
        self._conflicts = []

        conflicts = await self._checker.check_window(start, end, exclude_job_id)

        if token != self._generation or self._current_state != GateState.CHECKING:
            logger.warning("Discarding stale conflict check (generation %d)", token)
            return None

        self._conflicts = conflicts
        self.transition(GateTrigger.CONFLICTS_FOUND if conflicts else GateTrigger.NO_CONFLICTS)
        return conflicts

    def commit(self) -> None:
        """Mark a clear attempt as persisted."""
        self.transition(GateTrigger.COMMITTED)

    def persist_failed(self) -> None:
        """Return a clear attempt to idle after the job store rejected the write.

        The next submit runs a fresh check.
        """
        self.transition(GateTrigger.PERSIST_FAILED)
        self._conflicts = []
        logger.warning("Job write failed, attempt returned to idle")

    def force_book(self) -> None:
        """Accept the reported conflicts and book anyway. The check is not retried."""
        self.transition(GateTrigger.FORCE_BOOK)
        logger.info("Force-booking over %d conflict(s)", len(self._conflicts))
        self._conflicts = []

    def cancel(self) -> None:
        """Abandon the attempt. Any in-flight check result will be discarded."""
        self.transition(GateTrigger.CANCEL)
        self._generation += 1
        self._conflicts = []
        logger.info("Booking attempt cancelled")
