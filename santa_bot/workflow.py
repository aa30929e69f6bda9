import asyncio
import logging
import random
from typing import List, Optional

from .dispatch import REJECTED_MESSAGE, AssignmentDispatcher
from .errors import DispatchFailure, DrawError, InvalidTransition, SantaError
from .matching_logic import MAX_ATTEMPTS, generate_assignments
from .models import Assignment, EventDetails, Participant, Stage
from .validation import check_participants, parse_event_details

PARTICIPANT_FIELDS = ("name", "email")
TIMED_OUT_MESSAGE = "Sending assignments timed out. Please try again."


class Session:
    """One organizer's run from event details to confirmation.

    Only the owning conversation writes to a session. Failures inside an
    operation never escape it: they are stored as ``error`` (the message shown
    to the organizer) and ``failure`` (the exception, for callers that care
    about the kind). A new failure replaces the previous one and every
    successful transition clears both.
    """

    def __init__(
        self,
        *,
        min_participants: int = 3,
        max_participants: int = 100,
        currency: str = "$",
        max_attempts: int = MAX_ATTEMPTS,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.stage = Stage.COLLECTING_EVENT
        self.event: Optional[EventDetails] = None
        self.participants: List[Participant] = []
        self.assignments: List[Assignment] = []
        self.error: Optional[str] = None
        self.failure: Optional[Exception] = None
        self.dispatching = False
        self._min_participants = min_participants
        self._max_participants = max_participants
        self._currency = currency
        self._max_attempts = max_attempts
        self._rng = rng

    def _fail(self, exc: Exception, fallback: str) -> None:
        self.failure = exc
        self.error = str(exc) or fallback

    def _clear_error(self) -> None:
        self.error = None
        self.failure = None

    def submit_event_details(self, participant_count, exchange_date, budget) -> bool:
        if self.stage is Stage.CONFIRMED or self.dispatching:
            raise InvalidTransition(f"Cannot change event details while {self.stage.value}")
        try:
            event = parse_event_details(
                participant_count,
                exchange_date,
                budget,
                min_participants=self._min_participants,
                max_participants=self._max_participants,
                currency=self._currency,
            )
        except SantaError as exc:
            self._fail(exc, exc.default_message)
            return False
        self.event = event
        self.participants = [Participant() for _ in range(event.participant_count)]
        self.stage = Stage.COLLECTING_PARTICIPANTS
        self._clear_error()
        logging.info(
            "Event accepted: %s participants, exchange on %s", event.participant_count, event.exchange_date
        )
        return True

    def update_participant(self, index: int, field: str, value: str) -> None:
        if self.stage is not Stage.COLLECTING_PARTICIPANTS or self.dispatching:
            raise InvalidTransition("Participants can only be edited before assignments are sent")
        if field not in PARTICIPANT_FIELDS:
            raise ValueError(f"Unknown participant field: {field!r}")
        if not 0 <= index < len(self.participants):
            raise IndexError(f"Participant index {index} out of range")
        setattr(self.participants[index], field, value)

    async def generate_and_dispatch(
        self, dispatcher: AssignmentDispatcher, *, timeout: Optional[float] = None
    ) -> bool:
        """Validate, draw and hand the draw to ``dispatcher``.

        Returns True once the session is confirmed. A call made outside the
        participant stage, or while a previous dispatch is still pending, is
        refused and leaves the session untouched.
        """
        if self.stage is not Stage.COLLECTING_PARTICIPANTS:
            return False
        if self.dispatching:
            logging.info("Dispatch already in progress, ignoring repeated request")
            return False

        try:
            check_participants(self.participants)
        except SantaError as exc:
            self._fail(exc, exc.default_message)
            return False

        self.dispatching = True
        self._clear_error()
        try:
            return await self._draw_and_send(dispatcher, timeout)
        finally:
            # Cleared on cancellation too.
            self.dispatching = False

    async def _draw_and_send(self, dispatcher: AssignmentDispatcher, timeout: Optional[float]) -> bool:
        try:
            assignments = generate_assignments(self.participants, self._max_attempts, self._rng)
        except Exception as exc:
            if not isinstance(exc, DrawError):
                logging.exception("Unexpected failure while drawing assignments")
            self._fail(exc, DrawError.default_message)
            return False

        logging.info("Dispatching %s assignments", len(assignments))
        try:
            pending = dispatcher.send(assignments, self.event)
            if timeout is not None:
                pending = asyncio.wait_for(pending, timeout)
            result = await pending
            if not result.success:
                raise DispatchFailure(result.message or REJECTED_MESSAGE)
        except asyncio.TimeoutError:
            logging.warning("Dispatch timed out after %ss", timeout)
            self._fail(DispatchFailure(TIMED_OUT_MESSAGE), TIMED_OUT_MESSAGE)
            return False
        except Exception as exc:
            if isinstance(exc, DispatchFailure):
                logging.warning("Dispatch failed: %s", exc)
            else:
                logging.exception("Unexpected failure while dispatching assignments")
            self._fail(exc, DispatchFailure.default_message)
            return False

        self.assignments = assignments
        self._clear_error()
        self.stage = Stage.CONFIRMED
        logging.info("Assignments dispatched, session confirmed")
        return True
