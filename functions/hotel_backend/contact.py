"""
Contact form request handling: validate, dispatch notifications, report.

One run moves through received -> validating -> rejected | dispatching, and
dispatching ends in delivered or failed. Every terminal state produces a
ContactOutcome carrying the HTTP status and the user-facing message.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Optional

from hotel_backend.errors import classify_transport_error
from hotel_backend.notifications import (
    ACKNOWLEDGMENT_STAGE,
    ContactNotifier,
    NotificationDispatchError,
)
from hotel_backend.validation import ContactSubmission, Invalid, validate_submission

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = (
    "Your message has been sent successfully! "
    "We will get back to you within 24 hours."
)


class ContactState(str, enum.Enum):
    RECEIVED = "received"
    VALIDATING = "validating"
    REJECTED = "rejected"
    DISPATCHING = "dispatching"
    DELIVERED = "delivered"
    FAILED = "failed"


@dataclass(frozen=True)
class ContactOutcome:
    state: ContactState
    status_code: int
    message: str
    field: Optional[str] = None
    failed_stage: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.state == ContactState.DELIVERED

    def as_dict(self) -> dict:
        payload = {"success": self.success, "message": self.message}
        if self.field:
            payload["field"] = self.field
        return payload


class ContactRequestHandler:
    """Runs one contact submission through validation and dispatch."""

    def __init__(self, notifier: ContactNotifier):
        self.notifier = notifier

    @staticmethod
    def _enter(state: ContactState) -> ContactState:
        logger.debug("Contact submission -> %s", state.value)
        return state

    def handle(self, submission: ContactSubmission) -> ContactOutcome:
        self._enter(ContactState.RECEIVED)

        self._enter(ContactState.VALIDATING)
        result = validate_submission(submission)
        if isinstance(result, Invalid):
            logger.info(
                "Contact submission rejected field=%s reason=%s",
                result.field,
                result.reason,
            )
            return ContactOutcome(
                state=self._enter(ContactState.REJECTED),
                status_code=400,
                message=result.reason,
                field=result.field,
            )

        self._enter(ContactState.DISPATCHING)
        try:
            self.notifier.dispatch(result.submission)
        except NotificationDispatchError as exc:
            error = classify_transport_error(exc.cause)
            if exc.stage == ACKNOWLEDGMENT_STAGE:
                logger.warning(
                    "Partial contact delivery: admin notified, acknowledgment "
                    "to submitter not sent"
                )
            logger.error(
                "Contact form error stage=%s category=%s: %r",
                exc.stage,
                type(error).__name__,
                exc.cause,
            )
            return ContactOutcome(
                state=self._enter(ContactState.FAILED),
                status_code=error.status_code,
                message=error.message,
                failed_stage=exc.stage,
            )

        logger.info("Contact submission delivered")
        return ContactOutcome(
            state=self._enter(ContactState.DELIVERED),
            status_code=200,
            message=SUCCESS_MESSAGE,
        )
