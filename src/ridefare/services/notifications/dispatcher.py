"""Best-effort notification of the operator and the customer.

Each channel is attempted independently and its outcome captured on its own; a
failed channel is logged and never propagates to the booking request.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Literal, Optional, Protocol

from ...config import settings
from ...errors import DeliveryError
from ...models.domain import ValidatedBooking
from ..pricing.rates import RateTable, get_rate_table
from .messages import customer_message, operator_message, self_test_message
from .sendgrid_client import EmailMessage, SendGridClient

logger = logging.getLogger(__name__)

OPERATOR = "operator"
CUSTOMER = "customer"


class Mailer(Protocol):
    async def send(self, message: EmailMessage, channel: str = "email") -> None: ...


@dataclass(slots=True)
class ChannelOutcome:
    channel: str
    status: Literal["sent", "failed", "skipped"]
    error: Optional[str] = None


@dataclass(slots=True)
class DispatchReport:
    reservation_id: str
    operator: ChannelOutcome
    customer: ChannelOutcome

    @property
    def all_delivered(self) -> bool:
        return self.operator.status != "failed" and self.customer.status != "failed"


class NotificationDispatcher:
    def __init__(
        self,
        mailer: Mailer | None = None,
        operator_email: str | None = None,
        operator_phone: str | None = None,
        rate_table: RateTable | None = None,
    ) -> None:
        self.mailer = mailer or SendGridClient()
        self.operator_email = operator_email or settings.operator_email
        self.operator_phone = operator_phone or settings.operator_phone
        self.rate_table = rate_table or get_rate_table()

    async def notify_operator(self, booking: ValidatedBooking) -> None:
        if not self.operator_email:
            raise DeliveryError(OPERATOR, "Operator email address is not configured.")
        message = operator_message(booking, self.operator_email, self.rate_table)
        await self.mailer.send(message, channel=OPERATOR)
        logger.info(f"Operator notified of booking for {booking.date} {booking.time}")

    async def notify_customer(self, booking: ValidatedBooking) -> None:
        if not booking.email:
            raise DeliveryError(CUSTOMER, "Booking has no customer email address.")
        await self.mailer.send(customer_message(booking, self.operator_phone), channel=CUSTOMER)
        logger.info("Customer confirmation sent")

    async def _attempt(self, channel: str, send: Awaitable[None], reservation_id: str) -> ChannelOutcome:
        try:
            await send
        except DeliveryError as exc:
            logger.warning(f"Notification delivery failed for reservation {reservation_id}: {exc}")
            return ChannelOutcome(channel, "failed", str(exc))
        except Exception as exc:
            logger.exception(f"Unexpected {channel} notification error for reservation {reservation_id}")
            return ChannelOutcome(channel, "failed", repr(exc))
        return ChannelOutcome(channel, "sent")

    async def _skipped(self) -> ChannelOutcome:
        return ChannelOutcome(CUSTOMER, "skipped")

    async def dispatch(self, booking: ValidatedBooking, reservation_id: str) -> DispatchReport:
        """Notify both parties concurrently and report each outcome separately."""
        customer_attempt = (
            self._attempt(CUSTOMER, self.notify_customer(booking), reservation_id)
            if booking.email
            else self._skipped()
        )
        operator_outcome, customer_outcome = await asyncio.gather(
            self._attempt(OPERATOR, self.notify_operator(booking), reservation_id),
            customer_attempt,
        )
        report = DispatchReport(reservation_id, operator_outcome, customer_outcome)
        log = logger.info if report.all_delivered else logger.warning
        log(
            f"Notifications for reservation {reservation_id}: "
            f"operator={operator_outcome.status}, customer={customer_outcome.status}"
        )
        return report

    async def send_self_test(self) -> bool:
        """Send a configuration test email to the operator; returns whether it went out."""
        if not self.operator_email:
            logger.error("Email self-test skipped: operator email address is not configured")
            return False
        try:
            await self.mailer.send(self_test_message(self.operator_email), channel="self-test")
        except DeliveryError as exc:
            logger.error(f"Email configuration error: {exc}")
            return False
        except Exception:
            logger.exception("Email self-test failed unexpectedly")
            return False
        logger.info("Email server ready via SendGrid")
        return True
