"""Outbound e-mail collaborator and the dispatcher that runs it off the write path.

Services commit their state change first and only then hand a message to the
dispatcher. Delivery is best-effort: a failed send is logged and never
propagates back into the service that triggered it.
"""

import logging
import smtplib
from abc import ABC, abstractmethod
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from email.message import EmailMessage
from typing import List, Optional, Sequence

from boxoffice.core.config import Settings
from boxoffice.integrations.identity import IdentityDirectory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TicketLine:
    """One ticket as it appears on a confirmation e-mail."""

    ticket_id: int
    movie_id: int
    show_date: date
    start_time: time
    seat_number: str
    ticket_type: str
    price: Decimal


@dataclass(frozen=True)
class PromotionNotice:
    """Snapshot of a promotion taken before the broadcast leaves the request."""

    promotion_id: int
    code: str
    discount_percentage: Decimal
    description: Optional[str]


class Notifier(ABC):
    """Interface for customer-facing messages."""

    @abstractmethod
    def send_booking_confirmation(
        self, email: str, booking_id: int, tickets: Sequence[TicketLine], total: Decimal
    ) -> None:
        ...

    @abstractmethod
    def send_promotion_broadcast(self, emails: Sequence[str], promotion: PromotionNotice) -> None:
        ...


# ---------------------------------------------------------------------------
# Message bodies
# ---------------------------------------------------------------------------


def render_booking_confirmation(booking_id: int, tickets: Sequence[TicketLine], total: Decimal) -> str:
    lines = [
        "Dear customer,",
        "",
        "Thank you for your booking. Your order has been confirmed.",
        "",
        f"Booking ID: {booking_id}",
        "",
        "Tickets:",
    ]
    for t in tickets:
        lines.append(
            f"{t.show_date:%Y-%m-%d} {t.start_time:%H:%M} - seat {t.seat_number} - "
            f"{t.ticket_type} - ${t.price:.2f}"
        )
    lines += [
        "",
        f"Order total: ${total:.2f}",
        "",
        "If you did not make this booking, please contact our support team.",
        "",
        "Best regards,",
        "Boxoffice Team",
    ]
    return "\n".join(lines)


def render_promotion(promotion: PromotionNotice) -> str:
    lines = ["Dear valued customer,", "", "We're excited to offer you a special promotion!", ""]
    if promotion.description:
        lines += [promotion.description, ""]
    lines += [
        f"Discount: {promotion.discount_percentage}% off your next purchase!",
        "",
        f"Use promotion code: {promotion.code}",
        "",
        "Enter this code at checkout to redeem your discount.",
        "",
        "Best regards,",
        "Boxoffice Team",
    ]
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Notifiers
# ---------------------------------------------------------------------------


class LoggingNotifier(Notifier):
    """Writes messages to the log instead of sending them. Keeps a copy of each one."""

    def __init__(self):
        self.sent_emails: List[dict] = []

    def _record(self, to: List[str], subject: str, body: str) -> None:
        self.sent_emails.append(
            {"to": to, "subject": subject, "body": body, "sent_at": datetime.now()}
        )
        logger.info("E-mail to %s: %s", ", ".join(to), subject)
        logger.debug("%s", body)

    def send_booking_confirmation(self, email, booking_id, tickets, total):
        self._record(
            [email],
            f"Order Confirmation - Booking #{booking_id}",
            render_booking_confirmation(booking_id, tickets, total),
        )

    def send_promotion_broadcast(self, emails, promotion):
        self._record(list(emails), "Special Promotion", render_promotion(promotion))


class SmtpNotifier(Notifier):
    """Sends plain-text e-mail through an SMTP relay with a bounded socket timeout."""

    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: bool = True,
        timeout: float = 10.0,
    ):
        self.host = host
        self.port = port
        self.sender = sender
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    def _send(self, message: EmailMessage) -> None:
        message["From"] = self.sender
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.username:
                smtp.login(self.username, self.password or "")
            smtp.send_message(message)

    def send_booking_confirmation(self, email, booking_id, tickets, total):
        message = EmailMessage()
        message["To"] = email
        message["Subject"] = f"Order Confirmation - Booking #{booking_id}"
        message.set_content(render_booking_confirmation(booking_id, tickets, total))
        self._send(message)
        logger.info("Order confirmation e-mail sent for booking %s", booking_id)

    def send_promotion_broadcast(self, emails, promotion):
        # One message, recipients in Bcc only
        message = EmailMessage()
        message["To"] = self.sender
        message["Bcc"] = ", ".join(emails)
        message["Subject"] = "Special Promotion"
        message.set_content(render_promotion(promotion))
        self._send(message)
        logger.info(
            "Promotion %s e-mailed to %d recipient(s)", promotion.promotion_id, len(emails)
        )


def build_notifier(settings: Settings) -> Notifier:
    if not settings.SMTP_HOST:
        return LoggingNotifier()
    return SmtpNotifier(
        host=settings.SMTP_HOST,
        port=settings.SMTP_PORT,
        sender=settings.MAIL_FROM,
        username=settings.SMTP_USER,
        password=settings.SMTP_PASSWORD,
        use_tls=settings.SMTP_USE_TLS,
        timeout=settings.NOTIFICATION_TIMEOUT_SECONDS,
    )


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------


class NotificationDispatcher:
    """
    Hands messages to a Notifier in the background.

    With an executor, each message runs as a detached job. Without one the
    message is sent inline (used by tests and scripts); either way failures
    are logged and swallowed.
    """

    def __init__(self, notifier: Notifier, executor: Optional[Executor] = None):
        self.notifier = notifier
        self._executor = executor

    @classmethod
    def from_settings(cls, settings: Settings) -> "NotificationDispatcher":
        return cls(
            build_notifier(settings),
            ThreadPoolExecutor(
                max_workers=settings.NOTIFICATION_WORKERS,
                thread_name_prefix="notify",
            ),
        )

    def booking_confirmed(
        self,
        identity: IdentityDirectory,
        customer_id: int,
        booking_id: int,
        tickets: Sequence[TicketLine],
        total: Decimal,
    ) -> None:
        """The customer's address is looked up inside the job, not on the caller's thread."""
        self._submit(
            f"booking confirmation #{booking_id}",
            self._send_booking_confirmation,
            identity,
            customer_id,
            booking_id,
            list(tickets),
            total,
        )

    def _send_booking_confirmation(
        self,
        identity: IdentityDirectory,
        customer_id: int,
        booking_id: int,
        tickets: List[TicketLine],
        total: Decimal,
    ) -> None:
        email = identity.get_customer_email(customer_id)
        if not email:
            logger.warning(
                "No e-mail on file for customer %s; skipping confirmation of booking %s",
                customer_id, booking_id,
            )
            return
        self.notifier.send_booking_confirmation(email, booking_id, tickets, total)

    def promotion_broadcast(self, emails: Sequence[str], promotion: PromotionNotice) -> None:
        self._submit(
            f"promotion broadcast #{promotion.promotion_id}",
            self.notifier.send_promotion_broadcast,
            list(emails),
            promotion,
        )

    def shutdown(self, wait: bool = True) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=wait)

    def _submit(self, description: str, fn, *args) -> None:
        if self._executor is None:
            self._run(description, fn, *args)
            return
        try:
            self._executor.submit(self._run, description, fn, *args)
        except RuntimeError:
            # executor already shut down
            logger.exception("Could not schedule %s", description)

    @staticmethod
    def _run(description: str, fn, *args) -> None:
        try:
            fn(*args)
        except Exception:
            logger.exception("Notification failed: %s", description)
