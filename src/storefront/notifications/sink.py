"""Notification sink port and adapters.

The storefront does not deliver email itself; it hands order
notifications to a sink. Uses the fake adapter by default; the logging
adapter is selected with ``STOREFRONT_NOTIFICATION_SINK=log``.
"""

import os
from abc import ABC, abstractmethod
from enum import Enum
from uuid import uuid4

import structlog

logger = structlog.get_logger(__name__)


class NotificationKind(Enum):
    ADMIN_NEW_ORDER = "AdminNewOrder"
    ORDER_CONFIRMATION = "OrderConfirmation"
    STATUS_UPDATE = "StatusUpdate"


class NotificationSink(ABC):
    """Abstract interface for order notification delivery."""

    @abstractmethod
    def notify(self, kind: NotificationKind, order, extra: dict | None = None) -> None:
        """Deliver one notification about ``order``. May raise on delivery failure."""
        ...


class FakeNotificationSink(NotificationSink):
    """Sink that records notifications in memory for test assertions."""

    def __init__(self):
        self.sent: list[dict] = []
        self.should_succeed = True
        self.failure_reason = "Notification delivery failed"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Notification delivery failed"):
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def notify(self, kind, order, extra=None):
        if not self.should_succeed:
            raise RuntimeError(self.failure_reason)

        self.sent.append(
            {
                "message_id": f"notification-{uuid4().hex[:12]}",
                "kind": kind.value,
                "order_id": str(order.id),
                "order_number": order.order_number,
                "to": order.contact_email,
                "extra": extra or {},
            }
        )

    def of_kind(self, kind: NotificationKind) -> list[dict]:
        return [n for n in self.sent if n["kind"] == kind.value]

    def reset(self):
        self.sent.clear()
        self.should_succeed = True
        self.failure_reason = "Notification delivery failed"


class LoggingNotificationSink(NotificationSink):
    """Sink that writes notifications to the application log."""

    def notify(self, kind, order, extra=None):
        logger.info(
            "Order notification",
            kind=kind.value,
            order_number=order.order_number,
            to=order.contact_email,
            status=order.status,
            extra=extra or {},
        )


_sink: NotificationSink | None = None


def get_sink() -> NotificationSink:
    """Return the configured sink (singleton)."""
    global _sink
    if _sink is None:
        if os.getenv("STOREFRONT_NOTIFICATION_SINK", "fake").lower() == "log":
            _sink = LoggingNotificationSink()
        else:
            _sink = FakeNotificationSink()
    return _sink


def set_sink(sink: NotificationSink) -> None:
    global _sink
    _sink = sink


def reset_sink() -> None:
    """Drop the configured sink (useful for testing)."""
    global _sink
    _sink = None
