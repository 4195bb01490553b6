"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance maintains its own state. Nothing is shared
between users.
"""

from dataclasses import dataclass, field


@dataclass
class OrderState:
    """Tracks a single simulated order from checkout to its last status."""

    order_id: str | None = None
    order_number: str | None = None
    contact_email: str | None = None
    current_status: str = "pending"
    headers: dict = field(default_factory=dict)
