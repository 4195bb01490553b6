"""Compare-and-set updates for contended counters.

Stock levels, discount usage and sold counts are shared between
concurrent checkouts. Instead of read-then-write, each change is applied
as a conditional update that only matches the row while it still holds
the value that was read, and the affected-row count tells whether the
change won. A lost race re-reads and tries again a bounded number of
times.
"""

import structlog
from protean.utils.globals import current_uow
from protean.utils.query import Q

from storefront.errors import InternalError, Reason

logger = structlog.get_logger(__name__)

MAX_ATTEMPTS = 3


class CounterContention(Exception):
    """Every compare-and-set attempt on a counter lost to a concurrent writer."""

    def __init__(self, field_name, identifier):
        super().__init__(f"Concurrent updates to {field_name} of {identifier}")
        self.field_name = field_name
        self.identifier = identifier


def require_transaction(operation: str) -> None:
    """Fail unless a unit of work is in progress."""
    if not current_uow or not current_uow.in_progress:
        raise InternalError(
            Reason.TRANSACTION_REQUIRED,
            f"{operation} must run inside a unit of work",
        )


def compare_and_set(dao, identifier, field_name, next_value, guard=None):
    """Move ``field_name`` of one record from its current value to ``next_value(current)``.

    ``next_value`` may raise to refuse the change (for example when stock
    would go negative); the exception propagates untouched.

    ``guard`` receives the record as read and returns further field
    conditions the row must still satisfy for the update to match. It may
    also raise to refuse the change.

    Returns:
        tuple of (record as read, previous value, new value)

    Raises:
        CounterContention: every attempt was beaten by a concurrent update
    """
    for attempt in range(1, MAX_ATTEMPTS + 1):
        record = dao.get(identifier)
        previous = getattr(record, field_name)
        new = next_value(previous)
        conditions = guard(record) if guard else {}

        updated = dao._update_all(
            Q(id=identifier, **{field_name: previous}, **conditions),
            **{field_name: new},
        )
        if updated:
            return record, previous, new

        logger.info(
            "Counter update lost race",
            field=field_name,
            identifier=str(identifier),
            attempt=attempt,
        )

    raise CounterContention(field_name, identifier)
