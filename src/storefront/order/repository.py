"""Order lookups beyond fetching by id."""

from datetime import UTC

from protean.utils.query import Q

from storefront.domain import storefront
from storefront.order.order import Order


def _utc(moment):
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)


@storefront.repository(part_of=Order)
class OrderRepository:
    def find_by_number(self, order_number) -> Order | None:
        matches = self._dao.query.filter(order_number=order_number).all().items
        return matches[0] if matches else None

    def listing(self, user_id=None, status=None, search=None, start_date=None, end_date=None, page=1, limit=20):
        """A page of orders, newest first, with the total number of matches.

        ``search`` matches part of the order number, guest email or guest
        name, ignoring case. ``start_date`` and ``end_date`` bound the
        placement time and are both inclusive.
        """
        query = self._dao.query
        if user_id:
            query = query.filter(user_id=str(user_id))
        if status:
            query = query.filter(status=status)
        if search:
            query = query.filter(
                Q(order_number__icontains=search) | Q(guest_email__icontains=search) | Q(guest_name__icontains=search)
            )
        if start_date:
            query = query.filter(created_at__gte=_utc(start_date))
        if end_date:
            query = query.filter(created_at__lte=_utc(end_date))

        result = query.order_by("-created_at").offset((page - 1) * limit).limit(limit).all()
        return result.items, result.total
