"""Repository for the Order aggregate."""

from marketplace.domain import marketplace
from marketplace.order.order import Order, OrderStatus


@marketplace.repository(part_of=Order)
class OrderRepository:
    def find_by_session(self, session_id) -> list[Order]:
        """Orders materialized from one checkout session, in vendor cart order."""
        orders = self._dao.query.filter(session_id=str(session_id)).all().items
        return sorted(orders, key=lambda order: order.vendor_position)

    def history_for_customer(self, customer_id) -> list[Order]:
        """A customer's orders, newest first."""
        orders = self._dao.query.filter(customer_id=str(customer_id)).all().items
        return sorted(orders, key=lambda order: (order.created_at, -order.vendor_position), reverse=True)

    def for_vendor(self, vendor_id, status=None) -> list[Order]:
        """A vendor's incoming orders, newest first, optionally by status."""
        filters = {"vendor_id": str(vendor_id)}
        if status is not None:
            filters["status"] = OrderStatus(getattr(status, "value", status)).value
        orders = self._dao.query.filter(**filters).all().items
        return sorted(orders, key=lambda order: (order.created_at, -order.vendor_position), reverse=True)
