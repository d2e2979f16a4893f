"""Order status updates — commands, handler and read-side lookups.

Vendors and couriers move an order along its fulfilment path one step at a
time. Confirmation is not available here: only a payment confirmation can
move an order out of PENDING.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.order.order import Order, OrderStatus

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, choices=OrderStatus)


@marketplace.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    reason = String(max_length=500)


@marketplace.command_handler(part_of=Order)
class OrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_order_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        previous = order.status
        order.advance_to(command.status)
        repo.add(order)

        logger.info(
            "Order status changed",
            order_id=str(order.id),
            vendor_id=str(order.vendor_id),
            previous_status=previous,
            new_status=order.status,
        )

    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.cancel(command.reason)
        repo.add(order)

        logger.info("Order cancelled", order_id=str(order.id), reason=command.reason)


def get_order(order_id) -> Order:
    return current_domain.repository_for(Order).get(order_id)


def order_history(customer_id) -> list[Order]:
    return current_domain.repository_for(Order).history_for_customer(customer_id)


def vendor_orders(vendor_id, status=None) -> list[Order]:
    return current_domain.repository_for(Order).for_vendor(vendor_id, status)
