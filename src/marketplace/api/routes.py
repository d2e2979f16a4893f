"""FastAPI routes for the Marketplace — checkout, promo codes, loyalty, orders."""

from fastapi import APIRouter
from protean.utils.globals import current_domain

from marketplace.api.schemas import (
    AddressSchema,
    CancelOrderRequest,
    CheckoutSessionResponse,
    ConfirmPaymentRequest,
    DraftOrderSchema,
    LoyaltyBalanceResponse,
    OrderItemSchema,
    OrderResponse,
    OrdersResponse,
    PromoCodeResponse,
    PromoValidationResponse,
    RegisterPromoCodeRequest,
    StartCheckoutRequest,
    StatusResponse,
    UpdateOrderStatusRequest,
    ValidatePromoCodeRequest,
)
from marketplace.checkout.preview import compute_checkout_preview
from marketplace.loyalty.ledger import get_ledger
from marketplace.loyalty.redemption import REDEMPTION_INCREMENT, max_redeemable
from marketplace.order.materialization import confirm_payment
from marketplace.order.order import OrderStatus
from marketplace.order.status import CancelOrder, UpdateOrderStatus, get_order, order_history, vendor_orders
from marketplace.promotions.management import RegisterPromoCode
from marketplace.promotions.validation import validate_promo_code


def _session_response(session) -> CheckoutSessionResponse:
    return CheckoutSessionResponse(
        session_id=str(session.id),
        customer_id=str(session.customer_id),
        draft_orders=[DraftOrderSchema(**draft.to_dict()) for draft in session.drafts()],
        aggregate_total=session.aggregate_total,
        currency=session.currency,
        promo_code=session.promo_code,
        loyalty_points_used=session.loyalty_points_used or 0,
        expires_at=session.expires_at,
    )


def _order_response(order) -> OrderResponse:
    address = order.delivery_address
    return OrderResponse(
        order_id=str(order.id),
        session_id=str(order.session_id),
        customer_id=str(order.customer_id),
        vendor_id=str(order.vendor_id),
        vendor_name=order.vendor_name,
        items=[
            OrderItemSchema(
                product_id=str(item.product_id),
                product_name=item.product_name,
                unit_price=item.unit_price,
                quantity=item.quantity,
                line_subtotal=item.line_subtotal,
            )
            for item in order.items
        ],
        subtotal=order.subtotal,
        delivery_fee=order.delivery_fee,
        platform_fee=order.platform_fee,
        tax=order.tax,
        discount=order.discount,
        total=order.total,
        currency=order.currency,
        status=order.status,
        delivery_address=AddressSchema(
            street=address.street,
            city=address.city,
            state=address.state,
            postal_code=address.postal_code,
            country=address.country,
            label=address.label,
        ),
        delivery_mode=order.delivery_mode,
        scheduled_for=order.scheduled_for,
        promo_code=order.promo_code,
        loyalty_points_used=order.loyalty_points_used or 0,
        payment_reference=order.payment_reference,
        estimated_delivery_time=order.estimated_delivery_time,
        created_at=order.created_at,
    )


# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])


@checkout_router.post("/sessions", status_code=201, response_model=CheckoutSessionResponse)
async def open_checkout_session(body: StartCheckoutRequest) -> CheckoutSessionResponse:
    session = compute_checkout_preview(
        customer_id=body.customer_id,
        cart=[line.model_dump() for line in body.items],
        delivery_address=body.delivery_address.model_dump(),
        delivery_mode=body.delivery_mode,
        promo_code=body.promo_code,
        loyalty_points_to_redeem=body.loyalty_points_to_redeem,
        scheduled_for=body.scheduled_for,
    )
    return _session_response(session)


@checkout_router.post("/sessions/{session_id}/confirm", status_code=201, response_model=OrdersResponse)
async def confirm_checkout_session(session_id: str, body: ConfirmPaymentRequest) -> OrdersResponse:
    """Payment-confirmed webhook target. Repeated deliveries return the same orders."""
    orders = confirm_payment(session_id, body.payment_reference)
    return OrdersResponse(orders=[_order_response(order) for order in orders])


# ---------------------------------------------------------------------------
# Promo Code Router
# ---------------------------------------------------------------------------
promo_router = APIRouter(prefix="/promo-codes", tags=["promo-codes"])


@promo_router.post("", status_code=201, response_model=PromoCodeResponse)
async def register_promo_code(body: RegisterPromoCodeRequest) -> PromoCodeResponse:
    command = RegisterPromoCode(
        code=body.code,
        discount_type=body.discount_type,
        discount_value=body.discount_value,
        minimum_order=body.minimum_order,
        expires_at=body.expires_at,
    )
    code = current_domain.process(command, asynchronous=False)
    return PromoCodeResponse(
        code=code,
        discount_type=body.discount_type,
        discount_value=body.discount_value,
        minimum_order=body.minimum_order,
        expires_at=body.expires_at,
    )


@promo_router.post("/validate", response_model=PromoValidationResponse)
async def check_promo_code(body: ValidatePromoCodeRequest) -> PromoValidationResponse:
    promo = validate_promo_code(body.code, body.aggregate_subtotal)
    return PromoValidationResponse(code=promo.code, discount=promo.discount_for(body.aggregate_subtotal))


# ---------------------------------------------------------------------------
# Loyalty Router
# ---------------------------------------------------------------------------
loyalty_router = APIRouter(prefix="/loyalty", tags=["loyalty"])


@loyalty_router.get("/{customer_id}", response_model=LoyaltyBalanceResponse)
async def loyalty_balance(customer_id: str, subtotal: int | None = None) -> LoyaltyBalanceResponse:
    """Point balance; with ``subtotal``, also the most points redeemable against it."""
    balance = get_ledger().balance_for(customer_id)
    return LoyaltyBalanceResponse(
        customer_id=customer_id,
        balance=balance,
        redemption_increment=REDEMPTION_INCREMENT,
        max_redeemable=max_redeemable(balance, subtotal) if subtotal is not None else None,
    )


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.get("/{order_id}", response_model=OrderResponse)
async def fetch_order(order_id: str) -> OrderResponse:
    return _order_response(get_order(order_id))


@order_router.put("/{order_id}/status", response_model=StatusResponse)
async def update_order_status(order_id: str, body: UpdateOrderStatusRequest) -> StatusResponse:
    command = UpdateOrderStatus(order_id=order_id, status=body.status)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@order_router.post("/{order_id}/cancel", response_model=StatusResponse)
async def cancel_order(order_id: str, body: CancelOrderRequest) -> StatusResponse:
    command = CancelOrder(order_id=order_id, reason=body.reason)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Order History Routers
# ---------------------------------------------------------------------------
customer_router = APIRouter(prefix="/customers", tags=["customers"])


@customer_router.get("/{customer_id}/orders", response_model=OrdersResponse)
async def customer_order_history(customer_id: str) -> OrdersResponse:
    return OrdersResponse(orders=[_order_response(order) for order in order_history(customer_id)])


vendor_router = APIRouter(prefix="/vendors", tags=["vendors"])


@vendor_router.get("/{vendor_id}/orders", response_model=OrdersResponse)
async def vendor_order_queue(vendor_id: str, status: OrderStatus | None = None) -> OrdersResponse:
    return OrdersResponse(orders=[_order_response(order) for order in vendor_orders(vendor_id, status)])
