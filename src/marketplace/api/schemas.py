"""Pydantic request/response schemas for the Checkout API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands. All amounts are integers in minor currency units.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class AddressSchema(BaseModel):
    street: str
    city: str
    state: str | None = None
    postal_code: str
    country: str = "US"
    label: str | None = None


class CartLineSchema(BaseModel):
    product_id: str
    vendor_id: str
    vendor_name: str
    product_name: str
    unit_price: int = Field(ge=0)
    quantity: int = Field(ge=1)


class DraftOrderSchema(BaseModel):
    vendor_id: str
    vendor_name: str
    items: list[CartLineSchema]
    subtotal: int
    delivery_fee: int
    platform_fee: int
    tax: int
    discount: int
    total: int
    status: str


class OrderItemSchema(BaseModel):
    product_id: str
    product_name: str
    unit_price: int
    quantity: int
    line_subtotal: int


# ---------------------------------------------------------------------------
# Checkout Request Schemas
# ---------------------------------------------------------------------------
class StartCheckoutRequest(BaseModel):
    customer_id: str
    items: list[CartLineSchema]
    delivery_address: AddressSchema
    delivery_mode: str = "DELIVERY"
    scheduled_for: datetime | None = None
    promo_code: str | None = None
    loyalty_points_to_redeem: int = Field(ge=0, default=0)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "customer_id": "cust-001",
                    "items": [
                        {
                            "product_id": "prod-001",
                            "vendor_id": "vendor-bakery",
                            "vendor_name": "Corner Bakery",
                            "product_name": "Sourdough Loaf",
                            "unit_price": 1200,
                            "quantity": 2,
                        }
                    ],
                    "delivery_address": {
                        "street": "123 Main St",
                        "city": "Springfield",
                        "state": "IL",
                        "postal_code": "62701",
                        "country": "US",
                        "label": "Home",
                    },
                    "delivery_mode": "DELIVERY",
                    "promo_code": "SAVE5",
                }
            ]
        }
    }


class ConfirmPaymentRequest(BaseModel):
    payment_reference: str


class RegisterPromoCodeRequest(BaseModel):
    code: str
    discount_type: str
    discount_value: float = Field(gt=0)
    minimum_order: int | None = Field(ge=0, default=None)
    expires_at: datetime | None = None


class ValidatePromoCodeRequest(BaseModel):
    code: str
    aggregate_subtotal: int = Field(ge=0)


# ---------------------------------------------------------------------------
# Order Request Schemas
# ---------------------------------------------------------------------------
class UpdateOrderStatusRequest(BaseModel):
    status: str


class CancelOrderRequest(BaseModel):
    reason: str | None = None


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class CheckoutSessionResponse(BaseModel):
    session_id: str
    customer_id: str
    draft_orders: list[DraftOrderSchema]
    aggregate_total: int
    currency: str
    promo_code: str | None = None
    loyalty_points_used: int = 0
    expires_at: datetime


class PromoCodeResponse(BaseModel):
    code: str
    discount_type: str
    discount_value: float
    minimum_order: int | None = None
    expires_at: datetime | None = None
    is_active: bool = True


class PromoValidationResponse(BaseModel):
    code: str
    discount: int


class LoyaltyBalanceResponse(BaseModel):
    customer_id: str
    balance: int
    redemption_increment: int
    max_redeemable: int | None = None


class OrderResponse(BaseModel):
    order_id: str
    session_id: str
    customer_id: str
    vendor_id: str
    vendor_name: str
    items: list[OrderItemSchema]
    subtotal: int
    delivery_fee: int
    platform_fee: int
    tax: int
    discount: int
    total: int
    currency: str
    status: str
    delivery_address: AddressSchema
    delivery_mode: str
    scheduled_for: datetime | None = None
    promo_code: str | None = None
    loyalty_points_used: int = 0
    payment_reference: str | None = None
    estimated_delivery_time: datetime | None = None
    created_at: datetime


class OrdersResponse(BaseModel):
    orders: list[OrderResponse]


class StatusResponse(BaseModel):
    status: str = "ok"
