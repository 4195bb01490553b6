"""Pydantic request/response schemas for the Storefront API.

These are external contracts, separate from the internal Protean
commands. Money crosses this boundary as ``Decimal`` with two places.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from storefront.shared.contact import BD_PHONE_PATTERN, EMAIL_PATTERN
from storefront.shared.money import to_amount


# ---------------------------------------------------------------------------
# Order requests
# ---------------------------------------------------------------------------
class ComboSelectionSchema(BaseModel):
    combo_item_id: str
    variant_id: str | None = None
    child_product_id: str | None = None


class CartItemSchema(BaseModel):
    product_id: str
    quantity: int = Field(ge=1)
    variant_id: str | None = None
    size: str | None = Field(default=None, max_length=20)
    color: str | None = Field(default=None, max_length=50)
    combo_selections: list[ComboSelectionSchema] = Field(default_factory=list)


class ShippingAddressSchema(BaseModel):
    recipient_name: str = Field(min_length=2, max_length=100)
    phone: str = Field(pattern=BD_PHONE_PATTERN)
    alternate_phone: str | None = Field(default=None, pattern=BD_PHONE_PATTERN)
    address_line1: str = Field(min_length=1, max_length=255)
    address_line2: str | None = Field(default=None, max_length=255)
    city: str = Field(min_length=1, max_length=100)
    district: str = Field(min_length=1, max_length=100)
    postal_code: str | None = Field(default=None, max_length=20)
    country: str = "Bangladesh"
    delivery_instructions: str | None = None


class CreateOrderRequest(BaseModel):
    items: list[CartItemSchema] = Field(min_length=1)
    shipping_address: ShippingAddressSchema
    payment_method: str = Field(pattern=r"^(cod|bkash|nagad|rocket)$")
    discount_code: str | None = Field(default=None, max_length=50)
    notes: str | None = None
    guest_name: str | None = Field(default=None, min_length=2, max_length=100)
    guest_email: str | None = Field(default=None, pattern=EMAIL_PATTERN, max_length=255)
    guest_phone: str | None = Field(default=None, pattern=BD_PHONE_PATTERN)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "items": [{"product_id": "prod-001", "variant_id": "var-001", "quantity": 2}],
                    "shipping_address": {
                        "recipient_name": "Rahim Uddin",
                        "phone": "01712345678",
                        "address_line1": "House 12, Road 5, Dhanmondi",
                        "city": "Dhaka",
                        "district": "Dhaka",
                    },
                    "payment_method": "cod",
                    "guest_name": "Rahim Uddin",
                    "guest_email": "rahim@example.com",
                    "guest_phone": "01712345678",
                }
            ]
        }
    }


class UpdateOrderStatusRequest(BaseModel):
    status: str
    note: str | None = None
    payment_status: str | None = None
    admin_notes: str | None = None


class CancelOrderRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=500)


# ---------------------------------------------------------------------------
# Order responses
# ---------------------------------------------------------------------------
class ShippingAddressResponse(BaseModel):
    recipient_name: str
    phone: str
    alternate_phone: str | None = None
    address_line1: str
    address_line2: str | None = None
    city: str
    district: str
    postal_code: str | None = None
    country: str | None = None
    delivery_instructions: str | None = None


class ComboSelectionResponse(BaseModel):
    id: str
    combo_item_id: str
    child_product_id: str
    variant_id: str | None = None
    product_name: str
    product_sku: str | None = None
    size: str | None = None
    color: str | None = None
    quantity: int
    total_quantity: int


class OrderItemResponse(BaseModel):
    id: str
    product_id: str
    variant_id: str | None = None
    product_name: str
    product_sku: str | None = None
    size: str | None = None
    color: str | None = None
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    is_combo: bool = False
    combo_selections: list[ComboSelectionResponse] = Field(default_factory=list)


class StatusHistoryResponse(BaseModel):
    status: str
    note: str | None = None
    changed_by: str | None = None
    created_at: datetime


class OrderResponse(BaseModel):
    id: str
    order_number: str
    user_id: str | None = None
    guest_name: str | None = None
    guest_email: str | None = None
    guest_phone: str | None = None
    status: str
    subtotal: Decimal
    discount_amount: Decimal
    discount_code: str | None = None
    shipping_cost: Decimal
    total: Decimal
    payment_method: str
    payment_status: str
    notes: str | None = None
    admin_notes: str | None = None
    cancellation_reason: str | None = None
    estimated_delivery: datetime | None = None
    delivered_at: datetime | None = None
    created_at: datetime | None = None
    shipping_address: ShippingAddressResponse
    items: list[OrderItemResponse]
    status_history: list[StatusHistoryResponse]

    @classmethod
    def from_order(cls, order, include_admin_notes: bool = False) -> "OrderResponse":
        items = []
        for item in order.items:
            selections = [
                ComboSelectionResponse(
                    id=str(s.id),
                    combo_item_id=str(s.combo_item_id),
                    child_product_id=str(s.child_product_id),
                    variant_id=str(s.variant_id) if s.variant_id else None,
                    product_name=s.product_name,
                    product_sku=s.product_sku,
                    size=s.size,
                    color=s.color,
                    quantity=s.quantity,
                    total_quantity=s.total_quantity,
                )
                for s in order.selections_for(item.id)
            ]
            items.append(
                OrderItemResponse(
                    id=str(item.id),
                    product_id=str(item.product_id),
                    variant_id=str(item.variant_id) if item.variant_id else None,
                    product_name=item.product_name,
                    product_sku=item.product_sku,
                    size=item.size,
                    color=item.color,
                    quantity=item.quantity,
                    unit_price=to_amount(item.unit_price),
                    total_price=to_amount(item.total_price),
                    is_combo=bool(selections),
                    combo_selections=selections,
                )
            )

        address = order.shipping_address
        return cls(
            id=str(order.id),
            order_number=order.order_number,
            user_id=str(order.user_id) if order.user_id else None,
            guest_name=order.guest_name,
            guest_email=order.guest_email,
            guest_phone=order.guest_phone,
            status=order.status,
            subtotal=to_amount(order.subtotal),
            discount_amount=to_amount(order.discount_amount),
            discount_code=order.discount_code,
            shipping_cost=to_amount(order.shipping_cost),
            total=to_amount(order.total),
            payment_method=order.payment_method,
            payment_status=order.payment_status,
            notes=order.notes,
            admin_notes=order.admin_notes if include_admin_notes else None,
            cancellation_reason=order.cancellation_reason,
            estimated_delivery=order.estimated_delivery,
            delivered_at=order.delivered_at,
            created_at=order.created_at,
            shipping_address=ShippingAddressResponse(
                recipient_name=address.recipient_name,
                phone=address.phone,
                alternate_phone=address.alternate_phone,
                address_line1=address.address_line1,
                address_line2=address.address_line2,
                city=address.city,
                district=address.district,
                postal_code=address.postal_code,
                country=address.country,
                delivery_instructions=address.delivery_instructions,
            ),
            items=items,
            status_history=[
                StatusHistoryResponse(
                    status=entry.status,
                    note=entry.note,
                    changed_by=str(entry.changed_by) if entry.changed_by else None,
                    created_at=entry.created_at,
                )
                for entry in order.history()
            ],
        )


class OrderListResponse(BaseModel):
    orders: list[OrderResponse]
    page: int
    limit: int
    total: int


class TrackingItemResponse(BaseModel):
    product_name: str
    size: str | None = None
    color: str | None = None
    quantity: int
    unit_price: Decimal
    total_price: Decimal


class TrackingAddressResponse(BaseModel):
    recipient_name: str
    city: str
    district: str


class TrackingResponse(BaseModel):
    order_number: str
    status: str
    created_at: datetime | None = None
    estimated_delivery: datetime | None = None
    delivered_at: datetime | None = None
    items: list[TrackingItemResponse]
    shipping_address: TrackingAddressResponse
    status_history: list[StatusHistoryResponse]

    @classmethod
    def from_order(cls, order) -> "TrackingResponse":
        return cls(
            order_number=order.order_number,
            status=order.status,
            created_at=order.created_at,
            estimated_delivery=order.estimated_delivery,
            delivered_at=order.delivered_at,
            items=[
                TrackingItemResponse(
                    product_name=item.product_name,
                    size=item.size,
                    color=item.color,
                    quantity=item.quantity,
                    unit_price=to_amount(item.unit_price),
                    total_price=to_amount(item.total_price),
                )
                for item in order.items
            ],
            shipping_address=TrackingAddressResponse(
                recipient_name=order.shipping_address.recipient_name,
                city=order.shipping_address.city,
                district=order.shipping_address.district,
            ),
            status_history=[
                StatusHistoryResponse(status=entry.status, note=entry.note, created_at=entry.created_at)
                for entry in reversed(order.history())
            ],
        )


# ---------------------------------------------------------------------------
# Discounts
# ---------------------------------------------------------------------------
class DiscountCartItemSchema(BaseModel):
    product_id: str
    category_id: str | None = None


class ValidateDiscountRequest(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    subtotal: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    items: list[DiscountCartItemSchema] | None = None


class DiscountValidationResponse(BaseModel):
    valid: bool
    code: str
    reason: str | None = None
    message: str | None = None
    discount_type: str | None = None
    discount_amount: Decimal | None = None
    description: str | None = None
    min_order_amount: Decimal | None = None
    max_discount_amount: Decimal | None = None


class CreateDiscountRequest(BaseModel):
    code: str = Field(min_length=1, max_length=50, pattern=r"^[A-Za-z0-9]+$")
    description: str | None = Field(default=None, max_length=255)
    discount_type: str = Field(pattern=r"^(percentage|fixed)$")
    value: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    min_order_amount: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    max_discount_amount: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    usage_limit: int | None = Field(default=None, ge=1)
    per_user_limit: int | None = Field(default=None, ge=1)
    starts_at: datetime | None = None
    expires_at: datetime | None = None
    is_active: bool = True
    applicable_categories: list[str] | None = None
    applicable_products: list[str] | None = None


class DiscountIdResponse(BaseModel):
    discount_code_id: str


# ---------------------------------------------------------------------------
# Stock
# ---------------------------------------------------------------------------
class RecordStockMovementRequest(BaseModel):
    movement_type: str = Field(pattern=r"^(purchase|adjustment|damage)$")
    quantity: int
    note: str | None = None


class StockChangeResponse(BaseModel):
    variant_id: str
    previous_stock: int
    new_stock: int
    movement_id: str


class StockMovementResponse(BaseModel):
    id: str
    movement_type: str
    quantity: int
    previous_stock: int
    new_stock: int
    reference_type: str | None = None
    reference_id: str | None = None
    note: str | None = None
    created_by: str | None = None
    created_at: datetime | None = None


class StockHistoryResponse(BaseModel):
    variant_id: str
    replayed_stock: int
    movements: list[StockMovementResponse]
