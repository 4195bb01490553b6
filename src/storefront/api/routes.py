"""FastAPI routes for the Storefront: orders, discounts and stock movements."""

import json
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from protean.utils.globals import current_domain

from storefront.api.identity import Identity, admin, authenticated, current_identity
from storefront.api.schemas import (
    CancelOrderRequest,
    CreateDiscountRequest,
    CreateOrderRequest,
    DiscountIdResponse,
    DiscountValidationResponse,
    OrderListResponse,
    OrderResponse,
    RecordStockMovementRequest,
    StockChangeResponse,
    StockHistoryResponse,
    StockMovementResponse,
    TrackingResponse,
    UpdateOrderStatusRequest,
    ValidateDiscountRequest,
)
from storefront.discount.evaluator import CartEntry, DiscountEvaluator, Rejection
from storefront.discount.management import CreateDiscountCode
from storefront.errors import AuthorizationError
from storefront.order.cancellation import CancelOrder
from storefront.order.order import Order
from storefront.order.placement import CreateOrder
from storefront.order.status import UpdateOrderStatus, load_order
from storefront.order.tracking import track_order
from storefront.shared.money import to_amount, to_minor, to_minor_or_none
from storefront.stock.adjustment import RecordStockMovement
from storefront.stock.ledger import StockLedger

# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


def _full_order(order_id, identity: Identity) -> OrderResponse:
    order = current_domain.repository_for(Order).get(order_id)
    return OrderResponse.from_order(order, include_admin_notes=identity.is_admin)


@order_router.post("", status_code=201, response_model=OrderResponse)
async def create_order(body: CreateOrderRequest, identity: Identity = Depends(current_identity)) -> OrderResponse:
    command = CreateOrder(
        items=json.dumps([item.model_dump() for item in body.items]),
        shipping_address=json.dumps(body.shipping_address.model_dump()),
        payment_method=body.payment_method,
        discount_code=body.discount_code,
        notes=body.notes,
        user_id=identity.user_id,
        user_email=identity.email,
        guest_name=None if identity.is_authenticated else body.guest_name,
        guest_email=None if identity.is_authenticated else body.guest_email,
        guest_phone=None if identity.is_authenticated else body.guest_phone,
    )
    order_id = current_domain.process(command, asynchronous=False)
    return _full_order(order_id, identity)


@order_router.get("", response_model=OrderListResponse)
async def list_orders(
    status: str | None = None,
    search: str | None = Query(default=None, max_length=100),
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    identity: Identity = Depends(authenticated),
) -> OrderListResponse:
    repo = current_domain.repository_for(Order)
    orders, total = repo.listing(
        user_id=None if identity.is_admin else identity.user_id,
        status=status,
        search=search,
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit,
    )
    return OrderListResponse(
        orders=[OrderResponse.from_order(o, include_admin_notes=identity.is_admin) for o in orders],
        page=page,
        limit=limit,
        total=total,
    )


@order_router.get("/track/{order_number}", response_model=TrackingResponse)
async def track(order_number: str, email: str | None = None, phone: str | None = None) -> TrackingResponse:
    order = track_order(order_number, email=email, phone=phone)
    return TrackingResponse.from_order(order)


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, identity: Identity = Depends(current_identity)) -> OrderResponse:
    order = load_order(order_id)
    if not identity.is_admin and not order.is_owned_by(identity.user_id):
        raise AuthorizationError("Access denied")
    return OrderResponse.from_order(order, include_admin_notes=identity.is_admin)


@order_router.put("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: str,
    body: UpdateOrderStatusRequest,
    identity: Identity = Depends(admin),
) -> OrderResponse:
    command = UpdateOrderStatus(
        order_id=order_id,
        status=body.status,
        note=body.note,
        payment_status=body.payment_status,
        admin_notes=body.admin_notes,
        changed_by=identity.user_id,
    )
    current_domain.process(command, asynchronous=False)
    return _full_order(order_id, identity)


@order_router.put("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: str,
    body: CancelOrderRequest | None = None,
    identity: Identity = Depends(authenticated),
) -> OrderResponse:
    command = CancelOrder(
        order_id=order_id,
        reason=body.reason if body else None,
        cancelled_by=identity.user_id,
        is_admin=identity.is_admin,
    )
    current_domain.process(command, asynchronous=False)
    return _full_order(order_id, identity)


# ---------------------------------------------------------------------------
# Discount Router
# ---------------------------------------------------------------------------
discount_router = APIRouter(prefix="/discounts", tags=["discounts"])


@discount_router.post("/validate", response_model=DiscountValidationResponse)
async def validate_discount(
    body: ValidateDiscountRequest,
    identity: Identity = Depends(current_identity),
) -> DiscountValidationResponse:
    """Report whether a code would apply, without consuming it."""
    cart_items = (
        [CartEntry(product_id=item.product_id, category_id=item.category_id) for item in body.items]
        if body.items is not None
        else None
    )
    result = DiscountEvaluator().evaluate(
        body.code,
        to_minor(body.subtotal),
        user_id=identity.user_id,
        cart_items=cart_items,
    )

    if isinstance(result, Rejection):
        return DiscountValidationResponse(
            valid=False,
            code=body.code.strip().upper(),
            reason=result.reason.value,
            message=result.message,
        )

    discount = result.discount
    return DiscountValidationResponse(
        valid=True,
        code=discount.code,
        message="Discount code is valid",
        discount_type=discount.discount_type,
        discount_amount=to_amount(result.amount),
        description=discount.description,
        min_order_amount=to_amount(discount.min_order_amount),
        max_discount_amount=to_amount(discount.max_discount_amount),
    )


@discount_router.post("", status_code=201, response_model=DiscountIdResponse)
async def create_discount(body: CreateDiscountRequest, identity: Identity = Depends(admin)) -> DiscountIdResponse:
    command = CreateDiscountCode(
        code=body.code,
        description=body.description,
        discount_type=body.discount_type,
        value=to_minor(body.value),
        min_order_amount=to_minor_or_none(body.min_order_amount),
        max_discount_amount=to_minor_or_none(body.max_discount_amount),
        usage_limit=body.usage_limit,
        per_user_limit=body.per_user_limit,
        starts_at=body.starts_at,
        expires_at=body.expires_at,
        is_active=body.is_active,
        applicable_categories=json.dumps(body.applicable_categories) if body.applicable_categories else None,
        applicable_products=json.dumps(body.applicable_products) if body.applicable_products else None,
    )
    discount_code_id = current_domain.process(command, asynchronous=False)
    return DiscountIdResponse(discount_code_id=discount_code_id)


# ---------------------------------------------------------------------------
# Stock Router
# ---------------------------------------------------------------------------
stock_router = APIRouter(prefix="/stock", tags=["stock"])


@stock_router.post("/variants/{variant_id}/movements", status_code=201, response_model=StockChangeResponse)
async def record_stock_movement(
    variant_id: str,
    body: RecordStockMovementRequest,
    identity: Identity = Depends(admin),
) -> StockChangeResponse:
    command = RecordStockMovement(
        variant_id=variant_id,
        movement_type=body.movement_type,
        quantity=body.quantity,
        note=body.note,
        recorded_by=identity.user_id,
    )
    change = current_domain.process(command, asynchronous=False)
    return StockChangeResponse(
        variant_id=change.variant_id,
        previous_stock=change.previous_stock,
        new_stock=change.new_stock,
        movement_id=change.movement_id,
    )


@stock_router.get("/variants/{variant_id}/movements", response_model=StockHistoryResponse)
async def stock_history(variant_id: str, identity: Identity = Depends(admin)) -> StockHistoryResponse:
    ledger = StockLedger()
    movements = ledger.history(variant_id)
    return StockHistoryResponse(
        variant_id=variant_id,
        replayed_stock=sum(m.quantity for m in movements),
        movements=[
            StockMovementResponse(
                id=str(m.id),
                movement_type=m.movement_type,
                quantity=m.quantity,
                previous_stock=m.previous_stock,
                new_stock=m.new_stock,
                reference_type=m.reference_type,
                reference_id=str(m.reference_id) if m.reference_id else None,
                note=m.note,
                created_by=str(m.created_by) if m.created_by else None,
                created_at=m.created_at,
            )
            for m in movements
        ],
    )
