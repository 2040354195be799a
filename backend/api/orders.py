from fastapi import APIRouter, Depends, HTTPException, Response, status

from auth import get_current_caller
from dependencies import get_listing_service, get_order_lookup, get_order_service
from errors import ErrorKind, OrderError
from models import Caller, Order, OrderItem, OrderSubmission
from schemas import (
    OrderCreate,
    OrderItemResponse,
    OrderListResponse,
    OrderResponse,
)
from services.order_listing_service import OrderListingService, OrderLookup
from services.orders_service import OrderService

router = APIRouter(prefix="/api/orders", tags=["orders"])

ERROR_STATUS = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.PRICING: status.HTTP_400_BAD_REQUEST,
    ErrorKind.AUTHORIZATION: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.PAYMENT_ISSUANCE: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.PERSISTENCE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _raise_for(error: OrderError) -> None:
    raise HTTPException(status_code=ERROR_STATUS[error.kind], detail=error.message)


def _to_submission(payload: OrderCreate) -> OrderSubmission:
    return OrderSubmission(
        order_number=payload.order_number,
        order_date=payload.order_date,
        exchange_rate=payload.exchange_rate,
        owner=payload.owner,
        items=[
            OrderItem(
                product_id=item.product_id,
                product_title=item.product_title,
                quantity=item.quantity,
                unit_price=item.unit_price,
            )
            for item in payload.items
        ],
    )


def _format_order(order: Order) -> OrderResponse:
    return OrderResponse(
        id=order.id,
        order_number=order.order_number,
        order_date=order.order_date,
        owner=order.owner,
        exchange_rate=str(order.exchange_rate),
        total_fiat=str(order.total_fiat),
        total_crypto=str(order.total_crypto),
        payment_address=order.payment_address,
        items=[
            OrderItemResponse(
                id=item.id,
                product_id=item.product_id,
                product_title=item.product_title,
                quantity=item.quantity,
                unit_price=str(item.unit_price),
                line_total=str(item.line_total),
            )
            for item in order.items
        ],
    )


@router.get("", response_model=OrderListResponse)
async def list_orders(
    caller: Caller = Depends(get_current_caller),
    service: OrderListingService = Depends(get_listing_service),
) -> OrderListResponse:
    result = await service.list_orders(caller)
    if not result.ok:
        _raise_for(result.error)
    return OrderListResponse(items=[_format_order(order) for order in result.value])


@router.get("/by-number/{order_number}", response_model=OrderResponse)
async def read_order_by_number(
    order_number: str,
    caller: Caller = Depends(get_current_caller),
    lookup: OrderLookup = Depends(get_order_lookup),
) -> OrderResponse:
    result = await lookup.get_by_number(caller, order_number)
    if not result.ok:
        _raise_for(result.error)
    return _format_order(result.value)


@router.get("/{order_id}", response_model=OrderResponse)
async def read_order(
    order_id: str,
    caller: Caller = Depends(get_current_caller),
    lookup: OrderLookup = Depends(get_order_lookup),
) -> OrderResponse:
    result = await lookup.get_by_id(caller, order_id)
    if not result.ok:
        _raise_for(result.error)
    return _format_order(result.value)


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    payload: OrderCreate,
    response: Response,
    caller: Caller = Depends(get_current_caller),
    service: OrderService = Depends(get_order_service),
) -> OrderResponse:
    result = await service.create_order(_to_submission(payload), caller)
    if not result.ok:
        _raise_for(result.error)
    order = result.value
    response.headers["Location"] = f"/api/orders/{order.id}"
    return _format_order(order)
