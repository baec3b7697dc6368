"""FastAPI endpoints for the cart and for orders."""

from fastapi import APIRouter, Depends

from storefront.api.dependencies import current_identity, request_context, run_blocking
from storefront.context import RequestContext
from storefront.ordering.api.schemas import (
    AddToCartRequest,
    CartItemIdResponse,
    CartLineResponse,
    CartResponse,
    CheckoutRequest,
    OrderLineResponse,
    OrderResponse,
)
from storefront.ordering.cart.ledger import CartLedger
from storefront.ordering.checkout.orchestrator import CheckoutOrchestrator
from storefront.ordering.order.order import Order
from storefront.ordering.order.queries import get_order, list_orders
from storefront.ordering.pricing import compute_total


def order_response(order: Order, replayed: bool = False) -> OrderResponse:
    return OrderResponse(
        id=str(order.id),
        user_id=str(order.user_id),
        total=order.total,
        currency=order.currency,
        charge_id=order.charge_id,
        created_at=order.created_at,
        lines=[
            OrderLineResponse(
                item_id=str(line.item_id),
                title=line.title,
                description=line.description,
                image=line.image,
                large_image=line.large_image,
                price=line.price,
                quantity=line.quantity,
            )
            for line in order.lines
        ],
        replayed=replayed,
    )


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("", response_model=CartResponse)
async def get_cart(context: RequestContext = Depends(request_context)) -> CartResponse:
    snapshot = CartLedger().snapshot(current_identity(context).user_id)
    return CartResponse(
        lines=[
            CartLineResponse(
                id=line.cart_item_id,
                item_id=line.item_id,
                quantity=line.quantity,
                title=line.title,
                price=line.price,
                subtotal=line.subtotal,
            )
            for line in snapshot
        ],
        total=compute_total(snapshot),
    )


@cart_router.post("/items", response_model=CartItemIdResponse)
async def add_to_cart(body: AddToCartRequest, context: RequestContext = Depends(request_context)) -> CartItemIdResponse:
    line = await run_blocking(CartLedger().add_item, current_identity(context).user_id, body.item_id)
    return CartItemIdResponse(cart_item_id=str(line.id))


@cart_router.delete("/items/{cart_item_id}", response_model=CartItemIdResponse)
async def remove_from_cart(cart_item_id: str, context: RequestContext = Depends(request_context)) -> CartItemIdResponse:
    CartLedger().remove_item(current_identity(context).user_id, cart_item_id)
    return CartItemIdResponse(cart_item_id=cart_item_id)


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderResponse)
async def create_order(body: CheckoutRequest, context: RequestContext = Depends(request_context)) -> OrderResponse:
    outcome = await run_blocking(
        CheckoutOrchestrator().checkout, context, body.token, idempotency_key=body.idempotency_key
    )
    return order_response(outcome.order, replayed=outcome.replayed)


@order_router.get("", response_model=list[OrderResponse])
async def get_orders(context: RequestContext = Depends(request_context)) -> list[OrderResponse]:
    return [order_response(order) for order in list_orders(current_identity(context))]


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order_detail(order_id: str, context: RequestContext = Depends(request_context)) -> OrderResponse:
    return order_response(get_order(current_identity(context), order_id))
