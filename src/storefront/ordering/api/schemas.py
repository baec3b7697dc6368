"""Pydantic request/response schemas for the cart and order API.

External contracts, kept apart from the internal Protean commands.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class AddToCartRequest(BaseModel):
    item_id: str


class CartLineResponse(BaseModel):
    id: str
    item_id: str
    quantity: int
    title: str
    price: int
    subtotal: int


class CartResponse(BaseModel):
    lines: list[CartLineResponse]
    total: int


class CartItemIdResponse(BaseModel):
    cart_item_id: str


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class CheckoutRequest(BaseModel):
    token: str = Field(min_length=1, description="One-time payment source token")
    idempotency_key: str | None = Field(default=None, max_length=200)

    model_config = {
        "json_schema_extra": {
            "examples": [{"token": "tok_visa", "idempotency_key": "9f1c2b7e-checkout-1"}]
        }
    }


class OrderLineResponse(BaseModel):
    item_id: str
    title: str
    description: str | None = None
    image: str | None = None
    large_image: str | None = None
    price: int
    quantity: int


class OrderResponse(BaseModel):
    id: str
    user_id: str
    total: int
    currency: str
    charge_id: str
    created_at: datetime | None = None
    lines: list[OrderLineResponse]
    replayed: bool = False
