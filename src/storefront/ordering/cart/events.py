"""Domain events for the CartItem aggregate."""

from protean.fields import Identifier, Integer

from storefront.domain import storefront


@storefront.event(part_of="CartItem")
class CartItemAdded:
    """An item was put in a user's cart for the first time."""

    __version__ = "v1"

    cart_item_id = Identifier(required=True)
    user_id = Identifier(required=True)
    item_id = Identifier(required=True)
    quantity = Integer(required=True)


@storefront.event(part_of="CartItem")
class CartItemQuantityIncreased:
    __version__ = "v1"

    cart_item_id = Identifier(required=True)
    user_id = Identifier(required=True)
    item_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@storefront.event(part_of="CartItem")
class CartItemPartiallyConsumed:
    """Checkout bought part of a line that grew while the order was being placed."""

    __version__ = "v1"

    cart_item_id = Identifier(required=True)
    user_id = Identifier(required=True)
    consumed_quantity = Integer(required=True)
    remaining_quantity = Integer(required=True)
