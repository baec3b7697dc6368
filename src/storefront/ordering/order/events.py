"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderPlaced:
    """A paid order was recorded."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    total = Integer(required=True)
    currency = String(required=True, max_length=3)
    charge_id = String(required=True, max_length=255)
    line_count = Integer(required=True)
    placed_at = DateTime(required=True)
