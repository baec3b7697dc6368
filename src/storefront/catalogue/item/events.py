"""Domain events for the Item aggregate."""

from protean.fields import Identifier, Integer, String, Text

from storefront.domain import storefront


@storefront.event(part_of="Item")
class ItemCreated:
    """A new item was listed for sale."""

    __version__ = "v1"

    item_id = Identifier(required=True)
    user_id = Identifier(required=True)
    title = String(required=True, max_length=255)
    price = Integer(required=True)


@storefront.event(part_of="Item")
class ItemUpdated:
    __version__ = "v1"

    item_id = Identifier(required=True)
    changes = Text(required=True)  # JSON dict of changed fields
