"""Item aggregate: something that can be bought.

Prices are integer minor currency units (cents). Checkout only reads items.
"""

import json
from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String, Text

from storefront.catalogue.item.events import ItemCreated, ItemUpdated
from storefront.domain import storefront

EDITABLE_FIELDS = ("title", "description", "image", "large_image", "price")


@storefront.aggregate
class Item:
    title = String(required=True, max_length=255)
    description = Text(required=True)
    image = String(max_length=1024)
    large_image = String(max_length=1024)
    price = Integer(required=True, min_value=0)
    user_id = Identifier(required=True)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, user_id, title, description, price, image=None, large_image=None):
        now = datetime.now(UTC)
        item = cls(
            user_id=user_id,
            title=title,
            description=description,
            price=price,
            image=image,
            large_image=large_image,
            created_at=now,
            updated_at=now,
        )
        item.raise_(
            ItemCreated(
                item_id=str(item.id),
                user_id=str(user_id),
                title=item.title,
                price=item.price,
            )
        )
        return item

    def update(self, **changes):
        """Apply the given field changes. ``None`` values are ignored."""
        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValidationError({field: ["Field cannot be changed"] for field in sorted(unknown)})

        applied = {}
        for field, value in changes.items():
            if value is None or getattr(self, field) == value:
                continue
            setattr(self, field, value)
            applied[field] = value

        if applied:
            self.updated_at = datetime.now(UTC)
            self.raise_(ItemUpdated(item_id=str(self.id), changes=json.dumps(applied)))
        return applied
