"""CartItem aggregate: one line of a user's cart.

There is at most one line per (user, item); adding the same item again
increases its quantity. Lines are deleted when removed or bought.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer

from storefront.domain import storefront
from storefront.ordering.cart.events import (
    CartItemAdded,
    CartItemPartiallyConsumed,
    CartItemQuantityIncreased,
)


@storefront.aggregate
class CartItem:
    user_id = Identifier(required=True)
    item_id = Identifier(required=True)
    quantity = Integer(min_value=1, default=1)
    added_at = DateTime()

    @classmethod
    def start(cls, user_id, item_id):
        line = cls(user_id=user_id, item_id=item_id, quantity=1, added_at=datetime.now(UTC))
        line.raise_(
            CartItemAdded(
                cart_item_id=str(line.id),
                user_id=str(user_id),
                item_id=str(item_id),
                quantity=1,
            )
        )
        return line

    def increment(self, by=1):
        previous = self.quantity
        self.quantity = previous + by
        self.raise_(
            CartItemQuantityIncreased(
                cart_item_id=str(self.id),
                user_id=str(self.user_id),
                item_id=str(self.item_id),
                previous_quantity=previous,
                new_quantity=self.quantity,
            )
        )

    def belongs_to(self, user_id) -> bool:
        return str(self.user_id) == str(user_id)

    def consume(self, quantity):
        """Take ``quantity`` units off a line that holds more than that."""
        if quantity < 1 or quantity >= self.quantity:
            raise ValidationError({"quantity": ["Partial consumption must leave at least one unit"]})

        self.quantity -= quantity
        self.raise_(
            CartItemPartiallyConsumed(
                cart_item_id=str(self.id),
                user_id=str(self.user_id),
                consumed_quantity=quantity,
                remaining_quantity=self.quantity,
            )
        )
