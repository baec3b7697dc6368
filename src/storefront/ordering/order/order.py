"""Order aggregate: the receipt of a completed checkout.

Orders are written once and never change. Each line copies the item's
title, description, images and price as they were when the cart was read,
so later catalogue edits do not alter past orders.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String, Text

from storefront.domain import storefront
from storefront.ordering.order.events import OrderPlaced


@storefront.entity(part_of="Order")
class OrderLine:
    item_id = Identifier(required=True)
    title = String(required=True, max_length=255)
    description = Text()
    image = String(max_length=1024)
    large_image = String(max_length=1024)
    price = Integer(required=True, min_value=0)
    quantity = Integer(required=True, min_value=1)


@storefront.aggregate
class Order:
    user_id = Identifier(required=True)
    lines = HasMany(OrderLine)
    total = Integer(required=True, min_value=0)
    currency = String(max_length=3, default="USD")
    charge_id = String(required=True, max_length=255)
    idempotency_key = String(max_length=255)
    created_at = DateTime()

    @classmethod
    def place(cls, user_id, lines, total, currency, charge_id, idempotency_key=None):
        """Record a paid order.

        ``lines`` are dicts carrying item_id, title, description, image,
        large_image, price and quantity. ``total`` is the amount the payment
        processor reports as charged.
        """
        if not lines:
            raise ValidationError({"lines": ["An order needs at least one line"]})

        now = datetime.now(UTC)
        order = cls(
            user_id=user_id,
            total=total,
            currency=currency,
            charge_id=charge_id,
            idempotency_key=idempotency_key,
            created_at=now,
        )
        order.add_lines(
            [
                OrderLine(
                    item_id=line["item_id"],
                    title=line["title"],
                    description=line.get("description"),
                    image=line.get("image"),
                    large_image=line.get("large_image"),
                    price=line["price"],
                    quantity=line["quantity"],
                )
                for line in lines
            ]
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                user_id=str(user_id),
                total=total,
                currency=currency,
                charge_id=charge_id,
                line_count=len(order.lines),
                placed_at=now,
            )
        )
        return order

    @property
    def line_total(self) -> int:
        return sum(line.price * line.quantity for line in self.lines)
