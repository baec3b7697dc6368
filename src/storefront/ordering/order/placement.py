"""Order placement: record the order and consume the cart in one unit of work."""

import json

import structlog
from protean import handle
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.ordering.cart.items import consume_cart_lines
from storefront.ordering.order.order import Order

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class PlaceOrder:
    user_id = Identifier(required=True)
    lines = Text(required=True)  # JSON: list of line snapshots, each with cart_item_id
    total = Integer(required=True, min_value=0)
    currency = String(required=True, max_length=3)
    charge_id = String(required=True, max_length=255)
    idempotency_key = String(max_length=255)


@storefront.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        repo = current_domain.repository_for(Order)
        if command.idempotency_key:
            existing = repo._dao.query.filter(idempotency_key=command.idempotency_key).all().items
            if existing:
                # The first placement already consumed the cart lines
                logger.warning(
                    "Order already placed for idempotency key",
                    order_id=str(existing[0].id),
                    idempotency_key=command.idempotency_key,
                )
                return str(existing[0].id)

        lines = json.loads(command.lines) if isinstance(command.lines, str) else command.lines

        order = Order.place(
            user_id=command.user_id,
            lines=lines,
            total=command.total,
            currency=command.currency,
            charge_id=command.charge_id,
            idempotency_key=command.idempotency_key,
        )
        repo.add(order)

        consumed = {line["cart_item_id"]: line["quantity"] for line in lines}
        consume_cart_lines(command.user_id, list(consumed), consumed)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            user_id=str(command.user_id),
            total=command.total,
            charge_id=command.charge_id,
        )
        return str(order.id)
