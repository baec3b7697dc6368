"""Cart line management: commands and handler."""

import json

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, Text
from protean.utils.globals import current_domain

from storefront.catalogue.item.item import Item
from storefront.domain import storefront
from storefront.exceptions import ForbiddenError, NotFoundError
from storefront.ordering.cart.cart_item import CartItem

logger = structlog.get_logger(__name__)


@storefront.command(part_of="CartItem")
class AddToCart:
    user_id = Identifier(required=True)
    item_id = Identifier(required=True)


@storefront.command(part_of="CartItem")
class RemoveFromCart:
    user_id = Identifier(required=True)
    cart_item_id = Identifier(required=True)


@storefront.command(part_of="CartItem")
class ClearCartLines:
    user_id = Identifier(required=True)
    cart_item_ids = Text(required=True)  # JSON array of cart item ids
    consumed = Text()  # JSON object: cart item id -> quantity bought


def find_line(user_id, item_id) -> CartItem | None:
    lines = (
        current_domain.repository_for(CartItem)
        ._dao.query.filter(user_id=str(user_id), item_id=str(item_id))
        .all()
        .items
    )
    return lines[0] if lines else None


def load_line(cart_item_id) -> CartItem:
    try:
        return current_domain.repository_for(CartItem).get(cart_item_id)
    except ObjectNotFoundError:
        raise NotFoundError("No item found in your cart") from None


def consume_cart_lines(user_id, cart_item_ids, consumed=None) -> int:
    """Delete the listed lines owned by ``user_id``.

    When ``consumed`` says fewer units were bought than a line now holds, the
    line is reduced by that many instead of deleted. Returns how many lines
    were touched. Must run inside the caller's unit of work.
    """
    repo = current_domain.repository_for(CartItem)
    consumed = consumed or {}
    touched = 0
    for cart_item_id in cart_item_ids:
        try:
            line = repo.get(cart_item_id)
        except ObjectNotFoundError:
            continue
        if not line.belongs_to(user_id):
            logger.warning("Skipping cart line owned by another user", cart_item_id=str(cart_item_id), user_id=str(user_id))
            continue

        bought = consumed.get(str(cart_item_id))
        if bought is not None and line.quantity > bought:
            line.consume(bought)
            repo.add(line)
        else:
            repo._dao.delete(line)
        touched += 1
    return touched


@storefront.command_handler(part_of=CartItem)
class ManageCartHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        try:
            current_domain.repository_for(Item).get(command.item_id)
        except ObjectNotFoundError:
            raise NotFoundError(f"No item found for id {command.item_id}") from None

        repo = current_domain.repository_for(CartItem)
        line = find_line(command.user_id, command.item_id)
        if line is None:
            line = CartItem.start(user_id=command.user_id, item_id=command.item_id)
        else:
            line.increment()
        repo.add(line)
        return str(line.id)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        line = load_line(command.cart_item_id)
        if not line.belongs_to(command.user_id):
            raise ForbiddenError("Cheating huh? That item is not in your cart")
        current_domain.repository_for(CartItem)._dao.delete(line)
        return str(line.id)

    @handle(ClearCartLines)
    def clear_cart_lines(self, command):
        ids = json.loads(command.cart_item_ids) if isinstance(command.cart_item_ids, str) else command.cart_item_ids
        consumed = json.loads(command.consumed) if isinstance(command.consumed, str) else command.consumed
        return consume_cart_lines(command.user_id, ids, consumed)
