"""Item management: create, update and delete, each behind its policy."""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.catalogue.item.item import Item
from storefront.domain import storefront
from storefront.exceptions import NotFoundError
from storefront.identity.access import authorize
from storefront.identity.user.user import User
from storefront.ordering.cart.cart_item import CartItem

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Item")
class CreateItem:
    actor_id = Identifier(required=True)
    title = String(required=True, max_length=255)
    description = Text(required=True)
    price = Integer(required=True, min_value=0)
    image = String(max_length=1024)
    large_image = String(max_length=1024)


@storefront.command(part_of="Item")
class UpdateItem:
    actor_id = Identifier(required=True)
    item_id = Identifier(required=True)
    title = String(max_length=255)
    description = Text()
    price = Integer(min_value=0)
    image = String(max_length=1024)
    large_image = String(max_length=1024)


@storefront.command(part_of="Item")
class DeleteItem:
    actor_id = Identifier(required=True)
    item_id = Identifier(required=True)


def load_item(item_id) -> Item:
    try:
        return current_domain.repository_for(Item).get(item_id)
    except ObjectNotFoundError:
        raise NotFoundError(f"No item found for id {item_id}") from None


def _actor(actor_id):
    return current_domain.repository_for(User).get_or_not_found(actor_id).to_identity()


@storefront.command_handler(part_of=Item)
class ManageItemsHandler:
    @handle(CreateItem)
    def create_item(self, command):
        actor = authorize("item.create", _actor(command.actor_id))
        item = Item.create(
            user_id=actor.user_id,
            title=command.title,
            description=command.description,
            price=command.price,
            image=command.image,
            large_image=command.large_image,
        )
        current_domain.repository_for(Item).add(item)
        logger.info("Item created", item_id=str(item.id), user_id=actor.user_id, price=item.price)
        return str(item.id)

    @handle(UpdateItem)
    def update_item(self, command):
        item = load_item(command.item_id)
        authorize("item.update", _actor(command.actor_id), owner_id=item.user_id)
        item.update(
            title=command.title,
            description=command.description,
            price=command.price,
            image=command.image,
            large_image=command.large_image,
        )
        current_domain.repository_for(Item).add(item)
        return str(item.id)

    @handle(DeleteItem)
    def delete_item(self, command):
        item = load_item(command.item_id)
        authorize("item.delete", _actor(command.actor_id), owner_id=item.user_id)

        # Nobody can buy a deleted item, so drop it from every cart too
        cart_repo = current_domain.repository_for(CartItem)
        orphaned = cart_repo._dao.query.filter(item_id=str(item.id)).all().items
        for line in orphaned:
            cart_repo._dao.delete(line)

        current_domain.repository_for(Item)._dao.delete(item)
        logger.info("Item deleted", item_id=str(item.id), actor_id=command.actor_id, cart_lines_removed=len(orphaned))
        return str(item.id)


def get_item(item_id) -> Item:
    return load_item(item_id)


def list_items() -> list[Item]:
    items = current_domain.repository_for(Item)._dao.query.all().items
    return sorted(items, key=lambda item: (item.created_at is None, item.created_at), reverse=True)
