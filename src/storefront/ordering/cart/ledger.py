"""Cart ledger: the operations checkout and the API perform on carts.

Adds for the same (user, item) are serialized, so two concurrent adds end as
one line with quantity 2 rather than two lines or a lost increment.
"""

import json
from dataclasses import dataclass
from datetime import datetime

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.catalogue.item.item import Item
from storefront.config import get_settings
from storefront.ordering.cart.cart_item import CartItem
from storefront.ordering.cart.items import AddToCart, ClearCartLines, RemoveFromCart, load_line
from storefront.utils.locks import LockFamily, cart_line_locks

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CartLine:
    """A cart line joined with the item it refers to, as of one moment."""

    cart_item_id: str
    item_id: str
    quantity: int
    title: str
    description: str
    image: str | None
    large_image: str | None
    price: int
    added_at: datetime | None = None

    @property
    def subtotal(self) -> int:
        return self.price * self.quantity

    @classmethod
    def join(cls, line: CartItem, item: Item) -> "CartLine":
        return cls(
            cart_item_id=str(line.id),
            item_id=str(item.id),
            quantity=line.quantity,
            title=item.title,
            description=item.description,
            image=item.image,
            large_image=item.large_image,
            price=item.price,
            added_at=line.added_at,
        )


class CartLedger:
    def __init__(self, locks: LockFamily = cart_line_locks, lock_timeout: float | None = None) -> None:
        self.locks = locks
        self.lock_timeout = lock_timeout

    def _timeout(self) -> float:
        return self.lock_timeout if self.lock_timeout is not None else get_settings().lock_timeout_seconds

    def lines(self, user_id) -> list[CartItem]:
        lines = current_domain.repository_for(CartItem)._dao.query.filter(user_id=str(user_id)).all().items
        return sorted(lines, key=lambda line: (line.added_at is None, line.added_at, str(line.id)))

    def add_item(self, user_id, item_id) -> CartItem:
        with self.locks.hold((str(user_id), str(item_id)), timeout=self._timeout()):
            cart_item_id = current_domain.process(
                AddToCart(user_id=user_id, item_id=item_id),
                asynchronous=False,
            )
        logger.info("Cart item added", user_id=str(user_id), item_id=str(item_id), cart_item_id=cart_item_id)
        return current_domain.repository_for(CartItem).get(cart_item_id)

    def remove_item(self, user_id, cart_item_id) -> None:
        line = load_line(cart_item_id)
        with self.locks.hold((str(line.user_id), str(line.item_id)), timeout=self._timeout()):
            current_domain.process(
                RemoveFromCart(user_id=user_id, cart_item_id=cart_item_id),
                asynchronous=False,
            )
        logger.info("Cart item removed", user_id=str(user_id), cart_item_id=str(cart_item_id))

    def snapshot(self, user_id) -> list[CartLine]:
        """The user's cart joined with current item data, oldest line first."""
        item_repo = current_domain.repository_for(Item)
        snapshot = []
        for line in self.lines(user_id):
            try:
                item = item_repo.get(line.item_id)
            except ObjectNotFoundError:
                logger.warning("Cart line refers to a missing item", cart_item_id=str(line.id), item_id=str(line.item_id))
                continue
            snapshot.append(CartLine.join(line, item))
        return snapshot

    def clear(self, user_id, cart_item_ids, consumed: dict[str, int] | None = None) -> None:
        """Remove exactly ``cart_item_ids`` from the user's cart.

        Lines added after a snapshot are never in ``cart_item_ids`` and so
        survive; see ``consume_cart_lines`` for lines that grew.
        """
        ids = [str(cart_item_id) for cart_item_id in cart_item_ids]
        if not ids:
            return
        current_domain.process(
            ClearCartLines(
                user_id=user_id,
                cart_item_ids=json.dumps(ids),
                consumed=json.dumps(consumed) if consumed else None,
            ),
            asynchronous=False,
        )
