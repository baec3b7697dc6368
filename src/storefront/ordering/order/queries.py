"""Order reads."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.exceptions import AuthError, ForbiddenError, NotFoundError
from storefront.identity.access import POLICIES, Identity, authorize
from storefront.ordering.order.order import Order


def get_order(identity: Identity | None, order_id) -> Order:
    """Fetch an order its owner or an administrator may see.

    Callers who could not see the order get ``ForbiddenError`` whether or not
    it exists; only administrators learn that an id is unknown.
    """
    if identity is None:
        raise AuthError()

    try:
        order = current_domain.repository_for(Order).get(order_id)
    except ObjectNotFoundError:
        if identity.has_any(POLICIES["order.view"].permissions):
            raise NotFoundError(f"No order found for id {order_id}") from None
        raise ForbiddenError() from None

    authorize("order.view", identity, owner_id=order.user_id)
    return order


def list_orders(identity: Identity | None) -> list[Order]:
    """The caller's own orders, newest first."""
    if identity is None:
        raise AuthError()
    orders = current_domain.repository_for(Order)._dao.query.filter(user_id=identity.user_id).all().items
    return sorted(orders, key=lambda order: order.created_at, reverse=True)
