import json

import pytest
from protean import current_domain
from protean.exceptions import ValidationError
from storefront.ordering.cart.cart_item import CartItem
from storefront.ordering.order.order import Order
from storefront.ordering.order.placement import PlaceOrder


def _place(user, lines, total=1000):
    return current_domain.process(
        PlaceOrder(
            user_id=str(user.id),
            lines=json.dumps(lines),
            total=total,
            currency="USD",
            charge_id="ch_test",
            idempotency_key="key-1",
        ),
        asynchronous=False,
    )


def _payload(line, item):
    return {
        "cart_item_id": str(line.id),
        "item_id": str(item.id),
        "title": item.title,
        "description": item.description,
        "image": item.image,
        "large_image": item.large_image,
        "price": item.price,
        "quantity": line.quantity,
    }


class TestPlaceOrder:
    def test_order_and_cart_clearing_commit_together(self, ledger, shopper, socks):
        line = ledger.add_item(shopper.id, socks.id)

        order_id = _place(shopper, [_payload(line, socks)], total=500)

        assert current_domain.repository_for(Order).get(order_id).total == 500
        assert ledger.lines(shopper.id) == []

    def test_invalid_order_leaves_the_cart(self, ledger, shopper, socks):
        line = ledger.add_item(shopper.id, socks.id)
        payload = _payload(line, socks)
        payload["quantity"] = 0

        with pytest.raises(ValidationError):
            _place(shopper, [payload])

        assert len(ledger.lines(shopper.id)) == 1
        assert current_domain.repository_for(Order)._dao.query.all().items == []

    def test_another_users_lines_are_not_consumed(self, ledger, shopper, make_user, socks):
        other = make_user()
        theirs = ledger.add_item(other.id, socks.id)

        _place(shopper, [_payload(theirs, socks)], total=500)

        assert current_domain.repository_for(CartItem).get(theirs.id).quantity == 1

    def test_second_placement_for_a_key_returns_the_first_order(self, ledger, shopper, socks):
        first_line = ledger.add_item(shopper.id, socks.id)
        first_id = _place(shopper, [_payload(first_line, socks)], total=500)

        later_line = ledger.add_item(shopper.id, socks.id)
        second_id = _place(shopper, [_payload(later_line, socks)], total=500)

        assert second_id == first_id
        assert len(current_domain.repository_for(Order)._dao.query.all().items) == 1
        assert [line.id for line in ledger.lines(shopper.id)] == [later_line.id]
