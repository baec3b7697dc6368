from storefront.ordering.cart.ledger import CartLine
from storefront.ordering.pricing import compute_total


def _line(price, quantity, item_id="item"):
    return CartLine(
        cart_item_id=f"cart-{item_id}",
        item_id=item_id,
        quantity=quantity,
        title=item_id,
        description="",
        image=None,
        large_image=None,
        price=price,
    )


class TestComputeTotal:
    def test_sums_price_times_quantity(self):
        assert compute_total([_line(500, 2, "a"), _line(300, 1, "b")]) == 1300

    def test_empty_snapshot_costs_nothing(self):
        assert compute_total([]) == 0

    def test_free_items(self):
        assert compute_total([_line(0, 5)]) == 0

    def test_line_subtotal(self):
        assert _line(250, 4).subtotal == 1000
