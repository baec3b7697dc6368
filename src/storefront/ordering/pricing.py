"""Order pricing.

The amount charged is always derived from the cart snapshot; there is no
way to supply a total from outside.
"""

from collections.abc import Iterable

from storefront.ordering.cart.ledger import CartLine


def compute_total(snapshot: Iterable[CartLine]) -> int:
    """Sum of price × quantity, in minor currency units."""
    return sum(line.price * line.quantity for line in snapshot)
