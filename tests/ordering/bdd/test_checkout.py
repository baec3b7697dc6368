"""BDD tests for checkout."""

from protean import current_domain
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, scenarios, then, when
from storefront.exceptions import StorefrontError
from storefront.ordering.order.order import Order
from storefront.payments.reconciliation.resolution import find_by_charge

scenarios("features/checkout.feature")


def _orders():
    return current_domain.repository_for(Order)._dao.query.all().items


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a catalogue with "{first}" at {first_price:d} and "{second}" at {second_price:d}'))
def stocked_catalogue(catalogue, make_user, make_item, first, first_price, second, second_price):
    seller = make_user(email="seller@example.com")
    catalogue[first] = make_item(seller, title=first, price=first_price)
    catalogue[second] = make_item(seller, title=second, price=second_price)


@given("a signed-in shopper", target_fixture="shopper")
def signed_in_shopper(make_user):
    return make_user(email="shopper@example.com")


@given(parsers.cfparse('the shopper has {quantity:d} "{title}" in the cart'))
def shopper_has_items(ledger, shopper, catalogue, quantity, title):
    for _ in range(quantity):
        ledger.add_item(shopper.id, catalogue[title].id)


@given("the processor declines cards")
def processor_declines(gateway):
    gateway.configure(should_succeed=False)


@given("orders cannot be saved")
def orders_cannot_be_saved(monkeypatch):
    def _fail(*args, **kwargs):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(Order, "place", classmethod(_fail))


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('the shopper checks out with key "{key}"'))
def checks_out(orchestrator, context_for, shopper, outcomes, key):
    outcomes.append(orchestrator.run(context_for(shopper), "tok_visa", idempotency_key=key))


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then("the checkout succeeds")
def checkout_succeeds(outcomes):
    assert outcomes[-1].succeeded, outcomes[-1].error


@then("the checkout was replayed")
def checkout_replayed(outcomes):
    assert outcomes[-1].replayed
    assert outcomes[-1].order_id == outcomes[0].order_id


@then(parsers.cfparse('the checkout fails with "{code}"'))
def checkout_fails(outcomes, code):
    error = outcomes[-1].error
    assert not outcomes[-1].succeeded
    if isinstance(error, StorefrontError):
        assert error.code == code
    else:
        assert isinstance(error, ValidationError)
        assert code == "ValidationError"


@then(parsers.cfparse("the processor was charged {amount:d} once"))
def charged_once(gateway, amount):
    assert [charge.charged_amount for charge in gateway.successful_charges] == [amount]


@then("the processor was never called")
def never_called(gateway):
    assert gateway.calls == []


@then(parsers.cfparse("the order has {count:d} lines totalling {total:d}"))
def order_lines(outcomes, count, total):
    order = current_domain.repository_for(Order).get(outcomes[-1].order_id)
    assert len(order.lines) == count
    assert order.total == total


@then("the cart is empty")
def cart_is_empty(ledger, shopper):
    assert ledger.lines(shopper.id) == []


@then(parsers.cfparse("the cart still holds {count:d} line"))
def cart_holds(ledger, shopper, count):
    assert len(ledger.lines(shopper.id)) == count


@then("no order exists")
def no_order():
    assert _orders() == []


@then(parsers.cfparse("exactly {count:d} order exists"))
def order_count(count):
    assert len(_orders()) == count


@then("a reconciliation record holds the charge")
def reconciliation_recorded(gateway, outcomes):
    charge = gateway.successful_charges[0]
    record = find_by_charge(charge.charge_id)
    assert record is not None
    assert outcomes[-1].error.charge_id == charge.charge_id
