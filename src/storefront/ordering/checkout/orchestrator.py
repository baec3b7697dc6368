"""Checkout: turn a user's cart into a paid order.

A checkout walks START → AUTHENTICATED → CART_LOADED → PRICED → CHARGED →
ORDER_PERSISTED → CART_CLEARED, or stops in FAILED. The guarantees:

* nothing is charged unless the caller is a signed-in user holding USER;
* the amount charged is computed here from the cart, never supplied;
* a refused or unreachable payment leaves no order and an untouched cart;
* the order and the clearing of exactly the lines it bought are one write;
* money taken without an order always leaves a reconciliation record;
* one idempotency key produces at most one order and one charge.

Checkouts for the same user are serialized. The whole flow is synchronous,
so nothing between the charge and the order write can be interrupted by the
caller going away.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from uuid import uuid4

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from tenacity import Retrying, retry_if_exception, stop_after_attempt

from storefront.config import get_settings
from storefront.exceptions import PaymentError, PersistenceError, ReconciliationRequired, StorefrontError
from storefront.identity.access import POLICIES, require_permission
from storefront.ordering.cart.ledger import CartLedger, CartLine
from storefront.ordering.checkout.attempt import AttemptStatus, CheckoutAttempt
from storefront.ordering.order.order import Order
from storefront.ordering.order.placement import PlaceOrder
from storefront.ordering.pricing import compute_total
from storefront.payments.adapter import PaymentGatewayAdapter
from storefront.payments.gateway.port import ChargeResult
from storefront.payments.reconciliation.resolution import RecordReconciliation
from storefront.utils.locks import LockFamily, checkout_locks
from storefront.utils.logging import get_audit_logger

logger = structlog.get_logger(__name__)
audit_logger = get_audit_logger()


class CheckoutState(Enum):
    START = "START"
    AUTHENTICATED = "AUTHENTICATED"
    CART_LOADED = "CART_LOADED"
    PRICED = "PRICED"
    CHARGED = "CHARGED"
    ORDER_PERSISTED = "ORDER_PERSISTED"
    CART_CLEARED = "CART_CLEARED"
    FAILED = "FAILED"


_VALID_TRANSITIONS = {
    CheckoutState.START: {CheckoutState.AUTHENTICATED, CheckoutState.FAILED},
    CheckoutState.AUTHENTICATED: {CheckoutState.CART_LOADED, CheckoutState.FAILED},
    CheckoutState.CART_LOADED: {CheckoutState.PRICED, CheckoutState.FAILED},
    CheckoutState.PRICED: {CheckoutState.CHARGED, CheckoutState.FAILED},
    CheckoutState.CHARGED: {CheckoutState.ORDER_PERSISTED, CheckoutState.FAILED},
    CheckoutState.ORDER_PERSISTED: {CheckoutState.CART_CLEARED},
    CheckoutState.CART_CLEARED: set(),
    CheckoutState.FAILED: set(),
}


def _timed_out(exc: BaseException) -> bool:
    return isinstance(exc, PaymentError) and exc.timed_out


@dataclass
class CheckoutOutcome:
    state: CheckoutState = CheckoutState.START
    history: list[CheckoutState] = field(default_factory=lambda: [CheckoutState.START])
    idempotency_key: str | None = None
    order: Order | None = None
    charge: ChargeResult | None = None
    error: Exception | None = None
    replayed: bool = False

    @property
    def succeeded(self) -> bool:
        return self.state == CheckoutState.CART_CLEARED

    @property
    def order_id(self) -> str | None:
        return str(self.order.id) if self.order is not None else None

    def advance(self, target: CheckoutState) -> None:
        if target not in _VALID_TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal checkout transition {self.state.value} -> {target.value}")
        self.state = target
        self.history.append(target)


class CheckoutOrchestrator:
    def __init__(
        self,
        ledger: CartLedger | None = None,
        locks: LockFamily = checkout_locks,
        lock_timeout: float | None = None,
        payment_retries: int = 1,
    ) -> None:
        self.ledger = ledger or CartLedger()
        self.locks = locks
        self.lock_timeout = lock_timeout
        self.payment_retries = payment_retries

    # -------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------
    def run(self, context, source_token, idempotency_key=None) -> CheckoutOutcome:
        """Run a checkout and report how far it got.

        Expected failures end in ``FAILED`` with ``outcome.error`` set rather
        than raising.
        """
        key = idempotency_key or uuid4().hex
        outcome = CheckoutOutcome(idempotency_key=key)
        log = logger.bind(idempotency_key=key)

        try:
            identity = context.identity.require_user()
            require_permission(identity, POLICIES["order.create"].permissions)
            outcome.advance(CheckoutState.AUTHENTICATED)
            log = log.bind(user_id=identity.user_id)

            timeout = self.lock_timeout if self.lock_timeout is not None else get_settings().lock_timeout_seconds
            with self.locks.hold(identity.user_id, timeout=timeout):
                self._run_locked(context, identity, source_token, key, outcome, log)
        except (StorefrontError, ValidationError) as exc:
            outcome.error = exc
            outcome.advance(CheckoutState.FAILED)
            log.info("Checkout failed", error=type(exc).__name__, state_history=[s.value for s in outcome.history])

        return outcome

    def checkout(self, context, source_token, idempotency_key=None) -> CheckoutOutcome:
        """Like ``run``, but raises the failure instead of returning it."""
        outcome = self.run(context, source_token, idempotency_key=idempotency_key)
        if outcome.error is not None:
            raise outcome.error
        return outcome

    # -------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------
    def _run_locked(self, context, identity, source_token, key, outcome, log):
        domain = context.domain
        attempts = domain.repository_for(CheckoutAttempt)

        attempt = self._find_attempt(attempts, key)
        if attempt is not None:
            if not attempt.belongs_to(identity.user_id):
                raise ValidationError({"idempotency_key": ["This idempotency key was used by another checkout"]})
            if self._replay(domain, attempts, attempt, outcome, log):
                return

        snapshot = self.ledger.snapshot(identity.user_id)
        outcome.advance(CheckoutState.CART_LOADED)
        if not snapshot:
            raise ValidationError({"cart": ["Your cart is empty"]})

        total = compute_total(snapshot)
        outcome.advance(CheckoutState.PRICED)
        currency = get_settings().payment_currency

        if attempt is None:
            attempt = CheckoutAttempt.begin(key, identity.user_id, amount=total, currency=currency)
        elif AttemptStatus(attempt.status) == AttemptStatus.FAILED:
            attempt.restart(amount=total, currency=currency)
        else:
            attempt.resume(amount=total, currency=currency)
        attempts.add(attempt)

        adapter = PaymentGatewayAdapter(gateway=context.gateway)
        try:
            charge = self._charge(adapter, attempt, total, currency, source_token)
        except PaymentError as exc:
            attempt.mark_failed(exc.kind.value, exc.message)
            attempts.add(attempt)
            raise

        outcome.charge = charge
        outcome.advance(CheckoutState.CHARGED)
        log = log.bind(charge_id=charge.charge_id, charged_amount=charge.charged_amount)
        if charge.charged_amount != total:
            log.warning("Processor charged a different amount than requested", requested=total)

        try:
            attempt.mark_charged(charge.charge_id, charge.charged_amount)
            attempts.add(attempt)
            order_id = domain.process(
                PlaceOrder(
                    user_id=identity.user_id,
                    lines=json.dumps([self._line_payload(line) for line in snapshot]),
                    total=charge.charged_amount,
                    currency=charge.currency or currency,
                    charge_id=charge.charge_id,
                    idempotency_key=key,
                ),
                asynchronous=False,
            )
            order = domain.repository_for(Order).get(order_id)
        except Exception as exc:
            self._reconcile(domain, attempts, attempt, identity, key, charge, snapshot, exc, log)

        outcome.order = order
        outcome.advance(CheckoutState.ORDER_PERSISTED)
        # The same unit of work consumed the cart lines
        outcome.advance(CheckoutState.CART_CLEARED)

        self._complete(attempts, attempt, order_id, log)
        log.info("Checkout completed", order_id=order_id, total=charge.charged_amount, lines=len(snapshot))

    def _find_attempt(self, attempts, key) -> CheckoutAttempt | None:
        try:
            return attempts.get(key)
        except ObjectNotFoundError:
            return None

    def _replay(self, domain, attempts, attempt, outcome, log) -> bool:
        """Handle a key that was seen before. Returns True when nothing is left to do."""
        status = AttemptStatus(attempt.status)

        if status == AttemptStatus.CHARGED:
            # The order may have been written before the attempt could be updated
            order = self._order_for_key(domain, attempt.idempotency_key)
            if order is not None:
                self._complete(attempts, attempt, str(order.id), log)
                status = AttemptStatus.COMPLETED

        if status == AttemptStatus.COMPLETED:
            outcome.order = domain.repository_for(Order).get(attempt.order_id)
            outcome.state = CheckoutState.CART_CLEARED
            outcome.replayed = True
            log.info("Checkout replayed", order_id=str(attempt.order_id))
            return True

        if status in (AttemptStatus.CHARGED, AttemptStatus.RECONCILIATION_REQUIRED):
            log.warning("Checkout blocked pending reconciliation", charge_id=attempt.charge_id)
            raise ReconciliationRequired(charge_id=attempt.charge_id, record_id=attempt.reconciliation_id)

        return False

    def _order_for_key(self, domain, key) -> Order | None:
        orders = domain.repository_for(Order)._dao.query.filter(idempotency_key=key).all().items
        return orders[0] if orders else None

    def _charge(self, adapter, attempt, amount, currency, source_token) -> ChargeResult:
        # Only a timed-out call is retried, and always under a new payment key
        for call in Retrying(
            stop=stop_after_attempt(1 + self.payment_retries),
            retry=retry_if_exception(_timed_out),
            reraise=True,
        ):
            with call:
                return adapter.charge(
                    amount=amount,
                    currency=currency,
                    source_token=source_token,
                    idempotency_key=attempt.payment_key(call.retry_state.attempt_number),
                )

    def _line_payload(self, line: CartLine) -> dict:
        return {
            "cart_item_id": line.cart_item_id,
            "item_id": line.item_id,
            "title": line.title,
            "description": line.description,
            "image": line.image,
            "large_image": line.large_image,
            "price": line.price,
            "quantity": line.quantity,
        }

    def _complete(self, attempts, attempt, order_id, log):
        try:
            attempt.mark_completed(order_id)
            attempts.add(attempt)
        except Exception:
            # The order exists; the next replay of this key repairs the attempt
            log.exception("Could not mark checkout attempt completed", order_id=order_id)

    def _reconcile(self, domain, attempts, attempt, identity, key, charge, snapshot, exc, log):
        failure = PersistenceError(cause=exc)
        reason = f"{type(exc).__name__}: {exc}"
        audit_logger.error(
            "Charge succeeded but order was not recorded",
            charge_id=charge.charge_id,
            charged_amount=charge.charged_amount,
            user_id=identity.user_id,
            idempotency_key=key,
            error=reason,
        )

        record_id = None
        try:
            record_id = domain.process(
                RecordReconciliation(
                    charge_id=charge.charge_id,
                    charged_amount=charge.charged_amount,
                    currency=charge.currency,
                    user_id=identity.user_id,
                    idempotency_key=key,
                    reason=reason,
                    lines=json.dumps([self._line_payload(line) for line in snapshot]),
                ),
                asynchronous=False,
            )
        except Exception:
            audit_logger.critical(
                "Reconciliation record could not be written",
                charge_id=charge.charge_id,
                idempotency_key=key,
                exc_info=True,
            )

        try:
            attempt.mark_reconciliation_required(reconciliation_id=record_id, reason=reason)
            attempts.add(attempt)
        except Exception:
            log.exception("Could not flag checkout attempt for reconciliation")

        raise ReconciliationRequired(charge_id=charge.charge_id, record_id=record_id) from failure
