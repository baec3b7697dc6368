"""Configurable fake payment gateway for development and testing.

No external calls. Behaviour is set at runtime with ``configure`` (also
exposed at /payments/gateway/configure outside production): succeed, fail
with a given kind, take a while, or report a charged amount different from
the one requested. Calls with an idempotency key seen before return the
original result without charging again.
"""

import threading
import time
from uuid import uuid4

from storefront.exceptions import PaymentError, PaymentFailureKind
from storefront.payments.gateway.port import ChargeResult, PaymentGateway


class FakeGateway(PaymentGateway):
    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_kind = PaymentFailureKind.DECLINED
        self.failure_reason: str = "Your card was declined"
        self.delay_seconds: float = 0.0
        self.charged_amount: int | None = None
        self.calls: list[dict] = []
        self.charges: dict[str, ChargeResult] = {}
        self._lock = threading.Lock()

    def configure(
        self,
        should_succeed: bool = True,
        failure_kind: PaymentFailureKind | str = PaymentFailureKind.DECLINED,
        failure_reason: str = "Your card was declined",
        delay_seconds: float = 0.0,
        charged_amount: int | None = None,
    ) -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_kind = PaymentFailureKind(failure_kind)
        self.failure_reason = failure_reason
        self.delay_seconds = delay_seconds
        self.charged_amount = charged_amount

    @property
    def successful_charges(self) -> list[ChargeResult]:
        return list(self.charges.values())

    def create_charge(
        self,
        amount: int,
        currency: str,
        source_token: str,
        idempotency_key: str,
    ) -> ChargeResult:
        with self._lock:
            self.calls.append(
                {
                    "method": "create_charge",
                    "amount": amount,
                    "currency": currency,
                    "source_token": source_token,
                    "idempotency_key": idempotency_key,
                }
            )
            previous = self.charges.get(idempotency_key)
        if previous is not None:
            return previous

        if self.delay_seconds:
            time.sleep(self.delay_seconds)

        if not source_token:
            raise PaymentError(PaymentFailureKind.INVALID_SOURCE, "No payment source was provided")
        if not self.should_succeed:
            raise PaymentError(self.failure_kind, self.failure_reason)

        result = ChargeResult(
            charge_id=f"ch_fake_{uuid4().hex[:16]}",
            charged_amount=self.charged_amount if self.charged_amount is not None else amount,
            currency=currency,
        )
        with self._lock:
            # A concurrent call with the same key may have won
            return self.charges.setdefault(idempotency_key, result)

    def reset(self) -> None:
        self.__init__()
