"""Bounded, classified calls to the payment gateway.

The adapter makes exactly one gateway call per ``charge`` and waits at most
``PAYMENT_TIMEOUT_SECONDS`` for it. Whatever goes wrong comes back as a
``PaymentError``. Retrying is the caller's decision.
"""

from concurrent.futures import ThreadPoolExecutor

import structlog

from storefront.config import get_settings
from storefront.exceptions import PaymentError, PaymentFailureKind
from storefront.payments.gateway import get_gateway
from storefront.payments.gateway.port import ChargeResult, PaymentGateway

logger = structlog.get_logger(__name__)

_executor = ThreadPoolExecutor(max_workers=8, thread_name_prefix="payment-gateway")


class PaymentGatewayAdapter:
    def __init__(
        self,
        gateway: PaymentGateway | None = None,
        timeout_seconds: float | None = None,
        executor: ThreadPoolExecutor | None = None,
    ) -> None:
        self.gateway = gateway or get_gateway()
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else get_settings().payment_timeout_seconds
        self.executor = executor or _executor

    def charge(self, amount: int, currency: str, source_token: str, idempotency_key: str) -> ChargeResult:
        log = logger.bind(amount=amount, currency=currency, idempotency_key=idempotency_key)
        if not source_token:
            raise PaymentError(PaymentFailureKind.INVALID_SOURCE, "No payment source was provided")

        future = self.executor.submit(
            self.gateway.create_charge,
            amount=amount,
            currency=currency,
            source_token=source_token,
            idempotency_key=idempotency_key,
        )
        try:
            result = future.result(timeout=self.timeout_seconds)
        except TimeoutError:
            future.cancel()
            log.warning("Payment gateway timed out", timeout=self.timeout_seconds)
            raise PaymentError(
                PaymentFailureKind.NETWORK,
                "The payment processor did not respond in time",
                timed_out=True,
            ) from None
        except PaymentError as exc:
            log.info("Payment refused", kind=exc.kind.value, reason=exc.message)
            raise
        except Exception as exc:
            log.exception("Payment gateway failed unexpectedly")
            raise PaymentError(PaymentFailureKind.NETWORK, "The payment processor could not be reached") from exc

        if not result.charge_id or not isinstance(result.charged_amount, int) or result.charged_amount < 0:
            log.error("Payment gateway returned an unusable charge", charge_id=result.charge_id)
            raise PaymentError(PaymentFailureKind.NETWORK, "The payment processor returned an invalid response")

        log.info("Charge succeeded", charge_id=result.charge_id, charged_amount=result.charged_amount)
        return result
