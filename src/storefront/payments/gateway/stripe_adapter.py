"""Stripe payment gateway adapter.

Charges a one-time card token through the Charges API. Stripe's own
idempotency keys make a repeated request return the original charge.
"""

import stripe
import structlog

from storefront.exceptions import PaymentError, PaymentFailureKind
from storefront.payments.gateway.port import ChargeResult, PaymentGateway

logger = structlog.get_logger(__name__)

_INVALID_SOURCE_CODES = {"missing", "invalid_number", "invalid_expiry_month", "invalid_expiry_year", "invalid_cvc"}


class StripeGateway(PaymentGateway):
    def __init__(self, api_key: str) -> None:
        if not api_key:
            raise ValueError("StripeGateway needs an API key")
        self.api_key = api_key

    def create_charge(
        self,
        amount: int,
        currency: str,
        source_token: str,
        idempotency_key: str,
    ) -> ChargeResult:
        try:
            charge = stripe.Charge.create(
                amount=amount,
                currency=currency.lower(),
                source=source_token,
                idempotency_key=idempotency_key,
                api_key=self.api_key,
            )
        except stripe.CardError as exc:
            kind = PaymentFailureKind.INVALID_SOURCE if exc.code in _INVALID_SOURCE_CODES else PaymentFailureKind.DECLINED
            raise PaymentError(kind, exc.user_message or "Your card was declined") from exc
        except stripe.InvalidRequestError as exc:
            raise PaymentError(PaymentFailureKind.INVALID_SOURCE, "The payment source is not valid") from exc
        except (stripe.APIConnectionError, stripe.RateLimitError, stripe.APIError) as exc:
            logger.warning("Stripe unreachable", error=str(exc), idempotency_key=idempotency_key)
            raise PaymentError(PaymentFailureKind.NETWORK, "The payment processor could not be reached") from exc
        except stripe.StripeError as exc:
            logger.error("Stripe rejected the request", error=str(exc), idempotency_key=idempotency_key)
            raise PaymentError(PaymentFailureKind.NETWORK, "The payment processor could not be reached") from exc

        return ChargeResult(
            charge_id=charge.id,
            charged_amount=charge.amount,
            currency=charge.currency.upper(),
            status=charge.status,
        )
