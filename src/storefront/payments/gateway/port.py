from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class ChargeResult:
    charge_id: str
    # Minor units, as reported back by the processor
    charged_amount: int
    currency: str = "USD"
    status: str = "succeeded"


class PaymentGateway(ABC):
    """A card processor that can take a one-off charge.

    Refusals are raised as ``PaymentError`` with kind declined, network or
    invalid_source. Implementations pass ``idempotency_key`` through to the
    processor so that resending a request never charges twice.
    """

    @abstractmethod
    def create_charge(self, amount: int, currency: str, source_token: str, idempotency_key: str) -> ChargeResult:
        raise NotImplementedError
