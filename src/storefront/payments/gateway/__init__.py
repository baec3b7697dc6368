"""The active payment gateway, chosen by ``PAYMENT_GATEWAY`` (``fake`` or ``stripe``)."""

from storefront.config import get_settings
from storefront.payments.gateway.fake_adapter import FakeGateway
from storefront.payments.gateway.port import PaymentGateway
from storefront.utils.adapters import AdapterSlot


def _configured_gateway() -> PaymentGateway:
    settings = get_settings()
    if settings.payment_gateway == "stripe":
        from storefront.payments.gateway.stripe_adapter import StripeGateway

        return StripeGateway(api_key=settings.stripe_api_key)
    if settings.payment_gateway == "fake":
        return FakeGateway()
    raise ValueError(f"Unknown payment gateway: {settings.payment_gateway}")


_slot = AdapterSlot(_configured_gateway)

get_gateway = _slot.get
set_gateway = _slot.override
reset_gateway = _slot.clear
