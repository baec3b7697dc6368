from storefront.identity.mail.fake_adapter import FakeMailer
from storefront.utils.adapters import AdapterSlot

# Nothing delivers real mail yet; deployments install an adapter with set_mailer()
_slot = AdapterSlot(FakeMailer)

get_mailer = _slot.get
set_mailer = _slot.override
reset_mailer = _slot.clear
