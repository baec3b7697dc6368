"""Per-request collaborators handed to checkout and query functions."""

from dataclasses import dataclass, field

from protean.domain import Domain

from storefront.domain import storefront
from storefront.identity.mail import get_mailer
from storefront.identity.mail.port import MailerPort
from storefront.identity.session import IdentityContext
from storefront.payments.gateway import get_gateway
from storefront.payments.gateway.port import PaymentGateway


@dataclass
class RequestContext:
    identity: IdentityContext
    domain: Domain = storefront
    gateway: PaymentGateway = field(default_factory=get_gateway)
    mailer: MailerPort = field(default_factory=get_mailer)

    @classmethod
    def from_token(cls, token: str | None, **overrides) -> "RequestContext":
        return cls(identity=IdentityContext(token), **overrides)
