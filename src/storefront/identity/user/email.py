"""EmailAddress value object."""

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import String

from storefront.domain import storefront

_FORBIDDEN = (" ", "\t", "\n", ";", ",", "(", ")", '"', ":", "<", ">", "[", "]", "\\")


@storefront.value_object
class EmailAddress:
    """A structurally valid, lower-cased email address."""

    address = String(required=True, max_length=254)

    @classmethod
    def normalize(cls, address: str) -> "EmailAddress":
        return cls(address=(address or "").strip().lower())

    @invariant.post
    def address_must_be_well_formed(self):
        email = self.address
        if any(ch in email for ch in _FORBIDDEN) or email.count("@") != 1:
            raise ValidationError({"email": [f"Invalid email address: {email!r}"]})

        local_part, domain_part = email.split("@", 1)
        labels = domain_part.split(".")
        if (
            not local_part
            or local_part.startswith(".")
            or local_part.endswith(".")
            or ".." in local_part
            or len(labels) < 2
            or any(not label or label.startswith("-") or label.endswith("-") for label in labels)
        ):
            raise ValidationError({"email": [f"Invalid email address: {email!r}"]})
