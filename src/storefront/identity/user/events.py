"""Domain events for the User aggregate."""

from protean.fields import DateTime, Identifier, String, Text

from storefront.domain import storefront


@storefront.event(part_of="User")
class UserSignedUp:
    """A new account was created."""

    __version__ = "v1"

    user_id = Identifier(required=True)
    email = String(required=True, max_length=254)
    name = String(required=True, max_length=100)
    signed_up_at = DateTime(required=True)


@storefront.event(part_of="User")
class UserPermissionsUpdated:
    __version__ = "v1"

    user_id = Identifier(required=True)
    previous_permissions = Text(required=True)  # JSON array
    new_permissions = Text(required=True)  # JSON array
    updated_by = Identifier()


@storefront.event(part_of="User")
class PasswordResetRequested:
    __version__ = "v1"

    user_id = Identifier(required=True)
    expires_at = DateTime(required=True)


@storefront.event(part_of="User")
class PasswordResetCompleted:
    __version__ = "v1"

    user_id = Identifier(required=True)
    reset_at = DateTime(required=True)
