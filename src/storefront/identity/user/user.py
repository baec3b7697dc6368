"""User aggregate: accounts, credentials and permissions.

Users are created by signup with the ``USER`` permission only. Permissions
change solely through ``update_permissions`` and accounts are never deleted.
A password reset token is 20 random bytes in hex, valid for one hour and
usable once.
"""

import json
import secrets
from datetime import UTC, datetime, timedelta

from protean.exceptions import ValidationError
from protean.fields import DateTime, String, Text

from storefront.domain import storefront
from storefront.identity.access import DEFAULT_PERMISSIONS, Identity, Permission, parse_permissions
from storefront.identity.user.email import EmailAddress
from storefront.identity.user.events import (
    PasswordResetCompleted,
    PasswordResetRequested,
    UserPermissionsUpdated,
    UserSignedUp,
)

RESET_TOKEN_BYTES = 20


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def _dump_permissions(permissions) -> str:
    return json.dumps(sorted(p.value for p in permissions))


@storefront.aggregate
class User:
    name = String(required=True, max_length=100)
    email = String(required=True, max_length=254)
    password = String(required=True, max_length=255)  # bcrypt hash
    permissions = Text()  # JSON array of permission names
    reset_token = String(max_length=64)
    reset_token_expiry = DateTime()
    created_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def sign_up(cls, name, email, password_hash):
        address = EmailAddress.normalize(email)
        now = datetime.now(UTC)
        user = cls(
            name=name,
            email=address.address,
            password=password_hash,
            permissions=_dump_permissions(DEFAULT_PERMISSIONS),
            created_at=now,
        )
        user.raise_(
            UserSignedUp(
                user_id=str(user.id),
                email=user.email,
                name=user.name,
                signed_up_at=now,
            )
        )
        return user

    # -------------------------------------------------------------------
    # Permissions
    # -------------------------------------------------------------------
    @property
    def permission_set(self) -> frozenset[Permission]:
        return parse_permissions(json.loads(self.permissions or "[]"))

    def to_identity(self) -> Identity:
        return Identity(
            user_id=str(self.id),
            email=self.email,
            name=self.name,
            permissions=self.permission_set,
        )

    def update_permissions(self, permissions, updated_by=None):
        try:
            new_permissions = parse_permissions(permissions)
        except ValueError as exc:
            raise ValidationError({"permissions": [str(exc)]}) from None

        previous = self.permissions or "[]"
        self.permissions = _dump_permissions(new_permissions)
        self.raise_(
            UserPermissionsUpdated(
                user_id=str(self.id),
                previous_permissions=previous,
                new_permissions=self.permissions,
                updated_by=updated_by,
            )
        )

    # -------------------------------------------------------------------
    # Password reset
    # -------------------------------------------------------------------
    def issue_reset_token(self, ttl_seconds=3600, now=None):
        """Generate and store a fresh reset token, replacing any previous one."""
        now = now or datetime.now(UTC)
        self.reset_token = secrets.token_hex(RESET_TOKEN_BYTES)
        self.reset_token_expiry = now + timedelta(seconds=ttl_seconds)
        self.raise_(PasswordResetRequested(user_id=str(self.id), expires_at=self.reset_token_expiry))
        return self.reset_token

    def reset_token_is_valid(self, token, now=None) -> bool:
        if not token or not self.reset_token or not self.reset_token_expiry:
            return False
        if not secrets.compare_digest(str(token), self.reset_token):
            return False
        now = now or datetime.now(UTC)
        return _as_utc(now) < _as_utc(self.reset_token_expiry)

    def reset_password(self, token, password_hash, now=None):
        """Replace the password hash and consume the reset token.

        Leaves the user untouched when the token is wrong or expired.
        """
        now = now or datetime.now(UTC)
        if not self.reset_token_is_valid(token, now=now):
            raise ValidationError({"reset_token": ["This token is either invalid or expired"]})

        self.password = password_hash
        self.reset_token = None
        self.reset_token_expiry = None
        self.raise_(PasswordResetCompleted(user_id=str(self.id), reset_at=now))
