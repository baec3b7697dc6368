"""Signup: command, handler and the locked entry point."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import String
from protean.utils.globals import current_domain

from storefront.config import get_settings
from storefront.domain import storefront
from storefront.identity.passwords import hash_password
from storefront.identity.user.email import EmailAddress
from storefront.identity.user.user import User
from storefront.utils.locks import signup_locks

# bcrypt only looks at the first 72 bytes
MAX_PASSWORD_BYTES = 72


def validate_password(password, field="password"):
    if not password:
        raise ValidationError({field: ["Password is required"]})
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError({field: [f"Password must be at most {MAX_PASSWORD_BYTES} bytes"]})


@storefront.command(part_of="User")
class SignUp:
    """Create an account holding the USER permission."""

    email = String(required=True, max_length=254)
    name = String(required=True, max_length=100)
    password = String(required=True, max_length=255)


@storefront.command_handler(part_of=User)
class SignUpHandler:
    @handle(SignUp)
    def sign_up(self, command):
        validate_password(command.password)
        email = EmailAddress.normalize(command.email).address

        repo = current_domain.repository_for(User)
        if repo.find_by_email(email) is not None:
            raise ValidationError({"email": ["An account with this email already exists"]})

        user = User.sign_up(
            name=command.name,
            email=email,
            password_hash=hash_password(command.password),
        )
        repo.add(user)
        return str(user.id)


def sign_up(name: str, email: str, password: str) -> str:
    """Register a user, serializing concurrent signups for the same email."""
    key = (email or "").strip().lower()
    with signup_locks.hold(key, timeout=get_settings().lock_timeout_seconds):
        return current_domain.process(
            SignUp(email=email, name=name, password=password),
            asynchronous=False,
        )
