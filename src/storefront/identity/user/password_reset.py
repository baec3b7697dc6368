"""Password reset: request a token by email, then trade it for a new password.

The reset email is sent after the token is committed. Delivery problems are
logged and never undo the stored token.
"""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import String
from protean.utils.globals import current_domain

from storefront.config import get_settings
from storefront.domain import storefront
from storefront.exceptions import NotFoundError
from storefront.identity.mail import get_mailer
from storefront.identity.mail.port import OutgoingEmail
from storefront.identity.mail.templates import PasswordResetTemplate
from storefront.identity.passwords import hash_password
from storefront.identity.user.registration import validate_password
from storefront.identity.user.user import User

logger = structlog.get_logger(__name__)


@storefront.command(part_of="User")
class RequestPasswordReset:
    email = String(required=True, max_length=254)


@storefront.command(part_of="User")
class ResetPassword:
    reset_token = String(required=True, max_length=64)
    password = String(required=True, max_length=255)
    confirm_password = String(required=True, max_length=255)


@storefront.command_handler(part_of=User)
class PasswordResetHandler:
    @handle(RequestPasswordReset)
    def request_reset(self, command):
        repo = current_domain.repository_for(User)
        user = repo.find_by_email(command.email)
        if user is None:
            raise NotFoundError(f"No such user found for email {command.email}")

        token = user.issue_reset_token(ttl_seconds=get_settings().reset_token_ttl_seconds)
        repo.add(user)
        return {"user_id": str(user.id), "email": user.email, "reset_token": token}

    @handle(ResetPassword)
    def reset_password(self, command):
        if command.password != command.confirm_password:
            raise ValidationError({"confirm_password": ["Your passwords don't match"]})
        validate_password(command.password)

        repo = current_domain.repository_for(User)
        user = repo.find_by_reset_token(command.reset_token)
        if user is None:
            raise ValidationError({"reset_token": ["This token is either invalid or expired"]})

        user.reset_password(command.reset_token, hash_password(command.password))
        repo.add(user)
        logger.info("Password reset", user_id=str(user.id))
        return str(user.id)


def send_reset_email(email: str, reset_token: str, mailer=None) -> bool:
    """Send the reset link. Returns False when delivery failed."""
    mailer = mailer or get_mailer()
    message = PasswordResetTemplate.render(
        {"frontend_url": get_settings().frontend_url, "reset_token": reset_token}
    )
    try:
        receipt = mailer.send(
            OutgoingEmail(
                sender=get_settings().mail_from,
                to=email,
                subject=message["subject"],
                body=message["body"],
                html_body=message["html_body"],
            )
        )
    except Exception:
        logger.exception("Password reset email could not be sent", email=email)
        return False

    if not receipt.delivered:
        logger.warning("Password reset email was not delivered", email=email, error=receipt.error)
        return False
    return True


def request_password_reset(email: str, mailer=None) -> dict:
    """Store a fresh reset token for ``email`` and mail the reset link."""
    issued = current_domain.process(RequestPasswordReset(email=email), asynchronous=False)
    delivered = send_reset_email(issued["email"], issued["reset_token"], mailer=mailer)
    logger.info("Password reset requested", user_id=issued["user_id"], delivered=delivered)
    return {"user_id": issued["user_id"], "delivered": delivered}
