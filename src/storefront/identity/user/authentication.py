"""Credential checks for sign-in."""

import structlog
from protean.utils.globals import current_domain

from storefront.exceptions import AuthError
from storefront.identity.passwords import verify_password
from storefront.identity.user.user import User

logger = structlog.get_logger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


def authenticate(email: str, password: str) -> User:
    """Return the user owning these credentials or raise ``AuthError``.

    Unknown emails and wrong passwords produce the same message.
    """
    user = current_domain.repository_for(User).find_by_email(email)
    if user is None or not verify_password(password or "", user.password):
        logger.info("Sign-in rejected", email=(email or "").strip().lower())
        raise AuthError(INVALID_CREDENTIALS)

    logger.info("User signed in", user_id=str(user.id))
    return user
