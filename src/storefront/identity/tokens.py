"""Signed session tokens (HS256 JWT carrying the user id)."""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from storefront.config import get_settings
from storefront.exceptions import AuthError

ALGORITHM = "HS256"


def issue_token(user_id: str, now: datetime | None = None) -> str:
    settings = get_settings()
    issued_at = now or datetime.now(UTC)
    claims = {
        "userId": str(user_id),
        "iat": int(issued_at.timestamp()),
        "exp": int((issued_at + timedelta(seconds=settings.token_max_age_seconds)).timestamp()),
    }
    return jwt.encode(claims, settings.app_secret, algorithm=ALGORITHM)


def read_token(token: str) -> str:
    """Return the user id carried by ``token``.

    Raises ``AuthError`` when the token is malformed, tampered with or expired.
    """
    try:
        claims = jwt.decode(token, get_settings().app_secret, algorithms=[ALGORITHM])
    except JWTError as exc:
        raise AuthError("Your session is invalid or has expired. Please sign in again") from exc

    user_id = claims.get("userId")
    if not user_id:
        raise AuthError("Your session is invalid or has expired. Please sign in again")
    return str(user_id)
