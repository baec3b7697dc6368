"""Request-scoped dependencies shared by every router."""

from collections.abc import Callable
from typing import Any

from fastapi import Cookie, Response
from starlette.concurrency import run_in_threadpool

from storefront.config import get_settings
from storefront.context import RequestContext
from storefront.domain import storefront
from storefront.identity.access import Identity
from storefront.identity.tokens import issue_token

SESSION_COOKIE = "token"


async def request_context(token: str | None = Cookie(default=None)) -> RequestContext:
    return RequestContext.from_token(token)


async def run_blocking(func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Run ``func`` on the threadpool inside the storefront domain context.

    Lock waits, payment calls and password hashing must not hold the event loop.
    """

    def call():
        with storefront.domain_context():
            return func(*args, **kwargs)

    return await run_in_threadpool(call)


def current_identity(context: RequestContext) -> Identity:
    """The signed-in caller; raises AuthError for anonymous requests."""
    return context.identity.require_user()


def set_session_cookie(response: Response, user_id: str) -> None:
    settings = get_settings()
    response.set_cookie(
        key=SESSION_COOKIE,
        value=issue_token(user_id),
        max_age=settings.token_max_age_seconds,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(key=SESSION_COOKIE, httponly=True)
