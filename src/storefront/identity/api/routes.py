"""FastAPI endpoints for accounts, sessions and permissions."""

import json

from fastapi import APIRouter, Depends, Response
from protean.utils.globals import current_domain

from storefront.api.dependencies import (
    clear_session_cookie,
    current_identity,
    request_context,
    run_blocking,
    set_session_cookie,
)
from storefront.context import RequestContext
from storefront.exceptions import AuthError
from storefront.identity.api.schemas import (
    MessageResponse,
    RequestResetRequest,
    ResetPasswordRequest,
    SignInRequest,
    SignUpRequest,
    UpdatePermissionsRequest,
    UserResponse,
)
from storefront.identity.user.authentication import authenticate
from storefront.identity.user.password_reset import ResetPassword, request_password_reset
from storefront.identity.user.permissions import UpdatePermissions, list_users
from storefront.identity.user.registration import sign_up
from storefront.identity.user.user import User


def user_response(user: User) -> UserResponse:
    return UserResponse(
        id=str(user.id),
        email=user.email,
        name=user.name,
        permissions=sorted(p.value for p in user.permission_set),
    )


# ---------------------------------------------------------------------------
# Auth Router
# ---------------------------------------------------------------------------
auth_router = APIRouter(prefix="/auth", tags=["auth"])


@auth_router.post("/signup", status_code=201, response_model=UserResponse)
async def signup(body: SignUpRequest, response: Response) -> UserResponse:
    user_id = await run_blocking(sign_up, name=body.name, email=body.email, password=body.password)
    set_session_cookie(response, user_id)
    return user_response(current_domain.repository_for(User).get(user_id))


@auth_router.post("/signin", response_model=UserResponse)
async def signin(body: SignInRequest, response: Response) -> UserResponse:
    user = await run_blocking(authenticate, body.email, body.password)
    set_session_cookie(response, str(user.id))
    return user_response(user)


@auth_router.post("/signout", response_model=MessageResponse)
async def signout(response: Response) -> MessageResponse:
    clear_session_cookie(response)
    return MessageResponse(message="Goodbye!")


@auth_router.get("/me", response_model=UserResponse | None)
async def me(context: RequestContext = Depends(request_context)) -> UserResponse | None:
    try:
        identity = context.identity.current_user()
    except AuthError:
        return None
    if identity is None:
        return None
    return user_response(current_domain.repository_for(User).get(identity.user_id))


@auth_router.post("/request-reset", response_model=MessageResponse)
async def request_reset(body: RequestResetRequest) -> MessageResponse:
    await run_blocking(request_password_reset, body.email)
    return MessageResponse(message="Thanks! Check your email for a reset link")


@auth_router.post("/reset-password", response_model=UserResponse)
async def reset_password(body: ResetPasswordRequest, response: Response) -> UserResponse:
    command = ResetPassword(
        reset_token=body.reset_token,
        password=body.password,
        confirm_password=body.confirm_password,
    )
    user_id = await run_blocking(current_domain.process, command, asynchronous=False)
    set_session_cookie(response, user_id)
    return user_response(current_domain.repository_for(User).get(user_id))


# ---------------------------------------------------------------------------
# Users Router
# ---------------------------------------------------------------------------
users_router = APIRouter(prefix="/users", tags=["users"])


@users_router.get("", response_model=list[UserResponse])
async def get_users(context: RequestContext = Depends(request_context)) -> list[UserResponse]:
    return [user_response(user) for user in list_users(current_identity(context))]


@users_router.put("/{user_id}/permissions", response_model=UserResponse)
async def update_permissions(
    user_id: str,
    body: UpdatePermissionsRequest,
    context: RequestContext = Depends(request_context),
) -> UserResponse:
    actor = current_identity(context)
    current_domain.process(
        UpdatePermissions(
            actor_id=actor.user_id,
            user_id=user_id,
            permissions=json.dumps(body.permissions),
        ),
        asynchronous=False,
    )
    return user_response(current_domain.repository_for(User).get(user_id))
