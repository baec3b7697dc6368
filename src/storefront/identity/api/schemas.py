"""Pydantic request/response schemas for accounts and permissions."""

from pydantic import BaseModel, Field


class SignUpRequest(BaseModel):
    email: str = Field(max_length=254)
    name: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=1, max_length=255)


class SignInRequest(BaseModel):
    email: str
    password: str


class RequestResetRequest(BaseModel):
    email: str


class ResetPasswordRequest(BaseModel):
    reset_token: str
    password: str
    confirm_password: str


class UpdatePermissionsRequest(BaseModel):
    permissions: list[str]


class UserResponse(BaseModel):
    id: str
    email: str
    name: str
    permissions: list[str]


class MessageResponse(BaseModel):
    message: str
