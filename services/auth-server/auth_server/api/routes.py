"""HTTP route definitions for the auth server."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Generic, TypeVar

from email_validator import EmailNotValidError, validate_email
from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..domain.account import Account, Report
from ..domain.contracts import SignupInput
from ..domain.profile import Profile, ProfileService
from ..domain.service import AuthResult, IdentityService
from ..errors import AuthServerError
from ..security.passwords import MAX_PASSWORD_BYTES
from .metrics import AUTH_EVENTS
from .session import require_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth")

T = TypeVar("T")


class SuccessResponse(BaseModel, Generic[T]):
    """Envelope wrapping every successful payload."""

    message: str
    data: T


class UserResponse(BaseModel):
    """Serialised `Account` without its password digest."""

    id: str
    email: str
    first_name: str
    last_name: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, account: Account) -> "UserResponse":
        """Build a response model from the domain aggregate."""
        return cls(
            id=account.account_id,
            email=account.email,
            first_name=account.first_name,
            last_name=account.last_name,
            created_at=account.created_at,
            updated_at=account.updated_at,
        )


class AuthPayload(BaseModel):
    user: UserResponse
    token: str

    @classmethod
    def from_domain(cls, result: AuthResult) -> "AuthPayload":
        return cls(user=UserResponse.from_domain(result.account), token=result.token)


class ProfileResponse(BaseModel):
    user_id: str
    email: str
    first_name: str
    last_name: str
    username: str
    attacks_count: int
    created_at: datetime

    @classmethod
    def from_domain(cls, profile: Profile) -> "ProfileResponse":
        return cls(
            user_id=profile.user_id,
            email=profile.email,
            first_name=profile.first_name,
            last_name=profile.last_name,
            username=profile.username,
            attacks_count=profile.attacks_count,
            created_at=profile.created_at,
        )


class SignupRequest(BaseModel):
    """Payload accepted when registering an account."""

    model_config = ConfigDict(populate_by_name=True)

    email: str
    password: str = Field(..., min_length=1)
    first_name: str = Field(..., alias="firstName", min_length=1)
    last_name: str = Field(..., alias="lastName", min_length=1)

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        # Only the format is checked; the stored address is the literal input.
        try:
            validate_email(value, check_deliverability=False)
        except EmailNotValidError as exc:
            raise ValueError("invalid email address") from exc
        return value

    @field_validator("password")
    @classmethod
    def check_password_length(cls, value: str) -> str:
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
        return value


class LoginRequest(BaseModel):
    """Credentials submitted to obtain a session token."""

    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


def report_document(report: Report) -> dict[str, Any]:
    """Flatten a report into the JSON document returned to clients."""
    document = dict(report.document)
    document.update(id=report.report_id, user_id=report.user_id, created_at=report.created_at)
    return document


def get_identity_service(request: Request) -> IdentityService:
    """Resolve the `IdentityService` stored on the FastAPI application state."""
    service: IdentityService = request.app.state.identity_service
    return service


def get_profile_service(request: Request) -> ProfileService:
    """Resolve the `ProfileService` stored on the FastAPI application state."""
    service: ProfileService = request.app.state.profile_service
    return service


@router.post(
    "/signup",
    response_model=SuccessResponse[AuthPayload],
    status_code=status.HTTP_201_CREATED,
)
def signup(
    payload: SignupRequest,
    service: IdentityService = Depends(get_identity_service),
) -> SuccessResponse[AuthPayload]:
    """Register an account and return it with a session token."""
    try:
        result = service.signup(
            SignupInput(
                email=payload.email,
                password=payload.password,
                first_name=payload.first_name,
                last_name=payload.last_name,
            )
        )
    except AuthServerError as exc:
        AUTH_EVENTS.labels(event="signup", outcome=exc.code).inc()
        raise
    AUTH_EVENTS.labels(event="signup", outcome="ok").inc()
    return SuccessResponse[AuthPayload](
        message="User created successfully",
        data=AuthPayload.from_domain(result),
    )


@router.post("/login", response_model=SuccessResponse[AuthPayload])
def login(
    payload: LoginRequest,
    service: IdentityService = Depends(get_identity_service),
) -> SuccessResponse[AuthPayload]:
    """Exchange email and password for a session token."""
    try:
        result = service.login(payload.email, payload.password)
    except AuthServerError as exc:
        AUTH_EVENTS.labels(event="login", outcome=exc.code).inc()
        raise
    AUTH_EVENTS.labels(event="login", outcome="ok").inc()
    return SuccessResponse[AuthPayload](
        message="Login successful",
        data=AuthPayload.from_domain(result),
    )


@router.get("/getUserInfo", response_model=SuccessResponse[ProfileResponse])
def get_user_info(
    user_id: str = Depends(require_session),
    service: ProfileService = Depends(get_profile_service),
) -> SuccessResponse[ProfileResponse]:
    """Return the caller's profile with the number of reports they own."""
    profile = service.get_profile(user_id)
    return SuccessResponse[ProfileResponse](
        message="User information fetched successfully",
        data=ProfileResponse.from_domain(profile),
    )


@router.get("/getReports", response_model=SuccessResponse[list[dict[str, Any]]])
def get_reports(
    user_id: str = Depends(require_session),
    service: ProfileService = Depends(get_profile_service),
) -> SuccessResponse[list[dict[str, Any]]]:
    """Return every report owned by the caller, possibly none."""
    reports = service.list_reports(user_id)
    logger.debug("fetched %d reports for %s", len(reports), user_id)
    return SuccessResponse[list[dict[str, Any]]](
        message="Reports fetched successfully",
        data=[report_document(report) for report in reports],
    )
