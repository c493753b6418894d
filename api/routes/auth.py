"""Authentication endpoints."""

from datetime import datetime

import structlog
from fastapi import APIRouter, Depends, HTTPException

from ..auth import (
    create_access_token,
    get_current_user,
    hash_password,
    validate_sign_in,
    validate_sign_up,
    verify_password,
)
from ..database import Database
from ..models import AuthResponse, LoginRequest, UserCreate, UserResponse
from ..observability import get_app_metrics, get_tracer

# Initialize logger
logger = structlog.get_logger(__name__)

# Get tracer and metrics
tracer = get_tracer(__name__)
metrics = get_app_metrics()

router = APIRouter(prefix="/auth", tags=["authentication"])


def _user_response(profile: dict) -> UserResponse:
    return UserResponse(
        id=profile["id"],
        email=profile["email"],
        full_name=profile["full_name"],
        status=profile["status"],
        created_at=datetime.fromisoformat(profile["created_at"]),
    )


def _reject_form(errors: dict[str, str], form: str):
    logger.info("auth_form_invalid", form=form, fields=sorted(errors))
    metrics.auth_failures.add(1, {"reason": "invalid_form"})
    raise HTTPException(status_code=422, detail={"errors": errors})


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register_user(user: UserCreate):
    """
    Register a new user and return JWT token.

    The form is validated field by field; every failing field is reported
    in ``detail.errors``. Email must be unique.
    """
    with tracer.start_as_current_span("register_user") as span:
        errors = validate_sign_up(user)
        if errors:
            _reject_form(errors, "sign_up")

        email = user.email.strip().lower()
        span.set_attribute("user.email", email)
        logger.info("user_registration_attempt", email=email)

        if Database.find_profile_by_email(email):
            logger.warning("registration_failed_duplicate_email", email=email)
            metrics.auth_failures.add(1, {"reason": "duplicate_email"})
            raise HTTPException(status_code=400, detail="Email already registered")

        profile = Database.insert_profile(
            email=email,
            full_name=user.full_name,
            password_hash=hash_password(user.password),
        )
        span.set_attribute("user.id", profile["id"])

        access_token = create_access_token(user_id=profile["id"], email=profile["email"])

        logger.info("user_registered_successfully", user_id=profile["id"], email=email)
        metrics.user_registrations.add(1)

        return AuthResponse(
            access_token=access_token, token_type="bearer", user=_user_response(profile)
        )


@router.post("/login", response_model=AuthResponse)
async def login_user(login: LoginRequest):
    """
    Login with email and password and return JWT token.

    Validates the credentials and that the user is active.
    """
    with tracer.start_as_current_span("login_user") as span:
        errors = validate_sign_in(login)
        if errors:
            _reject_form(errors, "sign_in")

        email = login.email.strip().lower()
        span.set_attribute("user.email", email)
        logger.info("user_login_attempt", email=email)

        profile = Database.find_profile_by_email(email)
        if not profile or not verify_password(login.password, profile["password_hash"]):
            logger.warning("login_failed_invalid_credentials", email=email)
            metrics.auth_failures.add(1, {"reason": "invalid_credentials"})
            raise HTTPException(status_code=401, detail="Invalid credentials")

        if profile.get("status") != "active":
            logger.warning("login_failed_account_disabled", email=email)
            metrics.auth_failures.add(1, {"reason": "account_disabled"})
            raise HTTPException(status_code=403, detail="User account is disabled")

        span.set_attribute("user.id", profile["id"])
        access_token = create_access_token(user_id=profile["id"], email=profile["email"])

        logger.info("user_logged_in_successfully", user_id=profile["id"], email=email)
        metrics.user_logins.add(1)

        return AuthResponse(
            access_token=access_token, token_type="bearer", user=_user_response(profile)
        )


@router.get("/me", response_model=UserResponse)
async def read_current_user(current_user: dict = Depends(get_current_user)):
    """Return the authenticated user's profile."""
    return _user_response(current_user)
