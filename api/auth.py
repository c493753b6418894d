"""Authentication utilities: password hashing, JWT tokens, form validation."""

from __future__ import annotations

import os
from datetime import UTC, datetime, timedelta

import bcrypt
import structlog
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from opentelemetry import trace
from pydantic import EmailStr, TypeAdapter, ValidationError

from .database import Database
from .models import LoginRequest, UserCreate

# Initialize logger
logger = structlog.get_logger(__name__)


# JWT Configuration
SECRET_KEY = os.getenv("JWT_SECRET_KEY", "your-secret-key-here-change-in-production")
ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
EXPIRATION_DAYS = int(os.getenv("JWT_EXPIRATION_DAYS", "30"))

MIN_PASSWORD_LENGTH = 8
EMAIL_ADAPTER = TypeAdapter(EmailStr)

security = HTTPBearer()


def hash_password(password: str) -> str:
    """Hash a password with bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Check a password against a bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


def is_valid_email(email: str) -> bool:
    try:
        EMAIL_ADAPTER.validate_python(email)
    except ValidationError:
        return False
    return True


def _validate_credentials(email: str, password: str) -> dict[str, str]:
    errors: dict[str, str] = {}

    if not email:
        errors["email"] = "Email is required"
    elif not is_valid_email(email):
        errors["email"] = "Please enter a valid email address"

    if not password:
        errors["password"] = "Password is required"
    elif len(password) < MIN_PASSWORD_LENGTH:
        errors["password"] = f"Password must be at least {MIN_PASSWORD_LENGTH} characters"

    return errors


def validate_sign_in(form: LoginRequest) -> dict[str, str]:
    """Field-keyed validation errors for the sign-in form (empty when valid)."""
    return _validate_credentials(form.email.strip(), form.password)


def validate_sign_up(form: UserCreate) -> dict[str, str]:
    """Field-keyed validation errors for the sign-up form (empty when valid)."""
    errors = _validate_credentials(form.email.strip(), form.password)

    if not form.full_name.strip():
        errors["full_name"] = "Full name is required"

    if not form.confirm_password:
        errors["confirm_password"] = "Please confirm your password"
    elif form.password != form.confirm_password:
        errors["confirm_password"] = "Passwords do not match"

    return errors


def create_access_token(user_id: str, email: str) -> str:
    """
    Create a JWT access token for a user.

    Args:
        user_id: The user's ID
        email: The user's email

    Returns:
        Encoded JWT token
    """
    expire = datetime.now(UTC) + timedelta(days=EXPIRATION_DAYS)
    to_encode = {"sub": user_id, "email": email, "exp": expire}
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict | None:
    """Decode and verify a JWT token. Returns None if it is invalid."""
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.warning("jwt_token_decode_failed", error=str(e), error_type=type(e).__name__)
        return None


async def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(security)):
    """
    Dependency to get the current authenticated user.

    Validates the JWT token and looks the profile up in the registry.
    Raises 401 if the token is invalid or the profile is missing.
    """
    tracer = trace.get_tracer(__name__)

    with tracer.start_as_current_span("get_current_user") as span:
        payload = decode_access_token(credentials.credentials)
        user_id = payload.get("sub") if payload else None

        if user_id is None:
            logger.warning("auth_failed_invalid_token")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid authentication credentials",
                headers={"WWW-Authenticate": "Bearer"},
            )

        span.set_attribute("user.id", user_id)

        user = Database.find_profile(user_id)
        if user is None:
            logger.warning("auth_failed_user_not_found", user_id=user_id)
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="User not found",
                headers={"WWW-Authenticate": "Bearer"},
            )

        if user.get("status") != "active":
            logger.warning("auth_failed_account_disabled", user_id=user_id)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN, detail="User account is disabled"
            )

        return user
