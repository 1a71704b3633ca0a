import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from fastapi import Depends, Request
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession

from videotube.config import settings
from videotube.database import get_db
from videotube.exceptions import AuthenticationError, InvalidTokenError, TokenExpiredError
from videotube.models.user import User

logger = logging.getLogger(__name__)

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def _encode(data: dict, secret: str, token_type: str, expires_delta: timedelta) -> str:
    if "sub" not in data:
        raise ValueError("Missing 'sub' claim (user id) in token data.")

    to_encode = data.copy()
    # jti makes tokens issued within the same second distinct
    to_encode.update(
        {"exp": datetime.now(timezone.utc) + expires_delta, "type": token_type, "jti": uuid.uuid4().hex}
    )
    return jwt.encode(to_encode, secret, algorithm=settings.algorithm)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    expires_delta = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    return _encode(data, settings.secret_key, "access", expires_delta)


def create_refresh_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    expires_delta = expires_delta or timedelta(days=settings.refresh_token_expire_days)
    return _encode(data, settings.refresh_secret_key, "refresh", expires_delta)


def decode_token(token: str, token_type: str = "access") -> dict[str, Any]:
    """
    Decode and validate a JWT.

    Args:
        token: Encoded JWT
        token_type: Expected ``type`` claim, ``access`` or ``refresh``

    Returns:
        The token payload

    Raises:
        TokenExpiredError: If the token has expired
        InvalidTokenError: If the token is malformed, signed with the wrong
            secret, of the wrong type or lacks a ``sub`` claim
    """
    secret = settings.secret_key if token_type == "access" else settings.refresh_secret_key
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.algorithm])
    except ExpiredSignatureError:
        logger.info(f"{token_type} token expired")
        raise TokenExpiredError()
    except JWTError as e:
        logger.warning(f"JWT decoding failed: {str(e)}")
        raise InvalidTokenError()

    if payload.get("type") != token_type or payload.get("sub") is None:
        raise InvalidTokenError()
    return payload


def extract_access_token(request: Request) -> str | None:
    """Read the access token from the cookie, falling back to a bearer header."""
    token = request.cookies.get(ACCESS_COOKIE)
    if token:
        return token

    authorization = request.headers.get("Authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return None


async def get_user_from_token(token: str, db: AsyncSession) -> User | None:
    """Resolve an access token to a user, or None when it is invalid."""
    try:
        payload = decode_token(token)
        user_id = int(payload["sub"])
    except (AuthenticationError, ValueError):
        return None
    return await db.get(User, user_id)


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> User:
    token = extract_access_token(request)
    if not token:
        raise AuthenticationError("Unauthorized request")

    payload = decode_token(token)
    try:
        user_id = int(payload["sub"])
    except ValueError:
        raise InvalidTokenError()

    user = await db.get(User, user_id)
    if user is None:
        logger.warning(f"Token refers to missing user {user_id}")
        raise InvalidTokenError("Invalid access token")

    return user


async def get_optional_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> User | None:
    """
    Resolve the caller if a valid token is present.

    Missing, expired or invalid tokens all yield an anonymous caller, so
    public endpoints keep working with a stale cookie.
    """
    token = extract_access_token(request)
    if not token:
        return None

    user = await get_user_from_token(token, db)
    if user is None:
        logger.debug("Ignoring invalid token on optional-auth route")
    return user
