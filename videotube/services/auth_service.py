import logging

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from videotube.auth import create_access_token, create_refresh_token, decode_token, hash_password, verify_password
from videotube.exceptions import DuplicateResourceError, InvalidCredentialsError, InvalidTokenError, ValidationError
from videotube.models.user import User
from videotube.schemas.user import UserCreate

logger = logging.getLogger(__name__)


async def register_user(data: UserCreate, db: AsyncSession) -> User:
    username = data.username.lower()
    email = data.email.lower()

    result = await db.execute(select(User).where(or_(User.username == username, User.email == email)))
    existing = result.scalars().first()
    if existing:
        if existing.username == username:
            raise DuplicateResourceError("User", "username", username)
        raise DuplicateResourceError("User", "email", email)

    new_user = User(
        username=username,
        email=email,
        full_name=data.full_name,
        avatar_url=data.avatar_url,
        cover_image_url=data.cover_image_url,
        hashed_password=hash_password(data.password),
    )
    db.add(new_user)
    await db.commit()
    await db.refresh(new_user)

    logger.info(f"User registered: id={new_user.id}, username={username}")
    return new_user


async def authenticate_user(identifier: str, password: str, db: AsyncSession) -> User:
    """Look a user up by username or email and check the password."""
    identifier = identifier.strip().lower()
    result = await db.execute(select(User).where(or_(User.username == identifier, User.email == identifier)))
    user = result.scalars().first()
    if user and verify_password(password, user.hashed_password):
        return user

    logger.warning(f"Failed login attempt for '{identifier}'")
    raise InvalidCredentialsError()


async def issue_tokens(user: User, db: AsyncSession) -> tuple[str, str]:
    """Create an access/refresh pair and remember the refresh token for rotation."""
    claims = {"sub": str(user.id)}
    access_token = create_access_token(claims)
    refresh_token = create_refresh_token(claims)

    user.refresh_token = refresh_token
    await db.commit()
    return access_token, refresh_token


async def rotate_refresh_token(refresh_token: str, db: AsyncSession) -> tuple[User, str, str]:
    """
    Exchange a refresh token for a new token pair.

    The presented token must be the one last issued to the user; a reused
    or superseded token is rejected.
    """
    payload = decode_token(refresh_token, token_type="refresh")
    try:
        user_id = int(payload["sub"])
    except ValueError:
        raise InvalidTokenError("Invalid refresh token")

    user = await db.get(User, user_id)
    if user is None or user.refresh_token != refresh_token:
        logger.warning(f"Refresh token rejected for user {user_id}")
        raise InvalidTokenError("Refresh token is expired or used")

    access_token, new_refresh_token = await issue_tokens(user, db)
    return user, access_token, new_refresh_token


async def revoke_refresh_token(user: User, db: AsyncSession) -> None:
    user.refresh_token = None
    await db.commit()
    logger.info(f"User logged out: id={user.id}")


async def change_password(user: User, old_password: str, new_password: str, db: AsyncSession) -> None:
    if not verify_password(old_password, user.hashed_password):
        raise ValidationError("Invalid old password", field="old_password")
    if old_password == new_password:
        raise ValidationError("New password must differ from the old one", field="new_password")

    user.hashed_password = hash_password(new_password)
    await db.commit()
    logger.info(f"Password changed: user={user.id}")
