"""
User Routes

Registration, cookie-based login with refresh-token rotation, account
management, channel profiles and the user's library.
"""

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from videotube.auth import ACCESS_COOKIE, REFRESH_COOKIE, get_current_user, get_optional_user
from videotube.config import settings
from videotube.database import get_db
from videotube.exceptions import AuthenticationError
from videotube.middleware.rate_limit import limiter
from videotube.models.user import User
from videotube.schemas.history import (
    HistoryAdd,
    HistoryEntryResponse,
    WatchLaterToggle,
    WatchLaterToggleResponse,
)
from videotube.schemas.playlist import PlaylistResponse, PlaylistSaveToggle, PlaylistSaveToggleResponse
from videotube.schemas.user import (
    AccountUpdate,
    ChannelProfile,
    ImageUpdate,
    LoginResponse,
    PasswordChange,
    RefreshRequest,
    TokenPair,
    UserCreate,
    UserLogin,
    UserResponse,
)
from videotube.schemas.video import VideoResponse
from videotube.services import auth_service
from videotube.services.user_service import UserService

router = APIRouter(tags=["Users"])


def _set_auth_cookies(response: Response, access_token: str, refresh_token: str) -> None:
    options = {"httponly": True, "secure": settings.cookie_secure, "samesite": "lax"}
    response.set_cookie(ACCESS_COOKIE, access_token, max_age=settings.access_token_expire_minutes * 60, **options)
    response.set_cookie(
        REFRESH_COOKIE, refresh_token, max_age=settings.refresh_token_expire_days * 24 * 3600, **options
    )


def _clear_auth_cookies(response: Response) -> None:
    response.delete_cookie(ACCESS_COOKIE, httponly=True, secure=settings.cookie_secure, samesite="lax")
    response.delete_cookie(REFRESH_COOKIE, httponly=True, secure=settings.cookie_secure, samesite="lax")


# ============== Auth Endpoints ==============


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("5/minute")
async def register(request: Request, data: UserCreate, db: AsyncSession = Depends(get_db)):
    return await auth_service.register_user(data, db)


@router.post("/login", response_model=LoginResponse)
@limiter.limit("10/minute")
async def login(request: Request, response: Response, data: UserLogin, db: AsyncSession = Depends(get_db)):
    """Log in with username or email. Tokens are set as httponly cookies and also returned."""
    user = await auth_service.authenticate_user(data.username or data.email, data.password, db)
    access_token, refresh_token = await auth_service.issue_tokens(user, db)
    _set_auth_cookies(response, access_token, refresh_token)
    return LoginResponse(user=UserResponse.model_validate(user), access_token=access_token, refresh_token=refresh_token)


@router.post("/logout")
async def logout(
    response: Response,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    await auth_service.revoke_refresh_token(current_user, db)
    _clear_auth_cookies(response)
    return {"message": "User logged out"}


@router.post("/refresh-token", response_model=TokenPair)
async def refresh_token(
    request: Request,
    response: Response,
    data: RefreshRequest | None = None,
    db: AsyncSession = Depends(get_db),
):
    """Rotate the refresh token, read from the cookie or the request body."""
    incoming = request.cookies.get(REFRESH_COOKIE) or (data.refresh_token if data else None)
    if not incoming:
        raise AuthenticationError("Unauthorized request")

    _, access_token, new_refresh_token = await auth_service.rotate_refresh_token(incoming, db)
    _set_auth_cookies(response, access_token, new_refresh_token)
    return TokenPair(access_token=access_token, refresh_token=new_refresh_token)


@router.post("/change-password")
async def change_password(
    data: PasswordChange,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    await auth_service.change_password(current_user, data.old_password, data.new_password, db)
    return {"message": "Password changed successfully"}


# ============== Account Endpoints ==============


@router.get("/current-user", response_model=UserResponse)
async def get_current_user_profile(current_user: User = Depends(get_current_user)):
    return current_user


@router.patch("/update-account", response_model=UserResponse)
async def update_account(
    data: AccountUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await UserService(db).update_account(current_user, data.full_name, data.email)


@router.patch("/avatar", response_model=UserResponse)
async def update_avatar(
    data: ImageUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await UserService(db).update_image(current_user, "avatar_url", data.url)


@router.patch("/cover-image", response_model=UserResponse)
async def update_cover_image(
    data: ImageUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await UserService(db).update_image(current_user, "cover_image_url", data.url)


@router.delete("/delete-account")
async def delete_account(
    response: Response,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    await UserService(db).delete_account(current_user)
    _clear_auth_cookies(response)
    return {"message": "Account deleted"}


@router.get("/c/{username}", response_model=ChannelProfile)
async def get_channel_profile(
    username: str,
    db: AsyncSession = Depends(get_db),
    current_user: User | None = Depends(get_optional_user),
):
    return await UserService(db).get_channel_profile(username, current_user.id if current_user else None)


# ============== Library Endpoints ==============


@router.get("/history", response_model=list[HistoryEntryResponse])
async def get_watch_history(db: AsyncSession = Depends(get_db), current_user: User = Depends(get_current_user)):
    return await UserService(db).get_history(current_user.id)


@router.post("/history/add", response_model=HistoryEntryResponse, status_code=status.HTTP_201_CREATED)
async def add_to_watch_history(
    data: HistoryAdd,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await UserService(db).add_to_history(current_user.id, data.video_id)


@router.delete("/history/delete/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_history_entry(
    entry_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> None:
    await UserService(db).delete_history_entry(current_user.id, entry_id)


@router.delete("/history/watch-history/clear")
async def clear_watch_history(db: AsyncSession = Depends(get_db), current_user: User = Depends(get_current_user)):
    removed = await UserService(db).clear_history(current_user.id)
    return {"removed": removed}


@router.get("/watch-later", response_model=list[VideoResponse])
async def get_watch_later(db: AsyncSession = Depends(get_db), current_user: User = Depends(get_current_user)):
    return await UserService(db).get_watch_later(current_user.id)


@router.post("/watch-later/toggle", response_model=WatchLaterToggleResponse)
async def toggle_watch_later(
    data: WatchLaterToggle,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    in_watch_later = await UserService(db).toggle_watch_later(current_user.id, data.video_id)
    return WatchLaterToggleResponse(in_watch_later=in_watch_later)


@router.delete("/watch-later/clear")
async def clear_watch_later(db: AsyncSession = Depends(get_db), current_user: User = Depends(get_current_user)):
    removed = await UserService(db).clear_watch_later(current_user.id)
    return {"removed": removed}


@router.post("/playlist/toggle", response_model=PlaylistSaveToggleResponse)
async def toggle_saved_playlist(
    data: PlaylistSaveToggle,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    saved = await UserService(db).toggle_saved_playlist(current_user.id, data.playlist_id)
    return PlaylistSaveToggleResponse(saved=saved)


@router.get("/playlist/saved", response_model=list[PlaylistResponse])
async def get_saved_playlists(db: AsyncSession = Depends(get_db), current_user: User = Depends(get_current_user)):
    return await UserService(db).get_saved_playlists(current_user.id)
