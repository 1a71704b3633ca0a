"""
Playlist Routes

Playlists are public to read; only the owner can change them.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from videotube.auth import get_current_user
from videotube.database import get_db
from videotube.models.user import User
from videotube.schemas.playlist import PlaylistCreate, PlaylistResponse, PlaylistUpdate
from videotube.services.playlist_service import PlaylistService

router = APIRouter(tags=["Playlists"])


@router.post("/", response_model=PlaylistResponse, status_code=status.HTTP_201_CREATED)
async def create_playlist(
    data: PlaylistCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await PlaylistService(db).create_playlist(current_user.id, data.name, data.description)


@router.get("/user/{user_id}", response_model=list[PlaylistResponse])
async def get_user_playlists(user_id: int, db: AsyncSession = Depends(get_db)):
    return await PlaylistService(db).get_user_playlists(user_id)


@router.get("/{playlist_id}", response_model=PlaylistResponse)
async def get_playlist(playlist_id: int, db: AsyncSession = Depends(get_db)):
    return await PlaylistService(db).get_playlist(playlist_id)


@router.patch("/{playlist_id}", response_model=PlaylistResponse)
async def update_playlist(
    playlist_id: int,
    data: PlaylistUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await PlaylistService(db).update_playlist(
        playlist_id, current_user.id, name=data.name, description=data.description
    )


@router.delete("/{playlist_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_playlist(
    playlist_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> None:
    await PlaylistService(db).delete_playlist(playlist_id, current_user.id)


@router.patch("/add/{video_id}/{playlist_id}", response_model=PlaylistResponse)
async def add_video_to_playlist(
    video_id: int,
    playlist_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await PlaylistService(db).add_video(playlist_id, video_id, current_user.id)


@router.patch("/remove/{video_id}/{playlist_id}", response_model=PlaylistResponse)
async def remove_video_from_playlist(
    video_id: int,
    playlist_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await PlaylistService(db).remove_video(playlist_id, video_id, current_user.id)
