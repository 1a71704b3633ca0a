"""
Tweet Routes

Community posts on a channel. Listing is public; posting, editing and
deleting need a signed-in owner.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from videotube.auth import get_current_user, get_optional_user
from videotube.database import get_db
from videotube.models.tweet import Tweet
from videotube.models.user import User
from videotube.schemas.tweet import TweetCreate, TweetResponse, TweetUpdate
from videotube.schemas.user import UserPublic
from videotube.services.tweet_service import TweetService

router = APIRouter(tags=["Tweets"])


@router.post("/", response_model=TweetResponse, status_code=status.HTTP_201_CREATED)
async def create_tweet(
    data: TweetCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> TweetResponse:
    tweet = await TweetService(db).create_tweet(current_user.id, data.content)
    return _tweet_to_response(tweet, {}, current_user.id)


@router.get("/user/{user_id}", response_model=list[TweetResponse])
async def get_user_tweets(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User | None = Depends(get_optional_user),
):
    """A channel's tweets, newest first."""
    service = TweetService(db)
    tweets = await service.get_user_tweets(user_id)
    like_counts = await service.get_like_counts([t.id for t in tweets])

    viewer_id = current_user.id if current_user else None
    return [_tweet_to_response(t, like_counts, viewer_id) for t in tweets]


@router.patch("/{tweet_id}", response_model=TweetResponse)
async def update_tweet(
    tweet_id: int,
    data: TweetUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> TweetResponse:
    """
    Update a tweet.

    Only the owner can update their tweet.
    """
    service = TweetService(db)
    tweet = await service.update_tweet(tweet_id, current_user.id, data.content)
    like_counts = await service.get_like_counts([tweet.id])
    return _tweet_to_response(tweet, like_counts, current_user.id)


@router.delete("/{tweet_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_tweet(
    tweet_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> None:
    await TweetService(db).delete_tweet(tweet_id, current_user.id)


# ============== Helpers ==============


def _tweet_to_response(tweet: Tweet, like_counts: dict[int, int], viewer_id: int | None) -> TweetResponse:
    return TweetResponse(
        id=tweet.id,
        content=tweet.content,
        owner=UserPublic.model_validate(tweet.owner),
        like_count=like_counts.get(tweet.id, 0),
        is_owner=viewer_id is not None and tweet.owner_id == viewer_id,
        created_at=tweet.created_at,
        updated_at=tweet.updated_at,
    )
