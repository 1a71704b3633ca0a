"""
Tweet Service

Short text posts on a channel's community feed. Only the owner can edit or
delete a tweet; likes on a tweet are removed with it.
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from videotube.exceptions import AuthorizationError, TweetNotFoundError, UserNotFoundError
from videotube.models.like import Like
from videotube.models.tweet import Tweet
from videotube.models.user import User
from videotube.utils.clock import utcnow

logger = logging.getLogger(__name__)


class TweetService:
    """Service for managing tweets."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_tweet(self, owner_id: int, content: str) -> Tweet:
        tweet = Tweet(owner_id=owner_id, content=content.strip())
        self.db.add(tweet)
        await self.db.commit()

        logger.info(f"Tweet created: id={tweet.id}, owner={owner_id}")
        return await self.get_tweet(tweet.id)

    async def get_tweet(self, tweet_id: int) -> Tweet:
        """Get a tweet by ID with its owner loaded."""
        result = await self.db.execute(
            select(Tweet).where(Tweet.id == tweet_id).execution_options(populate_existing=True)
        )
        tweet = result.scalar_one_or_none()
        if tweet is None:
            raise TweetNotFoundError(tweet_id)
        return tweet

    async def get_user_tweets(self, user_id: int) -> list[Tweet]:
        """
        Every tweet a user has posted, newest first.

        Raises:
            UserNotFoundError: If the user does not exist
        """
        if await self.db.get(User, user_id) is None:
            raise UserNotFoundError(user_id)

        result = await self.db.execute(
            select(Tweet).where(Tweet.owner_id == user_id).order_by(Tweet.created_at.desc(), Tweet.id.desc())
        )
        return list(result.scalars().all())

    async def get_like_counts(self, tweet_ids: list[int]) -> dict[int, int]:
        if not tweet_ids:
            return {}
        result = await self.db.execute(
            select(Like.tweet_id, func.count(Like.id)).where(Like.tweet_id.in_(tweet_ids)).group_by(Like.tweet_id)
        )
        return {tweet_id: count for tweet_id, count in result.all()}

    async def update_tweet(self, tweet_id: int, user_id: int, content: str) -> Tweet:
        """
        Replace a tweet's text.

        Only the owner can update their tweet.
        """
        tweet = await self.get_tweet(tweet_id)
        if tweet.owner_id != user_id:
            raise AuthorizationError("Only the owner can edit this tweet")

        tweet.content = content.strip()
        tweet.updated_at = utcnow()
        await self.db.commit()

        logger.info(f"Tweet updated: id={tweet_id}")
        return await self.get_tweet(tweet_id)

    async def delete_tweet(self, tweet_id: int, user_id: int) -> None:
        tweet = await self.get_tweet(tweet_id)
        if tweet.owner_id != user_id:
            raise AuthorizationError("Only the owner can delete this tweet")

        await self.db.delete(tweet)
        await self.db.commit()

        logger.info(f"Tweet deleted: id={tweet_id}, by user={user_id}")
