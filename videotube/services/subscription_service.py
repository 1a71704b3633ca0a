"""
Subscription Service

Users subscribe to other users' channels.
"""

import logging
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from videotube.exceptions import InvalidOperationError, UserNotFoundError
from videotube.models.subscription import Subscription
from videotube.models.user import User

logger = logging.getLogger(__name__)


class SubscriptionService:
    """Service for channel subscriptions."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def toggle_subscription(self, channel_id: int, subscriber_id: int) -> tuple[bool, int]:
        """
        Subscribe to a channel, or unsubscribe if already subscribed.

        Returns:
            Tuple of (subscribed after the toggle, channel subscriber count)

        Raises:
            UserNotFoundError: If the channel does not exist
            InvalidOperationError: If a user tries to subscribe to themselves
        """
        if channel_id == subscriber_id:
            raise InvalidOperationError("You cannot subscribe to your own channel")
        await self._get_user(channel_id)

        existing = await self.db.scalar(
            select(Subscription).where(Subscription.channel_id == channel_id, Subscription.subscriber_id == subscriber_id)
        )
        if existing is not None:
            await self.db.delete(existing)
            await self.db.commit()
            subscribed = False
        else:
            self.db.add(Subscription(channel_id=channel_id, subscriber_id=subscriber_id))
            try:
                await self.db.commit()
            except IntegrityError:
                await self.db.rollback()
            subscribed = True

        logger.info(
            f"{'Subscribed' if subscribed else 'Unsubscribed'}: subscriber={subscriber_id}, channel={channel_id}"
        )
        return subscribed, await self.subscriber_count(channel_id)

    async def get_subscribers(self, channel_id: int) -> list[Subscription]:
        """Subscriptions to a channel, newest first, with subscribers loaded."""
        await self._get_user(channel_id)
        result = await self.db.execute(
            select(Subscription)
            .where(Subscription.channel_id == channel_id)
            .order_by(Subscription.created_at.desc(), Subscription.id.desc())
        )
        return list(result.scalars().all())

    async def get_subscribed_channels(self, subscriber_id: int) -> list[dict[str, Any]]:
        """Channels a user subscribes to, each with its own subscriber count."""
        await self._get_user(subscriber_id)

        counts = (
            select(Subscription.channel_id, func.count(Subscription.id).label("subscriber_count"))
            .group_by(Subscription.channel_id)
            .subquery()
        )
        result = await self.db.execute(
            select(Subscription, counts.c.subscriber_count)
            .join(counts, counts.c.channel_id == Subscription.channel_id)
            .where(Subscription.subscriber_id == subscriber_id)
            .order_by(Subscription.created_at.desc(), Subscription.id.desc())
        )
        return [
            {"channel": sub.channel, "subscriber_count": count, "subscribed_at": sub.created_at}
            for sub, count in result.all()
        ]

    async def subscriber_count(self, channel_id: int) -> int:
        return (
            await self.db.scalar(select(func.count(Subscription.id)).where(Subscription.channel_id == channel_id))
        ) or 0

    async def subscribed_to_count(self, subscriber_id: int) -> int:
        return (
            await self.db.scalar(select(func.count(Subscription.id)).where(Subscription.subscriber_id == subscriber_id))
        ) or 0

    async def is_subscribed(self, subscriber_id: int | None, channel_id: int) -> bool:
        if subscriber_id is None:
            return False
        found = await self.db.scalar(
            select(Subscription.id).where(Subscription.channel_id == channel_id, Subscription.subscriber_id == subscriber_id)
        )
        return found is not None

    async def _get_user(self, user_id: int) -> User:
        user = await self.db.get(User, user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user
