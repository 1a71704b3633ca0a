from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from videotube.auth import get_current_user
from videotube.database import get_db
from videotube.models.user import User
from videotube.schemas.social import SubscribedChannelResponse, SubscriberResponse, SubscriptionToggleResponse
from videotube.services.subscription_service import SubscriptionService

router = APIRouter(tags=["Subscriptions"])


@router.post("/c/{channel_id}", response_model=SubscriptionToggleResponse)
async def toggle_subscription(
    channel_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    subscribed, subscriber_count = await SubscriptionService(db).toggle_subscription(channel_id, current_user.id)
    return SubscriptionToggleResponse(subscribed=subscribed, subscriber_count=subscriber_count)


@router.get("/c/{channel_id}", response_model=list[SubscriberResponse])
async def get_channel_subscribers(channel_id: int, db: AsyncSession = Depends(get_db)):
    subscriptions = await SubscriptionService(db).get_subscribers(channel_id)
    return [SubscriberResponse(subscriber=s.subscriber, subscribed_at=s.created_at) for s in subscriptions]


@router.get("/u/{subscriber_id}", response_model=list[SubscribedChannelResponse])
async def get_subscribed_channels(subscriber_id: int, db: AsyncSession = Depends(get_db)):
    """Channels a user subscribes to, each with its subscriber count."""
    return await SubscriptionService(db).get_subscribed_channels(subscriber_id)
