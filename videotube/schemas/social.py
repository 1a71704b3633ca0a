from datetime import datetime

from pydantic import BaseModel

from videotube.schemas.user import UserPublic


class LikeToggleResponse(BaseModel):
    liked: bool
    like_count: int


class SubscriptionToggleResponse(BaseModel):
    subscribed: bool
    subscriber_count: int


class SubscriberResponse(BaseModel):
    subscriber: UserPublic
    subscribed_at: datetime


class SubscribedChannelResponse(BaseModel):
    channel: UserPublic
    subscriber_count: int
    subscribed_at: datetime


class ChannelStats(BaseModel):
    total_videos: int
    total_views: int
    total_subscribers: int
    total_likes: int
