from .comment import CommentCreate, CommentListResponse, CommentResponse, CommentUpdate
from .history import HistoryAdd, HistoryEntryResponse, WatchLaterToggle, WatchLaterToggleResponse
from .playlist import PlaylistCreate, PlaylistResponse, PlaylistSaveToggle, PlaylistSaveToggleResponse, PlaylistUpdate
from .social import (
    ChannelStats,
    LikeToggleResponse,
    SubscribedChannelResponse,
    SubscriberResponse,
    SubscriptionToggleResponse,
)
from .tweet import TweetCreate, TweetResponse, TweetUpdate
from .user import (
    AccountUpdate,
    ChannelProfile,
    ImageUpdate,
    LoginResponse,
    PasswordChange,
    RefreshRequest,
    TokenPair,
    UserCreate,
    UserLogin,
    UserPublic,
    UserResponse,
)
from .video import ChannelVideo, VideoCreate, VideoDetail, VideoListResponse, VideoOwner, VideoResponse, VideoUpdate
from .view import ReconcileResponse, ViewAdmissionResponse, ViewCountsResponse, ViewEventResponse, ViewResetResponse
