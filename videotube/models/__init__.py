from .comment import Comment
from .like import Like
from .playlist import Playlist, playlist_videos, saved_playlists
from .subscription import Subscription
from .tweet import Tweet
from .user import User
from .video import Video
from .view_event import ViewEvent
from .watch_history import WatchHistoryEntry, watch_later

__all__ = [
    "Comment",
    "Like",
    "Playlist",
    "playlist_videos",
    "saved_playlists",
    "Subscription",
    "Tweet",
    "User",
    "Video",
    "ViewEvent",
    "WatchHistoryEntry",
    "watch_later",
]
