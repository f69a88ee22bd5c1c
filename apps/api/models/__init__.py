"""Models package."""

from .user import User
from .video import Video
from .comment import Comment
from .like import Like
from .subscription import Subscription
from .tweet import Tweet
from .playlist import Playlist, PlaylistVideo
from .watch_history import WatchHistoryEntry
