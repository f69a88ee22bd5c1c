"""Routers package."""

from . import (
    health,
    users,
    videos,
    comments,
    likes,
    subscriptions,
    tweets,
    playlists,
    dashboard,
)
