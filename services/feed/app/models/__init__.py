from app.models.action import UserItemAction
from app.models.feed_item import FeedItem
from app.models.preference import FollowedSource, RssSource, UserPreference

__all__ = [
    "FeedItem",
    "UserPreference",
    "FollowedSource",
    "RssSource",
    "UserItemAction",
]
