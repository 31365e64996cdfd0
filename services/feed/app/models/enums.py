import enum


class Source(str, enum.Enum):
    """Content providers the ingestion jobs write into ``feed_items``."""

    RSS = "rss"
    YOUTUBE = "youtube"
    REDDIT = "reddit"
    PODCAST = "podcast"
    EVENTBRITE = "eventbrite"
    SPOTIFY = "spotify"


class ItemAction(str, enum.Enum):
    SAVE = "save"
    LIKE = "like"
    OPEN = "open"
    HIDE = "hide"    # Absolute veto: the item never surfaces for this user again


class Badge(str, enum.Enum):
    NEW = "new"
    TRENDING = "trending"
    POPULAR = "popular"


class LengthPreference(str, enum.Enum):
    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"
