from datetime import datetime, timezone
from typing import ClassVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ItemActionRecorded(BaseModel):
    """In-process event: a user saved, liked, opened or hid a feed item."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    EVENT_TYPE: ClassVar[str] = "item_action.recorded"

    event_type: str = EVENT_TYPE
    user_id: UUID
    item_id: str
    action: str
    occurred_at: datetime = Field(default_factory=_utcnow)


class PreferencesUpdated(BaseModel):
    """In-process event: a user replaced their ranking preferences."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    EVENT_TYPE: ClassVar[str] = "preferences.updated"

    event_type: str = EVENT_TYPE
    user_id: UUID
    occurred_at: datetime = Field(default_factory=_utcnow)
