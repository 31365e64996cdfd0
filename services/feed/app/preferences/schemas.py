from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, Field, field_validator

from app.models.enums import LengthPreference, Source

Weight = Annotated[float, Field(ge=0.0, le=3.0)]


class TopicWeightIn(BaseModel):
    key: str = Field(min_length=1, max_length=100)
    w: Weight = 1.0

    @field_validator("key")
    @classmethod
    def _normalise_key(cls, v: str) -> str:
        key = " ".join(v.split()).lower()
        if not key:
            raise ValueError("Topic key must not be blank.")
        return key


class PreferencesUpdate(BaseModel):
    """Full replacement of the caller's ranking preferences."""

    sources: dict[Source, Weight] = Field(
        default_factory=dict,
        description="Per-source weight in [0, 3]. Sources left out weigh 1.",
    )
    topics: list[TopicWeightIn] = Field(default_factory=list, max_length=50)
    blocked_topics: list[str] = Field(default_factory=list, max_length=50)
    length_pref: LengthPreference = LengthPreference.MEDIUM

    @field_validator("blocked_topics")
    @classmethod
    def _clean_blocked(cls, v: list[str]) -> list[str]:
        seen: list[str] = []
        for topic in v:
            key = " ".join(topic.split()).lower()
            if key and key not in seen:
                seen.append(key)
        return seen


class TopicWeightOut(BaseModel):
    key: str
    w: float


class PreferencesResponse(BaseModel):
    sources: dict[str, float]
    topics: list[TopicWeightOut]
    blocked_topics: list[str]
    length_pref: LengthPreference
    is_default: bool = Field(description="True when the caller has never saved preferences.")
    updated_at: datetime | None = None
