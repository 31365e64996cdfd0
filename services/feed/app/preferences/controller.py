"""Preferences controller: orchestration layer between router and service."""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from shared.events.schemas import PreferencesUpdated

from app.events.bus import EventBus
from app.feed.schemas import DEFAULT_SOURCE_WEIGHTS, TopicWeight, UserPreferences
from app.models.preference import UserPreference
from app.preferences import service
from app.preferences.schemas import PreferencesResponse, PreferencesUpdate, TopicWeightOut

logger = logging.getLogger(__name__)


def _to_response(prefs: UserPreferences, row: UserPreference | None) -> PreferencesResponse:
    return PreferencesResponse(
        sources=dict(prefs.source_weights),
        topics=[TopicWeightOut(key=t.key, w=t.w) for t in prefs.topic_weights],
        blocked_topics=list(prefs.blocked_topics),
        length_pref=prefs.length_pref,
        is_default=row is None,
        updated_at=row.updated_at if row is not None else None,
    )


async def get_preferences(user_id: UUID, db: AsyncSession) -> PreferencesResponse:
    row = await service.get_preferences(user_id, db)
    prefs = UserPreferences.model_validate(row.prefs) if row is not None and row.prefs else UserPreferences()
    return _to_response(prefs, row)


async def update_preferences(
    body: PreferencesUpdate, user_id: UUID, db: AsyncSession, bus: EventBus
) -> PreferencesResponse:
    # Sources left out keep their default weight
    sources = dict(DEFAULT_SOURCE_WEIGHTS)
    sources.update({source.value: weight for source, weight in body.sources.items()})
    prefs = UserPreferences(
        source_weights=sources,
        topic_weights=[TopicWeight(key=t.key, w=t.w) for t in body.topics],
        blocked_topics=body.blocked_topics,
        length_pref=body.length_pref,
    )
    row = await service.upsert_preferences(user_id, prefs, db)
    await db.commit()
    await bus.publish(PreferencesUpdated(user_id=user_id))
    logger.info("Saved preferences for %s (%d topics)", user_id, len(prefs.topic_weights))
    return _to_response(prefs, row)
