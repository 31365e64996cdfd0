"""Preferences persistence: one JSONB document per user."""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.feed.schemas import UserPreferences
from app.models.preference import UserPreference


async def get_preferences(user_id: UUID, db: AsyncSession) -> UserPreference | None:
    result = await db.execute(select(UserPreference).where(UserPreference.user_id == user_id))
    return result.scalar_one_or_none()


async def upsert_preferences(
    user_id: UUID, prefs: UserPreferences, db: AsyncSession
) -> UserPreference:
    """Insert or replace the caller's document in one statement."""
    document = prefs.to_document()
    stmt = (
        insert(UserPreference)
        .values(user_id=user_id, prefs=document, updated_at=func.now())
        .on_conflict_do_update(
            index_elements=[UserPreference.user_id],
            set_={"prefs": document, "updated_at": func.now()},
        )
        .returning(UserPreference)
    )
    result = await db.execute(stmt)
    row = result.scalar_one()
    await db.flush()
    return row
