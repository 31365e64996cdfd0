import uuid
from datetime import datetime, timezone

from sqlalchemy import Index, String
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column

from shared.database.postgres import Base

from .enums import ItemAction


class UserItemAction(Base):
    """Append-only log of save / like / open / hide actions.

    Several rows may exist per (user, item); the ranker reads them all.
    """

    __tablename__ = "user_item_actions"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    # Soft reference; users live with the hosted auth provider
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    # Opaque feed item id (string form), no FK: items may be pruned by ingestion
    item_id: Mapped[str] = mapped_column(String(64), nullable=False)
    # VARCHAR: save / like / open / hide
    action: Mapped[str] = mapped_column(String(16), nullable=False, default=ItemAction.OPEN.value)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    __table_args__ = (
        Index("ix_user_item_actions_user_id", "user_id"),
        Index("ix_user_item_actions_user_item", "user_id", "item_id"),
    )
