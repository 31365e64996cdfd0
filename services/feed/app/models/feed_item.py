import uuid
from datetime import datetime, timezone

from sqlalchemy import Float, Index, String, Text, UniqueConstraint, text
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column

from shared.database.postgres import Base


class FeedItem(Base):
    """One ingested piece of content. Written by ingestion jobs, read-only here."""

    __tablename__ = "feed_items"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    # VARCHAR; ingestion may add providers before this service knows them
    source: Mapped[str] = mapped_column(String(32), nullable=False)
    external_id: Mapped[str | None] = mapped_column(String(512), nullable=True)
    url: Mapped[str | None] = mapped_column(Text, nullable=True)
    title: Mapped[str | None] = mapped_column(Text, nullable=True)
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    author: Mapped[str | None] = mapped_column(String(300), nullable=True)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    published_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    ingested_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    tags: Mapped[list[str] | None] = mapped_column(ARRAY(String), nullable=True)
    topics: Mapped[list[str] | None] = mapped_column(ARRAY(String), nullable=True)
    # {feed_url, follow_key, ...}; "metadata" is reserved on declarative classes
    item_metadata: Mapped[dict | None] = mapped_column("metadata", JSONB, nullable=True)
    # Discoverability score written by ingestion; orders the explore grid
    score: Mapped[float | None] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    __table_args__ = (
        UniqueConstraint("source", "external_id", name="uq_feed_items_source_external_id"),
        Index("ix_feed_items_published_at", "published_at"),
        Index("ix_feed_items_created_at", "created_at"),
        Index("ix_feed_items_source", "source"),
        Index(
            "ix_feed_items_score",
            text("score DESC NULLS LAST"),
        ),
    )
