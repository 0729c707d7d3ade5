import uuid
from datetime import datetime, timezone

from sqlalchemy import ForeignKey, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.database.postgres import Base

from .enums import (
    ContentCategory,
    ContentStatus,
    LessonType,
    content_category_enum,
    content_status_enum,
    lesson_type_enum,
)


class Lesson(Base):
    __tablename__ = "lessons"

    lesson_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    module_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("course_modules.module_id", ondelete="CASCADE"),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    lesson_type: Mapped[LessonType] = mapped_column(lesson_type_enum, nullable=False)
    content_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    content_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Live sessions
    scheduled_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    meeting_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    replay_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    # Video / audio only
    duration_sec: Mapped[int | None] = mapped_column(Integer, nullable=True)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[ContentStatus] = mapped_column(
        content_status_enum, nullable=False, default=ContentStatus.DRAFT
    )
    release_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    content_category: Mapped[ContentCategory | None] = mapped_column(
        content_category_enum, nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    module = relationship("CourseModule", back_populates="lessons", lazy="noload")

    __table_args__ = (
        Index("ix_lessons_module_id_order", "module_id", "order_index"),
    )

    @property
    def is_published(self) -> bool:
        return self.status == ContentStatus.LIVE
