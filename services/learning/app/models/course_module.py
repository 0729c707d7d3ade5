import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.database.postgres import Base

from .enums import ContentStatus, content_status_enum


class CourseModule(Base):
    __tablename__ = "course_modules"

    module_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    course_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("courses.course_id", ondelete="CASCADE"),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Ordering key within the course; gaps allowed
    order_index: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[ContentStatus] = mapped_column(
        content_status_enum, nullable=False, default=ContentStatus.DRAFT
    )
    # Module-level override of cohort timing
    release_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    # Days after the member's effective start
    unlock_after_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    course = relationship("Course", back_populates="modules", lazy="noload")
    lessons = relationship("Lesson", back_populates="module", lazy="noload", passive_deletes=True)

    __table_args__ = (
        CheckConstraint("unlock_after_days >= 0", name="unlock_after_days_non_negative"),
        Index("ix_course_modules_course_id_order", "course_id", "order_index"),
    )

    @property
    def is_published(self) -> bool:
        return self.status == ContentStatus.LIVE
