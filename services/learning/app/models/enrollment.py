import uuid
from datetime import datetime

from sqlalchemy import ForeignKey, Index
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.database.postgres import Base

from .enums import EnrollmentStatus, enrollment_status_enum


class Enrollment(Base):
    """A member's relationship to a course (one row per user and course)."""

    __tablename__ = "enrollments"

    # Soft reference: User lives in the identity database
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True)
    course_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("courses.course_id", ondelete="CASCADE"),
        primary_key=True,
    )
    enrolled_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    started_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    status: Mapped[EnrollmentStatus] = mapped_column(
        enrollment_status_enum, nullable=False, default=EnrollmentStatus.ACTIVE
    )
    # Resume pointer for "continue learning"
    last_lesson_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("lessons.lesson_id", ondelete="SET NULL"),
        nullable=True,
    )
    last_accessed_at: Mapped[datetime | None] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )

    course = relationship("Course", back_populates="enrollments", lazy="noload")

    __table_args__ = (
        Index("ix_enrollments_course_id", "course_id"),
        Index("ix_enrollments_user_last_accessed", "user_id", "last_accessed_at"),
    )

    @property
    def enrollment_instant(self) -> datetime | None:
        return self.enrolled_at or self.started_at

    @property
    def is_active(self) -> bool:
        return self.status == EnrollmentStatus.ACTIVE
