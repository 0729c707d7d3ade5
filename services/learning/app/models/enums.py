import enum

from sqlalchemy.dialects.postgresql import ENUM as PgEnum


class ContentStatus(str, enum.Enum):
    """Shared by courses, modules and lessons."""

    DRAFT = "draft"
    SCHEDULED = "scheduled"
    LIVE = "live"


class LessonType(str, enum.Enum):
    VIDEO = "video"
    AUDIO = "audio"
    PDF = "pdf"
    TEXT = "text"
    LIVE = "live"


class ContentCategory(str, enum.Enum):
    """Editorial taxonomy only; no behaviour hangs off it."""

    ORIENTATION = "orientation"
    TRANSMISSION = "transmission"
    CLARIFICATION = "clarification"
    EMBODIMENT = "embodiment"
    INQUIRY = "inquiry"
    MEDITATION = "meditation"
    ASSIGNMENT = "assignment"


class EnrollmentStatus(str, enum.Enum):
    ACTIVE = "active"
    WITHDRAWN = "withdrawn"


# Lesson types that carry a playable duration
TIMED_LESSON_TYPES = frozenset({LessonType.VIDEO, LessonType.AUDIO})


def _values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


# SQLAlchemy PgEnum instances (reuse across models to avoid duplicate type creation)
content_status_enum = PgEnum(
    ContentStatus, name="content_status", values_callable=_values, create_type=True
)
lesson_type_enum = PgEnum(
    LessonType, name="lesson_type", values_callable=_values, create_type=True
)
content_category_enum = PgEnum(
    ContentCategory, name="content_category", values_callable=_values, create_type=True
)
enrollment_status_enum = PgEnum(
    EnrollmentStatus, name="enrollment_status", values_callable=_values, create_type=True
)
