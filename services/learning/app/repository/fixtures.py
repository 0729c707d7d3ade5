"""Demo catalog served when ``DATA_PROVIDER=fixtures``.

Only content is seeded; enrollments and progress accumulate in memory as
the demo user clicks around. ``scripts/seed-data.py`` writes the same rows
into Postgres.
"""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

from app.models import Course, CourseModule, Lesson
from app.models.enums import ContentCategory, ContentStatus, LessonType
from app.repository.memory import InMemoryLearningRepository

DEMO_TENANT_ID = UUID("450e8400-e29b-41d4-a716-446655440000")
DEMO_INSTRUCTOR_ID = UUID("450e8400-e29b-41d4-a716-446655440001")

_LAUNCHED = datetime(2025, 1, 1, tzinfo=timezone.utc)

_SAMPLE_VIDEO = "https://commondatastorage.googleapis.com/gtv-videos-bucket/sample/{}.mp4"

_SETUP_TEXT = """\
# Setting Up Your Development Environment

Before you begin, install Node.js 18 or newer and a code editor.

1. Install Node.js from nodejs.org
2. Run `npx create-react-app my-app`
3. `cd my-app && npm start`
"""

# (course_id, title, description, cover seed, modules)
# module: (module_id, title, description, unlock_after_days, lessons)
# lesson: (lesson_id, title, type, duration_sec, video name | text, category)
DEMO_CATALOG = [
    (
        UUID("550e8400-e29b-41d4-a716-446655440001"),
        "Introduction to React",
        "Learn the fundamentals of React including components, props, state, and hooks.",
        "react",
        [
            (
                UUID("650e8400-e29b-41d4-a716-446655440001"),
                "Getting Started",
                "Introduction to React and setting up your development environment",
                0,
                [
                    (UUID("750e8400-e29b-41d4-a716-446655440001"), "Welcome to React",
                     LessonType.VIDEO, 120, "BigBuckBunny", ContentCategory.ORIENTATION),
                    (UUID("750e8400-e29b-41d4-a716-446655440002"), "Setting Up Your Environment",
                     LessonType.TEXT, None, _SETUP_TEXT, ContentCategory.ASSIGNMENT),
                    (UUID("750e8400-e29b-41d4-a716-446655440003"), "Your First Component",
                     LessonType.VIDEO, 180, "ElephantsDream", ContentCategory.TRANSMISSION),
                ],
            ),
            (
                UUID("650e8400-e29b-41d4-a716-446655440002"),
                "Components and Props",
                "Learn how to build reusable components",
                7,
                [
                    (UUID("750e8400-e29b-41d4-a716-446655440004"), "Understanding Components",
                     LessonType.VIDEO, 240, "ForBiggerBlazes", ContentCategory.CLARIFICATION),
                ],
            ),
        ],
    ),
    (
        UUID("550e8400-e29b-41d4-a716-446655440002"),
        "Advanced TypeScript",
        "Master advanced TypeScript patterns including generics and utility types.",
        "typescript",
        [
            (
                UUID("650e8400-e29b-41d4-a716-446655440004"),
                "Generics and Advanced Types",
                "Deep dive into TypeScript generics",
                0,
                [
                    (UUID("750e8400-e29b-41d4-a716-446655440009"), "Generics Fundamentals",
                     LessonType.VIDEO, 480, "ForBiggerMeltdowns", ContentCategory.TRANSMISSION),
                    (UUID("750e8400-e29b-41d4-a716-446655440010"), "Generic Constraints",
                     LessonType.VIDEO, 390, "Sintel", ContentCategory.EMBODIMENT),
                ],
            ),
        ],
    ),
    (
        UUID("550e8400-e29b-41d4-a716-446655440003"),
        "React Native Fundamentals",
        "Build mobile apps with React Native: navigation, styling, and platform code.",
        "reactnative",
        [
            (
                UUID("650e8400-e29b-41d4-a716-446655440006"),
                "React Native Basics",
                "Core concepts of React Native development",
                0,
                [
                    (UUID("750e8400-e29b-41d4-a716-446655440012"), "Welcome to React Native",
                     LessonType.VIDEO, 210, "TearsOfSteel", ContentCategory.ORIENTATION),
                ],
            ),
        ],
    ),
]


def build_fixture_rows() -> tuple[list[Course], list[CourseModule], list[Lesson]]:
    """Fresh ORM instances for the demo catalog (all live)."""
    courses: list[Course] = []
    modules: list[CourseModule] = []
    lessons: list[Lesson] = []
    for course_id, title, description, cover, module_specs in DEMO_CATALOG:
        courses.append(Course(
            course_id=course_id,
            tenant_id=DEMO_TENANT_ID,
            instructor_id=DEMO_INSTRUCTOR_ID,
            title=title,
            description=description,
            cover_url=f"https://picsum.photos/seed/{cover}/400/300",
            status=ContentStatus.LIVE,
            release_at=_LAUNCHED,
            created_at=_LAUNCHED,
            updated_at=_LAUNCHED,
        ))
        for m_index, (module_id, m_title, m_description, days, lesson_specs) in enumerate(
            module_specs, start=1,
        ):
            modules.append(CourseModule(
                module_id=module_id,
                course_id=course_id,
                title=m_title,
                description=m_description,
                order_index=m_index,
                status=ContentStatus.LIVE,
                release_at=None,
                unlock_after_days=days,
                created_at=_LAUNCHED,
            ))
            for l_index, (lesson_id, l_title, kind, duration, payload, category) in enumerate(
                lesson_specs, start=1,
            ):
                is_text = kind == LessonType.TEXT
                lessons.append(Lesson(
                    lesson_id=lesson_id,
                    module_id=module_id,
                    title=l_title,
                    lesson_type=kind,
                    duration_sec=duration,
                    content_url=None if is_text else _SAMPLE_VIDEO.format(payload),
                    content_text=payload if is_text else None,
                    order_index=l_index,
                    status=ContentStatus.LIVE,
                    release_at=None,
                    content_category=category,
                    created_at=_LAUNCHED,
                ))
    return courses, modules, lessons


def build_fixture_repository() -> InMemoryLearningRepository:
    repo = InMemoryLearningRepository()
    courses, modules, lessons = build_fixture_rows()
    for course in courses:
        repo.courses[course.course_id] = course
    for module in modules:
        repo.modules[module.module_id] = module
    for lesson in lessons:
        repo.lessons[lesson.lesson_id] = lesson
    return repo
