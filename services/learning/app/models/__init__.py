# Import all models so Alembic can discover them via Base.metadata
from .course import Course
from .course_module import CourseModule
from .enrollment import Enrollment
from .lesson import Lesson
from .lesson_progress import LessonProgress
from .module_unlock import ModuleUnlock

__all__ = [
    "Course",
    "CourseModule",
    "Enrollment",
    "Lesson",
    "LessonProgress",
    "ModuleUnlock",
]
