"""Shared domain exception classes for the learning service.

Every error belongs to one of four families (NotFound, Forbidden,
InvalidState, Internal). Service-layer code raises the concrete class;
controllers map the family to an HTTP status.
"""


class NotFoundError(Exception):
    """Referenced entity is absent or belongs to another tenant."""


class ForbiddenError(Exception):
    """Caller's role is insufficient for the operation."""


class InvalidStateError(Exception):
    """Requested change would violate an entity invariant."""


class InternalError(Exception):
    """Data-store or other infrastructure failure. Never retried locally."""


class CourseNotFoundError(NotFoundError):
    def __init__(self, identifier: str = ""):
        self.identifier = identifier
        super().__init__(f"Course not found: {identifier}")


class ModuleNotFoundError(NotFoundError):
    def __init__(self, module_id: str = ""):
        self.module_id = module_id
        super().__init__(f"Module not found: {module_id}")


class LessonNotFoundError(NotFoundError):
    def __init__(self, lesson_id: str = ""):
        self.lesson_id = lesson_id
        super().__init__(f"Lesson not found: {lesson_id}")


class EnrollmentNotFoundError(NotFoundError):
    def __init__(self, identifier: str = ""):
        self.identifier = identifier
        super().__init__(f"Member not enrolled in this course: {identifier}")


class NotCourseInstructorError(ForbiddenError):
    """Raised when an instructor edits a course they do not teach."""

    def __init__(self, course_id: str = ""):
        self.course_id = course_id
        super().__init__(f"Not the instructor of course {course_id}")


class AdminRoleRequiredError(ForbiddenError):
    """Raised when an instructor attempts an owner/admin-only operation."""

    def __init__(self, operation: str = ""):
        self.operation = operation
        super().__init__(f"Owner or admin role required to {operation}")


class ReleaseDateRequiredError(InvalidStateError):
    """Raised when content is scheduled without a release date."""

    def __init__(self, entity: str = "content"):
        self.entity = entity
        super().__init__(f"A release date is required to schedule this {entity}")


class InvalidLessonPayloadError(InvalidStateError):
    """Raised when a lesson's type-specific fields do not match its type."""


class ReorderBoundaryError(InvalidStateError):
    """Raised when moving the first item up or the last item down."""


class DataStoreError(InternalError):
    """Raised by repositories when the underlying store fails."""
