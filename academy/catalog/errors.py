from __future__ import annotations

from academy.core.errors import AcademyError


class CatalogError(AcademyError):
    pass


class CourseNotFoundError(CatalogError):
    code = "E_COURSE_NOT_FOUND"

    def __init__(self, course_id: int) -> None:
        super().__init__(f"course {course_id} does not exist")
        self.course_id = course_id


class LessonNotFoundError(CatalogError):
    code = "E_LESSON_NOT_FOUND"

    def __init__(self, lesson_id: int, *, module_id: int | None = None) -> None:
        if module_id is None:
            message = f"lesson {lesson_id} does not exist"
        else:
            message = f"lesson {lesson_id} does not belong to module {module_id}"
        super().__init__(message)
        self.lesson_id = lesson_id
        self.module_id = module_id


class InvalidCourseKindError(CatalogError):
    code = "E_INVALID_COURSE_KIND"

    def __init__(self, course_id: int, *, expected: str, actual: str) -> None:
        super().__init__(f"course {course_id} is a {actual}, expected {expected}")
        self.course_id = course_id
        self.expected = expected
        self.actual = actual
