"""Course structure: modules, lessons and quizzes."""

from .models import (
    COURSES_TABLES_CQL,
    Course,
    Lesson,
    LessonEntry,
    Module,
    Question,
    Quiz,
)


__all__ = [
    "COURSES_TABLES_CQL",
    "Course",
    "Lesson",
    "LessonEntry",
    "Module",
    "Question",
    "Quiz",
]
