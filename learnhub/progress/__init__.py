"""Learner progress tracking module.

Provides:
- Lesson completion (idempotent)
- Quiz scoring
- Progress percentage and certificate eligibility
- Course enrollment management
"""

from .models import PROGRESS_TABLES_CQL, Enrollment, LessonCompletion
from .tracker import (
    DataInconsistencyError,
    EnrollmentSnapshot,
    LessonNotFoundError,
    NoQuizForLessonError,
    NotEnrolledError,
    ProgressError,
    ProgressTracker,
    QuizResult,
)


__all__ = [
    "PROGRESS_TABLES_CQL",
    "DataInconsistencyError",
    "Enrollment",
    "EnrollmentSnapshot",
    "LessonCompletion",
    "LessonNotFoundError",
    "NoQuizForLessonError",
    "NotEnrolledError",
    "ProgressError",
    "ProgressTracker",
    "QuizResult",
]
