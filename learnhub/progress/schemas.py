"""Pydantic schemas for learner progress tracking.

Request and response models for:
- Course enrollment
- Lesson completion
- Quiz submission
- Progress queries
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field, StrictInt

from .models import Enrollment
from .tracker import EnrollmentSnapshot, QuizResult


# ==============================================================================
# Enrollment Schemas
# ==============================================================================


class EnrollmentResponse(BaseModel):
    """Enrollment response."""

    course_id: UUID
    user_id: UUID
    enrolled_at: datetime
    progress_percent: Decimal
    lessons_completed: int
    certificate_issued: bool
    certificate_issued_at: datetime | None = None

    @classmethod
    def from_entity(cls, entity: Enrollment) -> "EnrollmentResponse":
        """Create response from entity."""
        return cls(
            course_id=entity.course_id,
            user_id=entity.user_id,
            enrolled_at=entity.enrolled_at,
            progress_percent=entity.progress_percent,
            lessons_completed=entity.lessons_completed,
            certificate_issued=entity.certificate_issued,
            certificate_issued_at=entity.certificate_issued_at,
        )


# ==============================================================================
# Lesson Completion Schemas
# ==============================================================================


class LessonProgressUpdateResponse(BaseModel):
    """Progress after marking a lesson as complete."""

    message: str = "Progress updated successfully"
    progress_percent: Decimal = Field(description="0-100 percentage")
    lessons_completed: int
    lessons_total: int
    certificate_issued: bool
    certificate_issued_at: datetime | None = None

    @classmethod
    def from_snapshot(
        cls, snapshot: EnrollmentSnapshot
    ) -> "LessonProgressUpdateResponse":
        """Create response from tracker snapshot."""
        return cls(
            progress_percent=snapshot.progress_percent,
            lessons_completed=snapshot.lessons_completed,
            lessons_total=snapshot.lessons_total,
            certificate_issued=snapshot.certificate_issued,
            certificate_issued_at=snapshot.certificate_issued_at,
        )


# ==============================================================================
# Quiz Schemas
# ==============================================================================


class SubmitQuizRequest(BaseModel):
    """Quiz answers, one selected option index per question (in order)."""

    answers: list[StrictInt | None] = Field(
        ..., description="Selected option index per question; null = unanswered"
    )


class QuizSubmissionResponse(BaseModel):
    """Quiz score and resulting progress."""

    message: str = "Quiz submitted successfully"
    score: Decimal = Field(description="0-100 percentage of points earned")
    passed: bool
    progress_percent: Decimal
    certificate_issued: bool

    @classmethod
    def from_result(cls, result: QuizResult) -> "QuizSubmissionResponse":
        """Create response from tracker result."""
        return cls(
            score=result.score,
            passed=result.passed,
            progress_percent=result.enrollment.progress_percent,
            certificate_issued=result.enrollment.certificate_issued,
        )


# ==============================================================================
# Course Progress Schemas (Complete View)
# ==============================================================================


class LessonProgressSummary(BaseModel):
    """Completion state of one lesson."""

    lesson_id: UUID
    title: str
    completed: bool
    completed_at: datetime | None = None
    has_quiz: bool = False
    quiz_score: Decimal | None = None


class ModuleProgressSummary(BaseModel):
    """Module with nested lesson progress."""

    module_id: UUID
    title: str
    lessons_completed: int
    lessons_total: int
    lessons: list[LessonProgressSummary] = []


class CourseProgressResponse(BaseModel):
    """Complete course progress with all modules and lessons."""

    course_id: UUID
    overall: Decimal = Field(description="Overall progress percentage")
    modules: list[ModuleProgressSummary] = []
    certificate_issued: bool
    certificate_issued_at: datetime | None = None
