"""Database models for learner progress tracking.

Cassandra table definition and entities for:
- Enrollments: one row per (course, learner) with progress and certificate state
- Lesson completions: embedded in the enrollment row as a JSON document

The `version` column is a compare-and-set token: every enrollment write is
conditional on the version that was read, so concurrent updates of the same
enrollment never overwrite each other.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID


# ==============================================================================
# Helper Functions
# ==============================================================================


def ensure_utc_aware(dt: datetime | None) -> datetime | None:
    """Ensure datetime is UTC-aware (Cassandra returns naive datetimes)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

# Enrollment per learner, partitioned by course
ENROLLMENTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.course_enrollments (
    course_id UUID,
    user_id UUID,
    enrolled_at TIMESTAMP,
    completions TEXT,
    progress_percent DECIMAL,
    certificate_issued BOOLEAN,
    certificate_issued_at TIMESTAMP,
    version INT,
    PRIMARY KEY (course_id, user_id)
)
"""

PROGRESS_TABLES_CQL = [
    ENROLLMENTS_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


class LessonCompletion:
    """Record that a learner finished a lesson.

    Attributes:
        lesson_id: Completed lesson UUID
        completed_at: First completion timestamp
        quiz_score: Last recorded quiz score (0-100), None if no quiz submitted
    """

    def __init__(
        self,
        lesson_id: UUID,
        completed_at: datetime | None = None,
        quiz_score: Decimal | None = None,
    ):
        self.lesson_id = lesson_id
        self.completed_at = ensure_utc_aware(completed_at) or datetime.now(UTC)
        self.quiz_score = quiz_score

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LessonCompletion":
        """Create LessonCompletion from its stored representation."""
        score = data.get("quiz_score")
        completed_at = data.get("completed_at")
        return cls(
            lesson_id=UUID(str(data["lesson_id"])),
            completed_at=datetime.fromisoformat(completed_at) if completed_at else None,
            quiz_score=Decimal(str(score)) if score is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        return {
            "lesson_id": str(self.lesson_id),
            "completed_at": self.completed_at.isoformat(),
            "quiz_score": str(self.quiz_score) if self.quiz_score is not None else None,
        }

    def __repr__(self) -> str:
        return f"<LessonCompletion lesson={self.lesson_id} score={self.quiz_score}>"


class Enrollment:
    """Learner enrollment in a course.

    Attributes:
        course_id: Course UUID
        user_id: Learner UUID
        enrolled_at: Enrollment timestamp
        completions: Lesson completions keyed by lesson id
        progress_percent: Derived course progress (0-100)
        certificate_issued: One-way flag, never reverts once set
        certificate_issued_at: Issuance timestamp
        version: Stored version this instance was loaded at (0 = not stored)
    """

    def __init__(
        self,
        course_id: UUID,
        user_id: UUID,
        enrolled_at: datetime | None = None,
        completions: dict[UUID, LessonCompletion] | None = None,
        progress_percent: Decimal = Decimal(0),
        certificate_issued: bool = False,
        certificate_issued_at: datetime | None = None,
        version: int = 0,
    ):
        self.course_id = course_id
        self.user_id = user_id
        self.enrolled_at = ensure_utc_aware(enrolled_at) or datetime.now(UTC)
        self.completions = completions if completions is not None else {}
        self.progress_percent = progress_percent
        self.certificate_issued = certificate_issued
        self.certificate_issued_at = ensure_utc_aware(certificate_issued_at)
        self.version = version

    @property
    def lessons_completed(self) -> int:
        """Number of distinct completed lessons."""
        return len(self.completions)

    def get_completion(self, lesson_id: UUID) -> LessonCompletion | None:
        """Get the completion record for a lesson, if any."""
        return self.completions.get(lesson_id)

    @staticmethod
    def completions_from_list(
        items: list[dict[str, Any]],
    ) -> dict[UUID, LessonCompletion]:
        """Rebuild the completion map from its stored list form.

        Duplicate lesson entries collapse into one record (last one wins).
        """
        completions: dict[UUID, LessonCompletion] = {}
        for item in items:
            completion = LessonCompletion.from_dict(item)
            completions[completion.lesson_id] = completion
        return completions

    def completions_to_list(self) -> list[dict[str, Any]]:
        """Serialize completions in completion order."""
        return [completion.to_dict() for completion in self.completions.values()]

    def __repr__(self) -> str:
        return (
            f"<Enrollment user={self.user_id} course={self.course_id} "
            f"{self.progress_percent}% certificate={self.certificate_issued}>"
        )
