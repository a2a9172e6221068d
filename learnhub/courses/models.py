"""Domain models for course structure.

A course is an ordered list of modules, each an ordered list of lessons;
a lesson may own one quiz. The structure is stored as a single JSON
document per course (see `COURSE_TABLE_CQL`), and learner enrollments are
attached to the loaded Course aggregate by the progress repository.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, NamedTuple
from uuid import UUID


if TYPE_CHECKING:
    from learnhub.progress.models import Enrollment


DEFAULT_PASSING_SCORE = Decimal(70)
DEFAULT_QUESTION_POINTS = 1


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

# Course structure (modules/lessons/quizzes) serialized as JSON
COURSE_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.courses (
    id UUID PRIMARY KEY,
    title TEXT,
    instructor_id UUID,
    structure TEXT,
    updated_at TIMESTAMP
)
"""

COURSES_TABLES_CQL = [
    COURSE_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


class Question:
    """Multiple choice quiz question."""

    def __init__(
        self,
        prompt: str,
        options: list[str],
        correct_answer_index: int,
        points: int = DEFAULT_QUESTION_POINTS,
    ):
        self.prompt = prompt
        self.options = options
        self.correct_answer_index = correct_answer_index
        self.points = points

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Question":
        """Create Question from its stored representation."""
        return cls(
            prompt=data.get("prompt", ""),
            options=list(data.get("options") or []),
            correct_answer_index=int(data["correct_answer_index"]),
            points=int(data.get("points", DEFAULT_QUESTION_POINTS)),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "prompt": self.prompt,
            "options": self.options,
            "correct_answer_index": self.correct_answer_index,
            "points": self.points,
        }


class Quiz:
    """Quiz attached to a lesson.

    Attributes:
        questions: Ordered questions; answers are matched by position
        passing_score: Minimum percentage (0-100) required to pass
    """

    def __init__(
        self,
        questions: list[Question] | None = None,
        passing_score: Decimal = DEFAULT_PASSING_SCORE,
    ):
        self.questions = questions or []
        self.passing_score = passing_score

    @property
    def total_points(self) -> int:
        """Sum of all question points."""
        return sum(question.points for question in self.questions)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Quiz":
        """Create Quiz from its stored representation."""
        return cls(
            questions=[Question.from_dict(q) for q in data.get("questions") or []],
            passing_score=Decimal(str(data.get("passing_score", DEFAULT_PASSING_SCORE))),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "questions": [question.to_dict() for question in self.questions],
            "passing_score": str(self.passing_score),
        }


class Lesson:
    """Lesson entity; optionally owns a quiz."""

    def __init__(
        self,
        id: UUID,
        title: str,
        duration_minutes: int = 0,
        quiz: Quiz | None = None,
    ):
        self.id = id
        self.title = title
        self.duration_minutes = duration_minutes
        self.quiz = quiz

    @property
    def has_quiz(self) -> bool:
        """Check if lesson owns a quiz."""
        return self.quiz is not None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Lesson":
        """Create Lesson from its stored representation."""
        quiz_data = data.get("quiz")
        return cls(
            id=UUID(str(data["id"])),
            title=data.get("title", ""),
            duration_minutes=int(data.get("duration_minutes") or 0),
            quiz=Quiz.from_dict(quiz_data) if quiz_data is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": str(self.id),
            "title": self.title,
            "duration_minutes": self.duration_minutes,
            "quiz": self.quiz.to_dict() if self.quiz is not None else None,
        }

    def __repr__(self) -> str:
        return f"<Lesson {self.id} {self.title!r} quiz={self.has_quiz}>"


class Module:
    """Module entity: an ordered group of lessons."""

    def __init__(
        self,
        id: UUID,
        title: str,
        description: str = "",
        lessons: list[Lesson] | None = None,
    ):
        self.id = id
        self.title = title
        self.description = description
        self.lessons = lessons or []

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Module":
        """Create Module from its stored representation."""
        return cls(
            id=UUID(str(data["id"])),
            title=data.get("title", ""),
            description=data.get("description") or "",
            lessons=[Lesson.from_dict(item) for item in data.get("lessons") or []],
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": str(self.id),
            "title": self.title,
            "description": self.description,
            "lessons": [lesson.to_dict() for lesson in self.lessons],
        }


class LessonEntry(NamedTuple):
    """Lesson located in its owning module."""

    module: Module
    lesson: Lesson


class Course:
    """Course aggregate.

    Owns the module/lesson structure and the enrollments loaded with it.
    Lesson lookups go through an index built once per loaded instance; the
    structure is treated as read-only after construction.

    Attributes:
        id: Course UUID
        title: Course title
        instructor_id: Owner allowed to replace the structure (besides admins)
        modules: Ordered modules
        enrollments: Enrollments keyed by learner id
        updated_at: Last structure update
    """

    def __init__(
        self,
        id: UUID,
        title: str,
        modules: list[Module] | None = None,
        enrollments: dict[UUID, "Enrollment"] | None = None,
        updated_at: datetime | None = None,
        instructor_id: UUID | None = None,
    ):
        self.id = id
        self.title = title
        self.instructor_id = instructor_id
        self.modules = modules or []
        self.enrollments = enrollments if enrollments is not None else {}
        self.updated_at = updated_at or datetime.now(UTC)
        self._lesson_index: dict[UUID, LessonEntry] | None = None

    @property
    def lesson_index(self) -> dict[UUID, LessonEntry]:
        """Map of lesson id to (module, lesson)."""
        if self._lesson_index is None:
            self._lesson_index = {
                lesson.id: LessonEntry(module, lesson)
                for module in self.modules
                for lesson in module.lessons
            }
        return self._lesson_index

    @property
    def total_lessons(self) -> int:
        """Total lesson count across all modules."""
        return sum(len(module.lessons) for module in self.modules)

    def find_lesson(self, lesson_id: UUID) -> LessonEntry | None:
        """Find a lesson and its owning module."""
        return self.lesson_index.get(lesson_id)

    def get_enrollment(self, user_id: UUID) -> "Enrollment | None":
        """Get the enrollment of a learner, if any."""
        return self.enrollments.get(user_id)

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        updated_at: datetime | None = None,
    ) -> "Course":
        """Create Course structure from its stored representation."""
        instructor_id = data.get("instructor_id")
        return cls(
            id=UUID(str(data["id"])),
            title=data.get("title", ""),
            modules=[Module.from_dict(item) for item in data.get("modules") or []],
            updated_at=updated_at,
            instructor_id=UUID(str(instructor_id)) if instructor_id else None,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert course structure (without enrollments) to dictionary."""
        return {
            "id": str(self.id),
            "title": self.title,
            "modules": [module.to_dict() for module in self.modules],
        }

    def __repr__(self) -> str:
        return (
            f"<Course {self.id} {self.title!r} "
            f"modules={len(self.modules)} lessons={self.total_lessons}>"
        )
