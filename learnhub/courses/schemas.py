"""Pydantic schemas for course structure upload and display."""

from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from .models import (
    DEFAULT_PASSING_SCORE,
    DEFAULT_QUESTION_POINTS,
    Course,
    Lesson,
    Module,
    Question,
    Quiz,
)


# ==============================================================================
# Structure Upload Schemas
# ==============================================================================


class QuestionSchema(BaseModel):
    """Multiple choice question."""

    prompt: str = Field(..., min_length=1)
    options: list[str] = Field(..., min_length=2)
    correct_answer_index: int = Field(..., ge=0)
    points: int = Field(default=DEFAULT_QUESTION_POINTS, ge=0)

    @model_validator(mode="after")
    def check_answer_in_options(self) -> "QuestionSchema":
        """Correct answer must point at an existing option."""
        if self.correct_answer_index >= len(self.options):
            msg = "correct_answer_index must reference one of the options"
            raise ValueError(msg)
        return self

    def to_entity(self) -> Question:
        """Convert to domain entity."""
        return Question(
            prompt=self.prompt,
            options=self.options,
            correct_answer_index=self.correct_answer_index,
            points=self.points,
        )


class QuizSchema(BaseModel):
    """Quiz attached to a lesson."""

    questions: list[QuestionSchema] = []
    passing_score: Decimal = Field(default=DEFAULT_PASSING_SCORE, ge=0, le=100)

    def to_entity(self) -> Quiz:
        """Convert to domain entity."""
        return Quiz(
            questions=[question.to_entity() for question in self.questions],
            passing_score=self.passing_score,
        )


class LessonSchema(BaseModel):
    """Lesson definition."""

    id: UUID
    title: str = Field(..., min_length=1, max_length=200)
    duration_minutes: int = Field(default=0, ge=0)
    quiz: QuizSchema | None = None

    def to_entity(self) -> Lesson:
        """Convert to domain entity."""
        return Lesson(
            id=self.id,
            title=self.title,
            duration_minutes=self.duration_minutes,
            quiz=self.quiz.to_entity() if self.quiz is not None else None,
        )


class ModuleSchema(BaseModel):
    """Module definition."""

    id: UUID
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    lessons: list[LessonSchema] = []

    def to_entity(self) -> Module:
        """Convert to domain entity."""
        return Module(
            id=self.id,
            title=self.title,
            description=self.description,
            lessons=[lesson.to_entity() for lesson in self.lessons],
        )


class CourseStructureRequest(BaseModel):
    """Full course structure upload."""

    title: str = Field(..., min_length=1, max_length=200)
    modules: list[ModuleSchema] = []

    @model_validator(mode="after")
    def check_unique_lessons(self) -> "CourseStructureRequest":
        """Lesson ids must be unique across the whole course."""
        lesson_ids = [
            lesson.id for module in self.modules for lesson in module.lessons
        ]
        if len(lesson_ids) != len(set(lesson_ids)):
            msg = "Lesson ids must be unique within a course"
            raise ValueError(msg)
        return self

    def to_entity(self, course_id: UUID) -> Course:
        """Convert to domain entity."""
        return Course(
            id=course_id,
            title=self.title,
            modules=[module.to_entity() for module in self.modules],
        )


# ==============================================================================
# Display Schemas (quiz answers hidden)
# ==============================================================================


class QuestionPublic(BaseModel):
    """Question without its correct answer."""

    prompt: str
    options: list[str]
    points: int


class QuizPublic(BaseModel):
    """Quiz as shown to learners."""

    questions: list[QuestionPublic]
    passing_score: Decimal


class LessonPublic(BaseModel):
    """Lesson as shown to learners."""

    id: UUID
    title: str
    duration_minutes: int
    quiz: QuizPublic | None = None


class ModulePublic(BaseModel):
    """Module as shown to learners."""

    id: UUID
    title: str
    description: str
    lessons: list[LessonPublic]


class CourseResponse(BaseModel):
    """Course structure response."""

    id: UUID
    title: str
    instructor_id: UUID | None = None
    lessons_total: int
    modules: list[ModulePublic]

    @classmethod
    def from_entity(cls, course: Course) -> "CourseResponse":
        """Create response from entity, leaving out correct answers."""
        return cls(
            id=course.id,
            title=course.title,
            instructor_id=course.instructor_id,
            lessons_total=course.total_lessons,
            modules=[
                ModulePublic(
                    id=module.id,
                    title=module.title,
                    description=module.description,
                    lessons=[
                        LessonPublic(
                            id=lesson.id,
                            title=lesson.title,
                            duration_minutes=lesson.duration_minutes,
                            quiz=QuizPublic(
                                questions=[
                                    QuestionPublic(
                                        prompt=q.prompt,
                                        options=q.options,
                                        points=q.points,
                                    )
                                    for q in lesson.quiz.questions
                                ],
                                passing_score=lesson.quiz.passing_score,
                            )
                            if lesson.quiz is not None
                            else None,
                        )
                        for lesson in module.lessons
                    ],
                )
                for module in course.modules
            ],
        )
