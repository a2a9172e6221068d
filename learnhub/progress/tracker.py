"""Lesson completion, quiz scoring and certificate eligibility.

The tracker is pure and synchronous: it works on a Course aggregate that
the caller has loaded (with the learner's enrollment attached), mutates the
enrollment in place and returns a snapshot. Loading and saving the
aggregate is the caller's job (see `ProgressService`).

Certificate issuance is a one-way transition checked after every mutation:
once `certificate_issued` is set it is never cleared.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal
from uuid import UUID

import structlog

from learnhub.courses.models import Course, LessonEntry, Quiz

from .models import Enrollment, LessonCompletion


logger = structlog.get_logger(__name__)

HUNDRED = Decimal(100)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class ProgressError(Exception):
    """Base progress error."""

    def __init__(self, message: str, code: str = "progress_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class NotEnrolledError(ProgressError):
    """Learner not enrolled in course."""

    def __init__(self, message: str = "Not enrolled in this course"):
        super().__init__(message, "not_enrolled")


class LessonNotFoundError(ProgressError):
    """Lesson does not belong to the course."""

    def __init__(self, message: str = "Lesson not found"):
        super().__init__(message, "lesson_not_found")


class NoQuizForLessonError(ProgressError):
    """Lesson has no quiz."""

    def __init__(self, message: str = "No quiz found for this lesson"):
        super().__init__(message, "no_quiz_for_lesson")


class DataInconsistencyError(ProgressError):
    """Completion references a lesson missing from the course structure.

    Only raised internally; the certificate gate treats it as a failed check.
    """

    def __init__(self, message: str = "Completion references an unknown lesson"):
        super().__init__(message, "data_inconsistency")


# ==============================================================================
# Results
# ==============================================================================


@dataclass(frozen=True)
class EnrollmentSnapshot:
    """Progress and certificate state after an operation."""

    progress_percent: Decimal
    lessons_completed: int
    lessons_total: int
    certificate_issued: bool
    certificate_issued_at: datetime | None
    changed: bool = False
    certificate_newly_issued: bool = False


@dataclass(frozen=True)
class QuizResult:
    """Outcome of a quiz submission."""

    score: Decimal
    passed: bool
    enrollment: EnrollmentSnapshot


# ==============================================================================
# Progress Tracker
# ==============================================================================


class ProgressTracker:
    """Computes progress and certificate eligibility for enrollments."""

    # ==========================================================================
    # Mutations
    # ==========================================================================

    def record_lesson_completion(
        self,
        course: Course,
        learner_id: UUID,
        lesson_id: UUID,
        now: datetime | None = None,
    ) -> EnrollmentSnapshot:
        """Mark a lesson as completed.

        Idempotent: completing an already completed lesson changes nothing.

        Raises:
            NotEnrolledError: If the learner has no enrollment on the course
            LessonNotFoundError: If the lesson is not part of the course
        """
        enrollment = self._require_enrollment(course, learner_id)
        self._require_lesson(course, lesson_id)

        if enrollment.get_completion(lesson_id) is not None:
            return self._snapshot(course, enrollment)

        now = now or datetime.now(UTC)
        enrollment.completions[lesson_id] = LessonCompletion(
            lesson_id=lesson_id,
            completed_at=now,
        )
        issued = self._recompute(course, enrollment, now)

        logger.info(
            "lesson_completed",
            course_id=str(course.id),
            user_id=str(learner_id),
            lesson_id=str(lesson_id),
            progress=str(enrollment.progress_percent),
        )

        return self._snapshot(
            course, enrollment, changed=True, certificate_newly_issued=issued
        )

    def submit_quiz(
        self,
        course: Course,
        learner_id: UUID,
        lesson_id: UUID,
        answers: Sequence[int | None],
        now: datetime | None = None,
    ) -> QuizResult:
        """Score a quiz submission and record it on the lesson completion.

        Submitting a quiz completes the lesson if it was not complete yet.
        A resubmission replaces the recorded score.

        Raises:
            NotEnrolledError: If the learner has no enrollment on the course
            LessonNotFoundError: If the lesson is not part of the course
            NoQuizForLessonError: If the lesson has no quiz
        """
        # Enrollment first: nothing is scored or written for outsiders
        enrollment = self._require_enrollment(course, learner_id)
        entry = self._require_lesson(course, lesson_id)
        quiz = entry.lesson.quiz
        if quiz is None:
            raise NoQuizForLessonError

        score = self.score_quiz(quiz, answers)
        now = now or datetime.now(UTC)

        completion = enrollment.get_completion(lesson_id)
        if completion is None:
            enrollment.completions[lesson_id] = LessonCompletion(
                lesson_id=lesson_id,
                completed_at=now,
                quiz_score=score,
            )
        else:
            completion.quiz_score = score

        issued = self._recompute(course, enrollment, now)
        passed = score >= quiz.passing_score

        logger.info(
            "quiz_submitted",
            course_id=str(course.id),
            user_id=str(learner_id),
            lesson_id=str(lesson_id),
            score=str(score),
            passed=passed,
        )

        return QuizResult(
            score=score,
            passed=passed,
            enrollment=self._snapshot(
                course, enrollment, changed=True, certificate_newly_issued=issued
            ),
        )

    # ==========================================================================
    # Queries
    # ==========================================================================

    @staticmethod
    def score_quiz(quiz: Quiz, answers: Sequence[int | None]) -> Decimal:
        """Percentage of quiz points earned.

        Answers are matched to questions by position. Extra answers are
        ignored and missing ones count as wrong. A quiz worth zero points
        scores 0.
        """
        total_points = quiz.total_points
        if total_points <= 0:
            return Decimal(0)

        earned = sum(
            question.points
            for index, question in enumerate(quiz.questions)
            if index < len(answers) and answers[index] == question.correct_answer_index
        )
        return HUNDRED * earned / total_points

    def calculate_progress(self, course: Course, learner_id: UUID) -> Decimal:
        """Completion percentage of a learner (0 when not enrolled)."""
        enrollment = course.get_enrollment(learner_id)
        if enrollment is None:
            return Decimal(0)
        return self._progress_for(course, enrollment)

    def can_issue_certificate(self, course: Course, learner_id: UUID) -> bool:
        """Check the certificate gate for a learner.

        Requires 100% progress and a passing score on every completed lesson
        that owns a quiz.
        """
        enrollment = course.get_enrollment(learner_id)
        if enrollment is None:
            return False
        return self._is_eligible(course, enrollment)

    # ==========================================================================
    # Internals
    # ==========================================================================

    @staticmethod
    def _require_enrollment(course: Course, learner_id: UUID) -> Enrollment:
        enrollment = course.get_enrollment(learner_id)
        if enrollment is None:
            raise NotEnrolledError
        return enrollment

    @staticmethod
    def _require_lesson(course: Course, lesson_id: UUID) -> LessonEntry:
        entry = course.find_lesson(lesson_id)
        if entry is None:
            raise LessonNotFoundError
        return entry

    @staticmethod
    def _progress_for(course: Course, enrollment: Enrollment) -> Decimal:
        total_lessons = course.total_lessons
        if total_lessons == 0:
            return Decimal(0)
        return min(HUNDRED, HUNDRED * enrollment.lessons_completed / total_lessons)

    @staticmethod
    def _passing_score_for(course: Course, lesson_id: UUID) -> Decimal | None:
        """Passing score of the lesson's quiz, None for lessons without quiz.

        Raises:
            DataInconsistencyError: If the lesson is not in the course
        """
        entry = course.find_lesson(lesson_id)
        if entry is None:
            raise DataInconsistencyError
        if entry.lesson.quiz is None:
            return None
        return entry.lesson.quiz.passing_score

    def _is_eligible(self, course: Course, enrollment: Enrollment) -> bool:
        if self._progress_for(course, enrollment) < HUNDRED:
            return False

        for completion in enrollment.completions.values():
            try:
                passing_score = self._passing_score_for(course, completion.lesson_id)
            except DataInconsistencyError as e:
                logger.warning(
                    "certificate_gate_failed_closed",
                    course_id=str(course.id),
                    user_id=str(enrollment.user_id),
                    lesson_id=str(completion.lesson_id),
                    reason=e.code,
                )
                return False

            if passing_score is None:
                continue
            if completion.quiz_score is None or completion.quiz_score < passing_score:
                return False

        return True

    def _recompute(
        self,
        course: Course,
        enrollment: Enrollment,
        now: datetime,
    ) -> bool:
        """Refresh derived progress and issue the certificate if newly eligible.

        Returns:
            True if the certificate was issued by this call
        """
        enrollment.progress_percent = self._progress_for(course, enrollment)

        if enrollment.certificate_issued or not self._is_eligible(course, enrollment):
            return False

        enrollment.certificate_issued = True
        enrollment.certificate_issued_at = now
        return True

    @staticmethod
    def _snapshot(
        course: Course,
        enrollment: Enrollment,
        changed: bool = False,
        certificate_newly_issued: bool = False,
    ) -> EnrollmentSnapshot:
        return EnrollmentSnapshot(
            progress_percent=enrollment.progress_percent,
            lessons_completed=enrollment.lessons_completed,
            lessons_total=course.total_lessons,
            certificate_issued=enrollment.certificate_issued,
            certificate_issued_at=enrollment.certificate_issued_at,
            changed=changed,
            certificate_newly_issued=certificate_newly_issued,
        )
