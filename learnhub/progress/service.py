"""Learner progress service layer.

Business logic for:
- Course enrollment
- Lesson completion and quiz submission (read-modify-write per enrollment)
- Course progress view
- Certificate delivery
"""

from collections.abc import Callable
from typing import TypeVar
from uuid import UUID

import structlog

from learnhub.certificates import render_certificate
from learnhub.courses.models import Course

from .models import Enrollment
from .repository import CourseRepository
from .schemas import (
    CourseProgressResponse,
    LessonProgressSummary,
    ModuleProgressSummary,
)
from .tracker import (
    EnrollmentSnapshot,
    NotEnrolledError,
    ProgressError,
    ProgressTracker,
    QuizResult,
)


logger = structlog.get_logger(__name__)

ResultT = TypeVar("ResultT", EnrollmentSnapshot, QuizResult)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class CourseNotFoundError(ProgressError):
    """Course does not exist."""

    def __init__(self, message: str = "Course not found"):
        super().__init__(message, "course_not_found")


class AlreadyEnrolledError(ProgressError):
    """Learner already enrolled."""

    def __init__(self, message: str = "Already enrolled in this course"):
        super().__init__(message, "already_enrolled")


class ConcurrentUpdateError(ProgressError):
    """Enrollment kept changing underneath the update."""

    def __init__(self, message: str = "Progress was updated concurrently, retry"):
        super().__init__(message, "concurrent_update")


class NotCourseOwnerError(ProgressError):
    """Caller may not replace another instructor's course."""

    def __init__(self, message: str = "Not the instructor of this course"):
        super().__init__(message, "not_course_owner")


class LessonsInUseError(ProgressError):
    """New structure drops lessons that learners already completed."""

    def __init__(self, message: str = "Completed lessons cannot be removed"):
        super().__init__(message, "lessons_in_use")


class CertificateNotIssuedError(ProgressError):
    """Certificate requested before it was issued."""

    def __init__(self, message: str = "Certificate not issued for this course"):
        super().__init__(message, "certificate_not_issued")


# ==============================================================================
# Progress Service
# ==============================================================================


class ProgressService:
    """Service for learner progress and certificates."""

    def __init__(
        self,
        repository: CourseRepository,
        tracker: ProgressTracker | None = None,
        max_write_retries: int = 5,
        certificate_issuer_name: str = "LearnHub",
    ):
        self.repository = repository
        self.tracker = tracker or ProgressTracker()
        self.max_write_retries = max_write_retries
        self.certificate_issuer_name = certificate_issuer_name

    # ==========================================================================
    # Course Structure
    # ==========================================================================

    async def get_course(self, course_id: UUID) -> Course:
        """Get course structure.

        Raises:
            CourseNotFoundError: If the course does not exist
        """
        course = await self.repository.get_course(course_id)
        if course is None:
            raise CourseNotFoundError
        return course

    async def save_course(
        self,
        course: Course,
        editor_id: UUID,
        editor_is_admin: bool = False,
    ) -> Course:
        """Create or replace a course structure.

        The first upload makes the editor the course instructor. Later
        uploads are limited to that instructor or an admin, and may not
        drop lessons that any enrolled learner has completed.

        Raises:
            NotCourseOwnerError: If a non-admin editor is not the instructor
            LessonsInUseError: If completed lessons would be removed
        """
        existing = await self.repository.get_course(course.id)
        if existing is None:
            course.instructor_id = editor_id
        else:
            if not editor_is_admin and existing.instructor_id != editor_id:
                raise NotCourseOwnerError
            course.instructor_id = existing.instructor_id or editor_id

            removed = existing.lesson_index.keys() - course.lesson_index.keys()
            if removed:
                completed = await self.repository.get_completed_lesson_ids(course.id)
                in_use = removed & completed
                if in_use:
                    logger.warning(
                        "course_update_rejected",
                        course_id=str(course.id),
                        lessons_in_use=sorted(str(lesson_id) for lesson_id in in_use),
                    )
                    raise LessonsInUseError

        await self.repository.save_course(course)
        return course

    # ==========================================================================
    # Enrollment Operations
    # ==========================================================================

    async def enroll(self, course_id: UUID, user_id: UUID) -> Enrollment:
        """Enroll a learner with zero progress.

        Raises:
            CourseNotFoundError: If the course does not exist
            AlreadyEnrolledError: If the learner is already enrolled
        """
        await self.get_course(course_id)

        enrollment = Enrollment(course_id=course_id, user_id=user_id)
        if not await self.repository.create_enrollment(enrollment):
            raise AlreadyEnrolledError

        logger.info("user_enrolled", user_id=str(user_id), course_id=str(course_id))
        return enrollment

    # ==========================================================================
    # Progress Mutations
    # ==========================================================================

    async def record_lesson_completion(
        self,
        course_id: UUID,
        user_id: UUID,
        lesson_id: UUID,
    ) -> EnrollmentSnapshot:
        """Mark a lesson complete and persist the new progress."""
        return await self._update_enrollment(
            course_id,
            user_id,
            lambda course: self.tracker.record_lesson_completion(
                course, user_id, lesson_id
            ),
        )

    async def submit_quiz(
        self,
        course_id: UUID,
        user_id: UUID,
        lesson_id: UUID,
        answers: list[int | None],
    ) -> QuizResult:
        """Score a quiz and persist the score with the new progress."""
        return await self._update_enrollment(
            course_id,
            user_id,
            lambda course: self.tracker.submit_quiz(course, user_id, lesson_id, answers),
        )

    async def _update_enrollment(
        self,
        course_id: UUID,
        user_id: UUID,
        apply: Callable[[Course], ResultT],
    ) -> ResultT:
        """Load, apply a tracker mutation and save, as one transaction.

        The save is conditional on the enrollment version read at load time.
        When another writer got there first the whole cycle is repeated on
        fresh data, up to `max_write_retries` attempts.

        Raises:
            CourseNotFoundError: If the course does not exist
            ConcurrentUpdateError: If every attempt lost the race
            ProgressError: Whatever the tracker raises (not enrolled, etc.)
        """
        for attempt in range(1, self.max_write_retries + 1):
            course = await self.repository.load_course_for_learner(course_id, user_id)
            if course is None:
                raise CourseNotFoundError

            result = apply(course)
            snapshot = result.enrollment if isinstance(result, QuizResult) else result
            if not snapshot.changed:
                return result

            enrollment = course.enrollments[user_id]
            if await self.repository.save_enrollment(enrollment):
                if snapshot.certificate_newly_issued:
                    logger.info(
                        "certificate_issued",
                        user_id=str(user_id),
                        course_id=str(course_id),
                        issued_at=str(snapshot.certificate_issued_at),
                    )
                return result

            logger.warning(
                "enrollment_update_retry",
                user_id=str(user_id),
                course_id=str(course_id),
                attempt=attempt,
            )

        raise ConcurrentUpdateError

    # ==========================================================================
    # Queries
    # ==========================================================================

    async def _load_enrolled(
        self,
        course_id: UUID,
        user_id: UUID,
    ) -> tuple[Course, Enrollment]:
        course = await self.repository.load_course_for_learner(course_id, user_id)
        if course is None:
            raise CourseNotFoundError

        enrollment = course.get_enrollment(user_id)
        if enrollment is None:
            raise NotEnrolledError
        return course, enrollment

    async def get_course_progress(
        self,
        course_id: UUID,
        user_id: UUID,
    ) -> CourseProgressResponse:
        """Full progress view: every module and lesson with completion state."""
        course, enrollment = await self._load_enrolled(course_id, user_id)

        modules: list[ModuleProgressSummary] = []
        for module in course.modules:
            lessons = []
            for lesson in module.lessons:
                completion = enrollment.get_completion(lesson.id)
                lessons.append(
                    LessonProgressSummary(
                        lesson_id=lesson.id,
                        title=lesson.title,
                        completed=completion is not None,
                        completed_at=completion.completed_at if completion else None,
                        has_quiz=lesson.has_quiz,
                        quiz_score=completion.quiz_score if completion else None,
                    )
                )
            modules.append(
                ModuleProgressSummary(
                    module_id=module.id,
                    title=module.title,
                    lessons_completed=sum(1 for item in lessons if item.completed),
                    lessons_total=len(lessons),
                    lessons=lessons,
                )
            )

        return CourseProgressResponse(
            course_id=course.id,
            overall=enrollment.progress_percent,
            modules=modules,
            certificate_issued=enrollment.certificate_issued,
            certificate_issued_at=enrollment.certificate_issued_at,
        )

    async def get_certificate(
        self,
        course_id: UUID,
        user_id: UUID,
        learner_name: str,
    ) -> tuple[str, str]:
        """Render the learner's certificate.

        Returns:
            Tuple of (html, text)

        Raises:
            CertificateNotIssuedError: If the certificate was not issued yet
        """
        course, enrollment = await self._load_enrolled(course_id, user_id)
        if not enrollment.certificate_issued or enrollment.certificate_issued_at is None:
            raise CertificateNotIssuedError

        return render_certificate(
            learner_name=learner_name,
            course_title=course.title,
            issued_at=enrollment.certificate_issued_at,
            issuer_name=self.certificate_issuer_name,
        )
