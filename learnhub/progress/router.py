"""Learner progress API endpoints.

Provides routes for:
- Course enrollment
- Lesson completion
- Quiz submission
- Progress queries and certificate download
"""

from uuid import UUID

from fastapi import APIRouter, status
from fastapi.responses import HTMLResponse

from learnhub.auth.dependencies import CurrentUser

from .dependencies import ProgressServiceDep, handle_progress_error
from .schemas import (
    CourseProgressResponse,
    EnrollmentResponse,
    LessonProgressUpdateResponse,
    QuizSubmissionResponse,
    SubmitQuizRequest,
)
from .tracker import ProgressError


router = APIRouter(prefix="/v1/courses", tags=["progress"])


# ==============================================================================
# Enrollment Endpoints
# ==============================================================================


@router.post(
    "/{course_id}/enroll",
    response_model=EnrollmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Enroll in a course",
)
async def enroll(
    course_id: UUID,
    progress_service: ProgressServiceDep,
    user: CurrentUser,
) -> EnrollmentResponse:
    """Enroll the current user with zero progress."""
    try:
        enrollment = await progress_service.enroll(course_id, user.id)
        return EnrollmentResponse.from_entity(enrollment)
    except ProgressError as e:
        raise handle_progress_error(e) from e


# ==============================================================================
# Lesson Completion Endpoints
# ==============================================================================


@router.post(
    "/{course_id}/lessons/{lesson_id}/progress",
    response_model=LessonProgressUpdateResponse,
    status_code=status.HTTP_200_OK,
    summary="Mark lesson as complete",
)
async def update_lesson_progress(
    course_id: UUID,
    lesson_id: UUID,
    progress_service: ProgressServiceDep,
    user: CurrentUser,
) -> LessonProgressUpdateResponse:
    """Mark a lesson as complete.

    Completing an already completed lesson is a no-op.
    """
    try:
        snapshot = await progress_service.record_lesson_completion(
            course_id=course_id,
            user_id=user.id,
            lesson_id=lesson_id,
        )
        return LessonProgressUpdateResponse.from_snapshot(snapshot)
    except ProgressError as e:
        raise handle_progress_error(e) from e


@router.post(
    "/{course_id}/lessons/{lesson_id}/quiz",
    response_model=QuizSubmissionResponse,
    status_code=status.HTTP_200_OK,
    summary="Submit quiz answers",
)
async def submit_quiz(
    course_id: UUID,
    lesson_id: UUID,
    data: SubmitQuizRequest,
    progress_service: ProgressServiceDep,
    user: CurrentUser,
) -> QuizSubmissionResponse:
    """Score a quiz; also marks the lesson complete."""
    try:
        result = await progress_service.submit_quiz(
            course_id=course_id,
            user_id=user.id,
            lesson_id=lesson_id,
            answers=data.answers,
        )
        return QuizSubmissionResponse.from_result(result)
    except ProgressError as e:
        raise handle_progress_error(e) from e


# ==============================================================================
# Progress Query Endpoints
# ==============================================================================


@router.get(
    "/{course_id}/progress",
    response_model=CourseProgressResponse,
    summary="Get course progress",
)
async def get_course_progress(
    course_id: UUID,
    progress_service: ProgressServiceDep,
    user: CurrentUser,
) -> CourseProgressResponse:
    """Get progress for every module and lesson of a course."""
    try:
        return await progress_service.get_course_progress(course_id, user.id)
    except ProgressError as e:
        raise handle_progress_error(e) from e


@router.get(
    "/{course_id}/certificate",
    response_class=HTMLResponse,
    summary="Download certificate",
)
async def get_certificate(
    course_id: UUID,
    progress_service: ProgressServiceDep,
    user: CurrentUser,
) -> HTMLResponse:
    """Certificate of completion as a printable HTML document."""
    try:
        html_content, _ = await progress_service.get_certificate(
            course_id=course_id,
            user_id=user.id,
            learner_name=user.name or user.email,
        )
    except ProgressError as e:
        raise handle_progress_error(e) from e

    return HTMLResponse(
        content=html_content,
        headers={
            "Content-Disposition": f'attachment; filename="certificate-{course_id}.html"'
        },
    )
