"""Course structure API endpoints."""

from uuid import UUID

from fastapi import APIRouter

from learnhub.auth.dependencies import CurrentUser, TeacherUser
from learnhub.auth.permissions import UserRole, has_permission
from learnhub.progress.dependencies import ProgressServiceDep, handle_progress_error
from learnhub.progress.tracker import ProgressError

from .schemas import CourseResponse, CourseStructureRequest


router = APIRouter(prefix="/v1/courses", tags=["courses"])


@router.put(
    "/{course_id}",
    response_model=CourseResponse,
    summary="Create or replace course structure",
)
async def put_course(
    course_id: UUID,
    data: CourseStructureRequest,
    progress_service: ProgressServiceDep,
    user: TeacherUser,
) -> CourseResponse:
    """Upload the full module/lesson/quiz structure of a course.

    Requires TEACHER or ADMIN role. Existing courses can only be replaced
    by their instructor or an admin.
    """
    try:
        course = await progress_service.save_course(
            data.to_entity(course_id),
            editor_id=user.id,
            editor_is_admin=has_permission(user.role, UserRole.ADMIN),
        )
    except ProgressError as e:
        raise handle_progress_error(e) from e
    return CourseResponse.from_entity(course)


@router.get(
    "/{course_id}",
    response_model=CourseResponse,
    summary="Get course structure",
)
async def get_course(
    course_id: UUID,
    progress_service: ProgressServiceDep,
    user: CurrentUser,
) -> CourseResponse:
    """Get course structure without quiz answers."""
    try:
        course = await progress_service.get_course(course_id)
    except ProgressError as e:
        raise handle_progress_error(e) from e
    return CourseResponse.from_entity(course)
