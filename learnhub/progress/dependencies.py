"""FastAPI dependencies for progress tracking.

Provides dependency injection for:
- Progress service
- Error translation to HTTP responses
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import ProgressService
from .tracker import ProgressError


async def get_progress_service(request: Request) -> ProgressService:
    """Get progress service from app state.

    Raises:
        HTTPException(503): If the service was not initialized (no database)
    """
    service = getattr(request.app.state, "progress_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Progress service not available",
        )
    return service


# Type alias for dependency injection
ProgressServiceDep = Annotated[ProgressService, Depends(get_progress_service)]


PROGRESS_ERROR_STATUS = {
    "not_enrolled": status.HTTP_403_FORBIDDEN,
    "lesson_not_found": status.HTTP_404_NOT_FOUND,
    "no_quiz_for_lesson": status.HTTP_400_BAD_REQUEST,
    "course_not_found": status.HTTP_404_NOT_FOUND,
    "already_enrolled": status.HTTP_409_CONFLICT,
    "concurrent_update": status.HTTP_409_CONFLICT,
    "certificate_not_issued": status.HTTP_404_NOT_FOUND,
    "not_course_owner": status.HTTP_403_FORBIDDEN,
    "lessons_in_use": status.HTTP_409_CONFLICT,
}


def handle_progress_error(error: ProgressError) -> HTTPException:
    """Convert progress errors to HTTP exceptions."""
    status_code = PROGRESS_ERROR_STATUS.get(
        error.code, status.HTTP_500_INTERNAL_SERVER_ERROR
    )
    return HTTPException(status_code=status_code, detail=error.message)
