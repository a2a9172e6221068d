"""Shared fixtures for the test suite."""

import os


os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("LOG_INCLUDE_CALLER_INFO", "false")

from collections.abc import Callable, Iterator, Sequence  # noqa: E402
from decimal import Decimal  # noqa: E402
from unittest.mock import AsyncMock, Mock  # noqa: E402
from uuid import UUID, uuid4  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from learnhub.auth.security import create_access_token  # noqa: E402
from learnhub.courses.models import Course, Lesson, Module, Question, Quiz  # noqa: E402
from learnhub.progress.models import Enrollment  # noqa: E402
from learnhub.progress.service import ProgressService  # noqa: E402


# ==============================================================================
# Domain Builders
# ==============================================================================


@pytest.fixture
def build_course() -> Callable[..., Course]:
    """Factory for courses with the given number of lessons per module."""

    def _build(
        lesson_counts: Sequence[int] = (1, 1),
        title: str = "Python Basics",
    ) -> Course:
        modules = [
            Module(
                id=uuid4(),
                title=f"Module {m + 1}",
                lessons=[
                    Lesson(id=uuid4(), title=f"Lesson {m + 1}.{n + 1}")
                    for n in range(count)
                ],
            )
            for m, count in enumerate(lesson_counts)
        ]
        return Course(id=uuid4(), title=title, modules=modules)

    return _build


@pytest.fixture
def enroll() -> Callable[[Course, UUID], Enrollment]:
    """Attach a fresh enrollment to a course aggregate."""

    def _enroll(course: Course, learner_id: UUID) -> Enrollment:
        enrollment = Enrollment(course_id=course.id, user_id=learner_id, version=1)
        course.enrollments[learner_id] = enrollment
        return enrollment

    return _enroll


@pytest.fixture
def two_question_quiz() -> Quiz:
    """Two questions worth one point each, correct answers [0, 1]."""
    return Quiz(
        questions=[
            Question(prompt="2 + 2 = ?", options=["4", "5"], correct_answer_index=0),
            Question(prompt="3 + 3 = ?", options=["5", "6"], correct_answer_index=1),
        ],
        passing_score=Decimal(70),
    )


@pytest.fixture
def learner_id() -> UUID:
    """Test learner ID."""
    return uuid4()


# ==============================================================================
# HTTP
# ==============================================================================


@pytest.fixture
def mock_progress_service() -> Mock:
    """ProgressService with every coroutine mocked."""
    service = Mock(spec=ProgressService)
    service.get_course = AsyncMock()
    service.save_course = AsyncMock()
    service.enroll = AsyncMock()
    service.record_lesson_completion = AsyncMock()
    service.submit_quiz = AsyncMock()
    service.get_course_progress = AsyncMock()
    service.get_certificate = AsyncMock()
    return service


@pytest.fixture
def client(mock_progress_service: Mock) -> Iterator[TestClient]:
    """Test client with the progress service replaced by a mock.

    The lifespan is not run, so no database connection is attempted.
    """
    from learnhub.main import app

    app.state.progress_service = mock_progress_service
    yield TestClient(app)
    app.state.progress_service = None


@pytest.fixture
def auth_headers() -> Callable[..., dict[str, str]]:
    """Build an Authorization header for a user."""

    def _headers(
        user_id: UUID,
        role: str = "student",
        name: str = "Ada Lovelace",
    ) -> dict[str, str]:
        token = create_access_token(
            {
                "sub": str(user_id),
                "email": "ada@example.com",
                "role": role,
                "name": name,
            }
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers
