"""Cassandra persistence for courses and enrollments.

Course structures are stored as one JSON document per course. Each
enrollment lives in its own row with the completions embedded as JSON and
a `version` counter; enrollment writes are lightweight transactions
conditional on that version (compare-and-set).
"""

import json
from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any
from uuid import UUID

import structlog

from learnhub.courses.models import Course

from .models import Enrollment


if TYPE_CHECKING:
    from cassandra.cluster import Session

logger = structlog.get_logger(__name__)


class CourseRepository:
    """Loads and saves Course aggregates and their enrollments."""

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session."""
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        # Courses
        self._get_course = self.session.prepare(f"""
            SELECT id, title, instructor_id, structure, updated_at
            FROM {self.keyspace}.courses
            WHERE id = ?
        """)

        self._upsert_course = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.courses
            (id, title, instructor_id, structure, updated_at)
            VALUES (?, ?, ?, ?, ?)
        """)

        # Enrollments
        self._list_course_completions = self.session.prepare(f"""
            SELECT completions FROM {self.keyspace}.course_enrollments
            WHERE course_id = ?
        """)

        self._get_enrollment = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.course_enrollments
            WHERE course_id = ? AND user_id = ?
        """)

        self._insert_enrollment = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.course_enrollments
            (course_id, user_id, enrolled_at, completions, progress_percent,
             certificate_issued, certificate_issued_at, version)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            IF NOT EXISTS
        """)

        self._update_enrollment = self.session.prepare(f"""
            UPDATE {self.keyspace}.course_enrollments
            SET completions = ?, progress_percent = ?, certificate_issued = ?,
                certificate_issued_at = ?, version = ?
            WHERE course_id = ? AND user_id = ?
            IF version = ?
        """)

    # ==========================================================================
    # Courses
    # ==========================================================================

    async def get_course(self, course_id: UUID) -> Course | None:
        """Get course structure (without enrollments)."""
        result = await self.session.aexecute(self._get_course, [course_id])
        row = result.one()
        if not row:
            return None

        data: dict[str, Any] = json.loads(row.structure) if row.structure else {}
        data["id"] = row.id
        data.setdefault("title", row.title)
        data["instructor_id"] = row.instructor_id
        return Course.from_dict(data, updated_at=row.updated_at)

    async def save_course(self, course: Course) -> None:
        """Insert or replace a course structure."""
        course.updated_at = datetime.now(UTC)
        await self.session.aexecute(
            self._upsert_course,
            [
                course.id,
                course.title,
                course.instructor_id,
                json.dumps(course.to_dict()),
                course.updated_at,
            ],
        )
        logger.info(
            "course_saved",
            course_id=str(course.id),
            lessons_total=course.total_lessons,
        )

    # ==========================================================================
    # Enrollments
    # ==========================================================================

    async def get_enrollment(self, course_id: UUID, user_id: UUID) -> Enrollment | None:
        """Get enrollment by course and learner."""
        result = await self.session.aexecute(self._get_enrollment, [course_id, user_id])
        row = result.one()
        return self._enrollment_from_row(row) if row else None

    async def get_completed_lesson_ids(self, course_id: UUID) -> set[UUID]:
        """Lessons that at least one enrolled learner has completed."""
        result = await self.session.aexecute(
            self._list_course_completions, [course_id]
        )
        completed: set[UUID] = set()
        for row in result:
            if row.completions:
                completed.update(
                    UUID(item["lesson_id"]) for item in json.loads(row.completions)
                )
        return completed

    async def load_course_for_learner(
        self,
        course_id: UUID,
        user_id: UUID,
    ) -> Course | None:
        """Load a course with the learner's enrollment attached (if any)."""
        course = await self.get_course(course_id)
        if course is None:
            return None

        enrollment = await self.get_enrollment(course_id, user_id)
        if enrollment is not None:
            course.enrollments[user_id] = enrollment
        return course

    async def create_enrollment(self, enrollment: Enrollment) -> bool:
        """Insert a new enrollment.

        Returns:
            False if the learner was already enrolled
        """
        result = await self.session.aexecute(
            self._insert_enrollment,
            [
                enrollment.course_id,
                enrollment.user_id,
                enrollment.enrolled_at,
                self._dump_completions(enrollment),
                enrollment.progress_percent,
                enrollment.certificate_issued,
                enrollment.certificate_issued_at,
                1,
            ],
        )
        if not result.was_applied:
            return False

        enrollment.version = 1
        return True

    async def save_enrollment(self, enrollment: Enrollment) -> bool:
        """Write an enrollment if nobody else changed it since it was read.

        Returns:
            False if the stored version no longer matches `enrollment.version`
        """
        new_version = enrollment.version + 1
        result = await self.session.aexecute(
            self._update_enrollment,
            [
                self._dump_completions(enrollment),
                enrollment.progress_percent,
                enrollment.certificate_issued,
                enrollment.certificate_issued_at,
                new_version,
                enrollment.course_id,
                enrollment.user_id,
                enrollment.version,
            ],
        )
        if not result.was_applied:
            logger.info(
                "enrollment_version_conflict",
                course_id=str(enrollment.course_id),
                user_id=str(enrollment.user_id),
                expected_version=enrollment.version,
            )
            return False

        enrollment.version = new_version
        return True

    @staticmethod
    def _dump_completions(enrollment: Enrollment) -> str:
        return json.dumps(enrollment.completions_to_list())

    @staticmethod
    def _enrollment_from_row(row: Any) -> Enrollment:
        """Create Enrollment instance from Cassandra row."""
        items = json.loads(row.completions) if row.completions else []
        return Enrollment(
            course_id=row.course_id,
            user_id=row.user_id,
            enrolled_at=row.enrolled_at,
            completions=Enrollment.completions_from_list(items),
            progress_percent=row.progress_percent or Decimal(0),
            certificate_issued=bool(row.certificate_issued),
            certificate_issued_at=row.certificate_issued_at,
            version=row.version or 0,
        )
