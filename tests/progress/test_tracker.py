"""Tests for ProgressTracker: progress, quiz scoring and certificate gate."""

from datetime import UTC, datetime, timedelta
from decimal import Decimal
from uuid import UUID, uuid4

import pytest

from learnhub.courses.models import Course, Question, Quiz
from learnhub.progress.models import LessonCompletion
from learnhub.progress.tracker import (
    LessonNotFoundError,
    NoQuizForLessonError,
    NotEnrolledError,
    ProgressTracker,
)


NOW = datetime(2026, 3, 14, 12, 0, tzinfo=UTC)


@pytest.fixture
def tracker() -> ProgressTracker:
    """Tracker under test."""
    return ProgressTracker()


def lesson_ids(course: Course) -> list[UUID]:
    """All lesson ids of a course, in order."""
    return [lesson.id for module in course.modules for lesson in module.lessons]


def weighted_quiz() -> Quiz:
    """Three questions worth 60/15/25 points, all answered by option 0."""
    return Quiz(
        questions=[
            Question(prompt="q1", options=["a", "b"], correct_answer_index=0, points=60),
            Question(prompt="q2", options=["a", "b"], correct_answer_index=0, points=15),
            Question(prompt="q3", options=["a", "b"], correct_answer_index=0, points=25),
        ],
        passing_score=Decimal(70),
    )


class TestCalculateProgress:
    """Tests for calculate_progress."""

    def test_fresh_enrollment_is_zero(
        self, tracker, build_course, enroll, learner_id
    ) -> None:
        """A learner without completions has 0% progress."""
        course = build_course((2, 3))
        enroll(course, learner_id)

        assert tracker.calculate_progress(course, learner_id) == 0

    def test_not_enrolled_is_zero(self, tracker, build_course, learner_id) -> None:
        """Unknown learners report 0% instead of failing."""
        course = build_course((2,))

        assert tracker.calculate_progress(course, learner_id) == 0

    def test_course_without_lessons_is_zero(
        self, tracker, build_course, enroll, learner_id
    ) -> None:
        """Zero lessons must not divide by zero."""
        course = build_course(())
        enroll(course, learner_id)

        assert tracker.calculate_progress(course, learner_id) == 0

    def test_two_modules_one_lesson_each(
        self, tracker, build_course, enroll, learner_id
    ) -> None:
        """Completing A gives 50%, completing B gives 100%."""
        course = build_course((1, 1))
        enroll(course, learner_id)
        lesson_a, lesson_b = lesson_ids(course)

        tracker.record_lesson_completion(course, learner_id, lesson_a, now=NOW)
        assert tracker.calculate_progress(course, learner_id) == 50

        tracker.record_lesson_completion(course, learner_id, lesson_b, now=NOW)
        assert tracker.calculate_progress(course, learner_id) == 100

    @pytest.mark.parametrize("lesson_counts", [(1,), (3,), (2, 5), (1, 1, 1, 4)])
    def test_all_lessons_completed_is_hundred(
        self, tracker, build_course, enroll, learner_id, lesson_counts
    ) -> None:
        """Completing every distinct lesson always yields exactly 100."""
        course = build_course(lesson_counts)
        enroll(course, learner_id)

        for lesson_id in lesson_ids(course):
            tracker.record_lesson_completion(course, learner_id, lesson_id, now=NOW)

        assert tracker.calculate_progress(course, learner_id) == Decimal(100)

    def test_unknown_completions_never_exceed_hundred(
        self, tracker, build_course, enroll, learner_id
    ) -> None:
        """Completions for removed lessons cannot push progress past 100."""
        course = build_course((1,))
        enrollment = enroll(course, learner_id)
        for lesson_id in [*lesson_ids(course), uuid4()]:
            enrollment.completions[lesson_id] = LessonCompletion(lesson_id=lesson_id)

        assert tracker.calculate_progress(course, learner_id) == 100


class TestRecordLessonCompletion:
    """Tests for record_lesson_completion."""

    def test_not_enrolled_raises(self, tracker, build_course, learner_id) -> None:
        """Learners must be enrolled."""
        course = build_course((1,))

        with pytest.raises(NotEnrolledError) as exc_info:
            tracker.record_lesson_completion(course, learner_id, lesson_ids(course)[0])

        assert exc_info.value.code == "not_enrolled"

    def test_unknown_lesson_raises(
        self, tracker, build_course, enroll, learner_id
    ) -> None:
        """Lessons outside the course are rejected and nothing is recorded."""
        course = build_course((1,))
        enrollment = enroll(course, learner_id)

        with pytest.raises(LessonNotFoundError):
            tracker.record_lesson_completion(course, learner_id, uuid4())

        assert enrollment.completions == {}

    def test_records_completion_and_progress(
        self, tracker, build_course, enroll, learner_id
    ) -> None:
        """A first completion is stored with the timestamp and no score."""
        course = build_course((4,))
        enrollment = enroll(course, learner_id)
        lesson_id = lesson_ids(course)[0]

        snapshot = tracker.record_lesson_completion(
            course, learner_id, lesson_id, now=NOW
        )

        completion = enrollment.get_completion(lesson_id)
        assert completion is not None
        assert completion.completed_at == NOW
        assert completion.quiz_score is None
        assert enrollment.progress_percent == 25
        assert snapshot.changed is True
        assert snapshot.progress_percent == 25
        assert snapshot.lessons_completed == 1
        assert snapshot.lessons_total == 4
        assert snapshot.certificate_issued is False

    def test_repeat_completion_is_noop(
        self, tracker, build_course, enroll, learner_id
    ) -> None:
        """Completing the same lesson twice keeps one record untouched."""
        course = build_course((2,))
        enrollment = enroll(course, learner_id)
        lesson_id = lesson_ids(course)[0]

        tracker.record_lesson_completion(course, learner_id, lesson_id, now=NOW)
        snapshot = tracker.record_lesson_completion(
            course, learner_id, lesson_id, now=NOW + timedelta(days=1)
        )

        assert snapshot.changed is False
        assert enrollment.lessons_completed == 1
        assert enrollment.get_completion(lesson_id).completed_at == NOW
        assert snapshot.progress_percent == 50

    def test_last_lesson_issues_certificate(
        self, tracker, build_course, enroll, learner_id
    ) -> None:
        """Without quizzes, finishing every lesson issues the certificate."""
        course = build_course((1, 1))
        enrollment = enroll(course, learner_id)
        lesson_a, lesson_b = lesson_ids(course)

        first = tracker.record_lesson_completion(course, learner_id, lesson_a, now=NOW)
        assert first.certificate_issued is False

        second = tracker.record_lesson_completion(course, learner_id, lesson_b, now=NOW)

        assert second.certificate_newly_issued is True
        assert second.certificate_issued is True
        assert enrollment.certificate_issued is True
        assert enrollment.certificate_issued_at == NOW


class TestSubmitQuiz:
    """Tests for submit_quiz."""

    @pytest.fixture
    def quiz_course(self, build_course, two_question_quiz) -> Course:
        """Course with two lessons; the first owns a two-question quiz."""
        course = build_course((2,))
        course.modules[0].lessons[0].quiz = two_question_quiz
        return course

    def test_all_correct_passes(
        self, tracker, quiz_course, enroll, learner_id
    ) -> None:
        """Answers [0, 1] score 100 and pass."""
        enroll(quiz_course, learner_id)
        lesson_id = lesson_ids(quiz_course)[0]

        result = tracker.submit_quiz(quiz_course, learner_id, lesson_id, [0, 1])

        assert result.score == 100
        assert result.passed is True

    def test_half_correct_fails(
        self, tracker, quiz_course, enroll, learner_id
    ) -> None:
        """Answers [0, 0] score 50 and fail a 70% quiz."""
        enroll(quiz_course, learner_id)
        lesson_id = lesson_ids(quiz_course)[0]

        result = tracker.submit_quiz(quiz_course, learner_id, lesson_id, [0, 0])

        assert result.score == 50
        assert result.passed is False

    @pytest.mark.parametrize(
        "answers,expected",
        [
            ([0, 1, 3, 2], 100),  # extra answers ignored
            ([0], 50),  # missing answers are wrong
            ([], 0),
            ([None, 1], 50),
        ],
    )
    def test_answer_length_mismatch_never_raises(
        self, tracker, quiz_course, enroll, learner_id, answers, expected
    ) -> None:
        """Length mismatches degrade to partial scores."""
        enroll(quiz_course, learner_id)
        lesson_id = lesson_ids(quiz_course)[0]

        result = tracker.submit_quiz(quiz_course, learner_id, lesson_id, answers)

        assert result.score == expected

    def test_points_weight_the_score(self, tracker) -> None:
        """Score is a share of points, not of questions."""
        quiz = weighted_quiz()

        assert ProgressTracker.score_quiz(quiz, [0, 1, 1]) == 60
        assert ProgressTracker.score_quiz(quiz, [0, 0, 1]) == 75
        assert tracker.score_quiz(quiz, [1, 1, 0]) == 25

    def test_quiz_without_questions_scores_zero(
        self, tracker, build_course, enroll, learner_id
    ) -> None:
        """Empty quiz scores 0 and fails unless passing score is 0."""
        course = build_course((1, 1))
        strict, lenient = course.modules[0].lessons[0], course.modules[1].lessons[0]
        strict.quiz = Quiz(questions=[], passing_score=Decimal(70))
        lenient.quiz = Quiz(questions=[], passing_score=Decimal(0))
        enroll(course, learner_id)

        strict_result = tracker.submit_quiz(course, learner_id, strict.id, [0])
        lenient_result = tracker.submit_quiz(course, learner_id, lenient.id, [])

        assert strict_result.score == 0
        assert strict_result.passed is False
        assert lenient_result.score == 0
        assert lenient_result.passed is True

    def test_enrollment_checked_before_lesson(
        self, tracker, quiz_course, learner_id
    ) -> None:
        """Outsiders get NotEnrolled even for a bogus lesson."""
        with pytest.raises(NotEnrolledError):
            tracker.submit_quiz(quiz_course, learner_id, uuid4(), [0, 1])

    def test_unknown_lesson_raises(
        self, tracker, quiz_course, enroll, learner_id
    ) -> None:
        """Unknown lessons are rejected."""
        enroll(quiz_course, learner_id)

        with pytest.raises(LessonNotFoundError):
            tracker.submit_quiz(quiz_course, learner_id, uuid4(), [0, 1])

    def test_lesson_without_quiz_raises(
        self, tracker, quiz_course, enroll, learner_id
    ) -> None:
        """Lessons without a quiz cannot be submitted."""
        enrollment = enroll(quiz_course, learner_id)
        lesson_id = lesson_ids(quiz_course)[1]

        with pytest.raises(NoQuizForLessonError) as exc_info:
            tracker.submit_quiz(quiz_course, learner_id, lesson_id, [0])

        assert exc_info.value.code == "no_quiz_for_lesson"
        assert enrollment.completions == {}

    def test_submission_completes_lesson(
        self, tracker, quiz_course, enroll, learner_id
    ) -> None:
        """Submitting a quiz marks its lesson complete."""
        enrollment = enroll(quiz_course, learner_id)
        lesson_id = lesson_ids(quiz_course)[0]

        result = tracker.submit_quiz(
            quiz_course, learner_id, lesson_id, [0, 0], now=NOW
        )

        completion = enrollment.get_completion(lesson_id)
        assert completion.completed_at == NOW
        assert completion.quiz_score == 50
        assert result.enrollment.progress_percent == 50
        assert result.enrollment.changed is True

    def test_resubmission_updates_score_in_place(
        self, tracker, quiz_course, enroll, learner_id
    ) -> None:
        """A second submission replaces the score on the same record."""
        enrollment = enroll(quiz_course, learner_id)
        lesson_id = lesson_ids(quiz_course)[0]

        tracker.record_lesson_completion(quiz_course, learner_id, lesson_id, now=NOW)
        tracker.submit_quiz(quiz_course, learner_id, lesson_id, [0, 0])
        tracker.submit_quiz(
            quiz_course, learner_id, lesson_id, [0, 1], now=NOW + timedelta(hours=1)
        )

        assert enrollment.lessons_completed == 1
        completion = enrollment.get_completion(lesson_id)
        assert completion.quiz_score == 100
        assert completion.completed_at == NOW

    def test_certificate_issued_at_most_once(
        self, tracker, build_course, two_question_quiz, enroll, learner_id
    ) -> None:
        """Two identical passing submissions issue the certificate once."""
        course = build_course((1,))
        course.modules[0].lessons[0].quiz = two_question_quiz
        enrollment = enroll(course, learner_id)
        lesson_id = lesson_ids(course)[0]

        first = tracker.submit_quiz(course, learner_id, lesson_id, [0, 1], now=NOW)
        second = tracker.submit_quiz(
            course, learner_id, lesson_id, [0, 1], now=NOW + timedelta(days=2)
        )

        assert first.enrollment.certificate_newly_issued is True
        assert second.enrollment.certificate_newly_issued is False
        assert second.enrollment.certificate_issued is True
        assert enrollment.certificate_issued_at == NOW

    def test_certificate_never_reverts(
        self, tracker, build_course, two_question_quiz, enroll, learner_id
    ) -> None:
        """A later failing score does not revoke an issued certificate."""
        course = build_course((1,))
        course.modules[0].lessons[0].quiz = two_question_quiz
        enrollment = enroll(course, learner_id)
        lesson_id = lesson_ids(course)[0]

        tracker.submit_quiz(course, learner_id, lesson_id, [0, 1], now=NOW)
        result = tracker.submit_quiz(course, learner_id, lesson_id, [1, 0])

        assert result.passed is False
        assert enrollment.certificate_issued is True
        assert enrollment.certificate_issued_at == NOW


class TestCanIssueCertificate:
    """Tests for the certificate eligibility gate."""

    def test_not_enrolled(self, tracker, build_course, learner_id) -> None:
        """Unknown learners are never eligible."""
        assert tracker.can_issue_certificate(build_course((1,)), learner_id) is False

    def test_partial_progress(self, tracker, build_course, enroll, learner_id) -> None:
        """Less than 100% progress is not eligible."""
        course = build_course((1, 1))
        enroll(course, learner_id)
        tracker.record_lesson_completion(course, learner_id, lesson_ids(course)[0])

        assert tracker.can_issue_certificate(course, learner_id) is False

    def test_course_without_lessons(
        self, tracker, build_course, enroll, learner_id
    ) -> None:
        """An empty course never reaches 100%."""
        course = build_course(())
        enroll(course, learner_id)

        assert tracker.can_issue_certificate(course, learner_id) is False

    def test_failed_quiz_blocks_until_passing_resubmission(
        self, tracker, build_course, enroll, learner_id
    ) -> None:
        """Score 60 < 70 blocks; raising it to 75 issues the certificate."""
        course = build_course((1, 1))
        quiz_lesson = course.modules[1].lessons[0]
        quiz_lesson.quiz = weighted_quiz()
        enrollment = enroll(course, learner_id)

        tracker.record_lesson_completion(
            course, learner_id, course.modules[0].lessons[0].id
        )
        failed = tracker.submit_quiz(course, learner_id, quiz_lesson.id, [0, 1, 1])

        assert failed.score == 60
        assert tracker.calculate_progress(course, learner_id) == 100
        assert tracker.can_issue_certificate(course, learner_id) is False
        assert enrollment.certificate_issued is False

        passed = tracker.submit_quiz(
            course, learner_id, quiz_lesson.id, [0, 0, 1], now=NOW
        )

        assert passed.score == 75
        assert tracker.can_issue_certificate(course, learner_id) is True
        assert passed.enrollment.certificate_newly_issued is True
        assert enrollment.certificate_issued_at == NOW

    def test_quiz_lesson_completed_without_score(
        self, tracker, build_course, two_question_quiz, enroll, learner_id
    ) -> None:
        """A quiz lesson marked complete without a submission fails the gate."""
        course = build_course((1,))
        course.modules[0].lessons[0].quiz = two_question_quiz
        enroll(course, learner_id)

        tracker.record_lesson_completion(course, learner_id, lesson_ids(course)[0])

        assert tracker.calculate_progress(course, learner_id) == 100
        assert tracker.can_issue_certificate(course, learner_id) is False

    def test_unknown_lesson_completion_fails_closed(
        self, tracker, build_course, enroll, learner_id
    ) -> None:
        """A completion for a lesson missing from the course blocks issuance."""
        course = build_course((1,))
        enrollment = enroll(course, learner_id)
        lesson_id = lesson_ids(course)[0]
        enrollment.completions[lesson_id] = LessonCompletion(lesson_id=lesson_id)
        stale_id = uuid4()
        enrollment.completions[stale_id] = LessonCompletion(
            lesson_id=stale_id, quiz_score=Decimal(100)
        )

        assert tracker.can_issue_certificate(course, learner_id) is False
