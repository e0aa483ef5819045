"""Quiz attempt grading tests (SQLite)."""

import pytest
from fastapi import HTTPException

from learnpath.models.learning_plan import Track
from learnpath.schemas.quiz import QuizAnswer, QuizCreate
from learnpath.services import curriculum, quiz_service


def _quiz(title: str) -> QuizCreate:
    return QuizCreate(
        title=title,
        description="Three questions about big-O",
        questions=[
            {"question": "Lookup in a hash map?", "options": ["O(1)", "O(n)"], "correct_answer": "O(1)"},
            {"question": "Binary search cost?", "options": ["O(log n)", "O(n)"], "correct_answer": "O(log n)"},
            {"question": "Bubble sort worst case?", "options": ["O(n^2)", "O(n)"], "correct_answer": "O(n^2)"},
        ],
    )


@pytest.fixture
async def quizzes(db, sql_engine, owner):
    plan = (await sql_engine.create_plan(owner["id"], Track.GENERIC, 2)).value
    first = await curriculum.add_quiz(db, plan.daily_plans[0].id, owner, _quiz("Complexity one"))
    second = await curriculum.add_quiz(db, plan.daily_plans[1].id, owner, _quiz("Complexity two"))
    return first, second


class TestSubmitAttempt:
    async def test_unanswered_questions_count_as_wrong(self, db, owner, quizzes):
        quiz, _ = quizzes
        questions = quiz.questions

        attempt = await quiz_service.submit_attempt(
            db,
            quiz.id,
            owner,
            [
                QuizAnswer(question_id=questions[0].id, selected_answer="O(1)"),
                QuizAnswer(question_id=questions[1].id, selected_answer="O(n)"),
            ],
        )

        assert attempt.score == 33.33
        assert attempt.is_completed is True
        assert sorted((r.question_id, r.is_correct) for r in attempt.responses) == [
            (questions[0].id, True),
            (questions[1].id, False),
        ]

    async def test_answer_from_another_quiz_rejected(self, db, owner, quizzes):
        quiz, other = quizzes

        with pytest.raises(HTTPException) as exc_info:
            await quiz_service.submit_attempt(
                db,
                quiz.id,
                owner,
                [QuizAnswer(question_id=other.questions[0].id, selected_answer="O(1)")],
            )

        assert exc_info.value.status_code == 400
        assert "does not belong to this quiz" in exc_info.value.detail
        assert await quiz_service.list_attempts(db, quiz.id, owner) == []

    async def test_duplicate_answers_rejected(self, db, owner, quizzes):
        quiz, _ = quizzes
        question_id = quiz.questions[0].id

        with pytest.raises(HTTPException) as exc_info:
            await quiz_service.submit_attempt(
                db,
                quiz.id,
                owner,
                [
                    QuizAnswer(question_id=question_id, selected_answer="O(1)"),
                    QuizAnswer(question_id=question_id, selected_answer="O(n)"),
                ],
            )

        assert exc_info.value.status_code == 400

    async def test_other_user_forbidden(self, db, stranger, quizzes):
        quiz, _ = quizzes

        with pytest.raises(HTTPException) as exc_info:
            await quiz_service.get_quiz_for_user(db, quiz.id, stranger)

        assert exc_info.value.status_code == 403

    async def test_attempt_history(self, db, owner, quizzes):
        quiz, _ = quizzes
        answers = [QuizAnswer(question_id=q.id, selected_answer=q.correct_answer) for q in quiz.questions]

        first = await quiz_service.submit_attempt(db, quiz.id, owner, answers[:1])
        second = await quiz_service.submit_attempt(db, quiz.id, owner, answers)

        history = await quiz_service.list_attempts(db, quiz.id, owner)

        assert [a.id for a in history] == [second.id, first.id]
        assert second.score == 100.0
