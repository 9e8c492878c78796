# services/assessment/scorer.py
"""Scoring utilities for the Assessment service.

Functions:
- percent_of: half-up integer percentage of earned over total points.
- score_question: outcome of one question against the answer sheet.
- score_attempt: pure aggregation of a quiz attempt into a `ScoreResult`.
- score_quiz: load the quiz and its questions from the store, then score.
"""

import logging
from typing import Mapping, Sequence

from packages.common.errors import InternalError, QuestionFetchFailed, QuizNotFound
from packages.schemas.assessment import AnswerSheet, QuestionResult, ScoreResult
from packages.store.models import Question, Quiz
from packages.store.repo import DataStoreGateway, StoreError

log = logging.getLogger("softai.assessment")


def percent_of(earned: int, total: int) -> int:
    """Return `round(100 * earned / total)` with ties rounded up, or 0 when `total <= 0`.

    Uses integer arithmetic so 1/8 (12.5) gives 13 and 5/8 (62.5) gives 63.
    """
    if total <= 0:
        return 0
    return (200 * earned + total) // (2 * total)


def score_question(question: Question, position: int, answers: AnswerSheet) -> QuestionResult:
    """Score the question sitting at `position` in quiz order."""
    submitted = answers.choice_for(position)
    correct = submitted == question.correct_index
    return QuestionResult(
        question_id=question.id,
        correct=correct,
        explanation=question.explanation or "",
        points_earned=question.points if correct else 0,
        correct_index=question.correct_index,
        user_answer=submitted,
    )


def score_attempt(quiz: Quiz, questions: Sequence[Question], answers: AnswerSheet) -> ScoreResult:
    """Aggregate per-question outcomes into a `ScoreResult`.

    `questions` must already be in quiz order; the answer for the i-th question
    is the one submitted under position i, whatever the question's id.
    """
    total_points = 0
    earned_points = 0
    results = []
    for position, question in enumerate(questions):
        total_points += question.points
        outcome = score_question(question, position, answers)
        earned_points += outcome.points_earned
        results.append(outcome)

    score_percent = percent_of(earned_points, total_points)
    return ScoreResult(
        score_percent=score_percent,
        passed=score_percent >= quiz.pass_score_percent,
        per_question_results=results,
        total_points=total_points,
        earned_points=earned_points,
    )


async def score_quiz(gateway: DataStoreGateway, quiz_id: str, user_answers: Mapping[str, int]) -> ScoreResult:
    """Load `quiz_id` with its questions and score `user_answers` against them.

    Raises:
        QuizNotFound: the quiz does not exist.
        QuestionFetchFailed: the question set could not be loaded.
        InternalError: the quiz lookup itself failed.
    """
    try:
        quiz = await gateway.get_quiz(quiz_id)
    except StoreError as exc:
        raise InternalError("Failed to fetch quiz") from exc
    if quiz is None:
        raise QuizNotFound()

    try:
        questions = await gateway.list_questions(quiz_id)
    except StoreError as exc:
        raise QuestionFetchFailed() from exc

    result = score_attempt(quiz, questions, AnswerSheet.from_mapping(user_answers))
    log.info(
        "quiz scored",
        extra={"ctx": {"quiz_id": quiz_id, "score_percent": result.score_percent, "passed": result.passed}},
    )
    return result
