"""
Scoring engine for multiple-choice test sessions
Exact-match grading, shared by the client-side session and server re-scoring
"""
import logging
import math
from typing import Iterable, List, NamedTuple, Sequence

from eduprep.schemas.test import Question, QuestionOutcome, ScoredResult

logger = logging.getLogger(__name__)


class Answer(NamedTuple):
    """A committed (question_id, selected_option_index) pair"""
    question_id: str
    selected_option_index: int


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (Python's round() is banker's)"""
    return int(math.floor(value + 0.5))


def calculate_percentage(score: int, total: int) -> int:
    """round(score / total * 100); an empty attempt scores 0"""
    if total <= 0:
        return 0
    return round_half_up(score / total * 100)


class ScoringService:
    """
    Service for scoring test sessions

    Pure and deterministic: the same questions and answers always produce
    an identical ``ScoredResult``.
    """

    def score(
        self,
        questions: Sequence[Question],
        answers: Iterable,
        time_spent_seconds: int = 0
    ) -> ScoredResult:
        """
        Score recorded answers against the question set

        Args:
            questions: Questions of the session (lookup by id)
            answers: Objects with ``question_id`` and ``selected_option_index``
            time_spent_seconds: Carried through to the result

        Returns:
            ScoredResult with per-question correctness

        Answers referencing a question id that is not in ``questions`` are
        excluded from both ``per_question`` and ``total``.
        """
        by_id = {question.id: question for question in questions}

        per_question: List[QuestionOutcome] = []
        for answer in answers:
            question = by_id.get(answer.question_id)
            if question is None:
                logger.warning(f"Skipping answer for unknown question {answer.question_id}")
                continue

            per_question.append(QuestionOutcome(
                question_id=answer.question_id,
                selected_option_index=answer.selected_option_index,
                correct=self._grade_choice(question, answer.selected_option_index)
            ))

        total = len(per_question)
        score = sum(1 for outcome in per_question if outcome.correct)

        return ScoredResult(
            score=score,
            total=total,
            percentage=calculate_percentage(score, total),
            per_question=per_question,
            time_spent_seconds=max(0, int(time_spent_seconds))
        )

    def _grade_choice(self, question: Question, selected_option_index: int) -> bool:
        """Exact match against the answer key"""
        return selected_option_index == question.correct_answer_index


# Global instance
scoring_service = ScoringService()
