from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence

from errors import Inactive
from models import Question, TestResult
from schemas.results import AnswerIn, SubmissionIn
from services.catalog import TestCatalog
from services.results import ResultStore


@dataclass
class Grade:
    total_questions: int
    correct_answers: int = 0
    wrong_answers: int = 0
    unanswered_questions: int = 0
    answers: List[Dict[str, Any]] = field(default_factory=list)
    category_performance: List[Dict[str, Any]] = field(default_factory=list)
    difficulty_performance: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def score(self) -> float:
        if not self.total_questions:
            return 0.0
        return 100 * self.correct_answers / self.total_questions


@dataclass(frozen=True)
class Standing:
    rank: int
    percentile: float
    total_participants: int


def _percentage(correct: int, total: int) -> float:
    return 100 * correct / total if total else 0.0


def _breakdown(counts: Dict[str, List[int]], key: str) -> List[Dict[str, Any]]:
    return [
        {
            key: name,
            "correctAnswers": correct,
            "totalQuestions": total,
            "percentage": _percentage(correct, total),
        }
        for name, (correct, total) in counts.items()
    ]


def grade_answers(questions: Sequence[Question], answers: Sequence[AnswerIn]) -> Grade:
    """
    Mark a submission against the test's questions, in test order.

    Answers naming a question outside the test are ignored; for a question
    answered twice the first answer counts. Questions left without an answer
    are unanswered, so correct + wrong + unanswered always equals the
    number of questions.
    """
    by_question: Dict[int, AnswerIn] = {}
    for a in answers:
        by_question.setdefault(a.question_id, a)

    grade = Grade(total_questions=len(questions))
    by_category: Dict[str, List[int]] = {}
    by_difficulty: Dict[str, List[int]] = {}

    for q in questions:
        a = by_question.get(q.id)
        selected = a.selected_answer if a is not None else None
        is_correct = selected is not None and selected == q.correct_answer

        if is_correct:
            grade.correct_answers += 1
        elif selected is not None:
            grade.wrong_answers += 1
        else:
            grade.unanswered_questions += 1

        difficulty = getattr(q.difficulty, "value", q.difficulty)
        for counts, name in ((by_category, q.category), (by_difficulty, difficulty)):
            if not name:
                continue
            c = counts.setdefault(name, [0, 0])
            c[1] += 1
            if is_correct:
                c[0] += 1

        grade.answers.append(
            {
                "question": q.id,
                "selectedAnswer": selected,
                "correctAnswer": q.correct_answer,
                "isCorrect": is_correct,
                "timeSpent": (a.time_spent or 0) if a is not None else 0,
            }
        )

    grade.category_performance = _breakdown(by_category, "category")
    grade.difficulty_performance = _breakdown(by_difficulty, "difficulty")
    return grade


def rank_against(prior_scores: Sequence[float], score: float) -> Standing:
    """
    Place ``score`` among earlier attempts on the same test.

    Ties rank behind the attempts already recorded. With no earlier
    attempts the percentile is 100.
    """
    n = len(prior_scores)
    rank = sum(1 for s in prior_scores if s >= score) + 1
    percentile = 100.0 if n == 0 else 100 * (n - rank + 1) / n
    return Standing(rank=rank, percentile=percentile, total_participants=n + 1)


class ScoringEngine:
    def __init__(self, catalog: TestCatalog, results: ResultStore, logger: logging.Logger):
        self.catalog = catalog
        self.results = results
        self.log = logger

    def submit(
        self,
        user_id: int,
        submission: SubmissionIn,
        ip_address: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> TestResult:
        test = self.catalog.get_test(submission.test_id)
        questions = test.questions

        known = {q.id for q in questions}
        dropped = [a.question_id for a in submission.answers if a.question_id not in known]
        if dropped:
            self.log.debug("Test %s: ignoring answers for unknown questions %s", test.id, dropped)

        grade = grade_answers(questions, submission.answers)
        score = grade.score

        # Snapshot read; concurrent submissions may rank against the same snapshot.
        standing = rank_against(self.results.list_scores_by_test(test.id), score)

        now = now or datetime.now(UTC)
        time_limit = (
            submission.time_limit if submission.time_limit is not None else test.time_limit * 60
        )
        result = TestResult(
            user_id=user_id,
            test_id=test.id,
            score=score,
            total_questions=grade.total_questions,
            correct_answers=grade.correct_answers,
            wrong_answers=grade.wrong_answers,
            unanswered_questions=grade.unanswered_questions,
            time_spent=submission.time_spent,
            time_limit=time_limit,
            answers=grade.answers,
            category_performance=grade.category_performance,
            difficulty_performance=grade.difficulty_performance,
            percentile=standing.percentile,
            rank=standing.rank,
            total_participants=standing.total_participants,
            is_completed=True,
            started_at=now - timedelta(seconds=submission.time_spent),
            completed_at=now,
            device_info=(
                submission.device_info.model_dump(by_alias=True)
                if submission.device_info is not None
                else None
            ),
            ip_address=ip_address,
        )
        saved = self.results.save(result)
        self.log.info(
            "User %s scored %.2f on test %s (rank %d of %d)",
            user_id,
            score,
            test.id,
            standing.rank,
            standing.total_participants,
        )
        return saved

    def quick_submit(
        self, test_id: int, answers: Sequence[Optional[int]], time_spent: Optional[int] = None
    ) -> Dict[str, Any]:
        """Positional scoring: ``answers[i]`` is the choice for the i-th question."""
        test = self.catalog.get_test(test_id)
        if not test.is_active:
            raise Inactive("Test is not active")

        questions = test.questions
        total_score = 0
        correct = 0
        results = []
        for idx, q in enumerate(questions):
            user_answer = answers[idx] if idx < len(answers) else None
            is_correct = user_answer is not None and user_answer == q.correct_answer
            if is_correct:
                total_score += q.points
                correct += 1
            results.append(
                {
                    "question_id": q.id,
                    "user_answer": user_answer,
                    "correct_answer": q.correct_answer,
                    "is_correct": is_correct,
                    "points": q.points if is_correct else 0,
                }
            )

        self.catalog.increment_participants(test)
        return {
            "total_score": total_score,
            "correct_answers": correct,
            "total_questions": len(questions),
            "percentage": round(_percentage(correct, len(questions)), 2),
            "time_spent": time_spent,
            "results": results,
        }
