from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from errors import NotFound, Unavailable
from models import Question, TestResult

SCORE_BUCKETS = (0, 20, 40, 60, 80, 100)


def _filters(
    test_id: Optional[int] = None,
    user_id: Optional[int] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
) -> list:
    conds = []
    if test_id is not None:
        conds.append(TestResult.test_id == test_id)
    if user_id is not None:
        conds.append(TestResult.user_id == user_id)
    if date_from is not None:
        conds.append(TestResult.completed_at >= date_from)
    if date_to is not None:
        conds.append(TestResult.completed_at <= date_to)
    return conds


def score_distribution(scores: List[float]) -> List[Dict[str, Any]]:
    """Counts per 20-point bucket; the top bucket includes 100."""
    out = []
    last = len(SCORE_BUCKETS) - 2
    for i, (lo, hi) in enumerate(zip(SCORE_BUCKETS, SCORE_BUCKETS[1:])):
        n = sum(1 for s in scores if lo <= s < hi or (i == last and s == hi))
        out.append({"range": f"{lo}-{hi}", "min": lo, "max": hi, "count": n})
    return out


class ResultStore:
    """Append-only storage of scored attempts."""

    def __init__(self, db: Session, logger: logging.Logger):
        self.db = db
        self.log = logger

    def list_scores_by_test(self, test_id: int) -> List[float]:
        try:
            return list(
                self.db.scalars(
                    select(TestResult.score)
                    .where(TestResult.test_id == test_id)
                    .order_by(TestResult.score.desc(), TestResult.id)
                ).all()
            )
        except SQLAlchemyError as e:
            raise Unavailable(f"db_error: {type(e).__name__}") from e

    def save(self, result: TestResult) -> TestResult:
        try:
            self.db.add(result)
            self.db.commit()
            self.db.refresh(result)
        except SQLAlchemyError as e:
            self.db.rollback()
            self.log.error("Could not store result for test %s: %s", result.test_id, e)
            raise Unavailable(f"db_error: {type(e).__name__}") from e
        return result

    def get_by_id(self, result_id: int) -> TestResult:
        try:
            result = self.db.get(TestResult, result_id)
        except SQLAlchemyError as e:
            raise Unavailable(f"db_error: {type(e).__name__}") from e
        if result is None:
            raise NotFound("Test result not found")
        return result

    def questions_for(self, result: TestResult) -> Dict[int, Question]:
        ids = [a["question"] for a in result.answers or []]
        if not ids:
            return {}
        try:
            rows = self.db.scalars(select(Question).where(Question.id.in_(ids))).all()
        except SQLAlchemyError as e:
            raise Unavailable(f"db_error: {type(e).__name__}") from e
        return {q.id: q for q in rows}

    def _page(self, conds: list, page: int, limit: int) -> Tuple[List[TestResult], int]:
        try:
            total = (
                self.db.scalar(select(func.count()).select_from(TestResult).where(*conds)) or 0
            )
            rows = self.db.scalars(
                select(TestResult)
                .where(*conds)
                .order_by(TestResult.completed_at.desc(), TestResult.id.desc())
                .limit(limit)
                .offset((page - 1) * limit)
            ).all()
        except SQLAlchemyError as e:
            raise Unavailable(f"db_error: {type(e).__name__}") from e
        return list(rows), total

    def list_by_user(
        self, user_id: int, page: int = 1, limit: int = 10, test_id: Optional[int] = None
    ) -> Dict[str, Any]:
        rows, total = self._page(_filters(test_id=test_id, user_id=user_id), page, limit)
        return {
            "results": rows,
            "total_pages": math.ceil(total / limit),
            "current_page": page,
            "total": total,
        }

    def list_all(
        self,
        page: int = 1,
        limit: int = 20,
        test_id: Optional[int] = None,
        user_id: Optional[int] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        rows, total = self._page(_filters(test_id, user_id, date_from, date_to), page, limit)
        return {
            "results": rows,
            "total_pages": math.ceil(total / limit),
            "current_page": page,
            "total": total,
        }

    def user_analytics(
        self,
        user_id: int,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """One user's history: category totals summed over results and the latest score per test."""
        conds = _filters(user_id=user_id, date_from=date_from, date_to=date_to)
        try:
            results = self.db.scalars(
                select(TestResult)
                .where(*conds)
                .order_by(TestResult.completed_at.desc(), TestResult.id.desc())
            ).all()
        except SQLAlchemyError as e:
            raise Unavailable(f"db_error: {type(e).__name__}") from e

        totals: Dict[str, List[int]] = {}
        latest: Dict[int, Dict[str, Any]] = {}
        for r in results:
            for cat in r.category_performance or []:
                t = totals.setdefault(cat["category"], [0, 0])
                t[0] += cat.get("totalQuestions", 0)
                t[1] += cat.get("correctAnswers", 0)
            # newest first, so the first row seen per test is its latest attempt
            latest.setdefault(
                r.test_id,
                {
                    "test_id": r.test_id,
                    "title": r.test.title,
                    "score": r.score,
                    "completed_at": r.completed_at,
                    "time_spent": r.time_spent,
                },
            )

        scores = [r.score for r in results]
        return {
            "total_tests": len(results),
            "avg_score": sum(scores) / len(scores) if scores else 0,
            "category_stats": [
                {
                    "category": name,
                    "total_questions": total,
                    "correct_answers": correct,
                    "percentage": 100 * correct / total if total else 0.0,
                }
                for name, (total, correct) in totals.items()
            ],
            "test_performance": list(latest.values()),
            "recent_results": list(results[:10]),
        }

    def analytics_overview(
        self,
        test_id: Optional[int] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        conds = _filters(test_id=test_id, date_from=date_from, date_to=date_to)
        try:
            rows = self.db.execute(
                select(
                    TestResult.score, TestResult.is_completed, TestResult.category_performance
                ).where(*conds)
            ).all()
            top = self.db.scalars(
                select(TestResult)
                .where(*conds)
                .order_by(TestResult.score.desc(), TestResult.id)
                .limit(10)
            ).all()
            recent = self.db.scalars(
                select(TestResult)
                .where(*conds)
                .order_by(TestResult.completed_at.desc(), TestResult.id.desc())
                .limit(10)
            ).all()
        except SQLAlchemyError as e:
            raise Unavailable(f"db_error: {type(e).__name__}") from e

        scores = [r.score for r in rows]
        per_category: Dict[str, Dict[str, float]] = {}
        for r in rows:
            for cat in r.category_performance or []:
                agg = per_category.setdefault(
                    cat["category"], {"sum_pct": 0.0, "n": 0, "total": 0, "correct": 0}
                )
                agg["sum_pct"] += cat.get("percentage", 0)
                agg["n"] += 1
                agg["total"] += cat.get("totalQuestions", 0)
                agg["correct"] += cat.get("correctAnswers", 0)

        category_performance = sorted(
            (
                {
                    "category": name,
                    "avg_percentage": agg["sum_pct"] / agg["n"],
                    "total_questions": int(agg["total"]),
                    "correct_answers": int(agg["correct"]),
                }
                for name, agg in per_category.items()
            ),
            key=lambda c: c["avg_percentage"],
            reverse=True,
        )

        return {
            "total_results": len(rows),
            "completed_results": sum(1 for r in rows if r.is_completed),
            "avg_score": sum(scores) / len(scores) if scores else 0,
            "score_distribution": score_distribution(scores),
            "top_performers": list(top),
            "recent_activity": list(recent),
            "category_performance": category_performance,
        }
