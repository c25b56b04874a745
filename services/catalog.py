from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from bank import load_bank
from errors import Inactive, NotFound, Unavailable, ValidationFailed
from models import Question, Test, TestQuestion
from schemas.tests import QuestionIn, TestIn, TestUpdate

_SORTS = {
    "participants": Test.participants.desc(),
    "rating": Test.rating.desc(),
    "createdAt": Test.created_at.desc(),
}

SOLVABLE_FIELDS = (
    "id",
    "question_text",
    "options",
    "explanation",
    "difficulty",
    "category",
    "image",
    "option_images",
    "points",
    "time_limit",
)


def strip_answers(questions: Sequence[Question]) -> List[Dict[str, Any]]:
    """Question views safe to hand out before submission: no ``correct_answer``."""
    return [{f: getattr(q, f) for f in SOLVABLE_FIELDS} for q in questions]


class TestCatalog:
    __test__ = False

    def __init__(self, db: Session, logger: logging.Logger):
        self.db = db
        self.log = logger

    # --- reads ---------------------------------------------------------------

    def _load(self, test_id: int) -> Optional[Test]:
        try:
            return self.db.scalars(
                select(Test)
                .where(Test.id == test_id)
                .options(selectinload(Test.entries).joinedload(TestQuestion.question))
            ).first()
        except SQLAlchemyError as e:
            raise Unavailable(f"db_error: {type(e).__name__}") from e

    def get_test(self, test_id: int) -> Test:
        """Test with its ordered questions, correct answers included."""
        test = self._load(test_id)
        if test is None:
            raise NotFound("Test not found")
        return test

    def get_solvable_test(self, test_id: int) -> Dict[str, Any]:
        test = self.get_test(test_id)
        if not test.is_active:
            raise Inactive("Test is not active")
        return {"test": test, "questions": strip_answers(test.questions)}

    def list_tests(
        self,
        category: Optional[str] = None,
        difficulty: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 50,
        sort: Optional[str] = None,
    ) -> Dict[str, Any]:
        conds = [Test.is_active.is_(True)]
        if category:
            conds.append(Test.category == category)
        if difficulty:
            conds.append(Test.difficulty == difficulty)
        if search:
            pattern = f"%{search}%"
            conds.append(or_(Test.title.ilike(pattern), Test.description.ilike(pattern)))

        try:
            total = self.db.scalar(select(func.count()).select_from(Test).where(*conds)) or 0
            tests = self.db.scalars(
                select(Test)
                .where(*conds)
                .options(selectinload(Test.entries))
                .order_by(_SORTS.get(sort or "createdAt", Test.created_at.desc()), Test.id.desc())
                .limit(limit)
                .offset((page - 1) * limit)
            ).all()
        except SQLAlchemyError as e:
            raise Unavailable(f"db_error: {type(e).__name__}") from e

        return {
            "tests": list(tests),
            "total": total,
            "page": page,
            "total_pages": math.ceil(total / limit) if limit else 0,
        }

    def category_stats(self) -> List[Dict[str, Any]]:
        count = func.count(Test.id).label("count")
        try:
            rows = self.db.execute(
                select(Test.category, count)
                .where(Test.is_active.is_(True))
                .group_by(Test.category)
                .order_by(count.desc(), Test.category)
            ).all()
        except SQLAlchemyError as e:
            raise Unavailable(f"db_error: {type(e).__name__}") from e
        return [{"category": c, "count": n} for c, n in rows]

    # --- writes --------------------------------------------------------------

    def increment_participants(self, test: Test) -> None:
        try:
            test.participants = Test.participants + 1
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise Unavailable(f"db_error: {type(e).__name__}") from e

    def _new_question(self, payload: QuestionIn, creator_id: Optional[int]) -> Question:
        return Question(created_by=creator_id, **payload.model_dump())

    def _commit(self, obj: Any) -> None:
        try:
            self.db.commit()
            self.db.refresh(obj)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise Unavailable(f"db_error: {type(e).__name__}") from e

    def create_question(self, payload: QuestionIn, creator_id: Optional[int] = None) -> Question:
        q = self._new_question(payload, creator_id)
        self.db.add(q)
        self._commit(q)
        self.log.info("Question %s created by user %s", q.id, creator_id)
        return q

    def _check_question_ids(self, ids: List[int]) -> None:
        try:
            found = set(self.db.scalars(select(Question.id).where(Question.id.in_(ids))).all())
        except SQLAlchemyError as e:
            raise Unavailable(f"db_error: {type(e).__name__}") from e
        missing = [i for i in ids if i not in found]
        if missing:
            raise ValidationFailed(f"Unknown question ids: {missing}")

    def _replace_entries(self, test: Test, entries: List[TestQuestion]) -> None:
        # (test_id, position) is the key; old rows must be gone before new ones land
        if test.entries:
            test.entries = []
            self.db.flush()
        test.entries = entries

    def create_test(self, payload: TestIn, creator_id: Optional[int] = None) -> Test:
        ids = list(payload.questions)
        self._check_question_ids(ids)

        test = Test(created_by=creator_id, **payload.model_dump(exclude={"questions"}))
        test.entries = [TestQuestion(position=pos, question_id=qid) for pos, qid in enumerate(ids)]
        self.db.add(test)
        self._commit(test)
        self.log.info("Test %s created by user %s with %d questions", test.id, creator_id, len(ids))
        return self.get_test(test.id)

    def update_test(self, test_id: int, payload: TestUpdate) -> Test:
        """Apply the fields present in ``payload``; a new question list replaces the old one in order."""
        test = self.get_test(test_id)
        if payload.questions is not None:
            self._check_question_ids(list(payload.questions))

        changes = payload.model_dump(exclude_unset=True, exclude={"questions"})
        for name, value in changes.items():
            setattr(test, name, value)

        if payload.questions is not None:
            ids = list(payload.questions)
            try:
                self._replace_entries(
                    test, [TestQuestion(position=pos, question_id=qid) for pos, qid in enumerate(ids)]
                )
            except SQLAlchemyError as e:
                self.db.rollback()
                raise Unavailable(f"db_error: {type(e).__name__}") from e

        self._commit(test)
        self.log.info("Test %s updated (%s)", test.id, ", ".join(sorted(payload.model_fields_set)))
        return self.get_test(test.id)

    def import_bank(self, path: Path, creator_id: Optional[int] = None) -> Tuple[int, int]:
        """
        Load the bank file into the catalog; returns (imported, skipped).

        A bank test is keyed by (title, category). A test already in the
        catalog under that key is updated in place and gets a fresh question
        list, so reloading the same file never duplicates tests. Questions
        it used before stay stored for the results that reference them.
        """
        records, skipped = load_bank(path)
        created = updated = 0
        try:
            for rec in records:
                entries = [
                    TestQuestion(position=pos, question=self._new_question(q, creator_id))
                    for pos, q in enumerate(rec.questions)
                ]
                fields = rec.model_dump(exclude={"questions"})
                test = self.db.scalars(
                    select(Test)
                    .where(Test.title == rec.title, Test.category == rec.category)
                    .order_by(Test.id)
                ).first()
                if test is None:
                    test = Test(created_by=creator_id, **fields)
                    test.entries = entries
                    self.db.add(test)
                    created += 1
                else:
                    for name, value in fields.items():
                        setattr(test, name, value)
                    self._replace_entries(test, entries)
                    updated += 1
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise Unavailable(f"db_error: {type(e).__name__}") from e
        self.log.info(
            "Imported %d tests from %s (%d new, %d updated, %d skipped)",
            len(records),
            path,
            created,
            updated,
            skipped,
        )
        return len(records), skipped
