from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import Field, model_validator

from models import Difficulty, TestCategory
from schemas.common import CamelModel

# ---------- Admin input ----------


class QuestionIn(CamelModel):
    question_text: str = Field(min_length=1)
    options: List[str] = Field(min_length=2)
    correct_answer: int = Field(ge=0)
    explanation: Optional[str] = None
    difficulty: Difficulty = Difficulty.MEDIUM
    category: str = Field(min_length=1)
    image: Optional[str] = None
    option_images: List[str] = []
    image_description: Optional[str] = None
    points: int = Field(default=1, ge=0)
    time_limit: int = Field(default=60, ge=1)

    @model_validator(mode="after")
    def _correct_answer_is_an_option(self) -> "QuestionIn":
        if self.correct_answer >= len(self.options):
            raise ValueError("correctAnswer must be a valid option index")
        return self


class TestIn(CamelModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    category: TestCategory
    difficulty: Difficulty = Difficulty.MEDIUM
    time_limit: int = Field(default=20, ge=1)
    image: Optional[str] = None
    is_active: bool = True
    is_new: bool = False
    # ids of existing questions, order preserved
    questions: List[int] = []


class TestUpdate(CamelModel):
    """Partial edit of a test; only the fields sent are applied."""

    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    category: Optional[TestCategory] = None
    difficulty: Optional[Difficulty] = None
    time_limit: Optional[int] = Field(default=None, ge=1)
    image: Optional[str] = None
    is_active: Optional[bool] = None
    is_new: Optional[bool] = None
    questions: Optional[List[int]] = None

    @model_validator(mode="after")
    def _required_fields_not_cleared(self) -> "TestUpdate":
        nullable = {"description", "image"}
        cleared = [
            name
            for name in self.model_fields_set
            if name not in nullable and getattr(self, name) is None
        ]
        if cleared:
            raise ValueError(f"cannot be null: {', '.join(sorted(cleared))}")
        return self


class BankTestIn(TestIn):
    """A test record in the question bank file, questions embedded inline."""

    questions: List[QuestionIn] = []  # type: ignore[assignment]


# ---------- Public output ----------


class SolvableQuestionOut(CamelModel):
    id: int
    question_text: str
    options: List[str]
    explanation: Optional[str] = None
    difficulty: Difficulty
    category: str
    image: Optional[str] = None
    option_images: List[str] = []
    points: int
    time_limit: int


class QuestionOut(SolvableQuestionOut):
    correct_answer: int


class TestSummaryOut(CamelModel):
    id: int
    title: str
    description: Optional[str] = None
    category: TestCategory
    difficulty: Difficulty
    time_limit: int
    image: Optional[str] = None


class SolvableTestOut(CamelModel):
    test: TestSummaryOut
    questions: List[SolvableQuestionOut]


class TestListItem(TestSummaryOut):
    is_new: bool = False
    participants: int = 0
    rating: float = 0
    question_count: int = 0
    created_at: Optional[datetime] = None


class TestListOut(CamelModel):
    tests: List[TestListItem]
    total: int
    page: int
    total_pages: int


class CategoryStat(CamelModel):
    category: TestCategory
    count: int


class TestOut(TestListItem):
    is_active: bool
    questions: List[QuestionOut]


# ---------- Legacy positional submit ----------


class QuickSubmitRequest(CamelModel):
    answers: List[Optional[int]]
    time_spent: Optional[int] = Field(default=None, ge=0)


class QuickSubmitItem(CamelModel):
    question_id: int
    user_answer: Optional[int] = None
    correct_answer: int
    is_correct: bool
    points: int


class QuickSubmitResponse(CamelModel):
    total_score: int
    correct_answers: int
    total_questions: int
    percentage: float
    time_spent: Optional[int] = None
    results: List[QuickSubmitItem]
