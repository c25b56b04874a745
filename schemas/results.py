from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from models import Difficulty, TestCategory
from schemas.common import CamelModel

# ---------- Submission ----------


class AnswerIn(CamelModel):
    question_id: int
    selected_answer: Optional[int] = Field(default=None, ge=0)
    time_spent: Optional[int] = Field(default=None, ge=0)


class DeviceInfo(CamelModel):
    platform: Optional[str] = None
    version: Optional[str] = None
    user_agent: Optional[str] = None


class SubmissionIn(CamelModel):
    test_id: int
    answers: List[AnswerIn]
    time_spent: int = Field(ge=0)  # seconds
    time_limit: Optional[int] = Field(default=None, ge=0)  # seconds
    device_info: Optional[DeviceInfo] = None


# ---------- Result ----------


class AnswerOut(CamelModel):
    question: int
    selected_answer: Optional[int] = None
    correct_answer: int
    is_correct: bool
    time_spent: int = 0


class QuestionBrief(CamelModel):
    id: int
    question_text: str
    options: List[str]
    correct_answer: int
    category: Optional[str] = None
    difficulty: Optional[Difficulty] = None


class AnswerDetailOut(AnswerOut):
    question_detail: Optional[QuestionBrief] = None


class CategoryPerformance(CamelModel):
    category: str
    correct_answers: int
    total_questions: int
    percentage: float


class DifficultyPerformance(CamelModel):
    difficulty: Difficulty
    correct_answers: int
    total_questions: int
    percentage: float


class TestRef(CamelModel):
    id: int
    title: str
    category: TestCategory
    image: Optional[str] = None
    description: Optional[str] = None


class UserRef(CamelModel):
    id: int
    name: str
    email: str


class TestResultOut(CamelModel):
    id: int
    user_id: int
    test: TestRef
    score: float
    total_questions: int
    correct_answers: int
    wrong_answers: int
    unanswered_questions: int
    time_spent: int
    time_limit: int
    answers: List[AnswerOut]
    category_performance: List[CategoryPerformance]
    difficulty_performance: List[DifficultyPerformance]
    percentile: float
    rank: int
    total_participants: int
    is_completed: bool
    started_at: datetime
    completed_at: datetime
    device_info: Optional[DeviceInfo] = None
    created_at: Optional[datetime] = None


class TestResultDetailOut(TestResultOut):
    answers: List[AnswerDetailOut]  # type: ignore[assignment]
    user: Optional[UserRef] = None


class AdminResultOut(TestResultOut):
    user: UserRef


class ResultPage(CamelModel):
    results: List[TestResultOut]
    total_pages: int
    current_page: int
    total: int


class AdminResultPage(ResultPage):
    results: List[AdminResultOut]  # type: ignore[assignment]


# ---------- Analytics ----------


class ScoreBucket(CamelModel):
    range: str
    min: int
    max: int
    count: int


class CategoryAggregate(CamelModel):
    category: str
    avg_percentage: float
    total_questions: int
    correct_answers: int


class CategoryTotals(CamelModel):
    category: str
    total_questions: int
    correct_answers: int
    percentage: float


class TestPerformance(CamelModel):
    test_id: int
    title: str
    score: float
    completed_at: datetime
    time_spent: int


class UserAnalytics(CamelModel):
    total_tests: int
    avg_score: float
    category_stats: List[CategoryTotals]
    # latest attempt per test
    test_performance: List[TestPerformance]
    recent_results: List[TestResultOut]


class AnalyticsOverview(CamelModel):
    total_results: int
    completed_results: int
    avg_score: float
    score_distribution: List[ScoreBucket]
    top_performers: List[AdminResultOut]
    recent_activity: List[AdminResultOut]
    category_performance: List[CategoryAggregate]
