from __future__ import annotations

import enum
from datetime import UTC, datetime
from typing import List, Optional

import sqlalchemy as sa
from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db import Base


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Role(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


class Difficulty(str, enum.Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class TestCategory(str, enum.Enum):
    GENERAL_KNOWLEDGE = "general_knowledge"
    SCIENCE = "science"
    HISTORY = "history"
    SPORTS = "sports"
    MUSIC = "music"
    FILM = "film"
    GEOGRAPHY = "geography"
    LITERATURE = "literature"
    TECHNOLOGY = "technology"


def _str_enum(cls: type[enum.Enum], length: int = 32) -> sa.Enum:
    return sa.Enum(
        cls,
        native_enum=False,
        length=length,
        values_callable=lambda e: [m.value for m in e],
    )


class User(Base):
    __tablename__ = "users"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(128))
    name: Mapped[str] = mapped_column(String(200))
    role: Mapped[Role] = mapped_column(_str_enum(Role, 20), default=Role.USER)
    age: Mapped[str] = mapped_column(String(32), default="")
    gender: Mapped[str] = mapped_column(String(32), default="")
    selected_avatar: Mapped[str] = mapped_column(String(64), default="avatar1.png")
    email_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )


class Question(Base):
    __tablename__ = "questions"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    question_text: Mapped[str] = mapped_column(Text)
    options: Mapped[list] = mapped_column(JSON)
    correct_answer: Mapped[int] = mapped_column(Integer)
    explanation: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    difficulty: Mapped[Difficulty] = mapped_column(
        _str_enum(Difficulty, 10), default=Difficulty.MEDIUM
    )
    category: Mapped[str] = mapped_column(String(64))
    image: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    option_images: Mapped[list] = mapped_column(JSON, default=list)
    image_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    points: Mapped[int] = mapped_column(Integer, default=1)
    time_limit: Mapped[int] = mapped_column(Integer, default=60)  # seconds
    created_by: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


class TestQuestion(Base):
    """Ordered link between a test and the questions it references."""

    __tablename__ = "test_questions"
    __test__ = False
    test_id: Mapped[int] = mapped_column(
        ForeignKey("tests.id", ondelete="CASCADE"), primary_key=True
    )
    position: Mapped[int] = mapped_column(Integer, primary_key=True)
    question_id: Mapped[int] = mapped_column(ForeignKey("questions.id"), index=True)
    question: Mapped[Question] = relationship(lazy="joined")


class Test(Base):
    __tablename__ = "tests"
    __test__ = False  # keep pytest from collecting the model

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(200))
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[TestCategory] = mapped_column(_str_enum(TestCategory))
    difficulty: Mapped[Difficulty] = mapped_column(
        _str_enum(Difficulty, 10), default=Difficulty.MEDIUM
    )
    time_limit: Mapped[int] = mapped_column(Integer, default=20)  # minutes
    image: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    is_new: Mapped[bool] = mapped_column(Boolean, default=False)
    participants: Mapped[int] = mapped_column(Integer, default=0)
    rating: Mapped[float] = mapped_column(Float, default=0)
    rating_count: Mapped[int] = mapped_column(Integer, default=0)
    created_by: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    entries: Mapped[List[TestQuestion]] = relationship(
        order_by=TestQuestion.position,
        cascade="all, delete-orphan",
    )

    @property
    def questions(self) -> List[Question]:
        return [e.question for e in self.entries]

    @property
    def question_count(self) -> int:
        return len(self.entries)


class TestResult(Base):
    __tablename__ = "test_results"
    __test__ = False
    __table_args__ = (
        sa.Index("ix_test_results_test_id_score", "test_id", "score"),
        sa.Index("ix_test_results_user_id_created_at", "user_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    test_id: Mapped[int] = mapped_column(ForeignKey("tests.id"), index=True)
    score: Mapped[float] = mapped_column(Float)
    total_questions: Mapped[int] = mapped_column(Integer)
    correct_answers: Mapped[int] = mapped_column(Integer)
    wrong_answers: Mapped[int] = mapped_column(Integer)
    unanswered_questions: Mapped[int] = mapped_column(Integer, default=0)
    time_spent: Mapped[int] = mapped_column(Integer)  # seconds
    time_limit: Mapped[int] = mapped_column(Integer)  # seconds
    answers: Mapped[list] = mapped_column(JSON, default=list)
    category_performance: Mapped[list] = mapped_column(JSON, default=list)
    difficulty_performance: Mapped[list] = mapped_column(JSON, default=list)
    percentile: Mapped[float] = mapped_column(Float)
    rank: Mapped[int] = mapped_column(Integer)
    total_participants: Mapped[int] = mapped_column(Integer)
    is_completed: Mapped[bool] = mapped_column(Boolean, default=True)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    completed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    device_info: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    ip_address: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    test: Mapped[Test] = relationship(lazy="joined")
    user: Mapped[User] = relationship(lazy="joined")
