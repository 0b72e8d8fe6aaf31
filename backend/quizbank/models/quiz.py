"""
Quiz: one attempt over a fixed set of questions, in the shuffled order shown to the user.
answer_mapping: {question_id: [original_index, ...]} indexed by shuffled position; must be persisted
with the attempt so submissions can be decoded. Never returned to the browser.
"""
import uuid
from datetime import datetime
from sqlalchemy import String, Integer, Float, DateTime, ForeignKey
from sqlalchemy.types import JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from quizbank.database import Base
from quizbank.models.types import UuidType


class QuizQuestion(Base):
    """Association row: question at `position` in the quiz's presented order."""
    __tablename__ = "quiz_questions"

    quiz_id: Mapped[uuid.UUID] = mapped_column(
        UuidType(), ForeignKey("quizzes.id", ondelete="CASCADE"), primary_key=True
    )
    question_id: Mapped[uuid.UUID] = mapped_column(
        UuidType(), ForeignKey("questions.id", ondelete="CASCADE"), primary_key=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)

    quiz = relationship("Quiz", back_populates="items")
    question = relationship("Question")


class Quiz(Base):
    __tablename__ = "quizzes"

    id: Mapped[uuid.UUID] = mapped_column(
        UuidType(), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UuidType(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    field: Mapped[str] = mapped_column(String(255), nullable=False)
    topic: Mapped[str] = mapped_column(String(255), nullable=False)
    level: Mapped[str] = mapped_column(String(100), nullable=False)
    total_questions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    time_limit: Mapped[int] = mapped_column(Integer, nullable=False, default=0)  # seconds
    score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)  # 0-10
    time_used: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    retry_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    answer_mapping: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    user_answers: Mapped[list | None] = mapped_column(JSON, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="quizzes")
    items = relationship(
        "QuizQuestion",
        back_populates="quiz",
        cascade="all, delete-orphan",
        order_by="QuizQuestion.position",
    )

    @property
    def questions(self) -> list:
        """Questions in presented order."""
        return [item.question for item in self.items]
