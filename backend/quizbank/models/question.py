"""
Question: one bank entry with ordered answer options.
answers: [{"content": "...", "isCorrect": bool, "order"?: int}, ...]; list position is the original index
unless an explicit "order" is present. fields/topics/levels are tag lists used to select quiz questions.
"""
import uuid
from datetime import datetime
from sqlalchemy import Text, DateTime
from sqlalchemy.types import JSON
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from quizbank.database import Base
from quizbank.models.types import UuidType


class Question(Base):
    __tablename__ = "questions"

    id: Mapped[uuid.UUID] = mapped_column(
        UuidType(), primary_key=True, default=uuid.uuid4
    )
    question: Mapped[str] = mapped_column(Text, nullable=False)
    answers: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    explanation: Mapped[str | None] = mapped_column(Text, nullable=True)
    fields: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    topics: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    levels: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def to_record(self) -> dict:
        """Plain dict consumed by the quiz mapping service (id as str)."""
        return {
            "id": str(self.id),
            "question": self.question,
            "answers": list(self.answers or []),
            "explanation": self.explanation,
        }
