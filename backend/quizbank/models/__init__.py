"""
SQLAlchemy models. Import here so Alembic and app can use them.
"""
from quizbank.models.user import User
from quizbank.models.question import Question
from quizbank.models.quiz import Quiz, QuizQuestion

__all__ = ["User", "Question", "Quiz", "QuizQuestion"]
