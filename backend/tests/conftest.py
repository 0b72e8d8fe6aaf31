"""
Test setup: point DATABASE_URL at a throwaway SQLite file before quizbank is imported.
Shared fixtures create users and bank questions directly in the DB.
"""
import os
import tempfile
import uuid

import pytest

_DB_DIR = tempfile.mkdtemp(prefix="quizbank-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_DB_DIR}/test.db"
os.environ["ENV"] = "test"

from quizbank.database import SessionLocal, init_sqlite_db  # noqa: E402
from quizbank.models.question import Question  # noqa: E402
from quizbank.models.user import User  # noqa: E402


def make_user() -> User:
    db = SessionLocal()
    try:
        init_sqlite_db()
        user = User(external_id=f"idp_{uuid.uuid4().hex[:12]}", email="candidate@tests.example.com")
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    finally:
        db.close()


def make_questions(specs: list[tuple[str, list[tuple[str, bool]]]], field: str, topic: str, level: str = "junior") -> list[Question]:
    """specs: [(text, [(content, is_correct), ...]), ...] tagged with field/topic/level."""
    db = SessionLocal()
    try:
        init_sqlite_db()
        out = []
        for text, answers in specs:
            q = Question(
                question=text,
                answers=[{"content": c, "isCorrect": ok} for c, ok in answers],
                explanation=f"Why: {text}",
                fields=[field],
                topics=[topic],
                levels=[level],
            )
            db.add(q)
            out.append(q)
        db.commit()
        for q in out:
            db.refresh(q)
        return out
    finally:
        db.close()


@pytest.fixture
def user():
    return make_user()


@pytest.fixture
def unique_tags():
    """Fresh field/topic per test so question selection never sees other tests' rows."""
    suffix = uuid.uuid4().hex[:8]
    return f"backend-{suffix}", f"http-{suffix}"
