"""
API tests for quizzes router: secure create, get, retry, submit, history, patch, delete.
Uses FastAPI TestClient with get_current_user overridden; questions are seeded directly in the DB.
Requires: fastapi, httpx.
"""
import uuid

import pytest

try:
    from fastapi.testclient import TestClient
    from quizbank.main import app
    from quizbank.api.deps import get_current_user
    from quizbank.database import SessionLocal
    from quizbank.models.quiz import Quiz
    from quizbank.models.user import User
    from quizbank.services.auth import create_access_token
    _API_DEPS_LOADED = True
except ImportError:
    _API_DEPS_LOADED = False
    TestClient = app = get_current_user = None
    SessionLocal = Quiz = User = create_access_token = None  # type: ignore[misc, assignment]

from conftest import make_questions, make_user

pytestmark = pytest.mark.skipif(
    not _API_DEPS_LOADED,
    reason="fastapi/httpx not installed",
)

BANK = [
    ("What does HTTP 404 mean?", [("Server error", False), ("Not found", True), ("Redirect", False), ("OK", False)]),
    ("Which are idempotent HTTP methods?", [("PUT", True), ("POST", False), ("DELETE", True), ("PATCH", False)]),
    ("What does REST stand for?", [("Representational State Transfer", True), ("Remote Execution", False)]),
]


def _override_for(user):
    def override_get_current_user():
        db = SessionLocal()
        try:
            u = db.query(User).filter(User.id == user.id).first()
            if not u:
                raise RuntimeError("Test user not found")
            return u
        finally:
            db.close()
    return override_get_current_user


@pytest.fixture
def bank(unique_tags):
    field, topic = unique_tags
    make_questions(BANK, field, topic)
    return field, topic


@pytest.fixture
def client_with_auth(user):
    app.dependency_overrides[get_current_user] = _override_for(user)
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.pop(get_current_user, None)


def _create(client, field, topic, count=10):
    r = client.post(
        "/quizzes/secure",
        json={"field": field, "topic": topic, "level": "junior", "count": count, "timeLimit": 600},
    )
    assert r.status_code == 201, r.text
    return r.json()


def _correct_selection(question):
    """Shuffled indexes of the correct answers, found by content."""
    truth = {text: {c for c, ok in answers if ok} for text, answers in BANK}
    correct = truth[question["question"]]
    return [i for i, a in enumerate(question["answers"]) if a["content"] in correct]


def test_secure_quiz_hides_correctness(client_with_auth, bank):
    field, topic = bank
    data = _create(client_with_auth, field, topic)
    assert data["totalQuestions"] == 3
    assert data["retryCount"] == 0
    assert "answerMapping" not in data and "answer_mapping" not in data
    for q in data["questions"]:
        for a in q["answers"]:
            assert set(a) == {"content"}
    multi = {q["question"]: q["isMultipleChoice"] for q in data["questions"]}
    assert multi["Which are idempotent HTTP methods?"] is True
    assert multi["What does HTTP 404 mean?"] is False


def test_secure_quiz_persists_mapping(client_with_auth, bank):
    field, topic = bank
    data = _create(client_with_auth, field, topic)
    db = SessionLocal()
    try:
        quiz = db.query(Quiz).filter(Quiz.id == uuid.UUID(data["id"])).first()
        assert set(quiz.answer_mapping) == {q["id"] for q in data["questions"]}
        assert [str(q.id) for q in quiz.questions] == [q["id"] for q in data["questions"]]
        for q in quiz.questions:
            assert sorted(quiz.answer_mapping[str(q.id)]) == list(range(len(q.answers)))
    finally:
        db.close()


def test_secure_quiz_respects_count(client_with_auth, bank):
    field, topic = bank
    data = _create(client_with_auth, field, topic, count=2)
    assert data["totalQuestions"] == 2
    assert len(data["questions"]) == 2


def test_secure_quiz_missing_fields(client_with_auth):
    r = client_with_auth.post("/quizzes/secure", json={"field": "backend", "topic": "http"})
    assert r.status_code == 400
    assert r.json()["detail"] == "Missing required fields"


def test_secure_quiz_no_questions(client_with_auth):
    r = client_with_auth.post(
        "/quizzes/secure",
        json={"field": "nope", "topic": "nothing", "level": "junior", "count": 5, "timeLimit": 600},
    )
    assert r.status_code == 404


def test_get_quiz_before_and_after_submit(client_with_auth, bank):
    field, topic = bank
    created = _create(client_with_auth, field, topic)
    r = client_with_auth.get(f"/quizzes/{created['id']}")
    assert r.status_code == 200
    before = r.json()
    assert [q["id"] for q in before["questions"]] == [q["id"] for q in created["questions"]]
    for q_before, q_created in zip(before["questions"], created["questions"]):
        assert q_before["answers"] == q_created["answers"]
        assert all("isCorrect" not in a for a in q_before["answers"])

    answers = [{"questionId": q["id"], "answerIndex": _correct_selection(q)} for q in created["questions"]]
    assert client_with_auth.post(f"/quizzes/{created['id']}/submit", json={"userAnswers": answers, "timeUsed": 42}).status_code == 200

    after = client_with_auth.get(f"/quizzes/{created['id']}").json()
    assert after["completedAt"] is not None
    for q in after["questions"]:
        assert all("isCorrect" in a for a in q["answers"])
        selected = next(a["answerIndex"] for a in answers if a["questionId"] == q["id"])
        assert [i for i, a in enumerate(q["answers"]) if a["isCorrect"]] == selected


def test_submit_all_correct(client_with_auth, bank):
    field, topic = bank
    created = _create(client_with_auth, field, topic)
    answers = [{"questionId": q["id"], "answerIndex": _correct_selection(q)} for q in created["questions"]]
    r = client_with_auth.post(f"/quizzes/{created['id']}/submit", json={"userAnswers": answers, "timeUsed": 120})
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["correctCount"] == 3
    assert data["totalQuestions"] == 3
    assert data["score"] == 10
    assert data["quiz"]["timeUsed"] == 120
    for q in data["questions"]:
        assert q["isCorrect"] is True
        sent = next(a["answerIndex"] for a in answers if a["questionId"] == q["id"])
        assert q["userSelectedIndexes"] == sent


def test_submit_partial_multi_select_is_wrong(client_with_auth, bank):
    field, topic = bank
    created = _create(client_with_auth, field, topic)
    answers = []
    for q in created["questions"]:
        selection = _correct_selection(q)
        if q["isMultipleChoice"]:
            selection = selection[:1]
        answers.append({"questionId": q["id"], "answerIndex": selection})
    data = client_with_auth.post(f"/quizzes/{created['id']}/submit", json={"userAnswers": answers}).json()
    assert data["correctCount"] == 2
    assert data["score"] == 7
    graded = {q["question"]: q["isCorrect"] for q in data["questions"]}
    assert graded["Which are idempotent HTTP methods?"] is False


def test_submit_twice_conflicts(client_with_auth, bank):
    field, topic = bank
    created = _create(client_with_auth, field, topic)
    assert client_with_auth.post(f"/quizzes/{created['id']}/submit", json={"userAnswers": []}).status_code == 200
    r = client_with_auth.post(f"/quizzes/{created['id']}/submit", json={"userAnswers": []})
    assert r.status_code == 409


def test_retry_creates_new_attempt(client_with_auth, bank):
    field, topic = bank
    created = _create(client_with_auth, field, topic)
    r = client_with_auth.post(f"/quizzes/{created['id']}/retry")
    assert r.status_code == 201, r.text
    retry = r.json()
    assert retry["id"] != created["id"]
    assert retry["retryCount"] == 1
    assert sorted(q["id"] for q in retry["questions"]) == sorted(q["id"] for q in created["questions"])
    for q in retry["questions"]:
        assert all(set(a) == {"content"} for a in q["answers"])
    answers = [{"questionId": q["id"], "answerIndex": _correct_selection(q)} for q in retry["questions"]]
    graded = client_with_auth.post(f"/quizzes/{retry['id']}/submit", json={"userAnswers": answers}).json()
    assert graded["score"] == 10


def test_history_lists_completed_only(client_with_auth, bank):
    field, topic = bank
    done = _create(client_with_auth, field, topic)
    _create(client_with_auth, field, topic)
    answers = [{"questionId": q["id"], "answerIndex": _correct_selection(q)} for q in done["questions"]]
    client_with_auth.post(f"/quizzes/{done['id']}/submit", json={"userAnswers": answers})
    r = client_with_auth.get("/quizzes/history")
    assert r.status_code == 200
    data = r.json()
    assert [q["id"] for q in data["quizzes"]] == [done["id"]]
    assert data["stats"] == {"totalQuizzes": 1, "averageScore": 10}


def test_patch_time_used(client_with_auth, bank):
    field, topic = bank
    created = _create(client_with_auth, field, topic)
    r = client_with_auth.patch(f"/quizzes/{created['id']}", json={"timeUsed": 75})
    assert r.status_code == 200
    assert r.json() == {"success": True, "quizId": created["id"], "timeUsed": 75}
    assert client_with_auth.patch(f"/quizzes/{created['id']}", json={"timeUsed": -1}).status_code == 400
    assert client_with_auth.patch(f"/quizzes/{created['id']}", json={}).status_code == 400


def test_delete_quiz(client_with_auth, bank):
    field, topic = bank
    created = _create(client_with_auth, field, topic)
    r = client_with_auth.delete(f"/quizzes/{created['id']}")
    assert r.status_code == 200
    assert client_with_auth.get(f"/quizzes/{created['id']}").status_code == 404


def test_other_users_quiz_is_forbidden(client_with_auth, bank):
    field, topic = bank
    created = _create(client_with_auth, field, topic)
    app.dependency_overrides[get_current_user] = _override_for(make_user())
    assert client_with_auth.get(f"/quizzes/{created['id']}").status_code == 403
    assert client_with_auth.post(f"/quizzes/{created['id']}/retry").status_code == 403


def test_unknown_quiz_404(client_with_auth):
    assert client_with_auth.get(f"/quizzes/{uuid.uuid4()}").status_code == 404


def test_bearer_token_auth(user):
    with TestClient(app) as c:
        assert c.get("/quizzes/history").status_code == 401
        assert c.get("/quizzes/history", headers={"Authorization": "Bearer not-a-jwt"}).status_code == 401
        token = create_access_token(user.external_id)
        assert c.get("/quizzes/history", headers={"Authorization": f"Bearer {token}"}).status_code == 200
        stranger = create_access_token("idp_unknown_user")
        r = c.get("/quizzes/history", headers={"Authorization": f"Bearer {stranger}"})
        assert r.status_code == 404
        assert r.json()["detail"] == "User not found"
