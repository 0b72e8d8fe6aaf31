"""
Quizzes API: create (secure), get, patch time used, delete, retry, submit, history.
All scoped by current user id. answer_mapping is persisted on the quiz row and never returned.
"""
import logging
import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from quizbank.api.deps import get_current_user
from quizbank.config import settings
from quizbank.database import get_db
from quizbank.models.question import Question
from quizbank.models.quiz import Quiz, QuizQuestion
from quizbank.models.user import User
from quizbank.schemas.quiz import (
    SecureQuizRequest,
    SubmitQuizRequest,
    TimeUsedPatchRequest,
    QuizResponse,
    QuizDetailResponse,
    QuizHistoryResponse,
    HistoryStats,
    QuestionView,
    GradedQuestionView,
    SubmitQuizResponse,
    QuizSummary,
    TimeUsedResponse,
    MessageResponse,
)
from quizbank.services import quiz_mapping

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quizzes", tags=["quizzes"])


def _get_owned_quiz(db: Session, quiz_id: uuid.UUID, user: User) -> Quiz:
    quiz = db.query(Quiz).filter(Quiz.id == quiz_id).first()
    if not quiz:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Quiz not found")
    if quiz.user_id != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    return quiz


def _matches(q: Question, field: str, topic: str, level: str) -> bool:
    return field in (q.fields or []) and topic in (q.topics or []) and level in (q.levels or [])


def _select_questions(db: Session, field: str, topic: str, level: str, count: int) -> list[Question]:
    """First `count` questions (by id) tagged with field, topic and level."""
    out = []
    for q in db.query(Question).order_by(Question.id).all():
        if _matches(q, field, topic, level):
            out.append(q)
            if len(out) >= count:
                break
    return out


def _create_quiz_row(
    db: Session,
    user: User,
    field: str,
    topic: str,
    level: str,
    time_limit: int,
    result: quiz_mapping.QuizMappingResult,
    retry_count: int = 0,
) -> Quiz:
    quiz = Quiz(
        user_id=user.id,
        field=field,
        topic=topic,
        level=level,
        total_questions=len(result.shuffled_questions),
        time_limit=time_limit,
        score=0,
        time_used=0,
        retry_count=retry_count,
        answer_mapping=result.answer_mapping,
    )
    for position, q in enumerate(result.shuffled_questions):
        quiz.items.append(QuizQuestion(question_id=uuid.UUID(q["id"]), position=position))
    db.add(quiz)
    db.commit()
    db.refresh(quiz)
    return quiz


def _quiz_fields(quiz: Quiz) -> dict:
    return {
        "id": str(quiz.id),
        "field": quiz.field,
        "topic": quiz.topic,
        "level": quiz.level,
        "total_questions": quiz.total_questions,
        "time_limit": quiz.time_limit,
        "score": quiz.score,
        "time_used": quiz.time_used,
        "retry_count": quiz.retry_count or 0,
        "created_at": quiz.created_at,
        "completed_at": quiz.completed_at,
    }


def _question_view(q: Question, mapping: list[int] | None, reveal: bool) -> QuestionView:
    """Answers in the order this quiz presented them; isCorrect only when reveal is set."""
    answers = quiz_mapping.canonical_answers(q.answers or [])
    presented = quiz_mapping.answers_in_presented_order(answers, mapping)
    if not reveal:
        presented = quiz_mapping.strip_correctness(presented)
    correct = sum(1 for a in answers if a.get("isCorrect"))
    return QuestionView(
        id=str(q.id),
        question=q.question,
        answers=presented,
        explanation=q.explanation,
        is_multiple_choice=correct > 1,
    )


def _quiz_detail(quiz: Quiz) -> QuizDetailResponse:
    mapping = quiz.answer_mapping or {}
    reveal = quiz.completed_at is not None
    return QuizDetailResponse(
        **_quiz_fields(quiz),
        questions=[_question_view(q, mapping.get(str(q.id)), reveal) for q in quiz.questions],
        user_answers=quiz.user_answers or [],
    )


@router.post("/secure", response_model=QuizResponse, status_code=status.HTTP_201_CREATED)
def create_secure_quiz(
    data: SecureQuizRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Pick questions by field/topic/level, shuffle questions and answers, persist mapping; no isCorrect in response."""
    if not data.field or not data.topic or not data.level or not data.count or not data.time_limit:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing required fields")
    if data.count < 1 or data.time_limit < 1:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="count and timeLimit must be positive")
    count = min(data.count, settings.max_quiz_questions)
    questions = _select_questions(db, data.field, data.topic, data.level, count)
    if not questions:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No questions found for the specified criteria",
        )
    result = quiz_mapping.process_quiz_set([q.to_record() for q in questions])
    quiz = _create_quiz_row(db, current_user, data.field, data.topic, data.level, data.time_limit, result)
    logger.info(
        "POST /quizzes/secure: quiz_id=%s user_id=%s questions=%s", quiz.id, current_user.id, quiz.total_questions
    )
    return QuizResponse(**_quiz_fields(quiz), questions=result.questions_for_ui)


@router.get("/history", response_model=QuizHistoryResponse)
def quiz_history(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Completed quizzes, newest first, with answers revealed in presented order."""
    quizzes = (
        db.query(Quiz)
        .filter(Quiz.user_id == current_user.id, Quiz.completed_at.isnot(None))
        .order_by(Quiz.completed_at.desc())
        .all()
    )
    items = [_quiz_detail(q) for q in quizzes]
    average = quiz_mapping.round_half_up(sum(q.score for q in quizzes) / len(quizzes)) if quizzes else 0
    return QuizHistoryResponse(
        quizzes=items,
        stats=HistoryStats(total_quizzes=len(items), average_score=average),
    )


@router.get("/{quiz_id}", response_model=QuizDetailResponse)
def get_quiz(
    quiz_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Quiz with answers in the order the user saw them; isCorrect only once completed."""
    quiz = _get_owned_quiz(db, quiz_id, current_user)
    logger.debug("GET /quizzes/%s: has_answer_mapping=%s", quiz_id, bool(quiz.answer_mapping))
    return _quiz_detail(quiz)


@router.patch("/{quiz_id}", response_model=TimeUsedResponse)
def update_time_used(
    quiz_id: uuid.UUID,
    data: TimeUsedPatchRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Record time used so far (seconds)."""
    if data.time_used is None or data.time_used < 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid timeUsed value")
    quiz = _get_owned_quiz(db, quiz_id, current_user)
    quiz.time_used = data.time_used
    db.commit()
    db.refresh(quiz)
    return TimeUsedResponse(quiz_id=str(quiz.id), time_used=quiz.time_used)


@router.delete("/{quiz_id}", response_model=MessageResponse)
def delete_quiz(
    quiz_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    quiz = _get_owned_quiz(db, quiz_id, current_user)
    db.delete(quiz)
    db.commit()
    return MessageResponse(message="Quiz deleted successfully")


@router.post("/{quiz_id}/retry", response_model=QuizResponse, status_code=status.HTTP_201_CREATED)
def retry_quiz(
    quiz_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """New attempt over the same questions, reshuffled independently of the original attempt."""
    original = _get_owned_quiz(db, quiz_id, current_user)
    result = quiz_mapping.process_retry_quiz([q.to_record() for q in original.questions])
    quiz = _create_quiz_row(
        db,
        current_user,
        original.field,
        original.topic,
        original.level,
        original.time_limit,
        result,
        retry_count=(original.retry_count or 0) + 1,
    )
    logger.info("POST /quizzes/%s/retry: new quiz_id=%s retry_count=%s", quiz_id, quiz.id, quiz.retry_count)
    return QuizResponse(**_quiz_fields(quiz), questions=result.questions_for_ui)


@router.post("/{quiz_id}/submit", response_model=SubmitQuizResponse)
def submit_quiz(
    quiz_id: uuid.UUID,
    data: SubmitQuizRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Decode shuffled indexes through the stored mapping and grade against ground truth re-read from the DB."""
    quiz = _get_owned_quiz(db, quiz_id, current_user)
    if quiz.completed_at is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Quiz already submitted")
    user_answers = [a.model_dump(by_alias=True) for a in data.user_answers]
    records = [q.to_record() for q in quiz.questions]
    report = quiz_mapping.grade_quiz(records, user_answers, quiz.answer_mapping or {})

    quiz.user_answers = user_answers
    quiz.score = report.score
    quiz.time_used = data.time_used or 0
    quiz.completed_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(quiz)
    logger.info(
        "POST /quizzes/%s/submit: correct=%s/%s score=%s",
        quiz_id, report.correct_count, report.total_questions, report.score,
    )

    graded = []
    for g in report.questions:
        answers = g.question.get("answers") or []
        graded.append(GradedQuestionView(
            id=g.question["id"],
            question=g.question["question"],
            explanation=g.question.get("explanation"),
            answers=g.answers,
            is_multiple_choice=sum(1 for a in answers if a.get("isCorrect")) > 1,
            user_selected_indexes=g.user_selected_indexes,
            is_correct=g.is_correct,
        ))
    return SubmitQuizResponse(
        quiz=QuizSummary(id=str(quiz.id), score=quiz.score, time_used=quiz.time_used, completed_at=quiz.completed_at),
        questions=graded,
        score=report.score,
        correct_count=report.correct_count,
        total_questions=report.total_questions,
    )
