"""
Questions API: POST /questions/check-duplicates (advisory similarity check against the stored bank).
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from quizbank.api.deps import get_current_user
from quizbank.config import settings
from quizbank.database import get_db
from quizbank.models.question import Question
from quizbank.models.user import User
from quizbank.schemas.question import CheckDuplicatesRequest, CheckDuplicatesResponse
from quizbank.services.duplicates import find_duplicates

router = APIRouter(prefix="/questions", tags=["questions"])
logger = logging.getLogger(__name__)


def load_corpus(db: Session) -> list[dict]:
    """All stored question texts as {id, question}."""
    rows = db.query(Question.id, Question.question).all()
    return [{"id": str(r.id), "question": r.question} for r in rows]


@router.post("/check-duplicates", response_model=CheckDuplicatesResponse)
def check_duplicates(
    data: CheckDuplicatesRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """For each candidate text, up to N stored questions above the similarity threshold, best first."""
    if not isinstance(data.questions, list):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Questions array is required")
    candidates = [q if isinstance(q, str) else "" for q in data.questions]
    try:
        corpus = load_corpus(db)
    except Exception as e:
        logger.exception("Error checking duplicates: %s", e)
        detail = "Failed to check duplicates"
        if getattr(settings, "debug", False):
            detail = f"Failed to check duplicates: {type(e).__name__}: {e}"
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)
    results = find_duplicates(candidates, corpus)
    flagged = sum(1 for r in results if r["is_duplicate"])
    logger.info("POST /questions/check-duplicates: candidates=%s flagged=%s corpus=%s", len(results), flagged, len(corpus))
    return CheckDuplicatesResponse(results=results)
