"""
Duplicate check request/response schemas.
"""
from typing import Any
from pydantic import BaseModel, Field


class CheckDuplicatesRequest(BaseModel):
    # Shape is checked in the route so a non-list body is a 400, not a 422.
    questions: Any = None


class SimilarQuestion(BaseModel):
    id: str
    question: str
    similarity: float


class DuplicateResult(BaseModel):
    question_index: int = Field(alias="questionIndex")
    is_duplicate: bool = Field(alias="isDuplicate")
    similar_questions: list[SimilarQuestion] = Field(default_factory=list, alias="similarQuestions")

    class Config:
        populate_by_name = True


class CheckDuplicatesResponse(BaseModel):
    results: list[DuplicateResult]
