"""
Quiz request/response schemas. Wire names are camelCase (aliases); responses serialize by alias.
isCorrect is omitted from an answer unless explicitly revealed.
"""
from datetime import datetime
from pydantic import BaseModel, Field, field_validator, model_serializer


class AnswerView(BaseModel):
    content: str
    is_correct: bool | None = Field(default=None, alias="isCorrect")

    class Config:
        populate_by_name = True

    @model_serializer(mode="wrap")
    def _omit_unrevealed(self, handler):
        data = handler(self)
        if self.is_correct is None:
            data.pop("isCorrect", None)
            data.pop("is_correct", None)
        return data


class QuestionView(BaseModel):
    id: str
    question: str
    answers: list[AnswerView]
    explanation: str | None = None
    is_multiple_choice: bool = Field(default=False, alias="isMultipleChoice")

    class Config:
        populate_by_name = True


class GradedQuestionView(QuestionView):
    user_selected_indexes: list[int] = Field(default_factory=list, alias="userSelectedIndexes")
    is_correct: bool = Field(default=False, alias="isCorrect")


class UserAnswer(BaseModel):
    question_id: str = Field(alias="questionId")
    answer_index: list[int] = Field(default_factory=list, alias="answerIndex")

    class Config:
        populate_by_name = True

    @field_validator("answer_index", mode="before")
    @classmethod
    def single_index_as_list(cls, v):
        if v is None:
            return []
        if isinstance(v, int) and not isinstance(v, bool):
            return [v]
        return v


class SecureQuizRequest(BaseModel):
    """All fields are required; missing ones are reported as 400 by the route."""
    field: str | None = None
    topic: str | None = None
    level: str | None = None
    count: int | None = None
    time_limit: int | None = Field(default=None, alias="timeLimit")

    class Config:
        populate_by_name = True


class TimeUsedPatchRequest(BaseModel):
    time_used: float | None = Field(default=None, alias="timeUsed")

    class Config:
        populate_by_name = True


class SubmitQuizRequest(BaseModel):
    user_answers: list[UserAnswer] = Field(default_factory=list, alias="userAnswers")
    time_used: float | None = Field(default=None, alias="timeUsed")

    class Config:
        populate_by_name = True


class QuizResponse(BaseModel):
    id: str
    field: str
    topic: str
    level: str
    total_questions: int = Field(alias="totalQuestions")
    time_limit: int = Field(alias="timeLimit")
    score: int
    time_used: float = Field(alias="timeUsed")
    retry_count: int = Field(alias="retryCount")
    created_at: datetime | None = Field(default=None, alias="createdAt")
    completed_at: datetime | None = Field(default=None, alias="completedAt")
    questions: list[QuestionView]

    class Config:
        populate_by_name = True


class QuizDetailResponse(QuizResponse):
    user_answers: list[UserAnswer] = Field(default_factory=list, alias="userAnswers")


class QuizSummary(BaseModel):
    id: str
    score: int
    time_used: float = Field(alias="timeUsed")
    completed_at: datetime | None = Field(default=None, alias="completedAt")

    class Config:
        populate_by_name = True


class SubmitQuizResponse(BaseModel):
    quiz: QuizSummary
    questions: list[GradedQuestionView]
    score: int
    correct_count: int = Field(alias="correctCount")
    total_questions: int = Field(alias="totalQuestions")

    class Config:
        populate_by_name = True


class TimeUsedResponse(BaseModel):
    success: bool = True
    quiz_id: str = Field(alias="quizId")
    time_used: float = Field(alias="timeUsed")

    class Config:
        populate_by_name = True


class MessageResponse(BaseModel):
    message: str


class HistoryStats(BaseModel):
    total_quizzes: int = Field(alias="totalQuizzes")
    average_score: int = Field(alias="averageScore")

    class Config:
        populate_by_name = True


class QuizHistoryResponse(BaseModel):
    quizzes: list[QuizDetailResponse]
    stats: HistoryStats
