"""Request and response bodies for the HTTP API."""
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CamelModel(BaseModel):
    """Accept and emit camelCase names on the wire."""
    model_config = ConfigDict(populate_by_name=True)


class HistoryTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1)
    history: List[HistoryTurn] = Field(default_factory=list)

    @field_validator("message")
    @classmethod
    def message_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("message cannot be empty")
        return value


class ChatResponse(BaseModel):
    reply: str


class QuizRequest(CamelModel):
    action: str
    topic: Optional[str] = None
    quiz_id: Optional[str] = Field(default=None, alias="quizId")
    user_answers: Optional[List[int]] = Field(default=None, alias="userAnswers")


class PublicQuestion(CamelModel):
    question_text: str = Field(..., alias="questionText")
    options: List[str]


class QuizGenerateResponse(CamelModel):
    quiz_id: str = Field(..., alias="quizId")
    questions: List[PublicQuestion]


class QuestionResultBody(CamelModel):
    is_correct: bool = Field(..., alias="isCorrect")
    correct_answer_index: int = Field(..., alias="correctAnswerIndex")


class QuizGradeResponse(CamelModel):
    score: int
    results: List[QuestionResultBody]


class TripPlanRequest(CamelModel):
    starting_point: str = Field(..., min_length=1, alias="startingPoint")
    duration: str = Field(..., min_length=1)
    group_size: int = Field(1, ge=1, alias="groupSize")
    travel_style: str = Field(..., min_length=1, alias="travelStyle")
    interests: List[str] = Field(..., min_length=1)


class TripPlanResponse(CamelModel):
    trip_plan: str = Field(..., alias="tripPlan")


class CarbonRequest(BaseModel):
    transportation: str
    distance: float = Field(..., ge=0)


class CarbonResponse(CamelModel):
    transportation: str
    distance_km: float = Field(..., alias="distanceKm")
    factor: float
    total_kg: float = Field(..., alias="totalKg")
    zero_emission: bool = Field(..., alias="zeroEmission")
