import math
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

QUESTION_COUNT = 5
TIPS_COUNT = 3

Category = Literal["HR", "Technical"]
SessionStatus = Literal["idle", "ongoing", "completed"]
Source = Literal["model", "fallback"]


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class InterviewType(str, Enum):
    HR = "HR"
    TECHNICAL = "Technical"
    MIXED = "Mixed"


class ExperienceLevel(str, Enum):
    FRESHER = "Fresher"
    EXPERIENCED = "Experienced"


class InterviewConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    role: str
    experience: str
    company: str
    difficulty: str

    @field_validator("type", "role", "experience", "company", "difficulty")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        text = str(value or "").strip()
        if not text:
            raise ValueError("must not be blank")
        return text


class Question(BaseModel):
    id: int
    text: str
    category: Category


class EvaluationResult(BaseModel):
    relevance: int = Field(ge=1, le=10)
    clarity: int = Field(ge=1, le=10)
    confidence: int = Field(ge=1, le=10)
    technical_depth: int = Field(ge=1, le=10)
    sentiment: str
    overall_score: int = Field(ge=1, le=100)
    feedback: str
    improvement_tips: list[str] = Field(min_length=TIPS_COUNT, max_length=TIPS_COUNT)


class Answer(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question_id: int = Field(alias="questionId")
    question_text: str = Field(alias="questionText")
    answer_text: str = Field(alias="answerText")
    evaluation: Optional[EvaluationResult] = None


class InterviewSession(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    user_id: Optional[str] = Field(default=None, alias="userId")
    config: InterviewConfig
    questions: list[Question]
    current_question_index: int = Field(default=0, alias="currentQuestionIndex")
    answers: list[Answer] = Field(default_factory=list)
    start_time: int = Field(alias="startTime")
    end_time: Optional[int] = Field(default=None, alias="endTime")
    status: SessionStatus = "idle"

    @property
    def current_question(self) -> Optional[Question]:
        if 0 <= self.current_question_index < len(self.questions):
            return self.questions[self.current_question_index]
        return None
