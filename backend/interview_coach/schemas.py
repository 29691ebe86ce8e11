from typing import Any, Optional

from pydantic import BaseModel

from interview_coach.interview.models import EvaluationResult, Question, Source


class QuestionsResponse(BaseModel):
    questions: list[Question]
    source: Source
    error: Optional[str] = None


class EvaluateResponse(BaseModel):
    evaluation: EvaluationResult
    source: Source
    error: Optional[str] = None


class ChatRequest(BaseModel):
    message: str = ""
    history: list[dict[str, Any]] = []


class ChatResponse(BaseModel):
    response: str
    source: Source
    error: Optional[str] = None


class SignupRequest(BaseModel):
    name: str
    email: str
    password: str


class LoginRequest(BaseModel):
    email: str
    password: str


class ResetPasswordRequest(BaseModel):
    email: str
    new_password: str


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    headline: Optional[str] = None
    skills: Optional[list[str]] = None
    bio: Optional[str] = None
    avatar: Optional[str] = None


class AnswerRequest(BaseModel):
    answer: str = ""
