"""Pydantic schemas for quizzes and photos."""
from datetime import datetime

from pydantic import BaseModel


class QuizOutSchema(BaseModel):
    id: int
    name: str
    created_at: datetime | None = None
    creator_name: str | None = None

    class Config:
        from_attributes = True


class PhotoOutSchema(BaseModel):
    id: int
    image: str
    location: list[float]  # [lat, lon]


class QuizListSchema(BaseModel):
    success: bool = True
    quizzes: list[QuizOutSchema]


class PhotoListSchema(BaseModel):
    success: bool = True
    photos: list[PhotoOutSchema]


class QuizResultSchema(BaseModel):
    success: bool = True
    message: str
    quiz: QuizOutSchema | None = None
