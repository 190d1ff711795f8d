from geoquiz.schemas.auth import CredentialsSchema, TokenOutSchema, UserOutSchema
from geoquiz.schemas.quiz import (
    PhotoListSchema,
    PhotoOutSchema,
    QuizListSchema,
    QuizOutSchema,
    QuizResultSchema,
)

__all__ = [
    "CredentialsSchema",
    "PhotoListSchema",
    "PhotoOutSchema",
    "QuizListSchema",
    "QuizOutSchema",
    "QuizResultSchema",
    "TokenOutSchema",
    "UserOutSchema",
]
