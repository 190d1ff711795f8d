from geoquiz.models.user import User
from geoquiz.models.quiz import Quiz
from geoquiz.models.photo import Photo

__all__ = ["User", "Quiz", "Photo"]
