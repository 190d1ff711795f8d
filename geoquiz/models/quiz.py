"""Quiz model: a named set of five geotagged photos."""
from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from geoquiz.db.session import Base


class Quiz(Base):
    __tablename__ = "quizzes"
    __table_args__ = (
        # attribution is either an owning account or a creator name, never both
        CheckConstraint(
            "user_id IS NULL OR creator_name IS NULL",
            name="ck_quizzes_single_attribution",
        ),
        {"sqlite_autoincrement": True},
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True)
    creator_name = Column(String(255), nullable=True)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    owner = relationship("User", back_populates="quizzes")
    photos = relationship("Photo", back_populates="quiz", order_by="Photo.id", passive_deletes=True)
