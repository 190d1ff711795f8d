"""Photo model: one image reference plus its latitude/longitude."""
from sqlalchemy import Column, Float, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from geoquiz.db.session import Base


class Photo(Base):
    __tablename__ = "photos"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    # removed by the database when the quiz row goes
    quiz_id = Column(Integer, ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)
    image_path = Column(Text, nullable=False)  # e.g. images/photo_1700000000000_42.jpg
    location_lat = Column(Float, nullable=False)
    location_lon = Column(Float, nullable=False)

    quiz = relationship("Quiz", back_populates="photos")
