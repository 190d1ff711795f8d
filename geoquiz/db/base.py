"""SQLAlchemy declarative base and model imports for Alembic."""
from geoquiz.db.session import Base, Database

# Import all models so Alembic can see them
from geoquiz.models.photo import Photo  # noqa: F401
from geoquiz.models.quiz import Quiz  # noqa: F401
from geoquiz.models.user import User  # noqa: F401

__all__ = ["Base", "User", "Quiz", "Photo", "create_schema"]


async def create_schema(database: Database) -> None:
    async with database.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
