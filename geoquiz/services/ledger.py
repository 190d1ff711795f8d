"""Photo-location ledger: transactional reads/writes over quizzes and photos.

The ledger never commits on its own. Multi-step writes are wrapped by the
caller in ``Ledger.transaction()`` so a failure anywhere rolls back the whole
operation. ``replace_photos`` additionally runs inside a SAVEPOINT so the
delete and the re-insert of a quiz's photos are never observed apart.
"""
from dataclasses import dataclass
from typing import Iterable, Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from geoquiz.core.errors import ConstraintViolation, ForeignKeyViolation, InvalidInput
from geoquiz.db.session import end_read, transaction
from geoquiz.models.photo import Photo
from geoquiz.models.quiz import Quiz

PHOTOS_PER_QUIZ = 5


@dataclass(frozen=True)
class Attribution:
    """Who a quiz is credited to: an owning account or a creator name."""

    user_id: int | None = None
    creator_name: str | None = None

    def __post_init__(self):
        if (self.user_id is None) == (self.creator_name is None):
            raise ValueError("exactly one of user_id / creator_name must be set")


@dataclass(frozen=True)
class NewPhoto:
    image_path: str
    lat: float
    lon: float


class Ledger:
    def __init__(self, session: AsyncSession):
        self.session = session

    def transaction(self):
        return transaction(self.session)

    async def end_read(self) -> None:
        await end_read(self.session)

    async def create_quiz(self, attribution: Attribution, name: str) -> Quiz:
        quiz = Quiz(
            user_id=attribution.user_id,
            creator_name=attribution.creator_name,
            name=name,
        )
        self.session.add(quiz)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise ConstraintViolation("Failed to create quiz") from exc
        await self.session.refresh(quiz)
        return quiz

    async def insert_photo(self, quiz_id: int, image_path: str, lat: float, lon: float) -> Photo:
        photo = Photo(quiz_id=quiz_id, image_path=image_path, location_lat=lat, location_lon=lon)
        self.session.add(photo)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            if "FOREIGN KEY" in str(exc.orig).upper():
                raise ForeignKeyViolation(f"Quiz {quiz_id} does not exist") from exc
            raise ConstraintViolation(f"Failed to insert photo for quiz {quiz_id}") from exc
        return photo

    async def insert_photos(self, quiz_id: int, photos: Iterable[NewPhoto]) -> list[Photo]:
        """Insert a batch; every row is flushed before this returns."""
        return [await self.insert_photo(quiz_id, p.image_path, p.lat, p.lon) for p in photos]

    async def get_quiz(self, quiz_id: int) -> Quiz | None:
        result = await self.session.execute(select(Quiz).where(Quiz.id == quiz_id))
        return result.scalar_one_or_none()

    async def count_quizzes(self) -> int:
        result = await self.session.execute(select(func.count(Quiz.id)))
        return result.scalar_one()

    async def list_quizzes(self, owner_id: int | None = None) -> Sequence[Quiz]:
        """Newest first. ``owner_id=None`` lists every quiz."""
        stmt = select(Quiz).order_by(Quiz.created_at.desc(), Quiz.id.desc())
        if owner_id is not None:
            stmt = stmt.where(Quiz.user_id == owner_id)
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def list_photos(self, quiz_id: int) -> Sequence[Photo]:
        result = await self.session.execute(
            select(Photo).where(Photo.quiz_id == quiz_id).order_by(Photo.id.asc())
        )
        return result.scalars().all()

    async def count_photos(self, quiz_id: int) -> int:
        result = await self.session.execute(
            select(func.count(Photo.id)).where(Photo.quiz_id == quiz_id)
        )
        return result.scalar_one()

    async def rename_quiz(self, quiz: Quiz, name: str) -> Quiz:
        quiz.name = name
        await self.session.flush()
        return quiz

    async def delete_quiz(self, quiz_id: int) -> bool:
        # one statement; photos go with it through ON DELETE CASCADE
        result = await self.session.execute(
            delete(Quiz)
            .where(Quiz.id == quiz_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    async def replace_photos(self, quiz_id: int, photos: Sequence[NewPhoto]) -> list[Photo]:
        if len(photos) != PHOTOS_PER_QUIZ:
            raise InvalidInput(
                f"Exactly {PHOTOS_PER_QUIZ} photos required (received {len(photos)})"
            )
        async with self.session.begin_nested():
            await self.session.execute(
                delete(Photo)
                .where(Photo.quiz_id == quiz_id)
                .execution_options(synchronize_session=False)
            )
            return await self.insert_photos(quiz_id, photos)
