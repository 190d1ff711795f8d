"""Quiz lifecycle: validation, ownership and multi-row writes over the ledger.

``owner_id`` is the caller's account id when accounts are enabled and
``None`` in creator mode, where no ownership checks apply.
"""
import json
import logging
import math
from typing import Any, Sequence

from geoquiz.core.errors import Forbidden, InvalidInput, NotFound, StorageFailure
from geoquiz.models.quiz import Quiz
from geoquiz.schemas.quiz import PhotoOutSchema
from geoquiz.services.ledger import PHOTOS_PER_QUIZ, Attribution, Ledger, NewPhoto

logger = logging.getLogger(__name__)

Coordinate = tuple[float, float]


def parse_game_data(raw: str | None) -> list[Any] | None:
    """Decode the ``gameData`` form field. Blank input yields None."""
    if raw is None or not raw.strip():
        return None
    try:
        data = json.loads(raw)
    except ValueError as exc:
        raise InvalidInput("Invalid game data format") from exc
    if not isinstance(data, list):
        raise InvalidInput("Invalid game data format")
    return data


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def parse_coordinates(entries: Sequence[Any]) -> list[Coordinate]:
    """Check every entry before returning; the first bad one rejects all."""
    coords = []
    for index, entry in enumerate(entries):
        location = entry.get("location") if isinstance(entry, dict) else None
        if not isinstance(location, list) or len(location) != 2:
            raise InvalidInput(f"Invalid location data at index {index}")
        lat, lon = location
        if not _is_number(lat) or not _is_number(lon):
            raise InvalidInput(f"Location coordinates must be numbers at index {index}")
        coords.append((float(lat), float(lon)))
    return coords


def validate_create(name: str | None, image_count: int, entries: Sequence[Any] | None) -> tuple[str, list[Coordinate]]:
    name = (name or "").strip()
    if not name:
        raise InvalidInput("Quiz name required")
    if image_count == 0:
        raise InvalidInput("Images are required")
    if image_count != PHOTOS_PER_QUIZ:
        raise InvalidInput(f"Exactly {PHOTOS_PER_QUIZ} images required (received {image_count})")
    if entries is None:
        raise InvalidInput("Invalid game data format")
    if len(entries) != PHOTOS_PER_QUIZ:
        raise InvalidInput(
            f"Must provide exactly {PHOTOS_PER_QUIZ} photos with location data (received {len(entries)})"
        )
    return name, parse_coordinates(entries)


def validate_replacement(image_count: int, entries: Sequence[Any] | None) -> list[Coordinate] | None:
    """Coordinates for a photo replacement, or None when no photos were sent."""
    entries = entries or []
    if image_count == 0 and not entries:
        return None
    if len(entries) != image_count:
        raise InvalidInput(
            f"Number of location data ({len(entries)}) must match number of images ({image_count})"
        )
    if image_count != PHOTOS_PER_QUIZ:
        raise InvalidInput(f"Exactly {PHOTOS_PER_QUIZ} images required (received {image_count})")
    return parse_coordinates(entries)


def bind_photos(image_paths: Sequence[str], coords: Sequence[Coordinate]) -> list[NewPhoto]:
    # positional: the n-th uploaded file gets the n-th location
    return [NewPhoto(path, lat, lon) for path, (lat, lon) in zip(image_paths, coords)]


async def authorize(ledger: Ledger, quiz_id: int, owner_id: int | None) -> Quiz:
    quiz = await ledger.get_quiz(quiz_id)
    if quiz is None:
        raise NotFound("Quiz not found")
    if owner_id is not None and quiz.user_id != owner_id:
        raise Forbidden("Access denied")
    return quiz


async def list_quizzes(ledger: Ledger, owner_id: int | None) -> Sequence[Quiz]:
    return await ledger.list_quizzes(owner_id)


async def list_photos(ledger: Ledger, quiz_id: int, owner_id: int | None) -> list[PhotoOutSchema]:
    await authorize(ledger, quiz_id, owner_id)
    photos = await ledger.list_photos(quiz_id)
    return [
        PhotoOutSchema(id=p.id, image=p.image_path, location=[p.location_lat, p.location_lon])
        for p in photos
    ]


async def create_quiz(
    ledger: Ledger,
    attribution: Attribution,
    name: str | None,
    image_paths: Sequence[str],
    entries: Sequence[Any] | None,
) -> Quiz:
    """Create a quiz with its five photos in a single transaction."""
    name, coords = validate_create(name, len(image_paths), entries)
    photos = bind_photos(image_paths, coords)
    try:
        async with ledger.transaction():
            quiz = await ledger.create_quiz(attribution, name)
            await ledger.insert_photos(quiz.id, photos)
    except StorageFailure as exc:
        logger.error("Quiz %r not created: %s", name, exc.message)
        raise StorageFailure("Failed to create quiz") from exc
    logger.info("Quiz %r created (id=%s) with %d photos", name, quiz.id, len(photos))
    return quiz


async def update_quiz(
    ledger: Ledger,
    quiz_id: int,
    owner_id: int | None,
    name: str | None = None,
    image_paths: Sequence[str] = (),
    entries: Sequence[Any] | None = None,
) -> Quiz:
    """Rename and/or replace all five photos; both or neither are applied."""
    coords = validate_replacement(len(image_paths), entries)
    new_name = (name or "").strip()
    try:
        async with ledger.transaction():
            quiz = await authorize(ledger, quiz_id, owner_id)
            if new_name:
                await ledger.rename_quiz(quiz, new_name)
            if coords is not None:
                await ledger.replace_photos(quiz.id, bind_photos(image_paths, coords))
    except StorageFailure as exc:
        logger.error("Quiz %s not updated: %s", quiz_id, exc.message)
        raise StorageFailure("Failed to update quiz") from exc
    logger.info("Quiz %s updated (renamed=%s, photos replaced=%s)", quiz_id, bool(new_name), coords is not None)
    return quiz


async def delete_quiz(ledger: Ledger, quiz_id: int, owner_id: int | None) -> None:
    async with ledger.transaction():
        await authorize(ledger, quiz_id, owner_id)
        await ledger.delete_quiz(quiz_id)
    logger.info("Quiz %s deleted", quiz_id)
