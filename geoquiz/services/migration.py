"""One-shot import of the legacy photos.json document into the ledger.

The legacy document is an array of games, each an array of five
``{"image": ..., "location": [lat, lon]}`` entries. Import is best-effort:
a photo that cannot be stored is logged and skipped, and each game is
committed on its own.
"""
import json
import logging
from pathlib import Path

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from geoquiz.core.config import Settings
from geoquiz.core.errors import InvalidInput, QuizError
from geoquiz.core.security import hash_password
from geoquiz.services.identity import IdentityStore
from geoquiz.services.ledger import PHOTOS_PER_QUIZ, Attribution, Ledger
from geoquiz.services.quizzes import parse_coordinates

logger = logging.getLogger(__name__)


def load_legacy_games(path: Path) -> list | None:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.error("Migration error: cannot read %s: %s", path, exc)
        return None
    if not isinstance(data, list):
        logger.error("Migration error: %s does not hold a list of games", path)
        return None
    return data


async def _migration_attribution(session: AsyncSession, settings: Settings) -> Attribution:
    if not settings.requires_account:
        return Attribution(creator_name=settings.migration_username)
    store = IdentityStore(session)
    password_hash = await run_in_threadpool(hash_password, settings.migration_password)
    async with store.transaction():
        user_id = await store.ensure_user(settings.migration_username, password_hash)
    return Attribution(user_id=user_id)


async def _import_photo(ledger: Ledger, quiz_id: int, entry) -> bool:
    image = entry.get("image") if isinstance(entry, dict) else None
    try:
        [(lat, lon)] = parse_coordinates([entry])
    except InvalidInput:
        image = None
    if not isinstance(image, str) or not image:
        logger.warning("Skipping malformed photo entry in quiz %s: %r", quiz_id, entry)
        return False
    try:
        async with ledger.session.begin_nested():
            await ledger.insert_photo(quiz_id, image, lat, lon)
    except (QuizError, SQLAlchemyError) as exc:
        logger.warning("Skipping photo %r of quiz %s: %s", image, quiz_id, exc)
        return False
    return True


async def migrate_legacy_photos(session: AsyncSession, settings: Settings) -> int:
    """Import the legacy document if the ledger is empty. Returns quizzes created."""
    ledger = Ledger(session)
    path = Path(settings.legacy_photos_path)

    if await ledger.count_quizzes() > 0:
        return 0
    if not path.exists():
        return 0

    games = load_legacy_games(path)
    if games is None:
        return 0

    attribution = await _migration_attribution(session, settings)
    migrated = 0
    for index, game in enumerate(games):
        if not isinstance(game, list):
            logger.warning("Skipping game %d: not a list of photos", index + 1)
            continue
        if not game:
            logger.warning("Skipping game %d: no photos", index + 1)
            continue
        if len(game) != PHOTOS_PER_QUIZ:
            logger.warning("Game %d has %d photos, expected %d", index + 1, len(game), PHOTOS_PER_QUIZ)
        try:
            async with ledger.transaction():
                quiz = await ledger.create_quiz(attribution, f"Quiz {index + 1}")
                stored = 0
                for entry in game:
                    if await _import_photo(ledger, quiz.id, entry):
                        stored += 1
        except QuizError as exc:
            logger.error("Migration of game %d failed: %s", index + 1, exc.message)
            continue
        if stored != len(game):
            logger.warning("Quiz %r imported with %d of %d photos", quiz.name, stored, len(game))
        migrated += 1

    logger.info("Migrated %d quizzes from %s", migrated, path)
    return migrated
