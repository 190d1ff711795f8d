"""Shared helpers: temporary settings and a throwaway SQLite database."""
import json
import tempfile
import unittest
from pathlib import Path

from geoquiz.core.config import Settings
from geoquiz.db.base import create_schema
from geoquiz.db.session import Database
from geoquiz.services.identity import IdentityStore
from geoquiz.services.ledger import Ledger, NewPhoto

CITY_TOUR = [[48.8, 2.3], [51.5, -0.1], [40.7, -74.0], [35.6, 139.7], [-33.8, 151.2]]


def make_settings(tmpdir: str, **overrides) -> Settings:
    root = Path(tmpdir)
    values = {
        "database_url": f"sqlite+aiosqlite:///{root / 'quiz.db'}",
        "images_dir": str(root / "images"),
        "legacy_photos_path": str(root / "photos.json"),
        "log_level": "WARNING",
    }
    values.update(overrides)
    return Settings(**values)


def game_data(coords=CITY_TOUR) -> list[dict]:
    return [{"location": list(c)} for c in coords]


def new_photos(prefix: str = "images/p", coords=CITY_TOUR) -> list[NewPhoto]:
    return [NewPhoto(f"{prefix}{i}.jpg", lat, lon) for i, (lat, lon) in enumerate(coords)]


def write_legacy(path: str | Path, games) -> None:
    Path(path).write_text(json.dumps(games), encoding="utf-8")


class DatabaseTestCase(unittest.IsolatedAsyncioTestCase):
    """Fresh schema in a temp file per test; ``self.ledger`` shares one session."""

    settings_overrides: dict = {}

    async def asyncSetUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.settings = make_settings(self._tmp.name, **self.settings_overrides)
        self.database = Database(self.settings.database_url)
        await create_schema(self.database)
        self.session = self.database.session()
        self.ledger = Ledger(self.session)
        self.identity = IdentityStore(self.session)

    async def asyncTearDown(self):
        await self.session.close()
        await self.database.dispose()
        self._tmp.cleanup()

    async def make_user(self, username: str) -> int:
        # not a real bcrypt hash; these tests never log in
        async with self.identity.transaction():
            user = await self.identity.create_user(username, "x")
        return user.id

    async def make_quiz(self, attribution, name: str = "City Tour", prefix: str = "images/p") -> int:
        async with self.ledger.transaction():
            quiz = await self.ledger.create_quiz(attribution, name)
            await self.ledger.insert_photos(quiz.id, new_photos(prefix))
        return quiz.id
