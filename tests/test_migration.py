import unittest
from pathlib import Path

from geoquiz.services.ledger import Attribution
from geoquiz.services.migration import migrate_legacy_photos
from tests.support import CITY_TOUR, DatabaseTestCase, write_legacy


def legacy_game(prefix: str, coords=CITY_TOUR) -> list[dict]:
    return [{"image": f"images/{prefix}{i}.jpg", "location": list(c)} for i, c in enumerate(coords)]


class MigrationTests(DatabaseTestCase):
    async def _quizzes_by_name(self) -> dict:
        return {q.name: q for q in await self.ledger.list_quizzes()}

    async def test_imports_each_game_as_a_quiz(self):
        write_legacy(self.settings.legacy_photos_path, [legacy_game("a"), legacy_game("b")])

        migrated = await migrate_legacy_photos(self.session, self.settings)

        self.assertEqual(migrated, 2)
        by_name = await self._quizzes_by_name()
        self.assertEqual(set(by_name), {"Quiz 1", "Quiz 2"})
        photos = await self.ledger.list_photos(by_name["Quiz 1"].id)
        self.assertEqual([p.image_path for p in photos], [f"images/a{i}.jpg" for i in range(5)])
        self.assertEqual([[p.location_lat, p.location_lon] for p in photos], CITY_TOUR)

        owner = await self.identity.get_by_username(self.settings.migration_username)
        self.assertIsNotNone(owner)
        self.assertTrue(all(q.user_id == owner.id for q in by_name.values()))

    async def test_second_run_does_not_duplicate(self):
        write_legacy(self.settings.legacy_photos_path, [legacy_game("a")])
        self.assertEqual(await migrate_legacy_photos(self.session, self.settings), 1)

        write_legacy(self.settings.legacy_photos_path, [legacy_game("a"), legacy_game("b")])
        self.assertEqual(await migrate_legacy_photos(self.session, self.settings), 0)
        self.assertEqual(await self.ledger.count_quizzes(), 1)

    async def test_skipped_when_ledger_has_quizzes(self):
        await self.make_quiz(Attribution(creator_name="ann"))
        write_legacy(self.settings.legacy_photos_path, [legacy_game("a")])

        self.assertEqual(await migrate_legacy_photos(self.session, self.settings), 0)
        self.assertEqual(await self.ledger.count_quizzes(), 1)

    async def test_missing_file_is_a_no_op(self):
        self.assertFalse(Path(self.settings.legacy_photos_path).exists())
        self.assertEqual(await migrate_legacy_photos(self.session, self.settings), 0)
        self.assertIsNone(await self.identity.get_by_username(self.settings.migration_username))

    async def test_reuses_existing_migration_account(self):
        existing = await self.make_user(self.settings.migration_username)
        write_legacy(self.settings.legacy_photos_path, [legacy_game("a")])

        await migrate_legacy_photos(self.session, self.settings)

        [quiz] = await self.ledger.list_quizzes()
        self.assertEqual(quiz.user_id, existing)

    async def test_bad_photo_is_logged_and_skipped(self):
        game = legacy_game("a")
        game[1] = {"image": "images/broken.jpg", "location": "somewhere"}
        write_legacy(self.settings.legacy_photos_path, [game, legacy_game("b")])

        with self.assertLogs("geoquiz.services.migration", level="WARNING") as logs:
            migrated = await migrate_legacy_photos(self.session, self.settings)

        self.assertEqual(migrated, 2)
        self.assertTrue(any("broken.jpg" in line for line in logs.output))
        by_name = await self._quizzes_by_name()
        self.assertEqual(await self.ledger.count_photos(by_name["Quiz 1"].id), 4)
        self.assertEqual(await self.ledger.count_photos(by_name["Quiz 2"].id), 5)

    async def test_unreadable_document_is_skipped(self):
        Path(self.settings.legacy_photos_path).write_text("[[{", encoding="utf-8")

        with self.assertLogs("geoquiz.services.migration", level="ERROR"):
            self.assertEqual(await migrate_legacy_photos(self.session, self.settings), 0)
        self.assertEqual(await self.ledger.count_quizzes(), 0)

    async def test_empty_game_skipped_and_short_game_warned(self):
        write_legacy(self.settings.legacy_photos_path, [[], legacy_game("a", CITY_TOUR[:3])])

        with self.assertLogs("geoquiz.services.migration", level="WARNING") as logs:
            migrated = await migrate_legacy_photos(self.session, self.settings)

        self.assertEqual(migrated, 1)
        self.assertTrue(any("Skipping game 1" in line for line in logs.output))
        self.assertTrue(any("Game 2 has 3 photos" in line for line in logs.output))
        [quiz] = await self.ledger.list_quizzes()
        self.assertEqual(quiz.name, "Quiz 2")
        self.assertEqual(await self.ledger.count_photos(quiz.id), 3)


class CreatorModeMigrationTests(DatabaseTestCase):
    settings_overrides = {"attribution_mode": "creator"}

    async def test_quizzes_credited_to_creator_name(self):
        write_legacy(self.settings.legacy_photos_path, [legacy_game("a")])

        self.assertEqual(await migrate_legacy_photos(self.session, self.settings), 1)

        [quiz] = await self.ledger.list_quizzes()
        self.assertIsNone(quiz.user_id)
        self.assertEqual(quiz.creator_name, self.settings.migration_username)
        self.assertIsNone(await self.identity.get_by_username(self.settings.migration_username))


if __name__ == "__main__":
    unittest.main()
