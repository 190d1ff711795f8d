import unittest

from geoquiz.core.errors import ConstraintViolation, ForeignKeyViolation, InvalidInput
from geoquiz.services.ledger import Attribution, NewPhoto
from tests.support import CITY_TOUR, DatabaseTestCase, new_photos


class LedgerTests(DatabaseTestCase):
    async def test_photos_listed_in_insert_order(self):
        quiz_id = await self.make_quiz(Attribution(creator_name="ann"))

        photos = await self.ledger.list_photos(quiz_id)
        self.assertEqual(len(photos), 5)
        self.assertEqual([[p.location_lat, p.location_lon] for p in photos], CITY_TOUR)
        self.assertEqual([p.image_path for p in photos], [f"images/p{i}.jpg" for i in range(5)])

    async def test_create_quiz_sets_created_at(self):
        async with self.ledger.transaction():
            quiz = await self.ledger.create_quiz(Attribution(creator_name="ann"), "Tour")
        self.assertIsNotNone(quiz.created_at)
        self.assertEqual(quiz.creator_name, "ann")
        self.assertIsNone(quiz.user_id)

    async def test_insert_photo_for_missing_quiz(self):
        with self.assertRaises(ForeignKeyViolation):
            async with self.ledger.transaction():
                await self.ledger.insert_photo(999, "images/x.jpg", 1.0, 2.0)
        self.assertEqual(await self.ledger.count_photos(999), 0)

    async def test_delete_quiz_cascades_to_photos(self):
        quiz_id = await self.make_quiz(Attribution(creator_name="ann"))
        other_id = await self.make_quiz(Attribution(creator_name="bob"), prefix="images/o")

        async with self.ledger.transaction():
            deleted = await self.ledger.delete_quiz(quiz_id)

        self.assertTrue(deleted)
        self.assertIsNone(await self.ledger.get_quiz(quiz_id))
        self.assertEqual(await self.ledger.count_photos(quiz_id), 0)
        self.assertEqual(await self.ledger.count_photos(other_id), 5)

    async def test_delete_missing_quiz(self):
        async with self.ledger.transaction():
            self.assertFalse(await self.ledger.delete_quiz(42))

    async def test_replace_photos_swaps_full_set(self):
        quiz_id = await self.make_quiz(Attribution(creator_name="ann"))

        async with self.ledger.transaction():
            await self.ledger.replace_photos(quiz_id, new_photos("images/new"))

        photos = await self.ledger.list_photos(quiz_id)
        self.assertEqual(len(photos), 5)
        self.assertTrue(all(p.image_path.startswith("images/new") for p in photos))

    async def test_failed_replace_keeps_previous_photos(self):
        quiz_id = await self.make_quiz(Attribution(creator_name="ann"))
        bad = new_photos("images/new")
        bad[3] = NewPhoto(None, 1.0, 2.0)

        async with self.ledger.transaction():
            with self.assertRaises(ConstraintViolation):
                await self.ledger.replace_photos(quiz_id, bad)
            # savepoint rolled back; the enclosing transaction still sees the old set
            photos = await self.ledger.list_photos(quiz_id)
            self.assertEqual([p.image_path for p in photos], [f"images/p{i}.jpg" for i in range(5)])

        self.assertEqual(await self.ledger.count_photos(quiz_id), 5)

    async def test_replace_photos_requires_five(self):
        quiz_id = await self.make_quiz(Attribution(creator_name="ann"))
        with self.assertRaises(InvalidInput):
            async with self.ledger.transaction():
                await self.ledger.replace_photos(quiz_id, new_photos()[:4])
        self.assertEqual(await self.ledger.count_photos(quiz_id), 5)

    async def test_list_quizzes_scoped_and_newest_first(self):
        alice = await self.make_user("alice")
        bob = await self.make_user("bob")
        await self.make_quiz(Attribution(user_id=alice), "A1")
        await self.make_quiz(Attribution(user_id=bob), "B1")
        await self.make_quiz(Attribution(user_id=alice), "A2")

        owned = await self.ledger.list_quizzes(alice)
        self.assertEqual([q.name for q in owned], ["A2", "A1"])
        everything = await self.ledger.list_quizzes()
        self.assertEqual(len(everything), 3)
        self.assertEqual(await self.ledger.count_quizzes(), 3)

    def test_attribution_needs_exactly_one_scheme(self):
        with self.assertRaises(ValueError):
            Attribution()
        with self.assertRaises(ValueError):
            Attribution(user_id=1, creator_name="ann")


if __name__ == "__main__":
    unittest.main()
