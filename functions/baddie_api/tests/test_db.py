import unittest

from baddie_api.db import (
    FameLevel,
    InMemoryDbClient,
    ProfileRecord,
    SqlDbClient,
    is_valid_id,
)
from baddie_api.errors import InvalidRecord, NotFound


def make_profile(name, category="science", fame_level="famous", created_at=0.0, **extra):
    return ProfileRecord(
        name=name,
        category=category,
        fame_level=fame_level,
        created_at=created_at,
        **extra,
    )


class RecordStoreBehaviour:
    """Shared checks run against every DbClient implementation."""

    def make_db(self):
        raise NotImplementedError

    def setUp(self):
        self.db = self.make_db()
        self.ada = self.db.insert_profile(
            make_profile(
                "Ada Lovelace",
                category="science",
                fame_level="famous",
                created_at=100.0,
                achievements=["First published algorithm", "Notes on the Analytical Engine"],
                quote="That brain of mine is something more than merely mortal.",
            )
        )
        self.hedy = self.db.insert_profile(
            make_profile("Hedy Lamarr", category="science", fame_level="hidden", created_at=300.0)
        )
        self.frida = self.db.insert_profile(
            make_profile("Frida Kahlo", category="art", fame_level="famous", created_at=200.0)
        )

    def names(self, profiles):
        return [profile.name for profile in profiles]

    def test_list_profiles_newest_first(self):
        self.assertEqual(
            self.names(self.db.list_profiles()),
            ["Hedy Lamarr", "Frida Kahlo", "Ada Lovelace"],
        )

    def test_list_profiles_all_category_is_no_filter(self):
        self.assertEqual(
            self.names(self.db.list_profiles(category="all")),
            self.names(self.db.list_profiles()),
        )
        self.assertEqual(
            self.names(self.db.list_profiles(category="")),
            self.names(self.db.list_profiles()),
        )

    def test_list_profiles_filters(self):
        self.assertEqual(
            self.names(self.db.list_profiles(category="science")),
            ["Hedy Lamarr", "Ada Lovelace"],
        )
        self.assertEqual(
            self.names(self.db.list_profiles(fame_level="famous")),
            ["Frida Kahlo", "Ada Lovelace"],
        )
        self.assertEqual(
            self.names(self.db.list_profiles(category="all", fame_level="hidden")),
            ["Hedy Lamarr"],
        )
        self.assertEqual(
            self.names(self.db.list_profiles(category="science", fame_level="famous")),
            ["Ada Lovelace"],
        )

    def test_list_profiles_no_match_is_empty(self):
        self.assertEqual(self.db.list_profiles(category="music"), [])
        self.assertEqual(self.db.list_profiles(fame_level="legendary"), [])

    def test_get_profile_returns_stored_document(self):
        profile = self.db.get_profile(self.ada.id)
        self.assertEqual(profile, self.ada)
        self.assertEqual(profile.fame_level, FameLevel.FAMOUS)
        self.assertEqual(
            profile.achievements,
            ["First published algorithm", "Notes on the Analytical Engine"],
        )

    def test_get_profile_unknown_or_malformed_id(self):
        with self.assertRaises(NotFound):
            self.db.get_profile("0" * 32)
        with self.assertRaises(NotFound):
            self.db.get_profile("not-an-id")

    def test_find_or_create_user_is_idempotent(self):
        first = self.db.find_or_create_user("uid-1", "ada@example.com", "Ada")
        self.assertEqual(first.favorites, [])
        self.assertTrue(is_valid_id(first.id))

        second = self.db.find_or_create_user("uid-1", "new@example.com", "Countess")
        self.assertEqual(second.id, first.id)
        self.assertEqual(second.email, "ada@example.com")
        self.assertEqual(second.display_name, "Ada")
        self.assertEqual(second.created_at, first.created_at)

    def test_user_without_email_is_not_stored(self):
        with self.assertRaises(InvalidRecord):
            self.db.find_or_create_user("uid-phone", "", None)
        self.assertIsNone(self.db.get_user_by_subject("uid-phone"))

    def test_get_user_by_subject(self):
        self.assertIsNone(self.db.get_user_by_subject("uid-1"))
        created = self.db.find_or_create_user("uid-1", "ada@example.com")
        self.assertEqual(self.db.get_user_by_subject("uid-1").id, created.id)

    def test_add_favorite_is_idempotent(self):
        self.db.find_or_create_user("uid-1", "ada@example.com")
        self.assertTrue(self.db.add_favorite("uid-1", self.ada.id))
        self.assertFalse(self.db.add_favorite("uid-1", self.ada.id))
        self.assertEqual(self.db.get_user_by_subject("uid-1").favorites, [self.ada.id])

    def test_remove_missing_favorite_is_noop(self):
        self.db.find_or_create_user("uid-1", "ada@example.com")
        self.db.add_favorite("uid-1", self.ada.id)
        self.assertFalse(self.db.remove_favorite("uid-1", self.frida.id))
        self.assertTrue(self.db.remove_favorite("uid-1", self.ada.id))
        self.assertEqual(self.db.get_user_by_subject("uid-1").favorites, [])

    def test_favorites_require_existing_user(self):
        with self.assertRaises(NotFound):
            self.db.add_favorite("ghost", self.ada.id)
        with self.assertRaises(NotFound):
            self.db.remove_favorite("ghost", self.ada.id)
        with self.assertRaises(NotFound):
            self.db.list_favorites("ghost")

    def test_list_favorites_keeps_stored_order_and_drops_dangling(self):
        self.db.find_or_create_user("uid-1", "ada@example.com")
        self.db.add_favorite("uid-1", self.frida.id)
        self.db.add_favorite("uid-1", "f" * 32)
        self.db.add_favorite("uid-1", self.ada.id)
        self.db.add_favorite("uid-1", self.hedy.id)

        self.assertTrue(self.db.delete_profile(self.hedy.id))
        self.assertEqual(
            self.names(self.db.list_favorites("uid-1")),
            ["Frida Kahlo", "Ada Lovelace"],
        )
        # The dangling ids are still stored, only omitted on read.
        self.assertEqual(len(self.db.get_user_by_subject("uid-1").favorites), 4)

    def test_favorites_are_scoped_to_subject(self):
        self.db.find_or_create_user("uid-1", "ada@example.com")
        self.db.find_or_create_user("uid-2", "hedy@example.com")
        self.db.add_favorite("uid-1", self.ada.id)
        self.assertEqual(self.db.list_favorites("uid-2"), [])

    def test_delete_unknown_profile(self):
        self.assertFalse(self.db.delete_profile("0" * 32))


class InMemoryDbClientTests(RecordStoreBehaviour, unittest.TestCase):
    def make_db(self):
        return InMemoryDbClient()

    def test_reset(self):
        self.db.find_or_create_user("uid-1", "ada@example.com")
        self.db.reset()
        self.assertEqual(self.db.list_profiles(), [])
        self.assertIsNone(self.db.get_user_by_subject("uid-1"))

    def test_returned_records_are_copies(self):
        user = self.db.find_or_create_user("uid-1", "ada@example.com")
        user.favorites.append(self.ada.id)
        self.assertEqual(self.db.get_user_by_subject("uid-1").favorites, [])


class SqlDbClientTests(RecordStoreBehaviour, unittest.TestCase):
    """
    Uses SQLite via SQLAlchemy URL for fast/local testing of the SQL client logic.
    """

    def make_db(self):
        return SqlDbClient("sqlite+pysqlite:///:memory:")

    def tearDown(self):
        self.db.close()

    def test_requires_url(self):
        with self.assertRaises(ValueError):
            SqlDbClient("")


class ProfileRecordTests(unittest.TestCase):
    def test_required_fields(self):
        with self.assertRaises(ValueError):
            make_profile("")
        with self.assertRaises(ValueError):
            make_profile("Ada", category="")
        with self.assertRaises(ValueError):
            make_profile("Ada", fame_level="legendary")

    def test_as_dict_uses_api_field_names(self):
        payload = make_profile("Ada", short_bio="Mathematician").as_dict()
        self.assertEqual(payload["fameLevel"], "famous")
        self.assertEqual(payload["shortBio"], "Mathematician")
        self.assertIn("createdAt", payload)


if __name__ == "__main__":
    unittest.main()
