import os
import shutil
import tempfile
import unittest
from datetime import datetime, timedelta, timezone
from unittest import mock

from sponsorconnect.db import InMemoryDbClient, StorageError
from sponsorconnect.file_db import FileDbClient
from sponsorconnect.sql_db import SqlDbClient


def _sponsorship(**overrides):
    fields = {
        "title": "GlowUp Skincare Collection",
        "description": "Beauty creators wanted",
        "budget_min": 15000,
        "budget_max": 30000,
        "min_followers": 5000,
        "category": "Beauty & Fashion",
        "deadline": datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc),
        "is_active": True,
    }
    fields.update(overrides)
    return fields


def _user(telegram_id="111", **overrides):
    fields = {
        "telegram_id": telegram_id,
        "username": "creator",
        "first_name": "Casey",
        "is_admin": False,
    }
    fields.update(overrides)
    return fields


class DbClientContract:
    """Behaviour every backend must share. Subclasses provide ``make_db``."""

    def make_db(self):
        raise NotImplementedError

    def setUp(self):
        self.db = self.make_db()

    def test_create_assigns_id_and_created_at(self):
        before = datetime.now(timezone.utc) - timedelta(seconds=1)
        user = self.db.create_user(_user(id=99, created_at=before - timedelta(days=9)))
        self.assertGreater(user.id, 0)
        self.assertNotEqual(user.id, 99)
        self.assertGreaterEqual(user.created_at, before)
        self.assertEqual(self.db.get_user(user.id), user)

    def test_ids_are_unique_per_table(self):
        first = self.db.create_sponsorship(_sponsorship())
        second = self.db.create_sponsorship(_sponsorship(title="TechFlow"))
        self.assertNotEqual(first.id, second.id)
        self.assertEqual(self.db.get_sponsorship(second.id).title, "TechFlow")

    def test_get_unknown_returns_none(self):
        self.assertIsNone(self.db.get_user(404))
        self.assertIsNone(self.db.get_sponsorship(404))
        self.assertIsNone(self.db.get_platform(404))
        self.assertIsNone(self.db.get_application(404))
        self.assertIsNone(self.db.get_payment_method(404))

    def test_lookup_by_telegram_id(self):
        user = self.db.create_user(_user("555"))
        self.assertEqual(self.db.get_user_by_telegram_id("555"), user)
        self.assertIsNone(self.db.get_user_by_telegram_id("556"))

    def test_update_changes_only_given_fields(self):
        user = self.db.create_user(_user(last_name="Lee"))
        updated = self.db.update_user(user.id, {"email": "casey@example.com"})
        self.assertEqual(updated.email, "casey@example.com")
        self.assertEqual(updated.last_name, "Lee")
        self.assertEqual(updated.username, user.username)
        self.assertEqual(updated.created_at, user.created_at)
        self.assertEqual(self.db.get_user(user.id), updated)

    def test_update_unknown_returns_none(self):
        self.assertIsNone(self.db.update_user(404, {"email": "x@example.com"}))
        self.assertIsNone(self.db.update_sponsorship(404, {"is_active": True}))
        self.assertIsNone(self.db.get_user(404))
        self.assertIsNone(self.db.get_sponsorship(404))
        self.assertEqual(self.db.list_active_sponsorships(), [])

    def test_only_active_sponsorships_listed(self):
        active = self.db.create_sponsorship(_sponsorship())
        hidden = self.db.create_sponsorship(_sponsorship(title="Old"))
        self.db.update_sponsorship(hidden.id, {"is_active": False})
        listed = [s.id for s in self.db.list_active_sponsorships()]
        self.assertEqual(listed, [active.id])
        self.assertFalse(self.db.get_sponsorship(hidden.id).is_active)

    def test_deadline_round_trips_as_utc(self):
        deadline = datetime(2031, 6, 1, 9, 30, tzinfo=timezone.utc)
        created = self.db.create_sponsorship(_sponsorship(deadline=deadline))
        self.assertEqual(self.db.get_sponsorship(created.id).deadline, deadline)

    def test_pending_platforms(self):
        pending = self.db.create_platform(
            {
                "user_id": 1,
                "platform_type": "youtube",
                "username": "@casey",
                "follower_count": 12000,
                "verification_code": "ABCD1234",
                "is_verified": False,
            }
        )
        other = self.db.create_platform(
            {
                "user_id": 2,
                "platform_type": "instagram",
                "username": "casey.ig",
                "follower_count": 800,
                "verification_code": "WXYZ9876",
                "is_verified": False,
            }
        )
        self.db.update_platform(other.id, {"is_verified": True})

        self.assertEqual([p.id for p in self.db.list_pending_platforms()], [pending.id])
        self.assertEqual([p.id for p in self.db.list_user_platforms(2)], [other.id])
        self.assertEqual(len(self.db.list_platforms()), 2)

    def test_pending_and_user_applications(self):
        fields = {
            "user_id": 1,
            "sponsorship_id": 1,
            "platform_type": "youtube",
            "platform_username": "@casey",
            "follower_count": 12000,
            "category": "Technology",
            "status": "pending",
        }
        first = self.db.create_application(fields)
        second = self.db.create_application({**fields, "user_id": 2})
        self.db.update_application(first.id, {"status": "approved"})

        self.assertEqual(
            [a.id for a in self.db.list_pending_applications()], [second.id]
        )
        self.assertEqual([a.id for a in self.db.list_user_applications(1)], [first.id])
        self.assertEqual(self.db.get_application(first.id).status, "approved")

    def test_user_payment_methods_exclude_inactive(self):
        kept = self.db.create_payment_method(
            {"user_id": 1, "type": "upi_id", "upi_id": "casey@upi", "is_active": True}
        )
        dropped = self.db.create_payment_method(
            {"user_id": 1, "type": "upi_number", "upi_number": "9999", "is_active": True}
        )
        self.db.update_payment_method(dropped.id, {"is_active": False})

        self.assertEqual(
            [m.id for m in self.db.list_user_payment_methods(1)], [kept.id]
        )
        self.assertEqual(len(self.db.list_payment_methods()), 2)


class InMemoryDbClientTests(DbClientContract, unittest.TestCase):
    def make_db(self):
        return InMemoryDbClient()

    def test_reset_clears_tables_and_ids(self):
        self.db.create_user(_user())
        self.db.reset()
        self.assertIsNone(self.db.get_user_by_telegram_id("111"))
        self.assertEqual(self.db.create_user(_user()).id, 1)


class FileDbClientTests(DbClientContract, unittest.TestCase):
    def make_db(self):
        self.data_dir = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.data_dir, True)
        return FileDbClient(self.data_dir)

    def test_data_survives_a_new_client(self):
        user = self.db.create_user(_user())
        reopened = FileDbClient(self.data_dir)
        self.assertEqual(reopened.get_user(user.id), user)

    def test_new_ids_never_reuse_existing(self):
        first = self.db.create_user(_user("1"))
        second = FileDbClient(self.data_dir).create_user(_user("2"))
        self.assertEqual(second.id, first.id + 1)

    def test_corrupt_file_raises_storage_error(self):
        with open(os.path.join(self.data_dir, "users.json"), "w") as f:
            f.write("{not json")
        with self.assertRaises(StorageError):
            self.db.get_user(1)

    def test_failed_write_keeps_data_and_leaves_no_temp_file(self):
        user = self.db.create_user(_user())
        with mock.patch(
            "sponsorconnect.file_db.os.replace", side_effect=OSError("disk full")
        ):
            with self.assertRaises(StorageError):
                self.db.update_user(user.id, {"email": "x@example.com"})
        self.assertEqual(os.listdir(self.data_dir), ["users.json"])
        self.assertEqual(self.db.get_user(user.id), user)


class SqlDbClientTests(DbClientContract, unittest.TestCase):
    """
    Uses SQLite via SQLAlchemy URL for fast/local testing of the SQL client logic.
    """

    def make_db(self):
        return SqlDbClient("sqlite+pysqlite:///:memory:")

    def test_duplicate_telegram_id_raises_storage_error(self):
        self.db.create_user(_user("777"))
        with self.assertRaises(StorageError):
            self.db.create_user(_user("777"))


if __name__ == "__main__":
    unittest.main()
