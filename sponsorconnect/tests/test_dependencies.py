import shutil
import tempfile
import unittest
from unittest.mock import patch

from sponsorconnect.config import Settings
from sponsorconnect.db import InMemoryDbClient
from sponsorconnect.dependencies import (
    build_db_client,
    build_profile_store,
    build_storage_client,
)
from sponsorconnect.file_db import FileDbClient
from sponsorconnect.profile import FileProfileStore, InMemoryProfileStore
from sponsorconnect.sql_db import SqlDbClient
from sponsorconnect.storage import InMemoryStorageClient, S3StorageClient


class SettingsTests(unittest.TestCase):
    def test_backend_defaults_to_memory(self):
        settings = Settings(_env_file=None)
        self.assertEqual(settings.resolved_storage_backend, "memory")

    def test_database_url_implies_sql(self):
        settings = Settings(_env_file=None, database_url="sqlite+pysqlite:///:memory:")
        self.assertEqual(settings.resolved_storage_backend, "sql")

    def test_explicit_backend_wins(self):
        settings = Settings(
            _env_file=None, storage_backend="file", database_url="sqlite://"
        )
        self.assertEqual(settings.resolved_storage_backend, "file")

    def test_reads_environment(self):
        with patch.dict(
            "os.environ", {"STORAGE_BACKEND": "file", "ADMIN_TELEGRAM_ID": "999"}
        ):
            settings = Settings(_env_file=None)
        self.assertEqual(settings.storage_backend, "file")
        self.assertEqual(settings.admin_telegram_id, "999")


class BuildBackendTests(unittest.TestCase):
    def setUp(self):
        self.data_dir = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.data_dir, True)

    def test_memory_backend(self):
        settings = Settings(_env_file=None)
        self.assertIsInstance(build_db_client(settings), InMemoryDbClient)
        self.assertIsInstance(build_profile_store(settings), InMemoryProfileStore)
        self.assertIsInstance(build_storage_client(settings), InMemoryStorageClient)

    def test_file_backend(self):
        settings = Settings(_env_file=None, storage_backend="file", data_dir=self.data_dir)
        self.assertIsInstance(build_db_client(settings), FileDbClient)
        self.assertIsInstance(build_profile_store(settings), FileProfileStore)

    def test_sql_backend(self):
        settings = Settings(
            _env_file=None,
            database_url="sqlite+pysqlite:///:memory:",
            data_dir=self.data_dir,
        )
        self.assertIsInstance(build_db_client(settings), SqlDbClient)

    @patch("sponsorconnect.storage.boto3.client")
    def test_bucket_selects_s3(self, mock_client):
        settings = Settings(_env_file=None, image_bucket="photos", image_region="ap-south-1")
        client = build_storage_client(settings)
        self.assertIsInstance(client, S3StorageClient)
        self.assertEqual(mock_client.call_args.kwargs["region_name"], "ap-south-1")


if __name__ == "__main__":
    unittest.main()
