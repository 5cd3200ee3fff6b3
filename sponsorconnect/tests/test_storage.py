import os
import shutil
import tempfile
import unittest
from unittest import mock

from botocore.exceptions import ClientError

from sponsorconnect.db import StorageError
from sponsorconnect.profile import FileProfileStore
from sponsorconnect.storage import ImageUploadError, S3StorageClient


class S3StorageClientTests(unittest.TestCase):
    def make_client(self, **overrides):
        values = {
            "bucket": "photos",
            "region": "ap-south-1",
            "endpoint": "",
            "access_key_id": "key",
            "secret_access_key": "secret",
        }
        values.update(overrides)
        with mock.patch("sponsorconnect.storage.boto3.client") as factory:
            client = S3StorageClient(**values)
        return client, factory.return_value

    def test_upload_is_public_read(self):
        client, s3 = self.make_client()
        client.upload_bytes("profile-photos/a.png", b"png", "image/png")
        s3.put_object.assert_called_once_with(
            Bucket="photos",
            Key="profile-photos/a.png",
            Body=b"png",
            ContentType="image/png",
            ACL="public-read",
        )

    def test_upload_error_is_wrapped(self):
        client, s3 = self.make_client()
        s3.put_object.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "nope"}}, "PutObject"
        )
        with self.assertRaises(ImageUploadError):
            client.upload_bytes("profile-photos/a.png", b"png", "image/png")

    def test_public_url_variants(self):
        client, _ = self.make_client(public_base_url="https://cdn.example.com/")
        self.assertEqual(client.public_url("a.png"), "https://cdn.example.com/a.png")

        client, _ = self.make_client(endpoint="https://s3.example.com")
        self.assertEqual(client.public_url("a.png"), "https://s3.example.com/photos/a.png")

        client, _ = self.make_client()
        self.assertEqual(
            client.public_url("a.png"),
            "https://photos.s3.ap-south-1.amazonaws.com/a.png",
        )


class FileProfileStoreTests(unittest.TestCase):
    def setUp(self):
        self.data_dir = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.data_dir, True)
        self.store = FileProfileStore(self.data_dir)

    def test_missing_file_reads_empty(self):
        self.assertEqual(self.store.read(), {})

    def test_write_then_read(self):
        self.store.write({"username": "casey", "telegramHandle": "@casey"})
        self.assertEqual(FileProfileStore(self.data_dir).read()["username"], "casey")

    def test_corrupt_file_raises(self):
        with open(self.store.path, "w") as f:
            f.write("[")
        with self.assertRaises(StorageError):
            self.store.read()

    def test_non_object_file_raises(self):
        with open(self.store.path, "w") as f:
            f.write('["casey"]')
        with self.assertRaises(StorageError):
            self.store.read()

    def test_failed_write_keeps_previous_profile(self):
        self.store.write({"username": "casey"})
        with mock.patch(
            "sponsorconnect.file_db.os.replace", side_effect=OSError("disk full")
        ):
            with self.assertRaises(StorageError):
                self.store.write({"username": "renamed"})
        self.assertEqual(self.store.read(), {"username": "casey"})
        self.assertEqual(os.listdir(self.data_dir), ["profile.json"])


if __name__ == "__main__":
    unittest.main()
