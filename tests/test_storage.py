"""Tests for the token cache storage backends and storage selection."""

import json
import sys
import tempfile
import unittest
from pathlib import Path
from unittest import mock

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from entra_auth import config
from entra_auth.cache import MemoryTokenCache
from entra_auth.errors import ConfigError
from entra_auth.models.login_status import NOT_LOGGED_IN
from entra_auth.storage import FileStorage, MemoryStorage, SettingsStorage, StorageSettings, StorageType

from sample_data import token_cache_blob


class TestMemoryStorage(unittest.TestCase):
    def setUp(self):
        self.cache = MemoryTokenCache()
        self.storage = MemoryStorage(self.cache, "memory-abc")

    def test_round_trip(self):
        self.assertIsNone(self.storage.read_token_cache())
        blob = token_cache_blob()
        self.storage.write_token_cache(blob)
        self.assertEqual(self.storage.read_token_cache(), blob)
        self.assertEqual(self.cache.get("memory-abc"), blob)

    def test_clear_is_idempotent(self):
        self.storage.write_token_cache(token_cache_blob())
        self.storage.clear()
        self.storage.clear()
        self.assertIsNone(self.storage.read_token_cache())
        self.assertFalse(self.cache.contains_key("memory-abc"))

    def test_login_status(self):
        self.assertEqual(self.storage.get_login_status(), NOT_LOGGED_IN)
        self.storage.write_token_cache(token_cache_blob(username="jane@contoso.com", expires_on=1_900_000_000))
        status = self.storage.get_login_status()
        self.assertTrue(status.is_logged_in)
        self.assertEqual(status.username, "jane@contoso.com")
        self.assertEqual(int(status.access_token_expiry.timestamp()), 1_900_000_000)

    def test_unparseable_blob_is_not_logged_in(self):
        self.storage.write_token_cache("not json")
        self.assertEqual(self.storage.get_login_status(), NOT_LOGGED_IN)
        self.storage.write_token_cache(json.dumps({"AccessToken": {}, "Account": {}}))
        self.assertEqual(self.storage.get_login_status(), NOT_LOGGED_IN)


class TestFileStorage(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.cache = MemoryTokenCache()
        self.path = Path(self.tmp.name) / "nested" / "token_cache.json"
        self.storage = FileStorage(self.cache, "file-abc", self.path)

    def test_round_trip_mirrors_into_memory(self):
        self.assertIsNone(self.storage.read_token_cache())
        blob = token_cache_blob()
        self.storage.write_token_cache(blob)
        self.assertEqual(self.path.read_text(encoding="utf-8"), blob)
        self.assertEqual(self.cache.get("file-abc"), blob)

        self.cache.clear()
        self.assertEqual(self.storage.read_token_cache(), blob)
        self.assertEqual(self.cache.get("file-abc"), blob)

    def test_directory_reads_as_none(self):
        storage = FileStorage(self.cache, "file-dir", self.tmp.name)
        self.assertIsNone(storage.read_token_cache())

    def test_too_large_file(self):
        self.path.parent.mkdir(parents=True)
        self.path.write_text("x" * 200, encoding="utf-8")
        with mock.patch.object(config, "MAX_TOKEN_CACHE_FILE_BYTES", 100):
            with self.assertRaises(OSError) as ctx:
                self.storage.read_token_cache()
            self.assertIn("too large to plausibly store a token", str(ctx.exception))
            self.assertEqual(self.storage.get_login_status(), NOT_LOGGED_IN)

    def test_clear_deletes_file_and_mirror(self):
        self.storage.write_token_cache(token_cache_blob())
        self.storage.clear()
        self.storage.clear()
        self.assertFalse(self.path.exists())
        self.assertIsNone(self.cache.get("file-abc"))

    def test_clear_never_raises(self):
        self.storage.write_token_cache(token_cache_blob())
        with mock.patch.object(Path, "unlink", side_effect=PermissionError(13, "Permission denied")):
            self.storage.clear()
        self.assertTrue(self.path.exists())
        self.assertIsNone(self.cache.get("file-abc"))

        self.cache.put("file-abc", token_cache_blob())
        with mock.patch.object(FileStorage, "_resolve_path", side_effect=OSError("Invalid token cache file path")):
            self.storage.clear()
        self.assertIsNone(self.cache.get("file-abc"))

    def test_unset_path(self):
        storage = FileStorage(self.cache, "file-unset")
        with self.assertRaises(ConfigError):
            storage.validate()
        with self.assertRaises(OSError):
            storage.write_token_cache(token_cache_blob())
        storage.clear()

    def test_write_failure_is_oserror_with_cause(self):
        blocker = Path(self.tmp.name) / "blocker"
        blocker.write_text("", encoding="utf-8")
        storage = FileStorage(self.cache, "file-bad", blocker / "token_cache.json")
        with self.assertRaises(OSError) as ctx:
            storage.write_token_cache(token_cache_blob())
        self.assertIsNotNone(ctx.exception.__cause__)
        self.assertIsNone(self.cache.get("file-bad"))


class TestSettingsStorage(unittest.TestCase):
    def test_settings_round_trip_is_encrypted(self):
        cache = MemoryTokenCache()
        storage = SettingsStorage(cache, "settings-abc")
        blob = token_cache_blob()
        storage.write_token_cache(blob)
        saved = {}
        storage.save_settings_to(saved)
        self.assertNotIn("jane@contoso.com", saved["tokenCache"])

        other_cache = MemoryTokenCache()
        loaded = SettingsStorage(other_cache, "settings-xyz")
        loaded.load_settings_from(saved)
        self.assertEqual(loaded.read_token_cache(), blob)
        self.assertEqual(other_cache.get("settings-xyz"), blob)

    def test_empty_settings(self):
        cache = MemoryTokenCache()
        storage = SettingsStorage(cache, "settings-abc")
        storage.load_settings_from({})
        self.assertIsNone(storage.read_token_cache())
        self.assertFalse(cache.contains_key("settings-abc"))
        saved = {}
        storage.save_settings_to(saved)
        self.assertEqual(saved["tokenCache"], "")

    def test_save_picks_up_rotated_cache(self):
        cache = MemoryTokenCache()
        storage = SettingsStorage(cache, "settings-abc")
        storage.write_token_cache(token_cache_blob(username="old@contoso.com"))
        rotated = token_cache_blob(username="new@contoso.com")
        cache.put("settings-abc", rotated)
        storage.save_settings_to({})
        self.assertEqual(storage.read_token_cache(), rotated)

    def test_read_restores_cleared_mirror(self):
        cache = MemoryTokenCache()
        storage = SettingsStorage(cache, "settings-abc")
        blob = token_cache_blob()
        storage.write_token_cache(blob)
        cache.clear()
        self.assertEqual(storage.read_token_cache(), blob)
        self.assertEqual(cache.get("settings-abc"), blob)

    def test_read_keeps_rotated_mirror(self):
        cache = MemoryTokenCache()
        storage = SettingsStorage(cache, "settings-abc")
        storage.write_token_cache(token_cache_blob(username="old@contoso.com"))
        rotated = token_cache_blob(username="new@contoso.com")
        cache.put("settings-abc", rotated)
        self.assertEqual(storage.read_token_cache(), rotated)
        cache.clear()
        self.assertEqual(storage.read_token_cache(), rotated)



class TestStorageSettings(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.cache = MemoryTokenCache()
        self.settings = StorageSettings(self.cache, "a1b2c3d4e5")
        self.settings.file.file_path = str(Path(self.tmp.name) / "cache.json")

    def test_cache_keys_are_per_backend(self):
        self.assertEqual(self.settings.memory.cache_key, "memory-a1b2c3d4e5")
        self.assertEqual(self.settings.file.cache_key, "file-a1b2c3d4e5")
        self.assertEqual(self.settings.settings.cache_key, "settings-a1b2c3d4e5")

    def test_switching_keeps_other_backends(self):
        self.settings.write_token_cache(token_cache_blob(username="memory@contoso.com"))
        self.settings.storage_type = StorageType.FILE
        self.assertEqual(self.settings.get_login_status(), NOT_LOGGED_IN)
        self.settings.write_token_cache(token_cache_blob(username="file@contoso.com"))

        self.settings.storage_type = StorageType.MEMORY
        self.assertEqual(self.settings.get_login_status().username, "memory@contoso.com")
        self.settings.storage_type = StorageType.FILE
        self.assertEqual(self.settings.get_login_status().username, "file@contoso.com")

    def test_clear_current_and_all(self):
        self.settings.write_token_cache(token_cache_blob())
        self.settings.storage_type = StorageType.SETTINGS
        self.settings.write_token_cache(token_cache_blob())
        self.settings.clear_current_storage()
        self.assertIsNone(self.settings.read_token_cache())
        self.assertIsNotNone(self.settings.memory.read_token_cache())

        self.settings.clear_all()
        self.assertIsNone(self.settings.memory.read_token_cache())
        self.assertEqual(len(self.cache), 0)

    def test_settings_round_trip(self):
        self.settings.storage_type = StorageType.SETTINGS
        self.settings.write_token_cache(token_cache_blob())
        saved = {}
        self.settings.save_settings_to(saved)
        self.assertEqual(saved["storageType"], "SETTINGS")
        self.assertEqual(saved["memory"], {})
        self.assertEqual(saved["file"]["filePath"], self.settings.file.file_path)

        cache = MemoryTokenCache()
        loaded = StorageSettings(cache, "other")
        loaded.load_settings_from(saved)
        self.assertEqual(loaded.storage_type, StorageType.SETTINGS)
        self.assertTrue(loaded.get_login_status().is_logged_in)
        self.assertTrue(cache.contains_key("settings-other"))
        self.assertNotIn("a1b2c3d4e5", json.dumps(saved))

    def test_unknown_storage_type(self):
        with self.assertRaises(ConfigError):
            self.settings.load_settings_from({"storageType": "CLOUD"})
        self.assertEqual(StorageType.parse("file"), StorageType.FILE)


if __name__ == "__main__":
    unittest.main()
