import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from pydantic import ValidationError

from starfm.config import (
    DEFAULT_BASE_URL,
    Credentials,
    LastFmSettings,
    Settings,
    is_placeholder,
    load_settings,
)

_NO_ENV = {"LASTFM_API_KEY": "", "LASTFM_SHARED_SECRET": ""}


class TestCredentials(unittest.TestCase):
    def test_placeholders(self) -> None:
        self.assertTrue(is_placeholder("$(LASTFM_API_KEY)"))
        self.assertTrue(is_placeholder("${LASTFM_SHARED_SECRET}"))
        self.assertFalse(is_placeholder("abc123"))
        self.assertFalse(is_placeholder(""))
        self.assertFalse(is_placeholder(None))

    def test_placeholder_is_treated_like_empty(self) -> None:
        creds = Credentials.resolve("$(LASTFM_API_KEY)", "secret")
        self.assertEqual(creds.api_key, "")
        self.assertFalse(creds.is_configured)
        self.assertTrue(Credentials.resolve("key", "secret").is_configured)

    def test_environment_fills_missing_values(self) -> None:
        settings = LastFmSettings(api_key="$(LASTFM_API_KEY)")
        with patch.dict(os.environ, {"LASTFM_API_KEY": "env-key", "LASTFM_SHARED_SECRET": "env-secret"}):
            creds = settings.credentials()
        self.assertEqual(creds, Credentials("env-key", "env-secret"))

    def test_file_values_win_over_environment(self) -> None:
        settings = LastFmSettings(api_key="file-key", shared_secret="file-secret")
        with patch.dict(os.environ, {"LASTFM_API_KEY": "env-key"}):
            self.assertEqual(settings.credentials().api_key, "file-key")


class TestSettingsLoad(unittest.TestCase):
    def test_load_yaml(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "config.yaml"
            path.write_text(
                "lastfm:\n"
                "  api_key: abc\n"
                "  shared_secret: def\n"
                "  recent_limit: 20\n"
                f"store:\n  path: {tmpdir}/ratings.sqlite3\n",
                encoding="utf-8",
            )
            settings, found = load_settings(path)
        self.assertEqual(found, path)
        self.assertEqual(settings.lastfm.base_url, DEFAULT_BASE_URL)
        self.assertEqual(settings.lastfm.recent_limit, 20)
        self.assertIsNone(settings.lastfm.timeout_seconds)
        self.assertEqual(settings.store.path.name, "ratings.sqlite3")
        self.assertTrue(settings.store.path.is_absolute())
        with patch.dict(os.environ, _NO_ENV):
            self.assertTrue(settings.lastfm.credentials().is_configured)

    def test_empty_file_gives_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "config.yaml"
            path.write_text("", encoding="utf-8")
            settings = Settings.load(path)
        with patch.dict(os.environ, _NO_ENV):
            self.assertFalse(settings.lastfm.credentials().is_configured)

    def test_invalid_values_raise(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "config.yaml"
            path.write_text("lastfm:\n  recent_limit: lots\n", encoding="utf-8")
            with self.assertRaises(ValidationError):
                Settings.load(path)

    def test_explicit_missing_config_raises(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            with self.assertRaises(FileNotFoundError):
                load_settings(Path(tmpdir) / "missing.yaml")

    def test_no_config_in_cwd_uses_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            with patch("starfm.config.Path.cwd", return_value=Path(tmpdir)):
                settings, found = load_settings(None)
        self.assertIsNone(found)
        self.assertEqual(settings.lastfm.recent_limit, 50)


if __name__ == "__main__":
    unittest.main()
