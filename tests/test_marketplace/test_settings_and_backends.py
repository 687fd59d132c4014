"""
Tests for configuration and backend selection.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from marketplace.backends import build_push_channel, build_user_store
from marketplace.channels import MockPushChannel
from marketplace.data_store import DataStore
from marketplace.settings import DEFAULT_DATA_DIR, Settings, get_settings, reset_settings


class TestSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self):
        settings = Settings()

        assert settings.user_backend == "json"
        assert settings.push_backend == "mock"
        assert settings.data_dir == DEFAULT_DATA_DIR
        assert settings.dispatch_max_workers == 4
        assert settings.firebase_credentials is None

    def test_reads_prefixed_environment(self, monkeypatch):
        monkeypatch.setenv("FARM_NOTIFY_PUSH_BACKEND", "fcm")
        monkeypatch.setenv("FARM_NOTIFY_DISPATCH_MAX_WORKERS", "8")

        settings = Settings()

        assert settings.push_backend == "fcm"
        assert settings.dispatch_max_workers == 8

    def test_rejects_unknown_backend(self, monkeypatch):
        monkeypatch.setenv("FARM_NOTIFY_PUSH_BACKEND", "pigeon")

        with pytest.raises(ValidationError):
            Settings()

    def test_rejects_zero_workers(self):
        with pytest.raises(ValidationError):
            Settings(dispatch_max_workers=0)

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()

    def test_reset_settings(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("FARM_NOTIFY_DISPATCH_MAX_WORKERS", "2")
        reset_settings()

        second = get_settings()

        assert second is not first
        assert second.dispatch_max_workers == 2


class TestBackends:
    """Tests for the backend factories."""

    def test_json_user_store(self, tmp_path: Path):
        store = build_user_store(Settings(data_dir=tmp_path))

        assert isinstance(store, DataStore)
        assert store.data_dir == tmp_path

    def test_mock_push_channel(self):
        channel = build_push_channel(Settings(push_backend="mock"))

        assert isinstance(channel, MockPushChannel)

    def test_firestore_user_store(self, monkeypatch):
        """Test that the firestore backend builds the Firestore adapter."""
        created = {}

        class FakeFirestoreUserStore:
            def __init__(self, collection=None):
                created["collection"] = collection

        monkeypatch.setattr("marketplace.backends.FirestoreUserStore", FakeFirestoreUserStore)

        store = build_user_store(Settings(user_backend="firestore", users_collection="members"))

        assert isinstance(store, FakeFirestoreUserStore)
        assert created["collection"] == "members"
