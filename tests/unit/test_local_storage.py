"""Unit tests for LocalStorage."""

from pathlib import Path
from unittest.mock import patch

import pytest

from moms_kitchen_client.repositories.local_storage import LocalStorage


@pytest.mark.unit
class TestLocalStorage:
    """Test suite for LocalStorage."""

    def test_get_missing_key_returns_none(self, storage: LocalStorage) -> None:
        """Test reading a key that was never written."""
        assert storage.get_item("missing") is None

    def test_set_then_get(self, storage: LocalStorage) -> None:
        """Test values survive a write and read."""
        assert storage.set_item("auth", {"access_token": "abc", "user": None}) is True
        assert storage.get_item("auth") == {"access_token": "abc", "user": None}

    def test_keys_with_unsafe_characters(self, storage: LocalStorage) -> None:
        """Test keys like '@mom_user_app_cart' map to safe file names."""
        storage.set_item("@mom_user_app_cart", [{"id": "m1"}])

        assert storage.get_item("@mom_user_app_cart") == [{"id": "m1"}]
        assert (storage.storage_dir / "_mom_user_app_cart.json").exists()

    def test_separate_instances_share_directory(self, tmp_path: Path) -> None:
        """Test a new instance reads what a previous one wrote."""
        LocalStorage(tmp_path).set_item("auth", {"refresh_token": "r1"})

        assert LocalStorage(tmp_path).get_item("auth") == {"refresh_token": "r1"}

    def test_corrupt_file_returns_none(self, storage: LocalStorage) -> None:
        """Test unreadable JSON degrades to a missing value."""
        storage.storage_dir.mkdir(parents=True)
        (storage.storage_dir / "auth.json").write_text("{not json", encoding="utf-8")

        assert storage.get_item("auth") is None

    def test_unserializable_value_returns_false(self, storage: LocalStorage) -> None:
        """Test write failures are reported, not raised."""
        assert storage.set_item("bad", {"value": object()}) is False

    def test_write_os_error_returns_false(self, storage: LocalStorage) -> None:
        """Test filesystem errors during write are reported, not raised."""
        with patch("moms_kitchen_client.repositories.local_storage.os.replace", side_effect=OSError("disk full")):
            assert storage.set_item("auth", {"a": 1}) is False

    def test_remove_item(self, storage: LocalStorage) -> None:
        """Test removing a key, including one that does not exist."""
        storage.set_item("auth", {"a": 1})

        assert storage.remove_item("auth") is True
        assert storage.get_item("auth") is None
        assert storage.remove_item("auth") is True
