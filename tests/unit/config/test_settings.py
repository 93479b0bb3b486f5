"""Tests for environment-driven settings."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from src.config import get_settings, reset_settings
from src.config.settings import LedgerSettings, StorageSettings


def test_memory_backend_from_environment():
    # The autouse fixture selects the memory backend
    assert get_settings().storage.backend == "memory"


def test_settings_cached_until_reset(monkeypatch: pytest.MonkeyPatch):
    first = get_settings()
    assert get_settings() is first

    monkeypatch.setenv("LEDGER_REFERENCE_PREFIX", "adj")
    reset_settings()

    assert get_settings() is not first
    assert get_settings().ledger.reference_prefix == "ADJ"


def test_db_path(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    monkeypatch.setenv("STORAGE_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("STORAGE_DB_NAME", "paint.db")
    assert StorageSettings().db_path == tmp_path / "paint.db"


def test_negative_adjustments_toggle(monkeypatch: pytest.MonkeyPatch):
    assert LedgerSettings().allow_negative_adjustments is True
    monkeypatch.setenv("LEDGER_ALLOW_NEGATIVE_ADJUSTMENTS", "false")
    assert LedgerSettings().allow_negative_adjustments is False


def test_reference_prefix_must_be_alphanumeric():
    with pytest.raises(ValidationError):
        LedgerSettings(reference_prefix="TX-N")


def test_unknown_backend_rejected(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("STORAGE_BACKEND", "postgres")
    with pytest.raises(ValidationError):
        StorageSettings()
