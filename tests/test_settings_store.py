"""Tests for the settings snapshot and its persistence."""

from __future__ import annotations

import json
import os

import pytest

from services.vector_memory.SettingsStore import SettingsStore


@pytest.fixture
def settings_file(monkeypatch: pytest.MonkeyPatch, tmp_path) -> str:
    path = str(tmp_path / "config" / "vectors.json")
    monkeypatch.setenv("VECTORS_SETTINGS_FILE", path)
    return path


def test_update_is_saved_and_reloaded(settings_file, helper_config) -> None:
    store = SettingsStore(helper_config=helper_config)

    store.update({"enabled_chats": True, "depth": 4})

    with open(settings_file, encoding="utf-8") as f:
        assert json.load(f)["depth"] == 4
    assert not os.path.exists(f"{settings_file}.tmp")
    assert SettingsStore(helper_config=helper_config).get().depth == 4


def test_failed_save_keeps_previous_settings(settings_file, monkeypatch: pytest.MonkeyPatch, helper_config) -> None:
    store = SettingsStore(helper_config=helper_config)
    store.update({"depth": 3})

    def fail_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(os, "replace", fail_replace)

    with pytest.raises(OSError):
        store.update({"depth": 9})

    assert store.get().depth == 3
    assert not os.path.exists(f"{settings_file}.tmp")
    with open(settings_file, encoding="utf-8") as f:
        assert json.load(f)["depth"] == 3
