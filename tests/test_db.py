"""Tests for the filesystem-backed key/value stores."""

import os

import pytest

from stepgen.db import DB, reset_namespaces
from stepgen.errors import NotFoundError


def test_round_trip_preserves_newlines_backticks_and_unicode(tmp_path):
    db = DB(str(tmp_path / "store"))
    value = "line one\r\nline two\n```python\nprint('héllo ✓')\n```\n\n"
    db.write("notes.md", value)
    assert db.read("notes.md") == value


def test_round_trip_without_trailing_newline(tmp_path):
    db = DB(str(tmp_path))
    db.write("a.txt", "no newline at end")
    assert db.read("a.txt") == "no newline at end"


def test_write_creates_intermediate_directories(tmp_path):
    db = DB(str(tmp_path / "ws"))
    db.write("src/pkg/module.py", "x = 1\n")
    assert os.path.isfile(tmp_path / "ws" / "src" / "pkg" / "module.py")
    assert db.exists("src/pkg/module.py")


def test_write_overwrites_previous_value(tmp_path):
    db = DB(str(tmp_path))
    db.write("k", "first")
    db.write("k", "second")
    assert db.read("k") == "second"


def test_read_missing_key_raises_not_found(tmp_path):
    db = DB(str(tmp_path))
    with pytest.raises(NotFoundError, match="missing"):
        db.read("missing")


def test_not_found_is_also_a_key_error(tmp_path):
    db = DB(str(tmp_path))
    with pytest.raises(KeyError):
        db["missing"]


def test_read_optional_returns_default(tmp_path):
    db = DB(str(tmp_path))
    assert db.read_optional("missing") is None
    assert db.read_optional("missing", "fallback") == "fallback"
    db.write("present", "value")
    assert db.read_optional("present", "fallback") == "value"


def test_exists_reflects_existing_storage(tmp_path):
    (tmp_path / "prompt").write_text("already here", encoding="utf-8")
    db = DB(str(tmp_path))
    assert db.exists("prompt")
    assert "prompt" in db
    assert not db.exists("feedback")


def test_mapping_dunders(tmp_path):
    db = DB(str(tmp_path))
    db["x/y"] = "z"
    assert db["x/y"] == "z"
    assert "x/y" in db


def test_constructor_creates_root(tmp_path):
    root = tmp_path / "deep" / "root"
    DB(str(root))
    assert root.is_dir()


def test_reset_namespaces_removes_trees_and_ignores_missing(tmp_path):
    memory = DB(str(tmp_path / "memory"))
    memory.write("logs/clarify", "[]")
    reset_namespaces(str(tmp_path / "memory"), str(tmp_path / "never-created"))
    assert not (tmp_path / "memory").exists()
