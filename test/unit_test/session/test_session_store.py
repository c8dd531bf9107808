from __future__ import annotations

from pathlib import Path

from mcp_bridge.session import SessionStore


def test_read_missing_file_returns_none(tmp_path: Path) -> None:
    store = SessionStore(tmp_path / "absent")
    assert store.read() is None


def test_write_then_read_trims_token(tmp_path: Path) -> None:
    path = tmp_path / "cache"
    store = SessionStore(path)
    store.write("abc123")
    assert path.read_text(encoding="utf-8") == "abc123"

    path.write_text("  xyz789 \n", encoding="utf-8")
    assert store.read() == "xyz789"


def test_blank_file_means_no_session(tmp_path: Path) -> None:
    path = tmp_path / "cache"
    path.write_text("   \n", encoding="utf-8")
    assert SessionStore(path).read() is None


def test_write_overwrites_wholesale(tmp_path: Path) -> None:
    store = SessionStore(tmp_path / "cache")
    store.write("a-much-longer-first-token")
    store.write("short")
    assert store.read() == "short"


def test_clear_removes_file_and_tolerates_absence(tmp_path: Path) -> None:
    path = tmp_path / "cache"
    store = SessionStore(path)
    store.write("abc")
    store.clear()
    assert not path.exists()
    store.clear()
    assert store.read() is None


def test_write_creates_parent_directories(tmp_path: Path) -> None:
    store = SessionStore(tmp_path / "nested" / "dir" / "cache")
    store.write("tok")
    assert store.read() == "tok"


def test_write_failure_is_logged_not_raised(tmp_path: Path, caplog) -> None:
    # A directory in place of the file makes the write fail
    path = tmp_path / "cache"
    path.mkdir()
    store = SessionStore(path)
    store.write("tok")
    assert "Failed to save session" in caplog.text
