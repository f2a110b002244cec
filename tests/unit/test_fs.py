# tests/unit/test_fs.py: Unit tests for filesystem utilities.

from pathlib import Path

from nightlight.util.fs import atomic_write, remove_file


def test_atomic_write(tmp_path: Path):
    """Tests that atomic_write writes content correctly to a file."""
    file_path = tmp_path / "test.txt"
    content = "hello world"

    atomic_write(file_path, content)

    assert file_path.is_file()
    assert file_path.read_text() == content


def test_atomic_write_replaces_and_cleans_up(tmp_path: Path):
    """Tests that an existing file is replaced and no temporary file is left."""
    file_path = tmp_path / "nightlight.pid"
    file_path.write_text("a much longer previous value")

    atomic_write(file_path, "42")

    assert file_path.read_text() == "42"
    assert [p.name for p in tmp_path.iterdir()] == ["nightlight.pid"]


def test_remove_file(tmp_path: Path):
    file_path = tmp_path / "nightlight.pid"
    file_path.write_text("42")

    assert remove_file(file_path) is True
    assert not file_path.exists()
    assert remove_file(file_path) is False
