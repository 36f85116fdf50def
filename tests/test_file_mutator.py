"""Tests for FileMutator."""

import os
import stat

import pytest

from refactor_assistant.agents.exceptions import FileAccessError
from refactor_assistant.agents.file_mutator import FileMutator


@pytest.fixture
def mutator():
    return FileMutator()


class TestSnapshotAndReadBack:
    def test_snapshot_reads_content(self, mutator, tmp_path):
        path = tmp_path / "a.txt"
        path.write_text("hello\n", encoding="utf-8")
        assert mutator.snapshot(str(path)) == "hello\n"

    def test_snapshot_preserves_crlf(self, mutator, tmp_path):
        path = tmp_path / "crlf.txt"
        path.write_bytes(b"one\r\ntwo\r\n")
        assert mutator.snapshot(str(path)) == "one\r\ntwo\r\n"

    def test_missing_file_raises(self, mutator, tmp_path):
        with pytest.raises(FileAccessError, match="snapshot"):
            mutator.snapshot(str(tmp_path / "missing.txt"))

    def test_non_utf8_raises(self, mutator, tmp_path):
        path = tmp_path / "bin.dat"
        path.write_bytes(b"\xff\xfe\x00\x81")
        with pytest.raises(FileAccessError):
            mutator.snapshot(str(path))

    def test_read_back_sees_latest_write(self, mutator, tmp_path):
        path = tmp_path / "a.txt"
        path.write_text("before", encoding="utf-8")
        mutator.write(str(path), "after")
        assert mutator.read_back(str(path)) == "after"


class TestWrite:
    def test_overwrites_whole_file(self, mutator, tmp_path):
        path = tmp_path / "a.txt"
        path.write_text("a much longer original content\n", encoding="utf-8")
        mutator.write(str(path), "short")
        assert path.read_bytes() == b"short"

    def test_restore_is_byte_identical(self, mutator, tmp_path):
        path = tmp_path / "a.txt"
        original_bytes = "café\r\nline\n".encode("utf-8")
        path.write_bytes(original_bytes)
        original = mutator.snapshot(str(path))
        mutator.write(str(path), "changed")
        mutator.write(str(path), original)
        assert path.read_bytes() == original_bytes

    def test_preserves_mode(self, mutator, tmp_path):
        path = tmp_path / "script.sh"
        path.write_text("#!/bin/sh\n", encoding="utf-8")
        os.chmod(path, 0o755)
        mutator.write(str(path), "#!/bin/sh\necho hi\n")
        assert stat.S_IMODE(os.stat(path).st_mode) == 0o755

    def test_leaves_no_temp_files(self, mutator, tmp_path):
        path = tmp_path / "a.txt"
        path.write_text("x", encoding="utf-8")
        mutator.write(str(path), "y")
        assert sorted(p.name for p in tmp_path.iterdir()) == ["a.txt"]

    def test_missing_directory_raises(self, mutator, tmp_path):
        with pytest.raises(FileAccessError, match="write"):
            mutator.write(str(tmp_path / "nope" / "a.txt"), "content")

    def test_writes_through_symlink(self, mutator, tmp_path):
        real = tmp_path / "real.rs"
        real.write_text("old_value = 10\n", encoding="utf-8")
        link = tmp_path / "link.rs"
        link.symlink_to(real)

        mutator.write(str(link), "new_value = 10")

        assert link.is_symlink()
        assert real.read_text(encoding="utf-8") == "new_value = 10"
        assert sorted(p.name for p in tmp_path.iterdir()) == ["link.rs", "real.rs"]
