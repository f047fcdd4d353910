"""Tests for the workspace read/write collaborators."""

import os
import shutil
import stat
import sys

import pytest

from patch_agent.editing.models import Edit
from patch_agent.editing.patch_applier import PatchApplier
from patch_agent.editing.workspace import (
    LocalWorkspace, ShellWorkspace, normalize_path,
)


@pytest.fixture
def umask_022():
    previous = os.umask(0o022)
    yield
    os.umask(previous)


def _mode(path):
    return stat.S_IMODE(os.stat(path).st_mode)


class TestNormalizePath:
    @pytest.mark.parametrize("raw,expected", [
        ("src/a.ts", "src/a.ts"),
        ("/src/a.ts", "src/a.ts"),
        ("//src/a.ts", "src/a.ts"),
        ("./src/a.ts", "src/a.ts"),
        ("  src/a.ts ", "src/a.ts"),
    ])
    def test_normalize(self, raw, expected):
        assert normalize_path(raw) == expected


class TestLocalWorkspace:
    def test_read_existing(self, tmp_path):
        (tmp_path / "a.txt").write_text("hello\n", encoding="utf-8")
        ws = LocalWorkspace(str(tmp_path))

        result = ws.read("a.txt")
        assert result.success is True
        assert result.content == "hello\n"

    def test_read_preserves_crlf(self, tmp_path):
        (tmp_path / "win.txt").write_bytes(b"a\r\nb\r\n")
        ws = LocalWorkspace(str(tmp_path))

        assert ws.read("win.txt").content == "a\r\nb\r\n"

    def test_read_missing(self, tmp_path):
        result = LocalWorkspace(str(tmp_path)).read("nope.txt")
        assert result.success is False
        assert result.error

    def test_write_creates_parents(self, tmp_path):
        ws = LocalWorkspace(str(tmp_path))

        result = ws.write("/deep/nested/file.ts", "export {};")
        assert result.success is True
        assert (tmp_path / "deep" / "nested" / "file.ts").read_text() == "export {};"
        # No temp files left behind
        assert os.listdir(tmp_path / "deep" / "nested") == ["file.ts"]

    def test_write_overwrites(self, tmp_path):
        (tmp_path / "a.txt").write_text("old")
        ws = LocalWorkspace(str(tmp_path))

        assert ws.write("a.txt", "new").success
        assert (tmp_path / "a.txt").read_text() == "new"

    def test_path_escape_rejected(self, tmp_path):
        ws = LocalWorkspace(str(tmp_path / "root"))

        assert ws.write("../outside.txt", "x").success is False
        assert ws.read("../../etc/passwd").success is False
        assert not (tmp_path / "outside.txt").exists()

    def test_exists_and_list_files(self, tmp_path):
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "a.py").write_text("a")
        (tmp_path / "b.py").write_text("b")
        (tmp_path / ".git").mkdir()
        (tmp_path / ".git" / "HEAD").write_text("ref")
        ws = LocalWorkspace(str(tmp_path))

        assert ws.exists("src/a.py")
        assert not ws.exists("src/missing.py")
        assert ws.list_files() == ["b.py", "src/a.py"]


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX file modes")
class TestWriteModes:
    def test_overwrite_keeps_executable_mode(self, tmp_path):
        script = tmp_path / "run.sh"
        script.write_text("echo old\n")
        script.chmod(0o755)

        assert LocalWorkspace(str(tmp_path)).write("run.sh", "echo new\n").success
        assert _mode(script) == 0o755
        assert script.read_text() == "echo new\n"

    def test_new_file_follows_umask(self, tmp_path, umask_022):
        assert LocalWorkspace(str(tmp_path)).write("src/new.py", "x = 1\n").success
        assert _mode(tmp_path / "src" / "new.py") == 0o644


@pytest.mark.skipif(shutil.which("cat") is None, reason="cat not available")
class TestShellWorkspace:
    def test_read_via_cat(self, tmp_path):
        (tmp_path / "a.txt").write_text("line\n")
        result = ShellWorkspace(str(tmp_path)).read("a.txt")

        assert result.success is True
        assert result.content == "line\n"

    def test_missing_file_reports_stderr(self, tmp_path):
        result = ShellWorkspace(str(tmp_path)).read("missing.txt")

        assert result.success is False
        assert "missing.txt" in result.error

    def test_empty_file_is_failure(self, tmp_path):
        (tmp_path / "empty.txt").write_text("")
        result = ShellWorkspace(str(tmp_path)).read("empty.txt")

        assert result.success is False
        assert result.error == "Unknown error"

    def test_write_delegates_to_local(self, tmp_path):
        ws = ShellWorkspace(str(tmp_path))
        assert ws.write("x/y.txt", "data").success
        assert (tmp_path / "x" / "y.txt").read_text() == "data"

    def test_read_preserves_crlf(self, tmp_path):
        (tmp_path / "win.txt").write_bytes(b"one\r\ntwo\r\n")
        result = ShellWorkspace(str(tmp_path)).read("win.txt")

        assert result.success is True
        assert result.content == "one\r\ntwo\r\n"

    def test_non_utf8_is_failure(self, tmp_path):
        (tmp_path / "latin.txt").write_bytes(b"caf\xe9\n")
        result = ShellWorkspace(str(tmp_path)).read("latin.txt")

        assert result.success is False
        assert result.error

    def test_edit_keeps_crlf_bytes(self, tmp_path):
        (tmp_path / "src").mkdir()
        target = tmp_path / "src" / "win.txt"
        target.write_bytes(b"one\r\ntwo\r\nthree\r\n")
        applier = PatchApplier(ShellWorkspace(str(tmp_path)))

        results = applier.apply(
            ["src/win.txt"], [Edit(path="src/win.txt", original="two\r", updated="TWO\r")]
        )

        assert results.ok
        assert target.read_bytes() == b"one\r\nTWO\r\nthree\r\n"
