"""Tests for the patchagent command line."""

import json

import pytest

from patch_agent.cli import EXIT_FAILED_EDITS, EXIT_OK, EXIT_PARSE_ERROR, main


@pytest.fixture
def project(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("DIFF_MODE", raising=False)
    monkeypatch.delenv("WORKSPACE_DIR", raising=False)
    monkeypatch.setenv("EDIT_METRICS", "true")
    ws = tmp_path / "ws"
    (ws / "src").mkdir(parents=True)
    (ws / "src" / "a.ts").write_text("foo()\n")
    return tmp_path


def _write_response(root, name, text):
    path = root / name
    path.write_text(text)
    return str(path)


GOOD = "src/a.ts\n<<<<<<< SEARCH\nfoo()\n=======\nbar()\n>>>>>>> REPLACE\n"
BAD = "src/a.ts\n<<<<<<< SEARCH\nmissing()\n=======\nbar()\n>>>>>>> REPLACE\n"


def test_parse_prints_json(project, capsys):
    response = _write_response(project, "r.txt", GOOD)

    assert main(["parse", response]) == EXIT_OK
    edits = json.loads(capsys.readouterr().out)
    assert edits == [{"path": "src/a.ts", "original": "foo()", "updated": "bar()"}]


def test_parse_error_exit_code(project, capsys):
    response = _write_response(project, "r.txt", "src/a.ts\n<<<<<<< SEARCH\nfoo\n")

    assert main(["parse", response]) == EXIT_PARSE_ERROR
    assert "Expected =======" in capsys.readouterr().err


def test_apply_success(project, capsys):
    response = _write_response(project, "r.txt", GOOD)

    code = main(["apply", response, "--workspace", str(project / "ws"), "--show-diff"])

    assert code == EXIT_OK
    out = capsys.readouterr().out
    assert "passed  src/a.ts" in out
    assert "+bar()" in out
    assert (project / "ws" / "src" / "a.ts").read_text() == "bar()\n"
    assert (project / "ws" / ".patchagent" / "edit_metrics.jsonl").is_file()


def test_apply_failure_prints_feedback(project, capsys):
    response = _write_response(project, "r.txt", BAD)

    code = main(["apply", response, "--workspace", str(project / "ws")])

    assert code == EXIT_FAILED_EDITS
    out = capsys.readouterr().out
    assert "failed  src/a.ts" in out
    assert "Some edits failed." in out


def test_apply_rejects_new_file_over_existing(project, capsys):
    response = _write_response(
        project, "r.txt",
        "src/a.ts\n<<<<<<< SEARCH\n=======\nreplaced\n>>>>>>> REPLACE\n",
    )

    code = main(["apply", response, "--workspace", str(project / "ws"),
                 "--existing-from-disk"])

    assert code == EXIT_FAILED_EDITS
    assert "file already exists" in capsys.readouterr().out
    assert (project / "ws" / "src" / "a.ts").read_text() == "foo()\n"


def test_apply_multiple_responses_in_order(project):
    first = _write_response(project, "1.txt", GOOD)
    second = _write_response(
        project, "2.txt",
        "src/a.ts\n<<<<<<< SEARCH\nbar()\n=======\nbaz()\n>>>>>>> REPLACE\n",
    )

    assert main(["apply", first, second, "--workspace", str(project / "ws")]) == EXIT_OK
    assert (project / "ws" / "src" / "a.ts").read_text() == "baz()\n"


def test_stats(project, capsys):
    response = _write_response(project, "r.txt", BAD)
    main(["apply", response, "--workspace", str(project / "ws")])
    capsys.readouterr()

    assert main(["stats", "--workspace", str(project / "ws")]) == EXIT_OK
    out = capsys.readouterr().out
    assert "Passes:        1" in out
    assert "no_match: 1" in out
