# tests/test_cli.py
from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

from taskrun.cli import run_cli


def _py(code: str) -> str:
    exe = str(Path(sys.executable))
    # This returns a shell command string. JSON will escape it safely.
    return f'"{exe}" -c "{code}"'


def _write_json_tasks(path: Path, tasks: list[dict]) -> None:
    path.write_text(json.dumps({"name": "cli", "tasks": tasks}), encoding="utf-8")


def test_run_inline_json_prints_results_and_summary(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    tasks = [{"id": "hello", "cmd": _py("print('hi')")}]

    code = run_cli(["run", "--json", json.dumps(tasks), "--root", str(tmp_path)])
    captured = capsys.readouterr()

    assert code == 0
    doc = json.loads(captured.out)
    assert doc["results"][0]["id"] == "hello"
    assert doc["results"][0]["stdout"].strip() == "hi"
    assert doc["results"][0]["exit_code"] == 0
    assert doc["summary"]["succeeded"] == 1
    assert set(doc["summary"]) == {
        "total",
        "succeeded",
        "failed",
        "skipped",
        "total_duration_ms",
        "output_dir",
    }
    assert "Succeeded: 1" in captured.err
    assert (tmp_path / "rundata" / "hello.log").exists()


def test_run_jsonl_format(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    tasks = [{"id": "a", "cmd": "exit 0"}, {"id": "b", "cmd": "exit 0", "depends_on": ["a"]}]

    code = run_cli(
        ["run", "--json", json.dumps(tasks), "--root", str(tmp_path), "--no-save", "--format", "jsonl"]
    )
    lines = capsys.readouterr().out.splitlines()

    assert code == 0
    assert [json.loads(line)["id"] for line in lines[:2]] == ["a", "b"]
    assert json.loads(lines[2])["summary"]["total"] == 2


def test_run_failure_returns_1(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    cfg = tmp_path / "tasks.json"
    _write_json_tasks(cfg, [{"id": "fail", "cmd": "exit 5"}])

    code = run_cli(["run", "--file", str(cfg), "--root", str(tmp_path), "--no-save"])
    doc = json.loads(capsys.readouterr().out)

    assert code == 1
    assert doc["results"][0]["error"] == "Exit code: 5"
    assert doc["summary"]["failed"] == 1


def test_run_failure_with_continue_on_error_returns_0(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    cfg = tmp_path / "tasks.json"
    _write_json_tasks(cfg, [{"id": "fail", "cmd": "exit 5"}])

    code = run_cli(
        ["run", "--file", str(cfg), "--root", str(tmp_path), "--no-save", "--continue-on-error"]
    )
    _ = capsys.readouterr()

    assert code == 0


def test_skipped_only_does_not_fail_run(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    tasks = [{"id": "b", "cmd": "exit 0", "depends_on": ["missing"]}]

    code = run_cli(["run", "--json", json.dumps(tasks), "--root", str(tmp_path), "--no-save"])
    doc = json.loads(capsys.readouterr().out)

    assert code == 0
    assert doc["summary"]["skipped"] == 1


def test_run_timeout_flag_overrides_tasks(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    tasks = [{"id": "slow", "cmd": _py("import time; time.sleep(5)")}]

    code = run_cli(
        ["run", "--json", json.dumps(tasks), "--root", str(tmp_path), "--no-save", "--timeout", "1"]
    )
    doc = json.loads(capsys.readouterr().out)

    assert code == 1
    assert doc["results"][0]["error"] == "Timeout after 1 seconds"


def test_dry_run_prints_plan_and_creates_nothing(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    cfg = tmp_path / "tasks.yaml"
    cfg.write_text(
        """
tasks:
  - id: build
    cmd: make
  - id: test
    cmd: make test
    depends_on: [build]
groups:
  - name: lint
    tasks:
      - id: fmt
        cmd: ruff format --check .
""",
        encoding="utf-8",
    )

    code = run_cli(["run", "--file", str(cfg), "--root", str(tmp_path), "--dry-run"])
    captured = capsys.readouterr()

    assert code == 0
    assert "DRY RUN: would execute 3 task(s)" in captured.err
    assert "[test] (after: build)" in captured.err
    assert "Group 'lint' (1 tasks, parallel=True)" in captured.err
    doc = json.loads(captured.out)
    assert all(r["success"] for r in doc["results"])
    assert not (tmp_path / "rundata").exists()


def test_list_prints_one_task_per_line(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    cfg = tmp_path / "tasks.json"
    _write_json_tasks(
        cfg,
        [
            {"id": "b", "cmd": "exit 0", "tags": ["x"]},
            {"id": "a", "cmd": "exit 0"},
        ],
    )

    code = run_cli(["list", "--file", str(cfg)])
    out = capsys.readouterr().out.splitlines()

    assert code == 0
    assert out == ["b", "a"]

    code = run_cli(["list", "--file", str(cfg), "--tag", "x"])
    assert capsys.readouterr().out.splitlines() == ["b"]


def test_graph_prints_adjacency_list(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    tasks = [
        {"id": "c", "cmd": "exit 0", "depends_on": ["b", "a"]},
        {"id": "b", "cmd": "exit 0", "depends_on": ["a"]},
        {"id": "a", "cmd": "exit 0"},
    ]

    code = run_cli(["graph", "--json", json.dumps(tasks)])
    out = capsys.readouterr().out.splitlines()

    assert code == 0
    assert out == ["a:", "b: a", "c: a b"]


def test_graph_cycle_returns_2(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    tasks = [
        {"id": "a", "cmd": "exit 0", "depends_on": ["b"]},
        {"id": "b", "cmd": "exit 0", "depends_on": ["a"]},
    ]

    code = run_cli(["graph", "--json", json.dumps(tasks)])
    captured = capsys.readouterr()

    assert code == 2
    assert "Cycle detected" in captured.err


def test_invalid_json_returns_2(capsys: pytest.CaptureFixture[str]) -> None:
    code = run_cli(["run", "--json", "[]"])
    captured = capsys.readouterr()

    assert code == 2
    assert "single task object" in captured.err


def test_missing_file_returns_2(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code = run_cli(["list", "--file", str(tmp_path / "missing.json")])
    captured = capsys.readouterr()

    assert code == 2
    assert captured.err != ""


def test_json_and_file_are_mutually_exclusive(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as exc_info:
        run_cli(["list", "--json", "{}", "--file", str(tmp_path / "t.json")])

    assert exc_info.value.code == 2


def test_negative_timeout_is_rejected(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    tasks = [{"id": "a", "cmd": "exit 0"}]

    with pytest.raises(SystemExit) as exc_info:
        run_cli(["run", "--json", json.dumps(tasks), "--root", str(tmp_path), "--timeout", "-1"])

    assert exc_info.value.code == 2
    assert "non-negative" in capsys.readouterr().err
