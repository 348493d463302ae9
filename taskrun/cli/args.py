from __future__ import annotations

import argparse


def _non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}") from None
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be a non-negative integer, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="taskrun")

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log task scheduling details to stderr",
    )

    # --json / --file, shared by every subcommand
    source = argparse.ArgumentParser(add_help=False)
    group = source.add_mutually_exclusive_group(required=True)
    group.add_argument("--json", dest="json_input", help="Inline JSON task definition")
    group.add_argument("--file", dest="file_input", help="Task file (.json, .yaml/.yml, .toml)")

    subparsers = parser.add_subparsers(
        dest="command",
        required=True,
    )

    # run
    run = subparsers.add_parser("run", parents=[source], help="Run tasks")
    run.add_argument(
        "--root",
        default=".",
        help="Directory task working directories are resolved against",
    )
    run.add_argument(
        "-j",
        "--max-parallel",
        type=int,
        default=0,
        help="Maximum concurrent tasks (0 = number of CPUs)",
    )
    run.add_argument(
        "--output-dir",
        default=None,
        help="Directory for per-task logs (default: <root>/rundata)",
    )
    run.add_argument(
        "--no-save",
        action="store_true",
        help="Do not write per-task log files",
    )
    run.add_argument(
        "--continue-on-error",
        action="store_true",
        help="Keep going after a failure and exit 0",
    )
    run.add_argument(
        "--timeout",
        type=_non_negative_int,
        default=None,
        help="Timeout in seconds applied to every task",
    )
    run.add_argument("--tag", default=None, help="Only run tasks carrying this tag")
    run.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be executed without running anything",
    )
    run.add_argument(
        "--format",
        choices=("json", "jsonl"),
        default="json",
        help="Output format for results",
    )

    # list
    list_cmd = subparsers.add_parser("list", parents=[source], help="List tasks")
    list_cmd.add_argument("--tag", default=None, help="Only list tasks carrying this tag")

    # graph
    subparsers.add_parser("graph", parents=[source], help="Show dependency graph")

    return parser
