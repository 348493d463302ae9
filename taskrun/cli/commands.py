from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from taskrun.config import TaskSet, TaskSetError, load_task_set, parse_tasks
from taskrun.executor import Executor, RunError, RunOptions, RunResult
from taskrun.graph import GraphError, TaskGraph

from .args import build_parser


def run_cli(argv: list[str] | None = None) -> int:
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
        _configure_logging(args.verbose)

        match args.command:
            case "run":
                return cmd_run(args)
            case "list":
                return cmd_list(args)
            case "graph":
                return cmd_graph(args)
            case _:
                return 2

    except (TaskSetError, GraphError, RunError) as exc:
        print(str(exc), file=sys.stderr)
        return 2

    except KeyboardInterrupt:
        return 130


def main() -> None:
    sys.exit(run_cli())


def cmd_run(args: argparse.Namespace) -> int:
    task_set = _load(args)
    options = RunOptions(
        max_parallel=args.max_parallel,
        output_dir=Path(args.output_dir) if args.output_dir else None,
        save_outputs=not args.no_save,
        continue_on_error=args.continue_on_error,
        timeout_override=args.timeout,
        filter_tag=args.tag,
        dry_run=args.dry_run,
    )
    root = Path(args.root)

    if options.dry_run:
        _print_plan(task_set, options, root)

    rr = Executor(root, options).run(task_set)
    _print_result(rr, args.format)

    if not options.dry_run:
        _print_summary(rr)

    return 1 if rr.summary.failed > 0 and not options.continue_on_error else 0


def cmd_list(args: argparse.Namespace) -> int:
    task_set = _load(args)
    for task in task_set.filter_tag(args.tag):
        print(task.id)
    return 0


def cmd_graph(args: argparse.Namespace) -> int:
    task_set = _load(args)
    graph = TaskGraph.from_tasks(task_set.all_tasks())
    graph.topo_order()
    for tid in sorted(graph.order):
        deps = " ".join(sorted(graph.deps_of(tid)))
        print(f"{tid}: {deps}".rstrip())
    return 0


def _load(args: argparse.Namespace) -> TaskSet:
    if args.json_input is not None:
        return parse_tasks(args.json_input)
    return load_task_set(args.file_input)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _print_plan(task_set: TaskSet, options: RunOptions, root: Path) -> None:
    err = sys.stderr
    print(f"DRY RUN: would execute {len(task_set)} task(s)", file=err)
    for task in task_set.tasks:
        after = f" (after: {', '.join(task.depends_on)})" if task.depends_on else ""
        print(f"  [{task.id}]{after}", file=err)
        print(f"    {task.cmd}", file=err)
    for group in task_set.groups:
        print(
            f"  Group '{group.name}' ({len(group.tasks)} tasks, parallel={group.parallel})",
            file=err,
        )
        for task in group.tasks:
            print(f"    [{task.id}] {task.cmd}", file=err)
    print(f"Output: {options.resolved_output_dir(root)}", file=err)


def _print_result(rr: RunResult, fmt: str) -> None:
    if fmt == "jsonl":
        for result in rr.results:
            print(json.dumps(result.to_dict()))
        print(json.dumps({"summary": rr.summary.to_dict()}))
        return

    print(json.dumps(rr.to_dict(), indent=2))


def _print_summary(rr: RunResult) -> None:
    summary = rr.summary
    err = sys.stderr
    print(
        f"Total: {summary.total} | Succeeded: {summary.succeeded} | "
        f"Failed: {summary.failed} | Skipped: {summary.skipped}",
        file=err,
    )
    print(f"Duration: {summary.total_duration_ms}ms", file=err)
    if summary.output_dir:
        print(f"Output: {summary.output_dir}", file=err)
