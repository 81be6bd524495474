"""
run_graph.py: run a saved shellgraph project from the command line
==================================================================
Starts every node of a ``.shgraph`` project at once, polls them until all
have exited, then prints each node's exit status, stdout and stderr.

Usage
-----
    shellgraph-run <project.shgraph> [options]

Options
-------
    --interval  <sec>   Seconds between ticks (default: SHELLGRAPH_TICK_INTERVAL or 0.1)
    --timeout   <sec>   Kill the run if it has not finished after this long
    --scratch   <dir>   Directory for scripts and FIFOs (default: SHELLGRAPH_SCRATCH_DIR,
                        $XDG_RUNTIME_DIR/shell-graph or /tmp/shell-graph)
    --quiet             Only print exit statuses, not captured output

Exit codes
----------
    0   every node exited successfully
    1   at least one node failed or the run timed out
    2   the project could not be loaded or the run could not start
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from shellgraph.config import configure_logging, get_settings
from shellgraph.core.Errors import GraphError, RunStartError
from shellgraph.core.Executor import Executor
from shellgraph.core.Project import Project
from shellgraph.core.Resources import ScratchDirectory

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="shellgraph-run",
        description="Run a shellgraph project to completion.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    p.add_argument(
        "project",
        metavar="project.shgraph",
        help="Path to the project file to run.",
    )
    p.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Seconds between ticks.",
    )
    p.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Kill the run after this many seconds.",
    )
    p.add_argument(
        "--scratch",
        metavar="DIR",
        default=None,
        help="Directory for scripts and FIFOs.",
    )
    p.add_argument(
        "--quiet",
        action="store_true",
        help="Only print exit statuses.",
    )
    return p


def _print_report(project: Project, quiet: bool, out) -> None:
    state = project.run_state
    for node in project.graph.nodes.values():
        status = state.exit_statuses.get(node.id)
        print(f"== {node.name} ({node.id}): {status if status else 'not finished'}", file=out)
        if node.id in state.errors:
            print(f"   error: {state.errors[node.id]}", file=out)
        if quiet:
            continue
        captured = state.output.get(node.id)
        if captured is None:
            continue
        if captured.stdout:
            print("-- stdout --", file=out)
            print(bytes(captured.stdout).decode("utf-8", errors="replace"), end="", file=out)
            if not captured.stdout.endswith(b"\n"):
                print(file=out)
        if captured.stderr:
            print("-- stderr --", file=out)
            print(bytes(captured.stderr).decode("utf-8", errors="replace"), end="", file=out)
            if not captured.stderr.endswith(b"\n"):
                print(file=out)


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_level)

    try:
        project = Project.load(args.project)
    except (GraphError, OSError) as exc:
        print(f"error: could not load {args.project}: {exc}", file=sys.stderr)
        return 2

    scratch = ScratchDirectory(args.scratch) if args.scratch else ScratchDirectory.from_settings(settings)
    executor = Executor(project, scratch=scratch)
    interval = args.interval if args.interval is not None else settings.tick_interval

    try:
        statuses = executor.run_to_completion(interval=interval, timeout=args.timeout)
    except RunStartError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    except TimeoutError as exc:
        print(f"error: {exc}", file=sys.stderr)
        _print_report(project, args.quiet, sys.stdout)
        return 1
    except KeyboardInterrupt:
        executor.kill()
        print("interrupted", file=sys.stderr)
        return 1

    _print_report(project, args.quiet, sys.stdout)
    return 0 if all(status.success for status in statuses.values()) else 1


if __name__ == "__main__":
    sys.exit(main())
