"""CLI entrypoints for repograph commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .config import ConfigError
from .logging import configure_logging
from .orchestrator import Orchestrator
from .snapshot import SnapshotError


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="repograph",
        description="Derive dependency, coupling, quality and churn graphs from a repository.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Analyze a working tree or a JSON snapshot and emit a JSON report.",
    )
    _add_verbose_option(analyze_parser, suppress_default=True)
    analyze_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the repository root (defaults to current directory).",
    )
    analyze_parser.add_argument(
        "--snapshot",
        help="Analyze a JSON snapshot of files and commits instead of a working tree.",
    )
    analyze_parser.add_argument(
        "--config",
        help="Configuration file to use with --snapshot.",
    )
    analyze_parser.add_argument(
        "--no-history",
        action="store_true",
        help="Skip reading commit history from Git.",
    )
    analyze_parser.add_argument(
        "--max-commits",
        type=int,
        default=None,
        help="Read at most this many recent commits from Git.",
    )
    analyze_parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for synthetic churn values so repeated runs match.",
    )
    analyze_parser.add_argument(
        "-o",
        "--output",
        help="Write the report to this file instead of stdout.",
    )
    analyze_parser.add_argument(
        "--log-file",
        help="Also write logs to this file.",
    )
    analyze_parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Only print errors to the console; warnings still reach --log-file.",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for repograph commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    log_file = Path(args.log_file) if getattr(args, "log_file", None) else None
    configure_logging(
        verbose=bool(args.verbose),
        quiet=bool(getattr(args, "quiet", False)),
        log_file=log_file,
    )

    orchestrator = Orchestrator()

    if args.command == "analyze":
        try:
            if args.snapshot:
                report = orchestrator.run_snapshot(
                    args.snapshot, config_path=args.config, seed=args.seed
                )
            else:
                report = orchestrator.run_path(
                    args.path,
                    include_history=not args.no_history,
                    history_limit=args.max_commits,
                    seed=args.seed,
                )
        except (FileNotFoundError, NotADirectoryError, SnapshotError, ConfigError) as exc:
            parser.exit(1, f"{exc}\n")
        except Exception as exc:  # pragma: no cover
            parser.exit(1, f"repograph analyze failed: {exc}\nRun with --verbose for more details.\n")

        rendered = json.dumps(report.to_dict(), indent=2, default=str)
        if args.output:
            output = Path(args.output)
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text(rendered + "\n", encoding="utf-8")
            print(f"Report written to {_relativize(output.resolve())}")
        else:
            sys.stdout.write(rendered + "\n")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
