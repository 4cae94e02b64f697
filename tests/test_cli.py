"""CLI parser and entrypoint tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from repograph.cli import _build_parser, main


def _write_snapshot(tmp_path: Path) -> Path:
    path = tmp_path / "snapshot.json"
    path.write_text(
        json.dumps(
            {
                "root": "demo",
                "files": [
                    {"path": "a.ts", "content": "import {x} from './b'\n"},
                    {"path": "b.ts", "content": "export const x = 1\n"},
                ],
            }
        ),
        encoding="utf-8",
    )
    return path


def test_cli_accepts_verbose_before_command() -> None:
    args = _build_parser().parse_args(["--verbose", "analyze"])
    assert args.verbose is True
    assert args.command == "analyze"
    assert args.path == "."


def test_cli_accepts_verbose_after_command() -> None:
    args = _build_parser().parse_args(["analyze", "--verbose"])
    assert args.verbose is True


def test_cli_parses_analyze_options() -> None:
    args = _build_parser().parse_args(
        ["analyze", "repo", "--no-history", "--seed", "3", "-o", "out.json"]
    )
    assert args.path == "repo"
    assert args.no_history is True
    assert args.seed == 3
    assert args.output == "out.json"


def test_cli_prints_report_for_snapshot(tmp_path: Path, capsys) -> None:
    main(["analyze", "--snapshot", str(_write_snapshot(tmp_path)), "--seed", "1"])

    payload = json.loads(capsys.readouterr().out)
    assert payload["root"] == "demo"
    assert payload["dependencyGraph"]["edges"] == [{"source": "a.ts", "target": "b.ts"}]
    assert payload["churnTree"]["isFallback"] is True


def test_cli_writes_report_file(tmp_path: Path, capsys) -> None:
    output = tmp_path / "reports" / "graph.json"

    main(["analyze", "--snapshot", str(_write_snapshot(tmp_path)), "--output", str(output)])

    assert "Report written to" in capsys.readouterr().out
    payload = json.loads(output.read_text(encoding="utf-8"))
    assert payload["coupling"]["pairs"][0]["weight"] == 6.0


def test_cli_exits_on_missing_path(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["analyze", str(tmp_path / "missing")])
    assert excinfo.value.code == 1


def test_cli_exits_on_bad_snapshot(tmp_path: Path) -> None:
    bad = tmp_path / "bad.json"
    bad.write_text("[]", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        main(["analyze", "--snapshot", str(bad)])
    assert excinfo.value.code == 1


def test_cli_parses_history_and_quiet_options() -> None:
    args = _build_parser().parse_args(["analyze", "--max-commits", "200", "-q"])
    assert args.max_commits == 200
    assert args.quiet is True


def test_cli_quiet_keeps_stderr_clean(tmp_path: Path, capsys) -> None:
    main(["analyze", "--snapshot", str(_write_snapshot(tmp_path)), "--quiet"])

    captured = capsys.readouterr()
    assert json.loads(captured.out)["root"] == "demo"
    assert captured.err == ""
