from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Sequence

import requests

from dominance.constants import (
    DEFAULT_END_WEEK,
    DEFAULT_MAX_WORKERS,
    DEFAULT_START_WEEK,
    SCHEMA_VERSION,
)
from dominance.report.collect import build_dominance_report
from dominance.report.formatters import format_json, format_markdown

LEAGUE_ID = os.environ.get("SLEEPER_LEAGUE_ID", "")


def _pretty(data: Any) -> str:
    return json.dumps(data, indent=2, sort_keys=True)


def generate_dominance_report(
    *,
    league_id: str = LEAGUE_ID,
    start_week: int = DEFAULT_START_WEEK,
    end_week: int = DEFAULT_END_WEEK,
    include_playoffs: bool = False,
    viewer_key: str | None = None,
    out_dir: str = "reports/dominance",
    output_formats: Sequence[str] | None = None,
    json_pretty: bool = True,
    verbose: bool = False,
    dry_run: bool = False,
    max_workers: int = DEFAULT_MAX_WORKERS,
    provider=None,
) -> dict:
    formats = list(output_formats) if output_formats else ["markdown"]
    for fmt in formats:
        if fmt.lower() not in {"md", "markdown", "json"}:
            raise ValueError(f"Unsupported format: {fmt}")

    report = build_dominance_report(
        league_id,
        start_week,
        end_week,
        include_playoffs,
        provider=provider,
        max_workers=max_workers,
        viewer_key=viewer_key,
    )
    dest_dir = Path(out_dir) / report.league["league_id"]
    if not dry_run:
        dest_dir.mkdir(parents=True, exist_ok=True)

    results: dict[str, dict[str, Any]] = {}
    for fmt in formats:
        fmt_norm = fmt.lower()
        if fmt_norm in {"md", "markdown"}:
            content = format_markdown(report)
            path = dest_dir / "dominance.md"
        else:
            content = format_json(report, SCHEMA_VERSION, pretty=json_pretty)
            path = dest_dir / "dominance.json"
        if not dry_run:
            path.write_text(content, encoding="utf-8")
        if verbose:
            print(f"[dominance_report] wrote {fmt_norm} -> {path} ({len(content)} bytes)")
        key = "markdown" if fmt_norm in {"md", "markdown"} else fmt_norm
        results[key] = {"path": str(path), "bytes": len(content), "written": not dry_run}

    return {
        "formats": results,
        "meta": {
            "schema_version": SCHEMA_VERSION,
            "league_id": report.league["league_id"],
            "seasons": report.history["seasons"],
            "start_week": start_week,
            "end_week": end_week,
            "include_playoffs": include_playoffs,
        },
        "written": not dry_run,
        "entries": {
            "managers": len(report.managers),
            "games": report.total_games_counted,
            "cells": len(report.matrix.flat_cells()),
        },
    }


def main(argv: list[str] | None = None) -> int:  # pragma: no cover
    parser = argparse.ArgumentParser(
        description="Generate a multi-season head-to-head dominance report for a Sleeper league"
    )
    parser.add_argument("--league-id", default=LEAGUE_ID, help="Newest season's Sleeper league_id (default from env)")
    parser.add_argument("--start-week", type=int, default=DEFAULT_START_WEEK, help="First week (inclusive)")
    parser.add_argument("--end-week", type=int, default=DEFAULT_END_WEEK, help="Last week (inclusive)")
    parser.add_argument(
        "--include-playoffs", action="store_true", help="Count playoff weeks (default: regular season only)"
    )
    parser.add_argument("--viewer", default=None, help="Manager key for personal storylines")
    parser.add_argument("--out-dir", default="reports/dominance", help="Output directory")
    parser.add_argument("--verbose", action="store_true", help="Verbose logging to stdout")
    parser.add_argument("--dry-run", action="store_true", help="Build report but do not write files")
    parser.add_argument(
        "--max-workers", type=int, default=DEFAULT_MAX_WORKERS, help="Concurrent week fetches per season"
    )
    parser.add_argument(
        "--formats",
        default="markdown",
        help="Comma-separated list of output formats (markdown,json)",
    )
    parser.set_defaults(json_pretty=True)
    parser.add_argument(
        "--json-pretty",
        dest="json_pretty",
        action="store_true",
        help="(Default) Pretty-print JSON output when using --formats json",
    )
    parser.add_argument(
        "--json-compact",
        dest="json_pretty",
        action="store_false",
        help="Use compact JSON (no whitespace)",
    )
    args = parser.parse_args(argv)
    formats = [f.strip() for f in args.formats.split(",") if f.strip()]
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        summary = generate_dominance_report(
            league_id=args.league_id,
            start_week=args.start_week,
            end_week=args.end_week,
            include_playoffs=args.include_playoffs,
            viewer_key=args.viewer,
            out_dir=args.out_dir,
            output_formats=formats,
            json_pretty=args.json_pretty,
            verbose=args.verbose,
            dry_run=args.dry_run,
            max_workers=args.max_workers,
        )
        print(_pretty(summary))
        for fmt_name, info in summary["formats"].items():
            print(f"Wrote [{fmt_name}]: {info['path']}")
        return 0
    except requests.HTTPError as e:  # pragma: no cover
        print(f"HTTPError: {e}", file=sys.stderr)
        return 1
    except (OSError, ValueError) as e:  # pragma: no cover
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
