import json

import pytest

from dominance.cli.dominance_report import generate_dominance_report
from dominance.report.collect import build_dominance_report
from dominance.report.formatters import format_json, format_markdown


@pytest.fixture
def report(fake_sleeper):
    return build_dominance_report("L2024", provider=fake_sleeper, max_workers=1)


def test_markdown_has_grid_and_totals(report):
    md = format_markdown(report)
    assert md.startswith("# Dynasty Bros Dominance (2023-2024)")
    assert "| Manager | Alice | Cara | Bob |" in md
    assert "| Alice | - |  | 5-1 +0.67 OWNED |" in md
    assert "| Bob | 1-5 -0.67 NEMESIS |  | - |" in md
    assert "## Totals" in md
    assert "**League Landlord:** Alice owns 1 manager(s) across 6 games" in md
    assert "EVERYBODY'S VICTIM" in md


def test_markdown_without_insights(fake_sleeper):
    bare = build_dominance_report("L2024", provider=fake_sleeper, max_workers=1, with_insights=False)
    md = format_markdown(bare)
    assert "## Insights" not in md


def test_json_payload_shape(report):
    payload = json.loads(format_json(report))
    assert payload["schema_version"] == "1.0.0"
    assert payload["metadata"]["total_games_counted"] == 6
    assert payload["metadata"]["weeks_included_by_season"] == {"2024": [1, 2, 3], "2023": [1, 2, 3]}
    assert [m["key"] for m in payload["managers"]] == ["owner:u_a", "owner:u_c", "owner:u_b"]
    assert len(payload["cells"]) == 6
    cell = next(c for c in payload["cells"] if c["a"] == "owner:u_a" and c["b"] == "owner:u_b")
    assert cell["record"] == "5-1" and cell["badge"] == "OWNED"
    assert payload["grand_totals"]["games"] == 12
    assert payload["insights"]["landlord"]["landlord_key"] == "owner:u_a"
    assert payload["insights"]["landlord"]["victim_count"] == 1


def test_json_pretty_vs_compact(report):
    assert "\n  " in format_json(report, pretty=True)
    assert "\n" not in format_json(report, pretty=False)


def test_generate_writes_requested_formats(fake_sleeper, tmp_path):
    summary = generate_dominance_report(
        league_id="L2024",
        out_dir=str(tmp_path),
        output_formats=["markdown", "json"],
        provider=fake_sleeper,
        max_workers=1,
    )
    assert set(summary["formats"]) == {"markdown", "json"}
    assert (tmp_path / "L2024" / "dominance.md").exists()
    data = json.loads((tmp_path / "L2024" / "dominance.json").read_text(encoding="utf-8"))
    assert data["league"]["league_id"] == "L2024"
    assert summary["entries"] == {"managers": 3, "games": 6, "cells": 6}


def test_generate_dry_run_writes_nothing(fake_sleeper, tmp_path):
    summary = generate_dominance_report(
        league_id="L2024", out_dir=str(tmp_path), provider=fake_sleeper, max_workers=1, dry_run=True
    )
    assert summary["written"] is False
    assert list(tmp_path.iterdir()) == []


def test_generate_rejects_unknown_format(fake_sleeper, tmp_path):
    with pytest.raises(ValueError):
        generate_dominance_report(
            league_id="L2024", out_dir=str(tmp_path), output_formats=["html"], provider=fake_sleeper
        )
