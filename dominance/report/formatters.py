"""Output format helpers for dominance reports.

JSON is the full schema-versioned payload from
:meth:`DominanceReport.to_json_payload`. Markdown is a human-readable digest:
the grid, per-manager totals and whatever insights were derived.
"""

from __future__ import annotations

import json
from typing import Any, Iterable, Sequence

from dominance.compute.cells import format_score
from dominance.constants import SCHEMA_VERSION

from .models import DominanceReport


def _table(headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> list[str]:
    esc = lambda v: str(v).replace("|", "\\|")  # noqa: E731
    out = ["| " + " | ".join(esc(h) for h in headers) + " |", "| " + " | ".join(["---"] * len(headers)) + " |"]
    for r in rows:
        out.append("| " + " | ".join(esc(c) for c in r) + " |")
    return out


def _grid_cell(cell) -> str:
    if cell.a == cell.b:
        return "-"
    if cell.games == 0:
        return ""
    return f"{cell.display_record} {cell.display_score} {cell.badge}"


def _grid_lines(report: DominanceReport) -> list[str]:
    matrix = report.matrix
    headers = ["Manager"] + [m.name for m in matrix.managers]
    rows = []
    for m in matrix.managers:
        rows.append([m.name] + [_grid_cell(matrix.cell(m.key, o.key)) for o in matrix.managers])
    return _table(headers, rows)


def _totals_lines(report: DominanceReport) -> list[str]:
    rows = []
    for t in report.totals_by_manager():
        record = f"{t['total_wins']}-{t['total_losses']}"
        if t["total_ties"]:
            record += f"-{t['total_ties']}"
        rows.append(
            [
                t["name"],
                record,
                t["total_games"],
                f"{t['total_pf']:.2f}",
                f"{t['total_pa']:.2f}",
                format_score(t["total_score"]),
            ]
        )
    return _table(["Manager", "Record", "Games", "PF", "PA", "Score"], rows)


def _insight_lines(report: DominanceReport) -> list[str]:
    ins = report.insights
    if ins is None:
        return []
    lines = ["", "## Insights", ""]
    if ins.landlord is not None:
        lines.append(
            f"- **League Landlord:** {ins.landlord.landlord_name} owns {ins.landlord.victim_count} "
            f"manager(s) across {ins.landlord.total_owned_games} games"
        )
    if ins.most_owned is not None:
        lines.append(
            f"- **Most Owned:** {ins.most_owned.victim_name} is owned by {ins.most_owned.times_owned} manager(s)"
        )
    if ins.biggest_rivalry is not None:
        r = ins.biggest_rivalry
        lines.append(
            f"- **Biggest Rivalry:** {r.a_name} vs {r.b_name} {r.record} over {r.games} games "
            f"({format_score(r.score)})"
        )
    if len(lines) == 3:
        lines.append("- Not enough history for summary insights.")

    for title, cards in (("Storylines", ins.storylines), ("Your Storylines", ins.personal)):
        if not cards:
            continue
        lines += ["", f"### {title}", ""]
        lines += _table(
            ["Card", "Who", "Stat", "Line"],
            [[c.title, c.detail or "", f"{c.stat_primary} {c.metric_label or ''}".strip(), c.line] for c in cards],
        )
    if ins.heroes:
        lines += ["", "### Receipts", ""]
        lines += _table(
            ["Card", "Manager", "Stat", "Season", "Punchline"],
            [[h.title, h.name, f"{h.primary_value} {h.primary_label}", h.season or "", h.punchline] for h in ins.heroes],
        )
    return lines


def format_markdown(report: DominanceReport) -> str:
    lines = [
        f"# {report.league.get('name') or 'League'} Dominance ({report.league.get('season')})",
        "",
        f"- League ID: {report.league.get('league_id')}",
        f"- Seasons: {', '.join(report.history.get('seasons', []))}",
        f"- Weeks: {report.start_week}-{report.end_week}"
        + (" (playoffs included)" if report.include_playoffs else " (regular season)"),
        f"- Games counted: {report.total_games_counted}",
        "",
        "## Dominance Grid",
        "",
    ]
    lines += _grid_lines(report)
    lines += ["", "## Totals", ""]
    lines += _totals_lines(report)
    lines += _insight_lines(report)
    return "\n".join(lines) + "\n"


def format_json(
    report: DominanceReport,
    schema_version: str = SCHEMA_VERSION,
    *,
    pretty: bool = False,
) -> str:
    """Render the report to JSON.

    Args:
        schema_version: stamped into the payload.
        pretty: Indent output.
    """
    payload = report.to_json_payload(schema_version)
    if pretty:
        return json.dumps(payload, indent=2)
    return json.dumps(payload, separators=(",", ":"))
