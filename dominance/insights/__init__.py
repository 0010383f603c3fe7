from __future__ import annotations

from typing import TYPE_CHECKING

from .heroes import compute_hero_receipts
from .models import InsightInputs, LeagueInsights
from .storylines import compute_league_storylines, compute_personal_storylines
from .summary import find_biggest_rivalry, find_landlord, find_most_owned

if TYPE_CHECKING:
    from dominance.report.models import DominanceReport


def derive_insights(report: DominanceReport, viewer_key: str | None = None) -> LeagueInsights:
    """Derive every insight from a finished report. Pure; the report is not modified."""
    inputs = InsightInputs.from_report(report)
    if viewer_key is not None and viewer_key not in inputs.names:
        viewer_key = None
    return LeagueInsights(
        landlord=find_landlord(inputs),
        most_owned=find_most_owned(inputs),
        biggest_rivalry=find_biggest_rivalry(inputs),
        storylines=compute_league_storylines(inputs),
        personal=compute_personal_storylines(inputs, viewer_key),
        heroes=compute_hero_receipts(inputs),
        viewer_key=viewer_key,
    )


__all__ = ["InsightInputs", "LeagueInsights", "derive_insights"]
