from __future__ import annotations

import math
from typing import Mapping, NamedTuple

from dominance.constants import DEFAULT_PLAYOFF_START_WEEK, MIN_INFERRED_PLAYOFF_START


class WeekRange(NamedTuple):
    start: int
    end: int

    def weeks(self) -> range:
        return range(self.start, self.end + 1)


def _coerce_int(value: object, default: int = 0) -> int:
    """Best-effort int conversion (supports int, float, str of digits)."""
    if value is None:
        return default
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int | float):
        if isinstance(value, float) and not math.isfinite(value):
            return default
        return int(value)
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return default
    return default


def _coerce_float(value: object, default: float = 0.0) -> float:
    """Float conversion that maps None, garbage and non-finite values to ``default``."""
    if value is None or isinstance(value, bool):
        return default
    try:
        x = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    return x if math.isfinite(x) else default


def resolve_week_range(
    requested_start: int,
    requested_end: int,
    playoff_start_week: int,
    include_playoffs: bool,
) -> WeekRange | None:
    """Effective week window for one season, or None when no week qualifies.

    The regular season ends the week before the playoffs; when playoffs are
    excluded the requested end is clamped to it.
    """
    regular_season_end = max(1, playoff_start_week - 1)
    effective_end = requested_end if include_playoffs else min(requested_end, regular_season_end)
    if effective_end < requested_start:
        return None
    return WeekRange(requested_start, effective_end)


def infer_playoff_start_week(settings: Mapping | None) -> int:
    """Playoff start week from league settings, defaulting to week 15.

    Preference: ``playoff_start_week``, then ``playoff_week_start``; with only
    ``playoff_week_end`` known a two-round playoff is assumed.
    """
    if not settings:
        return DEFAULT_PLAYOFF_START_WEEK
    for key in ("playoff_start_week", "playoff_week_start"):
        if settings.get(key) is not None:
            wk = _coerce_int(settings.get(key), 0)
            if wk > 0:
                return wk
    if settings.get("playoff_week_end") is not None:
        end = _coerce_int(settings.get("playoff_week_end"), 0)
        if end > 0:
            return max(MIN_INFERRED_PLAYOFF_START, end - 1)
    return DEFAULT_PLAYOFF_START_WEEK


def group_rows(rows: list[dict]) -> dict[int, list[dict]]:
    groups: dict[int, list[dict]] = {}
    for row in rows or []:
        mid_raw = row.get("matchup_id")
        if mid_raw is None:
            # Synthetic id per roster; such rows never form a pair
            rid_int = _coerce_int(row.get("roster_id"), 0)
            mid = -100000 - rid_int
        else:
            mid = _coerce_int(mid_raw, -1)
        groups.setdefault(mid, []).append(row)
    return groups


class MatchupPair(NamedTuple):
    a_key: str
    b_key: str
    a_points: float
    b_points: float


def pair_matchups(rows: list[dict], roster_to_key: Mapping[int, str]) -> list[MatchupPair]:
    """Translate one week's raw score rows into opposing manager pairs.

    Rows whose roster has no manager mapping are dropped before pairing, so a
    matchup missing either side (bye, data gap, orphaned roster) yields nothing.
    When upstream reports more than two rows for a matchup the first two are used.
    """
    mapped: list[dict] = []
    for row in rows or []:
        rid_raw = row.get("roster_id")
        if rid_raw is None:
            continue
        key = roster_to_key.get(_coerce_int(rid_raw, -1))
        if key is None:
            continue
        mapped.append({**row, "_manager_key": key})

    pairs: list[MatchupPair] = []
    for mid, entries in sorted(group_rows(mapped).items()):
        if mid < 0 or len(entries) < 2:
            continue
        a, b = entries[0], entries[1]
        if a["_manager_key"] == b["_manager_key"]:
            continue
        pairs.append(
            MatchupPair(
                a["_manager_key"],
                b["_manager_key"],
                _coerce_float(a.get("points")),
                _coerce_float(b.get("points")),
            )
        )
    return pairs
