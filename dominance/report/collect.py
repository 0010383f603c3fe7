"""Collection & assembly for the league history dominance report.

One call to :func:`build_dominance_report` walks the league's season chain,
resolves managers across seasons, ingests every qualifying week and folds the
games into a fresh pairwise accumulator. Nothing is shared between calls.

Failure policy: bad arguments (or a starting league that does not exist) raise
``ValueError`` before any aggregation. A prior season, or a single week, that
cannot be fetched contributes nothing and is only visible in the metadata.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable

import requests

from dominance.api.client import LeagueDataProvider, client_from_env
from dominance.compute.core import (
    MatchupPair,
    WeekRange,
    _coerce_float,
    _coerce_int,
    infer_playoff_start_week,
    pair_matchups,
    resolve_week_range,
)
from dominance.compute.grid import PairwiseAccumulator, build_matrix
from dominance.compute.identity import ManagerRegistry
from dominance.constants import (
    DEFAULT_END_WEEK,
    DEFAULT_MAX_WORKERS,
    DEFAULT_PLAYOFF_TEAMS,
    DEFAULT_START_WEEK,
    MAX_CHAIN_DEPTH,
    NO_PREVIOUS_LEAGUE,
)
from dominance.insights import derive_insights

from .models import DominanceReport, SeasonContext, SeasonStat, WeeklyMatchup

log = logging.getLogger(__name__)

_UPSTREAM_ERRORS = (requests.RequestException, ValueError)


def _validate_request(league_id: str, start_week: int, end_week: int) -> str:
    lid = str(league_id or "").strip()
    if not lid:
        raise ValueError("league_id is required")
    if start_week < 1:
        raise ValueError(f"start_week must be >= 1 (got {start_week})")
    if end_week < start_week:
        raise ValueError(f"end_week must be >= start_week (got {start_week}..{end_week})")
    return lid


def _previous_id(league: dict) -> str | None:
    prev = league.get("previous_league_id")
    if prev is None:
        return None
    prev = str(prev).strip()
    return None if prev.lower() in NO_PREVIOUS_LEAGUE else prev


def _season_context(league: dict, fallback_id: str) -> SeasonContext:
    settings = league.get("settings", {}) or {}
    league_id = str(league.get("league_id") or fallback_id)
    end_raw = settings.get("playoff_week_end")
    teams_raw = settings.get("playoff_teams")
    return SeasonContext(
        season=str(league.get("season") or league_id),
        league_id=league_id,
        name=str(league.get("name") or ""),
        playoff_start_week=infer_playoff_start_week(settings),
        playoff_week_end=_coerce_int(end_raw) or None,
        playoff_teams=_coerce_int(teams_raw) or None,
        previous_league_id=_previous_id(league),
    )


def walk_season_chain(
    provider: LeagueDataProvider, league_id: str, max_depth: int = MAX_CHAIN_DEPTH
) -> list[SeasonContext]:
    """Follow ``previous_league_id`` back from ``league_id``; newest season first.

    Stops at a missing/"0" back-reference, a repeated league id, or ``max_depth``.
    Only a failure on the starting league is fatal. A season label already used
    by a newer league is suffixed with the league id so per-season metadata
    never collapses two leagues into one entry.
    """
    chain: list[SeasonContext] = []
    seen: set[str] = set()
    current = league_id
    for _ in range(max_depth):
        if current in seen:
            log.warning("Season chain revisits league %s; stopping", current)
            break
        seen.add(current)
        try:
            league = provider.get_league(current)
        except _UPSTREAM_ERRORS as e:
            if not chain:
                raise ValueError(f"Could not load league {current}: {e}") from e
            log.warning("Could not load prior league %s (%s); history ends here", current, e)
            break
        if not league:
            if not chain:
                raise ValueError(f"League {current} not found")
            log.warning("Prior league %s not found; history ends here", current)
            break
        ctx = _season_context(league, current)
        if any(c.season == ctx.season for c in chain):
            log.warning("Season label %s repeats in chain; using league %s", ctx.season, ctx.league_id)
            ctx.season = f"{ctx.season} ({ctx.league_id})"
        chain.append(ctx)
        if not ctx.previous_league_id:
            break
        current = ctx.previous_league_id
    else:
        log.warning("Season chain truncated at depth %d", max_depth)
    return chain


def _fetch_week(provider: LeagueDataProvider, league_id: str, week: int) -> list[dict]:
    try:
        rows = provider.get_matchups(league_id, week)
    except _UPSTREAM_ERRORS as e:
        log.warning("Matchups unavailable for league %s week %d: %s", league_id, week, e)
        return []
    return rows if isinstance(rows, list) else []


def _fetch_weeks(
    provider: LeagueDataProvider, league_id: str, weeks: list[int], max_workers: int
) -> dict[int, list[dict]]:
    if max_workers <= 1 or len(weeks) <= 1:
        return {w: _fetch_week(provider, league_id, w) for w in weeks}
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        results = list(pool.map(lambda w: _fetch_week(provider, league_id, w), weeks))
    return dict(zip(weeks, results))


def _register_season(
    provider: LeagueDataProvider, ctx: SeasonContext, registry: ManagerRegistry
) -> bool:
    try:
        rosters = provider.get_rosters(ctx.league_id) or []
        users = provider.get_users(ctx.league_id) or []
    except _UPSTREAM_ERRORS as e:
        log.warning("Rosters/users unavailable for season %s (%s): %s", ctx.season, ctx.league_id, e)
        return False
    ctx.rosters = rosters
    ctx.roster_to_key = {
        rid: ident.key for rid, ident in registry.register_season(rosters, users).items()
    }
    return True


def ingest_season(
    provider: LeagueDataProvider,
    ctx: SeasonContext,
    week_range: WeekRange | None,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> list[tuple[int, list[MatchupPair]]]:
    """Fetch and pair every week of ``week_range``; weeks without a pair are skipped."""
    if week_range is None:
        return []
    weeks = list(week_range.weeks())
    raw = _fetch_weeks(provider, ctx.league_id, weeks, max_workers)
    out: list[tuple[int, list[MatchupPair]]] = []
    for wk in weeks:
        pairs = pair_matchups(raw.get(wk, []), ctx.roster_to_key)
        if not pairs:
            continue
        ctx.weeks_included.append(wk)
        out.append((wk, pairs))
    return out


def _roster_pf(settings: dict) -> float | None:
    if settings.get("fpts") is None:
        return None
    return round(_coerce_float(settings.get("fpts")) + _coerce_float(settings.get("fpts_decimal")) / 100.0, 2)


def compute_season_stats(ctx: SeasonContext, weekly: Iterable[WeeklyMatchup]) -> list[SeasonStat]:
    """Per-manager regular season summary for one season.

    Rank comes from the roster settings; when any roster lacks one, ranks are
    recomputed from wins then points for and flagged as inferred. Points for
    fall back to the ingested weekly points when the roster carries none.
    """
    weekly_pf: dict[str, float] = {}
    for m in weekly:
        weekly_pf[m.manager_key] = weekly_pf.get(m.manager_key, 0.0) + m.points

    rows: list[dict] = []
    seen: set[str] = set()
    for r in ctx.rosters:
        rid = _coerce_int(r.get("roster_id"), -1)
        key = ctx.roster_to_key.get(rid)
        if key is None or key in seen:
            continue
        seen.add(key)
        settings = r.get("settings") or {}
        if not isinstance(settings, dict):
            settings = {}
        pf = _roster_pf(settings)
        rows.append(
            {
                "roster_id": rid,
                "key": key,
                "wins": _coerce_int(settings.get("wins")),
                "losses": _coerce_int(settings.get("losses")),
                "ties": _coerce_int(settings.get("ties")),
                "rank": _coerce_int(settings.get("rank")),
                "pf": pf if pf is not None else round(weekly_pf.get(key, 0.0), 2),
            }
        )
    if not rows:
        return []

    rank_inferred = any(row["rank"] <= 0 for row in rows)
    if rank_inferred:
        ordered = sorted(rows, key=lambda x: (-x["wins"], x["losses"], -x["pf"], x["roster_id"]))
        for i, row in enumerate(ordered, start=1):
            row["rank"] = i

    teams_inferred = not ctx.playoff_teams
    playoff_teams = ctx.playoff_teams or min(DEFAULT_PLAYOFF_TEAMS, len(rows))

    return [
        SeasonStat(
            season=ctx.season,
            manager_key=row["key"],
            rank=row["rank"],
            wins=row["wins"],
            losses=row["losses"],
            ties=row["ties"],
            total_pf=row["pf"],
            playoff_qualified=row["rank"] <= playoff_teams,
            playoff_teams=playoff_teams,
            playoff_qualified_inferred=rank_inferred or teams_inferred,
            playoff_start_week=ctx.playoff_start_week,
            playoff_week_end=ctx.playoff_week_end,
        )
        for row in sorted(rows, key=lambda x: x["rank"])
    ]


def _season_range(seasons: list[str]) -> str:
    if not seasons:
        return ""
    if len(seasons) == 1:
        return seasons[0]
    return f"{seasons[-1]}-{seasons[0]}"


def build_dominance_report(
    league_id: str,
    start_week: int = DEFAULT_START_WEEK,
    end_week: int = DEFAULT_END_WEEK,
    include_playoffs: bool = False,
    *,
    provider: LeagueDataProvider | None = None,
    max_workers: int = DEFAULT_MAX_WORKERS,
    with_insights: bool = True,
    viewer_key: str | None = None,
) -> DominanceReport:
    """Build the full multi-season dominance report for one league.

    Args:
        league_id: newest season's league id; prior seasons are discovered from it.
        start_week, end_week: requested week window, applied to every season.
        include_playoffs: when False each season is clamped to its regular season.
        provider: upstream data source (defaults to a Sleeper client from the environment).
        max_workers: concurrent week fetches per season.
        with_insights: derive landlord/rivalry/storyline/hero insights.
        viewer_key: manager key for personal storyline cards.
    """
    lid = _validate_request(league_id, start_week, end_week)
    provider = provider or client_from_env()

    chain = walk_season_chain(provider, lid)
    registry = ManagerRegistry()
    ingested: list[tuple[SeasonContext, list[tuple[int, list[MatchupPair]]]]] = []

    for ctx in chain:
        if not _register_season(provider, ctx, registry):
            ingested.append((ctx, []))
            continue
        week_range = resolve_week_range(start_week, end_week, ctx.playoff_start_week, include_playoffs)
        if week_range is None:
            log.info("Season %s: no weeks in %d..%d qualify", ctx.season, start_week, end_week)
        weeks = ingest_season(provider, ctx, week_range, max_workers=max_workers)
        log.info("Season %s: %d week(s) included", ctx.season, len(ctx.weeks_included))
        ingested.append((ctx, weeks))

    managers = registry.managers()
    acc = PairwiseAccumulator(m.key for m in managers)
    weekly: list[WeeklyMatchup] = []
    season_stats: list[SeasonStat] = []
    for ctx, weeks in ingested:
        season_weekly: list[WeeklyMatchup] = []
        for wk, pairs in weeks:
            acc.add_pairs(pairs)
            for p in pairs:
                season_weekly.append(WeeklyMatchup(ctx.season, wk, p.a_key, p.b_key, p.a_points, p.b_points))
                season_weekly.append(WeeklyMatchup(ctx.season, wk, p.b_key, p.a_key, p.b_points, p.a_points))
        weekly.extend(season_weekly)
        season_stats.extend(compute_season_stats(ctx, season_weekly))

    matrix = build_matrix(managers, acc)
    newest = chain[0]
    seasons = [c.season for c in chain]
    report = DominanceReport(
        league={"league_id": newest.league_id, "name": newest.name, "season": _season_range(seasons)},
        history={"league_ids": [c.league_id for c in chain], "seasons": seasons, "count": len(chain)},
        managers=matrix.managers,
        matrix=matrix,
        season_stats=season_stats,
        weekly_matchups=weekly,
        weeks_included_by_season={c.season: list(c.weeks_included) for c in chain},
        playoff_start_by_season={c.season: c.playoff_start_week for c in chain},
        default_regular_season_end=max(1, newest.playoff_start_week - 1),
        start_week=start_week,
        end_week=end_week,
        include_playoffs=include_playoffs,
        total_games_counted=acc.games_counted,
    )
    if with_insights:
        report.insights = derive_insights(report, viewer_key=viewer_key)
    return report
