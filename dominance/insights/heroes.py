"""Hero receipts: single-manager superlatives drawn from season finishes and games."""

from __future__ import annotations

import logging
from typing import Callable

from dominance.compute.cells import Badge
from dominance.constants import (
    DEFAULT_PLAYOFF_START_WEEK,
    PAPER_CHAMPION_PF_RATIO,
    PLAYOFF_CHOKER_MAX_SEED,
    PLAYOFF_CHOKER_MIN_LOSSES,
    SHOOTOUT_COMBINED,
)

from .models import HeroCard, InsightInputs

log = logging.getLogger(__name__)

HeroRule = Callable[[InsightInputs, set], "HeroCard | None"]
HERO_RULES: list[tuple[str, HeroRule]] = []


def hero(label: str):
    def register(fn: HeroRule) -> HeroRule:
        HERO_RULES.append((label, fn))
        return fn

    return register


def ordinal(n: int) -> str:
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def rank_label(rank: int | None) -> str:
    if not rank or rank < 1:
        return "-"
    if rank == 1:
        return "Champion"
    return ordinal(rank)


def _pts(value: float) -> str:
    return f"{round(value):,}"


def _season_sort(season: str) -> int:
    try:
        return int(season)
    except (TypeError, ValueError):
        return 0


def _card(inputs: InsightInputs, key: str, **kwargs) -> HeroCard:
    return HeroCard(name=inputs.name(key), manager_key=key, avatar_url=inputs.avatars.get(key), **kwargs)


@hero("Wooden Spoon Merchant")
def wooden_spoon(inputs: InsightInputs, selected: set) -> HeroCard | None:
    sizes: dict[str, int] = {}
    for s in inputs.season_stats:
        sizes[s.season] = sizes.get(s.season, 0) + 1
    spoons: dict[str, list[str]] = {}
    for s in inputs.season_stats:
        if s.rank == sizes[s.season]:
            spoons.setdefault(s.manager_key, []).append(s.season)
    if not spoons:
        return None
    # most spoons, then the most recent one
    key, seasons = max(spoons.items(), key=lambda kv: (len(kv[1]), max(map(_season_sort, kv[1]))))
    seasons = sorted(seasons, key=_season_sort)
    n = len(seasons)
    return _card(
        inputs,
        key,
        id="wooden-spoon",
        badge=Badge.NEMESIS,
        title="WOODEN SPOON MERCHANT",
        primary_value=str(n),
        primary_label="WOODEN SPOON" if n == 1 else "WOODEN SPOONS",
        punchline=f"Finished last {n} time{'' if n == 1 else 's'}. The basement is home.",
        lines=[("Seasons", ", ".join(seasons))],
        season=seasons[0] if n == 1 else f"{seasons[0]}-{seasons[-1]}",
    )


@hero("Missed It By That Much")
def missed_it(inputs: InsightInputs, selected: set) -> HeroCard | None:
    """Highest scorer among first-team-out finishes."""
    bubble = [
        s
        for s in inputs.season_stats
        if not s.playoff_qualified and s.rank == s.playoff_teams + 1 and s.total_pf > 0
    ]
    if not bubble:
        return None
    s = max(bubble, key=lambda x: x.total_pf)
    return _card(
        inputs,
        s.manager_key,
        id="missed-it",
        badge=Badge.NEMESIS,
        title="MISSED IT BY THAT MUCH",
        primary_value=_pts(s.total_pf),
        primary_label="PTS AND STILL MISSED",
        punchline=f"First team out with {_pts(s.total_pf)} points. One spot short.",
        lines=[
            ("Rank", ordinal(s.rank)),
            ("Record", f"{s.wins}-{s.losses}"),
            ("Playoff Cutoff", str(s.playoff_teams)),
        ],
        season=s.season,
    )


@hero("Biggest Blowout")
def biggest_blowout(inputs: InsightInputs, selected: set) -> HeroCard | None:
    losses = [m for m in inputs.weekly_matchups if m.margin < 0]
    if not losses:
        return None
    worst = min(losses, key=lambda m: m.margin)
    selected.add(worst.game_key)
    opponent = inputs.name(worst.opponent_key)
    return _card(
        inputs,
        worst.manager_key,
        id="biggest-blowout",
        badge=Badge.NEMESIS,
        title="BIGGEST BLOWOUT",
        primary_value=f"{abs(worst.margin):.1f}",
        primary_label="PTS LOSS",
        punchline=f"Lost by {abs(worst.margin):.1f} points to {opponent}. Ouch.",
        lines=[
            ("Week", str(worst.week)),
            ("Score", f"{worst.points:.1f} - {worst.opponent_points:.1f}"),
            ("Opponent", opponent),
        ],
        season=worst.season,
    )


@hero("Stole One")
def stole_one(inputs: InsightInputs, selected: set) -> HeroCard | None:
    wins = [m for m in inputs.weekly_matchups if m.won]
    if not wins:
        return None
    w = min(wins, key=lambda m: m.points)
    return _card(
        inputs,
        w.manager_key,
        id="stole-one",
        badge=Badge.EDGE,
        title="STOLE ONE",
        primary_value=f"{w.points:.1f}",
        primary_label="PTS IN WIN",
        punchline=f"Won with just {w.points:.1f} points. Sometimes it's better to be lucky.",
        lines=[
            ("Week", str(w.week)),
            ("Opponent Score", f"{w.opponent_points:.1f}"),
            ("Margin", f"{abs(w.margin):.1f} pts"),
        ],
        season=w.season,
    )


@hero("Biggest Fall Off")
def biggest_fall_off(inputs: InsightInputs, selected: set) -> HeroCard | None:
    by_manager: dict[str, list] = {}
    for s in inputs.season_stats:
        by_manager.setdefault(s.manager_key, []).append(s)

    best = None
    for key, stats in by_manager.items():
        stats = sorted(stats, key=lambda s: _season_sort(s.season))
        for older, newer in zip(stats, stats[1:]):
            drop = newer.rank - older.rank
            candidate = (drop, _season_sort(newer.season), key, older, newer)
            if drop > 0 and (best is None or candidate[:2] > best[:2]):
                best = candidate
    if best is None:
        return None
    drop, _, key, older, newer = best
    return _card(
        inputs,
        key,
        id="biggest-fall-off",
        badge=Badge.NEMESIS,
        title="BIGGEST FALL OFF",
        primary_value=f"{rank_label(older.rank)} -> {rank_label(newer.rank)}",
        primary_label="RANK DROP",
        punchline=(
            f"Went from {rank_label(older.rank)} in {older.season} "
            f"to {rank_label(newer.rank)} in {newer.season}."
        ),
        lines=[
            ("Drop", f"{drop} spots"),
            ("From", f"{older.season}: {rank_label(older.rank)}"),
            ("To", f"{newer.season}: {rank_label(newer.rank)}"),
        ],
        season=f"{older.season}-{newer.season}",
    )


@hero("All Gas, No Playoffs")
def all_gas(inputs: InsightInputs, selected: set) -> HeroCard | None:
    missed = [s for s in inputs.season_stats if not s.playoff_qualified and s.total_pf > 0]
    if not missed:
        return None
    s = max(missed, key=lambda x: x.total_pf)
    return _card(
        inputs,
        s.manager_key,
        id="all-gas",
        badge=Badge.NEMESIS,
        title="ALL GAS, NO PLAYOFFS",
        primary_value=_pts(s.total_pf),
        primary_label="PTS, NO PLAYOFFS",
        punchline=f"Scored {_pts(s.total_pf)} points and still missed the playoffs.",
        lines=[
            ("Rank", ordinal(s.rank)),
            ("Record", f"{s.wins}-{s.losses}"),
            ("Playoff Cutoff", str(s.playoff_teams)),
        ],
        season=s.season,
    )


@hero("Playoff Choker")
def playoff_choker(inputs: InsightInputs, selected: set) -> HeroCard | None:
    """Top seed that dropped two or more playoff games in one season."""
    stats = {(s.season, s.manager_key): s for s in inputs.season_stats}
    losses: dict[tuple[str, str], int] = {}
    for m in inputs.weekly_matchups:
        stat = stats.get((m.season, m.manager_key))
        if stat is None or not stat.playoff_qualified or m.won or m.tie:
            continue
        start = stat.playoff_start_week or DEFAULT_PLAYOFF_START_WEEK
        end = stat.playoff_week_end
        if m.week < start or (end is not None and m.week > end):
            continue
        losses[(m.season, m.manager_key)] = losses.get((m.season, m.manager_key), 0) + 1

    eligible = [
        (n, stats[k])
        for k, n in losses.items()
        if n >= PLAYOFF_CHOKER_MIN_LOSSES and 1 <= stats[k].rank <= PLAYOFF_CHOKER_MAX_SEED
    ]
    if not eligible:
        return None
    n, s = max(eligible, key=lambda e: (e[0], -e[1].rank, _season_sort(e[1].season)))
    return _card(
        inputs,
        s.manager_key,
        id="playoff-choker",
        badge=Badge.NEMESIS,
        title="PLAYOFF CHOKER",
        primary_value=str(n),
        primary_label="PLAYOFF LOSSES",
        punchline=f"Top {PLAYOFF_CHOKER_MAX_SEED} seed, then lost {n} playoff games. The choke is real.",
        lines=[("Regular Season Seed", rank_label(s.rank)), ("Season", s.season)],
        season=s.season,
    )


@hero("Game of the Year")
def game_of_the_year(inputs: InsightInputs, selected: set) -> HeroCard | None:
    games = [
        m
        for m in inputs.weekly_matchups
        if m.game_key not in selected and m.points + m.opponent_points >= SHOOTOUT_COMBINED and m.points >= m.opponent_points
    ]
    if not games:
        return None
    best = max(games, key=lambda m: m.points + m.opponent_points)
    selected.add(best.game_key)
    combined = best.points + best.opponent_points
    opponent = inputs.name(best.opponent_key)
    return _card(
        inputs,
        best.manager_key,
        id="game-of-the-year",
        badge=Badge.EDGE,
        title="GAME OF THE YEAR",
        primary_value=_pts(combined),
        primary_label="COMBINED SCORE",
        punchline=f"Combined {_pts(combined)} points with {opponent}. Absolute shootout.",
        lines=[
            ("Week", str(best.week)),
            ("Score", f"{best.points:.1f} - {best.opponent_points:.1f}"),
            ("Opponent", opponent),
        ],
        season=best.season,
    )


@hero("Paper Champion")
def paper_champion(inputs: InsightInputs, selected: set) -> HeroCard | None:
    """Regular-season #1 whose edge over the #2 seed was paper thin."""
    by_season: dict[str, dict[int, list]] = {}
    for s in inputs.season_stats:
        by_season.setdefault(s.season, {}).setdefault(s.rank, []).append(s)

    candidates = []
    for ranks in by_season.values():
        firsts = ranks.get(1, [])
        if not firsts:
            continue
        top = max(firsts, key=lambda s: s.total_pf)
        seconds = ranks.get(2, [])
        if len(firsts) > 1 or any(r.total_pf >= top.total_pf * PAPER_CHAMPION_PF_RATIO for r in seconds):
            candidates.append(top)
    if not candidates:
        candidates = [s for s in inputs.season_stats if s.rank == 1]
    if not candidates:
        return None
    s = max(candidates, key=lambda x: (x.total_pf, _season_sort(x.season)))
    return _card(
        inputs,
        s.manager_key,
        id="paper-champion",
        badge=Badge.NEMESIS,
        title="PAPER CHAMPION",
        primary_value=_pts(s.total_pf),
        primary_label="PTS, NO TITLE",
        punchline=f"Best regular season ({rank_label(s.rank)} seed) but couldn't seal the deal.",
        lines=[
            ("Record", f"{s.wins}-{s.losses}"),
            ("Season", s.season),
            ("Playoff Teams", str(s.playoff_teams)),
        ],
        season=s.season,
    )


def compute_hero_receipts(inputs: InsightInputs) -> list[HeroCard]:
    selected: set[str] = set()
    cards = []
    for label, rule in HERO_RULES:
        card = rule(inputs, selected)
        if card is None:
            log.debug("hero %s skipped: nothing qualified", label)
            continue
        cards.append(card)
    return cards
