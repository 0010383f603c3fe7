"""Storyline cards: small, independent, fail-closed rules.

Each rule takes the shared :class:`InsightInputs` and returns one card or
``None`` when nothing clears its credibility floor. Rules are registered in
display order; adding a storyline means adding one decorated function.
"""

from __future__ import annotations

from typing import Callable

from dominance.compute.cells import Badge, PairwiseCell, format_score
from dominance.constants import (
    BLOWOUT_WIN_MARGIN,
    CLOSE_LOSS_MARGIN,
    MAX_CHOKE_JOBS,
    MAX_DETAIL_GAMES,
    MIN_GAMES_COUNTABLE,
    MIN_GAMES_FOR_PERSONAL,
    MIN_GAMES_FOR_STORYLINE,
    MIN_LEAGUE_GAMES_FOR_PUNCHING_BAG,
    MIN_WINS_FOR_UNTOUCHABLE,
    SEVERE_NEMESIS_SCORE,
    SEVERE_OWNED_SCORE,
)

from .models import InsightInputs, StoryCard

LeagueRule = Callable[[InsightInputs], "StoryCard | None"]
PersonalRule = Callable[[InsightInputs, str], "StoryCard | None"]

LEAGUE_STORYLINES: list[LeagueRule] = []
PERSONAL_STORYLINES: list[PersonalRule] = []
PERSONAL_FALLBACKS: list[PersonalRule] = []


def league_storyline(fn: LeagueRule) -> LeagueRule:
    LEAGUE_STORYLINES.append(fn)
    return fn


def personal_storyline(fn: PersonalRule) -> PersonalRule:
    PERSONAL_STORYLINES.append(fn)
    return fn


def personal_fallback(fn: PersonalRule) -> PersonalRule:
    PERSONAL_FALLBACKS.append(fn)
    return fn


def _plural(n: int, one: str, many: str) -> str:
    return one if n == 1 else many


def _leader(groups: dict[str, list], inputs: InsightInputs) -> tuple[str, list] | None:
    """Key with the most items; ties go to the alphabetically first name."""
    if not groups:
        return None
    return min(groups.items(), key=lambda kv: (-len(kv[1]), inputs.name(kv[0]).lower(), kv[0]))


def _h2h_details(inputs: InsightInputs, a: str, b: str):
    games = [m for m in inputs.weekly_matchups if m.manager_key == a and m.opponent_key == b]
    return inputs.details(games, lambda g: -abs(g.margin), MAX_DETAIL_GAMES)


def _losses_of(inputs: InsightInputs, key: str):
    games = [m for m in inputs.weekly_matchups if m.manager_key == key and not m.won and not m.tie]
    return inputs.details(games, lambda g: g.margin, MAX_DETAIL_GAMES)


def _wins_of(inputs: InsightInputs, key: str):
    games = [m for m in inputs.weekly_matchups if m.manager_key == key and m.won]
    return inputs.details(games, lambda g: -g.margin, MAX_DETAIL_GAMES)


def _h2h_card(
    inputs: InsightInputs,
    viewer: str,
    cell: PairwiseCell,
    card_id: str,
    title: str,
    line: str,
) -> StoryCard:
    other = cell.b if cell.a == viewer else cell.a
    return StoryCard(
        id=card_id,
        title=title,
        stat_primary=cell.display_record,
        metric_label="H2H record",
        stat_secondary=f"Score {format_score(cell.score)}",
        meta=f"{cell.games} games",
        line=line,
        detail=inputs.name(other),
        cell_key=cell.key,
        detail_games=_h2h_details(inputs, viewer, other),
    )


# --- League storylines ---


@league_storyline
def everybodys_victim(inputs: InsightInputs) -> StoryCard | None:
    """Manager with the most severe NEMESIS records against them (5+ games, score <= -0.4)."""
    groups: dict[str, list[PairwiseCell]] = {}
    for c in inputs.cells:
        if c.badge != Badge.NEMESIS or c.games < MIN_GAMES_FOR_STORYLINE or c.score > SEVERE_NEMESIS_SCORE:
            continue
        groups.setdefault(c.a, []).append(c)
    lead = _leader(groups, inputs)
    if lead is None:
        return None
    key, cells = lead
    worst = min(cells, key=lambda c: (c.score, -c.games))
    return StoryCard(
        id="everybodys-victim",
        title="EVERYBODY'S VICTIM",
        stat_primary=str(len(cells)),
        metric_label=_plural(len(cells), "owner", "owners"),
        line="Everyone has receipts on this one.",
        detail=inputs.name(key),
        cell_key=worst.key,
        manager_key=key,
        detail_games=_losses_of(inputs, key),
    )


@league_storyline
def point_diff_king(inputs: InsightInputs) -> StoryCard | None:
    candidates = [(k, t) for k, t in inputs.row_totals.items() if t.games > 0]
    if not candidates:
        return None
    key, totals = max(candidates, key=lambda kt: (kt[1].points_for - kt[1].points_against, kt[1].wins))
    diff = totals.points_for - totals.points_against
    return StoryCard(
        id="point-diff-king",
        title="POINT DIFFERENTIAL KING",
        stat_primary=f"{'+' if diff >= 0 else ''}{round(diff)}",
        metric_label="point differential",
        line="Biggest flex in the league.",
        detail=inputs.name(key),
        manager_key=key,
    )


@league_storyline
def punching_bag(inputs: InsightInputs) -> StoryCard | None:
    if inputs.total_league_games < MIN_LEAGUE_GAMES_FOR_PUNCHING_BAG:
        return None
    candidates = [(k, t) for k, t in inputs.row_totals.items() if t.losses > 0]
    if not candidates:
        return None
    key, totals = max(candidates, key=lambda kt: (kt[1].losses, -kt[1].wins))
    return StoryCard(
        id="punching-bag",
        title="PUNCHING BAG",
        stat_primary=str(totals.losses),
        metric_label="total losses",
        line="Took more L's than anyone.",
        detail=inputs.name(key),
        manager_key=key,
        detail_games=_losses_of(inputs, key),
    )


@league_storyline
def untouchable(inputs: InsightInputs) -> StoryCard | None:
    """Most perfect (never lost) OWNED records with enough history."""
    groups: dict[str, list[PairwiseCell]] = {}
    for c in inputs.cells:
        if c.badge != Badge.OWNED or c.games < MIN_GAMES_FOR_STORYLINE:
            continue
        if c.losses != 0 or c.wins < MIN_WINS_FOR_UNTOUCHABLE:
            continue
        groups.setdefault(c.a, []).append(c)
    lead = _leader(groups, inputs)
    if lead is None:
        return None
    key, cells = lead
    top = max(cells, key=lambda c: c.games)
    return StoryCard(
        id="untouchable",
        title="UNTOUCHABLE",
        stat_primary=str(len(cells)),
        metric_label=_plural(len(cells), "perfect record", "perfect records"),
        line="Never lost to these managers.",
        detail=inputs.name(key),
        cell_key=top.key,
        manager_key=key,
        detail_games=_wins_of(inputs, key),
    )


@league_storyline
def rival_central(inputs: InsightInputs) -> StoryCard | None:
    rivals = [c for c in inputs.cells if c.badge == Badge.RIVAL and c.games >= MIN_GAMES_FOR_STORYLINE]
    if not rivals:
        return None
    top = max(rivals, key=lambda c: c.games)
    return StoryCard(
        id="rival-central",
        title="RIVAL CENTRAL",
        stat_primary=top.display_record,
        metric_label="H2H record",
        stat_secondary=f"Score {format_score(top.score)}",
        meta=f"{top.games} games",
        line="Still can't settle this one.",
        detail=f"{inputs.name(top.a)} vs {inputs.name(top.b)}",
        cell_key=top.key,
        detail_games=_h2h_details(inputs, top.a, top.b),
    )


@league_storyline
def heartbreaker(inputs: InsightInputs) -> StoryCard | None:
    """Most losses by less than five points."""
    groups: dict[str, list] = {}
    for m in inputs.weekly_matchups:
        if not m.won and not m.tie and abs(m.margin) < CLOSE_LOSS_MARGIN:
            groups.setdefault(m.manager_key, []).append(m)
    lead = _leader(groups, inputs)
    if lead is None:
        return None
    key, games = lead
    n = len(games)
    return StoryCard(
        id="heartbreaker",
        title="HEARTBREAKER",
        stat_primary=str(n),
        metric_label=_plural(n, "close loss", "close losses"),
        line=f"Lost by less than {CLOSE_LOSS_MARGIN:g} points {n} time{'' if n == 1 else 's'}.",
        detail=inputs.name(key),
        manager_key=key,
        detail_games=inputs.details(games, lambda g: abs(g.margin), MAX_DETAIL_GAMES),
    )


@league_storyline
def blowout_artist(inputs: InsightInputs) -> StoryCard | None:
    """Most wins by 30+ points."""
    groups: dict[str, list] = {}
    for m in inputs.weekly_matchups:
        if m.won and m.margin >= BLOWOUT_WIN_MARGIN:
            groups.setdefault(m.manager_key, []).append(m)
    lead = _leader(groups, inputs)
    if lead is None:
        return None
    key, games = lead
    n = len(games)
    return StoryCard(
        id="blowout-artist",
        title="BLOWOUT ARTIST",
        stat_primary=str(n),
        metric_label=_plural(n, "blowout win", "blowout wins"),
        line=f"Won by {BLOWOUT_WIN_MARGIN:g}+ points {n} time{'' if n == 1 else 's'}.",
        detail=inputs.name(key),
        manager_key=key,
        detail_games=inputs.details(games, lambda g: -g.margin, MAX_DETAIL_GAMES),
    )


@league_storyline
def giant_slayer(inputs: InsightInputs) -> StoryCard | None:
    """Most wins over a season's #1 seed (highest points for among rank 1s)."""
    top_seed: dict[str, tuple[str, float]] = {}
    for s in inputs.season_stats:
        if s.rank != 1:
            continue
        cur = top_seed.get(s.season)
        if cur is None or s.total_pf > cur[1]:
            top_seed[s.season] = (s.manager_key, s.total_pf)
    if not top_seed:
        return None
    groups: dict[str, list] = {}
    for m in inputs.weekly_matchups:
        seed = top_seed.get(m.season)
        if m.won and seed and m.opponent_key == seed[0]:
            groups.setdefault(m.manager_key, []).append(m)
    lead = _leader(groups, inputs)
    if lead is None:
        return None
    key, games = lead
    n = len(games)
    return StoryCard(
        id="giant-slayer",
        title="GIANT SLAYER",
        stat_primary=str(n),
        metric_label=_plural(n, "upset win", "upset wins"),
        line=f"Beat the #1 seed {n} time{'' if n == 1 else 's'}.",
        detail=inputs.name(key),
        manager_key=key,
        detail_games=inputs.details(games, lambda g: -g.margin, MAX_DETAIL_GAMES),
    )


# --- Personal storylines (one viewer) ---


@personal_storyline
def your_biggest_win(inputs: InsightInputs, viewer: str) -> StoryCard | None:
    wins = [m for m in inputs.weekly_matchups if m.manager_key == viewer and m.won and m.margin > 0]
    if not wins:
        return None
    best = max(wins, key=lambda m: m.margin)
    opponent = inputs.name(best.opponent_key)
    return StoryCard(
        id="your-biggest-win",
        title="YOUR BIGGEST WIN",
        stat_primary=f"+{best.margin:.1f}",
        metric_label="win margin",
        stat_secondary=f"Week {best.week}",
        meta=best.season,
        line=f"Dropped {best.points:.1f} on {opponent}.",
        detail=opponent,
        manager_key=viewer,
        detail_games=inputs.details(wins, lambda g: -g.margin, MAX_DETAIL_GAMES),
    )


@personal_storyline
def your_choke_jobs(inputs: InsightInputs, viewer: str) -> StoryCard | None:
    """Losses where the viewer still outscored the weekly median; top-3 scores are nuclear."""
    scores: dict[tuple[str, int], list[float]] = {}
    for m in inputs.weekly_matchups:
        scores.setdefault((m.season, m.week), []).append(m.points)

    chokes = []
    for m in inputs.weekly_matchups:
        if m.manager_key != viewer or m.won or m.tie:
            continue
        ordered = sorted(scores[(m.season, m.week)], reverse=True)
        median = ordered[len(ordered) // 2]
        rank = ordered.index(m.points) + 1
        if m.points > median:
            chokes.append((m, rank <= 3, rank))
    if not chokes:
        return None

    capped = sorted(chokes, key=lambda c: (not c[1], -c[0].points))[:MAX_CHOKE_JOBS]
    nuclear = sum(1 for c in capped if c[1])
    worst, worst_nuclear, worst_rank = capped[0]
    opponent = inputs.name(worst.opponent_key)
    if nuclear and worst_nuclear:
        if nuclear == 1:
            line = f"Top {worst_rank} scorer. Still lost to {opponent}."
        else:
            line = f"{nuclear} times you were a top 3 scorer and still lost."
    elif len(capped) == 1:
        line = f"Beat half the league and lost to {opponent}."
    else:
        line = f"{len(capped)} times you beat half the league and lost."
    return StoryCard(
        id="your-choke-jobs",
        title="YOUR CHOKE JOBS",
        stat_primary=str(len(capped)),
        metric_label=_plural(len(capped), "choke job", "choke jobs"),
        stat_secondary=f"{nuclear} nuclear" if nuclear else None,
        meta=f"Worst: {worst.points:.1f} pts (Week {worst.week})",
        line=line,
        detail=opponent,
        manager_key=viewer,
        detail_games=inputs.details([c[0] for c in capped], lambda g: 0, MAX_CHOKE_JOBS),
    )


@personal_storyline
def your_favorite_victim(inputs: InsightInputs, viewer: str) -> StoryCard | None:
    owned = [
        c
        for c in inputs.cells
        if c.a == viewer
        and c.badge == Badge.OWNED
        and c.games >= MIN_GAMES_FOR_PERSONAL
        and c.score >= SEVERE_OWNED_SCORE
    ]
    if not owned:
        return None
    best = max(owned, key=lambda c: (c.score, c.games))
    return _h2h_card(inputs, viewer, best, "your-favorite-victim", "YOUR FAVORITE VICTIM", "Rent is always due.")


@personal_storyline
def your_kryptonite(inputs: InsightInputs, viewer: str) -> StoryCard | None:
    nemeses = [
        c
        for c in inputs.cells
        if c.a == viewer
        and c.badge == Badge.NEMESIS
        and c.games >= MIN_GAMES_FOR_PERSONAL
        and c.score <= SEVERE_NEMESIS_SCORE
    ]
    if not nemeses:
        return None
    worst = min(nemeses, key=lambda c: (c.score, -c.games))
    return _h2h_card(inputs, viewer, worst, "your-kryptonite", "YOUR KRYPTONITE", "They cook you every time.")


@personal_storyline
def your_unfinished_business(inputs: InsightInputs, viewer: str) -> StoryCard | None:
    rivals = [
        c for c in inputs.cells if c.a == viewer and c.badge == Badge.RIVAL and c.games >= MIN_GAMES_FOR_PERSONAL
    ]
    if not rivals:
        return None
    top = max(rivals, key=lambda c: c.games)
    return _h2h_card(
        inputs, viewer, top, "your-unfinished-business", "YOUR UNFINISHED BUSINESS", "This rivalry runs deep."
    )


def _viewer_cells(inputs: InsightInputs, viewer: str) -> list[PairwiseCell]:
    return [c for c in inputs.cells if c.a == viewer and c.games >= MIN_GAMES_COUNTABLE]


@personal_fallback
def most_played_opponent(inputs: InsightInputs, viewer: str) -> StoryCard | None:
    cells = _viewer_cells(inputs, viewer)
    if not cells:
        return None
    top = max(cells, key=lambda c: c.games)
    return _h2h_card(inputs, viewer, top, "most-played-opponent", "MOST PLAYED OPPONENT", "You see this one a lot.")


@personal_fallback
def closest_matchup(inputs: InsightInputs, viewer: str) -> StoryCard | None:
    cells = [c for c in _viewer_cells(inputs, viewer) if c.badge in (Badge.EDGE, Badge.SMALL_SAMPLE)]
    if not cells:
        return None
    top = max(cells, key=lambda c: c.games)
    return _h2h_card(inputs, viewer, top, "closest-matchup", "CLOSEST MATCHUP", "Too close to call.")


@personal_fallback
def most_even_rival(inputs: InsightInputs, viewer: str) -> StoryCard | None:
    cells = _viewer_cells(inputs, viewer)
    if not cells:
        return None
    top = min(cells, key=lambda c: (abs(c.score), -c.games))
    return _h2h_card(inputs, viewer, top, "most-even-rival", "MOST EVEN RIVAL", "Dead even. No one owns anyone.")


def compute_league_storylines(inputs: InsightInputs) -> list[StoryCard]:
    return [card for rule in LEAGUE_STORYLINES if (card := rule(inputs)) is not None]


def compute_personal_storylines(inputs: InsightInputs, viewer: str | None) -> list[StoryCard]:
    """Viewer's personal cards; fallback cards only when no real one qualifies.

    A fallback that would repeat an opponent already shown is skipped.
    """
    if not viewer:
        return []
    cards = [card for rule in PERSONAL_STORYLINES if (card := rule(inputs, viewer)) is not None]
    if cards:
        return cards
    shown: set[str] = set()
    for rule in PERSONAL_FALLBACKS:
        card = rule(inputs, viewer)
        if card is None or card.cell_key in shown:
            continue
        shown.add(card.cell_key or "")
        cards.append(card)
    return cards
