import dataclasses

import pytest

from dominance.compute.cells import Badge
from dominance.compute.core import MatchupPair
from dominance.compute.grid import PairwiseAccumulator, build_matrix
from dominance.compute.identity import Manager
from dominance.insights.heroes import (
    biggest_blowout,
    compute_hero_receipts,
    game_of_the_year,
    ordinal,
    rank_label,
)
from dominance.insights.models import InsightInputs
from dominance.insights.storylines import compute_league_storylines, compute_personal_storylines
from dominance.insights.summary import find_biggest_rivalry, find_landlord, find_most_owned
from dominance.report.models import SeasonStat, WeeklyMatchup

NAMES = {"a": "Alice", "b": "Bob", "c": "Cara", "d": "Dan"}


def make_inputs(games=(), season_stats=()):
    """games: (season, week, a, b, a_points, b_points)."""
    managers = [Manager(k, n) for k, n in NAMES.items()]
    acc = PairwiseAccumulator(NAMES)
    weekly = []
    for season, week, a, b, pa, pb in games:
        acc.add_pairs([MatchupPair(a, b, pa, pb)])
        weekly.append(WeeklyMatchup(season, week, a, b, pa, pb))
        weekly.append(WeeklyMatchup(season, week, b, a, pb, pa))
    matrix = build_matrix(managers, acc)
    return InsightInputs(
        cells=matrix.flat_cells(),
        names=dict(NAMES),
        avatars={k: None for k in NAMES},
        row_totals=matrix.row_totals,
        weekly_matchups=weekly,
        season_stats=list(season_stats),
        total_league_games=acc.games_counted,
    )


def series(a, b, wins, losses, season="2024", start_week=1):
    out = []
    week = start_week
    for _ in range(wins):
        out.append((season, week, a, b, 110.0, 100.0))
        week += 1
    for _ in range(losses):
        out.append((season, week, a, b, 100.0, 110.0))
        week += 1
    return out


def stat(season, key, rank, pf=1500.0, qualified=True, teams=2, **kw):
    return SeasonStat(season, key, rank, 8, 6, 0, pf, qualified, teams, **kw)


def test_everything_fails_closed_without_games():
    inputs = make_inputs()
    assert find_landlord(inputs) is None
    assert find_most_owned(inputs) is None
    assert find_biggest_rivalry(inputs) is None
    assert compute_league_storylines(inputs) == []
    assert compute_personal_storylines(inputs, "a") == []
    assert compute_hero_receipts(inputs) == []


def test_small_samples_are_not_countable():
    inputs = make_inputs(series("a", "b", 1, 1))
    assert find_biggest_rivalry(inputs) is None
    assert find_landlord(inputs) is None


def test_landlord_prefers_more_victims():
    games = series("a", "b", 3, 0) + series("c", "b", 3, 0, start_week=4) + series("c", "d", 3, 0, start_week=7)
    inputs = make_inputs(games)
    landlord = find_landlord(inputs)
    assert landlord.landlord_key == "c"
    assert landlord.victim_count == 2
    assert [v.victim_key for v in landlord.victims] == ["b", "d"]
    owned = find_most_owned(inputs)
    assert owned.victim_key == "b"
    assert owned.times_owned == 2
    assert owned.total_games == 6


def test_landlord_tie_breaks_on_average_score():
    games = series("a", "b", 3, 0) + series("c", "d", 5, 1)
    landlord = find_landlord(make_inputs(games))
    assert landlord.landlord_key == "a"
    assert landlord.best_victim.victim_key == "b"


def test_landlord_and_most_owned_tie_break_on_games():
    inputs = make_inputs(series("a", "b", 3, 0) + series("c", "d", 4, 0))
    assert find_landlord(inputs).landlord_key == "c"
    assert find_most_owned(inputs).victim_key == "d"


def test_most_owned_tie_breaks_on_weighted_score():
    owned = find_most_owned(make_inputs(series("a", "b", 6, 0) + series("c", "d", 5, 1)))
    assert owned.victim_key == "b"
    assert owned.total_games == 6


def test_biggest_rivalry_prefers_rival_badge_on_full_tie():
    inputs = make_inputs(series("a", "b", 3, 2) + series("c", "d", 3, 2))
    rivals = [c for c in inputs.cells if {c.a, c.b} == {"a", "b"}]
    edges = [dataclasses.replace(c, badge=Badge.EDGE) for c in inputs.cells if {c.a, c.b} == {"c", "d"}]
    inputs.cells = edges + rivals
    rivalry = find_biggest_rivalry(inputs)
    assert {rivalry.a_key, rivalry.b_key} == {"a", "b"}
    assert rivalry.badge == Badge.RIVAL


def test_biggest_rivalry_smallest_score_then_most_games():
    rivalry = find_biggest_rivalry(make_inputs(series("a", "b", 3, 2) + series("c", "d", 4, 3)))
    assert {rivalry.a_key, rivalry.b_key} == {"c", "d"}
    assert rivalry.games == 7
    even = find_biggest_rivalry(make_inputs(series("a", "b", 2, 2) + series("c", "d", 3, 3)))
    assert {even.a_key, even.b_key} == {"c", "d"}
    assert even.badge == "RIVAL"


def test_rival_central_and_untouchable():
    games = series("a", "b", 3, 3) + series("c", "d", 5, 0, start_week=7)
    cards = {c.id: c for c in compute_league_storylines(make_inputs(games))}
    assert cards["rival-central"].stat_primary == "3-3"
    assert cards["untouchable"].manager_key == "c"
    assert cards["untouchable"].detail_games[0].won
    assert "punching-bag" not in cards


def test_detail_games_are_capped():
    cards = {c.id: c for c in compute_league_storylines(make_inputs(series("a", "b", 12, 0)))}
    assert len(cards["untouchable"].detail_games) == 8


def test_choke_job_counts_top_scorer_losses():
    games = [("2024", 1, "a", "b", 150.0, 160.0), ("2024", 1, "c", "d", 100.0, 90.0)]
    cards = {c.id: c for c in compute_personal_storylines(make_inputs(games), "a")}
    choke = cards["your-choke-jobs"]
    assert choke.stat_primary == "1"
    assert choke.stat_secondary == "1 nuclear"
    assert choke.line == "Top 2 scorer. Still lost to Bob."


def test_personal_fallback_cards_do_not_repeat_an_opponent():
    games = [
        ("2024", 1, "a", "b", 100.0, 100.0),
        ("2024", 2, "a", "b", 100.0, 100.0),
        ("2024", 3, "a", "b", 90.0, 100.0),
    ]
    cards = compute_personal_storylines(make_inputs(games), "a")
    assert [c.id for c in cards] == ["most-played-opponent"]
    assert cards[0].stat_primary == "0-1-2"


@pytest.mark.parametrize(
    "n,expected",
    [(1, "1st"), (2, "2nd"), (3, "3rd"), (4, "4th"), (11, "11th"), (12, "12th"), (21, "21st"), (111, "111th")],
)
def test_ordinal(n, expected):
    assert ordinal(n) == expected


def test_rank_label():
    assert rank_label(1) == "Champion"
    assert rank_label(3) == "3rd"
    assert rank_label(0) == "-"


def test_game_of_the_year_skips_the_blowout_game():
    games = [("2024", 3, "a", "b", 200.0, 90.0), ("2024", 5, "c", "d", 140.0, 130.0)]
    inputs = make_inputs(games)
    selected = set()
    blowout = biggest_blowout(inputs, selected)
    assert blowout.manager_key == "b"
    assert blowout.primary_value == "110.0"
    goty = game_of_the_year(inputs, selected)
    assert goty.manager_key == "c"
    assert goty.primary_value == "270"
    assert game_of_the_year(inputs, set()).manager_key == "a"


def test_season_heroes():
    stats = [
        stat("2023", "a", 1, pf=1700.0, playoff_start_week=15, playoff_week_end=17),
        stat("2023", "b", 2, pf=1650.0),
        stat("2023", "c", 3, pf=1500.0, qualified=False),
        stat("2023", "d", 4, pf=1800.0, qualified=False),
        stat("2024", "a", 3, pf=1400.0, qualified=False),
        stat("2024", "b", 1, pf=1600.0),
        stat("2024", "c", 2, pf=1300.0),
        stat("2024", "d", 4, pf=1200.0, qualified=False),
    ]
    games = [("2023", 15, "a", "b", 90.0, 120.0), ("2023", 16, "a", "c", 95.0, 100.0)]
    heroes = {h.id: h for h in compute_hero_receipts(make_inputs(games, stats))}

    spoon = heroes["wooden-spoon"]
    assert spoon.manager_key == "d"
    assert spoon.primary_value == "2"
    assert spoon.season == "2023-2024"

    assert heroes["missed-it"].manager_key == "c"
    assert heroes["missed-it"].primary_value == "1,500"
    assert heroes["all-gas"].manager_key == "d"
    assert heroes["all-gas"].primary_value == "1,800"

    fall = heroes["biggest-fall-off"]
    assert fall.manager_key == "a"
    assert fall.primary_value == "Champion -> 3rd"

    choker = heroes["playoff-choker"]
    assert choker.manager_key == "a"
    assert choker.primary_value == "2"

    paper = heroes["paper-champion"]
    assert paper.manager_key == "a"
    assert paper.season == "2023"
