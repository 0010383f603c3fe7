import pytest

from dominance.compute.cells import Badge
from dominance.report.collect import build_dominance_report, walk_season_chain

A, B, C = "owner:u_a", "owner:u_b", "owner:u_c"


def test_two_season_report_merges_managers_across_roster_ids(fake_sleeper):
    report = build_dominance_report("L2024", provider=fake_sleeper, max_workers=2)

    assert report.history["seasons"] == ["2024", "2023"]
    assert report.league == {"league_id": "L2024", "name": "Dynasty Bros", "season": "2023-2024"}
    assert [m.key for m in report.managers] == [A, C, B]
    assert report.name_by_key[A] == "Alice"
    assert report.avatar_by_key[A] == "https://sleepercdn.com/avatars/aaa111"

    ab = report.matrix.cell(A, B)
    assert (ab.wins, ab.losses, ab.games) == (5, 1, 6)
    assert ab.badge == Badge.OWNED
    assert ab.display_score == "+0.67"
    assert report.matrix.cell(B, A).badge == Badge.NEMESIS
    assert report.matrix.cell(A, C).games == 0

    assert report.total_games_counted == 6
    assert len(report.weekly_matchups) == 12
    assert report.weeks_included_by_season == {"2024": [1, 2, 3], "2023": [1, 2, 3]}
    assert report.playoff_start_by_season == {"2024": 15, "2023": 15}
    assert report.default_regular_season_end == 14


def test_playoff_weeks_are_never_fetched_by_default(fake_sleeper):
    build_dominance_report("L2024", provider=fake_sleeper, max_workers=1)
    fetched = {int(c[2]) for c in fake_sleeper.calls if c[0] == "matchups" and c[1] == "L2024"}
    assert fetched == set(range(1, 15))


def test_include_playoffs_counts_playoff_games(fake_sleeper):
    report = build_dominance_report("L2024", 1, 17, True, provider=fake_sleeper, max_workers=1)
    ab = report.matrix.cell(A, B)
    assert (ab.wins, ab.losses) == (5, 2)
    assert ab.badge == Badge.OWNED
    assert report.weeks_included_by_season["2024"] == [1, 2, 3, 16]


def test_landlord_and_most_owned_end_to_end(fake_sleeper):
    report = build_dominance_report("L2024", provider=fake_sleeper, max_workers=1)
    ins = report.insights
    assert ins.landlord.landlord_key == A
    assert [v.victim_key for v in ins.landlord.victims] == [B]
    assert ins.landlord.total_owned_games == 6
    assert ins.most_owned.victim_key == B
    assert {ins.biggest_rivalry.a_key, ins.biggest_rivalry.b_key} == {A, B}
    ids = [c.id for c in ins.storylines]
    assert ids == ["everybodys-victim", "point-diff-king", "blowout-artist", "giant-slayer"]
    assert ins.storylines[0].manager_key == B
    assert ins.personal == []


def test_viewer_gets_personal_cards(fake_sleeper):
    report = build_dominance_report("L2024", provider=fake_sleeper, max_workers=1, viewer_key=B)
    assert [c.id for c in report.insights.personal] == ["your-biggest-win", "your-kryptonite"]
    unknown = build_dominance_report("L2024", provider=fake_sleeper, max_workers=1, viewer_key="owner:zz")
    assert unknown.insights.viewer_key is None


def test_season_stats(fake_sleeper):
    report = build_dominance_report("L2024", provider=fake_sleeper, max_workers=1)
    by = {(s.season, s.manager_key): s for s in report.season_stats}
    a24 = by[("2024", A)]
    assert a24.rank == 1 and a24.playoff_qualified and a24.total_pf == 360.0
    assert by[("2024", C)].rank == 3 and not by[("2024", C)].playoff_qualified
    assert by[("2023", B)].playoff_teams == 3
    assert by[("2023", B)].playoff_qualified_inferred


def test_failed_week_degrades_to_missing_week(fake_sleeper):
    fake_sleeper.fail_weeks.add(("L2023", 3))
    report = build_dominance_report("L2024", provider=fake_sleeper, max_workers=1)
    ab = report.matrix.cell(A, B)
    assert (ab.wins, ab.losses) == (4, 1)
    assert ab.badge == Badge.EDGE
    assert report.weeks_included_by_season["2023"] == [1, 2]


def test_failed_prior_season_ends_history(fake_sleeper):
    fake_sleeper.fail_leagues.add("L2023")
    report = build_dominance_report("L2024", provider=fake_sleeper, max_workers=1)
    assert report.history["seasons"] == ["2024"]
    assert report.total_games_counted == 3


def test_unknown_or_failing_start_league_raises(fake_sleeper):
    with pytest.raises(ValueError):
        build_dominance_report("nope", provider=fake_sleeper)
    fake_sleeper.fail_leagues.add("L2024")
    with pytest.raises(ValueError):
        build_dominance_report("L2024", provider=fake_sleeper)


@pytest.mark.parametrize(
    "league_id,start,end",
    [("", 1, 17), ("   ", 1, 17), ("L2024", 0, 17), ("L2024", 10, 5)],
)
def test_malformed_requests_raise_before_fetching(fake_sleeper, league_id, start, end):
    with pytest.raises(ValueError):
        build_dominance_report(league_id, start, end, provider=fake_sleeper)
    assert fake_sleeper.calls == []


def _league(lid, prev):
    return {"league": {"league_id": lid, "season": lid, "previous_league_id": prev}}


def test_chain_cycle_terminates(make_provider):
    provider = make_provider({"leagues": {"X1": _league("X1", "X2"), "X2": _league("X2", "X1")}})
    chain = walk_season_chain(provider, "X1")
    assert [c.league_id for c in chain] == ["X1", "X2"]


def test_chain_depth_is_bounded(make_provider):
    leagues = {f"D{i}": _league(f"D{i}", f"D{i + 1}") for i in range(20)}
    chain = walk_season_chain(make_provider({"leagues": leagues}), "D0")
    assert len(chain) == 15


def test_reports_do_not_share_state(fake_sleeper):
    first = build_dominance_report("L2024", provider=fake_sleeper, max_workers=1)
    second = build_dominance_report("L2024", provider=fake_sleeper, max_workers=1)
    assert first.flat_cells() == second.flat_cells()
    assert first.total_games_counted == second.total_games_counted == 6


def test_repeated_season_label_keeps_both_leagues(make_provider):
    leagues = {
        "X1": {"league": {"league_id": "X1", "season": "2024", "previous_league_id": "X2"}},
        "X2": {"league": {"league_id": "X2", "season": "2024", "previous_league_id": None}},
    }
    report = build_dominance_report("X1", provider=make_provider({"leagues": leagues}), max_workers=1)
    assert report.history["seasons"] == ["2024", "2024 (X2)"]
    assert set(report.weeks_included_by_season) == {"2024", "2024 (X2)"}
    assert set(report.playoff_start_by_season) == {"2024", "2024 (X2)"}
