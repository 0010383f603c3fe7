from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from dominance.compute.grid import DominanceMatrix
from dominance.compute.identity import Manager


@dataclass(frozen=True, slots=True)
class WeeklyMatchup:
    """One manager's side of one qualifying game."""

    season: str
    week: int
    manager_key: str
    opponent_key: str
    points: float
    opponent_points: float

    @property
    def margin(self) -> float:
        return round(self.points - self.opponent_points, 2)

    @property
    def won(self) -> bool:
        return self.points > self.opponent_points

    @property
    def tie(self) -> bool:
        return self.points == self.opponent_points

    @property
    def game_key(self) -> str:
        lo, hi = sorted((self.manager_key, self.opponent_key))
        return f"{self.season}-{self.week}-{lo}-{hi}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "season": self.season,
            "week": self.week,
            "manager_key": self.manager_key,
            "opponent_key": self.opponent_key,
            "points": self.points,
            "opponent_points": self.opponent_points,
            "margin": self.margin,
            "won": self.won,
            "tie": self.tie,
        }


@dataclass(slots=True)
class SeasonStat:
    season: str
    manager_key: str
    rank: int
    wins: int
    losses: int
    ties: int
    total_pf: float
    playoff_qualified: bool
    playoff_teams: int
    playoff_qualified_inferred: bool = False
    playoff_start_week: int | None = None
    playoff_week_end: int | None = None


@dataclass(slots=True)
class SeasonContext:
    """One season of the chain while it is being ingested."""

    season: str
    league_id: str
    name: str
    playoff_start_week: int
    playoff_week_end: int | None
    playoff_teams: int | None
    previous_league_id: str | None
    rosters: list[dict] = field(default_factory=list)
    roster_to_key: dict[int, str] = field(default_factory=dict)
    weeks_included: list[int] = field(default_factory=list)


@dataclass(slots=True)
class DominanceReport:
    league: dict[str, Any]
    history: dict[str, Any]
    managers: list[Manager]
    matrix: DominanceMatrix
    season_stats: list[SeasonStat]
    weekly_matchups: list[WeeklyMatchup]
    weeks_included_by_season: dict[str, list[int]]
    playoff_start_by_season: dict[str, int]
    default_regular_season_end: int
    start_week: int
    end_week: int
    include_playoffs: bool
    total_games_counted: int
    insights: Any = None  # dominance.insights.LeagueInsights once derived

    @property
    def avatar_by_key(self) -> dict[str, str | None]:
        return {m.key: m.avatar_url for m in self.managers}

    @property
    def name_by_key(self) -> dict[str, str]:
        return {m.key: m.name for m in self.managers}

    def flat_cells(self) -> list[dict[str, Any]]:
        names = self.name_by_key
        return [
            {
                "a": c.a,
                "b": c.b,
                "a_name": names.get(c.a, c.a),
                "b_name": names.get(c.b, c.b),
                "wins": c.wins,
                "losses": c.losses,
                "ties": c.ties,
                "games": c.games,
                "score": c.score,
                "badge": c.badge,
                "record": c.display_record,
                "display_score": c.display_score,
                "pf": c.points_for,
                "pa": c.points_against,
            }
            for c in self.matrix.flat_cells()
        ]

    def totals_by_manager(self) -> list[dict[str, Any]]:
        out = []
        for m in self.matrix.managers:
            rt = self.matrix.row_totals[m.key]
            out.append(
                {
                    "key": m.key,
                    "name": m.name,
                    "avatar_url": m.avatar_url,
                    "total_wins": rt.wins,
                    "total_losses": rt.losses,
                    "total_ties": rt.ties,
                    "total_games": rt.games,
                    "total_pf": rt.points_for,
                    "total_pa": rt.points_against,
                    "total_score": rt.score,
                }
            )
        return out

    def to_json_payload(self, schema_version: str) -> dict[str, Any]:
        def totals(t) -> dict[str, Any]:
            return {
                "wins": t.wins,
                "losses": t.losses,
                "ties": t.ties,
                "games": t.games,
                "points_for": t.points_for,
                "points_against": t.points_against,
                "score": t.score,
            }

        base = {
            "schema_version": schema_version,
            "league": self.league,
            "history": self.history,
            "metadata": {
                "start_week": self.start_week,
                "end_week": self.end_week,
                "include_playoffs": self.include_playoffs,
                "total_games_counted": self.total_games_counted,
                "weeks_included_by_season": self.weeks_included_by_season,
                "playoff_start_by_season": self.playoff_start_by_season,
                "default_regular_season_end": self.default_regular_season_end,
            },
            "managers": [asdict(m) for m in self.matrix.managers],
            "grid": self.matrix.to_grid(),
            "cells": self.flat_cells(),
            "totals_by_manager": self.totals_by_manager(),
            "column_totals": {k: totals(v) for k, v in self.matrix.column_totals.items()},
            "grand_totals": totals(self.matrix.grand_totals),
            "season_stats": [asdict(s) for s in self.season_stats],
            "weekly_matchups": [w.to_dict() for w in self.weekly_matchups],
        }
        if self.insights is not None:
            base["insights"] = self.insights.to_dict()
        return base
