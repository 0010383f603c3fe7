from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any, Iterable

if TYPE_CHECKING:
    from dominance.compute.cells import PairwiseCell
    from dominance.compute.grid import Totals
    from dominance.report.models import DominanceReport, SeasonStat, WeeklyMatchup


@dataclass(frozen=True, slots=True)
class GameDetail:
    season: str
    week: int
    opponent: str
    your_points: float
    their_points: float
    margin: float
    won: bool


@dataclass(slots=True)
class StoryCard:
    id: str
    title: str
    stat_primary: str
    line: str
    stat_secondary: str | None = None
    metric_label: str | None = None
    meta: str | None = None
    detail: str | None = None
    cell_key: str | None = None
    manager_key: str | None = None
    detail_games: list[GameDetail] = field(default_factory=list)


@dataclass(slots=True)
class HeroCard:
    id: str
    badge: str
    title: str
    name: str
    manager_key: str
    primary_value: str
    primary_label: str
    punchline: str
    lines: list[tuple[str, str]] = field(default_factory=list)
    season: str | None = None
    avatar_url: str | None = None


@dataclass(frozen=True, slots=True)
class VictimRow:
    cell_key: str
    victim_key: str
    victim_name: str
    record: str
    games: int
    score: float


@dataclass(slots=True)
class LandlordSummary:
    landlord_key: str
    landlord_name: str
    victims: list[VictimRow]

    @property
    def victim_count(self) -> int:
        return len(self.victims)

    @property
    def total_owned_games(self) -> int:
        return sum(v.games for v in self.victims)

    @property
    def best_victim(self) -> VictimRow | None:
        return self.victims[0] if self.victims else None


@dataclass(frozen=True, slots=True)
class OwnerRow:
    cell_key: str
    landlord_key: str
    landlord_name: str
    record: str
    games: int
    score: float


@dataclass(slots=True)
class MostOwnedSummary:
    victim_key: str
    victim_name: str
    owned_by: list[OwnerRow]

    @property
    def times_owned(self) -> int:
        return len(self.owned_by)

    @property
    def total_games(self) -> int:
        return sum(o.games for o in self.owned_by)

    @property
    def worst_owner(self) -> OwnerRow | None:
        if not self.owned_by:
            return None
        return sorted(self.owned_by, key=lambda o: (-o.score, -o.games))[0]


@dataclass(frozen=True, slots=True)
class RivalrySummary:
    a_key: str
    b_key: str
    a_name: str
    b_name: str
    record: str
    games: int
    score: float
    badge: str | None

    @property
    def cell_key(self) -> str:
        return f"{self.a_key}-{self.b_key}"


@dataclass(slots=True)
class InsightInputs:
    """Read-only view of a report shared by every insight rule."""

    cells: list[PairwiseCell]
    names: dict[str, str]
    avatars: dict[str, str | None]
    row_totals: dict[str, Totals]
    weekly_matchups: list[WeeklyMatchup]
    season_stats: list[SeasonStat]
    total_league_games: int

    @classmethod
    def from_report(cls, report: DominanceReport) -> InsightInputs:
        return cls(
            cells=report.matrix.flat_cells(),
            names=report.name_by_key,
            avatars=report.avatar_by_key,
            row_totals=report.matrix.row_totals,
            weekly_matchups=list(report.weekly_matchups),
            season_stats=list(report.season_stats),
            total_league_games=report.total_games_counted,
        )

    def name(self, key: str) -> str:
        return self.names.get(key, key)

    def manager_keys(self) -> list[str]:
        return list(self.names)

    def details(
        self,
        games: Iterable[WeeklyMatchup],
        sort_key,
        limit: int,
    ) -> list[GameDetail]:
        rows = sorted(games, key=sort_key)[:limit]
        return [
            GameDetail(
                season=g.season,
                week=g.week,
                opponent=self.name(g.opponent_key),
                your_points=g.points,
                their_points=g.opponent_points,
                margin=g.margin,
                won=g.won,
            )
            for g in rows
        ]


@dataclass(slots=True)
class LeagueInsights:
    landlord: LandlordSummary | None
    most_owned: MostOwnedSummary | None
    biggest_rivalry: RivalrySummary | None
    storylines: list[StoryCard]
    personal: list[StoryCard]
    heroes: list[HeroCard]
    viewer_key: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "landlord": None,
            "most_owned": None,
            "biggest_rivalry": None,
            "storylines": [asdict(c) for c in self.storylines],
            "personal": [asdict(c) for c in self.personal],
            "heroes": [asdict(c) for c in self.heroes],
            "viewer_key": self.viewer_key,
        }
        if self.landlord is not None:
            out["landlord"] = {
                **asdict(self.landlord),
                "victim_count": self.landlord.victim_count,
                "total_owned_games": self.landlord.total_owned_games,
            }
        if self.most_owned is not None:
            worst = self.most_owned.worst_owner
            out["most_owned"] = {
                **asdict(self.most_owned),
                "times_owned": self.most_owned.times_owned,
                "total_games": self.most_owned.total_games,
                "worst_owner": asdict(worst) if worst else None,
            }
        if self.biggest_rivalry is not None:
            out["biggest_rivalry"] = {
                **asdict(self.biggest_rivalry),
                "cell_key": self.biggest_rivalry.cell_key,
            }
        return out
