from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from .cells import PairwiseCell, RecordTally, dominance_score, finalize_cell
from .core import MatchupPair
from .identity import Manager


@dataclass(frozen=True, slots=True)
class Totals:
    wins: int = 0
    losses: int = 0
    ties: int = 0
    points_for: float = 0.0
    points_against: float = 0.0

    @property
    def games(self) -> int:
        return self.wins + self.losses + self.ties

    @property
    def score(self) -> float:
        return dominance_score(self.wins, self.losses, self.games)

    @property
    def net(self) -> int:
        return self.wins - self.losses


def _sum_cells(cells: Iterable[PairwiseCell]) -> Totals:
    w = l = t = 0
    pf = pa = 0.0
    for c in cells:
        w += c.wins
        l += c.losses
        t += c.ties
        pf += c.points_for
        pa += c.points_against
    return Totals(w, l, t, round(pf, 2), round(pa, 2))


class PairwiseAccumulator:
    """Directional running records for every ordered pair of managers.

    All cells exist (empty) from construction; each matchup updates the two
    mirrored cells together so ``(a, b).wins == (b, a).losses`` always holds.
    """

    def __init__(self, manager_keys: Iterable[str]) -> None:
        self.keys: list[str] = list(dict.fromkeys(manager_keys))
        self._tallies: dict[tuple[str, str], RecordTally] = {
            (a, b): RecordTally() for a in self.keys for b in self.keys
        }
        self.games_counted = 0

    def tally(self, a: str, b: str) -> RecordTally:
        return self._tallies[(a, b)]

    def add_matchup(self, a: str, b: str, a_points: float, b_points: float) -> None:
        if a == b:
            return
        self._tallies[(a, b)].add_game(a_points, b_points)
        self._tallies[(b, a)].add_game(b_points, a_points)
        self.games_counted += 1

    def add_pairs(self, pairs: Iterable[MatchupPair]) -> int:
        n = 0
        for p in pairs:
            self.add_matchup(p.a_key, p.b_key, p.a_points, p.b_points)
            n += 1
        return n

    def finalize(self) -> dict[tuple[str, str], PairwiseCell]:
        return {(a, b): finalize_cell(a, b, t) for (a, b), t in self._tallies.items()}


@dataclass(slots=True)
class DominanceMatrix:
    """Finalized cells plus row, column and grand totals.

    ``managers`` is in display order (net W-L, then wins, then name). Grand
    totals count each physical game once from each side.
    """

    managers: list[Manager]
    cells: dict[tuple[str, str], PairwiseCell]
    row_totals: dict[str, Totals]
    column_totals: dict[str, Totals]
    grand_totals: Totals

    def cell(self, a: str, b: str) -> PairwiseCell:
        return self.cells[(a, b)]

    def row(self, key: str) -> list[PairwiseCell]:
        return [self.cells[(key, m.key)] for m in self.managers if m.key != key]

    def flat_cells(self) -> list[PairwiseCell]:
        """Every off-diagonal cell in display order."""
        return [c for m in self.managers for c in self.row(m.key)]

    def to_grid(self) -> list[dict]:
        out = []
        for m in self.managers:
            rt = self.row_totals[m.key]
            out.append(
                {
                    "key": m.key,
                    "name": m.name,
                    "opponents": [
                        {
                            "opponent_key": c.b,
                            "record": {
                                "wins": c.wins,
                                "losses": c.losses,
                                "ties": c.ties,
                                "games": c.games,
                                "points_for": c.points_for,
                                "points_against": c.points_against,
                                "score": c.score,
                                "badge": c.badge,
                            },
                            "display": {"record": c.display_record, "score": c.display_score},
                        }
                        for c in self.row(m.key)
                    ],
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


def order_managers(managers: Iterable[Manager], row_totals: dict[str, Totals]) -> list[Manager]:
    """Display order only; never feeds classification or insights."""
    empty = Totals()
    return sorted(
        managers,
        key=lambda m: (
            -row_totals.get(m.key, empty).net,
            -row_totals.get(m.key, empty).wins,
            m.name.lower(),
            m.key,
        ),
    )


def build_matrix(managers: list[Manager], accumulator: PairwiseAccumulator) -> DominanceMatrix:
    cells = accumulator.finalize()
    keys = [m.key for m in managers]
    row_totals = {
        a: _sum_cells(cells[(a, b)] for b in keys if b != a and (a, b) in cells) for a in keys
    }
    column_totals = {
        b: _sum_cells(cells[(a, b)] for a in keys if a != b and (a, b) in cells) for b in keys
    }
    grand = _sum_cells(cells[(a, b)] for a in keys for b in keys if a != b and (a, b) in cells)
    return DominanceMatrix(
        managers=order_managers(managers, row_totals),
        cells=cells,
        row_totals=row_totals,
        column_totals=column_totals,
        grand_totals=grand,
    )
