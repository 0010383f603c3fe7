"""Pairwise head-to-head records and badge classification.

A cell is the directional record of manager ``a`` against manager ``b``. Cells
are accumulated as mutable ``RecordTally`` objects while weeks are folded in and
frozen into ``PairwiseCell`` once every week has been seen.

Badge rules, applied to the final totals only:

1. Fewer than 4 games is SMALL SAMPLE, except a perfect 3+ game sweep
   (OWNED) or a perfect 3+ game shutout (NEMESIS).
2. 5+ games with ``|score| <= 0.20`` is RIVAL.
3. Short records go through a shape table: 3-1, 1-3, 2-0, 0-2 are EDGE and
   2-1, 1-2, 2-2, 1-1 are SMALL SAMPLE. Other records fall back to sweeps and
   sample-scaled score thresholds, else EDGE.
4. A margin override escalates SMALL SAMPLE to EDGE and EDGE to OWNED at
   ``score >= 1.0`` and downgrades EDGE to SMALL SAMPLE at ``score <= -1.0``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from dominance.constants import (
    MARGIN_OVERRIDE_SCORE,
    MEDIUM_SIGNAL_GAMES,
    MEDIUM_SIGNAL_SCORE,
    PERFECT_SWEEP_MIN,
    RIVAL_MAX_ABS_SCORE,
    RIVAL_MIN_GAMES,
    SCORE_PLACES,
    SMALL_SAMPLE_GAMES,
    STRONG_SIGNAL_GAMES,
    STRONG_SIGNAL_SCORE,
)


class Badge:
    """Narrative labels for a head-to-head record."""

    OWNED = "OWNED"
    NEMESIS = "NEMESIS"
    RIVAL = "RIVAL"
    EDGE = "EDGE"
    SMALL_SAMPLE = "SMALL SAMPLE"

    ALL = (OWNED, NEMESIS, RIVAL, EDGE, SMALL_SAMPLE)


RECORD_SHAPES: dict[tuple[int, int], str] = {
    (3, 1): Badge.EDGE,
    (1, 3): Badge.EDGE,
    (2, 0): Badge.EDGE,
    (0, 2): Badge.EDGE,
    (2, 1): Badge.SMALL_SAMPLE,
    (1, 2): Badge.SMALL_SAMPLE,
    (2, 2): Badge.SMALL_SAMPLE,
    (1, 1): Badge.SMALL_SAMPLE,
}


def dominance_score(wins: int, losses: int, games: int) -> float:
    return (wins - losses) / games if games > 0 else 0.0


def _shape_badge(wins: int, losses: int, games: int, score: float) -> str:
    shaped = RECORD_SHAPES.get((wins, losses))
    if shaped is not None:
        return shaped
    if losses == 0 and wins >= PERFECT_SWEEP_MIN:
        return Badge.OWNED
    if wins == 0 and losses >= PERFECT_SWEEP_MIN:
        return Badge.NEMESIS
    if games >= STRONG_SIGNAL_GAMES:
        if score >= STRONG_SIGNAL_SCORE:
            return Badge.OWNED
        if score <= -STRONG_SIGNAL_SCORE:
            return Badge.NEMESIS
    elif games >= MEDIUM_SIGNAL_GAMES:
        if score >= MEDIUM_SIGNAL_SCORE:
            return Badge.OWNED
        if score <= -MEDIUM_SIGNAL_SCORE:
            return Badge.NEMESIS
    return Badge.EDGE


def classify_badge(wins: int, losses: int, games: int, score: float) -> str:
    """Pure badge classification from final totals (see module docstring)."""
    if games < SMALL_SAMPLE_GAMES:
        if wins >= PERFECT_SWEEP_MIN and losses == 0:
            return Badge.OWNED
        if wins == 0 and losses >= PERFECT_SWEEP_MIN:
            return Badge.NEMESIS
        return Badge.SMALL_SAMPLE
    if games >= RIVAL_MIN_GAMES and abs(score) <= RIVAL_MAX_ABS_SCORE:
        return Badge.RIVAL

    badge = _shape_badge(wins, losses, games, score)

    if badge == Badge.SMALL_SAMPLE and score >= MARGIN_OVERRIDE_SCORE:
        return Badge.EDGE
    if badge == Badge.EDGE:
        if score >= MARGIN_OVERRIDE_SCORE:
            return Badge.OWNED
        if score <= -MARGIN_OVERRIDE_SCORE:
            return Badge.SMALL_SAMPLE
    return badge


def format_record(wins: int, losses: int, ties: int = 0) -> str:
    return f"{wins}-{losses}-{ties}" if ties > 0 else f"{wins}-{losses}"


def format_score(score: float) -> str:
    """Signed score, halves rounded up (0.625 -> "+0.63", -0.625 -> "-0.62")."""
    scale = 10**SCORE_PLACES
    s2 = math.floor(score * scale + 0.5) / scale
    if s2 == 0:
        s2 = 0.0  # no "-0.00"
    return f"{s2:+.{SCORE_PLACES}f}"


@dataclass(slots=True)
class RecordTally:
    """Running totals for one ordered pair while weeks are folded in."""

    wins: int = 0
    losses: int = 0
    ties: int = 0
    points_for: float = 0.0
    points_against: float = 0.0

    @property
    def games(self) -> int:
        return self.wins + self.losses + self.ties

    def add_game(self, points_for: float, points_against: float) -> None:
        self.points_for += points_for
        self.points_against += points_against
        if points_for > points_against:
            self.wins += 1
        elif points_for < points_against:
            self.losses += 1
        else:
            self.ties += 1


@dataclass(frozen=True, slots=True)
class PairwiseCell:
    a: str
    b: str
    wins: int
    losses: int
    ties: int
    games: int
    points_for: float
    points_against: float
    score: float
    badge: str | None
    display_record: str
    display_score: str

    @property
    def key(self) -> str:
        return f"{self.a}-{self.b}"

    @property
    def win_pct(self) -> float:
        return self.wins / self.games if self.games else 0.0


def finalize_cell(a: str, b: str, tally: RecordTally) -> PairwiseCell:
    """Freeze a tally into a classified cell. The diagonal is zeroed and unbadged."""
    if a == b:
        tally = RecordTally()
    games = tally.games
    score = dominance_score(tally.wins, tally.losses, games)
    return PairwiseCell(
        a=a,
        b=b,
        wins=tally.wins,
        losses=tally.losses,
        ties=tally.ties,
        games=games,
        points_for=round(tally.points_for, 2),
        points_against=round(tally.points_against, 2),
        score=score,
        badge=None if a == b else classify_badge(tally.wins, tally.losses, games, score),
        display_record=format_record(tally.wins, tally.losses, tally.ties),
        display_score=format_score(score),
    )
