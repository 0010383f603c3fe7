"""League-wide headline picks over the flattened cell list.

Only countable cells (3+ games) take part, so a single lucky week never makes
anyone a landlord.
"""

from __future__ import annotations

from dominance.compute.cells import Badge, PairwiseCell
from dominance.constants import MIN_GAMES_COUNTABLE

from .models import (
    InsightInputs,
    LandlordSummary,
    MostOwnedSummary,
    OwnerRow,
    RivalrySummary,
    VictimRow,
)


def is_countable(c: PairwiseCell) -> bool:
    return c.games >= MIN_GAMES_COUNTABLE


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def find_landlord(inputs: InsightInputs) -> LandlordSummary | None:
    """Manager with the most distinct OWNED victims.

    Ties: higher average score over those victims, then higher average games.
    """
    groups: dict[str, list[VictimRow]] = {}
    for c in inputs.cells:
        if c.badge != Badge.OWNED or not is_countable(c):
            continue
        groups.setdefault(c.a, []).append(
            VictimRow(
                cell_key=c.key,
                victim_key=c.b,
                victim_name=inputs.name(c.b),
                record=c.display_record,
                games=c.games,
                score=c.score,
            )
        )
    if not groups:
        return None

    def rank(item: tuple[str, list[VictimRow]]):
        _, victims = item
        return (
            len(victims),
            _mean([v.score for v in victims]),
            _mean([float(v.games) for v in victims]),
        )

    best_key, victims = max(groups.items(), key=rank)
    victims = sorted(victims, key=lambda v: (-v.games, -v.score, v.victim_name.lower()))
    return LandlordSummary(landlord_key=best_key, landlord_name=inputs.name(best_key), victims=victims)


def find_most_owned(inputs: InsightInputs) -> MostOwnedSummary | None:
    """Manager OWNED by the most distinct managers.

    Ties: more total games across owners, then higher games-weighted score.
    """
    groups: dict[str, list[OwnerRow]] = {}
    for c in inputs.cells:
        if c.badge != Badge.OWNED or not is_countable(c):
            continue
        groups.setdefault(c.b, []).append(
            OwnerRow(
                cell_key=c.key,
                landlord_key=c.a,
                landlord_name=inputs.name(c.a),
                record=c.display_record,
                games=c.games,
                score=c.score,
            )
        )
    if not groups:
        return None

    def rank(item: tuple[str, list[OwnerRow]]):
        _, owners = item
        games = sum(o.games for o in owners)
        weighted = sum(o.score * o.games for o in owners) / games if games else 0.0
        return (len(owners), games, weighted)

    victim_key, owners = max(groups.items(), key=rank)
    return MostOwnedSummary(victim_key=victim_key, victim_name=inputs.name(victim_key), owned_by=owners)


_RIVALRY_BADGE_RANK = {Badge.RIVAL: 2, Badge.EDGE: 1}


def find_biggest_rivalry(inputs: InsightInputs) -> RivalrySummary | None:
    """Countable pair with the smallest ``|score|``; then most games, then RIVAL > EDGE > rest."""
    eligible = [c for c in inputs.cells if is_countable(c)]
    if not eligible:
        return None
    top = min(
        eligible,
        key=lambda c: (abs(c.score), -c.games, -_RIVALRY_BADGE_RANK.get(c.badge or "", 0)),
    )
    return RivalrySummary(
        a_key=top.a,
        b_key=top.b,
        a_name=inputs.name(top.a),
        b_name=inputs.name(top.b),
        record=top.display_record,
        games=top.games,
        score=top.score,
        badge=top.badge,
    )
