"""WorkloadScorer — rank available resolvers for a property / skill group."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from resolution_engine.domain.entities.resolver_stat import (
    DEFAULT_AVG_RESOLUTION_MINUTES,
    DEFAULT_FLOOR,
    ResolverStat,
)

LOAD_WEIGHT = 0.6
FLOOR_WEIGHT = 0.2
SPEED_WEIGHT = 0.2

# Caps the speed term (in hours) so one slow resolver cannot dominate
SPEED_CAP_HOURS = 10.0


@dataclass(frozen=True)
class RankedResolver:
    stat: ResolverStat
    active_tickets: int
    score: float

    @property
    def user_id(self) -> str:
        return self.stat.user_id


def score_resolver(stat: ResolverStat, active_tickets: int) -> float:
    """Lower is better.

    score = 0.6 * active + 0.2 * floor + 0.2 * min(avg_minutes / 60, 10)
    """
    floor = stat.current_floor if stat.current_floor is not None else DEFAULT_FLOOR
    avg_minutes = (
        stat.avg_resolution_minutes
        if stat.avg_resolution_minutes is not None
        else DEFAULT_AVG_RESOLUTION_MINUTES
    )
    speed = min(avg_minutes / 60, SPEED_CAP_HOURS)
    return LOAD_WEIGHT * active_tickets + FLOOR_WEIGHT * floor + SPEED_WEIGHT * speed


def rank(
    candidates: Iterable[ResolverStat],
    active_ticket_counts: Mapping[str, int],
) -> list[RankedResolver]:
    """Pure function: order candidates best-first.

    Sorted ascending by score, ties broken by ``user_id`` ascending. The
    output has one entry per input candidate; an empty input is a valid
    result and means no resolver is available right now.
    """
    scored = [
        RankedResolver(
            stat=stat,
            active_tickets=active_ticket_counts.get(stat.user_id, 0),
            score=score_resolver(stat, active_ticket_counts.get(stat.user_id, 0)),
        )
        for stat in candidates
    ]
    return sorted(scored, key=lambda r: (r.score, r.stat.user_id))


def best(
    candidates: Iterable[ResolverStat],
    active_ticket_counts: Mapping[str, int],
) -> RankedResolver | None:
    ranked = rank(candidates, active_ticket_counts)
    return ranked[0] if ranked else None


def dedupe_by_user(stats: Iterable[ResolverStat]) -> list[ResolverStat]:
    """Keep the first row per user so a resolver is scored only once."""
    seen: set[str] = set()
    unique: list[ResolverStat] = []
    for stat in stats:
        if stat.user_id in seen:
            continue
        seen.add(stat.user_id)
        unique.append(stat)
    return unique
