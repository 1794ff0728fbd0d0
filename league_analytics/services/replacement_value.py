import math
from typing import List, Dict, Any, Iterable, Tuple

from ..models.sleeper import Matchup
from ..models.analytics import ValueRecord


UNKNOWN_POSITION = "UNK"
HIT_BUST_SHARE = 0.3
MIN_HIT_BUST_COHORT = 3


def median(values: List[float]) -> float:
    if not values:
        return 0.0
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return (ordered[mid - 1] + ordered[mid]) / 2
    return ordered[mid]


def player_season_points(weeks: List[List[Matchup]]) -> Dict[str, float]:
    """Sum every player's per-week points across the given weeks."""
    totals: Dict[str, float] = {}
    for week_matchups in weeks:
        for matchup in week_matchups:
            for player_id, points in (matchup.players_points or {}).items():
                totals[player_id] = totals.get(player_id, 0.0) + (points or 0.0)
    return totals


def replacement_levels(pool: Iterable[Tuple[str, float]]) -> Dict[str, float]:
    """Median outcome per position over exactly the (position, outcome) pairs given."""
    by_position: Dict[str, List[float]] = {}
    for position, outcome in pool:
        by_position.setdefault(position, []).append(outcome)
    return {position: median(values) for position, values in by_position.items()}


def expected_war_by_cohort(records: List[ValueRecord]) -> Dict[int, float]:
    """Mean WAR per cohort; a cohort whose members all share one WAR value expects 0."""
    by_cohort: Dict[int, List[float]] = {}
    for record in records:
        by_cohort.setdefault(record.cohort, []).append(record.war)

    expected: Dict[int, float] = {}
    for cohort, wars in by_cohort.items():
        if not wars or max(wars) == min(wars):
            expected[cohort] = 0.0
        else:
            expected[cohort] = sum(wars) / len(wars)
    return expected


def assign_hit_bust(cohort: List[ValueRecord]) -> List[ValueRecord]:
    """Tag the top and bottom 30% of a cohort by WAR as hits and busts."""
    for record in cohort:
        record.hit_bust = "neutral"
    if len(cohort) < MIN_HIT_BUST_COHORT:
        return cohort

    ranked = sorted(cohort, key=lambda r: r.war, reverse=True)
    count = max(1, math.floor(len(ranked) * HIT_BUST_SHARE))
    for record in ranked[:count]:
        record.hit_bust = "hit"
    for record in ranked[-count:]:
        record.hit_bust = "bust"
    return cohort


def compute_value_records(entities: List[Dict[str, Any]]) -> List[ValueRecord]:
    """
    Turn raw outcomes into value records.

    Each entity is a dict with `entity_id`, `position`, `cohort`, `outcome` and an
    optional `pool` label. Replacement levels come from each (pool, position) group,
    expected WAR from each cohort across every pool, and hit/bust from each
    (pool, cohort) group.
    """
    # 1. Replacement level per pool, from that pool's own members
    pools: Dict[str, List[Tuple[str, float]]] = {}
    for entity in entities:
        position = entity.get("position") or UNKNOWN_POSITION
        pools.setdefault(entity.get("pool", ""), []).append((position, entity["outcome"]))
    levels = {pool: replacement_levels(members) for pool, members in pools.items()}

    # 2. WAR against the entity's own baseline
    records: List[ValueRecord] = []
    for entity in entities:
        pool = entity.get("pool", "")
        position = entity.get("position") or UNKNOWN_POSITION
        baseline = levels[pool].get(position, 0.0)
        records.append(ValueRecord(
            entity_id=entity["entity_id"],
            position=position,
            cohort=entity["cohort"],
            pool=pool,
            outcome=entity["outcome"],
            replacement_level=baseline,
            war=entity["outcome"] - baseline,
        ))

    # 3. Expected WAR and surplus over the whole population
    expected = expected_war_by_cohort(records)
    for record in records:
        record.expected_war = expected.get(record.cohort, 0.0)
        record.surplus = record.war - record.expected_war

    # 4. Hits and busts within each (pool, cohort)
    groups: Dict[Tuple[str, int], List[ValueRecord]] = {}
    for record in records:
        groups.setdefault((record.pool, record.cohort), []).append(record)
    for group in groups.values():
        assign_hit_bust(group)

    return records
