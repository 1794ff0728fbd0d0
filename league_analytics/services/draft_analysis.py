from typing import List, Dict, Optional, Any

from ..models.sleeper import DraftBundle
from ..models.analytics import (
    SeasonRecord,
    ManagerIdentity,
    AnalyzedPick,
    DraftClassSeason,
    ManagerDraftSummary,
    LeagueDraftAnalysis,
)
from .grading import grade_population
from .replacement_value import compute_value_records, player_season_points


def season_draft(season: SeasonRecord) -> Optional[DraftBundle]:
    """The season's snake draft, once it has started."""
    for bundle in season.drafts:
        if bundle.draft.type == "snake" and bundle.draft.status != "pre_draft":
            return bundle
    return None


def _draft_class(season: str, picks: List[AnalyzedPick]) -> DraftClassSeason:
    return DraftClassSeason(
        season=season,
        picks=picks,
        avg_surplus=sum(p.surplus for p in picks) / len(picks),
        hit_rate=sum(1 for p in picks if p.hit_bust == "hit") / len(picks),
        bust_rate=sum(1 for p in picks if p.hit_bust == "bust") / len(picks),
        total_war=sum(p.war for p in picks),
    )


def _summarize_manager(user_id: str, picks: List[AnalyzedPick], identities: Dict[str, ManagerIdentity]) -> Dict[str, Any]:
    identity = identities.get(user_id)
    total_war = sum(p.war for p in picks)
    total_surplus = sum(p.surplus for p in picks)

    best_pick: Optional[AnalyzedPick] = None
    worst_pick: Optional[AnalyzedPick] = None
    for pick in picks:
        if best_pick is None or pick.surplus > best_pick.surplus:
            best_pick = pick
        if worst_pick is None or pick.surplus < worst_pick.surplus:
            worst_pick = pick

    by_season: Dict[str, List[AnalyzedPick]] = {}
    for pick in picks:
        by_season.setdefault(pick.season, []).append(pick)
    draft_classes = sorted(
        (_draft_class(season, season_picks) for season, season_picks in by_season.items()),
        key=lambda dc: int(dc.season) if dc.season.isdigit() else 0,
        reverse=True,
    )

    return {
        "user_id": user_id,
        "display_name": identity.display_name if identity else user_id,
        "avatar": identity.avatar if identity else None,
        "total_war": total_war,
        "total_surplus": total_surplus,
        "avg_surplus_per_pick": total_surplus / len(picks),
        "hit_rate": sum(1 for p in picks if p.hit_bust == "hit") / len(picks),
        "bust_rate": sum(1 for p in picks if p.hit_bust == "bust") / len(picks),
        "best_pick": best_pick,
        "worst_pick": worst_pick,
        "draft_classes": draft_classes,
    }


def compute_league_draft_analysis(
    seasons: List[SeasonRecord],
    identities: Optional[Dict[str, ManagerIdentity]] = None,
) -> LeagueDraftAnalysis:
    """Grade every manager's drafting by total surplus WAR over expectation for the round."""
    identities = identities or {}

    # 1. Every pick of every started draft, valued against its own season's scoring
    entities: List[Dict[str, Any]] = []
    pick_context: Dict[str, Dict[str, Any]] = {}
    for season in seasons:
        bundle = season_draft(season)
        if bundle is None:
            continue
        season_points = player_season_points(season.weeks)
        for pick in bundle.picks:
            entity_id = f"{season.season}:{pick.pick_no}"
            outcome = season_points.get(pick.player_id, 0.0)
            entities.append({
                "entity_id": entity_id,
                "position": pick.position,
                "cohort": pick.round,
                "pool": season.season,
                "outcome": outcome,
            })
            pick_context[entity_id] = {
                "pick": pick,
                "season": season.season,
                "user_id": pick.picked_by or season.roster_to_manager.get(pick.roster_id),
            }

    if not entities:
        return LeagueDraftAnalysis()

    records = compute_value_records(entities)

    # 2. Attach values to picks and group by the manager who made them
    picks_by_manager: Dict[str, List[AnalyzedPick]] = {}
    for record in records:
        context = pick_context[record.entity_id]
        user_id = context["user_id"]
        if not user_id:
            continue
        pick = context["pick"]
        picks_by_manager.setdefault(user_id, []).append(AnalyzedPick(
            pick_no=pick.pick_no,
            round=pick.round,
            player_id=pick.player_id,
            player_name=pick.player_name or pick.player_id,
            position=record.position,
            is_keeper=bool(pick.is_keeper),
            season=context["season"],
            season_points=record.outcome,
            replacement_level=record.replacement_level,
            war=record.war,
            expected_war=record.expected_war,
            surplus=record.surplus,
            hit_bust=record.hit_bust,
        ))

    if not picks_by_manager:
        return LeagueDraftAnalysis()

    # 3. Summaries graded by total surplus
    raw = {user_id: _summarize_manager(user_id, picks, identities) for user_id, picks in picks_by_manager.items()}
    graded = grade_population([(user_id, summary["total_surplus"]) for user_id, summary in raw.items()])

    summaries: Dict[str, ManagerDraftSummary] = {}
    for entry in graded:
        summaries[entry.key] = ManagerDraftSummary(
            **raw[entry.key],
            grade=entry.grade,
            surplus_percentile=entry.percentile,
            league_rank=entry.rank,
        )

    return LeagueDraftAnalysis(manager_summaries=summaries, has_data=True)
