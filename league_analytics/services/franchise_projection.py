import math
from typing import List, Dict, Any

from ..models.sleeper import Roster, Player, TradedPick
from ..models.analytics import (
    SeasonRecord,
    ProjectedYear,
    KeyPlayer,
    YoungAsset,
    PositionWAR,
    FocusArea,
    StrategyRecommendation,
    FranchiseOutlook,
    LeagueFranchiseAnalysis,
)
from .replacement_value import median, replacement_levels, player_season_points


# Production multiplier by age, relative to a player's prime
AGE_CURVES: Dict[str, Dict[int, float]] = {
    "QB": {
        22: 0.75, 23: 0.85, 24: 0.92, 25: 0.97, 26: 1.00, 27: 1.02,
        28: 1.02, 29: 1.01, 30: 1.00, 31: 0.98, 32: 0.95, 33: 0.92,
        34: 0.88, 35: 0.82, 36: 0.75, 37: 0.68, 38: 0.60, 39: 0.50,
    },
    "RB": {
        21: 0.85, 22: 0.95, 23: 1.02, 24: 1.05, 25: 1.00, 26: 0.88,
        27: 0.75, 28: 0.60, 29: 0.45, 30: 0.35, 31: 0.25,
    },
    "WR": {
        21: 0.75, 22: 0.88, 23: 0.95, 24: 1.00, 25: 1.03, 26: 1.05,
        27: 1.04, 28: 1.02, 29: 0.98, 30: 0.94, 31: 0.88, 32: 0.80,
        33: 0.72, 34: 0.63,
    },
    "TE": {
        22: 0.70, 23: 0.82, 24: 0.92, 25: 1.00, 26: 1.05, 27: 1.07,
        28: 1.05, 29: 1.02, 30: 0.98, 31: 0.93, 32: 0.87, 33: 0.80,
        34: 0.72, 35: 0.63,
    },
}

SKILL_POSITIONS = ["QB", "RB", "WR", "TE"]
MULTIPLIER_FLOOR = 0.4
PICK_WAR_BY_ROUND = {1: 4.0, 2: 2.0, 3: 0.8, 4: 0.3}
LATE_PICK_WAR = 0.1
PICK_DISCOUNT = 0.85
PROJECTION_YEARS = [1, 2, 3]
MIN_VALID_AGE = 18
MAX_VALID_AGE = 50
DEFAULT_ROSTER_AGE = 26.0
YOUNG_ASSET_MAX_AGE = 24


def age_multiplier(position: str, age: int) -> float:
    curve = AGE_CURVES.get(position)
    if not curve:
        return 1.0
    min_age = min(curve)
    max_age = max(curve)
    if age <= min_age:
        return curve[min_age]
    if age >= max_age:
        return max(curve[max_age], MULTIPLIER_FLOOR)
    return curve.get(age, max(curve[max_age], MULTIPLIER_FLOOR))


def peak_multiplier(position: str) -> float:
    curve = AGE_CURVES.get(position)
    return max(curve.values()) if curve else 1.0


def project_player_war(war: float, position: str, age: int, years_ahead: int) -> float:
    """Scale current WAR by how the age curve moves between now and `years_ahead` seasons out."""
    current = age_multiplier(position, age)
    if current <= 0:
        return 0.0
    return war * age_multiplier(position, age + years_ahead) / current


def pick_war_value(round: int, years_ahead: int) -> float:
    return PICK_WAR_BY_ROUND.get(round, LATE_PICK_WAR) * (PICK_DISCOUNT ** years_ahead)


def percentile75(values: List[float]) -> float:
    if not values:
        return 0.0
    ordered = sorted(values)
    return ordered[max(0, math.ceil(len(ordered) * 0.75) - 1)]


def percentile_rank(value: float, values: List[float]) -> int:
    if len(values) <= 1:
        return 50
    below = sum(1 for v in values if v < value)
    return round(below / (len(values) - 1) * 100)


def age_category(weighted_age: float) -> str:
    if weighted_age < 25.5:
        return "Young"
    if weighted_age <= 28.5:
        return "Prime"
    return "Aging"


def risk_category(risk_score: float) -> str:
    if risk_score < 25:
        return "Low"
    if risk_score < 50:
        return "Moderate"
    if risk_score < 75:
        return "High"
    return "Extreme"


def _has_valid_age(player: Dict[str, Any]) -> bool:
    age = player["age"]
    return bool(age) and MIN_VALID_AGE <= age <= MAX_VALID_AGE


def weighted_age(skill_players: List[Dict[str, Any]]) -> float:
    """Roster age weighted by each player's share of positive WAR."""
    aged = [p for p in skill_players if _has_valid_age(p)]
    if not aged:
        return DEFAULT_ROSTER_AGE
    positive_war = sum(max(p["war"], 0.0) for p in aged)
    if positive_war == 0:
        return sum(p["age"] for p in aged) / len(aged)
    return sum(p["age"] * max(p["war"], 0.0) / positive_war for p in aged)


def _skill_players(roster: Roster, players: Dict[str, Player], player_war: Dict[str, float]) -> List[Dict[str, Any]]:
    result = []
    for player_id in roster.players or []:
        player = players.get(player_id)
        if not player or player.position not in SKILL_POSITIONS:
            continue
        result.append({
            "player_id": player_id,
            "name": player.name,
            "position": player.position,
            "age": player.age,
            "war": player_war.get(player_id, 0.0),
        })
    return result


def _rank_by(values: Dict[int, float]) -> Dict[int, int]:
    ordered = sorted(values, key=lambda rid: values[rid], reverse=True)
    return {rid: i + 1 for i, rid in enumerate(ordered)}


def _focus_areas(
    war_by_position: List[PositionWAR],
    currently_contender: bool,
    current_war: float,
    year_two_war: float,
    season_year: int,
    future_firsts: int,
    young_asset_count: int,
) -> List[FocusArea]:
    areas: List[FocusArea] = []
    for pos in war_by_position:
        if pos.war < pos.league_avg_war and pos.avg_age > 28:
            areas.append(FocusArea(
                signal=f"{pos.position} needs investment",
                detail=f"Below-average production (#{pos.rank} in league) from an aging group (avg {pos.avg_age:.0f}). Target younger {pos.position}s.",
                severity="warning",
            ))
        elif pos.war > pos.league_avg_war and 0 < pos.avg_age <= 25:
            areas.append(FocusArea(
                signal=f"{pos.position} is a long-term strength",
                detail=f"#{pos.rank} in league with a young group (avg {pos.avg_age:.0f}). Set for several years.",
                severity="positive",
            ))

    if currently_contender and current_war > 0 and year_two_war < current_war * 0.85:
        drop = round((1 - year_two_war / current_war) * 100)
        areas.append(FocusArea(
            signal="Short window, prioritize now",
            detail=f"Roster projected to drop ~{drop}% by {season_year + 2}. Favor proven contributors over developmental players.",
            severity="warning",
        ))

    if not currently_contender and (future_firsts >= 2 or young_asset_count >= 3):
        firsts_label = "first" if future_firsts == 1 else "firsts"
        young_label = "player" if young_asset_count == 1 else "players"
        areas.append(FocusArea(
            signal="Rebuild capital is strong",
            detail=f"{future_firsts} future {firsts_label} and {young_asset_count} {young_label} under 25. Stay patient and accumulate assets.",
            severity="info",
        ))

    order = {"warning": 0, "positive": 1, "info": 2}
    return sorted(areas, key=lambda a: order[a.severity])[:3]


def strategy_recommendation(
    tier: str,
    window_length: int,
    luck_score: int,
    risk_score: int,
    peak_year_offset: int,
    projected: List[ProjectedYear],
    current_war: float,
    focus_areas: List[FocusArea],
    future_picks: List[TradedPick],
    young_asset_count: int,
    war_rank: int,
    num_teams: int,
) -> StrategyRecommendation:
    future_firsts = sum(1 for p in future_picks if p.round == 1)
    year_two = next((p.total_war for p in projected if p.year_offset == 2), current_war)
    projected_drop = (current_war - year_two) / current_war if current_war > 0 else 0.0

    if tier == "Contender" and window_length >= 3 and risk_score < 30:
        mode = "Steady State"
        headline = "Sustained contender. Maintain course."
        urgency = 15 + min(15, risk_score / 2)
    elif tier == "Contender" and (window_length <= 2 or projected_drop > 0.15):
        mode = "Push All-In Now"
        headline = "Short window. Maximize wins while you can."
        urgency = min(98, 72 + risk_score / 5 + (18 if window_length == 0 else 0))
    elif tier == "Fringe" and war_rank <= math.ceil(num_teams / 2):
        mode = "Win-Now Pivot"
        headline = "Close to contention. Targeted upgrades can push you over."
        urgency = 50 + min(20, risk_score / 4)
    elif tier == "Rebuilding" and (future_firsts >= 2 or young_asset_count >= 3):
        mode = "Asset Accumulation"
        headline = "Strong foundation. Stay patient and accumulate value."
        urgency = 15 + min(20, young_asset_count * 3 + future_firsts * 3)
    else:
        mode = "Full Rebuild"
        headline = "Reset mode. Prioritize future assets aggressively."
        urgency = 35 + min(30, (num_teams - war_rank) * 3)

    rationale = [area.detail for area in focus_areas[:2]]
    if peak_year_offset == 0:
        rationale.append("Roster is at peak strength right now; timing is critical.")
    elif peak_year_offset >= 2:
        rationale.append(f"Roster is projected to peak in {peak_year_offset} years, so there is runway to build first.")

    if luck_score >= 3:
        rationale.append(f"Record is outpacing true talent (+{luck_score} luck) and may regress.")
    elif luck_score <= -3:
        rationale.append(f"Unlucky record ({luck_score} vs WAR rank); the roster is better than the standings suggest.")

    return StrategyRecommendation(
        mode=mode,
        headline=headline,
        rationale=rationale[:3],
        urgency_score=round(urgency),
    )


def _build_outlook(roster: Roster, skill_players: List[Dict[str, Any]], league: Dict[str, Any]) -> FranchiseOutlook:
    aged = [p for p in skill_players if _has_valid_age(p)]
    roster_age = weighted_age(skill_players)
    current_war = sum(p["war"] for p in skill_players)
    future_picks = league["picks_by_roster"].get(roster.roster_id, [])
    season_year = league["season_year"]

    # 1. Projection
    projected: List[ProjectedYear] = []
    for years in PROJECTION_YEARS:
        total = sum(project_player_war(p["war"], p["position"], p["age"], years) for p in aged)
        total += sum(
            pick_war_value(pick.round, years)
            for pick in future_picks
            if pick.season.isdigit() and int(pick.season) == season_year + years
        )
        projected.append(ProjectedYear(year_offset=years, total_war=total))

    # 2. Risk
    year_two = next((p.total_war for p in projected if p.year_offset == 2), current_war)
    risk = min(100.0, max(0.0, (current_war - year_two) / current_war * 100)) if current_war > 0 else 0.0

    # 3. Window and peak
    threshold = league["contender_threshold"]
    timeline = [ProjectedYear(year_offset=0, total_war=current_war)] + projected
    window_length = sum(1 for year in timeline if year.total_war >= threshold)
    currently_contender = current_war >= threshold
    peak = timeline[0]
    for year in timeline[1:]:
        if year.total_war > peak.total_war:
            peak = year

    # 4. Tier
    if currently_contender and window_length >= 2:
        tier = "Contender"
    elif current_war >= league["median_war"]:
        tier = "Fringe"
    else:
        tier = "Rebuilding"

    # 5. Roster detail
    key_players = [
        KeyPlayer(player_id=p["player_id"], name=p["name"], position=p["position"], age=p["age"], war=p["war"])
        for p in sorted(skill_players, key=lambda p: p["war"], reverse=True)[:5]
    ]

    young_assets = []
    for p in skill_players:
        if p["age"] is None or p["age"] > YOUNG_ASSET_MAX_AGE:
            continue
        current_mult = age_multiplier(p["position"], p["age"])
        young_assets.append(YoungAsset(
            player_id=p["player_id"],
            name=p["name"],
            position=p["position"],
            age=p["age"],
            war=p["war"],
            upside_ratio=peak_multiplier(p["position"]) / current_mult if current_mult > 0 else 1.0,
        ))
    young_assets.sort(key=lambda a: a.upside_ratio, reverse=True)

    war_by_position = []
    for position in SKILL_POSITIONS:
        war_by_position.append(PositionWAR(
            position=position,
            war=sum(p["war"] for p in skill_players if p["position"] == position),
            league_avg_war=league["avg_war_by_position"][position],
            rank=league["position_ranks"][position][roster.roster_id],
            avg_age=_position_avg_age([p for p in aged if p["position"] == position]),
        ))

    war_rank = league["war_ranks"][roster.roster_id]
    wins_rank = league["wins_ranks"][roster.roster_id]
    luck_score = wins_rank - war_rank
    risk_score = round(risk)
    future_firsts = sum(1 for pick in future_picks if pick.round == 1)

    focus_areas = _focus_areas(
        war_by_position, currently_contender, current_war, year_two,
        season_year, future_firsts, len(young_assets),
    )

    return FranchiseOutlook(
        user_id=roster.owner_id,
        roster_id=roster.roster_id,
        current_war=current_war,
        weighted_age=roster_age,
        age_category=age_category(roster_age),
        league_age_percentile=percentile_rank(roster_age, league["team_ages"]),
        projected_war=projected,
        contender_threshold=threshold,
        league_median_war=league["median_war"],
        window_length=window_length,
        currently_contender=currently_contender,
        peak_year_offset=peak.year_offset,
        peak_war=peak.total_war,
        risk_score=risk_score,
        risk_category=risk_category(risk),
        tier=tier,
        future_picks=future_picks,
        is_season_complete=league["is_season_complete"],
        key_players=key_players,
        young_assets=young_assets,
        war_by_position=war_by_position,
        wins=int(roster.settings.get("wins") or 0),
        losses=int(roster.settings.get("losses") or 0),
        war_rank=war_rank,
        wins_rank=wins_rank,
        luck_score=luck_score,
        focus_areas=focus_areas,
        strategy_recommendation=strategy_recommendation(
            tier, window_length, luck_score, risk_score, peak.year_offset, projected,
            current_war, focus_areas, future_picks, len(young_assets), war_rank, league["num_teams"],
        ),
    )


def _position_avg_age(aged: List[Dict[str, Any]]) -> float:
    if not aged:
        return 0.0
    positive_war = sum(max(p["war"], 0.0) for p in aged)
    if positive_war > 0:
        return sum(p["age"] * max(p["war"], 0.0) / positive_war for p in aged)
    return sum(p["age"] for p in aged) / len(aged)


def season_pace(season: SeasonRecord) -> Dict[str, Any]:
    """How far through its regular season a league is, and the factor that scales points to a full season."""
    weeks_with_data = sum(
        1 for week in season.weeks if any(m.players_points for m in week)
    )
    regular = season.regular_season_weeks
    return {
        "weeks_with_data": weeks_with_data,
        "is_season_complete": weeks_with_data == regular,
        "factor": regular / weeks_with_data if weeks_with_data > 0 else 1.0,
    }


def compute_franchise_outlooks(season: SeasonRecord, players: Dict[str, Player]) -> LeagueFranchiseAnalysis:
    """Project every owned roster's strength over the next three seasons."""
    owned = [roster for roster in season.rosters if roster.owner_id]
    if not owned:
        return LeagueFranchiseAnalysis(season=season.season)

    # 1. Full-season-pace points for this season's regular weeks
    pace = season_pace(season)
    points = {pid: pts * pace["factor"] for pid, pts in player_season_points(season.weeks).items()}

    # 2. WAR against the rostered skill-position pool
    pool: Dict[str, str] = {}
    for roster in owned:
        for player_id in roster.players or []:
            player = players.get(player_id)
            if player and player.position in SKILL_POSITIONS:
                pool[player_id] = player.position
    levels = replacement_levels((position, points.get(pid, 0.0)) for pid, position in pool.items())
    player_war = {pid: points.get(pid, 0.0) - levels.get(position, 0.0) for pid, position in pool.items()}

    # 3. League-wide context
    rosters_players = {roster.roster_id: _skill_players(roster, players, player_war) for roster in owned}
    team_wars = {rid: sum(p["war"] for p in sp) for rid, sp in rosters_players.items()}
    team_wins = {roster.roster_id: float(roster.settings.get("wins") or 0) for roster in owned}

    position_war = {
        position: {rid: sum(p["war"] for p in sp if p["position"] == position) for rid, sp in rosters_players.items()}
        for position in SKILL_POSITIONS
    }

    picks_by_roster: Dict[int, List[TradedPick]] = {}
    for pick in season.traded_picks:
        picks_by_roster.setdefault(pick.owner_id, []).append(pick)

    all_team_wars = list(team_wars.values())
    league = {
        "season_year": int(season.season) if season.season.isdigit() else 0,
        "num_teams": len(owned),
        "contender_threshold": percentile75(all_team_wars),
        "median_war": median(all_team_wars),
        "team_ages": [weighted_age(sp) for sp in rosters_players.values()],
        "avg_war_by_position": {
            position: sum(by_roster.values()) / len(owned) for position, by_roster in position_war.items()
        },
        "position_ranks": {position: _rank_by(by_roster) for position, by_roster in position_war.items()},
        "war_ranks": _rank_by(team_wars),
        "wins_ranks": _rank_by(team_wins),
        "picks_by_roster": picks_by_roster,
        "is_season_complete": pace["is_season_complete"],
    }

    outlooks: Dict[str, FranchiseOutlook] = {}
    for roster in owned:
        outlooks[roster.owner_id] = _build_outlook(roster, rosters_players[roster.roster_id], league)

    return LeagueFranchiseAnalysis(season=season.season, outlooks=outlooks, has_data=True)
