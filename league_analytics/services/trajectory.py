from typing import List, Dict, Optional

from ..config import ROLLING_WINDOW
from ..models.analytics import (
    SeasonRecord,
    ManagerIdentity,
    TrajectoryPoint,
    ManagerTrajectory,
    SeasonBoundary,
    LeagueTrajectoryAnalysis,
)
from .replacement_value import median


def weekly_cumulative_starter_points(season: SeasonRecord) -> List[Dict[int, float]]:
    """Snapshot per week of each owned roster's running starter-point total."""
    running: Dict[int, float] = {roster_id: 0.0 for roster_id in season.roster_to_manager}
    history: List[Dict[int, float]] = []
    for week_matchups in season.weeks:
        for matchup in week_matchups:
            if matchup.roster_id not in running:
                continue
            player_points = matchup.players_points or {}
            running[matchup.roster_id] += sum(player_points.get(pid, 0.0) for pid in matchup.starters or [])
        history.append(dict(running))
    return history


def rolling_sums(values: List[float], window: int = ROLLING_WINDOW) -> List[float]:
    """Trailing `window`-period sum of the period-over-period deltas of a cumulative series."""
    deltas = [v if i == 0 else v - values[i - 1] for i, v in enumerate(values)]
    rolling: List[float] = []
    window_sum = 0.0
    for i, delta in enumerate(deltas):
        window_sum += delta
        if i >= window:
            window_sum -= deltas[i - window]
        rolling.append(window_sum)
    return rolling


def compute_value_trajectory(
    seasons: List[SeasonRecord],
    identities: Optional[Dict[str, ManagerIdentity]] = None,
) -> LeagueTrajectoryAnalysis:
    """
    All-time cumulative WAR per manager, continuous across season boundaries.

    Each week a team's WAR is its cumulative starter points minus the league median
    of cumulative starter points that week. A manager's series for a season starts
    from where their previous season ended.
    """
    identities = identities or {}
    boundaries: List[SeasonBoundary] = []
    # user_id -> [(season, week, global index, cumulative WAR)]
    series: Dict[str, List[tuple]] = {}
    offsets: Dict[str, float] = {}
    global_index = 0

    for season in seasons:
        weeks = min(season.regular_season_weeks, len(season.weeks))
        if weeks == 0:
            continue
        boundaries.append(SeasonBoundary(season=season.season, start_index=global_index))

        history = weekly_cumulative_starter_points(season)[:weeks]
        baselines = [median(list(snapshot.values())) for snapshot in history]

        seen_managers = set()
        for roster_id, user_id in season.roster_to_manager.items():
            if user_id in seen_managers:
                continue
            seen_managers.add(user_id)

            offset = offsets.get(user_id, 0.0)
            points = series.setdefault(user_id, [])
            for w in range(weeks):
                war = history[w].get(roster_id, 0.0) - baselines[w]
                points.append((season.season, w + 1, global_index + w, offset + war))

            last_war = history[weeks - 1].get(roster_id, 0.0) - baselines[weeks - 1]
            offsets[user_id] = offset + last_war

        global_index += weeks

    manager_data: Dict[str, ManagerTrajectory] = {}
    for user_id, raw_points in series.items():
        if not raw_points:
            continue
        cumulative = [p[3] for p in raw_points]
        rolling = rolling_sums(cumulative)
        points = [
            TrajectoryPoint(
                season=season_label,
                week=week,
                all_time_index=index,
                cumulative_war=value,
                rolling_war=rolling[i],
            )
            for i, (season_label, week, index, value) in enumerate(raw_points)
        ]

        # Year-over-year: latest value against the end of the manager's previous season
        latest_season = points[-1].season
        previous = [p for p in points if p.season != latest_season]
        yoy = points[-1].cumulative_war - previous[-1].cumulative_war if previous else None

        identity = identities.get(user_id)
        manager_data[user_id] = ManagerTrajectory(
            user_id=user_id,
            display_name=identity.display_name if identity else user_id,
            avatar=identity.avatar if identity else None,
            points=points,
            current_war=points[-1].cumulative_war,
            recent_form=points[-1].rolling_war,
            year_over_year_change=yoy,
        )

    return LeagueTrajectoryAnalysis(
        manager_data=manager_data,
        season_boundaries=boundaries,
        has_data=bool(manager_data) and global_index > 0,
    )
