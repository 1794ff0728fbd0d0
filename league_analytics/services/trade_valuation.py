import logging
from typing import List, Dict, Optional, Tuple

from ..models.sleeper import Matchup, Player
from ..models.analytics import (
    SeasonRecord,
    TaggedTrade,
    ManagerIdentity,
    PickResolution,
    TradePlayerAsset,
    TradePickAsset,
    TradeSide,
    AnalyzedTrade,
    TradeResult,
    TradePartner,
    ManagerTradeSummary,
    LeagueTradeRecord,
    LeagueTradeAnalysis,
)
from .grading import grade_population
from .pick_resolver import build_pick_resolution, resolve_pick_asset, ResolutionKey
from .replacement_value import player_season_points, UNKNOWN_POSITION

logger = logging.getLogger(__name__)


def build_cumulative_points(weeks: List[List[Matchup]]) -> Dict[str, List[float]]:
    """Running point total per player; entry w is the total through week w + 1."""
    total_weeks = len(weeks)
    cumulative: Dict[str, List[float]] = {}
    for week_index, week_matchups in enumerate(weeks):
        for matchup in week_matchups:
            for player_id, points in (matchup.players_points or {}).items():
                if player_id not in cumulative:
                    cumulative[player_id] = [0.0] * total_weeks
                cumulative[player_id][week_index] += points or 0.0

    for series in cumulative.values():
        for w in range(1, total_weeks):
            series[w] += series[w - 1]
    return cumulative


def post_trade_points(
    player_id: str,
    trade_week: int,
    cumulative_points: Dict[str, List[float]],
    season_totals: Dict[str, float],
) -> float:
    """Points a player scored after the end of `trade_week`. Preseason trades get the full season."""
    total = season_totals.get(player_id, 0.0)
    if trade_week <= 0:
        return total

    series = cumulative_points.get(player_id)
    if not series or trade_week > len(series):
        return 0.0
    return max(0.0, total - series[trade_week - 1])


def analyze_trade(
    trade: TaggedTrade,
    cumulative_points: Dict[str, List[float]],
    season_totals: Dict[str, float],
    players: Dict[str, Player],
    roster_to_manager: Dict[int, str],
    managers: Dict[str, ManagerIdentity],
    resolution_table: Dict[ResolutionKey, PickResolution],
) -> AnalyzedTrade:
    tx = trade.transaction
    roster_ids = tx.roster_ids
    has_unresolved = False

    received: Dict[int, List[TradePlayerAsset]] = {rid: [] for rid in roster_ids}
    sent: Dict[int, List[TradePlayerAsset]] = {rid: [] for rid in roster_ids}
    picks_received: Dict[int, List[TradePickAsset]] = {rid: [] for rid in roster_ids}
    picks_sent: Dict[int, List[TradePickAsset]] = {rid: [] for rid in roster_ids}

    # 1. Players: adds give the receiver, drops (or the other party) the sender
    for player_id, receiving_roster in (tx.adds or {}).items():
        if receiving_roster not in received:
            logger.debug("Trade %s adds %s to non-participant roster %s; skipping", tx.transaction_id, player_id, receiving_roster)
            continue
        player = players.get(player_id)
        asset = TradePlayerAsset(
            player_id=player_id,
            player_name=player.name if player else f"ID:{player_id[-6:]}",
            position=(player.position if player else None) or UNKNOWN_POSITION,
            post_trade_points=post_trade_points(player_id, trade.week, cumulative_points, season_totals),
        )
        received[receiving_roster].append(asset)

        sender: Optional[int] = None
        if tx.drops and tx.drops.get(player_id) is not None:
            sender = tx.drops[player_id]
        else:
            others = [rid for rid in roster_ids if rid != receiving_roster]
            if len(others) == 1:
                sender = others[0]
        if sender is not None and sender in sent:
            sent[sender].append(asset)

    # 2. Draft picks
    for movement in tx.draft_picks or []:
        if movement.owner_id not in picks_received:
            logger.debug("Trade %s moves a pick to non-participant roster %s; skipping", tx.transaction_id, movement.owner_id)
            continue
        pick_asset = resolve_pick_asset(movement, resolution_table, roster_to_manager)
        if pick_asset.status == "unresolved":
            has_unresolved = True
        picks_received[movement.owner_id].append(pick_asset)
        if movement.previous_owner_id in picks_sent:
            picks_sent[movement.previous_owner_id].append(pick_asset)

    # 3. One side per participating roster
    sides: List[TradeSide] = []
    for rid in roster_ids:
        user_id = roster_to_manager.get(rid)
        identity = managers.get(user_id) if user_id else None
        value_received = sum(a.post_trade_points for a in received[rid]) + sum(p.post_trade_points for p in picks_received[rid])
        value_sent = sum(a.post_trade_points for a in sent[rid]) + sum(p.post_trade_points for p in picks_sent[rid])
        sides.append(TradeSide(
            roster_id=rid,
            user_id=user_id,
            display_name=identity.display_name if identity else f"Team {rid}",
            assets_received=received[rid],
            picks_received=picks_received[rid],
            assets_sent=sent[rid],
            picks_sent=picks_sent[rid],
            total_value_received=value_received,
            total_value_sent=value_sent,
            net_value=value_received - value_sent,
        ))

    return AnalyzedTrade(
        transaction_id=tx.transaction_id,
        season=trade.season,
        league_id=trade.league_id,
        week=trade.week,
        timestamp=trade.timestamp,
        sides=sides,
        has_unresolved=has_unresolved,
    )


def _summarize_manager(
    user_id: str,
    entries: List[Tuple[AnalyzedTrade, TradeSide]],
    identities: Dict[str, ManagerIdentity],
) -> Dict:
    identity = identities.get(user_id)
    total_net = sum(side.net_value for _, side in entries)

    resolved = [side for trade, side in entries if not trade.has_unresolved]
    win_rate = sum(1 for side in resolved if side.net_value > 0) / len(resolved) if resolved else None

    biggest_win: Optional[TradeResult] = None
    biggest_loss: Optional[TradeResult] = None
    for trade, side in entries:
        if biggest_win is None or side.net_value > biggest_win.net_value:
            biggest_win = TradeResult(trade=trade, net_value=side.net_value)
        if biggest_loss is None or side.net_value < biggest_loss.net_value:
            biggest_loss = TradeResult(trade=trade, net_value=side.net_value)

    partner_counts: Dict[str, int] = {}
    for trade, _ in entries:
        for other in trade.sides:
            if other.user_id and other.user_id != user_id:
                partner_counts[other.user_id] = partner_counts.get(other.user_id, 0) + 1
    partner: Optional[TradePartner] = None
    for partner_id, count in partner_counts.items():
        if partner is None or count > partner.count:
            partner_identity = identities.get(partner_id)
            partner = TradePartner(
                user_id=partner_id,
                display_name=partner_identity.display_name if partner_identity else partner_id,
                count=count,
            )

    return {
        "user_id": user_id,
        "display_name": identity.display_name if identity else user_id,
        "avatar": identity.avatar if identity else None,
        "total_net_value": total_net,
        "trade_win_rate": win_rate,
        "resolved_trades": len(resolved),
        "total_trades": len(entries),
        "avg_value_per_trade": total_net / len(entries) if entries else 0.0,
        "biggest_win": biggest_win,
        "biggest_loss": biggest_loss,
        "most_frequent_partner": partner,
        "trades": [trade for trade, _ in entries],
    }


def compute_league_trade_analysis(
    seasons: List[SeasonRecord],
    players: Dict[str, Player],
    identities: Optional[Dict[str, ManagerIdentity]] = None,
) -> LeagueTradeAnalysis:
    if not seasons or all(not season.trades for season in seasons):
        return LeagueTradeAnalysis()

    identities = identities or {}
    resolution_table = build_pick_resolution(seasons)

    # 1. Value every trade against its own season's scoring
    all_trades: List[AnalyzedTrade] = []
    for season in seasons:
        if not season.trades:
            continue
        cumulative = build_cumulative_points(season.weeks)
        totals = player_season_points(season.weeks)
        for trade in season.trades:
            all_trades.append(analyze_trade(
                trade,
                cumulative,
                totals,
                players,
                season.roster_to_manager,
                season.managers,
                resolution_table,
            ))
    all_trades.sort(key=lambda t: t.timestamp, reverse=True)

    # 2. Group sides by manager, skipping rosters nobody owned
    by_manager: Dict[str, List[Tuple[AnalyzedTrade, TradeSide]]] = {}
    for trade in all_trades:
        for side in trade.sides:
            if not side.user_id:
                continue
            by_manager.setdefault(side.user_id, []).append((trade, side))

    raw = {user_id: _summarize_manager(user_id, entries, identities) for user_id, entries in by_manager.items()}

    # 3. Grades and league superlatives
    graded = grade_population([(user_id, summary["total_net_value"]) for user_id, summary in raw.items()])

    summaries: Dict[str, ManagerTradeSummary] = {}
    biggest_win_all_time: Optional[LeagueTradeRecord] = None
    biggest_loss_all_time: Optional[LeagueTradeRecord] = None
    most_active: Optional[TradePartner] = None

    for entry in graded:
        summary = ManagerTradeSummary(
            **raw[entry.key],
            grade=entry.grade,
            net_value_percentile=entry.percentile,
            league_rank=entry.rank,
        )
        summaries[entry.key] = summary

        win = summary.biggest_win
        if win and (biggest_win_all_time is None or win.net_value > biggest_win_all_time.net_value):
            biggest_win_all_time = LeagueTradeRecord(
                user_id=summary.user_id, display_name=summary.display_name,
                trade=win.trade, net_value=win.net_value,
            )
        loss = summary.biggest_loss
        if loss and (biggest_loss_all_time is None or loss.net_value < biggest_loss_all_time.net_value):
            biggest_loss_all_time = LeagueTradeRecord(
                user_id=summary.user_id, display_name=summary.display_name,
                trade=loss.trade, net_value=loss.net_value,
            )
        if most_active is None or summary.total_trades > most_active.count:
            most_active = TradePartner(
                user_id=summary.user_id, display_name=summary.display_name, count=summary.total_trades,
            )

    return LeagueTradeAnalysis(
        manager_summaries=summaries,
        all_trades=all_trades,
        biggest_win_all_time=biggest_win_all_time,
        biggest_loss_all_time=biggest_loss_all_time,
        most_active_trader=most_active,
        has_data=bool(all_trades),
    )
