import math
from typing import List, Dict, Optional, Tuple

from ..models.sleeper import Draft, Pick, DraftPickMovement
from ..models.analytics import (
    SeasonRecord,
    TaggedTrade,
    PickResolution,
    TradePickAsset,
    PickOwnershipHop,
    PickChain,
)
from .replacement_value import player_season_points

# (season, round, original owner manager id)
ResolutionKey = Tuple[str, int, str]


def position_in_round(pick_no: int, teams: int) -> int:
    return ((pick_no - 1) % teams) + 1


def pick_slot(pick_no: int, teams: int, draft_type: str = "snake") -> int:
    """Draft slot (1..teams) that owned overall pick `pick_no`."""
    position = position_in_round(pick_no, teams)
    round_number = math.ceil(pick_no / teams)
    if draft_type == "snake" and round_number % 2 == 0:
        return teams - position + 1
    return position


def original_slot_owner(pick: Pick, draft: Draft, roster_to_manager: Dict[int, str]) -> Optional[str]:
    """
    Manager who originally held the slot a pick was made from.

    Tries the draft's slot -> roster map first, then the manager -> slot draft order.
    A slot map entry is final: an orphaned roster there yields no manager.
    Falls back to whoever actually made the pick, which is only right for picks
    that were never traded.
    """
    teams = draft.teams
    slot = pick_slot(pick.pick_no, teams, draft.type) if teams else pick.draft_slot

    if slot is not None:
        # 1. slot -> roster -> manager
        if draft.slot_to_roster_id:
            roster_id = draft.slot_to_roster_id.get(str(slot))
            if roster_id is not None:
                return roster_to_manager.get(roster_id)

        # 2. manager -> slot, inverted
        if draft.draft_order:
            slot_to_manager = {s: user_id for user_id, s in draft.draft_order.items()}
            if slot in slot_to_manager:
                return slot_to_manager[slot]

    # 3. drafting roster
    if pick.roster_id is not None and pick.roster_id in roster_to_manager:
        return roster_to_manager[pick.roster_id]
    return pick.picked_by


def build_pick_resolution(seasons: List[SeasonRecord]) -> Dict[ResolutionKey, PickResolution]:
    """Map every completed draft's picks to the player taken and that player's season points."""
    table: Dict[ResolutionKey, PickResolution] = {}
    for season in seasons:
        season_points = player_season_points(season.weeks)
        for bundle in season.drafts:
            draft = bundle.draft
            if draft.status != "complete":
                continue
            for pick in bundle.picks:
                owner = original_slot_owner(pick, draft, season.roster_to_manager)
                if not owner:
                    continue
                key = (season.season, pick.round, owner)
                if key in table:
                    continue
                table[key] = PickResolution(
                    player_id=pick.player_id,
                    player_name=pick.player_name or pick.player_id,
                    position=pick.position,
                    season_points=season_points.get(pick.player_id, 0.0),
                    pick_no=pick.pick_no,
                    pick_in_round=position_in_round(pick.pick_no, draft.teams) if draft.teams else None,
                )
    return table


def resolve_pick_asset(
    movement: DraftPickMovement,
    table: Dict[ResolutionKey, PickResolution],
    roster_to_manager: Dict[int, str],
) -> TradePickAsset:
    original_manager = roster_to_manager.get(movement.roster_id)
    resolution = table.get((movement.season, movement.round, original_manager)) if original_manager else None

    if resolution is None:
        return TradePickAsset(
            season=movement.season,
            round=movement.round,
            original_owner_roster_id=movement.roster_id,
            post_trade_points=0.0,
            status="unresolved",
        )

    return TradePickAsset(
        season=movement.season,
        round=movement.round,
        original_owner_roster_id=movement.roster_id,
        drafted_player_id=resolution.player_id,
        drafted_player_name=resolution.player_name,
        drafted_player_position=resolution.position,
        pick_in_round=resolution.pick_in_round,
        post_trade_points=resolution.season_points,
        status="resolved",
    )


def trace_pick_chain(
    trades: List[TaggedTrade],
    season: str,
    round: int,
    original_roster_id: int,
    table: Optional[Dict[ResolutionKey, PickResolution]] = None,
    roster_to_manager: Optional[Dict[int, str]] = None,
) -> PickChain:
    """Follow one pick through every trade that moved it, oldest trade first."""
    hops: List[PickOwnershipHop] = []
    for trade in sorted(trades, key=lambda t: t.timestamp):
        for movement in trade.transaction.draft_picks or []:
            if movement.season != season or movement.round != round or movement.roster_id != original_roster_id:
                continue
            hops.append(PickOwnershipHop(
                transaction_id=trade.transaction.transaction_id,
                week=trade.week,
                timestamp=trade.timestamp,
                from_roster_id=movement.previous_owner_id,
                to_roster_id=movement.owner_id,
            ))

    final_owner = hops[-1].to_roster_id if hops else original_roster_id

    resolution = None
    if table is not None and roster_to_manager:
        original_manager = roster_to_manager.get(original_roster_id)
        if original_manager:
            resolution = table.get((season, round, original_manager))

    return PickChain(
        season=season,
        round=round,
        original_roster_id=original_roster_id,
        hops=hops,
        final_owner_roster_id=final_owner,
        resolution=resolution,
    )
