import pytest

from league_analytics.models.analytics import TaggedTrade, ManagerIdentity
from league_analytics.models.sleeper import Player
from league_analytics.services.replacement_value import player_season_points
from league_analytics.services.season_assembler import build_season_record
from league_analytics.services.trade_valuation import (
    build_cumulative_points,
    post_trade_points,
    analyze_trade,
    compute_league_trade_analysis,
)
from factories import make_bundle, make_matchup, make_trade

WEEKS = [
    [make_matchup(1, {"p1": 10.0}), make_matchup(2, {"p2": 4.0})],
    [make_matchup(1, {"p1": 5.0}), make_matchup(2, {"p2": 6.0})],
    [make_matchup(1, {"p1": 20.0}), make_matchup(2, {"p2": 0.0})],
]
ROSTER_TO_MANAGER = {1: "u1", 2: "u2", 3: "u3"}
MANAGERS = {uid: ManagerIdentity(user_id=uid, display_name=f"Team {uid}", team_name=f"Team {uid}") for uid in ["u1", "u2", "u3"]}
PLAYERS = {
    "p1": Player(player_id="p1", first_name="Alpha", last_name="One", position="RB"),
    "p2": Player(player_id="p2", first_name="Beta", last_name="Two", position="WR"),
}


def _analyze(tx, week=1):
    trade = TaggedTrade(transaction=tx, week=week, season="2024", league_id="L1")
    return analyze_trade(
        trade,
        build_cumulative_points(WEEKS),
        player_season_points(WEEKS),
        PLAYERS,
        ROSTER_TO_MANAGER,
        MANAGERS,
        {},
    )


def test_cumulative_points():
    assert build_cumulative_points(WEEKS) == {"p1": [10.0, 15.0, 35.0], "p2": [4.0, 10.0, 10.0]}


def test_post_trade_points():
    cumulative = build_cumulative_points(WEEKS)
    totals = player_season_points(WEEKS)

    assert post_trade_points("p1", 0, cumulative, totals) == 35.0
    assert post_trade_points("p1", 1, cumulative, totals) == 25.0
    assert post_trade_points("p1", 2, cumulative, totals) == 20.0
    assert post_trade_points("p1", 3, cumulative, totals) == 0.0
    assert post_trade_points("p1", 4, cumulative, totals) == 0.0
    assert post_trade_points("nobody", 1, cumulative, totals) == 0.0


def test_player_swap_values():
    trade = _analyze(make_trade("t1", [1, 2], adds={"p1": 2, "p2": 1}, drops={"p1": 1, "p2": 2}))
    sides = {s.roster_id: s for s in trade.sides}

    assert sides[2].total_value_received == 25.0
    assert sides[2].total_value_sent == 6.0
    assert sides[2].net_value == 19.0
    assert sides[1].net_value == -19.0
    assert sides[1].assets_received[0].player_name == "Beta Two"
    assert sides[1].display_name == "Team u1"
    assert not trade.has_unresolved


def test_net_value_identity_holds_for_every_side():
    trades = [
        make_trade("t1", [1, 2], adds={"p1": 2, "p2": 1}, drops={"p1": 1, "p2": 2}),
        make_trade("t2", [1, 2, 3], adds={"p1": 2}, drops={"p1": 1}),
        make_trade("t3", [1, 2], draft_picks=[{"season": "2030", "round": 1, "roster_id": 1, "owner_id": 2, "previous_owner_id": 1}]),
    ]
    for tx in trades:
        for side in _analyze(tx).sides:
            assert side.net_value == side.total_value_received - side.total_value_sent


def test_zero_asset_side_nets_zero():
    trade = _analyze(make_trade("t2", [1, 2, 3], adds={"p1": 2}, drops={"p1": 1}))
    bystander = next(s for s in trade.sides if s.roster_id == 3)

    assert bystander.total_value_received == 0
    assert bystander.total_value_sent == 0
    assert bystander.net_value == 0


def test_sender_inferred_for_two_party_trade_without_drops():
    trade = _analyze(make_trade("t1", [1, 2], adds={"p1": 2}))
    sides = {s.roster_id: s for s in trade.sides}
    assert [a.player_id for a in sides[1].assets_sent] == ["p1"]


def test_no_sender_guessed_for_multi_party_trade_without_drops():
    trade = _analyze(make_trade("t1", [1, 2, 3], adds={"p1": 2}))
    assert all(not s.assets_sent for s in trade.sides)


def test_unknown_player_gets_placeholder_identity():
    trade = _analyze(make_trade("t1", [1, 2], adds={"123456789": 2}))
    asset = trade.sides[1].assets_received[0]
    assert asset.player_name == "ID:456789"
    assert asset.position == "UNK"


def test_unresolved_pick_flags_trade():
    tx = make_trade("t1", [1, 2], draft_picks=[{"season": "2030", "round": 1, "roster_id": 1, "owner_id": 2, "previous_owner_id": 1}])
    trade = _analyze(tx)
    sides = {s.roster_id: s for s in trade.sides}

    assert trade.has_unresolved
    assert sides[2].picks_received[0].status == "unresolved"
    assert sides[1].picks_sent[0].post_trade_points == 0


def _season(transactions, owners=None):
    owners = owners or {1: "u1", 2: "u2"}
    return build_season_record(make_bundle("L1", "2024", owners, WEEKS, transactions=transactions))


def test_league_trade_analysis():
    swap = make_trade("swap", [1, 2], adds={"p1": 2, "p2": 1}, drops={"p1": 1, "p2": 2}, created=1000)
    pick_only = make_trade(
        "future", [1, 2],
        draft_picks=[{"season": "2030", "round": 1, "roster_id": 2, "owner_id": 1, "previous_owner_id": 2}],
        created=2000,
    )
    analysis = compute_league_trade_analysis([_season({1: [swap], 2: [pick_only]})], PLAYERS)

    assert analysis.has_data
    assert [t.transaction_id for t in analysis.all_trades] == ["future", "swap"]

    u1 = analysis.manager_summaries["u1"]
    u2 = analysis.manager_summaries["u2"]
    assert u2.total_net_value == 19.0
    assert u1.total_net_value == -19.0
    assert u2.trade_win_rate == 1.0
    assert u1.trade_win_rate == 0.0
    assert u1.resolved_trades == 1
    assert u1.total_trades == 2
    assert u1.avg_value_per_trade == pytest.approx(-9.5)
    assert u2.league_rank == 1 and u2.grade == "A+"
    assert u1.league_rank == 2 and u1.grade == "F"
    assert u1.most_frequent_partner.user_id == "u2"
    assert u1.most_frequent_partner.count == 2
    assert u1.biggest_loss.net_value == -19.0

    assert analysis.biggest_win_all_time.user_id == "u2"
    assert analysis.biggest_loss_all_time.user_id == "u1"
    assert analysis.most_active_trader.count == 2


def test_win_rate_is_none_without_resolved_trades():
    pick_only = make_trade(
        "future", [1, 2],
        draft_picks=[{"season": "2030", "round": 1, "roster_id": 2, "owner_id": 1, "previous_owner_id": 2}],
    )
    analysis = compute_league_trade_analysis([_season({1: [pick_only]})], PLAYERS)

    assert analysis.manager_summaries["u1"].trade_win_rate is None
    assert analysis.manager_summaries["u1"].resolved_trades == 0


def test_orphan_rosters_are_left_out_of_summaries():
    swap = make_trade("swap", [1, 2], adds={"p1": 2, "p2": 1}, drops={"p1": 1, "p2": 2})
    analysis = compute_league_trade_analysis([_season({1: [swap]}, owners={1: "u1", 2: None})], PLAYERS)

    assert set(analysis.manager_summaries) == {"u1"}
    orphan_side = next(s for s in analysis.all_trades[0].sides if s.roster_id == 2)
    assert orphan_side.user_id is None
    assert orphan_side.display_name == "Team 2"


def test_no_trades_means_no_data():
    analysis = compute_league_trade_analysis([_season({})], PLAYERS)
    assert not analysis.has_data
    assert analysis.manager_summaries == {}


def test_assets_moving_to_non_participants_are_skipped():
    tx = make_trade(
        "t1", [1, 2],
        adds={"p1": 3, "p2": 1},
        drops={"p1": 1, "p2": 2},
        draft_picks=[{"season": "2030", "round": 1, "roster_id": 1, "owner_id": 3, "previous_owner_id": 1}],
    )
    sides = {s.roster_id: s for s in _analyze(tx).sides}

    assert [a.player_id for a in sides[1].assets_sent] == []
    assert sides[1].picks_sent == []
    assert sides[1].total_value_sent == 0
    assert sides[2].total_value_sent == 6.0
    assert sides[1].net_value == 6.0
