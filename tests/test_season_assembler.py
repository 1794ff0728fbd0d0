import asyncio

import pytest

from league_analytics.errors import SeasonFetchError
from league_analytics.models.sleeper import BracketMatch, Matchup
from league_analytics.services.season_assembler import (
    assemble_league_history,
    build_season_record,
    find_champion_roster,
    merge_manager_identities,
)
from factories import FakeSource, OWNERS, make_bundle, make_trade, simple_weeks


def _chain(labels, links):
    """Bundles keyed by league id; links maps league id -> previous league id."""
    return {
        league_id: make_bundle(league_id, season, OWNERS, simple_weeks(OWNERS), previous_league_id=links.get(league_id))
        for league_id, season in labels.items()
    }


def test_history_is_oldest_first():
    bundles = _chain({"L1": "2022", "L2": "2023", "L3": "2024"}, {"L3": "L2", "L2": "L1", "L1": "0"})
    source = FakeSource(bundles)

    seasons = asyncio.run(assemble_league_history("L3", source.fetch_season))

    assert [s.season for s in seasons] == ["2022", "2023", "2024"]
    assert source.season_calls == ["L3", "L2", "L1"]


def test_cycle_in_predecessor_chain_stops_walk():
    bundles = _chain({"L1": "2022", "L2": "2023"}, {"L2": "L1", "L1": "L2"})
    source = FakeSource(bundles)

    seasons = asyncio.run(assemble_league_history("L2", source.fetch_season))

    assert [s.season for s in seasons] == ["2022", "2023"]
    assert source.season_calls == ["L2", "L1"]


def test_walk_is_bounded():
    labels = {f"L{i}": str(2000 + i) for i in range(15)}
    links = {f"L{i}": f"L{i - 1}" for i in range(1, 15)}
    source = FakeSource(_chain(labels, links))

    seasons = asyncio.run(assemble_league_history("L14", source.fetch_season))

    assert len(source.season_calls) == 10
    assert len(seasons) == 10
    assert seasons[-1].season == "2014"


def test_season_without_matchups_is_dropped_but_walk_continues():
    bundles = _chain({"L1": "2022", "L3": "2024"}, {"L3": "L2", "L1": None})
    bundles["L2"] = make_bundle("L2", "2023", OWNERS, [[], []], previous_league_id="L1")
    source = FakeSource(bundles)

    seasons = asyncio.run(assemble_league_history("L3", source.fetch_season))

    assert [s.season for s in seasons] == ["2022", "2024"]


def test_matchups_without_players_are_ignored():
    weeks = [[Matchup(roster_id=1, players=None), Matchup(roster_id=2, players=None)]]
    record = build_season_record(make_bundle("L1", "2024", OWNERS, weeks))
    assert record.weeks == []


def test_fetch_failure_abandons_history():
    bundles = _chain({"L2": "2023", "L3": "2024"}, {"L3": "L2", "L2": "L1"})
    source = FakeSource(bundles)

    with pytest.raises(SeasonFetchError) as excinfo:
        asyncio.run(assemble_league_history("L3", source.fetch_season))
    assert excinfo.value.league_id == "L1"


def test_regular_season_weeks_come_from_playoff_start():
    bundle = make_bundle("L1", "2024", OWNERS, simple_weeks(OWNERS, count=17), playoff_week_start=15)
    record = build_season_record(bundle)
    assert record.regular_season_weeks == 14
    assert len(record.weeks) == 14


def test_only_completed_trades_are_tagged_with_their_week():
    transactions = {
        3: [
            make_trade("t1", [1, 2], adds={"a": 1}),
            make_trade("t2", [1, 2], adds={"b": 2}, status="failed"),
            make_trade("w1", [1], adds={"c": 1}, type="waiver"),
        ],
        16: [make_trade("t3", [3, 4], adds={"d": 3})],
    }
    record = build_season_record(make_bundle("L1", "2024", OWNERS, simple_weeks(OWNERS), transactions=transactions))

    assert [(t.transaction.transaction_id, t.week) for t in record.trades] == [("t1", 3), ("t3", 16)]
    assert all(t.season == "2024" and t.league_id == "L1" for t in record.trades)


def test_champion_from_first_place_match():
    bracket = [
        BracketMatch(r=3, m=7, w=4, l=1, p=3),
        BracketMatch(r=3, m=6, w=2, l=3, p=1),
    ]
    record = build_season_record(make_bundle("L1", "2024", OWNERS, simple_weeks(OWNERS), bracket=bracket))
    assert record.champion_manager_id == "u2"


def test_champion_falls_back_to_final_round():
    bracket = [BracketMatch(r=1, m=1, w=1, l=4), BracketMatch(r=2, m=3, w=3, l=1)]
    assert find_champion_roster(bracket) == 3
    assert find_champion_roster([]) is None


def test_orphan_rosters_have_no_manager():
    owners = {1: "u1", 2: None}
    record = build_season_record(make_bundle("L1", "2024", owners, simple_weeks(owners)))
    assert record.roster_to_manager == {1: "u1"}


def test_identities_last_write_wins():
    older = build_season_record(make_bundle("L1", "2023", OWNERS, simple_weeks(OWNERS), team_names={"u1": "Old Name"}))
    newer = build_season_record(make_bundle("L2", "2024", OWNERS, simple_weeks(OWNERS), team_names={"u1": "New Name"}))

    identities = merge_manager_identities([older, newer])

    assert identities["u1"].display_name == "New Name"
    assert identities["u2"].display_name == "user_u2"
