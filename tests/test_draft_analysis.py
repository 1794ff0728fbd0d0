import pytest

from league_analytics.services.draft_analysis import compute_league_draft_analysis
from league_analytics.services.season_assembler import build_season_record, merge_manager_identities
from factories import make_bundle, make_draft, make_matchup, make_pick

OWNERS = {1: "u1", 2: "u2", 3: "u3", 4: None}

# (pick_no, player, drafting roster, season points)
PICKS = [
    (1, "a1", 1, 100.0),
    (2, "a2", 2, 80.0),
    (3, "a3", 3, 60.0),
    (4, "a4", 4, 40.0),
    (5, "b4", 4, 20.0),
    (6, "b3", 3, 30.0),
    (7, "b2", 2, 50.0),
    (8, "b1", 1, 10.0),
]


def _season(label, status="complete", team_names=None):
    picks = [make_pick(no, 4, pid, roster_id=rid, picked_by=OWNERS[rid]) for no, pid, rid, _ in PICKS]
    weeks = [[make_matchup(rid, {pid: pts}) for _, pid, rid, pts in PICKS]]
    bundle = make_bundle(
        f"L{label}", label, OWNERS, weeks,
        drafts=[make_draft(label, 4, picks, status=status)],
        team_names=team_names,
    )
    return build_season_record(bundle)


def test_draft_summaries_are_graded_by_surplus():
    analysis = compute_league_draft_analysis([_season("2024")])
    summaries = analysis.manager_summaries

    assert analysis.has_data
    # The orphan roster's picks count toward baselines but not toward any manager
    assert set(summaries) == {"u1", "u2", "u3"}

    assert summaries["u1"].total_surplus == pytest.approx(12.5)
    assert summaries["u2"].total_surplus == pytest.approx(32.5)
    assert summaries["u3"].total_surplus == pytest.approx(-7.5)

    assert summaries["u2"].league_rank == 1
    assert summaries["u2"].grade == "A+"
    assert summaries["u1"].league_rank == 2
    assert summaries["u1"].surplus_percentile == 50
    assert summaries["u1"].grade == "B"
    assert summaries["u3"].grade == "F"


def test_pick_values_and_hit_bust():
    summary = compute_league_draft_analysis([_season("2024")]).manager_summaries["u1"]
    picks = {p.player_id: p for p in summary.draft_classes[0].picks}

    assert picks["a1"].replacement_level == 45.0
    assert picks["a1"].war == 55.0
    assert picks["a1"].expected_war == 25.0
    assert picks["a1"].surplus == 30.0
    assert picks["a1"].hit_bust == "hit"
    assert picks["b1"].hit_bust == "bust"

    assert summary.hit_rate == 0.5
    assert summary.bust_rate == 0.5
    assert summary.total_war == pytest.approx(20.0)
    assert summary.best_pick.player_id == "a1"
    assert summary.worst_pick.player_id == "b1"


def test_draft_classes_newest_first():
    seasons = [_season("2023"), _season("2024", team_names={"u1": "Draft Kings"})]
    analysis = compute_league_draft_analysis(seasons, merge_manager_identities(seasons))
    summary = analysis.manager_summaries["u1"]

    assert [dc.season for dc in summary.draft_classes] == ["2024", "2023"]
    assert summary.display_name == "Draft Kings"
    assert summary.avg_surplus_per_pick == pytest.approx(12.5 / 2)


def test_drafts_not_started_are_skipped():
    analysis = compute_league_draft_analysis([_season("2024", status="pre_draft")])
    assert not analysis.has_data
    assert analysis.manager_summaries == {}
