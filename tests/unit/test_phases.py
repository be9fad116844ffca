"""Unit tests for per-phase breakdowns."""

from dotacoach.constants import Role
from dotacoach.models.phases import (
    analyze_combat,
    analyze_economy,
    analyze_laning,
    analyze_phases,
    analyze_vision,
    lane_outcome,
    lane_score,
    laning_progression,
)
from dotacoach.normalization import MatchRecord, PlayerRecord
from tests.fixtures.sample_api_responses import get_sample_match, make_player, with_player_overrides


class TestLaning:
    def test_progression_frame(self, sample_carry):
        frame = laning_progression(sample_carry)
        assert list(frame.index) == list(range(1, 11))
        assert frame.at[10, "last_hits"] == 50
        assert set(frame.columns) == {"last_hits", "xp", "gold", "denies"}

    def test_sample_carry_lane(self, sample_carry):
        laning = analyze_laning(sample_carry)
        assert laning["cs_at_10"] == 50
        assert laning["xp_at_10"] == 3200
        assert laning["gold_at_10"] == 5900
        assert laning["score"] == 65
        assert laning["outcome"] == "Drew"
        assert laning["efficiency"] == {"cs": 5.0, "xp": 320, "gold": 590}
        assert laning["progression"]["last_hits"][-1] == 50

    def test_missing_series_gives_empty_progression(self):
        player = PlayerRecord.from_payload(make_player(0, last_hits=200))
        laning = analyze_laning(player)
        assert laning["cs_at_10"] == 0
        assert laning["progression"] == {"last_hits": [], "xp": [], "gold": [], "denies": []}
        assert laning["efficiency"]["cs"] == 0
        assert laning["outcome"] == "Lost"

    def test_lane_deaths_count_against_score(self):
        payload = with_player_overrides(
            get_sample_match(), 0, deaths_log=[{"time": 300}, {"time": 700}], firstblood_claimed=1
        )
        player = MatchRecord.from_payload(payload).players[0]
        laning = analyze_laning(player)
        assert laning["deaths_in_lane"] == 1
        assert laning["first_blood"] is True
        assert laning["score"] == 60

    def test_score_bounds(self):
        assert lane_score(100, 5000, 0, True) == 100
        assert lane_score(0, 0, 5, False) == 0
        assert lane_outcome(70) == "Won"
        assert lane_outcome(45) == "Drew"
        assert lane_outcome(44) == "Lost"


def test_economy(sample_match, sample_carry):
    economy = analyze_economy(sample_carry, sample_match)
    assert economy["gold_sources"]["Creeps"] == 9000
    assert economy["gold_sources"]["Death"] == -600
    assert [t["item"] for t in economy["item_timings"]] == ["blink", "black_king_bar"]
    assert economy["item_timings"][0]["minute"] == 16
    assert economy["resource_allocation"] == {"buybacks": 1, "consumables": 2, "tp_scrolls": 1}
    assert economy["efficiency"]["gold_spent"] == 21500
    assert [m["minute"] for m in economy["milestones"]] == [8, 16, 25]
    assert economy["comparison"] == {
        "team_average": 440,
        "player_gpm": 650,
        "relative_performance": 148,
        "rank": 1,
    }


def test_economy_gold_spent_from_purchases():
    match = MatchRecord.from_payload(with_player_overrides(get_sample_match(), 0, gold_spent=None))
    economy = analyze_economy(match.players[0], match)
    assert economy["efficiency"]["gold_spent"] == 2250 + 4050


def test_combat(sample_match, sample_carry):
    combat = analyze_combat(sample_carry, sample_match)
    assert [f["impact"] for f in combat["teamfights"]] == [4, 0]
    assert combat["teamfights"][0]["duration"] == 40
    assert combat["efficiency"]["kill_participation"] == 72
    assert combat["efficiency"]["survival_rate"] == 50
    assert combat["positioning"] == {"score": 72, "safety_rating": "Excellent"}
    assert combat["strengths"] == ["High damage output", "Excellent positioning"]
    assert combat["weaknesses"] == []


def test_combat_without_teamfights():
    payload = get_sample_match()
    payload["teamfights"] = []
    match = MatchRecord.from_payload(payload)
    combat = analyze_combat(match.players[5], match)
    assert combat["teamfights"] == []
    assert combat["efficiency"]["survival_rate"] == 100


def test_vision_for_carry(sample_match, sample_carry):
    vision = analyze_vision(sample_carry, sample_match, Role.CARRY)
    assert vision["vision_score"] == 28
    assert vision["grade"] == "D"
    assert vision["efficiency"]["ward_uptime"] == 20
    assert vision["efficiency"]["deward_efficiency"] == 100
    assert vision["comparison"]["meets_observer_target"] is True
    assert [r["priority"] for r in vision["recommendations"]] == ["High", "Medium"]
    assert vision["timeline"] == [{"type": "observer", "time": 420, "x": 120, "y": 130, "lifetime": 420}]


def test_analyze_phases_keys(sample_match, sample_carry):
    phases = analyze_phases(sample_carry, sample_match, "Carry")
    assert set(phases) == {"laning", "economy", "combat", "vision"}
