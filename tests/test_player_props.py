"""
Tests for the batter-vs-pitcher sub-model and prop projection probabilities
Run with: pytest tests/test_player_props.py -v
"""

import pytest

from sportsedge.services.player_props import (
    BatterProfile,
    PitcherProfile,
    SplitLine,
    batter_vs_pitcher_matchup,
    matchup_recommendation,
    platoon_advantage,
    projected_ops,
    projection_probability,
    sample_confidence,
)


class TestPlatoon:

    @pytest.mark.parametrize("bats,throws,expected", [
        ("L", "L", -0.10),
        ("R", "R", -0.10),
        ("L", "R", 0.10),
        ("R", "L", 0.10),
        ("S", "R", 0.05),
        ("S", "L", 0.05),
        (None, "R", 0.0),
        ("L", None, 0.0),
    ])
    def test_platoon_advantage(self, bats, throws, expected):
        assert platoon_advantage(bats, throws) == pytest.approx(expected)


class TestProjectedOps:

    def test_baseline(self):
        assert projected_ops(None, None, 0.0) == pytest.approx(0.750)

    def test_batter_and_pitcher_terms(self):
        ops = projected_ops(SplitLine(woba=0.360), SplitLine(woba=0.300), 0.10)
        assert ops == pytest.approx(0.850 + 0.030 + 0.050)

    def test_clamped(self):
        assert projected_ops(SplitLine(woba=0.600), SplitLine(woba=0.200), 0.1) == pytest.approx(1.2)
        assert projected_ops(SplitLine(woba=0.100), SplitLine(woba=0.450), -0.1) == pytest.approx(0.4)


class TestConfidence:

    def test_levels(self):
        assert sample_confidence(SplitLine(plate_appearances=250), SplitLine(plate_appearances=300)) == "high"
        assert sample_confidence(SplitLine(plate_appearances=150), SplitLine(plate_appearances=300)) == "medium"
        assert sample_confidence(SplitLine(plate_appearances=80), SplitLine(plate_appearances=300)) == "low"
        assert sample_confidence(None, None) == "low"


class TestMatchup:

    def test_switch_hitter_uses_vs_right_split(self):
        batter = BatterProfile(player_id="b1", bats="S", splits={"L": SplitLine(woba=0.330)})
        pitcher = PitcherProfile(
            player_id="p1", throws="L",
            splits={"R": SplitLine(woba=0.280), "L": SplitLine(woba=0.400)},
        )
        result = batter_vs_pitcher_matchup(batter, pitcher)
        expected = (0.330 - 0.320) * 2.5 + 0.750 + (0.320 - 0.280) * 1.5 + 0.05 * 0.5
        assert result.projected_ops == pytest.approx(expected)
        assert result.platoon_advantage == pytest.approx(0.05)

    def test_opposite_hand_favourable(self):
        batter = BatterProfile(player_id="b2", bats="L",
                               splits={"R": SplitLine(woba=0.370, plate_appearances=400)})
        pitcher = PitcherProfile(player_id="p2", throws="R",
                                 splits={"L": SplitLine(woba=0.340, plate_appearances=350)})
        result = batter_vs_pitcher_matchup(batter, pitcher)
        assert result.confidence == "high"
        assert result.pitch_mix_fit == pytest.approx(0.53)
        assert result.recommendation == "strong_favorable"

    @pytest.mark.parametrize("ops,platoon,label", [
        (0.900, 0.10, "strong_favorable"),
        (0.820, -0.10, "favorable"),
        (0.700, 0.10, "favorable"),
        (0.600, -0.10, "unfavorable"),
        (0.700, 0.0, "neutral"),
    ])
    def test_recommendation(self, ops, platoon, label):
        assert matchup_recommendation(ops, platoon) == label


class TestProjectionProbability:

    def test_projection_on_line(self):
        assert projection_probability(1.5, 1.5, "over") == pytest.approx(0.5)

    def test_over_and_under_mirror(self):
        over = projection_probability(1.6, 1.5, "over")
        under = projection_probability(1.6, 1.5, "under")
        assert over > 0.5
        assert over + under == pytest.approx(1.0)

    def test_bounded(self):
        assert projection_probability(10.0, 1.5, "over") == pytest.approx(0.58)
        assert projection_probability(0.0, 1.5, "over") == pytest.approx(0.42)
        assert projection_probability(10.0, 1.5, "under") == pytest.approx(0.42)

    def test_missing_inputs(self):
        assert projection_probability(None, 1.5, "over") == 0.5
        assert projection_probability(2.0, 0.0, "over") == 0.5

    def test_deterministic(self):
        assert projection_probability(6.3, 5.5, "over") == projection_probability(6.3, 5.5, "over")
