"""
Tests for the matchup strength models
Run with: pytest tests/test_matchup_engine.py -v
"""

import math

import pytest

from sportsedge.core.matchup_interface import (
    GameContext,
    MarketSnapshot,
    MatchupEstimate,
    NullMatchupModel,
    StarterProfile,
    TeamSignal,
    parse_record,
)
from sportsedge.core.sport_config import SportConfig, get_sport_config
from sportsedge.services.matchup_engine import (
    PossessionMatchupModel,
    RunScoringMatchupModel,
    get_matchup_model,
    normal_cdf,
    poisson_over_probability,
    register_matchup_model,
)


def nfl_game(home=None, away=None):
    return GameContext(game_id="g1", sport="nfl", home=home or TeamSignal(abbr="KC"),
                       away=away or TeamSignal(abbr="BUF"))


class TestRecords:

    def test_parse_plain_record(self):
        assert parse_record("6-2") == (6, 2, 0)

    def test_parse_ot_record(self):
        rec = parse_record("5-2-2")
        assert rec.weighted_win_pct() == pytest.approx(5 / 8)
        assert rec.win_pct() == pytest.approx(5 / 7)

    @pytest.mark.parametrize("raw", [None, "", "abc", "5", "5-x", "-1-3"])
    def test_malformed_records(self, raw):
        assert parse_record(raw) is None


class TestPossessionModel:

    def test_no_data_is_home_advantage_only(self):
        model = PossessionMatchupModel(SportConfig.nfl())
        est = model.estimate_probabilities(nfl_game())
        expected = 1.0 / (1.0 + math.exp(-8 * 0.03))
        assert est.home_win == pytest.approx(expected)
        assert est.home_win + est.away_win == pytest.approx(1.0)
        assert est.predicted_total is None

    def test_no_factors_exact_half(self):
        model = PossessionMatchupModel(SportConfig.nfl())
        assert model.team_strength(TeamSignal(), is_home=True) == 0.5

    def test_record_and_venue_factors(self):
        model = PossessionMatchupModel(SportConfig.nfl())
        team = TeamSignal(home_record="6-2")
        # record 0.75 at 0.4 weight, venue 0.75 at 0.2 weight
        assert model.team_strength(team, is_home=True) == pytest.approx(0.65)

    def test_last_n_fallback_for_record(self):
        model = PossessionMatchupModel(SportConfig.nfl())
        team = TeamSignal(last_n_record="8-2")
        assert model.team_strength(team, is_home=False) == pytest.approx(0.5 + 0.3 * 0.4)

    def test_recent_form_clamped(self):
        model = PossessionMatchupModel(SportConfig.nhl())
        hot = TeamSignal(rolling_points_for=9.0)
        assert model.recent_form_strength(hot) == pytest.approx(0.8)

    def test_strength_clamped(self):
        model = PossessionMatchupModel(SportConfig.nfl())
        elite = TeamSignal(home_record="16-0", last_n_record="10-0", rolling_points_for=40.0)
        assert model.team_strength(elite, is_home=True) == pytest.approx(0.8)

    def test_win_probability_clamped(self):
        model = PossessionMatchupModel(SportConfig.nfl())
        game = nfl_game(TeamSignal(home_record="16-0"), TeamSignal(away_record="0-16"))
        est = model.estimate_probabilities(game)
        assert est.home_win == pytest.approx(0.80)
        assert est.away_win == pytest.approx(0.20)

    def test_better_home_team_favoured(self):
        model = PossessionMatchupModel(SportConfig.nhl())
        game = GameContext(
            game_id="g2", sport="nhl",
            home=TeamSignal(home_record="12-4-2"),
            away=TeamSignal(away_record="6-10-1"),
        )
        est = model.estimate_probabilities(game)
        assert est.home_win > 0.6

    def test_predicted_total(self):
        model = PossessionMatchupModel(SportConfig.nfl())
        game = nfl_game(
            TeamSignal(rolling_points_for=24.0, rolling_points_against=20.0),
            TeamSignal(rolling_points_for=21.0, rolling_points_against=23.0),
        )
        est = model.estimate_probabilities(game)
        assert est.predicted_total == pytest.approx(23.5 + 20.5 + 1.5)
        assert est.home_expected == pytest.approx(25.0)
        assert est.away_expected == pytest.approx(20.5)
        est.validate()


class TestRunScoringModel:

    def test_neutral_teams(self):
        model = RunScoringMatchupModel(SportConfig.mlb())
        game = GameContext(game_id="m1", sport="mlb")
        est = model.estimate_probabilities(game)
        assert est.home_expected == pytest.approx(4.6)
        assert est.away_expected == pytest.approx(4.5)
        assert est.predicted_total == pytest.approx(9.1)
        assert est.home_win > 0.5
        assert est.over_prob is None

    def test_park_factor_dampened_for_both_teams(self):
        model = RunScoringMatchupModel(SportConfig.mlb())
        game = GameContext(game_id="m2", sport="mlb",
                           home=TeamSignal(abbr="COL"), away=TeamSignal(abbr="SD"))
        est = model.estimate_probabilities(game)
        assert est.home_expected == pytest.approx(4.6 * 1.10)
        assert est.away_expected == pytest.approx(4.5 * 1.10)

    def test_explicit_park_factor_wins(self):
        model = RunScoringMatchupModel(SportConfig.mlb())
        assert model.park_multiplier(TeamSignal(abbr="COL", park_factor=0.9)) == pytest.approx(0.95)

    def test_starter_multiplier(self):
        ace = StarterProfile(k_rate=0.30, bb_rate=0.06, woba_allowed=0.290)
        assert RunScoringMatchupModel.starter_multiplier(ace) == pytest.approx(0.922)
        assert RunScoringMatchupModel.starter_multiplier(None) == 1.0
        assert RunScoringMatchupModel.starter_multiplier(StarterProfile()) == 1.0

    def test_starter_multiplier_clamped(self):
        awful = StarterProfile(k_rate=0.05, bb_rate=0.20, woba_allowed=0.450)
        assert RunScoringMatchupModel.starter_multiplier(awful) == pytest.approx(1.2)

    def test_offense_multiplier_fallbacks(self):
        model = RunScoringMatchupModel(SportConfig.mlb())
        assert model.offense_multiplier(TeamSignal(rolling_points_for=6.0)) == pytest.approx(1.1)
        assert model.offense_multiplier(TeamSignal(home_record="30-10", away_record="20-20")) == \
            pytest.approx(1.0 + (50 / 80 - 0.5) * 0.1)
        assert model.offense_multiplier(TeamSignal()) == 1.0

    def test_defense_multiplier_fallbacks(self):
        model = RunScoringMatchupModel(SportConfig.mlb())
        assert model.defense_multiplier(TeamSignal(rolling_points_against=3.0)) == pytest.approx(1.05)
        assert model.defense_multiplier(TeamSignal(home_record="60-20")) == \
            pytest.approx(1.0 - 0.25 * 0.06)

    def test_runs_floor(self):
        model = RunScoringMatchupModel(SportConfig.mlb())
        runs = model.expected_runs(TeamSignal(), TeamSignal(), None, False, 0.01)
        assert runs == 0.5

    def test_total_priced_against_market_line(self):
        model = RunScoringMatchupModel(SportConfig.mlb())
        game = GameContext(game_id="m3", sport="mlb")
        est = model.estimate_probabilities(game, MarketSnapshot(total_line=8.5))
        assert 0.1 <= est.over_prob <= 0.9
        assert est.over_prob + est.under_prob == pytest.approx(1.0)
        assert est.supports_total_pricing()
        est.validate()


class TestTotalProbabilities:

    def test_higher_line_lowers_over(self):
        assert poisson_over_probability(9.0, 7.5) > poisson_over_probability(9.0, 10.5)

    def test_non_positive_lambda(self):
        assert poisson_over_probability(0.0, 8.5) == 0.5

    def test_normal_branch_centre(self):
        assert poisson_over_probability(12.0, 12.0) == pytest.approx(0.5)

    def test_clamped(self):
        assert poisson_over_probability(20.0, 5.0) == pytest.approx(0.9)
        assert poisson_over_probability(2.0, 12.5) == pytest.approx(0.1)

    def test_normal_cdf(self):
        assert normal_cdf(0.0) == pytest.approx(0.5)
        assert normal_cdf(1.96) == pytest.approx(0.975, abs=1e-3)


class TestRegistry:

    def test_known_sports(self):
        assert isinstance(get_matchup_model("NFL"), PossessionMatchupModel)
        assert isinstance(get_matchup_model("nhl"), PossessionMatchupModel)
        assert isinstance(get_matchup_model("mlb"), RunScoringMatchupModel)

    def test_unknown_sport_is_null_model(self):
        model = get_matchup_model("curling")
        assert isinstance(model, NullMatchupModel)
        est = model.estimate_probabilities(GameContext(game_id="x", sport="curling"))
        assert est.home_win == 0.5
        assert est.predicted_total is None

    def test_config_override(self):
        from dataclasses import replace
        cfg = replace(get_sport_config("nfl"), home_field_advantage=0.0)
        est = get_matchup_model("nfl", cfg).estimate_probabilities(nfl_game())
        assert est.home_win == pytest.approx(0.5)

    def test_register_rejects_non_models(self):
        with pytest.raises(TypeError):
            register_matchup_model("cricket", object)

    def test_estimate_validate_rejects_inconsistent(self):
        with pytest.raises(ValueError):
            MatchupEstimate(home_win=0.7, away_win=0.7).validate()


class TestSportConfig:

    def test_lookup_is_case_insensitive(self):
        assert get_sport_config(" NHL ") == SportConfig.nhl()
        assert get_sport_config("curling") is None
        assert get_sport_config(None) is None

    def test_neutral_site(self):
        cfg = SportConfig.mlb().neutral_site()
        assert cfg.home_field_multiplier == 1.0
        assert cfg.home_field_advantage == 0.0
        assert not SportConfig.nfl().is_run_scoring()
        assert SportConfig.mlb().is_run_scoring()
