"""
Tests for edge calculation
Run with: pytest tests/test_edge_calculator.py -v
"""

import pytest

from sportsedge.core.matchup_interface import (
    GameContext,
    MarketQuote,
    MarketSnapshot,
    MatchupEstimate,
    NullMatchupModel,
    TeamSignal,
)
from sportsedge.core.sport_config import SportConfig
from sportsedge.services.edge_calculator import (
    MODEL_VERSION,
    Edge,
    analyze_game,
    apply_noise_floor,
    cap_edge,
    compute_edges,
    compute_prop_edge,
    raw_edge,
    totals_gap_edges,
)
from sportsedge.services.market import OpeningLineStore

EVEN_MARKET = MarketSnapshot(
    ml_home=0.5, ml_away=0.5, total_over=0.5, total_under=0.5, total_line=44.5,
)


def estimate(home, total=None, over=None):
    return MatchupEstimate(
        home_win=home,
        away_win=1.0 - home,
        predicted_total=total,
        over_prob=over,
        under_prob=None if over is None else 1.0 - over,
    )


class TestPrimitives:

    def test_raw_edge(self):
        assert raw_edge(0.55, 0.5) == pytest.approx(0.05)
        assert raw_edge(None, 0.5) is None

    def test_cap(self):
        assert cap_edge(0.3) == 0.10
        assert cap_edge(-0.3) == -0.10
        assert cap_edge(0.04) == 0.04
        assert cap_edge(None) is None

    def test_noise_floor(self):
        assert apply_noise_floor(0.015, 0.02) is None
        assert apply_noise_floor(-0.03, 0.02) == -0.03

    def test_monotonic_in_our_probability(self):
        edges = [raw_edge(p / 100, 0.52) for p in range(30, 80)]
        assert edges == sorted(edges)

    def test_prop_edge_cap(self):
        assert compute_prop_edge(0.9, 0.5) == pytest.approx(0.25)
        assert compute_prop_edge(0.1, 0.5) == pytest.approx(-0.25)
        assert compute_prop_edge(0.55, 0.5) == pytest.approx(0.05)


class TestTotalsGap:

    def test_over(self):
        over, under = totals_gap_edges(47.0, 44.5, SportConfig.nfl())
        assert over == pytest.approx(0.075)
        assert under == pytest.approx(-0.075)

    def test_under(self):
        over, under = totals_gap_edges(5.0, 5.5, SportConfig.nhl())
        assert over == pytest.approx(-0.015)
        assert under == pytest.approx(0.015)

    def test_small_gap(self):
        assert totals_gap_edges(44.7, 44.5, SportConfig.nfl()) == (None, None)

    def test_ceiling(self):
        over, _ = totals_gap_edges(60.0, 44.5, SportConfig.nfl())
        assert over == pytest.approx(0.12)


class TestComputeEdges:

    def test_moneyline_edges(self):
        edge = compute_edges(estimate(0.56), EVEN_MARKET, SportConfig.nfl())
        assert edge.edge_ml_home == pytest.approx(0.06)
        assert edge.edge_ml_away == pytest.approx(-0.06)

    def test_moneyline_capped(self):
        edge = compute_edges(estimate(0.75), EVEN_MARKET, SportConfig.nfl())
        assert edge.edge_ml_home == pytest.approx(0.10)
        assert edge.edge_ml_away == pytest.approx(-0.10)

    def test_moneyline_noise_is_none(self):
        edge = compute_edges(estimate(0.51), EVEN_MARKET, SportConfig.nfl())
        assert edge.edge_ml_home is None
        assert edge.edge_ml_away is None

    def test_gap_based_totals(self):
        edge = compute_edges(estimate(0.5, total=60.0), EVEN_MARKET, SportConfig.nfl())
        assert edge.edge_total_over == pytest.approx(0.10)
        assert edge.edge_total_under == pytest.approx(-0.10)

    def test_probability_based_totals(self):
        market = MarketSnapshot(total_over=0.48, total_under=0.52, total_line=8.5)
        edge = compute_edges(estimate(0.5, total=9.1, over=0.55), market, SportConfig.mlb())
        assert edge.edge_total_over == pytest.approx(0.07)
        assert edge.edge_total_under == pytest.approx(-0.07)

    def test_totals_noise_is_none(self):
        market = MarketSnapshot(total_over=0.5, total_under=0.5, total_line=8.5)
        edge = compute_edges(estimate(0.5, total=8.6, over=0.505), market, SportConfig.mlb())
        assert edge.edge_total_over is None

    def test_no_market(self):
        edge = compute_edges(estimate(0.7, total=50.0), MarketSnapshot(), SportConfig.nfl())
        assert edge == Edge()
        assert not edge.has_any()

    def test_no_config(self):
        assert compute_edges(estimate(0.7), EVEN_MARKET, None) == Edge()

    def test_null_model_estimate_has_no_edges(self):
        est = MatchupEstimate(home_win=0.5, away_win=0.5, model_name=NullMatchupModel.model_name)
        market = MarketSnapshot(ml_home=0.42, ml_away=0.58)
        assert compute_edges(est, market, SportConfig.nfl()) == Edge()


class TestAnalyzeGame:

    def test_nfl_game(self):
        game = GameContext(
            game_id="nfl-1", sport="nfl",
            home=TeamSignal(abbr="KC", home_record="7-1",
                            rolling_points_for=28.0, rolling_points_against=18.0),
            away=TeamSignal(abbr="LV", away_record="2-6",
                            rolling_points_for=17.0, rolling_points_against=26.0),
        )
        quotes = [
            MarketQuote("h2h", price_home=-110, price_away=-110, book="dk"),
            MarketQuote("totals", price_over=-110, price_under=-110, line=44.5, book="dk"),
        ]
        report = analyze_game(game, quotes)
        assert report.edges.edge_ml_home == pytest.approx(0.10)
        assert report.edges.edge_ml_away == pytest.approx(-0.10)
        # (28 + 26) / 2 + (17 + 18) / 2 + 1.5 = 46.0, a 1.5 point gap
        assert report.our_total == pytest.approx(46.0)
        assert report.market_total == 44.5
        assert report.edges.edge_total_over == pytest.approx(0.045)
        assert report.model_version == MODEL_VERSION
        assert report.movements == {}

    def test_unknown_sport_all_none(self):
        game = GameContext(game_id="x-1", sport="cricket")
        report = analyze_game(game, [MarketQuote("h2h", price_home=-150, price_away=130)])
        assert report.edges == Edge()
        assert report.estimate.home_win == 0.5

    def test_unknown_sport_with_explicit_config(self):
        game = GameContext(game_id="x-2", sport="cricket")
        quotes = [MarketQuote("h2h", price_home=-150, price_away=130)]
        report = analyze_game(game, quotes, config=SportConfig.nfl())
        assert report.estimate.model_name == "NullMatchupModel"
        assert report.market.has_moneyline()
        assert report.edges == Edge()

    def test_mlb_with_opening_store(self):
        store = OpeningLineStore()
        store.record("mlb-1", MarketQuote("totals", price_over=-110, price_under=-110, line=7.5, book="dk"))
        game = GameContext(game_id="mlb-1", sport="mlb",
                           home=TeamSignal(abbr="COL"), away=TeamSignal(abbr="ARI"))
        quotes = [MarketQuote("totals", price_over=-110, price_under=-110, line=8.5, book="dk")]
        report = analyze_game(game, quotes, opening_store=store)
        assert report.estimate.over_prob is not None
        assert report.movements["total"].direction == "toward_over"
        assert len(store) == 1

    def test_deterministic(self):
        game = GameContext(game_id="nhl-1", sport="nhl",
                           home=TeamSignal(home_record="10-5-2"), away=TeamSignal(away_record="8-8-1"))
        quotes = [MarketQuote("h2h", price_home=-140, price_away=120)]
        assert analyze_game(game, quotes) == analyze_game(game, quotes)
