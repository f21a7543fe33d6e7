"""
Tests for core/odds_math.py

Run with: pytest tests/test_odds_math.py -v
"""

import pytest

from sportsedge.core.odds_math import (
    american_to_decimal,
    american_to_implied,
    decimal_to_american,
    expected_value,
    format_odds,
    format_probability,
    implied_to_american,
    remove_vig,
)


class TestAmericanToImplied:

    def test_favourite(self):
        assert american_to_implied(-110) == pytest.approx(0.5238, abs=1e-4)

    def test_underdog(self):
        assert american_to_implied(150) == pytest.approx(0.4)

    def test_even_money(self):
        assert american_to_implied(100) == pytest.approx(0.5)
        assert american_to_implied(-100) == pytest.approx(0.5)

    def test_unknown_price_sentinel(self):
        assert american_to_implied(0) == 0.0
        assert american_to_implied(None) == 0.0


class TestImpliedToAmerican:

    def test_favourite(self):
        assert implied_to_american(0.6) == -150

    def test_underdog(self):
        assert implied_to_american(0.4) == 150

    @pytest.mark.parametrize("p", [0.0, 1.0, -0.2, 1.5, None])
    def test_out_of_range_sentinel(self, p):
        assert implied_to_american(p) == 0

    @pytest.mark.parametrize("p", [0.1, 0.25, 0.4, 0.55, 0.7, 0.9])
    def test_round_trip_within_rounding(self, p):
        # Rounding to whole American points moves the probability slightly.
        assert american_to_implied(implied_to_american(p)) == pytest.approx(p, abs=0.005)


class TestDecimalConversion:

    def test_american_to_decimal(self):
        assert american_to_decimal(150) == pytest.approx(2.5)
        assert american_to_decimal(-110) == pytest.approx(1.9091, abs=1e-4)
        assert american_to_decimal(0) == 0.0

    def test_decimal_to_american(self):
        assert decimal_to_american(2.5) == 150
        assert decimal_to_american(1.5) == -200
        assert decimal_to_american(1.0) == 0


class TestRemoveVig:

    def test_standard_juice(self):
        result = remove_vig(-110, -110)
        overround = 2 * american_to_implied(-110) - 1.0
        assert overround * 100 == pytest.approx(4.76, abs=0.01)
        assert result.vig_percent == pytest.approx(overround / (1.0 + overround) * 100)
        assert result.vig_percent == pytest.approx(4.545, abs=0.01)
        assert result.fair_prob_a == pytest.approx(0.5)
        assert result.fair_prob_b == pytest.approx(0.5)
        assert result.fair_odds_a == -100

    def test_no_vig_passes_through(self):
        result = remove_vig(100, 100)
        assert result.vig_percent == 0.0
        assert result.fair_prob_a == pytest.approx(0.5)
        assert result.fair_odds_a == 100
        assert result.fair_odds_b == 100

    @pytest.mark.parametrize("a,b", [(-150, 130), (-300, 240), (-110, -110), (-105, -115), (200, -250)])
    def test_fair_probs_sum_to_one(self, a, b):
        result = remove_vig(a, b)
        assert result.vig_percent >= 0
        assert result.fair_prob_a + result.fair_prob_b == pytest.approx(1.0)

    def test_favourite_keeps_larger_share(self):
        result = remove_vig(-200, 170)
        assert result.fair_prob_a > result.fair_prob_b

    def test_unknown_side(self):
        result = remove_vig(-110, 0)
        assert result.vig_percent == 0.0
        assert result.fair_prob_b == 0.0


class TestExpectedValue:

    def test_positive_ev(self):
        assert expected_value(0.6, 100).ev_percent > 0

    def test_negative_ev(self):
        assert expected_value(0.4, 100).ev_percent < 0

    def test_favourite_payout(self):
        result = expected_value(0.55, -110, stake=110)
        assert result.payout == pytest.approx(100.0)
        assert result.implied_prob == pytest.approx(0.5238, abs=1e-4)
        assert result.edge_percent == pytest.approx((0.55 - 0.5238) * 100, abs=0.01)

    def test_unknown_price_all_zero(self):
        result = expected_value(0.6, 0)
        assert result.expected_value == 0.0
        assert result.ev_percent == 0.0
        assert result.payout == 0.0


class TestFormatting:

    def test_format_odds(self):
        assert format_odds(150) == "+150"
        assert format_odds(-110) == "-110"
        assert format_odds(0) == "N/A"

    def test_format_probability(self):
        assert format_probability(0.5238) == "52.4%"
        assert format_probability(1.2) == "N/A"
        assert format_probability(None) == "N/A"
