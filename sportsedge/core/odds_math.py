"""Fundamental odds mathematics — the single source of truth.

Every function here is **pure**: no I/O, no logging, no side effects.
Import from this module; never reimplement locally in services.

The three pillars exposed are:

1. **Odds conversion** — American ↔ decimal ↔ implied probability.
2. **Vig removal** — proportional normalisation of a two-sided market.
3. **Expected value** — EV of a single wager at a quoted price.

Design decisions
----------------
* Every function is **total**.  Invalid input (``0`` / ``None`` prices,
  probabilities outside ``(0, 1)``) yields a documented sentinel value:
  ``0`` for prices and probabilities, ``"N/A"`` for display strings. Callers
  branch on values instead of wrapping calls in ``try`` blocks.
* A price of ``0`` is never a real quote.  It is the "unknown" sentinel
  that upstream odds parsing writes when a book did not post a side.
* A probability of ``0.0`` returned from a conversion means "unavailable",
  which is distinct from a genuine 0% event.  Consumers must treat it as
  missing data.

Run tests with::

    pytest tests/test_odds_math.py -v
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final, Optional

# ---------------------------------------------------------------------------
# Module-level constants
# ---------------------------------------------------------------------------

#: Sentinel returned for an unknown or unrepresentable American price.
UNKNOWN_PRICE: Final[int] = 0

#: Sentinel returned for an unavailable probability.
UNAVAILABLE_PROB: Final[float] = 0.0

#: Display sentinel for prices and probabilities that cannot be shown.
NOT_AVAILABLE: Final[str] = "N/A"

#: Default stake used by :func:`expected_value` (one "unit" of $100).
DEFAULT_STAKE: Final[float] = 100.0


# ---------------------------------------------------------------------------
# Result records
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class VigResult:
    """Vig-free view of a two-sided market.

    Attributes:
        fair_prob_a: No-vig probability of side A (home / over).
        fair_prob_b: No-vig probability of side B (away / under).
        fair_odds_a: American price equivalent of ``fair_prob_a``.
        fair_odds_b: American price equivalent of ``fair_prob_b``.
        vig_percent: Bookmaker margin as a percentage of the overround,
            ``(sum − 1) / sum × 100``.  Always ``≥ 0``.
    """

    fair_prob_a: float
    fair_prob_b: float
    fair_odds_a: int
    fair_odds_b: int
    vig_percent: float


@dataclass(frozen=True, slots=True)
class EVResult:
    """Expected value of a single wager.

    Attributes:
        expected_value: EV in stake currency.
        ev_percent: EV as a percentage of the stake.
        edge_percent: ``(true_prob − implied_prob) × 100``.
        payout: Net profit if the wager wins.
        implied_prob: Raw (vig-inclusive) implied probability of the price.
    """

    expected_value: float
    ev_percent: float
    edge_percent: float
    payout: float
    implied_prob: float


# ---------------------------------------------------------------------------
# Odds conversion
# ---------------------------------------------------------------------------


def _is_unknown(price: Optional[float]) -> bool:
    return price is None or price == 0


def american_to_implied(price: Optional[int | float]) -> float:
    """Raw implied probability from American odds (vig-inclusive).

    Examples::

        american_to_implied(-110) → 0.5238
        american_to_implied(+150) → 0.4000
        american_to_implied(0)    → 0.0      (unknown sentinel)

    Args:
        price: American odds.  Negative = favourite, positive = underdog.

    Returns:
        Implied probability in ``(0, 1)``, or ``0.0`` when the price is the
        unknown sentinel (``0`` / ``None``).
    """
    if _is_unknown(price):
        return UNAVAILABLE_PROB
    if price > 0:
        return 100.0 / (price + 100.0)
    magnitude = abs(price)
    return magnitude / (magnitude + 100.0)


def implied_to_american(probability: Optional[float]) -> int:
    """Convert a probability to the nearest American price.

    Probabilities at or above 0.5 map to negative (favourite) prices,
    below 0.5 to positive (underdog) prices::

        implied_to_american(0.6) → -150
        implied_to_american(0.4) → +150

    Returns:
        American odds integer, or ``0`` when ``probability`` is outside the
        open interval ``(0, 1)``.
    """
    if probability is None or probability <= 0.0 or probability >= 1.0:
        return UNKNOWN_PRICE
    if probability >= 0.5:
        return -round(probability / (1.0 - probability) * 100.0)
    return round((1.0 - probability) / probability * 100.0)


def american_to_decimal(price: Optional[int | float]) -> float:
    """Convert American odds to decimal (European) format.

    Decimal odds include the return of the stake::

        american_to_decimal(-110) → 1.9091
        american_to_decimal(+150) → 2.5000

    Returns:
        Decimal odds, or ``0.0`` for the unknown price sentinel.
    """
    if _is_unknown(price):
        return 0.0
    if price > 0:
        return price / 100.0 + 1.0
    return 100.0 / abs(price) + 1.0


def decimal_to_american(decimal_odds: Optional[float]) -> int:
    """Inverse of :func:`american_to_decimal`, rounded for display.

    Returns:
        American odds integer, or ``0`` when ``decimal_odds ≤ 1.0``
        (no payout is representable).
    """
    if decimal_odds is None or decimal_odds <= 1.0:
        return UNKNOWN_PRICE
    if decimal_odds >= 2.0:
        return round((decimal_odds - 1.0) * 100.0)
    return round(-100.0 / (decimal_odds - 1.0))


# ---------------------------------------------------------------------------
# Vig removal
# ---------------------------------------------------------------------------


def remove_vig(
    price_a: Optional[int | float],
    price_b: Optional[int | float],
) -> VigResult:
    """Strip the bookmaker margin from a two-sided market.

    Both prices are converted to implied probability and summed.  When the
    sum is ``≤ 1`` the market carries no detectable vig and both sides pass
    through unchanged (fair odds equal the posted odds, ``vig_percent`` 0).
    Otherwise each side is renormalised proportionally::

        fair_x = implied_x / sum
        vig    = (sum − 1) / sum × 100

    The same formula serves moneylines (A = home, B = away) and totals
    (A = over, B = under).

    Examples::

        remove_vig(-110, -110) → fair 0.5 / 0.5, vig ≈ 4.545 (overround 4.76%)
        remove_vig(+100, +100) → fair 0.5 / 0.5, vig 0.0

    Returns:
        :class:`VigResult`.  When either price is unknown its implied
        probability is ``0.0`` and the sum will not exceed 1, so the result
        passes through with that side at ``0.0``.
    """
    implied_a = american_to_implied(price_a)
    implied_b = american_to_implied(price_b)
    overround = implied_a + implied_b

    if overround <= 1.0:
        return VigResult(
            fair_prob_a=implied_a,
            fair_prob_b=implied_b,
            fair_odds_a=int(price_a or UNKNOWN_PRICE),
            fair_odds_b=int(price_b or UNKNOWN_PRICE),
            vig_percent=0.0,
        )

    fair_a = implied_a / overround
    fair_b = implied_b / overround
    return VigResult(
        fair_prob_a=fair_a,
        fair_prob_b=fair_b,
        fair_odds_a=implied_to_american(fair_a),
        fair_odds_b=implied_to_american(fair_b),
        vig_percent=(overround - 1.0) / overround * 100.0,
    )


# ---------------------------------------------------------------------------
# Expected value
# ---------------------------------------------------------------------------


def expected_value(
    true_prob: float,
    price: Optional[int | float],
    stake: float = DEFAULT_STAKE,
) -> EVResult:
    """Expected value of a wager given our probability and the posted price.

    ``payout`` follows the American sign convention (``stake × price/100``
    for underdogs, ``stake × 100/|price|`` for favourites), and::

        ev = p × payout − (1 − p) × stake

    Examples::

        expected_value(0.6, +100).ev_percent → +20.0
        expected_value(0.4, +100).ev_percent → −20.0

    Returns:
        :class:`EVResult`; all fields are zero when the price is unknown or
        the stake is not positive.
    """
    if _is_unknown(price) or stake <= 0:
        return EVResult(0.0, 0.0, 0.0, 0.0, UNAVAILABLE_PROB)

    implied = american_to_implied(price)
    if price > 0:
        payout = stake * (price / 100.0)
    else:
        payout = stake * (100.0 / abs(price))

    ev = true_prob * payout - (1.0 - true_prob) * stake
    return EVResult(
        expected_value=ev,
        ev_percent=ev / stake * 100.0,
        edge_percent=(true_prob - implied) * 100.0,
        payout=payout,
        implied_prob=implied,
    )


# ---------------------------------------------------------------------------
# Display helpers
# ---------------------------------------------------------------------------


def format_odds(price: Optional[int | float]) -> str:
    """``+150`` / ``-110`` for real prices, ``"N/A"`` for the unknown sentinel."""
    if _is_unknown(price):
        return NOT_AVAILABLE
    return f"+{int(price)}" if price > 0 else str(int(price))


def format_probability(probability: Optional[float], decimals: int = 1) -> str:
    """Percentage string such as ``"52.4%"``, or ``"N/A"`` outside ``[0, 1]``."""
    if not isinstance(probability, (int, float)) or not 0.0 <= probability <= 1.0:
        return NOT_AVAILABLE
    return f"{probability * 100:.{decimals}f}%"
