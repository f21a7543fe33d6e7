"""
Market snapshot construction and opening-line tracking.

Turns the raw ``MarketQuote`` list for a game into the vig-free
``MarketSnapshot`` consumed by the matchup models and the edge calculator,
and tracks opening lines so callers can detect line movement.

Quote selection: the **first** quote supplied for each market is used.
Callers order quotes (most recent first, preferred book first) before
handing them in; quotes are never averaged across books.  If that first
quote lacks a price on either side (or a line, for totals and spreads) the
market stays unpriced; later quotes for the same market are not consulted.

Opening lines are held in an :class:`OpeningLineStore` that the caller owns
and passes in.  Nothing in this module keeps module-level state.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from sportsedge.core.matchup_interface import MarketQuote, MarketSnapshot
from sportsedge.core.odds_math import remove_vig

logger = logging.getLogger(__name__)

# Moneyline movement (American-odds points) considered significant / sharp.
ML_MOVEMENT_THRESHOLD = 20
ML_SHARP_THRESHOLD = 50

# Total movement (points) considered significant / sharp.
TOTAL_MOVEMENT_THRESHOLD = 0.5
TOTAL_SHARP_THRESHOLD = 1.0


def first_quotes(quotes: Optional[Iterable[MarketQuote]]) -> Dict[str, MarketQuote]:
    """Map each normalised market to its first quote, when that quote is usable."""
    selected: Dict[str, MarketQuote] = {}
    seen = set()
    for quote in quotes or []:
        market = quote.normalized_market
        if market is None:
            logger.debug("Ignoring quote with unknown market %r", quote.market)
            continue
        if market in seen:
            continue
        seen.add(market)
        side_a, side_b = quote.two_sided_prices()
        if not side_a or not side_b:
            logger.debug("First %s quote from %s is missing a price", market, quote.book)
            continue
        if market in ("total", "spread") and quote.line is None:
            logger.debug("First %s quote from %s is missing a line", market, quote.book)
            continue
        selected[market] = quote
    return selected


def market_probabilities(quotes: Optional[Iterable[MarketQuote]]) -> MarketSnapshot:
    """
    Build the vig-free market snapshot for one game.

    Each two-sided market is run through
    :func:`~sportsedge.core.odds_math.remove_vig`.  Markets that are not
    quoted (or quoted with an unknown side) leave their fields ``None``.
    """
    selected = first_quotes(quotes)
    values: Dict[str, object] = {}
    books: List[str] = []

    ml = selected.get("moneyline")
    if ml is not None:
        fair = remove_vig(*ml.two_sided_prices())
        values.update(ml_home=fair.fair_prob_a, ml_away=fair.fair_prob_b,
                      ml_vig_percent=fair.vig_percent)
        books.append(ml.book)

    total = selected.get("total")
    if total is not None:
        fair = remove_vig(*total.two_sided_prices())
        values.update(total_over=fair.fair_prob_a, total_under=fair.fair_prob_b,
                      total_line=total.line, total_vig_percent=fair.vig_percent)
        books.append(total.book)

    spread = selected.get("spread")
    if spread is not None:
        fair = remove_vig(*spread.two_sided_prices())
        values.update(spread_home=fair.fair_prob_a, spread_away=fair.fair_prob_b,
                      spread_line=spread.line)
        books.append(spread.book)

    return MarketSnapshot(book=next((b for b in books if b), ""), **values)


# ---------------------------------------------------------------------------
# Opening lines and movement
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class OpeningLine:
    """First-seen prices for one (game, book, market)."""

    home: Optional[int] = None
    away: Optional[int] = None
    total: Optional[float] = None


@dataclass(frozen=True)
class LineMovement:
    """Direction and strength of the move from the opening line."""

    direction: Optional[str] = None   # toward_home | toward_away | toward_over | toward_under
    is_sharp: bool = False
    ml_movement: Optional[float] = None
    total_movement: Optional[float] = None


class OpeningLineStore:
    """
    Caller-owned store of opening lines.

    Keyed by ``(game_id, book, market)``.  The first write for a key wins;
    later quotes never overwrite an opening line.
    """

    def __init__(self):
        self._lines: Dict[Tuple[str, str, str], OpeningLine] = {}

    @staticmethod
    def _key(game_id: str, book: str, market: str) -> Tuple[str, str, str]:
        return (str(game_id), book or "", market)

    def get(self, game_id: str, book: str, market: str) -> OpeningLine:
        """Return the opening line, or an empty one if nothing was recorded."""
        return self._lines.get(self._key(game_id, book, market), OpeningLine())

    def record(self, game_id: str, quote: MarketQuote) -> bool:
        """Record ``quote`` as the opening line if none exists yet.

        Returns True when the quote became the opening line.
        """
        market = quote.normalized_market
        if market is None:
            return False
        key = self._key(game_id, quote.book, market)
        if key in self._lines:
            return False
        if market == "total":
            self._lines[key] = OpeningLine(total=quote.line)
        else:
            self._lines[key] = OpeningLine(home=quote.price_home, away=quote.price_away)
        return True

    def record_all(self, game_id: str, quotes: Iterable[MarketQuote]) -> int:
        return sum(1 for q in quotes if self.record(game_id, q))

    def __len__(self) -> int:
        return len(self._lines)


def detect_line_movement(quote: MarketQuote, opening: OpeningLine) -> LineMovement:
    """
    Compare a current quote with its opening line.

    Moneyline: a move in the home price of more than 20 points sets the
    direction (``toward_home`` when the price rose, ``toward_away`` when it
    fell), sharp above 50 points.  Totals: a move of more than half a point
    sets the direction, sharp above one point.  When both moved, the totals
    move wins.
    """
    direction: Optional[str] = None
    is_sharp = False
    ml_move: Optional[float] = None
    total_move: Optional[float] = None

    if opening.home and quote.price_home:
        ml_move = float(quote.price_home - opening.home)
        if abs(ml_move) > ML_MOVEMENT_THRESHOLD:
            direction = "toward_home" if ml_move > 0 else "toward_away"
            is_sharp = abs(ml_move) > ML_SHARP_THRESHOLD

    if opening.total and quote.line:
        total_move = float(quote.line - opening.total)
        if abs(total_move) > TOTAL_MOVEMENT_THRESHOLD:
            direction = "toward_over" if total_move > 0 else "toward_under"
            is_sharp = abs(total_move) > TOTAL_SHARP_THRESHOLD

    return LineMovement(
        direction=direction,
        is_sharp=is_sharp,
        ml_movement=ml_move,
        total_movement=total_move,
    )


def movements_for_game(
    game_id: str,
    quotes: Iterable[MarketQuote],
    store: OpeningLineStore,
) -> Dict[str, LineMovement]:
    """Line movement per market for the first quote of each market."""
    movements: Dict[str, LineMovement] = {}
    for market, quote in first_quotes(quotes).items():
        if market == "spread":
            continue
        opening = store.get(game_id, quote.book, market)
        movements[market] = detect_line_movement(quote, opening)
    return movements
