"""
Edge calculation — model probabilities against the vig-free market.

    edge = our_probability − market_fair_probability

Game-level edges are clamped to ±``edge_cap`` (0.10) and matchup-level
(player) edges to ±``player_edge_cap`` (0.25).  Clamping is silent.  Edges
whose magnitude sits under the sport's noise floor are reported as ``None``,
which means "no edge computed" and is never the same as 0.

Totals are priced two ways:

* **Probability-based** when the matchup estimate carries an over
  probability (the run-scoring model's Poisson total).
* **Gap-based** otherwise: ``gap = predicted_total − market_line``; a gap
  wider than ``min_total_gap`` gives the favoured side
  ``min(total_edge_ceiling, |gap| × total_edge_sensitivity)`` and the other
  side exactly the negative.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Tuple

from sportsedge.core.matchup_interface import (
    GameContext,
    MarketQuote,
    MarketSnapshot,
    MatchupEstimate,
    NullMatchupModel,
)
from sportsedge.core.sport_config import SportConfig, get_sport_config
from sportsedge.services.market import (
    LineMovement,
    OpeningLineStore,
    market_probabilities,
    movements_for_game,
)
from sportsedge.services.matchup_engine import get_matchup_model

logger = logging.getLogger(__name__)

MODEL_VERSION = "v1.0.0"

# Used when a sport has no named configuration.
DEFAULT_EDGE_CAP = 0.10
DEFAULT_PLAYER_EDGE_CAP = 0.25


@dataclass(frozen=True)
class Edge:
    """Per-game edges.  ``None`` means not computed or below the noise floor."""

    edge_ml_home: Optional[float] = None
    edge_ml_away: Optional[float] = None
    edge_total_over: Optional[float] = None
    edge_total_under: Optional[float] = None

    def has_any(self) -> bool:
        return any(
            v is not None
            for v in (self.edge_ml_home, self.edge_ml_away,
                      self.edge_total_over, self.edge_total_under)
        )

    def to_dict(self) -> Dict[str, Optional[float]]:
        return {
            "edge_ml_home": self.edge_ml_home,
            "edge_ml_away": self.edge_ml_away,
            "edge_total_over": self.edge_total_over,
            "edge_total_under": self.edge_total_under,
        }


@dataclass(frozen=True)
class GameEdgeReport:
    """Everything the edge pass produced for one game."""

    game_id: str
    sport: str
    estimate: MatchupEstimate
    market: MarketSnapshot
    edges: Edge
    our_total: Optional[float] = None
    market_total: Optional[float] = None
    model_version: str = MODEL_VERSION
    movements: Dict[str, LineMovement] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Primitives
# ---------------------------------------------------------------------------

def raw_edge(our_prob: Optional[float], market_prob: Optional[float]) -> Optional[float]:
    """Uncapped ``ours − market``; ``None`` if either side is missing."""
    if our_prob is None or market_prob is None:
        return None
    return our_prob - market_prob


def cap_edge(edge: Optional[float], cap: float = DEFAULT_EDGE_CAP) -> Optional[float]:
    if edge is None:
        return None
    return max(-cap, min(cap, edge))


def apply_noise_floor(edge: Optional[float], floor: float) -> Optional[float]:
    if edge is None or abs(edge) < floor:
        return None
    return edge


def totals_gap_edges(
    predicted_total: Optional[float],
    market_line: Optional[float],
    config: SportConfig,
) -> Tuple[Optional[float], Optional[float]]:
    """``(over, under)`` edges from the predicted-vs-line gap."""
    if predicted_total is None or market_line is None:
        return None, None
    gap = predicted_total - market_line
    if abs(gap) <= config.min_total_gap:
        return None, None
    magnitude = min(config.total_edge_ceiling, abs(gap) * config.total_edge_sensitivity)
    if gap > 0:
        return magnitude, -magnitude
    return -magnitude, magnitude


def _finish(edge: Optional[float], cap: float, floor: float) -> Optional[float]:
    return apply_noise_floor(cap_edge(edge, cap), floor)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def compute_edges(
    estimate: MatchupEstimate,
    market: MarketSnapshot,
    config: Optional[SportConfig] = None,
) -> Edge:
    """
    Moneyline and totals edges for one game.

    Without a ``config`` (unknown sport), or for an estimate produced by the
    null model, every edge is ``None``.
    """
    if config is None or estimate.model_name == NullMatchupModel.model_name:
        return Edge()

    cap = config.edge_cap
    ml_home = ml_away = None
    if market.has_moneyline():
        ml_home = _finish(raw_edge(estimate.home_win, market.ml_home), cap, config.ml_noise_floor)
        ml_away = _finish(raw_edge(estimate.away_win, market.ml_away), cap, config.ml_noise_floor)

    over = under = None
    if market.has_total():
        if estimate.supports_total_pricing():
            raw_over = raw_edge(estimate.over_prob, market.total_over)
            raw_under = raw_edge(estimate.under_prob, market.total_under)
        else:
            raw_over, raw_under = totals_gap_edges(
                estimate.predicted_total, market.total_line, config
            )
        over = _finish(raw_over, cap, config.total_noise_floor)
        under = _finish(raw_under, cap, config.total_noise_floor)

    return Edge(
        edge_ml_home=ml_home,
        edge_ml_away=ml_away,
        edge_total_over=over,
        edge_total_under=under,
    )


def compute_prop_edge(
    our_prob: Optional[float],
    market_prob: Optional[float],
    cap: float = DEFAULT_PLAYER_EDGE_CAP,
) -> Optional[float]:
    """Matchup-level (player) edge, clamped to ±``cap``.  No noise floor."""
    return cap_edge(raw_edge(our_prob, market_prob), cap)


def analyze_game(
    game: GameContext,
    quotes: Iterable[MarketQuote],
    opening_store: Optional[OpeningLineStore] = None,
    config: Optional[SportConfig] = None,
) -> GameEdgeReport:
    """
    Full edge pass for one game: market snapshot, model estimate, edges.

    When ``opening_store`` is given, the game's quotes are first offered to
    it as opening lines (first write wins) and line movement against the
    stored openers is reported.
    """
    quotes = list(quotes or [])
    config = config or get_sport_config(game.sport)
    market = market_probabilities(quotes)

    model = get_matchup_model(game.sport, config)
    estimate = model.estimate_probabilities(game, market)
    edges = compute_edges(estimate, market, config)

    movements: Dict[str, LineMovement] = {}
    if opening_store is not None:
        opening_store.record_all(game.game_id, quotes)
        movements = movements_for_game(game.game_id, quotes, opening_store)

    if edges.has_any():
        logger.info(
            "Game %s (%s): ML %s/%s, total %s/%s",
            game.game_id, game.sport, edges.edge_ml_home, edges.edge_ml_away,
            edges.edge_total_over, edges.edge_total_under,
        )
    else:
        logger.debug("Game %s (%s): no edges above noise floor", game.game_id, game.sport)

    return GameEdgeReport(
        game_id=game.game_id,
        sport=game.sport,
        estimate=estimate,
        market=market,
        edges=edges,
        our_total=estimate.predicted_total,
        market_total=market.total_line,
        movements=movements,
    )
