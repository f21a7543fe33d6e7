"""
Bet candidate assembly. Flattens game edges and player props into a pool.

Every candidate carries a correlation key ``(game_id, bet_class, player_id)``
that the parlay engine's correlation rules read.  Candidate probability is
the vig-free market probability for that side plus our edge, and the price
is the quoted price for that side.

This module does no modelling of its own: it maps and filters.
"""

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, Iterable, List, NamedTuple, Optional, Union

from sportsedge.core.matchup_interface import MarketQuote
from sportsedge.core.odds_math import american_to_implied, remove_vig
from sportsedge.services.edge_calculator import GameEdgeReport, compute_prop_edge
from sportsedge.services.market import first_quotes

logger = logging.getLogger(__name__)


class Confidence(IntEnum):
    VERY_LOW = 1
    LOW = 2
    MEDIUM = 3
    HIGH = 4
    VERY_HIGH = 5

    @property
    def label(self) -> str:
        return self.name.lower()

    @classmethod
    def parse(cls, value: Union["Confidence", str, int, None]) -> Optional["Confidence"]:
        """Accept an enum member, its label (``"very_high"``) or its ordinal."""
        if value is None or isinstance(value, cls):
            return value
        if isinstance(value, int):
            try:
                return cls(value)
            except ValueError:
                return None
        return cls.__members__.get(str(value).strip().upper())


# Edge magnitude thresholds, strongest first.
_CONFIDENCE_THRESHOLDS = (
    (0.10, Confidence.VERY_HIGH),
    (0.07, Confidence.HIGH),
    (0.05, Confidence.MEDIUM),
    (0.03, Confidence.LOW),
)


def confidence_from_edge(edge: Optional[float]) -> Confidence:
    if edge is None:
        return Confidence.VERY_LOW
    for threshold, level in _CONFIDENCE_THRESHOLDS:
        if edge >= threshold:
            return level
    return Confidence.VERY_LOW


class CorrelationKey(NamedTuple):
    game_id: str
    bet_class: str          # moneyline | total | spread | player_prop
    player_id: Optional[str] = None


@dataclass(frozen=True)
class CandidateBet:
    """One wagerable leg."""

    game_id: str
    bet_type: str
    selection: str
    american_odds: int
    probability: float
    edge: float
    confidence: Confidence
    correlation_key: CorrelationKey
    team: Optional[str] = None
    player_id: Optional[str] = None
    sport: str = ""
    line: Optional[float] = None

    @property
    def is_player_bet(self) -> bool:
        return self.player_id is not None


@dataclass
class PropLine:
    """A posted player prop with our projection for it."""

    game_id: str
    player_id: str
    player_name: str
    stat: str                       # e.g. "hits", "strikeouts"
    line: float
    pick: str                       # over | under
    american_odds: int
    our_probability: float
    opposite_odds: Optional[int] = None
    team: Optional[str] = None
    sport: str = ""
    confidence: Optional[Union[Confidence, str]] = None


# ---------------------------------------------------------------------------
# Game candidates
# ---------------------------------------------------------------------------

def _candidate(
    report: GameEdgeReport,
    bet_type: str,
    selection: str,
    price: Optional[int],
    fair_prob: Optional[float],
    edge: Optional[float],
    team: Optional[str] = None,
    line: Optional[float] = None,
) -> Optional[CandidateBet]:
    if edge is None or fair_prob is None or not price:
        return None
    return CandidateBet(
        game_id=report.game_id,
        bet_type=bet_type,
        selection=selection,
        american_odds=int(price),
        probability=max(0.0, min(1.0, fair_prob + edge)),
        edge=edge,
        confidence=confidence_from_edge(edge),
        correlation_key=CorrelationKey(report.game_id, bet_type),
        team=team,
        sport=report.sport,
        line=line,
    )


def assemble_game_candidates(
    report: GameEdgeReport,
    quotes: Iterable[MarketQuote],
    home_abbr: str = "",
    away_abbr: str = "",
    spread_edges: Optional[Dict[str, Optional[float]]] = None,
) -> List[CandidateBet]:
    """
    Candidates for every priced side of one game.

    ``spread_edges`` is ``{"home": edge, "away": edge}`` from the caller's
    own spread model; the core does not price spreads.
    """
    selected = first_quotes(quotes)
    market = report.market
    edges = report.edges
    out: List[Optional[CandidateBet]] = []

    ml = selected.get("moneyline")
    if ml is not None:
        out.append(_candidate(report, "moneyline", home_abbr or "home", ml.price_home,
                              market.ml_home, edges.edge_ml_home, team=home_abbr or None))
        out.append(_candidate(report, "moneyline", away_abbr or "away", ml.price_away,
                              market.ml_away, edges.edge_ml_away, team=away_abbr or None))

    total = selected.get("total")
    if total is not None:
        over_price, under_price = total.two_sided_prices()
        out.append(_candidate(report, "total", "over", over_price, market.total_over,
                              edges.edge_total_over, line=total.line))
        out.append(_candidate(report, "total", "under", under_price, market.total_under,
                              edges.edge_total_under, line=total.line))

    spread = selected.get("spread")
    if spread is not None and spread_edges:
        away_line = -spread.line if spread.line is not None else None
        out.append(_candidate(report, "spread", home_abbr or "home", spread.price_home,
                              market.spread_home, spread_edges.get("home"),
                              team=home_abbr or None, line=spread.line))
        out.append(_candidate(report, "spread", away_abbr or "away", spread.price_away,
                              market.spread_away, spread_edges.get("away"),
                              team=away_abbr or None, line=away_line))

    return [c for c in out if c is not None]


# ---------------------------------------------------------------------------
# Prop candidates
# ---------------------------------------------------------------------------

def _prop_market_probability(prop: PropLine) -> float:
    if prop.opposite_odds:
        return remove_vig(prop.american_odds, prop.opposite_odds).fair_prob_a
    return american_to_implied(prop.american_odds)


def assemble_prop_candidates(props: Iterable[PropLine]) -> List[CandidateBet]:
    candidates: List[CandidateBet] = []
    for prop in props:
        if not prop.american_odds:
            logger.debug("Skipping prop %s %s without a price", prop.player_name, prop.stat)
            continue
        market_prob = _prop_market_probability(prop)
        edge = compute_prop_edge(prop.our_probability, market_prob)
        if edge is None:
            continue
        confidence = Confidence.parse(prop.confidence) or confidence_from_edge(edge)
        candidates.append(CandidateBet(
            game_id=prop.game_id,
            bet_type="player_prop",
            selection=f"{prop.player_name} {prop.pick} {prop.line:g} {prop.stat}",
            american_odds=int(prop.american_odds),
            probability=prop.our_probability,
            edge=edge,
            confidence=confidence,
            correlation_key=CorrelationKey(prop.game_id, "player_prop", prop.player_id),
            team=prop.team,
            player_id=prop.player_id,
            sport=prop.sport,
            line=prop.line,
        ))
    return candidates


# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------

def filter_candidates(
    candidates: Iterable[CandidateBet],
    min_edge: float = 0.0,
    min_confidence: Union[Confidence, str, int, None] = None,
) -> List[CandidateBet]:
    """Keep candidates with ``edge ≥ min_edge`` and confidence ≥ the floor."""
    floor = Confidence.parse(min_confidence)
    if min_confidence is not None and floor is None:
        raise ValueError(f"Unknown confidence level: {min_confidence!r}")
    return [
        c for c in candidates
        if c.edge >= min_edge and (floor is None or c.confidence >= floor)
    ]


@dataclass
class GameInput:
    """One game's report plus the quotes it was computed from."""

    report: GameEdgeReport
    quotes: List[MarketQuote] = field(default_factory=list)
    home_abbr: str = ""
    away_abbr: str = ""
    spread_edges: Optional[Dict[str, Optional[float]]] = None


def build_candidate_pool(
    games: Iterable[GameInput] = (),
    props: Iterable[PropLine] = (),
    min_edge: float = 0.0,
    min_confidence: Union[Confidence, str, int, None] = None,
) -> List[CandidateBet]:
    """Game candidates followed by prop candidates, filtered."""
    pool: List[CandidateBet] = []
    for game in games:
        pool.extend(assemble_game_candidates(
            game.report, game.quotes, game.home_abbr, game.away_abbr, game.spread_edges,
        ))
    pool.extend(assemble_prop_candidates(props))

    kept = filter_candidates(pool, min_edge=min_edge, min_confidence=min_confidence)
    logger.info("Candidate pool: %d assembled, %d after filters", len(pool), len(kept))
    return kept
