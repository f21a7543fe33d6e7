"""
Parlay combination engine.

Builds ranked multi-leg parlays from a pool of candidate bets:

    Enumerate → Correlation filter → Metrics → Rank → Truncate

Every size-``leg_count`` subset of the pool is enumerated exactly once by
backtracking.  Subsets are rejected by an ordered list of declarative
correlation rules, priced assuming leg independence, ranked by the chosen
strategy and truncated.

Legs are treated as independent once the correlation rules have removed the
obviously dependent pairs.  Joint probability is therefore the product of leg
probabilities, which overstates the true joint probability for any residual
positive correlation.

Enumeration is C(n, k).  Callers keep the pool to tens of candidates; the
``max_candidates`` bound (env ``PARLAY_MAX_CANDIDATES``, default 150) trims
larger pools by leg quality before enumeration starts.
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np
from dotenv import load_dotenv

from sportsedge.core.odds_math import american_to_decimal, decimal_to_american
from sportsedge.services.bet_assembler import CandidateBet, Confidence

load_dotenv()

logger = logging.getLogger(__name__)

MIN_LEGS = 2
MAX_LEGS = 10

MAX_BETS_FOR_COMBINATIONS = int(os.getenv("PARLAY_MAX_CANDIDATES", "150"))
DEFAULT_MAX_PARLAYS = int(os.getenv("PARLAY_MAX_RESULTS", "10"))

SINGLE_GAME = "single_game"
MULTI_GAME = "multi_game"

# Confidence level → [0, 1] weight for the quality score.
CONFIDENCE_WEIGHTS: Dict[str, float] = {
    "very_low": 0.2,
    "low": 0.4,
    "medium": 0.6,
    "high": 0.8,
    "very_high": 1.0,
}

# Quality tiers, highest first.
QUALITY_TIERS: Tuple[Tuple[float, str], ...] = (
    (70.0, "elite"),
    (55.0, "premium"),
    (40.0, "solid"),
    (25.0, "speculative"),
)


# ---------------------------------------------------------------------------
# Quality score
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class QualityWeights:
    """Weights of the quality composite.  All must be positive."""

    probability: float = 0.50
    edge: float = 0.35
    confidence: float = 0.15

    def __post_init__(self):
        for name in ("probability", "edge", "confidence"):
            if getattr(self, name) <= 0:
                raise ValueError(f"Quality weight {name!r} must be positive, got {getattr(self, name)!r}")

    @classmethod
    def from_env(cls) -> "QualityWeights":
        """``PARLAY_QUALITY_WEIGHTS="0.5,0.35,0.15"``; defaults when unset."""
        raw = os.getenv("PARLAY_QUALITY_WEIGHTS", "").strip()
        if not raw:
            return cls()
        parts = [p.strip() for p in raw.split(",")]
        if len(parts) != 3:
            raise ValueError(f"PARLAY_QUALITY_WEIGHTS needs 3 values, got {raw!r}")
        return cls(*(float(p) for p in parts))


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def quality_score(
    probability: float,
    edge: float,
    confidence_weight: float,
    weights: Optional[QualityWeights] = None,
) -> float:
    """Composite 0–100 score; non-decreasing in each input."""
    w = weights or QualityWeights()
    return (
        _clamp01(probability) * w.probability
        + _clamp01(edge) * w.edge
        + _clamp01(confidence_weight) * w.confidence
    ) * 100.0


def quality_tier(score: float) -> str:
    for threshold, tier in QUALITY_TIERS:
        if score >= threshold:
            return tier
    return "longshot"


# ---------------------------------------------------------------------------
# Correlation rules
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CorrelationRule:
    """A pairwise exclusion.  ``violates`` is True when two legs cannot share a parlay."""

    tag: str = "CorrelationRule"

    def applies(self, parlay_type: str) -> bool:
        return True

    def violates(self, a: CandidateBet, b: CandidateBet) -> bool:
        raise NotImplementedError


@dataclass(frozen=True)
class SingleGameOnly(CorrelationRule):
    tag: str = "SingleGameOnly"

    def applies(self, parlay_type: str) -> bool:
        return parlay_type == SINGLE_GAME

    def violates(self, a: CandidateBet, b: CandidateBet) -> bool:
        return a.game_id != b.game_id


@dataclass(frozen=True)
class SameGameExclusivePair(CorrelationRule):
    """Moneyline with spread, or moneyline with total, from one game."""

    tag: str = "SameGameExclusivePair"
    exclusive_pairs: Tuple[frozenset, ...] = (
        frozenset(("moneyline", "spread")),
        frozenset(("moneyline", "total")),
    )

    def violates(self, a: CandidateBet, b: CandidateBet) -> bool:
        if a.game_id != b.game_id:
            return False
        return frozenset((a.bet_type, b.bet_type)) in self.exclusive_pairs


@dataclass(frozen=True)
class SamePlayerExclusive(CorrelationRule):
    tag: str = "SamePlayerExclusive"

    def violates(self, a: CandidateBet, b: CandidateBet) -> bool:
        return a.player_id is not None and a.player_id == b.player_id


@dataclass(frozen=True)
class SameTeamRepeat(CorrelationRule):
    """Two team-level legs from one game backing the same team."""

    tag: str = "SameTeamRepeat"

    def violates(self, a: CandidateBet, b: CandidateBet) -> bool:
        if a.game_id != b.game_id or a.is_player_bet or b.is_player_bet:
            return False
        return (a.team or a.selection) == (b.team or b.selection)


DEFAULT_RULES: Tuple[CorrelationRule, ...] = (
    SingleGameOnly(),
    SameGameExclusivePair(),
    SamePlayerExclusive(),
    SameTeamRepeat(),
)


def first_violation(
    legs: Sequence[CandidateBet],
    parlay_type: str = MULTI_GAME,
    rules: Sequence[CorrelationRule] = DEFAULT_RULES,
) -> Optional[str]:
    """Tag of the first rule any pair of ``legs`` breaks, or None."""
    active = [r for r in rules if r.applies(parlay_type)]
    for i in range(len(legs)):
        for j in range(i + 1, len(legs)):
            for rule in active:
                if rule.violates(legs[i], legs[j]):
                    return rule.tag
    return None


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

class ParlayStrategy(str, Enum):
    SAFE = "safe"
    BALANCED = "balanced"
    VALUE = "value"
    HOMERUN = "homerun"

    @classmethod
    def parse(cls, value: Union["ParlayStrategy", str]) -> "ParlayStrategy":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(
                f"Unknown parlay strategy {value!r}; expected one of "
                f"{', '.join(s.value for s in cls)}"
            ) from None


@dataclass(frozen=True)
class StrategyProfile:
    sort_attr: str
    max_decimal_odds: float
    min_probability: float
    min_edge: float
    min_quality: float


STRATEGY_PROFILES: Dict[ParlayStrategy, StrategyProfile] = {
    ParlayStrategy.SAFE: StrategyProfile("probability", 10.0, 0.52, 0.02, 40.0),
    ParlayStrategy.BALANCED: StrategyProfile("quality_score", 30.0, 0.45, 0.05, 35.0),
    ParlayStrategy.VALUE: StrategyProfile("edge", 50.0, 0.40, 0.15, 25.0),
    ParlayStrategy.HOMERUN: StrategyProfile("decimal_odds", 100.0, 0.10, 0.10, 0.0),
}


# ---------------------------------------------------------------------------
# Parlay
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Parlay:
    legs: Tuple[CandidateBet, ...]
    probability: float
    decimal_odds: float
    implied_probability: float
    edge: float
    expected_value: float
    confidence: str          # high | medium | low
    quality_score: float
    sport: str
    parlay_type: str

    @property
    def american_odds(self) -> int:
        return decimal_to_american(self.decimal_odds)

    @property
    def tier(self) -> str:
        return quality_tier(self.quality_score)

    @property
    def game_ids(self) -> Tuple[str, ...]:
        return tuple(dict.fromkeys(leg.game_id for leg in self.legs))


def _aggregate_confidence(legs: Sequence[CandidateBet]) -> str:
    mean_level = float(np.mean([int(leg.confidence) for leg in legs]))
    if mean_level >= 4:
        return "high"
    if mean_level >= 3:
        return "medium"
    return "low"


def _parlay_sport(legs: Sequence[CandidateBet]) -> str:
    sports = {leg.sport for leg in legs if leg.sport}
    if len(sports) == 1:
        return sports.pop()
    return "mixed" if sports else ""


def calculate_parlay_metrics(
    legs: Sequence[CandidateBet],
    parlay_type: str = MULTI_GAME,
    weights: Optional[QualityWeights] = None,
) -> Parlay:
    """
    Price a combination of legs as independent events.

        probability = Π p_i
        decimal     = Π d_i
        implied     = 1 / decimal
        edge        = (probability − implied) / implied
        EV          = probability × (decimal − 1) − (1 − probability)
    """
    probability = float(np.prod([leg.probability for leg in legs]))
    decimal_odds = float(np.prod([american_to_decimal(leg.american_odds) for leg in legs]))
    implied = 1.0 / decimal_odds if decimal_odds > 0 else 0.0
    edge = (probability - implied) / implied if implied > 0 else 0.0
    ev = probability * (decimal_odds - 1.0) - (1.0 - probability)
    confidence = _aggregate_confidence(legs)

    return Parlay(
        legs=tuple(legs),
        probability=probability,
        decimal_odds=decimal_odds,
        implied_probability=implied,
        edge=edge,
        expected_value=ev,
        confidence=confidence,
        quality_score=quality_score(probability, edge, CONFIDENCE_WEIGHTS[confidence], weights),
        sport=_parlay_sport(legs),
        parlay_type=parlay_type,
    )


# ---------------------------------------------------------------------------
# Enumeration
# ---------------------------------------------------------------------------

def enumerate_combinations(n: int, k: int) -> Iterator[Tuple[int, ...]]:
    """Every k-subset of ``range(n)`` exactly once, in lexicographic order."""
    if k <= 0 or k > n:
        return
    chosen: List[int] = []

    def backtrack(start: int) -> Iterator[Tuple[int, ...]]:
        if len(chosen) == k:
            yield tuple(chosen)
            return
        # Leave room for the legs still to be chosen.
        for i in range(start, n - (k - len(chosen)) + 1):
            chosen.append(i)
            yield from backtrack(i + 1)
            chosen.pop()

    yield from backtrack(0)


def _leg_quality(candidate: CandidateBet, weights: Optional[QualityWeights]) -> float:
    confidence = Confidence.parse(candidate.confidence) or Confidence.VERY_LOW
    return quality_score(
        candidate.probability, candidate.edge, CONFIDENCE_WEIGHTS[confidence.label], weights
    )


def bound_candidate_pool(
    candidates: Sequence[CandidateBet],
    max_candidates: int,
    weights: Optional[QualityWeights] = None,
) -> List[CandidateBet]:
    """
    Keep the best ``max_candidates`` by (quality, edge, probability).

    Survivors keep their original relative order so enumeration order, and
    with it tie-breaking, does not depend on the bound.
    """
    if max_candidates <= 0 or len(candidates) <= max_candidates:
        return list(candidates)
    ranked = sorted(
        range(len(candidates)),
        key=lambda i: (
            _leg_quality(candidates[i], weights),
            candidates[i].edge,
            candidates[i].probability,
        ),
        reverse=True,
    )
    keep = set(ranked[:max_candidates])
    logger.info("Bounded candidate pool from %d to %d", len(candidates), max_candidates)
    return [c for i, c in enumerate(candidates) if i in keep]


def _passes_strategy_limits(parlay: Parlay, profile: StrategyProfile) -> bool:
    return (
        parlay.decimal_odds <= profile.max_decimal_odds
        and parlay.probability >= profile.min_probability
        and parlay.edge >= profile.min_edge
        and parlay.quality_score >= profile.min_quality
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def build_parlays(
    candidates: Sequence[CandidateBet],
    leg_count: int = 3,
    strategy: Union[ParlayStrategy, str] = ParlayStrategy.BALANCED,
    max_parlays: Optional[int] = None,
    parlay_type: str = MULTI_GAME,
    game_id: Optional[str] = None,
    max_candidates: Optional[int] = None,
    apply_strategy_limits: bool = False,
    weights: Optional[QualityWeights] = None,
    rules: Sequence[CorrelationRule] = DEFAULT_RULES,
) -> List[Parlay]:
    """
    Build and rank parlays of exactly ``leg_count`` legs.

    Args:
        candidates: Candidate pool (order matters only for tie-breaking).
        leg_count: Legs per parlay, 2 to 10.
        strategy: ``safe`` (probability), ``balanced`` (quality score),
            ``value`` (edge) or ``homerun`` (decimal odds).
        max_parlays: Results to return; env ``PARLAY_MAX_RESULTS`` default.
        parlay_type: ``multi_game`` or ``single_game`` (all legs one game).
        game_id: Restrict the pool to one game.
        max_candidates: Pool bound before enumeration; env
            ``PARLAY_MAX_CANDIDATES`` default (150).
        apply_strategy_limits: Drop parlays outside the strategy's odds
            ceiling and probability / edge / quality floors.
        weights: Quality-score weights; env ``PARLAY_QUALITY_WEIGHTS`` default.
        rules: Ordered correlation rules.

    Returns:
        Ranked parlays, best first.  Empty when no valid parlay exists.
    """
    profile = STRATEGY_PROFILES[ParlayStrategy.parse(strategy)]
    weights = weights or QualityWeights.from_env()
    max_parlays = DEFAULT_MAX_PARLAYS if max_parlays is None else max_parlays
    max_candidates = MAX_BETS_FOR_COMBINATIONS if max_candidates is None else max_candidates

    if not MIN_LEGS <= leg_count <= MAX_LEGS:
        logger.warning("leg_count %d outside %d-%d, no parlays built", leg_count, MIN_LEGS, MAX_LEGS)
        return []

    pool = list(candidates)
    if game_id is not None:
        pool = [c for c in pool if c.game_id == game_id]
        if not pool:
            logger.warning("No candidates for game %s", game_id)
            return []

    if len(pool) < leg_count:
        logger.info("Not enough candidates for %d-leg parlays (have %d)", leg_count, len(pool))
        return []

    pool = bound_candidate_pool(pool, max_candidates, weights)

    survivors: List[Parlay] = []
    combos = 0
    rejected: Dict[str, int] = {}
    for indices in enumerate_combinations(len(pool), leg_count):
        combos += 1
        legs = [pool[i] for i in indices]
        tag = first_violation(legs, parlay_type, rules)
        if tag is not None:
            rejected[tag] = rejected.get(tag, 0) + 1
            continue
        parlay = calculate_parlay_metrics(legs, parlay_type, weights)
        if apply_strategy_limits and not _passes_strategy_limits(parlay, profile):
            continue
        survivors.append(parlay)

    if game_id is not None:
        survivors = [p for p in survivors if all(leg.game_id == game_id for leg in p.legs)]

    survivors.sort(key=lambda p: getattr(p, profile.sort_attr), reverse=True)
    top = survivors[:max(0, max_parlays)]

    logger.info(
        "Parlays: %d combinations, %d survivors, returning %d (strategy=%s, rejected=%s)",
        combos, len(survivors), len(top), strategy, rejected or "none",
    )
    return top


def format_parlay_ticket(parlay: Parlay) -> str:
    """Human-readable summary of a parlay ticket."""
    american = parlay.american_odds
    lines = [
        f"{len(parlay.legs)}-Leg Parlay @ {american:+d} ({parlay.tier})",
        f"   Legs: {' + '.join(leg.selection for leg in parlay.legs)}",
        f"   Joint Prob: {parlay.probability:.2%}",
        f"   Expected Value: {parlay.expected_value:.4f} units",
        f"   Edge: {parlay.edge:.2%}",
        f"   Quality: {parlay.quality_score:.1f} ({parlay.confidence} confidence)",
    ]
    return "\n".join(lines)
