"""
Batter-vs-pitcher matchup sub-model and prop projection probabilities.

The batter/pitcher model is a handedness-aware OPS projection:

    1. Platoon advantage from batting side vs. throwing hand.
    2. Projected OPS from the batter's wOBA against that hand, the pitcher's
       wOBA allowed to that side, and the platoon bump.
    3. Sample-size confidence and a recommendation label.

``projection_probability`` turns a stat projection and a posted prop line
into a bounded win probability for the over or under.  It is deterministic:
the same projection and line always give the same probability.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

logger = logging.getLogger(__name__)

LEAGUE_WOBA = 0.320
BASELINE_OPS = 0.750
OPS_BOUNDS = (0.400, 1.200)

# Platoon advantage by (batting side vs. throwing hand) relationship.
PLATOON_SAME_HAND = -0.10
PLATOON_SWITCH = 0.05
PLATOON_OPPOSITE_HAND = 0.10

HIGH_CONFIDENCE_PA = 200
LOW_CONFIDENCE_PA = 100

PROP_PROB_BOUNDS = (0.42, 0.58)
PROP_PROB_SENSITIVITY = 0.3


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


# ---------------------------------------------------------------------------
# Player records
# ---------------------------------------------------------------------------

@dataclass
class SplitLine:
    """Rate line against one handedness."""
    woba: Optional[float] = None
    plate_appearances: int = 0


@dataclass
class BatterProfile:
    """
    Batter with handedness splits.

    ``bats`` is ``"L"``, ``"R"`` or ``"S"`` (switch).  ``splits`` is keyed by
    the pitcher's throwing hand, ``"L"`` or ``"R"``.
    """
    player_id: str
    name: str = ""
    team: str = ""
    bats: Optional[str] = None
    splits: Dict[str, SplitLine] = field(default_factory=dict)


@dataclass
class PitcherProfile:
    """
    Pitcher with splits keyed by the batter's side, ``"L"`` or ``"R"``.
    """
    player_id: str
    name: str = ""
    team: str = ""
    throws: Optional[str] = None
    splits: Dict[str, SplitLine] = field(default_factory=dict)


@dataclass(frozen=True)
class BatterPitcherMatchup:
    batter_id: str
    pitcher_id: str
    platoon_advantage: float
    projected_ops: float
    confidence: str          # high | medium | low
    pitch_mix_fit: float
    recommendation: str      # strong_favorable | favorable | neutral | unfavorable


# ---------------------------------------------------------------------------
# Batter vs. pitcher
# ---------------------------------------------------------------------------

def platoon_advantage(bats: Optional[str], throws: Optional[str]) -> float:
    """
    Platoon bump for a batter facing a pitcher.

    Same hand −0.10, switch hitter +0.05, opposite hand +0.10.  Unknown
    handedness on either side gives 0.
    """
    bats = (bats or "").upper()
    throws = (throws or "").upper()
    if bats not in ("L", "R", "S") or throws not in ("L", "R"):
        return 0.0
    if bats == "S":
        return PLATOON_SWITCH
    if bats == throws:
        return PLATOON_SAME_HAND
    return PLATOON_OPPOSITE_HAND


def _pitcher_split_side(bats: Optional[str]) -> str:
    # Switch hitters are looked up in the pitcher's vs-R split.
    bats = (bats or "").upper()
    return "L" if bats == "L" else "R"


def projected_ops(
    batter_split: Optional[SplitLine],
    pitcher_split: Optional[SplitLine],
    platoon: float,
) -> float:
    """OPS projection in [0.400, 1.200] starting from a 0.750 baseline."""
    ops = BASELINE_OPS
    if batter_split is not None and batter_split.woba is not None:
        ops = (batter_split.woba - LEAGUE_WOBA) * 2.5 + BASELINE_OPS
    if pitcher_split is not None and pitcher_split.woba is not None:
        ops += (LEAGUE_WOBA - pitcher_split.woba) * 1.5
    ops += platoon * 0.5
    return _clamp(ops, *OPS_BOUNDS)


def sample_confidence(
    batter_split: Optional[SplitLine],
    pitcher_split: Optional[SplitLine],
) -> str:
    batter_pa = batter_split.plate_appearances if batter_split else 0
    pitcher_pa = pitcher_split.plate_appearances if pitcher_split else 0
    if batter_pa >= HIGH_CONFIDENCE_PA and pitcher_pa >= HIGH_CONFIDENCE_PA:
        return "high"
    if batter_pa < LOW_CONFIDENCE_PA or pitcher_pa < LOW_CONFIDENCE_PA:
        return "low"
    return "medium"


def matchup_recommendation(ops: float, platoon: float) -> str:
    if ops > 0.850 and platoon > 0.05:
        return "strong_favorable"
    if ops > 0.800 or platoon > 0.05:
        return "favorable"
    if ops < 0.650 and platoon < -0.05:
        return "unfavorable"
    return "neutral"


def batter_vs_pitcher_matchup(
    batter: BatterProfile,
    pitcher: PitcherProfile,
) -> BatterPitcherMatchup:
    """Project one batter against one pitcher."""
    platoon = platoon_advantage(batter.bats, pitcher.throws)
    throws = (pitcher.throws or "").upper()
    batter_split = batter.splits.get(throws) if throws else None
    pitcher_split = pitcher.splits.get(_pitcher_split_side(batter.bats))

    ops = projected_ops(batter_split, pitcher_split, platoon)
    confidence = sample_confidence(batter_split, pitcher_split)

    logger.debug(
        "BvP %s vs %s: platoon %+.2f, OPS %.3f (%s)",
        batter.name or batter.player_id, pitcher.name or pitcher.player_id,
        platoon, ops, confidence,
    )

    return BatterPitcherMatchup(
        batter_id=batter.player_id,
        pitcher_id=pitcher.player_id,
        platoon_advantage=platoon,
        projected_ops=ops,
        confidence=confidence,
        pitch_mix_fit=0.5 + platoon * 0.3,
        recommendation=matchup_recommendation(ops, platoon),
    )


# ---------------------------------------------------------------------------
# Prop projections
# ---------------------------------------------------------------------------

def projection_probability(projection: Optional[float], line: Optional[float], pick: str) -> float:
    """
    Win probability of an over/under prop pick given a stat projection.

    ``pct = (projection − line) / line``; the over gets ``0.5 + pct × 0.3``
    and the under the mirror image, bounded to [0.42, 0.58].  Missing data
    or a non-positive line returns a coin flip.
    """
    if projection is None or line is None or line <= 0:
        return 0.5
    pct = (projection - line) / line
    over = _clamp(0.5 + pct * PROP_PROB_SENSITIVITY, *PROP_PROB_BOUNDS)
    if (pick or "").lower() == "under":
        return 1.0 - over
    return over
