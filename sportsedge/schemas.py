"""
Pydantic schemas for the artifacts the core hands to collaborators.

Field names are snake_case in Python and camelCase on the wire
(``model_dump(by_alias=True)``), matching what the persistence and
presentation layers consume.
"""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from sportsedge.services.edge_calculator import GameEdgeReport
from sportsedge.services.parlay_engine import Parlay


# ---------------------------------------------------------------------------
# Edge record
# ---------------------------------------------------------------------------

class EdgeRecord(BaseModel):
    """Per-game edge record, one row per analysed game."""

    game_id: str = Field(..., alias="gameId")
    sport: str
    edge_ml_home: Optional[float] = Field(None, alias="edgeMlHome", ge=-1.0, le=1.0)
    edge_ml_away: Optional[float] = Field(None, alias="edgeMlAway", ge=-1.0, le=1.0)
    edge_total_over: Optional[float] = Field(None, alias="edgeTotalOver", ge=-1.0, le=1.0)
    edge_total_under: Optional[float] = Field(None, alias="edgeTotalUnder", ge=-1.0, le=1.0)
    our_total: Optional[float] = Field(None, alias="ourTotal")
    market_total: Optional[float] = Field(None, alias="marketTotal")
    home_win_prob: float = Field(..., alias="homeWinProb", ge=0.0, le=1.0)
    model_version: str = Field(..., alias="modelVersion")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_report(cls, report: GameEdgeReport) -> "EdgeRecord":
        return cls(
            game_id=report.game_id,
            sport=report.sport,
            our_total=report.our_total,
            market_total=report.market_total,
            home_win_prob=report.estimate.home_win,
            model_version=report.model_version,
            **report.edges.to_dict(),
        )


# ---------------------------------------------------------------------------
# Parlays
# ---------------------------------------------------------------------------

class ParlayLegOut(BaseModel):
    game_id: str = Field(..., alias="gameId")
    bet_type: str = Field(..., alias="betType")
    selection: str
    odds: int
    probability: float = Field(..., ge=0.0, le=1.0)
    edge: float
    confidence: str
    player_id: Optional[str] = Field(None, alias="playerId")
    line: Optional[float] = None

    model_config = {"populate_by_name": True}

    @field_validator("odds")
    @classmethod
    def validate_american_odds(cls, v: int) -> int:
        if -100 < v < 100:
            raise ValueError(f"odds={v} is not valid American odds")
        return v


class ParlayOut(BaseModel):
    """Serialised parlay ticket."""

    legs: List[ParlayLegOut]
    total_odds: int = Field(..., alias="totalOdds", description="American odds of the ticket")
    decimal_odds: float = Field(..., alias="decimalOdds", gt=1.0)
    probability: float = Field(..., ge=0.0, le=1.0)
    edge: float
    expected_value: float = Field(..., alias="expectedValue")
    confidence: Literal["high", "medium", "low"]
    quality_score: float = Field(..., alias="qualityScore", ge=0.0)
    quality_tier: str = Field(..., alias="qualityTier")
    sport: str
    type: Literal["single_game", "multi_game"]

    model_config = {"populate_by_name": True}

    @field_validator("legs")
    @classmethod
    def validate_leg_count(cls, v: List[ParlayLegOut]) -> List[ParlayLegOut]:
        if not 2 <= len(v) <= 10:
            raise ValueError(f"a parlay needs 2-10 legs, got {len(v)}")
        return v

    @classmethod
    def from_parlay(cls, parlay: Parlay) -> "ParlayOut":
        legs = [
            ParlayLegOut(
                game_id=leg.game_id,
                bet_type=leg.bet_type,
                selection=leg.selection,
                odds=leg.american_odds,
                probability=leg.probability,
                edge=leg.edge,
                confidence=leg.confidence.label,
                player_id=leg.player_id,
                line=leg.line,
            )
            for leg in parlay.legs
        ]
        return cls(
            legs=legs,
            total_odds=parlay.american_odds,
            decimal_odds=parlay.decimal_odds,
            probability=parlay.probability,
            edge=parlay.edge,
            expected_value=parlay.expected_value,
            confidence=parlay.confidence,
            quality_score=parlay.quality_score,
            quality_tier=parlay.tier,
            sport=parlay.sport,
            type=parlay.parlay_type,
        )
