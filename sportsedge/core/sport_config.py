"""Sport-level configuration — all sport-specific constants in one place.

This module is the **registry** for every constant that differs between
sports.  Nowhere else in the codebase should league averages, home-advantage
figures, edge caps, or noise floors be hard-coded.

Architecture
------------
:class:`SportConfig` is a frozen dataclass carrying all per-sport constants.
Named constructors (:meth:`SportConfig.nfl`, :meth:`SportConfig.nhl`,
:meth:`SportConfig.mlb`) return pre-populated instances, and
:func:`get_sport_config` resolves a sport identifier string to one of them.
To add a new sport:

1. Add a ``@classmethod`` constructor here and register it in
   ``_CONSTRUCTORS``.
2. Register a matchup model for the same identifier in
   :mod:`sportsedge.services.matchup_engine`.

No field here should ever be ``None``.  Fields that a sport family does not
use carry a neutral value (``1.0`` multipliers, ``0.0`` boosts).

Typical usage::

    from sportsedge.core.sport_config import SportConfig, get_sport_config

    cfg = get_sport_config("nfl")

    # Override a single constant for a custom calibration:
    from dataclasses import replace
    custom_cfg = replace(cfg, home_field_advantage=0.025)
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable, Dict, Final, Optional

#: Sport identifier strings used in game records and candidate bets.
SPORT_ID_NFL: Final[str] = "nfl"
SPORT_ID_NHL: Final[str] = "nhl"
SPORT_ID_MLB: Final[str] = "mlb"


@dataclass(frozen=True)
class SportConfig:
    """Immutable configuration bundle for a single sport.

    Attributes:
        sport_id: Short identifier (``"nfl"``, ``"nhl"``, ``"mlb"``).
        sport_name: Human-readable name for logging.

        --- Strength model (possession sports) ---
        league_avg_points: League-average points (goals, runs) scored per
            team per game.  Baseline for recent-form ratios.
        home_field_advantage: Additive bump, in strength units, given to the
            home side before the logistic transform.
        home_scoring_boost: Points added to a predicted game total for the
            home side.
        logistic_scale: Slope of the strength-difference logistic.

        --- Run-scoring model (baseball) ---
        home_field_multiplier: Multiplier on the home team's base run rate
            (0.1 extra runs on a 4.5-run baseline).
        park_factor_dampening: Fraction of a park's deviation from 1.0 that
            is applied to expected runs.
        pythagorean_exponent: Exponent of the runs → win% expectation.

        --- Edge calculation ---
        edge_cap: Clamp applied to team/game-level edges.
        player_edge_cap: Clamp applied to matchup-level (player) edges.
        ml_noise_floor: Moneyline edges with ``|edge|`` below this are
            reported as ``None``.
        total_noise_floor: Totals edges with ``|edge|`` below this are
            reported as ``None``.
        min_total_gap: Smallest predicted-vs-market total gap (points) that
            produces a gap-based totals edge.
        total_edge_sensitivity: Edge per point of total gap.
        total_edge_ceiling: Maximum gap-based totals edge before capping.
    """

    # Identity
    sport_id: str
    sport_name: str

    # Strength model
    league_avg_points: float
    home_field_advantage: float = 0.0
    home_scoring_boost: float = 0.0
    logistic_scale: float = 8.0

    # Run-scoring model
    home_field_multiplier: float = 1.0
    park_factor_dampening: float = 0.5
    pythagorean_exponent: float = 1.83

    # Edge calculation
    edge_cap: float = 0.10
    player_edge_cap: float = 0.25
    ml_noise_floor: float = 0.02
    total_noise_floor: float = 0.01
    min_total_gap: float = 0.3
    total_edge_sensitivity: float = 0.03
    total_edge_ceiling: float = 0.12

    # ------------------------------------------------------------------ #
    #  Named constructors                                                  #
    # ------------------------------------------------------------------ #

    @classmethod
    def nfl(cls) -> SportConfig:
        """Return the NFL configuration.

        Home advantage is larger than hockey's; scoring is ~22 points per
        team per game with a 1.5-point home scoring boost.
        """
        return cls(
            sport_id=SPORT_ID_NFL,
            sport_name="NFL",
            league_avg_points=22.0,
            home_field_advantage=0.03,
            home_scoring_boost=1.5,
        )

    @classmethod
    def nhl(cls) -> SportConfig:
        """Return the NHL configuration (~3 goals per team per game)."""
        return cls(
            sport_id=SPORT_ID_NHL,
            sport_name="NHL",
            league_avg_points=3.0,
            home_field_advantage=0.02,
            home_scoring_boost=0.2,
        )

    @classmethod
    def mlb(cls) -> SportConfig:
        """Return the MLB configuration.

        The 4.5-run league base rate and the 0.1-run home bonus are
        expressed as ``home_field_multiplier = 4.6 / 4.5``.
        """
        return cls(
            sport_id=SPORT_ID_MLB,
            sport_name="MLB",
            league_avg_points=4.5,
            home_field_multiplier=4.6 / 4.5,
            park_factor_dampening=0.5,
            pythagorean_exponent=1.83,
        )

    # ------------------------------------------------------------------ #
    #  Convenience accessors                                               #
    # ------------------------------------------------------------------ #

    def is_run_scoring(self) -> bool:
        """Return True for sports priced with the run-expectancy model."""
        return self.sport_id == SPORT_ID_MLB

    def neutral_site(self) -> SportConfig:
        """Return a copy with every home-side advantage zeroed out."""
        return replace(
            self,
            home_field_advantage=0.0,
            home_scoring_boost=0.0,
            home_field_multiplier=1.0,
        )

    def __repr__(self) -> str:
        return (
            f"SportConfig(sport_id={self.sport_id!r}, "
            f"league_avg={self.league_avg_points}, "
            f"home_adv={self.home_field_advantage}, "
            f"edge_cap={self.edge_cap})"
        )


_CONSTRUCTORS: Dict[str, Callable[[], SportConfig]] = {
    SPORT_ID_NFL: SportConfig.nfl,
    SPORT_ID_NHL: SportConfig.nhl,
    SPORT_ID_MLB: SportConfig.mlb,
}


def registered_sports() -> list[str]:
    """Sport identifiers with a named configuration."""
    return sorted(_CONSTRUCTORS)


def get_sport_config(sport: Optional[str]) -> Optional[SportConfig]:
    """Resolve a sport identifier (case-insensitive) to its configuration.

    Returns ``None`` for unknown or missing identifiers so callers can fall
    back to neutral estimates instead of raising.
    """
    if not sport:
        return None
    constructor = _CONSTRUCTORS.get(sport.strip().lower())
    return constructor() if constructor is not None else None
