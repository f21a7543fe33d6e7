"""Dependency-injection interfaces for swappable matchup models.

This module defines the contracts that **every** matchup model must satisfy,
plus the data-transfer objects that flow between the caller, the market
snapshot, and the model.  The edge calculator accepts a
:class:`BaseMatchupModel` chosen from a registry rather than branching on
sport strings.  This enables:

* **Unit testing**: each formula lives behind one class and can be tested
  with hand-built :class:`GameContext` records.
* **Sport extension**: add a model class and register it; nothing else
  changes.

Design choices
--------------
* :class:`BaseMatchupModel` is an abstract base class (ABC) rather than a
  ``typing.Protocol`` because the registry performs ``isinstance`` checks
  at registration time.
* Every signal on :class:`TeamSignal` is optional.  Models never raise on a
  missing field; they fall back to a league-average constant.
* :class:`MatchupEstimate` is frozen and slotted so it can be shared across
  threads by callers that parallelise over games.

Run tests with::

    pytest tests/test_matchup_engine.py -v
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, List, NamedTuple, Optional, Tuple

if TYPE_CHECKING:
    from sportsedge.core.sport_config import SportConfig


#: Market aliases accepted from odds vendors, normalised to the core names.
MARKET_ALIASES = {
    "h2h": "moneyline",
    "moneyline": "moneyline",
    "ml": "moneyline",
    "totals": "total",
    "total": "total",
    "spreads": "spread",
    "spread": "spread",
}


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


class WinLossRecord(NamedTuple):
    """Parsed ``"W-L"`` / ``"W-L-OTL"`` record."""

    wins: int
    losses: int
    ot_losses: int = 0

    @property
    def games(self) -> int:
        return self.wins + self.losses + self.ot_losses

    def weighted_win_pct(self) -> Optional[float]:
        """Win share with overtime losses counted as half a loss."""
        denom = self.wins + self.losses + 0.5 * self.ot_losses
        if denom <= 0:
            return None
        return self.wins / denom

    def win_pct(self) -> Optional[float]:
        """Plain ``W / (W + L)``; overtime losses ignored."""
        denom = self.wins + self.losses
        if denom <= 0:
            return None
        return self.wins / denom


def parse_record(record: Optional[str]) -> Optional[WinLossRecord]:
    """Parse ``"5-2"`` or ``"5-2-1"`` into a :class:`WinLossRecord`.

    Returns ``None`` for missing or malformed strings.
    """
    if not record or not isinstance(record, str):
        return None
    parts = record.strip().split("-")
    if len(parts) < 2:
        return None
    try:
        numbers = [int(p) for p in parts[:3]]
    except ValueError:
        return None
    if any(n < 0 for n in numbers):
        return None
    return WinLossRecord(*numbers)


# ---------------------------------------------------------------------------
# Data transfer objects
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class StarterProfile:
    """Probable starting pitcher for the run-scoring model.

    Rate stats are season aggregates for the most recent season.  Any may be
    ``None``; the quality multiplier ignores missing terms.
    """

    player_id: Optional[str] = None
    name: str = ""
    throws: Optional[str] = None
    k_rate: Optional[float] = None
    bb_rate: Optional[float] = None
    woba_allowed: Optional[float] = None


@dataclass(slots=True)
class TeamSignal:
    """All per-team signals a matchup model may consume.

    Attributes:
        abbr: Team abbreviation (``"KC"``, ``"NYY"``).  Used for the static
            park-factor table and logging.
        home_record: Record in home games, ``"W-L"`` or ``"W-L-OTL"``.
        away_record: Record in away games.
        last_n_record: Record over the recent-form window.
        rolling_points_for: Points scored per game over the recent window.
        rolling_points_against: Points allowed per game over the window.
        park_factor: Home ballpark run factor (baseball only).
    """

    abbr: str = ""
    home_record: Optional[str] = None
    away_record: Optional[str] = None
    last_n_record: Optional[str] = None
    rolling_points_for: Optional[float] = None
    rolling_points_against: Optional[float] = None
    park_factor: Optional[float] = None

    def venue_record(self, is_home: bool) -> Optional[WinLossRecord]:
        return parse_record(self.home_record if is_home else self.away_record)

    def combined_record(self) -> Optional[WinLossRecord]:
        """Home and away records summed, or ``None`` if neither parses."""
        home = parse_record(self.home_record)
        away = parse_record(self.away_record)
        if home is None and away is None:
            return None
        home = home or WinLossRecord(0, 0)
        away = away or WinLossRecord(0, 0)
        return WinLossRecord(
            home.wins + away.wins,
            home.losses + away.losses,
            home.ot_losses + away.ot_losses,
        )

    def has_rolling_averages(self) -> bool:
        return self.rolling_points_for is not None and self.rolling_points_against is not None


@dataclass(slots=True)
class GameContext:
    """Normalised game record handed to a matchup model."""

    game_id: str
    sport: str
    home: TeamSignal = field(default_factory=TeamSignal)
    away: TeamSignal = field(default_factory=TeamSignal)
    status: str = "scheduled"
    home_starter: Optional[StarterProfile] = None
    away_starter: Optional[StarterProfile] = None


@dataclass(slots=True)
class MarketQuote:
    """One bookmaker quote for one market of one game.

    For totals, ``price_over`` / ``price_under`` are preferred; vendors that
    reuse the home/away slots for over/under are still understood.  ``line``
    carries the total or the home spread.
    """

    market: str
    price_home: Optional[int] = None
    price_away: Optional[int] = None
    price_over: Optional[int] = None
    price_under: Optional[int] = None
    line: Optional[float] = None
    book: str = ""
    timestamp: Optional[datetime] = None

    @property
    def normalized_market(self) -> Optional[str]:
        return MARKET_ALIASES.get((self.market or "").strip().lower())

    def two_sided_prices(self) -> Tuple[Optional[int], Optional[int]]:
        """``(side_a, side_b)``: home/away, or over/under for totals."""
        if self.normalized_market == "total":
            return (
                self.price_over if self.price_over is not None else self.price_home,
                self.price_under if self.price_under is not None else self.price_away,
            )
        return self.price_home, self.price_away


@dataclass(frozen=True, slots=True)
class MarketSnapshot:
    """Vig-free market probabilities for one game.

    Every probability is ``None`` when its market was not quoted (or was
    quoted with an unknown price on either side).
    """

    ml_home: Optional[float] = None
    ml_away: Optional[float] = None
    total_over: Optional[float] = None
    total_under: Optional[float] = None
    total_line: Optional[float] = None
    spread_home: Optional[float] = None
    spread_away: Optional[float] = None
    spread_line: Optional[float] = None
    ml_vig_percent: float = 0.0
    total_vig_percent: float = 0.0
    book: str = ""

    def has_moneyline(self) -> bool:
        return self.ml_home is not None and self.ml_away is not None

    def has_total(self) -> bool:
        return (
            self.total_line is not None
            and self.total_over is not None
            and self.total_under is not None
        )


@dataclass(frozen=True, slots=True)
class MatchupEstimate:
    """Immutable output of a matchup model for one game.

    Attributes:
        home_win: Model probability that the home team wins.
        away_win: Model probability that the away team wins.
        predicted_total: Expected combined score, or ``None`` when the model
            lacks the data to project one.
        over_prob: Model probability of the game going over the market
            total line.  Only models with a distributional total (Poisson)
            set this; others leave it ``None`` and the edge calculator uses
            the predicted-vs-line gap instead.
        under_prob: Complement of ``over_prob``.
        home_expected: Expected home score.
        away_expected: Expected away score.
        model_name: Identifier of the model that produced the estimate.
        notes: Human-readable degradations (missing data fallbacks).
    """

    home_win: float
    away_win: float
    predicted_total: Optional[float] = None
    over_prob: Optional[float] = None
    under_prob: Optional[float] = None
    home_expected: Optional[float] = None
    away_expected: Optional[float] = None
    model_name: str = "BaseMatchupModel"
    notes: Tuple[str, ...] = ()

    def validate(self, tol: float = 1e-6) -> None:
        """Raise ``ValueError`` if the estimate is internally inconsistent."""
        for name, val in (("home_win", self.home_win), ("away_win", self.away_win)):
            if not 0.0 <= val <= 1.0:
                raise ValueError(f"MatchupEstimate.{name} must be in [0, 1], got {val!r}.")
        if abs(self.home_win + self.away_win - 1.0) > tol:
            raise ValueError(
                f"home_win + away_win must equal 1.0 "
                f"(got {self.home_win + self.away_win:.6f}, model={self.model_name!r})."
            )
        if (self.over_prob is None) != (self.under_prob is None):
            raise ValueError("over_prob and under_prob must be set together.")
        if self.predicted_total is not None and self.predicted_total < 0:
            raise ValueError(f"predicted_total must be ≥ 0, got {self.predicted_total!r}.")

    def supports_total_pricing(self) -> bool:
        return self.over_prob is not None

    def __repr__(self) -> str:
        total = f"{self.predicted_total:.2f}" if self.predicted_total is not None else "None"
        return (
            f"MatchupEstimate(home={self.home_win:.3f}, away={self.away_win:.3f}, "
            f"total={total}, model={self.model_name!r})"
        )


# ---------------------------------------------------------------------------
# Abstract matchup model
# ---------------------------------------------------------------------------


class BaseMatchupModel(ABC):
    """Contract that every matchup model must satisfy.

    Implementations must be **stateless** with respect to previous calls:
    the same ``(game, market)`` always yields the same estimate, and no
    randomness is permitted.
    """

    #: Short identifier included in every ``MatchupEstimate.model_name``.
    model_name: str = "BaseMatchupModel"

    def __init__(self, config: Optional[SportConfig] = None):
        self.config = config

    @abstractmethod
    def estimate_probabilities(
        self,
        game: GameContext,
        market: Optional[MarketSnapshot] = None,
    ) -> MatchupEstimate:
        """Estimate win (and, when possible, total) probabilities.

        Args:
            game: Normalised game record with both teams' signals.
            market: Vig-free market snapshot.  Models that price the total
                distributionally use ``market.total_line``; others ignore it.

        Returns:
            :class:`MatchupEstimate` from the home team's perspective.
        """


class NullMatchupModel(BaseMatchupModel):
    """Returns a 50/50 estimate with no total.

    Used for sports without a registered model so the pipeline still
    produces an (all-``None``) edge record instead of failing.
    """

    model_name = "NullMatchupModel"

    def estimate_probabilities(
        self,
        game: GameContext,
        market: Optional[MarketSnapshot] = None,
    ) -> MatchupEstimate:
        return MatchupEstimate(
            home_win=0.5,
            away_win=0.5,
            model_name=self.model_name,
            notes=(f"no matchup model for sport {game.sport!r}",),
        )


def summarize_notes(notes: List[str]) -> Tuple[str, ...]:
    return tuple(dict.fromkeys(notes))
