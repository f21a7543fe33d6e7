"""
Matchup strength models: team signals in, win and total probabilities out.

Two sport families sit behind the common
:class:`~sportsedge.core.matchup_interface.BaseMatchupModel` contract:

    - ``PossessionMatchupModel`` (NFL, NHL): a weighted team-strength blend
      pushed through a logistic, plus an offence/defence average for the
      game total.
    - ``RunScoringMatchupModel`` (MLB): multiplicative run expectancy per
      team, Pythagorean win expectation, and a Poisson model for the total.

Models are resolved through :func:`get_matchup_model`; sports without a
registered model get the neutral ``NullMatchupModel``.

Missing data never raises.  Each absent signal contributes nothing to a
strength blend (weight redistributed implicitly) or a ``1.0`` multiplier to
a run expectancy.
"""

import logging
import math
from typing import Dict, List, Optional, Tuple, Type

from scipy.special import erf
from scipy.stats import poisson

from sportsedge.core.matchup_interface import (
    BaseMatchupModel,
    GameContext,
    MarketSnapshot,
    MatchupEstimate,
    NullMatchupModel,
    StarterProfile,
    TeamSignal,
    parse_record,
    summarize_notes,
)
from sportsedge.core.sport_config import (
    SPORT_ID_MLB,
    SPORT_ID_NFL,
    SPORT_ID_NHL,
    SportConfig,
    get_sport_config,
)

logger = logging.getLogger(__name__)


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def logistic(x: float) -> float:
    """Numerically safe ``1 / (1 + e^-x)``."""
    if x >= 0:
        return 1.0 / (1.0 + math.exp(-x))
    ex = math.exp(x)
    return ex / (1.0 + ex)


def normal_cdf(z: float) -> float:
    """Standard normal CDF via the error function."""
    return 0.5 * (1.0 + float(erf(z / math.sqrt(2.0))))


# ---------------------------------------------------------------------------
# Possession / score sports
# ---------------------------------------------------------------------------

class PossessionMatchupModel(BaseMatchupModel):
    """
    Team-strength blend for possession sports (gridiron football, hockey).

    Strength starts at the league-average 0.5 and each available factor
    adds ``(factor − 0.5) × weight``:

        ==================  ======  ============================================
        factor              weight  source
        ==================  ======  ============================================
        record              0.4     venue record, else last-N record
        recent form         0.3     rolling points for vs. league average
        venue               0.2     venue record W / (W + L)
        advanced rating     0.1     placeholder, currently always unavailable
        ==================  ======  ============================================

    A team with no factors is exactly 0.5; otherwise strength is clamped to
    [0.2, 0.8].  Win probability is::

        home_win = logistic(8 × (home − away + home_field_advantage))

    clamped to [0.20, 0.80].
    """

    model_name = "PossessionMatchupModel"

    RECORD_WEIGHT: float = 0.4
    FORM_WEIGHT: float = 0.3
    VENUE_WEIGHT: float = 0.2
    RATING_WEIGHT: float = 0.1

    STRENGTH_BOUNDS: Tuple[float, float] = (0.2, 0.8)
    WIN_PROB_BOUNDS: Tuple[float, float] = (0.20, 0.80)

    def estimate_probabilities(
        self,
        game: GameContext,
        market: Optional[MarketSnapshot] = None,
    ) -> MatchupEstimate:
        notes: List[str] = []
        home_strength = self.team_strength(game.home, is_home=True, notes=notes)
        away_strength = self.team_strength(game.away, is_home=False, notes=notes)

        diff = home_strength - away_strength + self.config.home_field_advantage
        lo, hi = self.WIN_PROB_BOUNDS
        home_win = _clamp(logistic(self.config.logistic_scale * diff), lo, hi)

        predicted_total, home_exp, away_exp = self.predict_total(game.home, game.away)
        if predicted_total is None:
            notes.append("rolling averages missing, no total projected")

        logger.debug(
            "%s %s @ %s: strength %.3f vs %.3f → home %.3f, total %s",
            self.config.sport_id, game.away.abbr, game.home.abbr,
            home_strength, away_strength, home_win, predicted_total,
        )

        return MatchupEstimate(
            home_win=home_win,
            away_win=1.0 - home_win,
            predicted_total=predicted_total,
            home_expected=home_exp,
            away_expected=away_exp,
            model_name=self.model_name,
            notes=summarize_notes(notes),
        )

    # ------------------------------------------------------------------
    # Strength factors
    # ------------------------------------------------------------------

    def team_strength(
        self,
        team: Optional[TeamSignal],
        is_home: bool,
        notes: Optional[List[str]] = None,
    ) -> float:
        """Blend the available factors into a [0.2, 0.8] strength rating."""
        if team is None:
            return 0.5

        strength = 0.5
        factors = 0
        for value, weight in (
            (self.record_strength(team, is_home), self.RECORD_WEIGHT),
            (self.recent_form_strength(team), self.FORM_WEIGHT),
            (self.venue_strength(team, is_home), self.VENUE_WEIGHT),
            (self.rating_strength(team), self.RATING_WEIGHT),
        ):
            if value is not None:
                strength += (value - 0.5) * weight
                factors += 1

        if factors == 0:
            if notes is not None:
                notes.append(f"no data for {team.abbr or 'team'}, using league average")
            return 0.5

        return _clamp(strength, *self.STRENGTH_BOUNDS)

    @staticmethod
    def record_strength(team: TeamSignal, is_home: bool) -> Optional[float]:
        """Venue record (OT losses as half a loss), falling back to last-N."""
        record = team.venue_record(is_home)
        pct = record.weighted_win_pct() if record is not None else None
        if pct is not None:
            return pct

        recent = parse_record(team.last_n_record)
        return recent.weighted_win_pct() if recent is not None else None

    def recent_form_strength(self, team: TeamSignal) -> Optional[float]:
        if team.rolling_points_for is None or self.config.league_avg_points <= 0:
            return None
        ratio = team.rolling_points_for / self.config.league_avg_points
        return _clamp(0.5 + (ratio - 1.0) * 0.5, 0.2, 0.8)

    @staticmethod
    def venue_strength(team: TeamSignal, is_home: bool) -> Optional[float]:
        record = team.venue_record(is_home)
        return record.win_pct() if record is not None else None

    @staticmethod
    def rating_strength(team: TeamSignal) -> Optional[float]:
        # No rating source (Elo, power rankings) is wired in yet.
        return None

    # ------------------------------------------------------------------
    # Totals
    # ------------------------------------------------------------------

    def predict_total(
        self, home: TeamSignal, away: TeamSignal
    ) -> Tuple[Optional[float], Optional[float], Optional[float]]:
        """
        ``(total, home_expected, away_expected)`` from rolling averages.

        Each side's expectation is the mean of its offence and the
        opponent's points allowed; the home side also gets the sport's
        scoring boost.  Both teams need rolling for/against data.
        """
        if not (home.has_rolling_averages() and away.has_rolling_averages()):
            return None, None, None

        home_expected = (home.rolling_points_for + away.rolling_points_against) / 2.0
        away_expected = (away.rolling_points_for + home.rolling_points_against) / 2.0
        boost = self.config.home_scoring_boost
        return home_expected + away_expected + boost, home_expected + boost, away_expected


# ---------------------------------------------------------------------------
# Run-scoring sport (baseball)
# ---------------------------------------------------------------------------

#: Static ballpark run factors used when a game record carries none.
PARK_FACTORS: Dict[str, float] = {
    # Hitter-friendly
    "COL": 1.20, "CIN": 1.10, "BOS": 1.08, "CHC": 1.07, "PHI": 1.06,
    "BAL": 1.05, "TEX": 1.05, "TOR": 1.04, "MIL": 1.04, "ARI": 1.03,
    # Neutral
    "ATL": 1.01, "CWS": 1.01, "KC": 1.00, "LAA": 1.00, "MIN": 1.00,
    "NYY": 1.00, "WSH": 1.00, "CLE": 0.99, "STL": 0.99, "DET": 0.98,
    # Pitcher-friendly
    "PIT": 0.97, "TB": 0.97, "MIA": 0.96, "LAD": 0.96, "NYM": 0.95,
    "SF": 0.94, "OAK": 0.94, "SEA": 0.93, "SD": 0.92,
}

# League-average rate stats for starter quality.
LEAGUE_K_RATE = 0.22
LEAGUE_BB_RATE = 0.08
LEAGUE_WOBA = 0.320

RUN_FLOOR = 0.5
TOTAL_PROB_BOUNDS = (0.10, 0.90)

# Above this λ the Poisson tail is replaced by a normal approximation.
POISSON_EXACT_MAX_LAMBDA = 10.0


def poisson_over_probability(expected_total: float, line: float) -> float:
    """
    P(total > line) for a Poisson(λ = expected_total) score.

    The exact Poisson tail is used for λ ≤ 10 and a normal approximation
    with mean and variance λ above that.  The result is clamped to
    [0.10, 0.90]; a non-positive λ returns 0.5.
    """
    if expected_total <= 0:
        return 0.5

    if expected_total > POISSON_EXACT_MAX_LAMBDA:
        z = (line - expected_total) / math.sqrt(expected_total)
        prob = 1.0 - normal_cdf(z)
    else:
        prob = float(poisson.sf(math.floor(line), expected_total))

    return _clamp(prob, *TOTAL_PROB_BOUNDS)


class RunScoringMatchupModel(BaseMatchupModel):
    """
    Run expectancy model for baseball.

    Each team's expected runs::

        runs = base × home_field (home only) × park × offence
               × opposing_defence × opposing_starter × recent_form

    floored at 0.5 runs.  Park is the home ballpark's factor dampened 50%
    toward 1.0 and applies to both teams.  Every multiplier is 1.0 when its
    inputs are missing.
    """

    model_name = "RunScoringMatchupModel"

    def estimate_probabilities(
        self,
        game: GameContext,
        market: Optional[MarketSnapshot] = None,
    ) -> MatchupEstimate:
        notes: List[str] = []
        park = self.park_multiplier(game.home)

        home_runs = self.expected_runs(game.home, game.away, game.away_starter, True, park, notes)
        away_runs = self.expected_runs(game.away, game.home, game.home_starter, False, park, notes)

        home_win = self.pythagorean(home_runs, away_runs)
        total = home_runs + away_runs

        over_prob = under_prob = None
        if market is not None and market.total_line is not None:
            over_prob = poisson_over_probability(total, market.total_line)
            under_prob = 1.0 - over_prob
        else:
            notes.append("no market total line, over/under not priced")

        logger.debug(
            "mlb %s @ %s: runs %.2f vs %.2f → home %.3f, total %.2f",
            game.away.abbr, game.home.abbr, home_runs, away_runs, home_win, total,
        )

        return MatchupEstimate(
            home_win=home_win,
            away_win=1.0 - home_win,
            predicted_total=total,
            over_prob=over_prob,
            under_prob=under_prob,
            home_expected=home_runs,
            away_expected=away_runs,
            model_name=self.model_name,
            notes=summarize_notes(notes),
        )

    def pythagorean(self, home_runs: float, away_runs: float) -> float:
        exp = self.config.pythagorean_exponent
        home_pow = home_runs ** exp
        away_pow = away_runs ** exp
        return home_pow / (home_pow + away_pow)

    def expected_runs(
        self,
        team: TeamSignal,
        opponent: TeamSignal,
        opposing_starter: Optional[StarterProfile],
        is_home: bool,
        park: float,
        notes: Optional[List[str]] = None,
    ) -> float:
        runs = self.config.league_avg_points
        if is_home:
            runs *= self.config.home_field_multiplier
        runs *= park
        runs *= self.offense_multiplier(team)
        runs *= self.defense_multiplier(opponent)
        if opposing_starter is None and notes is not None:
            notes.append(f"no probable starter facing {team.abbr or 'team'}")
        runs *= self.starter_multiplier(opposing_starter)
        runs *= self.recent_form_multiplier(team)
        return max(runs, RUN_FLOOR)

    # ------------------------------------------------------------------
    # Multipliers
    # ------------------------------------------------------------------

    def park_multiplier(self, home: TeamSignal) -> float:
        factor = home.park_factor or PARK_FACTORS.get(home.abbr, 1.0)
        return 1.0 + (factor - 1.0) * self.config.park_factor_dampening

    def offense_multiplier(self, team: TeamSignal) -> float:
        """Rolling runs vs. league base in [0.9, 1.1], else record, else 1.0."""
        base = self.config.league_avg_points
        if team.rolling_points_for:
            return _clamp(team.rolling_points_for / base, 0.9, 1.1)
        record = team.combined_record()
        pct = record.win_pct() if record is not None else None
        if pct is not None:
            return 1.0 + (pct - 0.5) * 0.1
        return 1.0

    def defense_multiplier(self, opponent: TeamSignal) -> float:
        """League base vs. opponent runs allowed in [0.95, 1.05], else record."""
        base = self.config.league_avg_points
        if opponent.rolling_points_against:
            return _clamp(base / opponent.rolling_points_against, 0.95, 1.05)
        record = opponent.combined_record()
        pct = record.win_pct() if record is not None else None
        if pct is not None:
            # Better teams allow fewer runs.
            return 1.0 - (pct - 0.5) * 0.06
        return 1.0

    @staticmethod
    def starter_multiplier(starter: Optional[StarterProfile]) -> float:
        """Strikeouts suppress runs; walks and wOBA allowed inflate them."""
        if starter is None:
            return 1.0
        adjustment = 1.0
        if starter.k_rate:
            adjustment -= (starter.k_rate - LEAGUE_K_RATE) * 0.5
        if starter.bb_rate:
            adjustment += (starter.bb_rate - LEAGUE_BB_RATE) * 0.7
        if starter.woba_allowed:
            adjustment += (starter.woba_allowed - LEAGUE_WOBA) * 0.8
        return _clamp(adjustment, 0.8, 1.2)

    def recent_form_multiplier(self, team: TeamSignal) -> float:
        if not team.has_rolling_averages():
            return 1.0
        base = self.config.league_avg_points
        run_diff = (team.rolling_points_for - base) - (team.rolling_points_against - base)
        return 1.0 + run_diff * 0.02


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

_MODEL_REGISTRY: Dict[str, Type[BaseMatchupModel]] = {
    SPORT_ID_NFL: PossessionMatchupModel,
    SPORT_ID_NHL: PossessionMatchupModel,
    SPORT_ID_MLB: RunScoringMatchupModel,
}


def register_matchup_model(sport: str, model_cls: Type[BaseMatchupModel]) -> None:
    """Register (or replace) the model class used for ``sport``."""
    if not (isinstance(model_cls, type) and issubclass(model_cls, BaseMatchupModel)):
        raise TypeError(f"{model_cls!r} is not a BaseMatchupModel subclass")
    _MODEL_REGISTRY[sport.strip().lower()] = model_cls


def get_matchup_model(
    sport: Optional[str],
    config: Optional[SportConfig] = None,
) -> BaseMatchupModel:
    """
    Instantiate the registered model for ``sport``.

    ``config`` overrides the sport's named configuration.  Unknown sports
    get a :class:`NullMatchupModel` and a warning.
    """
    key = (sport or "").strip().lower()
    model_cls = _MODEL_REGISTRY.get(key)
    cfg = config or get_sport_config(key)
    if model_cls is None or cfg is None:
        logger.warning("No matchup model registered for sport %r, using null model", sport)
        return NullMatchupModel(cfg)
    return model_cls(cfg)
