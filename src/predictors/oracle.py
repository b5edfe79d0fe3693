"""
Oracle: deterministic standings-based baseline predictor.

Rates each side with a power score built from league rank, points per game
and goal difference per game, turns the power differential into an
expected-goals pair and reports the rounded scoreline with a confidence
that grows with the differential and the head-to-head sample.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Sequence

from ..models.analysis import DataSource, OracleAnalysis
from ..models.game import Fixture, HeadToHeadMatch, head_to_head_record
from ..models.team import TeamStanding

logger = logging.getLogger(__name__)


class InsufficientDataError(ValueError):
    """Raised when no usable standings exist for either side of a fixture."""


def _default_source_factors() -> Dict[DataSource, float]:
    return {
        DataSource.API_OFFICIAL: 1.0,
        DataSource.CALCULATED: 0.9,
        DataSource.PREVIOUS_SEASON: 0.8,
        DataSource.DEFAULT: 0.7,
    }


@dataclass
class OracleConfig:
    """Weights for the power score and the power-to-goals mapping."""

    base_power: float = 100.0
    rank_weight: float = 3.0
    ppg_weight: float = 10.0
    gdpg_weight: float = 5.0
    home_advantage: float = 10.0
    head_to_head_tilt: float = 5.0  # max power shift from a one-sided H2H record
    max_power: int = 200

    average_total_goals: float = 2.7
    goal_share_scale: float = 30.0  # power delta giving a logistic step of 1

    confidence_floor: int = 40
    confidence_cap: int = 95
    delta_confidence_weight: float = 0.6
    max_delta_confidence: float = 45.0
    head_to_head_bonus: float = 1.0  # per previous meeting
    max_head_to_head_matches: int = 10
    league_size: int = 20
    source_factors: Dict[DataSource, float] = field(default_factory=_default_source_factors)


class OracleEngine:
    """Deterministic baseline prediction from standings and head-to-head history."""

    def __init__(self, config: OracleConfig = None):
        self.config = config or OracleConfig()

    def power_score(
        self,
        standing: TeamStanding,
        is_home: bool = False,
        head_to_head_balance: float = 0.0,
    ) -> int:
        """
        Calculate a team's power score.

        Args:
            standing: League standing
            is_home: Whether the team plays at home
            head_to_head_balance: (wins - losses) / meetings, in [-1, 1]

        Returns:
            Power score clamped to [0, max_power]
        """
        cfg = self.config
        power = (
            (cfg.base_power - standing.rank * cfg.rank_weight)
            + round(standing.points_per_game * cfg.ppg_weight)
            + round(standing.goal_difference_per_game * cfg.gdpg_weight)
        )
        if is_home:
            power += cfg.home_advantage
        power += round(head_to_head_balance * cfg.head_to_head_tilt)
        return int(max(0, min(cfg.max_power, power)))

    def expected_goals(self, power_delta: float):
        """
        Map a home-minus-away power differential to an expected-goals pair.

        The total stays at the league average; the home share follows a
        logistic curve in the differential.
        """
        share = 1.0 / (1.0 + math.exp(-power_delta / self.config.goal_share_scale))
        total = self.config.average_total_goals
        return total * share, total * (1.0 - share)

    def confidence(
        self,
        power_delta: float,
        head_to_head_matches: int,
        source: DataSource,
    ) -> int:
        cfg = self.config
        raw = (
            cfg.confidence_floor
            + min(abs(power_delta) * cfg.delta_confidence_weight, cfg.max_delta_confidence)
            + min(head_to_head_matches, cfg.max_head_to_head_matches) * cfg.head_to_head_bonus
        )
        raw *= cfg.source_factors.get(source, 1.0)
        return int(round(max(cfg.confidence_floor, min(cfg.confidence_cap, raw))))

    def analyze(
        self,
        fixture: Fixture,
        home_standing: Optional[TeamStanding] = None,
        away_standing: Optional[TeamStanding] = None,
        head_to_head: Iterable[HeadToHeadMatch] = (),
        standings_source: DataSource = DataSource.API_OFFICIAL,
    ) -> OracleAnalysis:
        """
        Predict a fixture from standings.

        Args:
            fixture: Fixture to analyse
            home_standing: Home team standing (optional)
            away_standing: Away team standing (optional)
            head_to_head: Previous meetings between the two teams
            standings_source: Provenance of the supplied standings

        Returns:
            OracleAnalysis with no downstream results attached

        Raises:
            InsufficientDataError: If neither side has a usable standing
        """
        home_ok = home_standing is not None and home_standing.is_usable
        away_ok = away_standing is not None and away_standing.is_usable
        if not home_ok and not away_ok:
            raise InsufficientDataError(
                f"No usable standings for {fixture.home_team} vs {fixture.away_team}"
            )

        source = standings_source
        if not home_ok:
            logger.warning("No standing for %s, assuming mid-table", fixture.home_team)
            home_standing = TeamStanding.mid_table(fixture.home_team, self.config.league_size)
            source = DataSource.DEFAULT
        if not away_ok:
            logger.warning("No standing for %s, assuming mid-table", fixture.away_team)
            away_standing = TeamStanding.mid_table(fixture.away_team, self.config.league_size)
            source = DataSource.DEFAULT

        meetings: Sequence[HeadToHeadMatch] = list(head_to_head)
        wins, draws, losses = head_to_head_record(meetings, fixture.home_team, fixture.away_team)
        n_meetings = wins + draws + losses
        balance = (wins - losses) / n_meetings if n_meetings else 0.0

        home_power = self.power_score(home_standing, is_home=True, head_to_head_balance=balance)
        away_power = self.power_score(away_standing, is_home=False, head_to_head_balance=-balance)
        delta = home_power - away_power

        home_xg, away_xg = self.expected_goals(delta)
        if delta == 0:
            predicted = (1, 1)
        else:
            predicted = (int(math.floor(home_xg + 0.5)), int(math.floor(away_xg + 0.5)))

        confidence = self.confidence(delta, n_meetings, source)

        reasoning = (
            f"{fixture.home_team} power {home_power} vs {fixture.away_team} power {away_power} "
            f"(delta {delta:+d}); expected goals {home_xg:.2f}-{away_xg:.2f}"
        )
        if n_meetings:
            reasoning += f"; head-to-head {wins}W {draws}D {losses}L from {n_meetings} meetings"
        if source == DataSource.DEFAULT:
            reasoning += "; one side uses a default mid-table standing"

        logger.debug("Oracle %s: %s", fixture.fixture_id, reasoning)

        return OracleAnalysis(
            predicted_score=predicted,
            confidence=confidence,
            reasoning=reasoning,
            home_power_score=home_power,
            away_power_score=away_power,
            home_expected_goals=home_xg,
            away_expected_goals=away_xg,
            standings_source=source,
            head_to_head_matches=n_meetings,
        )
