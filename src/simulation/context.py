"""
Simulation context builder.

Turns per-team injury, sentiment and fixture-congestion signals into the
fitness/distraction record used by the Tesseract simulator. Missing signals
degrade to the neutral context; this module never fails the pipeline.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from ..models.context import (
    NEUTRAL_DISTRACTION,
    NEUTRAL_FITNESS,
    SimulationContext,
    TeamSignals,
)

logger = logging.getLogger(__name__)


@dataclass
class ContextBuilderConfig:
    """Penalty weights for deriving fitness and distraction."""

    injury_penalty: float = 3.0  # fitness points per injured squad player
    key_player_penalty: float = 6.0  # extra fitness points per key player out
    max_injury_penalty: float = 45.0
    congestion_free_matches: int = 3  # matches in 14 days before fatigue sets in
    congestion_penalty: float = 5.0  # fitness points per extra match
    sentiment_distraction: float = 30.0  # distraction points at sentiment -1.0
    congestion_distraction: float = 2.0


def _clamp(value: float) -> int:
    return int(round(max(0.0, min(100.0, value))))


class SimulationContextBuilder:
    """Builds a SimulationContext from raw team signals."""

    def __init__(self, config: ContextBuilderConfig = None):
        self.config = config or ContextBuilderConfig()

    def team_levels(self, signals: Optional[TeamSignals]) -> Tuple[int, int]:
        """
        Derive (fitness, distraction) for one team.

        Args:
            signals: Team signals, or None when nothing is known

        Returns:
            Tuple of (fitness, distraction), each 0-100
        """
        if signals is None:
            return NEUTRAL_FITNESS, NEUTRAL_DISTRACTION

        cfg = self.config
        injury_penalty = min(
            cfg.max_injury_penalty,
            signals.injured_players * cfg.injury_penalty
            + signals.key_players_out * cfg.key_player_penalty,
        )
        extra_matches = max(0, signals.matches_last_14_days - cfg.congestion_free_matches)
        fitness = NEUTRAL_FITNESS - injury_penalty - extra_matches * cfg.congestion_penalty

        # Negative news raises distraction, positive news calms it
        distraction = (
            NEUTRAL_DISTRACTION
            - signals.news_sentiment * cfg.sentiment_distraction
            + extra_matches * cfg.congestion_distraction
        )
        return _clamp(fitness), _clamp(distraction)

    def build(
        self,
        home_signals: Optional[TeamSignals] = None,
        away_signals: Optional[TeamSignals] = None,
    ) -> SimulationContext:
        """
        Build the context for a fixture.

        Args:
            home_signals: Home team signals (optional)
            away_signals: Away team signals (optional)

        Returns:
            SimulationContext; SimulationContext.NEUTRAL when no signals exist
        """
        if home_signals is None and away_signals is None:
            logger.info("No team signals available, using neutral simulation context")
            return SimulationContext.NEUTRAL

        home_fitness, home_distraction = self.team_levels(home_signals)
        away_fitness, away_distraction = self.team_levels(away_signals)

        notes = []
        if home_signals is None or away_signals is None:
            missing = "home" if home_signals is None else "away"
            notes.append(f"no signals for the {missing} side, assumed neutral")
        if home_signals and home_signals.key_players_out:
            notes.append(f"home missing {home_signals.key_players_out} key player(s)")
        if away_signals and away_signals.key_players_out:
            notes.append(f"away missing {away_signals.key_players_out} key player(s)")

        context = SimulationContext(
            home_fitness=home_fitness,
            away_fitness=away_fitness,
            home_distraction=home_distraction,
            away_distraction=away_distraction,
            reasoning="; ".join(notes) or "Derived from injury, news and schedule signals",
        )
        logger.debug("Built simulation context: %s", context)
        return context


def build_context(
    home_signals: Optional[TeamSignals] = None,
    away_signals: Optional[TeamSignals] = None,
) -> SimulationContext:
    """Convenience wrapper around SimulationContextBuilder with default weights."""
    return SimulationContextBuilder().build(home_signals, away_signals)
