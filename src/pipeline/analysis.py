"""End-to-end fixture analysis: context, Oracle, Tesseract, Mastermind and Kelly."""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional, Tuple

import numpy as np
import pytz

from ..models.analysis import DataSource, OracleAnalysis
from ..models.context import LLMGradeEnhancement, TeamSignals
from ..models.game import Fixture, HeadToHeadMatch
from ..models.market import KellyResult, MarketOdds
from ..models.team import TeamStanding
from ..optimization.kelly import KellyCalculator, KellyConfig
from ..predictors.mastermind import MastermindConfig, MastermindEngine
from ..predictors.oracle import OracleConfig, OracleEngine
from ..simulation.context import ContextBuilderConfig, SimulationContextBuilder
from ..simulation.monte_carlo import CancellationToken, SimulationConfig, TesseractEngine

logger = logging.getLogger(__name__)


@dataclass
class PipelineConfig:
    """Per-component configuration for a fixture analysis."""

    context: ContextBuilderConfig = field(default_factory=ContextBuilderConfig)
    oracle: OracleConfig = field(default_factory=OracleConfig)
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    mastermind: MastermindConfig = field(default_factory=MastermindConfig)
    kelly: KellyConfig = field(default_factory=KellyConfig)


@dataclass(frozen=True)
class FixtureInput:
    """Everything the external collaborators supply for one fixture."""

    fixture: Fixture
    home_standing: Optional[TeamStanding] = None
    away_standing: Optional[TeamStanding] = None
    head_to_head: Tuple[HeadToHeadMatch, ...] = ()
    home_signals: Optional[TeamSignals] = None
    away_signals: Optional[TeamSignals] = None
    odds: Optional[MarketOdds] = None
    enhancement: Optional[LLMGradeEnhancement] = None
    standings_source: DataSource = DataSource.API_OFFICIAL

    @classmethod
    def from_dict(cls, data: dict) -> "FixtureInput":
        """Build input from a fixture JSON document (camelCase keys)."""

        def _optional(key, factory):
            value = data.get(key)
            return factory(value) if value else None

        return cls(
            fixture=Fixture.from_dict(data["fixture"]),
            home_standing=_optional("homeStanding", TeamStanding.from_dict),
            away_standing=_optional("awayStanding", TeamStanding.from_dict),
            head_to_head=tuple(
                HeadToHeadMatch.from_dict(m) for m in data.get("headToHead", ())
            ),
            home_signals=_optional("homeSignals", TeamSignals.from_dict),
            away_signals=_optional("awaySignals", TeamSignals.from_dict),
            odds=_optional("odds", MarketOdds.from_dict),
            enhancement=_optional("enhancement", LLMGradeEnhancement.from_dict),
            standings_source=DataSource(data.get("standingsSource", "API_OFFICIAL")),
        )


@dataclass(frozen=True)
class FixtureAnalysis:
    """Oracle analysis (with nested simulation and verdict) plus staking."""

    fixture: Fixture
    oracle: OracleAnalysis
    kelly: KellyResult
    generated_at: datetime = field(default_factory=lambda: datetime.now(pytz.utc))

    def to_dict(self) -> dict:
        return {
            "fixture": self.fixture.to_dict(),
            "oracle": self.oracle.to_dict(),
            "bettingTip": self.oracle.betting_tip(
                self.fixture.home_team, self.fixture.away_team
            ),
            "kelly": self.kelly.to_dict(),
            "generatedAt": self.generated_at.isoformat(),
        }


class AnalysisPipeline:
    """Runs the prediction engines for a fixture in dependency order."""

    def __init__(self, config: Optional[PipelineConfig] = None):
        self.config = config or PipelineConfig()
        self.context_builder = SimulationContextBuilder(self.config.context)
        self.oracle = OracleEngine(self.config.oracle)
        self.tesseract = TesseractEngine(self.config.simulation)
        self.mastermind = MastermindEngine(self.config.mastermind)
        self.kelly = KellyCalculator(self.config.kelly)

    def analyze(
        self,
        data: FixtureInput,
        rng: Optional[np.random.Generator] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> FixtureAnalysis:
        """
        Analyse one fixture.

        Args:
            data: Fixture inputs
            rng: Random source for the simulation seed
            cancel_token: Cancellation token passed to the simulator

        Returns:
            FixtureAnalysis

        Raises:
            InsufficientDataError: If no standings are usable
            SimulationCancelled: If the simulation is cancelled
        """
        fixture = data.fixture
        context = self.context_builder.build(data.home_signals, data.away_signals)

        oracle = self.oracle.analyze(
            fixture,
            data.home_standing,
            data.away_standing,
            data.head_to_head,
            standings_source=data.standings_source,
        )

        tesseract = None
        if self.config.simulation.num_simulations > 0:
            tesseract = self.tesseract.simulate_match(
                oracle.home_expected_goals,
                oracle.away_expected_goals,
                context=context,
                rng=rng,
                cancel_token=cancel_token,
            )
        else:
            logger.warning(
                "Simulation disabled for fixture %s, using Oracle only", fixture.fixture_id
            )

        if data.enhancement is None:
            logger.info("No qualitative context for fixture %s", fixture.fixture_id)
        signal = self.mastermind.analyze(oracle, tesseract, data.enhancement)

        if signal.market is None:
            logger.info("Mastermind advises skipping fixture %s, no stake", fixture.fixture_id)
            kelly = KellyResult.empty(
                fixture.fixture_id,
                fixture.home_team,
                fixture.away_team,
                analysis="Mastermind advises skipping this fixture",
            )
        else:
            kelly = self.kelly.calculate(fixture, tesseract, data.odds, signal.confidence)

        oracle = replace(
            oracle,
            tesseract=tesseract,
            simulation_context=context,
            mastermind_signal=signal,
            llm_grade_enhancement=data.enhancement,
        )
        logger.info(
            "Fixture %s: %s (%d%%), stake %s",
            fixture.fixture_id,
            signal.title,
            signal.confidence,
            kelly.recommended_stake_formatted,
        )
        return FixtureAnalysis(fixture=fixture, oracle=oracle, kelly=kelly)


def analyze_fixture(
    data: FixtureInput,
    config: Optional[PipelineConfig] = None,
    rng: Optional[np.random.Generator] = None,
    cancel_token: Optional[CancellationToken] = None,
) -> FixtureAnalysis:
    """Convenience function to analyse a single fixture."""
    return AnalysisPipeline(config).analyze(data, rng=rng, cancel_token=cancel_token)
