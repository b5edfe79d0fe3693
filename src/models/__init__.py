"""Value objects shared by the prediction engines."""

from .analysis import (
    DataSource,
    MastermindSignal,
    OracleAnalysis,
    ScenarioType,
    SignalColor,
    TesseractResult,
    outcome_of,
)
from .context import (
    ContextFactor,
    ContextFactorType,
    LLMGradeEnhancement,
    OutlierScenario,
    SimulationContext,
    TeamSignals,
)
from .game import Fixture, HeadToHeadMatch
from .market import BettingMarket, KellyResult, MarketOdds, RiskLevel, ValueBet
from .team import TeamStanding

__all__ = [
    "BettingMarket",
    "ContextFactor",
    "ContextFactorType",
    "DataSource",
    "Fixture",
    "HeadToHeadMatch",
    "KellyResult",
    "LLMGradeEnhancement",
    "MarketOdds",
    "MastermindSignal",
    "OracleAnalysis",
    "OutlierScenario",
    "RiskLevel",
    "ScenarioType",
    "SignalColor",
    "SimulationContext",
    "TeamSignals",
    "TeamStanding",
    "TesseractResult",
    "ValueBet",
    "outcome_of",
]
