"""Prediction results: Oracle baseline, Tesseract simulation and Mastermind signal."""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .context import LLMGradeEnhancement, SimulationContext
from .market import BettingMarket


Score = Tuple[int, int]

PROBABILITY_TOLERANCE = 1e-6


def _format_score(score: Score) -> str:
    return f"{score[0]}-{score[1]}"


def outcome_of(score: Score) -> BettingMarket:
    """1X2 outcome implied by a scoreline."""
    home, away = score
    if home > away:
        return BettingMarket.HOME_WIN
    if away > home:
        return BettingMarket.AWAY_WIN
    return BettingMarket.DRAW


class DataSource(Enum):
    """Where the standings behind an Oracle prediction came from."""

    API_OFFICIAL = "API_OFFICIAL"
    CALCULATED = "CALCULATED"
    PREVIOUS_SEASON = "PREVIOUS_SEASON"
    DEFAULT = "DEFAULT"


@dataclass(frozen=True)
class TesseractResult:
    """Aggregated outcome of a Monte Carlo match simulation."""

    home_win_probability: float
    draw_probability: float
    away_win_probability: float
    most_likely_score: Score
    simulation_count: int
    btts_probability: float
    over2_5_probability: float
    top_score_distribution: Tuple[Tuple[Score, int], ...] = ()

    # Every simulated scoreline with its count
    score_distribution: Dict[Score, int] = field(default_factory=dict)
    home_expected_goals: float = 0.0
    away_expected_goals: float = 0.0
    # Wilson 95% interval per market name
    confidence_intervals: Dict[str, Tuple[float, float]] = field(default_factory=dict)

    def __post_init__(self):
        if self.simulation_count <= 0:
            raise ValueError(f"Simulation count must be positive, got {self.simulation_count}")

        for name in (
            "home_win_probability",
            "draw_probability",
            "away_win_probability",
            "btts_probability",
            "over2_5_probability",
        ):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be between 0 and 1, got {value}")

        total = self.home_win_probability + self.draw_probability + self.away_win_probability
        if abs(total - 1.0) > PROBABILITY_TOLERANCE:
            raise ValueError(f"1X2 probabilities must sum to 1.0, got {total!r}")

        if self.score_distribution:
            counted = sum(self.score_distribution.values())
            if counted != self.simulation_count:
                raise ValueError(
                    f"Score distribution covers {counted} trials, expected {self.simulation_count}"
                )

        object.__setattr__(self, "top_score_distribution", tuple(self.top_score_distribution))

    @property
    def btts_no_probability(self) -> float:
        return 1.0 - self.btts_probability

    @property
    def under2_5_probability(self) -> float:
        return 1.0 - self.over2_5_probability

    def probability_of(self, outcome: BettingMarket) -> float:
        return {
            BettingMarket.HOME_WIN: self.home_win_probability,
            BettingMarket.DRAW: self.draw_probability,
            BettingMarket.AWAY_WIN: self.away_win_probability,
        }[outcome]

    @property
    def favourite(self) -> BettingMarket:
        """Most probable outcome; exact ties resolve toward the draw, then home."""
        order = (BettingMarket.DRAW, BettingMarket.HOME_WIN, BettingMarket.AWAY_WIN)
        return max(order, key=self.probability_of)

    @property
    def home_win_percentage(self) -> int:
        return int(self.home_win_probability * 100)

    @property
    def draw_percentage(self) -> int:
        return int(self.draw_probability * 100)

    @property
    def away_win_percentage(self) -> int:
        return int(self.away_win_probability * 100)

    def top_scores_with_percentages(self) -> List[Tuple[str, float]]:
        return [
            (_format_score(score), 100.0 * count / self.simulation_count)
            for score, count in self.top_score_distribution
        ]

    def formatted_probabilities(self) -> str:
        return (
            f"H: {self.home_win_percentage}% | D: {self.draw_percentage}% | "
            f"A: {self.away_win_percentage}%"
        )

    def to_dict(self) -> dict:
        return {
            "homeWinProbability": self.home_win_probability,
            "drawProbability": self.draw_probability,
            "awayWinProbability": self.away_win_probability,
            "mostLikelyScore": _format_score(self.most_likely_score),
            "simulationCount": self.simulation_count,
            "bttsProbability": self.btts_probability,
            "bttsNoProbability": self.btts_no_probability,
            "over2_5Probability": self.over2_5_probability,
            "under2_5Probability": self.under2_5_probability,
            "scoreDistribution": [
                {"score": _format_score(score), "frequency": count}
                for score, count in sorted(
                    self.score_distribution.items(), key=lambda item: (-item[1], item[0])
                )
            ],
            "topScoreDistribution": [
                {"score": _format_score(score), "frequency": count}
                for score, count in self.top_score_distribution
            ],
            "homeExpectedGoals": self.home_expected_goals,
            "awayExpectedGoals": self.away_expected_goals,
            "confidenceIntervals": {k: list(v) for k, v in self.confidence_intervals.items()},
        }


class SignalColor(Enum):
    GREEN = "GREEN"
    YELLOW = "YELLOW"
    RED = "RED"


class ScenarioType(Enum):
    """Mastermind verdict tiers, from strongest to weakest."""

    BANKER = "BANKER"
    VALUE = "VALUE"
    RISKY = "RISKY"
    AVOID = "AVOID"


@dataclass(frozen=True)
class MastermindSignal:
    """The final fused verdict for a fixture."""

    title: str
    description: str
    color: SignalColor
    confidence: int
    recommendation: str
    scenario_type: ScenarioType
    market: Optional[BettingMarket] = None
    market_probability: Optional[float] = None
    confidence_adjustment: int = 0
    reasoning: Tuple[str, ...] = ()
    banker_confidence_threshold: int = 80
    goal_market: Optional[str] = None

    def __post_init__(self):
        if not 0 <= self.confidence <= 100:
            raise ValueError(f"Confidence must be between 0 and 100, got {self.confidence}")
        if not self.title.strip():
            raise ValueError("Title cannot be blank")
        if not self.recommendation.strip():
            raise ValueError("Recommendation cannot be blank")
        if self.market_probability is not None and not 0.0 <= self.market_probability <= 1.0:
            raise ValueError(f"Market probability out of range: {self.market_probability}")
        object.__setattr__(self, "reasoning", tuple(self.reasoning))

    @property
    def is_banker(self) -> bool:
        return (
            self.scenario_type == ScenarioType.BANKER
            and self.confidence >= self.banker_confidence_threshold
        )

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "description": self.description,
            "color": self.color.value,
            "confidence": self.confidence,
            "recommendation": self.recommendation,
            "scenarioType": self.scenario_type.value,
            "isBanker": self.is_banker,
            "market": self.market.value if self.market else None,
            "marketProbability": self.market_probability,
            "confidenceAdjustment": self.confidence_adjustment,
            "reasoning": list(self.reasoning),
            "goalMarket": self.goal_market,
        }


STRONG_WIN_DELTA = 30
CLOSE_GAME_DELTA = 15


@dataclass(frozen=True)
class OracleAnalysis:
    """Deterministic standings-based prediction, optionally carrying the downstream results."""

    predicted_score: Score
    confidence: int
    reasoning: str
    home_power_score: int = 100
    away_power_score: int = 100
    home_expected_goals: float = 0.0
    away_expected_goals: float = 0.0
    standings_source: DataSource = DataSource.API_OFFICIAL
    head_to_head_matches: int = 0
    tesseract: Optional[TesseractResult] = None
    simulation_context: Optional[SimulationContext] = None
    mastermind_signal: Optional[MastermindSignal] = None
    llm_grade_enhancement: Optional[LLMGradeEnhancement] = None

    def __post_init__(self):
        if not 0 <= self.confidence <= 100:
            raise ValueError(f"Confidence must be between 0 and 100, got {self.confidence}")
        home, away = self.predicted_score
        if home < 0 or away < 0 or int(home) != home or int(away) != away:
            raise ValueError(f"Predicted score must be non-negative integers, got {self.predicted_score}")
        for name in ("home_power_score", "away_power_score"):
            value = getattr(self, name)
            if not 0 <= value <= 200:
                raise ValueError(f"{name} must be between 0 and 200, got {value}")

    @property
    def power_delta(self) -> int:
        """Home minus away power; positive favours the home side."""
        return self.home_power_score - self.away_power_score

    @property
    def predicted_outcome(self) -> BettingMarket:
        return outcome_of(self.predicted_score)

    @property
    def is_strong_home_win(self) -> bool:
        return self.power_delta > STRONG_WIN_DELTA

    @property
    def is_strong_away_win(self) -> bool:
        return self.power_delta < -STRONG_WIN_DELTA

    @property
    def is_close_game(self) -> bool:
        return -CLOSE_GAME_DELTA <= self.power_delta <= CLOSE_GAME_DELTA

    def betting_tip(self, home_team: str = "Home", away_team: str = "Away") -> str:
        if self.is_strong_away_win:
            return f"{away_team} to win & Under 2.5 Goals"
        if self.power_delta < -CLOSE_GAME_DELTA:
            return f"{away_team} to win or Draw"
        if self.is_strong_home_win:
            return f"{home_team} to win & Over 2.5 Goals"
        if self.power_delta > CLOSE_GAME_DELTA:
            return f"{home_team} to win or Draw"
        return "Draw & Both Teams To Score"

    def to_dict(self) -> dict:
        return {
            "predictedScore": _format_score(self.predicted_score),
            "confidence": self.confidence,
            "reasoning": self.reasoning,
            "homePowerScore": self.home_power_score,
            "awayPowerScore": self.away_power_score,
            "homeExpectedGoals": self.home_expected_goals,
            "awayExpectedGoals": self.away_expected_goals,
            "standingsSource": self.standings_source.value,
            "headToHeadMatches": self.head_to_head_matches,
            "tesseract": self.tesseract.to_dict() if self.tesseract else None,
            "simulationContext": (
                self.simulation_context.to_dict() if self.simulation_context else None
            ),
            "mastermindSignal": (
                self.mastermind_signal.to_dict() if self.mastermind_signal else None
            ),
            "llmGradeEnhancement": (
                self.llm_grade_enhancement.to_dict() if self.llm_grade_enhancement else None
            ),
        }


def wilson_interval(p: float, n: int, z: float = 1.96) -> Tuple[float, float]:
    """Wilson score interval for a proportion observed over n trials."""
    if n <= 0:
        return 0.0, 1.0
    denom = 1 + z ** 2 / n
    center = (p + z ** 2 / (2 * n)) / denom
    margin = z * math.sqrt(p * (1 - p) / n + z ** 2 / (4 * n ** 2)) / denom
    return max(0.0, center - margin), min(1.0, center + margin)
