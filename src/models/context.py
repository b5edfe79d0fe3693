"""
Qualitative match context.

Holds the fitness/distraction record consumed by the Tesseract simulator and
the context factors and outlier scenarios that an external news analysis
step hands to the Mastermind engine.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import ClassVar, Optional, Sequence, Tuple

import pytz

from .market import RiskLevel


NEUTRAL_FITNESS = 85
NEUTRAL_DISTRACTION = 25


@dataclass(frozen=True)
class SimulationContext:
    """Per-team fitness and distraction levels (0-100) for one fixture."""

    home_fitness: int = NEUTRAL_FITNESS
    away_fitness: int = NEUTRAL_FITNESS
    home_distraction: int = NEUTRAL_DISTRACTION
    away_distraction: int = NEUTRAL_DISTRACTION
    reasoning: str = ""

    NEUTRAL: ClassVar["SimulationContext"]

    def __post_init__(self):
        for name in ("home_fitness", "away_fitness", "home_distraction", "away_distraction"):
            value = getattr(self, name)
            if not 0 <= value <= 100:
                raise ValueError(f"{name} must be between 0 and 100, got {value}")

    @property
    def is_neutral(self) -> bool:
        return (
            self.home_fitness == NEUTRAL_FITNESS
            and self.away_fitness == NEUTRAL_FITNESS
            and self.home_distraction == NEUTRAL_DISTRACTION
            and self.away_distraction == NEUTRAL_DISTRACTION
        )

    @property
    def has_low_fitness(self) -> bool:
        return self.home_fitness < 70 or self.away_fitness < 70

    @property
    def has_high_distraction(self) -> bool:
        return self.home_distraction > 70 or self.away_distraction > 70

    def to_dict(self) -> dict:
        return {
            "homeFitness": self.home_fitness,
            "awayFitness": self.away_fitness,
            "homeDistraction": self.home_distraction,
            "awayDistraction": self.away_distraction,
            "reasoning": self.reasoning,
        }


SimulationContext.NEUTRAL = SimulationContext(reasoning="No known issues for either side")


@dataclass(frozen=True)
class TeamSignals:
    """Raw external signals for one team, already resolved by the caller."""

    injured_players: int = 0
    key_players_out: int = 0
    news_sentiment: float = 0.0  # -1 (very negative) .. 1 (very positive)
    matches_last_14_days: int = 0

    def __post_init__(self):
        if self.injured_players < 0 or self.key_players_out < 0:
            raise ValueError("Injury counts cannot be negative")
        if self.key_players_out > self.injured_players:
            raise ValueError("Key players out cannot exceed total injured players")
        if not -1.0 <= self.news_sentiment <= 1.0:
            raise ValueError(f"News sentiment must be in [-1, 1], got {self.news_sentiment}")
        if self.matches_last_14_days < 0:
            raise ValueError("Match count cannot be negative")

    @classmethod
    def from_dict(cls, data: dict) -> "TeamSignals":
        return cls(
            injured_players=int(data.get("injuredPlayers", data.get("injured_players", 0))),
            key_players_out=int(data.get("keyPlayersOut", data.get("key_players_out", 0))),
            news_sentiment=float(data.get("newsSentiment", data.get("news_sentiment", 0.0))),
            matches_last_14_days=int(
                data.get("matchesLast14Days", data.get("matches_last_14_days", 0))
            ),
        )


class ContextFactorType(Enum):
    """Kind of qualitative factor extracted from news and reports."""

    INJURIES = "injuries"
    NEWS = "news"
    FORM = "form"
    TEAM_MORALE = "team_morale"
    TACTICAL_CHANGES = "tactical_changes"
    WEATHER = "weather"
    PRESSURE = "pressure"
    HISTORICAL_ANOMALY = "historical_anomaly"

    @property
    def default_weight(self) -> float:
        return _DEFAULT_FACTOR_WEIGHTS[self]


_DEFAULT_FACTOR_WEIGHTS = {
    ContextFactorType.INJURIES: 1.0,
    ContextFactorType.TACTICAL_CHANGES: 0.85,
    ContextFactorType.TEAM_MORALE: 0.8,
    ContextFactorType.FORM: 0.8,
    ContextFactorType.PRESSURE: 0.7,
    ContextFactorType.NEWS: 0.6,
    ContextFactorType.HISTORICAL_ANOMALY: 0.6,
    ContextFactorType.WEATHER: 0.5,
}

HIGH_IMPACT_SCORE = 8
NEGATIVE_SCORE = 4


@dataclass(frozen=True)
class ContextFactor:
    """A qualitative factor scored 0-10 (higher = stronger support for the call)."""

    type: ContextFactorType
    score: int
    description: str
    weight: float = 1.0

    def __post_init__(self):
        if not 0 <= self.score <= 10:
            raise ValueError(f"Score must be between 0 and 10, got {self.score}")
        if not 0.0 <= self.weight <= 1.0:
            raise ValueError(f"Weight must be between 0 and 1, got {self.weight}")
        if not self.description.strip():
            raise ValueError("Description cannot be blank")

    @property
    def is_high_impact(self) -> bool:
        return self.score >= HIGH_IMPACT_SCORE

    @property
    def is_negative(self) -> bool:
        return self.score <= NEGATIVE_SCORE

    @property
    def weighted_score(self) -> float:
        return self.score * self.weight

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "score": self.score,
            "description": self.description,
            "weight": self.weight,
            "isHighImpact": self.is_high_impact,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ContextFactor":
        factor_type = ContextFactorType(str(data["type"]).lower())
        return cls(
            type=factor_type,
            score=int(data["score"]),
            description=data["description"],
            weight=float(data.get("weight", factor_type.default_weight)),
        )


@dataclass(frozen=True)
class OutlierScenario:
    """An unexpected outcome that the statistical models may miss."""

    description: str
    probability: float
    supporting_factors: Tuple[str, ...] = ()
    historical_precedents: Tuple[str, ...] = ()
    impact_score: int = 5

    def __post_init__(self):
        if not 0.0 <= self.probability <= 1.0:
            raise ValueError(f"Probability must be between 0 and 1, got {self.probability}")
        if not 0 <= self.impact_score <= 10:
            raise ValueError(f"Impact score must be between 0 and 10, got {self.impact_score}")
        if not self.description.strip():
            raise ValueError("Description cannot be blank")
        object.__setattr__(self, "supporting_factors", tuple(self.supporting_factors))
        object.__setattr__(self, "historical_precedents", tuple(self.historical_precedents))

    @property
    def risk_level(self) -> RiskLevel:
        if self.probability >= 0.5 and self.impact_score >= 8:
            return RiskLevel.VERY_HIGH
        if self.probability >= 0.2 and self.impact_score >= 7:
            return RiskLevel.HIGH
        if self.probability >= 0.1 and self.impact_score >= 5:
            return RiskLevel.MEDIUM
        return RiskLevel.LOW

    def to_dict(self) -> dict:
        return {
            "description": self.description,
            "probability": self.probability,
            "supportingFactors": list(self.supporting_factors),
            "historicalPrecedents": list(self.historical_precedents),
            "impactScore": self.impact_score,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "OutlierScenario":
        return cls(
            description=data["description"],
            probability=float(data["probability"]),
            supporting_factors=tuple(data.get("supportingFactors", ())),
            historical_precedents=tuple(data.get("historicalPrecedents", ())),
            impact_score=int(data.get("impactScore", 5)),
        )


MAX_CONFIDENCE_ADJUSTMENT = 20

# (minimum weighted average score, confidence adjustment)
_ADJUSTMENT_BANDS = (
    (7.0, 15),
    (5.5, 10),
    (4.5, 5),
    (3.5, 0),
    (2.5, -5),
    (1.5, -10),
)


@dataclass(frozen=True)
class LLMGradeEnhancement:
    """Context factors and outlier scenarios produced by an external analysis step."""

    context_factors: Tuple[ContextFactor, ...] = ()
    outlier_scenarios: Tuple[OutlierScenario, ...] = ()
    enhanced_reasoning: str = ""
    confidence_adjustment: int = 0
    high_probability_threshold: float = 0.20
    generated_at: datetime = field(
        default_factory=lambda: datetime.now(pytz.utc), compare=False
    )

    def __post_init__(self):
        object.__setattr__(self, "context_factors", tuple(self.context_factors))
        object.__setattr__(self, "outlier_scenarios", tuple(self.outlier_scenarios))
        if not -100 <= self.confidence_adjustment <= 100:
            raise ValueError(
                f"Confidence adjustment must be between -100 and 100, got {self.confidence_adjustment}"
            )

    @property
    def most_impactful_factor(self) -> Optional[ContextFactor]:
        if not self.context_factors:
            return None
        return max(self.context_factors, key=lambda f: f.score)

    @property
    def has_high_probability_outliers(self) -> bool:
        return any(
            o.probability >= self.high_probability_threshold for o in self.outlier_scenarios
        )

    @property
    def highest_probability_outlier(self) -> Optional[OutlierScenario]:
        if not self.outlier_scenarios:
            return None
        return max(self.outlier_scenarios, key=lambda o: o.probability)

    @property
    def has_high_impact_factors(self) -> bool:
        return any(f.is_high_impact for f in self.context_factors)

    @property
    def overall_context_score(self) -> float:
        """Weighted average factor score; 5.0 (neutral) without factors."""
        total_weight = sum(f.weight for f in self.context_factors)
        if total_weight <= 0:
            return 5.0
        return sum(f.weighted_score for f in self.context_factors) / total_weight

    @property
    def negative_factor_share(self) -> float:
        if not self.context_factors:
            return 0.0
        return sum(1 for f in self.context_factors if f.is_negative) / len(self.context_factors)

    def adjusted_confidence(self, base_confidence: int) -> int:
        return max(0, min(100, base_confidence + self.confidence_adjustment))

    def to_dict(self) -> dict:
        factor = self.most_impactful_factor
        outlier = self.highest_probability_outlier
        return {
            "contextFactors": [f.to_dict() for f in self.context_factors],
            "outlierScenarios": [o.to_dict() for o in self.outlier_scenarios],
            "enhancedReasoning": self.enhanced_reasoning,
            "confidenceAdjustment": self.confidence_adjustment,
            "hasHighProbabilityOutliers": self.has_high_probability_outliers,
            "mostImpactfulFactor": factor.to_dict() if factor else None,
            "highestProbabilityOutlier": outlier.to_dict() if outlier else None,
            "generatedAt": self.generated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LLMGradeEnhancement":
        factors = tuple(ContextFactor.from_dict(f) for f in data.get("contextFactors", ()))
        outliers = tuple(OutlierScenario.from_dict(o) for o in data.get("outlierScenarios", ()))
        reasoning = data.get("enhancedReasoning", "")
        if "confidenceAdjustment" in data:
            return cls(
                context_factors=factors,
                outlier_scenarios=outliers,
                enhanced_reasoning=reasoning,
                confidence_adjustment=int(data["confidenceAdjustment"]),
            )
        return cls.from_context_factors(factors, reasoning, outliers)

    @classmethod
    def empty(cls) -> "LLMGradeEnhancement":
        """Enhancement used when no qualitative analysis is available."""
        return cls(enhanced_reasoning="No qualitative context available")

    @classmethod
    def from_context_factors(
        cls,
        context_factors: Sequence[ContextFactor],
        enhanced_reasoning: str = "",
        outlier_scenarios: Sequence[OutlierScenario] = (),
    ) -> "LLMGradeEnhancement":
        """
        Build an enhancement, deriving the confidence adjustment from the factors.

        The weighted average factor score is mapped onto a -15..+15
        adjustment; no factors means no adjustment.

        Args:
            context_factors: Scored qualitative factors
            enhanced_reasoning: Free-text summary
            outlier_scenarios: Optional outlier scenarios

        Returns:
            LLMGradeEnhancement
        """
        enhancement = cls(
            context_factors=tuple(context_factors),
            outlier_scenarios=tuple(outlier_scenarios),
            enhanced_reasoning=enhanced_reasoning,
        )
        if not enhancement.context_factors:
            return enhancement

        score = enhancement.overall_context_score
        adjustment = -15
        for minimum, value in _ADJUSTMENT_BANDS:
            if score >= minimum:
                adjustment = value
                break
        adjustment = max(-MAX_CONFIDENCE_ADJUSTMENT, min(MAX_CONFIDENCE_ADJUSTMENT, adjustment))
        return cls(
            context_factors=enhancement.context_factors,
            outlier_scenarios=enhancement.outlier_scenarios,
            enhanced_reasoning=enhanced_reasoning,
            confidence_adjustment=adjustment,
        )
