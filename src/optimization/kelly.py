"""
Kelly criterion stake sizing for the 1X2 markets.

Full Kelly f* = (b*p - q) / b with b = odds - 1, never negative, scaled by
a fractional-Kelly multiplier (quarter Kelly by default) and capped.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Union

from ..models.analysis import TesseractResult
from ..models.game import Fixture
from ..models.market import (
    BettingMarket,
    KellyResult,
    MarketOdds,
    RiskLevel,
    ValueBet,
)

logger = logging.getLogger(__name__)


# (minimum raw Kelly fraction, value score), highest first
VALUE_SCORE_BANDS = (
    (0.20, 10),
    (0.16, 9),
    (0.13, 8),
    (0.10, 7),
    (0.08, 6),
    (0.06, 5),
    (0.04, 4),
    (0.02, 3),
    (0.01, 2),
)


@dataclass
class KellyConfig:
    """Fractional-Kelly multiplier, stake cap and risk-tier thresholds."""

    fraction: float = 0.25
    max_stake: float = 0.25
    low_risk_below: float = 0.02
    medium_risk_below: float = 0.05
    high_risk_below: float = 0.10


def kelly_fraction(probability: float, odds: float) -> float:
    """
    Full Kelly stake fraction.

    Args:
        probability: Model probability of the outcome
        odds: Decimal odds including stake

    Returns:
        Fraction of bankroll, 0.0 for a non-positive edge or degenerate input
    """
    if odds is None or probability is None or odds <= 1.0 or probability <= 0.0:
        return 0.0
    p = min(probability, 1.0)
    b = odds - 1.0
    return max((b * p - (1.0 - p)) / b, 0.0)


def value_score(fraction: float) -> int:
    """Map a raw Kelly fraction onto the 0-10 value scale."""
    for minimum, score in VALUE_SCORE_BANDS:
        if fraction >= minimum:
            return score
    return 1 if fraction > 0 else 0


def recommended_stake(fraction: float, config: KellyConfig = None) -> float:
    config = config or KellyConfig()
    return min(fraction * config.fraction, config.max_stake)


def risk_level_for_stake(stake: float, config: KellyConfig = None) -> RiskLevel:
    config = config or KellyConfig()
    if stake < config.low_risk_below:
        return RiskLevel.LOW
    if stake < config.medium_risk_below:
        return RiskLevel.MEDIUM
    if stake < config.high_risk_below:
        return RiskLevel.HIGH
    return RiskLevel.VERY_HIGH


def implied_probabilities(odds: MarketOdds) -> Dict[BettingMarket, float]:
    """
    Bookmaker implied probabilities per quoted market.

    When all three prices are quoted the raw 1/o values are rescaled to sum
    to 1 (margin removed); otherwise the raw values are returned.
    """
    raw = {m: 1.0 / odds.price(m) for m in BettingMarket if odds.price(m) is not None}
    if odds.is_complete:
        total = sum(raw.values())
        return {m: v / total for m, v in raw.items()}
    return raw


def bookmaker_margin(odds: MarketOdds) -> float:
    """Overround of a complete 1X2 book, 0.0 when a price is missing."""
    if not odds.is_complete:
        return 0.0
    return sum(1.0 / odds.price(m) for m in BettingMarket) - 1.0


@dataclass(frozen=True)
class StakeRecommendation:
    """Kelly sizing for a single probability and price."""

    probability: float
    odds: float
    kelly: float
    stake: float
    value_score: int
    risk_level: RiskLevel
    edge: float

    def to_dict(self) -> dict:
        return {
            "probability": self.probability,
            "odds": self.odds,
            "kelly": self.kelly,
            "stake": self.stake,
            "valueScore": self.value_score,
            "riskLevel": self.risk_level.value,
            "edge": self.edge,
        }


ProbabilityInput = Union[TesseractResult, Mapping[BettingMarket, float], None]


class KellyCalculator:
    """Kelly staking analysis across the home/draw/away markets."""

    def __init__(self, config: KellyConfig = None):
        self.config = config or KellyConfig()

    def evaluate(self, probability: float, odds: float) -> StakeRecommendation:
        """Size a single bet."""
        f = kelly_fraction(probability, odds)
        stake = recommended_stake(f, self.config)
        edge = probability - 1.0 / odds if odds and odds > 1.0 else 0.0
        return StakeRecommendation(
            probability=probability,
            odds=odds,
            kelly=f,
            stake=stake,
            value_score=value_score(f),
            risk_level=risk_level_for_stake(stake, self.config),
            edge=edge,
        )

    @staticmethod
    def _probabilities(probabilities: ProbabilityInput) -> Dict[BettingMarket, float]:
        if probabilities is None:
            return {}
        if isinstance(probabilities, TesseractResult):
            return {m: probabilities.probability_of(m) for m in BettingMarket}
        return {m: p for m, p in probabilities.items() if p is not None}

    def calculate(
        self,
        fixture: Fixture,
        probabilities: ProbabilityInput,
        odds: Optional[MarketOdds],
        confidence: int = 0,
    ) -> KellyResult:
        """
        Kelly analysis for a fixture.

        Args:
            fixture: Fixture being priced
            probabilities: Model probabilities per market (or a TesseractResult)
            odds: Bookmaker decimal odds
            confidence: Confidence carried into the result (e.g. Mastermind's)

        Returns:
            KellyResult; KellyResult.empty() when odds or probabilities are
            missing or no market has a positive edge
        """
        model = self._probabilities(probabilities)
        if odds is None or not odds.has_odds or not model:
            logger.info("No odds or probabilities for fixture %s", fixture.fixture_id)
            return KellyResult.empty(fixture.fixture_id, fixture.home_team, fixture.away_team)

        implied = implied_probabilities(odds)
        kellys: Dict[BettingMarket, Optional[float]] = {}
        edges: Dict[BettingMarket, float] = {}
        for market in BettingMarket:
            price = odds.price(market)
            p = model.get(market)
            if price is None or p is None:
                kellys[market] = None
                continue
            kellys[market] = kelly_fraction(p, price)
            edges[market] = p - implied[market]

        priced = {m: f for m, f in kellys.items() if f is not None}
        best = max(priced, key=priced.get) if priced else None
        if best is None or priced[best] <= 0.0:
            logger.info("No positive-edge market for fixture %s", fixture.fixture_id)
            return KellyResult.empty(
                fixture.fixture_id,
                fixture.home_team,
                fixture.away_team,
                analysis="No positive-edge bet available",
            )

        best_f = priced[best]
        stake = recommended_stake(best_f, self.config)
        scores = {m: value_score(f or 0.0) for m, f in kellys.items()}
        price = odds.price(best)

        analysis = (
            f"{best.label} at {price:.2f}: model {model[best]:.1%} vs implied "
            f"{implied[best]:.1%} (edge {edges[best]:+.1%}), Kelly {best_f:.3f}, "
            f"stake {stake:.1%} of bankroll"
        )
        logger.debug("Kelly %s: %s", fixture.fixture_id, analysis)

        return KellyResult(
            fixture_id=fixture.fixture_id,
            home_team=fixture.home_team,
            away_team=fixture.away_team,
            home_win_kelly=kellys[BettingMarket.HOME_WIN],
            draw_kelly=kellys[BettingMarket.DRAW],
            away_win_kelly=kellys[BettingMarket.AWAY_WIN],
            home_win_value_score=scores[BettingMarket.HOME_WIN],
            draw_value_score=scores[BettingMarket.DRAW],
            away_win_value_score=scores[BettingMarket.AWAY_WIN],
            best_value_bet=ValueBet(
                market=best,
                description=f"{best.label} @ {price:.2f}",
                value_score=scores[best],
            ),
            risk_level=risk_level_for_stake(stake, self.config),
            recommended_stake_percentage=stake,
            analysis=analysis,
            confidence=int(max(0, min(100, confidence))),
            edges=edges,
            bookmaker_margin=bookmaker_margin(odds),
        )
