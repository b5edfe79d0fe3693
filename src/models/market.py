"""Betting market models: 1X2 markets, odds and Kelly staking results."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional


class BettingMarket(Enum):
    """The three full-time result markets (also used as match outcomes)."""

    HOME_WIN = "HOME_WIN"
    DRAW = "DRAW"
    AWAY_WIN = "AWAY_WIN"

    @property
    def label(self) -> str:
        return {
            BettingMarket.HOME_WIN: "Home Win",
            BettingMarket.DRAW: "Draw",
            BettingMarket.AWAY_WIN: "Away Win",
        }[self]


class RiskLevel(Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    VERY_HIGH = "VERY_HIGH"


@dataclass(frozen=True)
class MarketOdds:
    """Decimal odds (payout multiple including stake) for the 1X2 markets."""

    home_win: Optional[float] = None
    draw: Optional[float] = None
    away_win: Optional[float] = None

    def price(self, market: BettingMarket) -> Optional[float]:
        value = {
            BettingMarket.HOME_WIN: self.home_win,
            BettingMarket.DRAW: self.draw,
            BettingMarket.AWAY_WIN: self.away_win,
        }[market]
        # Zero or sub-evens-of-stake prices are placeholders, not quotes
        if value is None or value <= 1.0:
            return None
        return value

    @property
    def has_odds(self) -> bool:
        return any(self.price(m) is not None for m in BettingMarket)

    @property
    def is_complete(self) -> bool:
        return all(self.price(m) is not None for m in BettingMarket)

    def to_dict(self) -> dict:
        return {"homeWin": self.home_win, "draw": self.draw, "awayWin": self.away_win}

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "MarketOdds":
        if not data:
            return cls()

        def _get(*keys):
            for key in keys:
                if data.get(key) is not None:
                    return float(data[key])
            return None

        return cls(
            home_win=_get("homeWin", "home_win", "home"),
            draw=_get("draw"),
            away_win=_get("awayWin", "away_win", "away"),
        )


@dataclass(frozen=True)
class ValueBet:
    """The single best-value market, or no market when nothing has an edge."""

    market: Optional[BettingMarket]
    description: str
    value_score: int = 0

    def __post_init__(self):
        if not 0 <= self.value_score <= 10:
            raise ValueError(f"Value score must be between 0 and 10, got {self.value_score}")

    @property
    def has_value(self) -> bool:
        return self.market is not None and self.value_score > 0

    def to_dict(self) -> dict:
        return {
            "market": self.market.value if self.market else None,
            "description": self.description,
            "valueScore": self.value_score,
        }


@dataclass(frozen=True)
class KellyResult:
    """Kelly criterion staking analysis for one fixture."""

    fixture_id: int
    home_team: str
    away_team: str

    # Raw (full) Kelly fractions per market; None when the market has no price
    home_win_kelly: Optional[float]
    draw_kelly: Optional[float]
    away_win_kelly: Optional[float]

    home_win_value_score: int
    draw_value_score: int
    away_win_value_score: int

    best_value_bet: ValueBet
    risk_level: RiskLevel
    recommended_stake_percentage: float  # bankroll fraction, 0.032 == 3.2%
    analysis: str
    confidence: int

    edges: Dict[BettingMarket, float] = field(default_factory=dict)
    bookmaker_margin: float = 0.0

    def __post_init__(self):
        for name in ("home_win_kelly", "draw_kelly", "away_win_kelly"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ValueError(f"{name} cannot be negative, got {value}")
        if self.recommended_stake_percentage < 0:
            raise ValueError("Recommended stake cannot be negative")
        if not 0 <= self.confidence <= 100:
            raise ValueError(f"Confidence must be between 0 and 100, got {self.confidence}")

    def kelly_for_market(self, market: BettingMarket) -> Optional[float]:
        return {
            BettingMarket.HOME_WIN: self.home_win_kelly,
            BettingMarket.DRAW: self.draw_kelly,
            BettingMarket.AWAY_WIN: self.away_win_kelly,
        }[market]

    def value_score_for_market(self, market: BettingMarket) -> int:
        return {
            BettingMarket.HOME_WIN: self.home_win_value_score,
            BettingMarket.DRAW: self.draw_value_score,
            BettingMarket.AWAY_WIN: self.away_win_value_score,
        }[market]

    @property
    def has_value_bet(self) -> bool:
        return any((self.kelly_for_market(m) or 0.0) > 0.0 for m in BettingMarket)

    @property
    def recommended_stake_formatted(self) -> str:
        if self.recommended_stake_percentage <= 0.0:
            return "No bet"
        if self.recommended_stake_percentage < 0.01:
            return "<1% of bankroll"
        return f"{self.recommended_stake_percentage * 100:.1f}% of bankroll"

    def to_dict(self) -> dict:
        return {
            "fixtureId": self.fixture_id,
            "homeTeam": self.home_team,
            "awayTeam": self.away_team,
            "homeWinKelly": self.home_win_kelly,
            "drawKelly": self.draw_kelly,
            "awayWinKelly": self.away_win_kelly,
            "homeWinValueScore": self.home_win_value_score,
            "drawValueScore": self.draw_value_score,
            "awayWinValueScore": self.away_win_value_score,
            "bestValueBet": self.best_value_bet.to_dict(),
            "riskLevel": self.risk_level.value,
            "recommendedStakePercentage": self.recommended_stake_percentage,
            "analysis": self.analysis,
            "confidence": self.confidence,
            "edges": {m.value: e for m, e in self.edges.items()},
            "bookmakerMargin": self.bookmaker_margin,
        }

    @classmethod
    def empty(
        cls,
        fixture_id: int,
        home_team: str,
        away_team: str,
        analysis: str = "Insufficient data for Kelly analysis",
    ) -> "KellyResult":
        """Result for fixtures without odds, probabilities or any positive edge."""
        return cls(
            fixture_id=fixture_id,
            home_team=home_team,
            away_team=away_team,
            home_win_kelly=None,
            draw_kelly=None,
            away_win_kelly=None,
            home_win_value_score=0,
            draw_value_score=0,
            away_win_value_score=0,
            best_value_bet=ValueBet(market=None, description="No value bet available", value_score=0),
            risk_level=RiskLevel.LOW,
            recommended_stake_percentage=0.0,
            analysis=analysis,
            confidence=0,
        )
