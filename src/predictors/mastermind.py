"""
Mastermind: fuses the Oracle baseline, the Tesseract simulation and
qualitative context into a single verdict.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from ..models.analysis import (
    MastermindSignal,
    OracleAnalysis,
    ScenarioType,
    SignalColor,
    TesseractResult,
)
from ..models.context import LLMGradeEnhancement
from ..models.market import BettingMarket

logger = logging.getLogger(__name__)


SCENARIO_COLORS = {
    ScenarioType.BANKER: SignalColor.GREEN,
    ScenarioType.VALUE: SignalColor.GREEN,
    ScenarioType.RISKY: SignalColor.YELLOW,
    ScenarioType.AVOID: SignalColor.RED,
}

GOALS_FESTIVAL = "Over 2.5 Goals & BTTS Yes"
DEFENSIVE_BATTLE = "Under 2.5 Goals"


@dataclass
class MastermindConfig:
    """Thresholds and weights for the consensus decision."""

    oracle_weight: float = 0.4
    tesseract_weight: float = 0.6
    banker_probability: float = 0.65
    value_gap: float = 0.10  # disagreement needed to back the longer-odds side
    banker_confidence: int = 80
    oracle_only_risky_confidence: int = 50
    avoid_below_confidence: int = 35
    negative_factor_majority: float = 0.5
    goals_festival_over: float = 0.65
    goals_festival_btts: float = 0.60
    defensive_battle_under: float = 0.70
    defensive_battle_btts: float = 0.40
    tactical_duel_delta: int = 20
    tactical_duel_min_confidence: int = 50
    tactical_duel_max_confidence: int = 70


class MastermindEngine:
    """
    Consensus engine over Oracle and Tesseract.

    Agreement with a strong simulated probability gives a BANKER,
    agreement below it a VALUE call. Disagreement backs the simulated
    favourite as VALUE when it is the side the Oracle rated weaker and the
    gap is wide, and is RISKY otherwise. Qualitative context then shifts
    the confidence and can veto a BANKER.

    Independently of the 1X2 tier, strong simulated totals add a goal-market
    call and a close, medium-confidence Oracle read is noted as a tactical duel.
    """

    def __init__(self, config: MastermindConfig = None):
        self.config = config or MastermindConfig()

    def _oracle_underdog(self, oracle: OracleAnalysis) -> Optional[BettingMarket]:
        if oracle.power_delta > 0:
            return BettingMarket.AWAY_WIN
        if oracle.power_delta < 0:
            return BettingMarket.HOME_WIN
        return None

    def goal_market(self, tesseract: TesseractResult) -> Optional[str]:
        """Totals call backed by the simulated goal markets, if any."""
        cfg = self.config
        if (
            tesseract.over2_5_probability > cfg.goals_festival_over
            and tesseract.btts_probability > cfg.goals_festival_btts
        ):
            return GOALS_FESTIVAL
        if (
            tesseract.under2_5_probability > cfg.defensive_battle_under
            and tesseract.btts_probability < cfg.defensive_battle_btts
        ):
            return DEFENSIVE_BATTLE
        return None

    def is_tactical_duel(self, oracle: OracleAnalysis) -> bool:
        cfg = self.config
        return (
            abs(oracle.power_delta) <= cfg.tactical_duel_delta
            and cfg.tactical_duel_min_confidence
            <= oracle.confidence
            <= cfg.tactical_duel_max_confidence
        )

    def _blend(self, oracle_confidence: int, probability: float) -> float:
        return (
            self.config.oracle_weight * oracle_confidence
            + self.config.tesseract_weight * probability * 100.0
        )

    def analyze(
        self,
        oracle: OracleAnalysis,
        tesseract: Optional[TesseractResult] = None,
        enhancement: Optional[LLMGradeEnhancement] = None,
    ) -> MastermindSignal:
        """
        Produce the fused verdict for a fixture.

        Args:
            oracle: Oracle baseline
            tesseract: Simulation result (optional)
            enhancement: Qualitative context (optional)

        Returns:
            MastermindSignal
        """
        cfg = self.config
        reasoning: List[str] = []
        oracle_outcome = oracle.predicted_outcome
        market_probability = None
        goal_call = None

        if tesseract is None:
            confidence = float(oracle.confidence)
            market = oracle_outcome
            scenario = (
                ScenarioType.RISKY
                if confidence >= cfg.oracle_only_risky_confidence
                else ScenarioType.AVOID
            )
            reasoning.append(
                f"No simulation available; Oracle-only confidence {oracle.confidence}%"
            )
            logger.info("Mastermind running without Tesseract backing")
        else:
            favourite = tesseract.favourite
            p_fav = tesseract.probability_of(favourite)
            market = favourite
            market_probability = p_fav
            confidence = self._blend(oracle.confidence, p_fav)
            reasoning.append(
                f"Oracle predicts {oracle_outcome.label} ({oracle.confidence}%); "
                f"Tesseract favours {favourite.label} at {p_fav:.1%}"
            )

            if favourite == oracle_outcome:
                if p_fav >= cfg.banker_probability:
                    scenario = ScenarioType.BANKER
                    reasoning.append(
                        f"Models agree and {p_fav:.1%} clears the {cfg.banker_probability:.0%} banker line"
                    )
                else:
                    scenario = ScenarioType.VALUE
                    reasoning.append(
                        f"Models agree but {p_fav:.1%} is below the {cfg.banker_probability:.0%} banker line"
                    )
            else:
                gap = p_fav - tesseract.probability_of(oracle_outcome)
                confidence *= 1.0 - gap
                if favourite == self._oracle_underdog(oracle) and gap >= cfg.value_gap:
                    scenario = ScenarioType.VALUE
                    reasoning.append(
                        f"Simulation backs the Oracle underdog by {gap:.1%}; longer-odds value"
                    )
                else:
                    scenario = ScenarioType.RISKY
                    reasoning.append(f"Models disagree (gap {gap:.1%}); genuine uncertainty")

            goal_call = self.goal_market(tesseract)
            if goal_call == GOALS_FESTIVAL:
                reasoning.append(
                    f"Goals festival: over 2.5 at {tesseract.over2_5_probability:.1%}, "
                    f"BTTS at {tesseract.btts_probability:.1%}"
                )
            elif goal_call == DEFENSIVE_BATTLE:
                reasoning.append(
                    f"Defensive battle: under 2.5 at {tesseract.under2_5_probability:.1%}, "
                    f"BTTS at {tesseract.btts_probability:.1%}"
                )

        if self.is_tactical_duel(oracle):
            reasoning.append(
                f"Tactical duel: power gap {oracle.power_delta:+d}, small margins expected"
            )

        adjustment = 0
        outlier_note = ""
        if enhancement is not None:
            adjustment = enhancement.confidence_adjustment
            if adjustment:
                reasoning.append(f"Context adjustment {adjustment:+d}")

            if enhancement.has_high_probability_outliers:
                outlier = enhancement.highest_probability_outlier
                outlier_note = f"Outlier risk: {outlier.description} ({outlier.probability:.0%})"
                reasoning.append(outlier_note)
                if scenario == ScenarioType.BANKER:
                    scenario = ScenarioType.RISKY
                    reasoning.append("Banker downgraded to RISKY by outlier scenario")

            if (
                scenario == ScenarioType.BANKER
                and enhancement.negative_factor_share > cfg.negative_factor_majority
            ):
                scenario = ScenarioType.VALUE
                reasoning.append("Banker downgraded to VALUE by mostly negative context")

        final_confidence = int(round(max(0.0, min(100.0, confidence + adjustment))))

        if final_confidence < cfg.avoid_below_confidence and scenario != ScenarioType.AVOID:
            scenario = ScenarioType.AVOID
            reasoning.append(f"Confidence {final_confidence}% too low to recommend a market")
        if scenario == ScenarioType.AVOID:
            market = None
            market_probability = None

        signal = MastermindSignal(
            title=self._title(scenario, market),
            description=self._description(scenario, market, market_probability, outlier_note),
            color=SCENARIO_COLORS[scenario],
            confidence=final_confidence,
            recommendation=self._recommendation(scenario, market, goal_call),
            scenario_type=scenario,
            market=market,
            market_probability=market_probability,
            confidence_adjustment=adjustment,
            reasoning=tuple(reasoning),
            banker_confidence_threshold=cfg.banker_confidence,
            goal_market=goal_call,
        )
        logger.debug("Mastermind verdict: %s %s%%", scenario.value, final_confidence)
        return signal

    @staticmethod
    def _title(scenario: ScenarioType, market: Optional[BettingMarket]) -> str:
        if market is None:
            return "Avoid"
        return f"{scenario.value.title()}: {market.label}"

    @staticmethod
    def _description(
        scenario: ScenarioType,
        market: Optional[BettingMarket],
        probability: Optional[float],
        outlier_note: str,
    ) -> str:
        if market is None:
            text = "No market offers enough confidence"
        elif probability is None:
            text = f"{market.label} on the Oracle baseline alone"
        else:
            text = f"{market.label} at {probability:.1%} simulated probability"
        if outlier_note:
            text = f"{text}. {outlier_note}"
        return text

    @staticmethod
    def _recommendation(
        scenario: ScenarioType,
        market: Optional[BettingMarket],
        goal_call: Optional[str] = None,
    ) -> str:
        if scenario == ScenarioType.BANKER:
            text = f"Back {market.label} with a full stake"
        elif scenario == ScenarioType.VALUE:
            text = f"Back {market.label} if the price offers value"
        elif scenario == ScenarioType.RISKY:
            text = f"Small stake on {market.label} only"
        else:
            text = "Skip this fixture"
        if goal_call:
            text = f"{text}; goals: {goal_call}"
        return text
