"""Tests for the Mastermind consensus engine."""

import pytest

from src.models.analysis import OracleAnalysis, ScenarioType, SignalColor, TesseractResult
from src.models.context import (
    ContextFactor,
    ContextFactorType,
    LLMGradeEnhancement,
    OutlierScenario,
)
from src.models.market import BettingMarket
from src.predictors.mastermind import (
    DEFENSIVE_BATTLE,
    GOALS_FESTIVAL,
    MastermindConfig,
    MastermindEngine,
)


def make_oracle(score=(2, 1), confidence=70, home_power=120, away_power=100):
    return OracleAnalysis(
        predicted_score=score,
        confidence=confidence,
        reasoning="test",
        home_power_score=home_power,
        away_power_score=away_power,
    )


def make_tesseract(home, draw, away, btts=0.5, over=0.5):
    return TesseractResult(
        home_win_probability=home,
        draw_probability=draw,
        away_win_probability=away,
        most_likely_score=(1, 0),
        simulation_count=10000,
        btts_probability=btts,
        over2_5_probability=over,
    )


@pytest.fixture
def engine():
    return MastermindEngine()


def test_strong_agreement_is_banker(engine):
    signal = engine.analyze(make_oracle(confidence=90), make_tesseract(0.80, 0.12, 0.08))

    assert signal.scenario_type == ScenarioType.BANKER
    assert signal.confidence == 84
    assert signal.is_banker
    assert signal.color == SignalColor.GREEN
    assert signal.market == BettingMarket.HOME_WIN
    assert signal.market_probability == pytest.approx(0.80)


def test_banker_below_confidence_threshold_is_not_flagged(engine):
    signal = engine.analyze(make_oracle(confidence=70), make_tesseract(0.70, 0.18, 0.12))
    assert signal.scenario_type == ScenarioType.BANKER
    assert signal.confidence == 70
    assert not signal.is_banker


def test_agreement_below_banker_line_is_value(engine):
    signal = engine.analyze(make_oracle(confidence=70), make_tesseract(0.60, 0.22, 0.18))

    assert signal.scenario_type == ScenarioType.VALUE
    assert signal.confidence == 64
    assert not signal.is_banker
    assert signal.market == BettingMarket.HOME_WIN


def test_simulation_backing_oracle_underdog_is_value(engine):
    signal = engine.analyze(make_oracle(), make_tesseract(0.30, 0.20, 0.50))

    assert signal.scenario_type == ScenarioType.VALUE
    assert signal.market == BettingMarket.AWAY_WIN
    # (0.4*70 + 0.6*50) * (1 - 0.20)
    assert signal.confidence == 46


def test_narrow_disagreement_is_risky(engine):
    signal = engine.analyze(make_oracle(), make_tesseract(0.35, 0.40, 0.25))

    assert signal.scenario_type == ScenarioType.RISKY
    assert signal.color == SignalColor.YELLOW
    assert signal.market == BettingMarket.DRAW


def test_disagreement_toward_draw_is_risky_even_when_wide(engine):
    signal = engine.analyze(make_oracle(), make_tesseract(0.25, 0.50, 0.25))
    assert signal.scenario_type == ScenarioType.RISKY


def test_high_probability_outlier_vetoes_banker(engine):
    enhancement = LLMGradeEnhancement(
        outlier_scenarios=(OutlierScenario("Goalkeeper illness rumours", 0.25),),
    )
    signal = engine.analyze(
        make_oracle(confidence=90), make_tesseract(0.80, 0.12, 0.08), enhancement
    )

    assert signal.scenario_type == ScenarioType.RISKY
    assert not signal.is_banker
    assert "Goalkeeper illness rumours" in signal.description
    assert any("Goalkeeper illness rumours" in step for step in signal.reasoning)


def test_low_probability_outlier_keeps_banker(engine):
    enhancement = LLMGradeEnhancement(
        outlier_scenarios=(OutlierScenario("Freak weather", 0.05),),
    )
    signal = engine.analyze(
        make_oracle(confidence=90), make_tesseract(0.80, 0.12, 0.08), enhancement
    )
    assert signal.scenario_type == ScenarioType.BANKER


def test_negative_context_downgrades_banker(engine):
    factors = (
        ContextFactor(ContextFactorType.INJURIES, 2, "Three starters doubtful"),
        ContextFactor(ContextFactorType.TEAM_MORALE, 3, "Unpaid wages"),
        ContextFactor(ContextFactorType.FORM, 7, "Won last four"),
    )
    enhancement = LLMGradeEnhancement(context_factors=factors)
    signal = engine.analyze(
        make_oracle(confidence=90), make_tesseract(0.80, 0.12, 0.08), enhancement
    )
    assert signal.scenario_type == ScenarioType.VALUE


def test_adjustment_applied_and_clamped(engine):
    up = LLMGradeEnhancement(confidence_adjustment=20)
    down = LLMGradeEnhancement(confidence_adjustment=-10)
    tesseract = make_tesseract(0.80, 0.12, 0.08)

    assert engine.analyze(make_oracle(confidence=90), tesseract, up).confidence == 100
    signal = engine.analyze(make_oracle(confidence=90), tesseract, down)
    assert signal.confidence == 74
    assert signal.confidence_adjustment == -10


def test_low_confidence_becomes_avoid(engine):
    enhancement = LLMGradeEnhancement(confidence_adjustment=-10)
    signal = engine.analyze(
        make_oracle(confidence=40), make_tesseract(0.35, 0.25, 0.40), enhancement
    )

    assert signal.scenario_type == ScenarioType.AVOID
    assert signal.color == SignalColor.RED
    assert signal.market is None
    assert signal.market_probability is None


def test_oracle_only_is_never_banker(engine):
    confident = engine.analyze(make_oracle(confidence=95))
    assert confident.scenario_type == ScenarioType.RISKY
    assert confident.market == BettingMarket.HOME_WIN
    assert confident.market_probability is None
    assert not confident.is_banker

    unsure = engine.analyze(make_oracle(confidence=45))
    assert unsure.scenario_type == ScenarioType.AVOID
    assert unsure.market is None


def test_reasoning_trail_is_ordered(engine):
    enhancement = LLMGradeEnhancement(confidence_adjustment=5)
    signal = engine.analyze(make_oracle(), make_tesseract(0.60, 0.22, 0.18), enhancement)

    assert signal.reasoning[0].startswith("Oracle predicts Home Win")
    assert signal.reasoning[-1] == "Context adjustment +5"


def test_goals_festival_call(engine):
    signal = engine.analyze(
        make_oracle(confidence=90), make_tesseract(0.80, 0.12, 0.08, btts=0.65, over=0.70)
    )

    assert signal.scenario_type == ScenarioType.BANKER
    assert signal.goal_market == GOALS_FESTIVAL
    assert signal.recommendation.endswith("Over 2.5 Goals & BTTS Yes")
    assert any(step.startswith("Goals festival") for step in signal.reasoning)
    assert signal.to_dict()["goalMarket"] == GOALS_FESTIVAL


def test_defensive_battle_call(engine):
    signal = engine.analyze(
        make_oracle(confidence=90), make_tesseract(0.80, 0.12, 0.08, btts=0.35, over=0.25)
    )

    assert signal.goal_market == DEFENSIVE_BATTLE
    assert signal.recommendation.endswith("Under 2.5 Goals")
    assert any(step.startswith("Defensive battle") for step in signal.reasoning)


@pytest.mark.parametrize(
    "btts, over",
    [(0.5, 0.5), (0.65, 0.65), (0.60, 0.70), (0.40, 0.20), (0.35, 0.35)],
)
def test_no_goal_call_at_or_inside_thresholds(engine, btts, over):
    signal = engine.analyze(
        make_oracle(confidence=90), make_tesseract(0.80, 0.12, 0.08, btts=btts, over=over)
    )
    assert signal.goal_market is None
    assert "goals:" not in signal.recommendation


def test_goal_call_survives_avoid(engine):
    enhancement = LLMGradeEnhancement(confidence_adjustment=-60)
    signal = engine.analyze(
        make_oracle(confidence=90),
        make_tesseract(0.80, 0.12, 0.08, btts=0.30, over=0.20),
        enhancement,
    )
    assert signal.scenario_type == ScenarioType.AVOID
    assert signal.recommendation == "Skip this fixture; goals: Under 2.5 Goals"


def test_goal_thresholds_are_configurable():
    engine = MastermindEngine(MastermindConfig(goals_festival_over=0.45, goals_festival_btts=0.45))
    signal = engine.analyze(make_oracle(confidence=90), make_tesseract(0.80, 0.12, 0.08))
    assert signal.goal_market == GOALS_FESTIVAL


def test_tactical_duel_note(engine):
    close = engine.analyze(make_oracle(confidence=60, home_power=110, away_power=100))
    assert any(step.startswith("Tactical duel") for step in close.reasoning)

    lopsided = engine.analyze(make_oracle(confidence=60, home_power=150, away_power=100))
    assert not any(step.startswith("Tactical duel") for step in lopsided.reasoning)

    confident = engine.analyze(make_oracle(confidence=85, home_power=110, away_power=100))
    assert not any(step.startswith("Tactical duel") for step in confident.reasoning)


def test_tactical_duel_bounds_are_inclusive(engine):
    assert engine.is_tactical_duel(make_oracle(confidence=50, home_power=100, away_power=120))
    assert engine.is_tactical_duel(make_oracle(confidence=70, home_power=120, away_power=100))
    assert not engine.is_tactical_duel(make_oracle(confidence=49))
    assert not engine.is_tactical_duel(make_oracle(confidence=71))
