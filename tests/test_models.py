"""Unit tests for the value objects."""

import pytest

from src.models.analysis import (
    DataSource,
    MastermindSignal,
    OracleAnalysis,
    ScenarioType,
    SignalColor,
    TesseractResult,
    outcome_of,
    wilson_interval,
)
from src.models.context import (
    ContextFactor,
    ContextFactorType,
    LLMGradeEnhancement,
    OutlierScenario,
    SimulationContext,
    TeamSignals,
)
from src.models.game import Fixture, HeadToHeadMatch, head_to_head_record
from src.models.market import BettingMarket, KellyResult, MarketOdds, RiskLevel
from src.models.team import TeamStanding, find_standing


def _tesseract(**overrides):
    values = dict(
        home_win_probability=0.5,
        draw_probability=0.3,
        away_win_probability=0.2,
        most_likely_score=(1, 0),
        simulation_count=100,
        btts_probability=0.45,
        over2_5_probability=0.4,
    )
    values.update(overrides)
    return TesseractResult(**values)


def test_neutral_context():
    neutral = SimulationContext.NEUTRAL
    assert neutral.home_fitness == neutral.away_fitness == 85
    assert neutral.home_distraction == neutral.away_distraction == 25
    assert neutral.is_neutral
    assert not neutral.has_low_fitness
    assert not neutral.has_high_distraction


@pytest.mark.parametrize("field", ["home_fitness", "away_fitness", "home_distraction", "away_distraction"])
def test_context_rejects_out_of_range(field):
    with pytest.raises(ValueError):
        SimulationContext(**{field: 101})
    with pytest.raises(ValueError):
        SimulationContext(**{field: -1})


def test_team_signals_validation():
    with pytest.raises(ValueError):
        TeamSignals(news_sentiment=1.5)
    with pytest.raises(ValueError):
        TeamSignals(injured_players=1, key_players_out=2)


def test_tesseract_result_pairs_sum_to_one():
    result = _tesseract()
    assert result.btts_probability + result.btts_no_probability == pytest.approx(1.0)
    assert result.over2_5_probability + result.under2_5_probability == pytest.approx(1.0)
    assert result.favourite == BettingMarket.HOME_WIN


def test_tesseract_result_rejects_bad_sum():
    with pytest.raises(ValueError):
        _tesseract(home_win_probability=0.6)


def test_tesseract_result_rejects_zero_count():
    with pytest.raises(ValueError):
        _tesseract(simulation_count=0)


def test_tesseract_result_rejects_partial_distribution():
    with pytest.raises(ValueError):
        _tesseract(score_distribution={(1, 0): 60, (0, 0): 30})


def test_tesseract_favourite_tie_goes_to_draw():
    result = _tesseract(home_win_probability=0.4, draw_probability=0.4, away_win_probability=0.2)
    assert result.favourite == BettingMarket.DRAW


def test_top_scores_with_percentages():
    result = _tesseract(top_score_distribution=(((1, 0), 20), ((1, 1), 15)))
    assert result.top_scores_with_percentages() == [("1-0", 20.0), ("1-1", 15.0)]
    assert result.to_dict()["topScoreDistribution"][0] == {"score": "1-0", "frequency": 20}



def test_full_score_distribution_serialised():
    result = _tesseract(
        score_distribution={(1, 1): 20, (1, 0): 50, (0, 0): 30},
        top_score_distribution=(((1, 0), 50), ((0, 0), 30)),
    )
    data = result.to_dict()

    assert sum(entry["frequency"] for entry in data["scoreDistribution"]) == data["simulationCount"]
    assert [entry["score"] for entry in data["scoreDistribution"]] == ["1-0", "0-0", "1-1"]
    assert data["scoreDistribution"][:2] == data["topScoreDistribution"]


def test_mastermind_signal_banker_threshold():
    kwargs = dict(
        title="Banker: Home Win",
        description="",
        color=SignalColor.GREEN,
        recommendation="Back Home Win",
        scenario_type=ScenarioType.BANKER,
    )
    assert MastermindSignal(confidence=80, **kwargs).is_banker
    assert not MastermindSignal(confidence=79, **kwargs).is_banker

    value = dict(kwargs, scenario_type=ScenarioType.VALUE)
    assert not MastermindSignal(confidence=95, **value).is_banker


def test_mastermind_signal_validation():
    with pytest.raises(ValueError):
        MastermindSignal(
            title="x",
            description="",
            color=SignalColor.RED,
            confidence=101,
            recommendation="Skip",
            scenario_type=ScenarioType.AVOID,
        )


def test_oracle_analysis_tips():
    strong_home = OracleAnalysis((3, 0), 80, "", home_power_score=150, away_power_score=100)
    assert strong_home.is_strong_home_win
    assert strong_home.betting_tip("A", "B") == "A to win & Over 2.5 Goals"

    close = OracleAnalysis((1, 1), 40, "", home_power_score=105, away_power_score=100)
    assert close.is_close_game
    assert close.predicted_outcome == BettingMarket.DRAW
    assert close.betting_tip() == "Draw & Both Teams To Score"

    away = OracleAnalysis((0, 2), 60, "", home_power_score=90, away_power_score=110)
    assert away.betting_tip("A", "B") == "B to win or Draw"


def test_oracle_analysis_rejects_negative_score():
    with pytest.raises(ValueError):
        OracleAnalysis((-1, 0), 50, "")


def test_oracle_analysis_to_dict_without_children():
    data = OracleAnalysis((2, 1), 70, "r", standings_source=DataSource.DEFAULT).to_dict()
    assert data["predictedScore"] == "2-1"
    assert data["standingsSource"] == "DEFAULT"
    assert data["tesseract"] is None
    assert data["mastermindSignal"] is None


def test_outcome_of():
    assert outcome_of((2, 1)) == BettingMarket.HOME_WIN
    assert outcome_of((0, 0)) == BettingMarket.DRAW
    assert outcome_of((0, 3)) == BettingMarket.AWAY_WIN


def test_wilson_interval_contains_estimate():
    low, high = wilson_interval(0.6, 1000)
    assert low < 0.6 < high
    assert wilson_interval(0.5, 0) == (0.0, 1.0)


def test_context_factor_flags():
    factor = ContextFactor(ContextFactorType.INJURIES, 8, "Striker out")
    assert factor.is_high_impact
    assert not factor.is_negative
    assert ContextFactor(ContextFactorType.NEWS, 4, "Manager row").is_negative

    with pytest.raises(ValueError):
        ContextFactor(ContextFactorType.NEWS, 11, "x")
    with pytest.raises(ValueError):
        ContextFactor(ContextFactorType.NEWS, 5, "x", weight=1.5)


def test_context_factor_from_dict_uses_default_weight():
    factor = ContextFactor.from_dict({"type": "WEATHER", "score": 6, "description": "Heavy rain"})
    assert factor.type == ContextFactorType.WEATHER
    assert factor.weight == ContextFactorType.WEATHER.default_weight


def test_enhancement_derived_fields():
    factors = (
        ContextFactor(ContextFactorType.FORM, 6, "Good run"),
        ContextFactor(ContextFactorType.INJURIES, 9, "Keeper injured"),
    )
    outliers = (
        OutlierScenario("Derby chaos", 0.15),
        OutlierScenario("Cup hangover", 0.25, impact_score=7),
    )
    enhancement = LLMGradeEnhancement(factors, outliers, "summary", 5)

    assert enhancement.most_impactful_factor.description == "Keeper injured"
    assert enhancement.has_high_probability_outliers
    assert enhancement.highest_probability_outlier.description == "Cup hangover"
    assert enhancement.highest_probability_outlier.risk_level == RiskLevel.HIGH
    assert enhancement.has_high_impact_factors
    assert enhancement.adjusted_confidence(97) == 100

    data = enhancement.to_dict()
    assert data["mostImpactfulFactor"]["description"] == "Keeper injured"
    assert data["highestProbabilityOutlier"]["description"] == "Cup hangover"


def test_enhancement_without_outliers_or_factors():
    empty = LLMGradeEnhancement.empty()
    assert empty.most_impactful_factor is None
    assert empty.highest_probability_outlier is None
    assert not empty.has_high_probability_outliers
    assert empty.overall_context_score == 5.0
    assert empty.confidence_adjustment == 0

    data = empty.to_dict()
    assert data["mostImpactfulFactor"] is None
    assert data["highestProbabilityOutlier"] is None


def test_enhancement_adjustment_from_factors():
    strong = LLMGradeEnhancement.from_context_factors(
        [ContextFactor(ContextFactorType.FORM, 9, "Unbeaten", weight=1.0)]
    )
    weak = LLMGradeEnhancement.from_context_factors(
        [ContextFactor(ContextFactorType.TEAM_MORALE, 1, "Dressing room split", weight=1.0)]
    )
    assert strong.confidence_adjustment == 15
    assert weak.confidence_adjustment == -15
    assert LLMGradeEnhancement.from_context_factors([]).confidence_adjustment == 0


def test_market_odds_ignores_placeholder_prices():
    odds = MarketOdds(home_win=0.0, draw=1.0, away_win=None)
    assert not odds.has_odds
    assert odds.price(BettingMarket.HOME_WIN) is None

    odds = MarketOdds.from_dict({"home": 1.9, "draw": 3.4, "awayWin": 4.0})
    assert odds.is_complete
    assert odds.price(BettingMarket.AWAY_WIN) == 4.0


def test_empty_kelly_result():
    result = KellyResult.empty(7, "A", "B")
    assert result.recommended_stake_percentage == 0
    assert result.recommended_stake_formatted == "No bet"
    assert result.best_value_bet.market is None
    assert not result.best_value_bet.has_value
    assert not result.has_value_bet
    assert result.confidence == 0
    assert result.to_dict()["bestValueBet"]["market"] is None


def test_team_standing_and_lookup():
    standing = TeamStanding("Leeds", rank=4, points=40, goal_difference=10, games_played=20)
    assert standing.points_per_game == 2.0
    assert standing.goal_difference_per_game == 0.5
    assert find_standing([standing], " leeds ") is standing
    assert find_standing([standing], "Hull") is None
    assert not TeamStanding("New", rank=1, points=0).is_usable

    with pytest.raises(ValueError):
        TeamStanding("Bad", rank=0, points=0)


def test_fixture_validation():
    with pytest.raises(ValueError):
        Fixture(1, "Leeds", "Leeds")
    assert Fixture.from_dict({"fixtureId": 3, "homeTeam": "A", "awayTeam": "B"}).fixture_id == 3


def test_head_to_head_record_ignores_other_teams():
    matches = [
        HeadToHeadMatch("A", "B", 2, 0),
        HeadToHeadMatch("B", "A", 1, 1),
        HeadToHeadMatch("B", "A", 3, 1),
        HeadToHeadMatch("A", "C", 5, 0),
    ]
    assert head_to_head_record(matches, "A", "B") == (1, 1, 1)
    assert head_to_head_record(matches, "B", "A") == (1, 1, 1)
