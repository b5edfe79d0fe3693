"""Tests for the Tesseract Monte Carlo match simulator."""

import numpy as np
import pytest

from src.models.context import SimulationContext
from src.simulation.monte_carlo import (
    CancellationToken,
    SimulationCancelled,
    SimulationConfig,
    TesseractEngine,
    context_multipliers,
    exact_outcome_probabilities,
    run_simulation,
)


def _engine(**overrides):
    values = dict(num_simulations=5000, random_seed=11)
    values.update(overrides)
    return TesseractEngine(SimulationConfig(**values))


def test_probability_pairs_sum_to_one():
    result = _engine().simulate_match(1.6, 1.1)

    total = result.home_win_probability + result.draw_probability + result.away_win_probability
    assert total == pytest.approx(1.0, abs=1e-6)
    assert result.btts_probability + result.btts_no_probability == pytest.approx(1.0, abs=1e-6)
    assert result.over2_5_probability + result.under2_5_probability == pytest.approx(1.0, abs=1e-6)


def test_score_distribution_accounts_for_every_trial():
    result = _engine().simulate_match(1.6, 1.1)

    assert result.simulation_count == 5000
    assert sum(result.score_distribution.values()) == 5000
    assert len(result.top_score_distribution) == 3

    counts = [count for _, count in result.top_score_distribution]
    assert counts == sorted(counts, reverse=True)
    assert result.most_likely_score == result.top_score_distribution[0][0]
    assert counts[0] == max(result.score_distribution.values())


def test_fixed_seed_is_reproducible():
    first = _engine().simulate_match(1.4, 1.2)
    second = _engine().simulate_match(1.4, 1.2)
    assert first == second


def test_injected_rng_is_reproducible():
    engine = _engine(random_seed=None)
    first = engine.simulate_match(1.4, 1.2, rng=np.random.default_rng(5))
    second = engine.simulate_match(1.4, 1.2, rng=np.random.default_rng(5))
    assert first == second


def test_uneven_final_batch():
    result = _engine(num_simulations=2500, batch_size=1000).simulate_match(1.0, 1.0)
    assert result.simulation_count == 2500
    assert sum(result.score_distribution.values()) == 2500


def test_reference_scenario_converges_to_poisson():
    exact = exact_outcome_probabilities(1.8, 0.9)
    assert 0.58 <= exact["homeWin"] <= 0.62
    assert 0.20 <= exact["draw"] <= 0.24
    assert 0.16 <= exact["awayWin"] <= 0.20

    result = _engine(num_simulations=10000, random_seed=42).simulate_match(1.8, 0.9)

    assert result.home_win_probability == pytest.approx(exact["homeWin"], abs=0.03)
    assert result.draw_probability == pytest.approx(exact["draw"], abs=0.03)
    assert result.away_win_probability == pytest.approx(exact["awayWin"], abs=0.03)
    assert result.btts_probability == pytest.approx(exact["btts"], abs=0.03)
    assert result.over2_5_probability == pytest.approx(exact["over2_5"], abs=0.03)
    assert result.home_win_probability > result.draw_probability > result.away_win_probability


def test_confidence_intervals_cover_estimates():
    result = _engine().simulate_match(1.8, 0.9)
    low, high = result.confidence_intervals["homeWin"]
    assert low <= result.home_win_probability <= high


def test_neutral_context_leaves_rates_unchanged():
    config = SimulationConfig()
    assert context_multipliers(SimulationContext.NEUTRAL, config) == pytest.approx((1.0, 1.0))

    result = _engine().simulate_match(1.5, 1.0, context=SimulationContext.NEUTRAL)
    assert result.home_expected_goals == pytest.approx(1.5)
    assert result.away_expected_goals == pytest.approx(1.0)


def test_multipliers_are_floored():
    config = SimulationConfig(fitness_weight=1.0, distraction_weight=1.0)
    worst = SimulationContext(home_fitness=0, home_distraction=100, away_fitness=100, away_distraction=0)
    home, _ = context_multipliers(worst, config)
    assert home == pytest.approx(0.1)


def test_fitness_monotonicity():
    engine = _engine()
    previous = -1.0
    for fitness in (40, 60, 85, 95, 100):
        context = SimulationContext(home_fitness=fitness)
        p = engine.simulate_match(1.4, 1.2, context=context).home_win_probability
        assert p >= previous
        previous = p


def test_distraction_monotonicity():
    engine = _engine()
    previous = 2.0
    for distraction in (0, 25, 50, 75, 100):
        context = SimulationContext(away_distraction=distraction)
        p = engine.simulate_match(1.4, 1.2, context=context).away_win_probability
        assert p <= previous
        previous = p


def test_zero_rates_give_goalless_draws():
    result = _engine(num_simulations=1000).simulate_match(0.0, 0.0)
    assert result.draw_probability == 1.0
    assert result.most_likely_score == (0, 0)
    assert result.over2_5_probability == 0.0


def test_parallel_matches_sequential():
    sequential = _engine(num_simulations=4000, batch_size=1000).simulate_match(1.3, 1.1)
    parallel = _engine(num_simulations=4000, batch_size=1000, parallel_workers=2).simulate_match(1.3, 1.1)
    assert parallel == sequential


def test_non_positive_simulation_count_rejected():
    with pytest.raises(ValueError):
        _engine(num_simulations=0).simulate_match(1.0, 1.0)


def test_negative_rate_rejected():
    with pytest.raises(ValueError):
        _engine().simulate_match(-0.5, 1.0)


def test_cancelled_token_aborts():
    token = CancellationToken()
    token.cancel()
    with pytest.raises(SimulationCancelled):
        _engine().simulate_match(1.0, 1.0, cancel_token=token)


def test_expired_deadline_aborts():
    token = CancellationToken(timeout=0.0)
    assert token.is_cancelled
    with pytest.raises(SimulationCancelled):
        _engine().simulate_match(1.0, 1.0, cancel_token=token)


def test_config_normalizes_workers():
    assert SimulationConfig(parallel_workers=0).parallel_workers == 1
    with pytest.raises(ValueError):
        SimulationConfig(batch_size=0)



def test_config_rejects_empty_top_k():
    with pytest.raises(ValueError):
        SimulationConfig(top_k=0)
    assert SimulationConfig(top_k=1).top_k == 1


def test_run_simulation_helper():
    result = run_simulation(1.2, 1.0, num_simulations=2000, random_seed=3)
    assert result.simulation_count == 2000
