"""
Tesseract: Monte Carlo match simulation engine.

Simulates a fixture 10,000 times with Poisson goal draws to estimate 1X2,
both-teams-to-score and over/under 2.5 probabilities plus the scoreline
distribution.
"""

import logging
import threading
import time
from collections import Counter
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np
from scipy import stats as scipy_stats

from ..models.analysis import TesseractResult, wilson_interval
from ..models.context import NEUTRAL_DISTRACTION, NEUTRAL_FITNESS, SimulationContext

logger = logging.getLogger(__name__)


@dataclass
class SimulationConfig:
    """Configuration for Monte Carlo simulation."""

    num_simulations: int = 10000
    # Per-trial multiplicative form noise: lambda * U(1 - n, 1 + n)
    form_noise: float = 0.10
    random_seed: Optional[int] = None  # None = fresh seed per run
    parallel_workers: int = 1  # >1 fans batches out over processes
    batch_size: int = 1000  # Simulations per batch
    top_k: int = 3

    # Context response curve, relative to the neutral context
    fitness_weight: float = 0.5  # attack change per 100 fitness points
    distraction_weight: float = 0.3  # attack change per 100 distraction points
    lapse_weight: float = 0.2  # opponent boost per 100 points of unfitness/distraction
    min_multiplier: float = 0.1

    def __post_init__(self):
        if self.parallel_workers is None or self.parallel_workers < 1:
            self.parallel_workers = 1
        if self.batch_size < 1:
            raise ValueError(f"Batch size must be positive, got {self.batch_size}")
        if self.top_k < 1:
            raise ValueError(f"top_k must be at least 1, got {self.top_k}")
        if not 0.0 <= self.form_noise < 1.0:
            raise ValueError(f"Form noise must be in [0, 1), got {self.form_noise}")


class SimulationCancelled(RuntimeError):
    """Raised when a simulation is aborted before all trials completed."""


class CancellationToken:
    """Cooperative cancellation flag with an optional monotonic-clock deadline."""

    def __init__(self, timeout: Optional[float] = None):
        self._event = threading.Event()
        self.deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self.deadline is not None and time.monotonic() >= self.deadline


def context_multipliers(
    context: SimulationContext,
    config: SimulationConfig,
) -> Tuple[float, float]:
    """
    Scoring-rate multipliers for (home, away) under a simulation context.

    A team's own attack scales with its fitness and shrinks with its
    distraction; the opponent's rate grows with the team's defensive
    lapses (low fitness, high distraction). The neutral context maps to
    (1.0, 1.0).

    Args:
        context: Fitness/distraction levels
        config: Response-curve weights

    Returns:
        Tuple of (home_multiplier, away_multiplier)
    """

    def attack(fitness: int, distraction: int) -> float:
        return (
            1.0
            + config.fitness_weight * (fitness - NEUTRAL_FITNESS) / 100.0
            - config.distraction_weight * (distraction - NEUTRAL_DISTRACTION) / 100.0
        )

    def lapses(fitness: int, distraction: int) -> float:
        return 1.0 + config.lapse_weight * (
            (NEUTRAL_FITNESS - fitness) + (distraction - NEUTRAL_DISTRACTION)
        ) / 100.0

    home = attack(context.home_fitness, context.home_distraction) * lapses(
        context.away_fitness, context.away_distraction
    )
    away = attack(context.away_fitness, context.away_distraction) * lapses(
        context.home_fitness, context.home_distraction
    )
    return max(config.min_multiplier, home), max(config.min_multiplier, away)


def _draw_goals(uniforms: np.ndarray, rates: np.ndarray) -> np.ndarray:
    """Poisson inverse-CDF draw; a zero rate always yields zero goals."""
    goals = np.zeros(uniforms.shape, dtype=np.int64)
    active = rates > 0
    if active.any():
        drawn = scipy_stats.poisson.ppf(uniforms[active], rates[active])
        goals[active] = np.maximum(np.nan_to_num(drawn), 0).astype(np.int64)
    return goals


def _run_batch(
    batch_size: int,
    seed: np.random.SeedSequence,
    home_lambda: float,
    away_lambda: float,
    form_noise: float,
) -> Dict:
    """
    Run a batch of independent match simulations.

    Goals are drawn by inverse-CDF sampling from uniforms, so for a fixed
    seed a higher scoring rate never produces fewer goals in any trial.

    Args:
        batch_size: Number of simulations to run
        seed: Seed sequence for this batch
        home_lambda: Home expected goals
        away_lambda: Away expected goals
        form_noise: Half-width of the multiplicative form noise

    Returns:
        Dictionary of outcome counters for the batch
    """
    rng = np.random.default_rng(seed)

    noise = rng.uniform(1.0 - form_noise, 1.0 + form_noise, size=(2, batch_size))
    uniforms = rng.random((2, batch_size))

    home_goals = _draw_goals(uniforms[0], home_lambda * noise[0])
    away_goals = _draw_goals(uniforms[1], away_lambda * noise[1])

    scores, counts = np.unique(
        np.stack([home_goals, away_goals], axis=1), axis=0, return_counts=True
    )

    return {
        "trials": batch_size,
        "home_wins": int(np.count_nonzero(home_goals > away_goals)),
        "draws": int(np.count_nonzero(home_goals == away_goals)),
        "away_wins": int(np.count_nonzero(home_goals < away_goals)),
        "btts": int(np.count_nonzero((home_goals > 0) & (away_goals > 0))),
        "over2_5": int(np.count_nonzero(home_goals + away_goals > 2)),
        "scores": {(int(h), int(a)): int(c) for (h, a), c in zip(scores, counts)},
    }


class TesseractEngine:
    """
    Monte Carlo simulation engine for single matches.

    Features:
    - Batched, vectorised trials with per-batch seeds from one base seed
    - Optional process-parallel execution with a sequential fallback
    - Fitness/distraction adjustment of the scoring rates
    - Cooperative cancellation between batches
    """

    def __init__(self, config: SimulationConfig = None):
        """
        Initialize Tesseract engine.

        Args:
            config: Simulation configuration
        """
        self.config = config or SimulationConfig()

    def _base_seed(self, rng: Optional[np.random.Generator]) -> int:
        if self.config.random_seed is not None:
            return self.config.random_seed
        if rng is not None:
            return int(rng.integers(0, 2 ** 63 - 1))
        return int(np.random.SeedSequence().entropy)

    def simulate_match(
        self,
        home_expected_goals: float,
        away_expected_goals: float,
        context: Optional[SimulationContext] = None,
        rng: Optional[np.random.Generator] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> TesseractResult:
        """
        Simulate a match and aggregate the trial outcomes.

        Args:
            home_expected_goals: Home scoring rate before context adjustment
            away_expected_goals: Away scoring rate before context adjustment
            context: Fitness/distraction context (neutral when omitted)
            rng: Random source used to draw the base seed when the config
                 does not fix one
            cancel_token: Checked between batches

        Returns:
            TesseractResult

        Raises:
            ValueError: On negative rates or a non-positive simulation count
            SimulationCancelled: If the token fires before all batches finish
        """
        num_sims = self.config.num_simulations
        if num_sims <= 0:
            raise ValueError(f"Simulation count must be positive, got {num_sims}")
        if home_expected_goals < 0 or away_expected_goals < 0:
            raise ValueError(
                f"Expected goals must be non-negative, got {home_expected_goals}/{away_expected_goals}"
            )

        context = context or SimulationContext.NEUTRAL
        home_mult, away_mult = context_multipliers(context, self.config)
        home_lambda = home_expected_goals * home_mult
        away_lambda = away_expected_goals * away_mult

        # Split into batches with independent child seeds
        batch_size = self.config.batch_size
        sizes = []
        remaining = num_sims
        while remaining > 0:
            sizes.append(min(batch_size, remaining))
            remaining -= sizes[-1]
        seeds = np.random.SeedSequence(self._base_seed(rng)).spawn(len(sizes))
        batches = list(zip(sizes, seeds))

        logger.debug(
            "Simulating %d trials in %d batches (lambda %.3f vs %.3f)",
            num_sims, len(batches), home_lambda, away_lambda,
        )

        n_workers = self.config.parallel_workers
        if n_workers > 1 and len(batches) > 1:
            try:
                tallies = self._run_parallel(batches, home_lambda, away_lambda, cancel_token)
            except (RuntimeError, OSError) as exc:
                if isinstance(exc, SimulationCancelled):
                    raise
                logger.warning("Process pool unavailable (%s), running sequentially", exc)
                tallies = self._run_sequential(batches, home_lambda, away_lambda, cancel_token)
        else:
            tallies = self._run_sequential(batches, home_lambda, away_lambda, cancel_token)

        return self._aggregate(tallies, home_lambda, away_lambda)

    def _run_sequential(
        self,
        batches: List[Tuple[int, np.random.SeedSequence]],
        home_lambda: float,
        away_lambda: float,
        cancel_token: Optional[CancellationToken],
    ) -> List[Dict]:
        tallies = []
        for bs, seed in batches:
            _check_cancelled(cancel_token, len(tallies), len(batches))
            tallies.append(_run_batch(bs, seed, home_lambda, away_lambda, self.config.form_noise))
        return tallies

    def _run_parallel(
        self,
        batches: List[Tuple[int, np.random.SeedSequence]],
        home_lambda: float,
        away_lambda: float,
        cancel_token: Optional[CancellationToken],
    ) -> List[Dict]:
        tallies = []
        with ProcessPoolExecutor(max_workers=self.config.parallel_workers) as executor:
            futures = [
                executor.submit(
                    _run_batch, bs, seed, home_lambda, away_lambda, self.config.form_noise
                )
                for bs, seed in batches
            ]
            try:
                for future in as_completed(futures):
                    _check_cancelled(cancel_token, len(tallies), len(batches))
                    tallies.append(future.result())
            except SimulationCancelled:
                for future in futures:
                    future.cancel()
                raise
        return tallies

    def _aggregate(
        self,
        tallies: List[Dict],
        home_lambda: float,
        away_lambda: float,
    ) -> TesseractResult:
        """Reduce batch counters into a TesseractResult."""
        totals = Counter()
        scores: Counter = Counter()
        for tally in tallies:
            for key in ("trials", "home_wins", "draws", "away_wins", "btts", "over2_5"):
                totals[key] += tally[key]
            scores.update(tally["scores"])

        n = totals["trials"]
        if totals["home_wins"] + totals["draws"] + totals["away_wins"] != n:
            raise ValueError("Outcome counts do not partition the simulated trials")

        # Most frequent first; equal counts fall back to scoreline order
        ranked = sorted(scores.items(), key=lambda item: (-item[1], item[0]))
        top = tuple(ranked[: self.config.top_k])

        probabilities = {
            "homeWin": totals["home_wins"] / n,
            "draw": totals["draws"] / n,
            "awayWin": totals["away_wins"] / n,
            "btts": totals["btts"] / n,
            "over2_5": totals["over2_5"] / n,
        }
        intervals = {name: wilson_interval(p, n) for name, p in probabilities.items()}

        return TesseractResult(
            home_win_probability=probabilities["homeWin"],
            draw_probability=probabilities["draw"],
            away_win_probability=probabilities["awayWin"],
            most_likely_score=ranked[0][0],
            simulation_count=n,
            btts_probability=probabilities["btts"],
            over2_5_probability=probabilities["over2_5"],
            top_score_distribution=top,
            score_distribution=dict(scores),
            home_expected_goals=home_lambda,
            away_expected_goals=away_lambda,
            confidence_intervals=intervals,
        )


def _check_cancelled(token: Optional[CancellationToken], done: int, total: int) -> None:
    if token is not None and token.is_cancelled:
        logger.info("Simulation cancelled after %d of %d batches", done, total)
        raise SimulationCancelled(f"Simulation cancelled after {done} of {total} batches")


def exact_outcome_probabilities(
    home_expected_goals: float,
    away_expected_goals: float,
    max_goals: int = 15,
) -> Dict[str, float]:
    """
    Closed-form 1X2 and goal-market probabilities for independent Poisson goals.

    Used as a convergence reference for the simulation (no form noise).

    Args:
        home_expected_goals: Home Poisson rate
        away_expected_goals: Away Poisson rate
        max_goals: Truncation of the score matrix

    Returns:
        Dictionary with homeWin, draw, awayWin, btts and over2_5
    """
    goals = np.arange(max_goals + 1)
    home = scipy_stats.poisson.pmf(goals, home_expected_goals)
    away = scipy_stats.poisson.pmf(goals, away_expected_goals)
    matrix = np.outer(home, away)
    matrix /= matrix.sum()

    totals = goals[:, None] + goals[None, :]
    return {
        "homeWin": float(np.tril(matrix, -1).sum()),
        "draw": float(np.trace(matrix)),
        "awayWin": float(np.triu(matrix, 1).sum()),
        "btts": float(matrix[1:, 1:].sum()),
        "over2_5": float(matrix[totals > 2].sum()),
    }


def run_simulation(
    home_expected_goals: float,
    away_expected_goals: float,
    context: Optional[SimulationContext] = None,
    num_simulations: int = 10000,
    random_seed: Optional[int] = None,
) -> TesseractResult:
    """
    Convenience function to run a Tesseract simulation.

    Args:
        home_expected_goals: Home scoring rate
        away_expected_goals: Away scoring rate
        context: Optional simulation context
        num_simulations: Number of simulations
        random_seed: Fixed seed for reproducible runs

    Returns:
        TesseractResult
    """
    config = SimulationConfig(num_simulations=num_simulations, random_seed=random_seed)
    engine = TesseractEngine(config)
    return engine.simulate_match(home_expected_goals, away_expected_goals, context)


