"""Main CLI interface for the MatchMind engine."""

import argparse
import json
import logging
import sys
from dataclasses import replace

from .data.loader import DataLoader
from .models.team import find_standing
from .optimization.kelly import KellyCalculator
from .pipeline.analysis import AnalysisPipeline, PipelineConfig
from .predictors.oracle import InsufficientDataError
from .simulation.monte_carlo import SimulationConfig, TesseractEngine, exact_outcome_probabilities


def analyze_fixture(args):
    """Run the full analysis for a fixture file."""
    print(f"Loading fixture from {args.input}...")

    try:
        data = DataLoader.load_fixture_from_json(args.input)
        if args.standings:
            table = DataLoader.load_standings_csv(args.standings)
            data = replace(
                data,
                home_standing=find_standing(table, data.fixture.home_team) or data.home_standing,
                away_standing=find_standing(table, data.fixture.away_team) or data.away_standing,
            )
        if args.head_to_head:
            data = replace(data, head_to_head=tuple(DataLoader.load_head_to_head_csv(args.head_to_head)))
    except (OSError, ValueError, KeyError) as e:
        print(f"Error loading data: {e}")
        return 1

    config = PipelineConfig(
        simulation=SimulationConfig(
            num_simulations=args.simulations,
            random_seed=args.seed,
            parallel_workers=args.workers,
        )
    )

    try:
        analysis = AnalysisPipeline(config).analyze(data)
    except InsufficientDataError as exc:
        print(f"Error: {exc}")
        return 1

    fixture = analysis.fixture
    oracle = analysis.oracle
    signal = oracle.mastermind_signal

    print(f"\n{'='*60}")
    print(f"{fixture.home_team} vs {fixture.away_team}")
    print(f"{'='*60}\n")
    print(f"Oracle: {oracle.predicted_score[0]}-{oracle.predicted_score[1]} ({oracle.confidence}%)")
    print(f"   {oracle.reasoning}")
    if oracle.tesseract is not None:
        t = oracle.tesseract
        print(f"Tesseract ({t.simulation_count} sims): {t.formatted_probabilities()}")
        print(f"   BTTS {t.btts_probability:.1%} | Over 2.5 {t.over2_5_probability:.1%}")
        for score, pct in t.top_scores_with_percentages():
            print(f"   - {score}: {pct:.1f}%")
    print(f"Mastermind: {signal.title} [{signal.color.value}] {signal.confidence}%")
    print(f"   {signal.recommendation}")
    print(f"Kelly: {analysis.kelly.best_value_bet.description} -> "
          f"{analysis.kelly.recommended_stake_formatted} ({analysis.kelly.risk_level.value})")

    print(f"\nSaving analysis to {args.output}...")
    DataLoader.save_analysis_to_json(analysis, args.output)
    print("Done!")
    return 0


def simulate_match(args):
    """Simulate a match from two expected-goal rates."""
    config = SimulationConfig(
        num_simulations=args.simulations,
        random_seed=args.seed,
        parallel_workers=args.workers,
    )
    try:
        result = TesseractEngine(config).simulate_match(args.home_xg, args.away_xg)
    except ValueError as exc:
        print(f"Error: {exc}")
        return 1

    exact = exact_outcome_probabilities(args.home_xg, args.away_xg)
    print(f"Simulated: {result.formatted_probabilities()}")
    print(
        f"Poisson:   H: {exact['homeWin']:.1%} | D: {exact['draw']:.1%} | A: {exact['awayWin']:.1%}"
    )
    print(f"Most likely score: {result.most_likely_score[0]}-{result.most_likely_score[1]}")
    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    return 0


def kelly_stake(args):
    """Size a single bet."""
    recommendation = KellyCalculator().evaluate(args.probability, args.odds)
    print(f"Kelly fraction: {recommendation.kelly:.4f}")
    print(f"Recommended stake: {recommendation.stake:.2%} of bankroll")
    print(f"Value score: {recommendation.value_score}/10")
    print(f"Risk level: {recommendation.risk_level.value}")
    print(f"Edge: {recommendation.edge:+.1%}")
    return 0


def create_sample(args):
    """Create sample fixture data."""
    print(f"Creating sample data at {args.output}...")
    DataLoader.create_sample_data(args.output)
    print("Sample data created!")
    print(f"\nYou can now run an analysis with:")
    print(f"  matchmind analyze --input {args.output} --output analysis.json")
    return 0


def main(argv=None):
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="MatchMind - match outcome prediction and staking analysis"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Analyze command
    analyze_parser = subparsers.add_parser("analyze", help="Analyse a fixture file")
    analyze_parser.add_argument(
        "--input", "-i",
        required=True,
        help="Input JSON file with the fixture and its inputs"
    )
    analyze_parser.add_argument(
        "--output", "-o",
        default="analysis.json",
        help="Output JSON file for the analysis (default: analysis.json)"
    )
    analyze_parser.add_argument("--standings", default=None, help="League table CSV (optional)")
    analyze_parser.add_argument("--head-to-head", default=None, help="Previous meetings CSV (optional)")
    analyze_parser.add_argument("--simulations", "-n", type=int, default=10000, help="Monte Carlo simulations")
    analyze_parser.add_argument("--seed", type=int, default=None, help="Random seed")
    analyze_parser.add_argument("--workers", type=int, default=1, help="Worker processes")

    # Simulate command
    simulate_parser = subparsers.add_parser("simulate", help="Simulate a match from expected goals")
    simulate_parser.add_argument("--home-xg", type=float, required=True, help="Home expected goals")
    simulate_parser.add_argument("--away-xg", type=float, required=True, help="Away expected goals")
    simulate_parser.add_argument("--simulations", "-n", type=int, default=10000, help="Monte Carlo simulations")
    simulate_parser.add_argument("--seed", type=int, default=None, help="Random seed")
    simulate_parser.add_argument("--workers", type=int, default=1, help="Worker processes")
    simulate_parser.add_argument("--json", action="store_true", help="Print the full result as JSON")

    # Kelly command
    kelly_parser = subparsers.add_parser("kelly", help="Kelly stake for one probability and price")
    kelly_parser.add_argument("--probability", "-p", type=float, required=True, help="Model probability")
    kelly_parser.add_argument("--odds", type=float, required=True, help="Decimal odds")

    # Sample command
    sample_parser = subparsers.add_parser("sample", help="Create sample fixture data")
    sample_parser.add_argument(
        "--output", "-o",
        default="sample_fixture.json",
        help="Output file for sample data (default: sample_fixture.json)"
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "analyze":
        return analyze_fixture(args)
    elif args.command == "simulate":
        return simulate_match(args)
    elif args.command == "kelly":
        return kelly_stake(args)
    elif args.command == "sample":
        return create_sample(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
