"""Data loader for fixture inputs and analysis output."""

import json
import logging
from typing import List

import pandas as pd

from ..models.game import HeadToHeadMatch
from ..models.team import TeamStanding
from ..pipeline.analysis import FixtureAnalysis, FixtureInput

logger = logging.getLogger(__name__)

STANDINGS_COLUMNS = ("team", "rank", "points", "goal_difference", "games_played")
HEAD_TO_HEAD_COLUMNS = ("home_team", "away_team", "home_goals", "away_goals")


def _require_columns(frame: pd.DataFrame, required, file_path: str) -> None:
    missing = [c for c in required if c not in frame.columns]
    if missing:
        raise ValueError(f"{file_path} is missing columns: {', '.join(missing)}")


class DataLoader:
    """Loads fixture inputs from JSON/CSV files and saves analyses."""

    @staticmethod
    def load_fixture_from_json(file_path: str) -> FixtureInput:
        """
        Load a fixture and its inputs from a JSON file.

        Args:
            file_path: Path to JSON file

        Returns:
            FixtureInput
        """
        with open(file_path, 'r') as f:
            data = json.load(f)

        return FixtureInput.from_dict(data)

    @staticmethod
    def load_standings_csv(file_path: str) -> List[TeamStanding]:
        """
        Load a league table from CSV.

        Expected columns: team, rank, points, goal_difference, games_played.

        Args:
            file_path: Path to CSV file

        Returns:
            List of TeamStanding objects ordered by rank
        """
        frame = pd.read_csv(file_path)
        frame.columns = [c.strip().lower() for c in frame.columns]
        _require_columns(frame, ("team", "rank", "points"), file_path)
        for column in ("goal_difference", "games_played"):
            if column not in frame.columns:
                frame[column] = 0
        frame = frame.fillna({"goal_difference": 0, "games_played": 0})
        frame = frame.sort_values("rank")

        standings = [
            TeamStanding(
                team=str(row.team).strip(),
                rank=int(row.rank),
                points=int(row.points),
                goal_difference=int(row.goal_difference),
                games_played=int(row.games_played),
            )
            for row in frame[list(STANDINGS_COLUMNS)].itertuples(index=False)
        ]
        logger.debug("Loaded %d standings from %s", len(standings), file_path)
        return standings

    @staticmethod
    def load_head_to_head_csv(file_path: str) -> List[HeadToHeadMatch]:
        """
        Load previous meetings from CSV.

        Expected columns: home_team, away_team, home_goals, away_goals.
        """
        frame = pd.read_csv(file_path)
        frame.columns = [c.strip().lower() for c in frame.columns]
        _require_columns(frame, HEAD_TO_HEAD_COLUMNS, file_path)
        frame = frame.dropna(subset=list(HEAD_TO_HEAD_COLUMNS))

        return [
            HeadToHeadMatch(
                home_team=str(row.home_team).strip(),
                away_team=str(row.away_team).strip(),
                home_goals=int(row.home_goals),
                away_goals=int(row.away_goals),
            )
            for row in frame[list(HEAD_TO_HEAD_COLUMNS)].itertuples(index=False)
        ]

    @staticmethod
    def save_analysis_to_json(analysis: FixtureAnalysis, file_path: str) -> None:
        """
        Save an analysis to a JSON file.

        Args:
            analysis: Analysis to save
            file_path: Output file path
        """
        with open(file_path, 'w') as f:
            json.dump(analysis.to_dict(), f, indent=2)

    @staticmethod
    def create_sample_data(output_path: str) -> None:
        """
        Create a sample fixture file for local runs.

        Args:
            output_path: Path to save sample data
        """
        sample_data = {
            "fixture": {"fixtureId": 1001, "homeTeam": "Arsenal", "awayTeam": "Brentford"},
            "homeStanding": {
                "team": "Arsenal",
                "rank": 2,
                "points": 50,
                "goalDifference": 28,
                "gamesPlayed": 22,
            },
            "awayStanding": {
                "team": "Brentford",
                "rank": 12,
                "points": 28,
                "goalDifference": -4,
                "gamesPlayed": 22,
            },
            "headToHead": [
                {"homeTeam": "Arsenal", "awayTeam": "Brentford", "homeGoals": 2, "awayGoals": 1},
                {"homeTeam": "Brentford", "awayTeam": "Arsenal", "homeGoals": 0, "awayGoals": 3},
                {"homeTeam": "Arsenal", "awayTeam": "Brentford", "homeGoals": 1, "awayGoals": 1},
            ],
            "homeSignals": {
                "injuredPlayers": 2,
                "keyPlayersOut": 0,
                "newsSentiment": 0.2,
                "matchesLast14Days": 3,
            },
            "awaySignals": {
                "injuredPlayers": 4,
                "keyPlayersOut": 1,
                "newsSentiment": -0.3,
                "matchesLast14Days": 4,
            },
            "odds": {"homeWin": 1.55, "draw": 4.2, "awayWin": 6.0},
            "enhancement": {
                "contextFactors": [
                    {"type": "form", "score": 8, "description": "Home side unbeaten in six"},
                    {"type": "injuries", "score": 4, "description": "Visitors missing a starting centre-back"},
                ],
                "outlierScenarios": [
                    {
                        "description": "Early red card changes the game",
                        "probability": 0.08,
                        "supportingFactors": ["Referee averages 0.3 reds per match"],
                        "historicalPrecedents": [],
                        "impactScore": 7,
                    }
                ],
                "enhancedReasoning": "Form and availability favour the home side.",
            },
        }

        with open(output_path, 'w') as f:
            json.dump(sample_data, f, indent=2)
