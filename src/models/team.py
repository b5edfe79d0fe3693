"""League standing model used by the Oracle engine."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class TeamStanding:
    """A team's row in the league table."""

    team: str
    rank: int
    points: int
    goal_difference: int = 0
    games_played: int = 0

    def __post_init__(self):
        """Validate standing data."""
        if self.rank < 1:
            raise ValueError(f"Rank must be positive, got {self.rank}")

        if self.games_played < 0:
            raise ValueError(f"Games played cannot be negative, got {self.games_played}")

    @property
    def is_usable(self) -> bool:
        """A standing without played games carries no per-game information."""
        return self.games_played > 0

    @property
    def points_per_game(self) -> float:
        return self.points / self.games_played if self.games_played else 0.0

    @property
    def goal_difference_per_game(self) -> float:
        return self.goal_difference / self.games_played if self.games_played else 0.0

    def to_dict(self) -> dict:
        """Convert standing to dictionary."""
        return {
            "team": self.team,
            "rank": self.rank,
            "points": self.points,
            "goalDifference": self.goal_difference,
            "gamesPlayed": self.games_played,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TeamStanding":
        """Create standing from dictionary (camelCase or snake_case keys)."""
        return cls(
            team=data["team"],
            rank=int(data["rank"]),
            points=int(data["points"]),
            goal_difference=int(data.get("goalDifference", data.get("goal_difference", 0))),
            games_played=int(data.get("gamesPlayed", data.get("games_played", 0))),
        )

    @classmethod
    def mid_table(cls, team: str, league_size: int = 20) -> "TeamStanding":
        """
        Default standing for a team missing from the table.

        Assumes a mid-table side: bottom-half rank, a point per game and
        a level goal difference.

        Args:
            team: Team name
            league_size: Number of teams in the league

        Returns:
            TeamStanding placeholder
        """
        return cls(team=team, rank=league_size, points=20, goal_difference=0, games_played=20)


def find_standing(standings, team: str) -> Optional[TeamStanding]:
    """Look up a team's standing by name, ignoring case."""
    wanted = team.strip().lower()
    for standing in standings:
        if standing.team.strip().lower() == wanted:
            return standing
    return None
