"""Fixture and head-to-head models."""

from dataclasses import dataclass
from typing import Iterable, Tuple


@dataclass(frozen=True)
class Fixture:
    """A single match to analyse."""

    fixture_id: int
    home_team: str
    away_team: str

    def __post_init__(self):
        if not self.home_team or not self.away_team:
            raise ValueError("Fixture needs both a home and an away team")
        if self.home_team == self.away_team:
            raise ValueError(f"A team cannot play itself: {self.home_team}")

    def to_dict(self) -> dict:
        return {
            "fixtureId": self.fixture_id,
            "homeTeam": self.home_team,
            "awayTeam": self.away_team,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Fixture":
        return cls(
            fixture_id=int(data.get("fixtureId", data.get("fixture_id", 0))),
            home_team=data.get("homeTeam", data.get("home_team")),
            away_team=data.get("awayTeam", data.get("away_team")),
        )


@dataclass(frozen=True)
class HeadToHeadMatch:
    """A previous meeting between two teams."""

    home_team: str
    away_team: str
    home_goals: int
    away_goals: int

    def __post_init__(self):
        if self.home_goals < 0 or self.away_goals < 0:
            raise ValueError(
                f"Goals must be non-negative, got {self.home_goals}-{self.away_goals}"
            )

    def winner(self) -> str:
        """Name of the winning team, or an empty string for a draw."""
        if self.home_goals > self.away_goals:
            return self.home_team
        if self.away_goals > self.home_goals:
            return self.away_team
        return ""

    def to_dict(self) -> dict:
        return {
            "homeTeam": self.home_team,
            "awayTeam": self.away_team,
            "homeGoals": self.home_goals,
            "awayGoals": self.away_goals,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "HeadToHeadMatch":
        return cls(
            home_team=data.get("homeTeam", data.get("home_team")),
            away_team=data.get("awayTeam", data.get("away_team")),
            home_goals=int(data.get("homeGoals", data.get("home_goals", 0))),
            away_goals=int(data.get("awayGoals", data.get("away_goals", 0))),
        )


def head_to_head_record(
    matches: Iterable[HeadToHeadMatch],
    team: str,
    opponent: str,
) -> Tuple[int, int, int]:
    """
    Summarise previous meetings from one team's point of view.

    Meetings involving other teams are ignored.

    Args:
        matches: Previous meetings
        team: Team whose record is returned
        opponent: The other team

    Returns:
        Tuple of (wins, draws, losses)
    """
    wins = draws = losses = 0
    pair = {team, opponent}
    for match in matches:
        if {match.home_team, match.away_team} != pair:
            continue
        winner = match.winner()
        if not winner:
            draws += 1
        elif winner == team:
            wins += 1
        else:
            losses += 1
    return wins, draws, losses
