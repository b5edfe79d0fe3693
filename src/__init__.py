"""MatchMind: match outcome prediction, simulation and staking engine."""
