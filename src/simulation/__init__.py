"""Monte Carlo simulation and simulation context."""
