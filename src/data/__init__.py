"""Input loading and output writing."""
