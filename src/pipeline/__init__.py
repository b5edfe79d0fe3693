"""Fixture analysis orchestration."""
