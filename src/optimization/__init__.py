"""Stake sizing."""
