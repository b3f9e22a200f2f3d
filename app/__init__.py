"""Tick orchestration, alert event delivery and the review CLI."""
