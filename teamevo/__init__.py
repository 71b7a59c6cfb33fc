"""Genetic team builder for Great League formats."""

from teamevo.runner import GenerationOptions, TeamResult, generate_team, generate_team_sync

__version__ = "0.1.0"

__all__ = ["GenerationOptions", "TeamResult", "generate_team", "generate_team_sync"]
