from teamevo.runner.api import (
    build_candidate_pool,
    generate_multiple_teams,
    generate_team,
    generate_team_sync,
    quick_generate_team,
    resolve_species,
)
from teamevo.runner.options import GenerationOptions, PoolConfig, TeamResult

__all__ = [
    "GenerationOptions",
    "PoolConfig",
    "TeamResult",
    "build_candidate_pool",
    "generate_multiple_teams",
    "generate_team",
    "generate_team_sync",
    "quick_generate_team",
    "resolve_species",
]
