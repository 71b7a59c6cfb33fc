from __future__ import annotations

import math
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class EngineConfig(BaseModel):
    """Configuration options controlling EvolutionEngine behaviour."""

    population_size: int = Field(default=150, gt=0)
    generations: int = Field(default=75, gt=0)
    elite_fraction: float = Field(
        default=0.1, ge=0, le=1, description="Share of each generation carried over unchanged (rounded up)"
    )
    crossover_rate: float = Field(default=0.8, ge=0, le=1)
    base_mutation_rate: float = Field(
        default=0.2, ge=0, le=1, description="Starting point for the diversity-adaptive mutation rate"
    )
    tournament_size: int = Field(default=3, gt=0)
    initializer_sample_size: int = Field(
        default=20, gt=0, description="Candidates scored per slot when seeding teams"
    )
    max_fallback_attempts: int = Field(
        default=1000, gt=0, description="Uniform draws before the pool is declared exhausted"
    )
    convergence_threshold: float = Field(default=0.01, ge=0)
    convergence_top_fraction: float = Field(default=0.3, gt=0, le=1)
    stagnation_limit: int = Field(
        default=10, ge=0, description="Generations without improvement required before an early stop"
    )
    log_interval: int = Field(default=10, gt=0)
    max_workers: int = Field(
        default=1, gt=0, description="Threads used to score a generation (1 = sequential)"
    )
    pause_poll_interval: float = Field(default=0.1, gt=0)
    seed: Optional[int] = Field(default=None, description="Seed for the run's random generator")

    model_config = ConfigDict(validate_assignment=True)

    @property
    def elite_count(self) -> int:
        return math.ceil(self.population_size * self.elite_fraction)
