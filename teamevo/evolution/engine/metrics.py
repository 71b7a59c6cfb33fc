from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class EngineMetrics(BaseModel):
    """Counters and gauges for a single run."""

    total_generations: int = Field(default=0, description="Generations completed")
    evaluations: int = Field(default=0, description="Chromosomes scored, reseeds and refills included")
    best_fitness: Optional[float] = Field(default=None, description="Best-ever fitness so far")
    current_best_fitness: Optional[float] = Field(
        default=None, description="Best fitness in the latest population"
    )
    diversity: float = Field(default=0.0, description="Unique teams / population size")
    mutation_rate: float = Field(default=0.0, description="Mutation rate used by the latest generation")
    stagnation: int = Field(default=0, description="Generations since the best-ever improved")
    anchor_repairs: int = Field(default=0, description="Chromosomes dropped for drifted anchors")
    reseeds: int = Field(default=0, description="Whole-population reseeds")
    elapsed_seconds: float = Field(default=0.0, description="Wall-clock time spent in the run")

    def record_generation(
        self,
        *,
        diversity: float,
        mutation_rate: float,
        current_best: float,
        evaluated: int,
    ) -> None:
        self.total_generations += 1
        self.diversity = diversity
        self.mutation_rate = mutation_rate
        self.current_best_fitness = current_best
        self.evaluations += evaluated

    def to_dict(self) -> dict[str, object]:
        return self.model_dump()
