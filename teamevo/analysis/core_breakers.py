from __future__ import annotations

from enum import Enum
from typing import Sequence

from pydantic import BaseModel, Field

from teamevo.analysis.threats import ThreatEntry


class CoreBreakerSeverity(str, Enum):
    MEDIUM = "medium"
    HIGH = "high"


class CoreBreakerEntry(BaseModel):
    pokemon: str
    rank: int
    team_answers: int
    severity: CoreBreakerSeverity


class CoreBreakerAnalysis(BaseModel):
    threshold: int
    entries: list[CoreBreakerEntry] = Field(default_factory=list)


def core_breaker_threshold(team_size: int) -> int:
    """Most answers a threat may face and still break the team."""
    return 1 if team_size <= 3 else 2


def core_breaker_severity(team_size: int, team_answers: int) -> CoreBreakerSeverity:
    answers = max(0, team_answers)
    if team_size <= 3:
        return CoreBreakerSeverity.HIGH if answers == 0 else CoreBreakerSeverity.MEDIUM
    return CoreBreakerSeverity.HIGH if answers <= 1 else CoreBreakerSeverity.MEDIUM


def build_core_breaker_analysis(team_size: int, threats: Sequence[ThreatEntry]) -> CoreBreakerAnalysis:
    threshold = core_breaker_threshold(team_size)
    entries = sorted(
        (
            CoreBreakerEntry(
                pokemon=t.pokemon,
                rank=t.rank,
                team_answers=t.team_answers,
                severity=core_breaker_severity(team_size, t.team_answers),
            )
            for t in threats
            if t.team_answers <= threshold
        ),
        key=lambda e: e.rank,
    )
    return CoreBreakerAnalysis(threshold=threshold, entries=entries)
