from teamevo.analysis.contributions import ContributionEntry, FragilityTier, fragility_tier
from teamevo.analysis.core_breakers import (
    CoreBreakerAnalysis,
    CoreBreakerSeverity,
    core_breaker_severity,
    core_breaker_threshold,
)
from teamevo.analysis.report import GenerationAnalysis, analyze_team
from teamevo.analysis.shield_scenarios import ShieldScenarioStats
from teamevo.analysis.threats import (
    ThreatAnalysis,
    ThreatEntry,
    ThreatSeverity,
    WeaknessEntry,
    threat_severity,
)

__all__ = [
    "ContributionEntry",
    "CoreBreakerAnalysis",
    "CoreBreakerSeverity",
    "FragilityTier",
    "GenerationAnalysis",
    "ShieldScenarioStats",
    "ThreatAnalysis",
    "ThreatEntry",
    "ThreatSeverity",
    "WeaknessEntry",
    "analyze_team",
    "core_breaker_severity",
    "core_breaker_threshold",
    "fragility_tier",
    "threat_severity",
]
