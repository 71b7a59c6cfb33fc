from teamevo.coverage.type_chart import (
    ALL_TYPES,
    TYPE_CHART,
    defensive_coverage,
    effectiveness,
    effectiveness_category,
    is_super_effective,
    offensive_coverage,
    resistances,
    resists,
    stab,
    total_multiplier,
    weaknesses,
)

__all__ = [
    "ALL_TYPES",
    "TYPE_CHART",
    "defensive_coverage",
    "effectiveness",
    "effectiveness_category",
    "is_super_effective",
    "offensive_coverage",
    "resistances",
    "resists",
    "stab",
    "total_multiplier",
    "weaknesses",
]
