from teamevo.team.chromosome import Chromosome, TournamentMode
from teamevo.team.population import (
    calculate_diversity,
    get_best_chromosome,
    get_worst_chromosome,
    has_converged,
    sort_by_fitness,
)
from teamevo.team.validation import (
    ChromosomeValidationResult,
    ValidationFailureReason,
    validate_chromosome,
)

__all__ = [
    "Chromosome",
    "ChromosomeValidationResult",
    "TournamentMode",
    "ValidationFailureReason",
    "calculate_diversity",
    "get_best_chromosome",
    "get_worst_chromosome",
    "has_converged",
    "sort_by_fitness",
    "validate_chromosome",
]
