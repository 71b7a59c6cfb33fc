class TeamEvoError(Exception):
    """Base for all teamevo exceptions."""

    pass


# High-level families
class ValidationError(TeamEvoError):
    """Caller input rejected before any generation runs."""

    pass


class DataError(TeamEvoError):
    """Static dataset files could not be read or parsed."""

    pass


class EvolutionError(TeamEvoError):
    """Evolution process failures."""

    pass


# Evolution subtypes
class PoolExhaustedError(EvolutionError):
    """Bounded fallback sampling could not find a unique species.

    Raised when the candidate pool is too small for the requested team size
    and exclusions. Never retried.
    """

    pass


class AnchorIntegrityError(EvolutionError):
    """A chromosome about to leave the engine has corrupted anchor slots."""

    pass
