"""
Pokémon GO type effectiveness.

All multipliers come from a fixed 18x18 table. Compound values are rounded to
six decimals so that products such as 1.6 * 1.6 compare exactly against
2.56 in callers.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Iterable, Sequence

ALL_TYPES: tuple[str, ...] = (
    "normal",
    "fire",
    "water",
    "electric",
    "grass",
    "ice",
    "fighting",
    "poison",
    "ground",
    "flying",
    "psychic",
    "bug",
    "rock",
    "ghost",
    "dragon",
    "dark",
    "steel",
    "fairy",
)

SUPER_EFFECTIVE = 1.6
NOT_VERY_EFFECTIVE = 0.625
IMMUNE = 0.39
STAB_BONUS = 1.2

# attacker -> (super effective against, not very effective against, immune)
_RELATIONS: dict[str, tuple[tuple[str, ...], tuple[str, ...], tuple[str, ...]]] = {
    "normal": ((), ("rock", "steel"), ("ghost",)),
    "fire": (
        ("grass", "ice", "bug", "steel"),
        ("fire", "water", "rock", "dragon"),
        (),
    ),
    "water": (("fire", "ground", "rock"), ("water", "grass", "dragon"), ()),
    "electric": (
        ("water", "flying"),
        ("electric", "grass", "dragon"),
        ("ground",),
    ),
    "grass": (
        ("water", "ground", "rock"),
        ("fire", "grass", "poison", "flying", "bug", "dragon", "steel"),
        (),
    ),
    "ice": (
        ("grass", "ground", "flying", "dragon"),
        ("fire", "water", "ice", "steel"),
        (),
    ),
    "fighting": (
        ("normal", "ice", "rock", "dark", "steel"),
        ("poison", "flying", "psychic", "bug", "fairy"),
        ("ghost",),
    ),
    "poison": (
        ("grass", "fairy"),
        ("poison", "ground", "rock", "ghost"),
        ("steel",),
    ),
    "ground": (
        ("fire", "electric", "poison", "rock", "steel"),
        ("grass", "bug"),
        ("flying",),
    ),
    "flying": (
        ("grass", "fighting", "bug"),
        ("electric", "rock", "steel"),
        (),
    ),
    "psychic": (("fighting", "poison"), ("psychic", "steel"), ("dark",)),
    "bug": (
        ("grass", "psychic", "dark"),
        ("fire", "fighting", "poison", "flying", "ghost", "steel", "fairy"),
        (),
    ),
    "rock": (
        ("fire", "ice", "flying", "bug"),
        ("fighting", "ground", "steel"),
        (),
    ),
    "ghost": (("psychic", "ghost"), ("dark",), ("normal",)),
    "dragon": (("dragon",), ("steel",), ("fairy",)),
    "dark": (("psychic", "ghost"), ("fighting", "dark", "fairy"), ()),
    "steel": (
        ("ice", "rock", "fairy"),
        ("fire", "water", "electric", "steel"),
        (),
    ),
    "fairy": (
        ("fighting", "dragon", "dark"),
        ("fire", "poison", "steel"),
        (),
    ),
}


def _build_chart() -> dict[str, dict[str, float]]:
    chart: dict[str, dict[str, float]] = {}
    for attacker in ALL_TYPES:
        strong, weak, immune = _RELATIONS[attacker]
        row = {defender: 1.0 for defender in ALL_TYPES}
        for defender in strong:
            row[defender] = SUPER_EFFECTIVE
        for defender in weak:
            row[defender] = NOT_VERY_EFFECTIVE
        for defender in immune:
            row[defender] = IMMUNE
        chart[attacker] = row
    return chart


TYPE_CHART: dict[str, dict[str, float]] = _build_chart()


def _clean(types: Iterable[str]) -> tuple[str, ...]:
    return tuple(t.lower() for t in types if t and t.lower() in TYPE_CHART)


@lru_cache(maxsize=4096)
def _effectiveness(defender: tuple[str, ...], attack_type: str) -> float:
    row = TYPE_CHART.get(attack_type)
    if row is None:
        return 1.0
    multiplier = 1.0
    for defender_type in defender:
        multiplier *= row[defender_type]
    return round(multiplier, 6)


def effectiveness(defender_types: Sequence[str], attack_type: str) -> float:
    """Multiplier of ``attack_type`` against a one- or two-typed defender.

    Unknown types (including the dataset placeholder ``"none"``) are neutral.
    """
    return _effectiveness(_clean(defender_types), attack_type.lower())


def stab(attacker_types: Sequence[str], move_type: str) -> float:
    return STAB_BONUS if move_type.lower() in _clean(attacker_types) else 1.0


def total_multiplier(
    attacker_types: Sequence[str], defender_types: Sequence[str], move_type: str
) -> float:
    multiplier = effectiveness(defender_types, move_type)
    return round(multiplier * stab(attacker_types, move_type), 6)


def effectiveness_category(multiplier: float) -> str:
    """Human-readable label for a (possibly STAB-adjusted) multiplier."""
    if multiplier >= 2.56:
        return "Double Super Effective"
    if multiplier >= 1.6:
        return "Super Effective"
    if multiplier > 1.0:
        return "Effective"
    if multiplier == 1.0:
        return "Neutral"
    if multiplier >= 0.625:
        return "Not Very Effective"
    if multiplier >= 0.39:
        return "Resisted"
    return "Heavily Resisted"


@lru_cache(maxsize=1024)
def _weaknesses(defender: tuple[str, ...]) -> tuple[str, ...]:
    return tuple(t for t in ALL_TYPES if _effectiveness(defender, t) > 1.0)


@lru_cache(maxsize=1024)
def _resistances(defender: tuple[str, ...]) -> tuple[str, ...]:
    return tuple(t for t in ALL_TYPES if _effectiveness(defender, t) < 1.0)


def weaknesses(defender_types: Sequence[str]) -> tuple[str, ...]:
    """Attack types that hit the defender for more than neutral damage."""
    return _weaknesses(_clean(defender_types))


def resistances(defender_types: Sequence[str]) -> tuple[str, ...]:
    return _resistances(_clean(defender_types))


def is_super_effective(defender_types: Sequence[str], attack_type: str) -> bool:
    return effectiveness(defender_types, attack_type) > 1.0


def resists(defender_types: Sequence[str], attack_type: str) -> bool:
    return effectiveness(defender_types, attack_type) <= NOT_VERY_EFFECTIVE


def offensive_coverage(move_types: Iterable[str]) -> int:
    """Number of single defending types hit super effectively by any move type."""
    attacks = set(_clean(move_types))
    return sum(
        1
        for defender in ALL_TYPES
        if any(TYPE_CHART[a][defender] > 1.0 for a in attacks)
    )


def defensive_coverage(team_types: Sequence[Sequence[str]]) -> int:
    """Resisted attack types minus attack types that hit two or more members.

    An attack type counts as resisted when at least one member takes less
    than neutral damage from it. Result ranges from -18 to 18.
    """
    members = [_clean(types) for types in team_types]
    members = [m for m in members if m]
    if not members:
        return 0
    score = 0
    for attack in ALL_TYPES:
        multipliers = [_effectiveness(m, attack) for m in members]
        if any(m < 1.0 for m in multipliers):
            score += 1
        if sum(1 for m in multipliers if m > 1.0) >= 2:
            score -= 1
    return score
