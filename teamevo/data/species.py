"""
In-memory species and move lookups.

A ``SpeciesRepository`` is built once from the game master and never mutated
afterwards, so it can be shared freely between evaluation threads.
"""

from __future__ import annotations

import re
from typing import Hashable, Iterable, Optional, Sequence

from teamevo.data.models import Move, Species

# Battle-state forms that cannot be picked for a team map to the selectable form.
FORM_ALIASES: dict[str, str] = {
    "morpeko_hangry": "morpeko_full_belly",
    "aegislash_blade": "aegislash_shield",
    "lanturnw": "lanturn",
    "cradily_b": "cradily",
    "golisopodsh": "golisopod",
}

DISPLAY_NAME_ALIASES: dict[str, str] = {
    "Morpeko (Hangry)": "Morpeko (Full Belly)",
    "Aegislash (Blade)": "Aegislash (Shield)",
}

_REGIONAL_PREFIXES = ("alolan", "galarian", "hisuian")


def normalize_name_key(value: str) -> str:
    return re.sub(r"[^a-z0-9]", "", value.lower())


def normalize_species_id(species_id: str) -> str:
    return FORM_ALIASES.get(species_id, species_id)


def species_id_to_ranking_name(species_id: str) -> str:
    """Synthesize a ranking-table name from an id.

    >>> species_id_to_ranking_name("marowak_alolan_shadow")
    'Alolan Shadow Marowak'
    """
    parts = species_id.split("_")
    prefix = "Shadow " if "shadow" in parts else ""
    for region in _REGIONAL_PREFIXES:
        if region in parts:
            prefix = f"{region.capitalize()} {prefix}"
            break
    name = parts[0][:1].upper() + parts[0][1:]
    return prefix + name


class SpeciesRepository:
    """Species/move lookups keyed by id, display name and dex number."""

    def __init__(self, species: Iterable[Species], moves: Iterable[Move] = ()):
        self._by_id: dict[str, Species] = {}
        self._by_name: dict[str, Species] = {}
        self._by_normalized_name: dict[str, Species] = {}
        for entry in species:
            self._by_id[entry.species_id] = entry
            self._by_name.setdefault(entry.species_name, entry)
            self._by_normalized_name[normalize_name_key(entry.species_name)] = entry
        self._moves: dict[str, Move] = {move.move_id: move for move in moves}

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, species_id: str) -> bool:
        return species_id in self._by_id

    def get(self, species_id: str) -> Optional[Species]:
        found = self._by_id.get(species_id)
        if found is None:
            found = self._by_id.get(normalize_species_id(species_id))
        return found

    def get_move(self, move_id: str) -> Optional[Move]:
        return self._moves.get(move_id)

    def released_species(self) -> list[Species]:
        return [s for s in self._by_id.values() if s.released]

    def name_to_choosable_id(self, species_name: str) -> Optional[str]:
        """Resolve a display name (exact, then punctuation/case-insensitive)."""
        canonical = DISPLAY_NAME_ALIASES.get(species_name, species_name)
        match = self._by_name.get(canonical)
        if match is None:
            match = self._by_normalized_name.get(normalize_name_key(canonical))
        if match is None:
            return None
        return normalize_species_id(match.species_id)

    def species_id_to_name(self, species_id: str) -> str:
        found = self._by_id.get(normalize_species_id(species_id))
        return found.species_name if found else species_id

    def ranking_name(self, species_id: str) -> str:
        """Name under which ``species_id`` appears in the ranking tables."""
        found = self.get(species_id)
        return found.species_name if found else species_id_to_ranking_name(species_id)

    def base_species_key(self, species_id: str) -> Hashable:
        """Dex number when known; otherwise the id prefix before the first form suffix."""
        found = self.get(species_id)
        if found is not None:
            return found.dex
        return species_id.split("_")[0]

    def is_same_base_species(self, first: str, second: str) -> bool:
        return self.base_species_key(first) == self.base_species_key(second)

    def validate_team_uniqueness(self, team: Sequence[str]) -> bool:
        keys = [self.base_species_key(member) for member in team]
        return len(set(keys)) == len(keys)

    def types_of(self, species_id: str) -> list[str]:
        found = self.get(species_id)
        return list(found.types) if found else []
