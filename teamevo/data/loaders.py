"""
File loaders for the static datasets.

Expected layout under a data directory::

    pokemon.json                          game master species list
    moves.json                            game master move list
    cp1500_all_<role>_rankings.csv        one table per ranking role
    simulations/cp1500_<speciesId>_<s>-<s>.csv

Ranking and simulation files are optional: a missing file or directory yields
empty data and a warning, and scoring degrades to neutral values.
"""

from __future__ import annotations

import json
from pathlib import Path
import re
from typing import Any, Optional, Union

from loguru import logger
import pandas as pd
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from teamevo.data.game_data import GameData
from teamevo.data.matchups import SHIELD_SCENARIOS, MatchupProvider
from teamevo.data.models import Move, RankingEntry, RankingRole, Species
from teamevo.data.rankings import RankingProvider
from teamevo.data.species import SpeciesRepository, normalize_species_id
from teamevo.exceptions import DataError

PathLike = Union[str, Path]

SPECIES_FILE = "pokemon.json"
MOVES_FILE = "moves.json"
SIMULATIONS_DIR = "simulations"

_SIMULATION_FILE = re.compile(r"^cp1500_(.+)_(\d+)-(\d+)\.csv$")
_MOVESET_TOKEN = re.compile(r"^[A-Za-z0-9]+\+[A-Za-z0-9]+(?:/[A-Za-z0-9]+)+$")

_RANKING_NUMERIC = ("Score", "Dex")
_RANKING_TEXT = ("Pokemon", "Type 1", "Type 2", "Fast Move", "Charged Move 1", "Charged Move 2")


def _read_json(path: Path) -> Any:
    try:
        with path.open("r", encoding="utf-8") as fh:
            return json.load(fh)
    except FileNotFoundError as exc:
        raise DataError(f"Dataset file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise DataError(f"Malformed JSON in {path}: {exc}") from exc


def load_species(path: PathLike) -> list[Species]:
    path = Path(path)
    try:
        return TypeAdapter(list[Species]).validate_python(_read_json(path))
    except PydanticValidationError as exc:
        raise DataError(f"Invalid species data in {path}: {exc}") from exc


def load_moves(path: PathLike) -> list[Move]:
    path = Path(path)
    try:
        return TypeAdapter(list[Move]).validate_python(_read_json(path))
    except PydanticValidationError as exc:
        raise DataError(f"Invalid move data in {path}: {exc}") from exc


def ranking_file_name(role: RankingRole) -> str:
    return f"cp1500_all_{role.value}_rankings.csv"


def load_ranking_table(path: PathLike) -> list[RankingEntry]:
    path = Path(path)
    try:
        df = pd.read_csv(path, dtype=str, keep_default_na=False)
    except (pd.errors.ParserError, UnicodeDecodeError) as exc:
        raise DataError(f"Malformed ranking CSV {path}: {exc}") from exc
    if "Pokemon" not in df.columns:
        raise DataError(f"Ranking CSV {path} has no 'Pokemon' column")

    for column in _RANKING_NUMERIC:
        if column in df.columns:
            df[column] = pd.to_numeric(df[column], errors="coerce").fillna(0)
    columns = [c for c in _RANKING_NUMERIC + _RANKING_TEXT if c in df.columns]
    records = df[columns].to_dict(orient="records")
    try:
        return [RankingEntry.model_validate(record) for record in records]
    except PydanticValidationError as exc:
        raise DataError(f"Invalid ranking row in {path}: {exc}") from exc


def load_ranking_tables(data_dir: PathLike) -> dict[RankingRole, list[RankingEntry]]:
    data_dir = Path(data_dir)
    tables: dict[RankingRole, list[RankingEntry]] = {}
    for role in RankingRole:
        path = data_dir / ranking_file_name(role)
        if not path.exists():
            logger.warning("[loaders] Ranking table missing: {}", path)
            tables[role] = []
            continue
        tables[role] = load_ranking_table(path)
        logger.debug("[loaders] Loaded {} {} ranking entries", len(tables[role]), role.value)
    return tables


def strip_moveset_suffix(cell: str) -> str:
    """``"Aegislash (Shield) AS+FC/GB"`` -> ``"Aegislash (Shield)"``."""
    value = cell.strip()
    head, _, tail = value.rpartition(" ")
    if head and _MOVESET_TOKEN.match(tail):
        return head.strip()
    return value


def parse_simulation_file(name: str) -> Optional[tuple[str, int]]:
    """Return ``(species_id, shields)`` for a simulation file name, else None."""
    match = _SIMULATION_FILE.match(name)
    if not match:
        return None
    shields = int(match.group(2))
    if shields not in SHIELD_SCENARIOS:
        return None
    return normalize_species_id(match.group(1)), shields


def load_simulations(
    directory: PathLike, species: SpeciesRepository
) -> dict[str, dict[str, dict[int, float]]]:
    """Read every simulation CSV into ``ratings[species][opponent][shields]``.

    Opponent cells are display names, optionally followed by a moveset token;
    rows whose name does not resolve to a known species are skipped.
    """
    directory = Path(directory)
    ratings: dict[str, dict[str, dict[int, float]]] = {}
    if not directory.is_dir():
        logger.warning(
            "[loaders] Simulation directory {} not found; matchup scoring falls back to neutral",
            directory,
        )
        return ratings

    for path in sorted(directory.glob("*.csv")):
        parsed = parse_simulation_file(path.name)
        if parsed is None:
            continue
        species_id, shields = parsed
        try:
            df = pd.read_csv(path, usecols=["Pokemon", "Battle Rating"])
        except (pd.errors.ParserError, ValueError) as exc:
            raise DataError(f"Malformed simulation CSV {path}: {exc}") from exc

        df["Battle Rating"] = pd.to_numeric(df["Battle Rating"], errors="coerce")
        df = df.dropna(subset=["Battle Rating"])
        row = ratings.setdefault(species_id, {})
        for cell, rating in zip(df["Pokemon"].astype(str), df["Battle Rating"]):
            opponent = species.name_to_choosable_id(strip_moveset_suffix(cell))
            if opponent is None:
                continue
            row.setdefault(opponent, {})[shields] = float(rating)

    logger.debug("[loaders] Loaded simulations for {} species", len(ratings))
    return ratings


def load_game_data(data_dir: PathLike) -> GameData:
    """Load all datasets from ``data_dir`` into an immutable ``GameData``."""
    data_dir = Path(data_dir)
    species = load_species(data_dir / SPECIES_FILE)
    moves_path = data_dir / MOVES_FILE
    moves = load_moves(moves_path) if moves_path.exists() else []
    if not moves:
        logger.warning("[loaders] No move data found at {}", moves_path)

    repository = SpeciesRepository(species, moves)
    rankings = RankingProvider(load_ranking_tables(data_dir))
    ratings = load_simulations(data_dir / SIMULATIONS_DIR, repository)
    matchups = MatchupProvider(ratings, species=repository, rankings=rankings)

    logger.info(
        "[loaders] Loaded {} species, {} moves, {} simulated species from {}",
        len(repository),
        len(moves),
        len(ratings),
        data_dir,
    )
    return GameData(species=repository, rankings=rankings, matchups=matchups)
