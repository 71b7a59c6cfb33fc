"""Shared fixtures: a small, fully in-memory Great League dataset."""

import numpy as np
import pytest

from teamevo.coverage.type_chart import effectiveness
from teamevo.data import (
    BaseStats,
    GameData,
    Move,
    RankingEntry,
    RankingRole,
    Species,
)
from teamevo.team.chromosome import Chromosome

# id, name, dex, types, (atk, def, hp), fast moves, charged moves, overall score
SPECIES_ROWS = [
    ("medicham", "Medicham", 308, ["fighting", "psychic"], (121, 152, 155),
     ["COUNTER"], ["ICE_PUNCH", "DYNAMIC_PUNCH", "PSYCHIC"], 95),
    ("registeel", "Registeel", 379, ["steel"], (143, 285, 190),
     ["LOCK_ON"], ["FOCUS_BLAST", "FLASH_CANNON", "ZAP_CANNON"], 94),
    ("lanturn", "Lanturn", 171, ["water", "electric"], (146, 137, 268),
     ["SPARK"], ["SURF", "THUNDERBOLT"], 93),
    ("azumarill", "Azumarill", 184, ["water", "fairy"], (112, 152, 225),
     ["BUBBLE"], ["ICE_BEAM", "PLAY_ROUGH", "HYDRO_PUMP"], 92),
    ("altaria", "Altaria", 334, ["dragon", "flying"], (141, 201, 181),
     ["DRAGON_BREATH"], ["SKY_ATTACK", "MOONBLAST"], 91),
    ("swampert", "Swampert", 260, ["water", "ground"], (208, 175, 225),
     ["MUD_SHOT"], ["HYDRO_CANNON", "EARTHQUAKE"], 90),
    ("umbreon", "Umbreon", 197, ["dark"], (126, 240, 216),
     ["SNARL"], ["FOUL_PLAY", "LAST_RESORT"], 88),
    ("sableye", "Sableye", 302, ["dark", "ghost"], (141, 136, 137),
     ["SHADOW_CLAW"], ["FOUL_PLAY", "RETURN"], 86),
    ("walrein", "Walrein", 365, ["ice", "water"], (182, 176, 242),
     ["POWDER_SNOW"], ["ICICLE_SPEAR", "EARTHQUAKE"], 85),
    ("skarmory", "Skarmory", 227, ["steel", "flying"], (148, 226, 163),
     ["AIR_SLASH"], ["SKY_ATTACK", "BRAVE_BIRD"], 84),
    ("bastiodon", "Bastiodon", 411, ["rock", "steel"], (94, 286, 155),
     ["SMACK_DOWN"], ["STONE_EDGE", "FLASH_CANNON"], 83),
    ("trevenant", "Trevenant", 709, ["ghost", "grass"], (201, 154, 198),
     ["SHADOW_CLAW"], ["SHADOW_BALL", "SEED_BOMB"], 82),
    ("marowak_alolan", "Marowak (Alolan)", 105, ["fire", "ghost"], (144, 200, 155),
     ["FIRE_SPIN"], ["SHADOW_BALL", "BONE_CLUB"], 81),
    ("venusaur", "Venusaur", 3, ["grass", "poison"], (198, 189, 190),
     ["VINE_WHIP"], ["FRENZY_PLANT", "SLUDGE_BOMB"], 80),
    ("galvantula", "Galvantula", 596, ["bug", "electric"], (201, 128, 172),
     ["VOLT_SWITCH"], ["DISCHARGE", "LUNGE"], 78),
    ("swampert_shadow", "Swampert (Shadow)", 260, ["water", "ground"], (208, 175, 225),
     ["MUD_SHOT"], ["HYDRO_CANNON", "EARTHQUAKE"], 76),
    ("charizard", "Charizard", 6, ["fire", "flying"], (223, 173, 186),
     ["FIRE_SPIN"], ["BLAST_BURN", "DRAGON_CLAW"], 70),
    ("marowak", "Marowak", 105, ["ground"], (144, 200, 155),
     ["MUD_SLAP"], ["BONE_CLUB", "EARTHQUAKE"], 60),
]

# id, type, power, energy, energy gain, turns, buffs, buff target
MOVE_ROWS = [
    ("COUNTER", "fighting", 8, 0, 7, 2, None, None),
    ("LOCK_ON", "normal", 1, 0, 5, 1, None, None),
    ("SPARK", "electric", 6, 0, 7, 2, None, None),
    ("BUBBLE", "water", 8, 0, 11, 3, None, None),
    ("DRAGON_BREATH", "dragon", 4, 0, 3, 1, None, None),
    ("MUD_SHOT", "ground", 3, 0, 9, 2, None, None),
    ("SNARL", "dark", 5, 0, 13, 3, None, None),
    ("SHADOW_CLAW", "ghost", 6, 0, 8, 2, None, None),
    ("POWDER_SNOW", "ice", 5, 0, 8, 2, None, None),
    ("AIR_SLASH", "flying", 9, 0, 9, 3, None, None),
    ("SMACK_DOWN", "rock", 12, 0, 8, 3, None, None),
    ("FIRE_SPIN", "fire", 9, 0, 10, 3, None, None),
    ("VINE_WHIP", "grass", 5, 0, 8, 2, None, None),
    ("VOLT_SWITCH", "electric", 12, 0, 16, 4, None, None),
    ("MUD_SLAP", "ground", 11, 0, 12, 3, None, None),
    ("ICE_PUNCH", "ice", 55, 40, 0, 1, None, None),
    ("DYNAMIC_PUNCH", "fighting", 90, 50, 0, 1, None, None),
    ("PSYCHIC", "psychic", 75, 55, 0, 1, None, None),
    ("FOCUS_BLAST", "fighting", 150, 75, 0, 1, None, None),
    ("FLASH_CANNON", "steel", 110, 70, 0, 1, None, None),
    ("ZAP_CANNON", "electric", 150, 80, 0, 1, None, None),
    ("SURF", "water", 75, 45, 0, 1, None, None),
    ("THUNDERBOLT", "electric", 90, 55, 0, 1, None, None),
    ("ICE_BEAM", "ice", 90, 55, 0, 1, None, None),
    ("PLAY_ROUGH", "fairy", 90, 60, 0, 1, None, None),
    ("HYDRO_PUMP", "water", 130, 75, 0, 1, None, None),
    ("SKY_ATTACK", "flying", 75, 45, 0, 1, None, None),
    ("MOONBLAST", "fairy", 110, 60, 0, 1, None, None),
    ("HYDRO_CANNON", "water", 80, 40, 0, 1, None, None),
    ("EARTHQUAKE", "ground", 120, 65, 0, 1, None, None),
    ("FOUL_PLAY", "dark", 70, 45, 0, 1, None, None),
    ("LAST_RESORT", "normal", 90, 55, 0, 1, None, None),
    ("RETURN", "normal", 130, 70, 0, 1, None, None),
    ("ICICLE_SPEAR", "ice", 65, 40, 0, 1, None, None),
    ("BRAVE_BIRD", "flying", 130, 55, 0, 1, [0, -3], "self"),
    ("STONE_EDGE", "rock", 100, 55, 0, 1, None, None),
    ("SHADOW_BALL", "ghost", 100, 55, 0, 1, None, None),
    ("SEED_BOMB", "grass", 65, 45, 0, 1, None, None),
    ("BONE_CLUB", "ground", 40, 35, 0, 1, None, None),
    ("FRENZY_PLANT", "grass", 100, 45, 0, 1, None, None),
    ("SLUDGE_BOMB", "poison", 80, 50, 0, 1, None, None),
    ("DISCHARGE", "electric", 65, 40, 0, 1, None, None),
    ("LUNGE", "bug", 60, 45, 0, 1, [-1, 0], "opponent"),
    ("BLAST_BURN", "fire", 110, 50, 0, 1, None, None),
    ("DRAGON_CLAW", "dragon", 50, 35, 0, 1, None, None),
]

# role -> offset from the overall score
ROLE_OFFSETS = {
    RankingRole.OVERALL: 0,
    RankingRole.LEADS: -2,
    RankingRole.SWITCHES: -4,
    RankingRole.CLOSERS: -1,
}


def display_move(move_id: str) -> str:
    return move_id.replace("_", " ").title()


def make_species() -> list[Species]:
    return [
        Species(
            species_id=species_id,
            species_name=name,
            dex=dex,
            types=types,
            base_stats=BaseStats(atk=atk, defense=defense, hp=hp),
            fast_moves=fast,
            charged_moves=charged,
            tags=["shadow"] if species_id.endswith("_shadow") else [],
        )
        for species_id, name, dex, types, (atk, defense, hp), fast, charged, _ in SPECIES_ROWS
    ]


def make_moves() -> list[Move]:
    return [
        Move(
            move_id=move_id,
            name=display_move(move_id),
            type=move_type,
            power=power,
            energy=energy,
            energy_gain=gain,
            turns=turns,
            buffs=buffs,
            buff_target=target,
        )
        for move_id, move_type, power, energy, gain, turns, buffs, target in MOVE_ROWS
    ]


def make_ranking_tables() -> dict[RankingRole, list[RankingEntry]]:
    tables = {}
    for role, offset in ROLE_OFFSETS.items():
        rows = []
        for _, name, dex, types, _, fast, charged, overall in SPECIES_ROWS:
            rows.append(
                RankingEntry(
                    name=name,
                    score=overall + offset,
                    dex=dex,
                    type1=types[0],
                    type2=types[1] if len(types) > 1 else "none",
                    fast_move=display_move(fast[0]),
                    charged_move1=display_move(charged[0]),
                    charged_move2=display_move(charged[1]),
                )
            )
        tables[role] = sorted(rows, key=lambda e: e.score, reverse=True)
    return tables


def synthetic_rating(attacker: Species, defender: Species) -> float:
    """Type advantage plus a small bulk edge, clipped to the rating scale."""
    offense = max(effectiveness(defender.types, t) for t in attacker.types)
    defense = max(effectiveness(attacker.types, t) for t in defender.types)
    bulk = attacker.base_stats.bulk_ratio - defender.base_stats.bulk_ratio
    return float(np.clip(500 + 250 * (offense - defense) + 40 * bulk, 100, 900))


def make_ratings(species: list[Species]) -> dict[str, dict[str, dict[int, float]]]:
    ratings: dict[str, dict[str, dict[int, float]]] = {}
    for attacker in species:
        row = ratings.setdefault(attacker.species_id, {})
        for defender in species:
            if defender.species_id == attacker.species_id:
                continue
            rating = synthetic_rating(attacker, defender)
            row[defender.species_id] = {
                0: max(0.0, rating - 25),
                1: rating,
                2: min(1000.0, rating + 25),
            }
    return ratings


@pytest.fixture(scope="session")
def game_data() -> GameData:
    species = make_species()
    return GameData.build(
        species=species,
        moves=make_moves(),
        ranking_tables=make_ranking_tables(),
        ratings=make_ratings(species),
    )


@pytest.fixture(scope="session")
def bare_game_data() -> GameData:
    """Species and moves only: no rankings, no simulations."""
    return GameData.build(species=make_species(), moves=make_moves())


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)


@pytest.fixture
def lanturn_team() -> Chromosome:
    return Chromosome(team=["lanturn", "medicham", "azumarill"], anchors=[0])
