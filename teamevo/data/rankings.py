from __future__ import annotations

import re
from typing import Mapping, Optional, Sequence

from teamevo.data.models import Moveset, RankingEntry, RankingRole, RankingSummary

META_THREAT_COUNT = 50

_TYPED_MOVE = re.compile(r"^(.+?)\s*\((.+?)\)$")


def move_name_to_move_id(move_name: str) -> str:
    """Convert a ranking-table move name to a game-master move id.

    ``"Weather Ball (Fire)"`` becomes ``"WEATHER_BALL_FIRE"``.
    """
    match = _TYPED_MOVE.match(move_name.strip())
    if match:
        base = _to_id(match.group(1))
        variant = _to_id(match.group(2))
        return f"{base}_{variant}"
    return _to_id(move_name)


def _to_id(text: str) -> str:
    return re.sub(r"\s+", "_", text.strip().upper())


class RankingProvider:
    """Role ranking tables keyed by display name.

    Summaries for every ranked name are precomputed at construction; the
    provider is read-only afterwards. Unknown names score 0 in every role.
    """

    def __init__(self, tables: Optional[Mapping[RankingRole, Sequence[RankingEntry]]] = None):
        tables = tables or {}
        self._tables: dict[RankingRole, list[RankingEntry]] = {
            role: list(tables.get(role, ())) for role in RankingRole
        }
        self._scores: dict[RankingRole, dict[str, float]] = {}
        for role, entries in self._tables.items():
            index: dict[str, float] = {}
            for entry in entries:
                index.setdefault(entry.name, entry.score)
            self._scores[role] = index

        self._overall_index: dict[str, RankingEntry] = {}
        for entry in self._tables[RankingRole.OVERALL]:
            self._overall_index.setdefault(entry.name, entry)

        names = set().union(*(scores.keys() for scores in self._scores.values()))
        self._summaries: dict[str, RankingSummary] = {
            name: RankingSummary(
                overall=self._scores[RankingRole.OVERALL].get(name, 0.0),
                leads=self._scores[RankingRole.LEADS].get(name, 0.0),
                switches=self._scores[RankingRole.SWITCHES].get(name, 0.0),
                closers=self._scores[RankingRole.CLOSERS].get(name, 0.0),
            )
            for name in names
        }

    _EMPTY_SUMMARY = RankingSummary()

    def is_empty(self) -> bool:
        return not any(self._tables.values())

    def get_ranking_score(self, name: str, role: RankingRole | str) -> float:
        return self._scores[RankingRole(role)].get(name, 0.0)

    def get_average_ranking_score(self, name: str) -> float:
        return self.get_all_rankings(name).average

    def get_all_rankings(self, name: str) -> RankingSummary:
        return self._summaries.get(name, self._EMPTY_SUMMARY)

    def get_top_pokemon(self, role: RankingRole | str, count: int) -> list[RankingEntry]:
        return self._tables[RankingRole(role)][: max(0, count)]

    def get_meta_threats(self) -> list[RankingEntry]:
        return self.get_top_pokemon(RankingRole.OVERALL, META_THREAT_COUNT)

    def is_meta_pokemon(self, name: str) -> bool:
        return self.get_ranking_score(name, RankingRole.OVERALL) >= 80

    def get_top_ranked_names(self, min_score: float = 80, max_count: int = 150) -> list[str]:
        """Overall-table names scoring at least ``min_score``, in table order."""
        eligible = [e.name for e in self._tables[RankingRole.OVERALL] if e.score >= min_score]
        return list(dict.fromkeys(eligible[:max_count]))

    def get_optimal_moveset(self, name: str) -> Moveset:
        entry = self._overall_index.get(name)
        if entry is None:
            return Moveset()
        return Moveset(
            fast_move=move_name_to_move_id(entry.fast_move) if entry.fast_move else None,
            charged_move1=move_name_to_move_id(entry.charged_move1) if entry.charged_move1 else None,
            charged_move2=move_name_to_move_id(entry.charged_move2) if entry.charged_move2 else None,
        )
