from __future__ import annotations

from teamevo.evolution.engine.config import EngineConfig
from teamevo.evolution.engine.core import EvolutionEngine
from teamevo.evolution.engine.metrics import EngineMetrics
from teamevo.evolution.engine.state import RunState
