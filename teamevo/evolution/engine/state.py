from enum import Enum


class RunState(str, Enum):
    INITIALIZING = "initializing"
    EVALUATING = "evaluating"
    REPRODUCING = "reproducing"
    CONVERGED = "converged"
    EXHAUSTED = "exhausted"
    STOPPED = "stopped"
    DONE = "done"


TERMINAL_STATES = {RunState.DONE}

VALID_TRANSITIONS: dict[RunState, set[RunState]] = {
    RunState.INITIALIZING: {RunState.EVALUATING},
    RunState.EVALUATING: {
        RunState.REPRODUCING,
        RunState.CONVERGED,
        RunState.EXHAUSTED,
        RunState.STOPPED,
    },
    RunState.REPRODUCING: {RunState.EVALUATING},
    RunState.CONVERGED: {RunState.DONE},
    RunState.EXHAUSTED: {RunState.DONE},
    RunState.STOPPED: {RunState.DONE},
    RunState.DONE: set(),
}


def is_valid_transition(current: RunState, new: RunState) -> bool:
    if current == new:
        return True
    return new in VALID_TRANSITIONS.get(current, set())


def validate_transition(current: RunState, new: RunState) -> None:
    if not is_valid_transition(current, new):
        valid_next = VALID_TRANSITIONS.get(current, set())
        raise ValueError(
            f"Invalid state transition: {current.value} -> {new.value}. "
            f"Valid transitions from {current.value}: {[s.value for s in valid_next]}"
        )


def is_terminal(state: RunState) -> bool:
    return state in TERMINAL_STATES
