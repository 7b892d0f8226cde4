from __future__ import annotations

from enum import Enum


class ScreenState(str, Enum):
    MAIN = "main"
    SCREEN_A = "screen_a"
    SCREEN_B = "screen_b"


class InvalidTransitionError(RuntimeError):
    pass


INITIAL_STATE = ScreenState.MAIN
TERMINAL_STATE = ScreenState.SCREEN_B

# (current screen, index of the tapped button) -> screen after the tap.
# Screen A needs two taps: index 0 keeps it on Screen A, index 1 moves on.
TRANSITIONS: dict[tuple[ScreenState, int], ScreenState] = {
    (ScreenState.MAIN, 0): ScreenState.SCREEN_A,
    (ScreenState.SCREEN_A, 0): ScreenState.SCREEN_A,
    (ScreenState.SCREEN_A, 1): ScreenState.SCREEN_B,
}


def next_state(state: ScreenState, index: int) -> ScreenState:
    try:
        return TRANSITIONS[(state, index)]
    except KeyError:
        raise InvalidTransitionError(f"No transition from {state.value!r} for a tap on button {index}") from None
