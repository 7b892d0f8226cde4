from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from .app_handle import ApplicationHandle, button_at
from .screen_states import INITIAL_STATE, ScreenState, next_state
from .snapshot import SnapshotArtifact, SnapshotCapturer


@dataclass(frozen=True)
class CaptureStep:
    label: str

    def describe(self) -> str:
        return f"snapshot {self.label!r}"


@dataclass(frozen=True)
class TapStep:
    index: int

    def describe(self) -> str:
        return f"tap button[{self.index}]"


WalkthroughStep = Union[CaptureStep, TapStep]

WALKTHROUGH_STEPS: tuple[WalkthroughStep, ...] = (
    CaptureStep("Mainscreen"),
    TapStep(0),
    CaptureStep("View A"),
    TapStep(0),
    TapStep(1),
    CaptureStep("View B"),
)

EXPECTED_LABELS: tuple[str, ...] = tuple(s.label for s in WALKTHROUGH_STEPS if isinstance(s, CaptureStep))


@dataclass(frozen=True)
class WalkthroughResult:
    artifacts: list[SnapshotArtifact]
    executed_steps: int
    final_state: ScreenState

    @property
    def labels(self) -> list[str]:
        return [a.label for a in self.artifacts]


def run_walkthrough(
    app: ApplicationHandle,
    capturer: SnapshotCapturer,
    *,
    steps: Optional[tuple[WalkthroughStep, ...]] = None,
) -> WalkthroughResult:
    """
    Drive `app` through the store-listing walkthrough, capturing a snapshot
    at each screen.

    There is no retry and no "continue after failure": the first
    ElementNotFoundError stops the run and propagates to the caller, leaving
    only the snapshots captured before it on disk.
    """
    if not app.is_running:
        raise RuntimeError("Application must be launched before running the walkthrough")

    plan = WALKTHROUGH_STEPS if steps is None else steps
    state = INITIAL_STATE
    artifacts: list[SnapshotArtifact] = []

    for idx, step in enumerate(plan, 1):
        print(f"[{idx}/{len(plan)}] {step.describe()} (screen: {state.value})")
        if isinstance(step, CaptureStep):
            artifacts.append(capturer.capture(step.label))
            continue

        # Re-query on every tap; the previous screen's buttons are not reused.
        element = button_at(app, step.index)
        app.activate(element)
        state = next_state(state, step.index)

    return WalkthroughResult(artifacts=artifacts, executed_steps=len(plan), final_state=state)
