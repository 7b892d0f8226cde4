"""Shared fakes for snapshot service tests."""
import base64
from dataclasses import dataclass
from typing import Optional

import pytest

from snapshot_service.mobile.app_handle import ElementNotFoundError
from snapshot_service.mobile.screen_states import INITIAL_STATE, ScreenState, next_state
from snapshot_service.mobile.snapshot import SnapshotCapturer

W3C_ELEMENT_KEY = "element-6066-11e4-a52e-4f735466cecf"
PNG_HEADER = b"\x89PNG\r\n\x1a\n"

DEFAULT_BUTTONS = {
    ScreenState.MAIN: 1,
    ScreenState.SCREEN_A: 2,
    ScreenState.SCREEN_B: 0,
}


@dataclass(frozen=True)
class FakeButton:
    screen: ScreenState
    generation: int
    index: int

    @property
    def element_id(self) -> str:
        return f"{self.screen.value}-{self.generation}-{self.index}"


class ScriptedApplication:
    """In-memory app whose screens follow the walkthrough transition table."""

    def __init__(self, buttons: Optional[dict] = None):
        self.buttons = dict(DEFAULT_BUTTONS)
        self.buttons.update(buttons or {})
        self.state = INITIAL_STATE
        self.generation = 0
        self.running = False
        self.launch_count = 0
        self.close_count = 0
        self.query_count = 0
        self.activations = []

    @property
    def is_running(self) -> bool:
        return self.running

    def launch(self) -> None:
        if self.running:
            return
        self.running = True
        self.launch_count += 1

    def query_buttons(self):
        self.query_count += 1
        return [FakeButton(self.state, self.generation, i) for i in range(self.buttons[self.state])]

    def activate(self, element: FakeButton) -> None:
        if element.screen != self.state or element.generation != self.generation:
            raise ElementNotFoundError(f"stale element {element.element_id}")
        self.activations.append((self.state, element.index))
        self.state = next_state(self.state, element.index)
        # Every tap redraws the screen, so earlier query results go stale.
        self.generation += 1

    def screenshot_png(self) -> bytes:
        return PNG_HEADER + self.state.value.encode()

    def close(self) -> None:
        self.running = False
        self.close_count += 1


class FakeResponse:
    def __init__(self, status_code, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


class FakeAppiumSession:
    """Stands in for requests.Session and serves a ScriptedApplication over WebDriver routes."""

    def __init__(self, app: ScriptedApplication, session_id: str = "sess-1"):
        self.app = app
        self.session_id = session_id
        self.calls = []
        self._elements = {}

    def request(self, method, url, json=None, timeout=None):
        path = "/" + url.split("/", 3)[3]
        self.calls.append((method, path, json))
        prefix = f"/session/{self.session_id}"

        if method == "POST" and path == "/session":
            self.app.launch()
            return FakeResponse(200, {"value": {"sessionId": self.session_id, "capabilities": {}}})
        if method == "DELETE" and path == prefix:
            self.app.close()
            return FakeResponse(200, {"value": None})
        if method == "POST" and path == f"{prefix}/elements":
            buttons = self.app.query_buttons()
            self._elements = {b.element_id: b for b in buttons}
            return FakeResponse(200, {"value": [{W3C_ELEMENT_KEY: b.element_id} for b in buttons]})
        if method == "POST" and path.startswith(f"{prefix}/element/") and path.endswith("/click"):
            element_id = path[len(f"{prefix}/element/") : -len("/click")]
            button = self._elements.get(element_id)
            try:
                if button is None:
                    raise ElementNotFoundError(element_id)
                self.app.activate(button)
            except ElementNotFoundError:
                return FakeResponse(
                    404,
                    {"value": {"error": "stale element reference", "message": f"{element_id} is stale"}},
                )
            return FakeResponse(200, {"value": None})
        if method == "GET" and path == f"{prefix}/screenshot":
            encoded = base64.b64encode(self.app.screenshot_png()).decode("ascii")
            return FakeResponse(200, {"value": encoded})
        return FakeResponse(404, {"value": {"error": "unknown command", "message": path}})


@pytest.fixture
def make_app():
    """Factory for scripted apps; pass {ScreenState: button_count} overrides."""
    return ScriptedApplication


@pytest.fixture
def scripted_app():
    app = ScriptedApplication()
    app.launch()
    return app


@pytest.fixture
def capturer(scripted_app, tmp_path):
    return SnapshotCapturer(scripted_app, output_dir=tmp_path / "screenshots", device_name="iPhone 15")


@pytest.fixture
def make_appium_session():
    return FakeAppiumSession
