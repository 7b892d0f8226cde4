from __future__ import annotations

import sys
from contextlib import contextmanager
from typing import Any, Iterator, Optional, Protocol, TypeVar

from .appium_http_client import AppiumHTTPClient, AppiumHTTPError, WebDriverElementRef
from .config import capability

# WebDriver error codes that mean "the element you asked for is not there".
MISSING_ELEMENT_ERROR_CODES = frozenset({"no such element", "stale element reference"})

BUTTON_LOCATORS: dict[str, tuple[str, str]] = {
    "ios": ("class name", "XCUIElementTypeButton"),
    "android": ("class name", "android.widget.Button"),
}


class ElementNotFoundError(RuntimeError):
    def __init__(self, message: str, *, index: Optional[int] = None, found: Optional[int] = None) -> None:
        super().__init__(message)
        self.index = index
        self.found = found


class ApplicationHandle(Protocol):
    """
    A live reference to one application instance.

    `query_buttons()` is evaluated against the current screen on every call;
    callers must not reuse a previous result after a tap.
    """

    @property
    def is_running(self) -> bool: ...

    def launch(self) -> None: ...

    def query_buttons(self) -> list[Any]: ...

    def activate(self, element: Any) -> None: ...

    def screenshot_png(self) -> bytes: ...

    def close(self) -> None: ...


class AppiumApplication:
    def __init__(
        self,
        client: AppiumHTTPClient,
        session_payload: dict[str, Any],
        *,
        button_locator: Optional[tuple[str, str]] = None,
    ) -> None:
        self.client = client
        self.session_payload = session_payload
        self.button_locator = button_locator or self._default_button_locator(session_payload)

    @staticmethod
    def _default_button_locator(session_payload: dict[str, Any]) -> tuple[str, str]:
        platform = str(capability(session_payload, "platformName") or "ios").strip().lower()
        if platform not in BUTTON_LOCATORS:
            raise ValueError(
                f"Unsupported platformName {platform!r}; pass button_locator explicitly "
                f"(known: {sorted(BUTTON_LOCATORS)})"
            )
        return BUTTON_LOCATORS[platform]

    @property
    def is_running(self) -> bool:
        return self.client.session_id is not None

    @property
    def session_id(self) -> Optional[str]:
        return self.client.session_id

    def launch(self) -> None:
        if self.is_running:
            return
        self.client.create_session(self.session_payload)

    def query_buttons(self) -> list[WebDriverElementRef]:
        using, value = self.button_locator
        return self.client.find_elements(using=using, value=value)

    def activate(self, element: WebDriverElementRef) -> None:
        try:
            self.client.click(element)
        except AppiumHTTPError as e:
            if e.error_code in MISSING_ELEMENT_ERROR_CODES:
                raise ElementNotFoundError(
                    f"Element {element.element_id!r} is no longer on screen ({e.error_code})"
                ) from e
            raise

    def screenshot_png(self) -> bytes:
        return self.client.get_screenshot_png_bytes()

    def close(self) -> None:
        self.client.delete_session()


def button_at(app: ApplicationHandle, index: int) -> Any:
    if index < 0:
        raise ValueError("index must be >= 0")
    buttons = app.query_buttons()
    if index >= len(buttons):
        raise ElementNotFoundError(
            f"No button at index {index}: found {len(buttons)} button(s) on screen",
            index=index,
            found=len(buttons),
        )
    return buttons[index]


AppT = TypeVar("AppT", bound=ApplicationHandle)


@contextmanager
def launched(app: AppT) -> Iterator[AppT]:
    """
    Launch `app` for the duration of the block and always tear it down,
    including when the block raises. A teardown failure after the block has
    already failed is reported and the original error is re-raised.
    """
    app.launch()
    try:
        yield app
    except BaseException:
        try:
            app.close()
        except Exception as close_error:
            print(f"ERROR: teardown failed after an earlier error: {close_error}", file=sys.stderr)
        raise
    app.close()
