from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Optional

from .app_handle import AppiumApplication, launched
from .appium_http_client import AppiumHTTPClient
from .config import capability, load_capabilities
from .env import DEFAULT_APPIUM_SERVER_URL, DEFAULT_LOCALE, DEFAULT_OUTPUT_DIR, DEFAULT_TIMEOUT_S
from .snapshot import SnapshotCapturer
from .walkthrough import WalkthroughResult, run_walkthrough


def localized_session_payload(session_payload: dict[str, Any], locale: str) -> dict[str, Any]:
    """
    Return a copy of `session_payload` that starts the app in `locale`
    (e.g. "de-DE"), so screenshots match the folder they are saved under.

    XCUITest takes language "de" and locale "de_DE"; UiAutomator2 takes
    language "de" and locale (country) "DE".
    """
    parts = locale.strip().replace("_", "-").split("-")
    if not parts[0]:
        raise ValueError(f"Invalid locale {locale!r}")
    language = parts[0].lower()
    region = parts[-1].upper() if len(parts) > 1 else ""

    payload = copy.deepcopy(session_payload)
    capabilities = payload.setdefault("capabilities", {})
    always_match = capabilities.setdefault("alwaysMatch", {})
    if not isinstance(always_match, dict):
        raise ValueError("'capabilities.alwaysMatch' must be an object")

    platform = str(capability(payload, "platformName") or "ios").strip().lower()
    # W3C rejects a key present in both alwaysMatch and a firstMatch entry.
    for source in [always_match, capabilities, *(capabilities.get("firstMatch") or [])]:
        if isinstance(source, dict):
            for key in ("language", "locale", "appium:language", "appium:locale"):
                source.pop(key, None)
    always_match["appium:language"] = language
    if platform == "android":
        if region:
            always_match["appium:locale"] = region
    else:
        always_match["appium:locale"] = f"{language}_{region}" if region else language
    return payload


def run_snapshot_walkthrough(
    *,
    capabilities_json_path: str,
    appium_server_url: str = DEFAULT_APPIUM_SERVER_URL,
    output_dir: str | Path = DEFAULT_OUTPUT_DIR,
    device_name: Optional[str] = None,
    locale: str = DEFAULT_LOCALE,
    clear_previous: bool = False,
    timeout_s: float = DEFAULT_TIMEOUT_S,
    client: Optional[AppiumHTTPClient] = None,
) -> WalkthroughResult:
    """
    Launch the app through Appium, run the snapshot walkthrough, then tear
    the session down whether or not the walkthrough succeeded.

    The device name used in file names defaults to the `deviceName`
    capability.
    """
    session_payload = localized_session_payload(load_capabilities(capabilities_json_path), locale)
    resolved_device = device_name or capability(session_payload, "deviceName")

    client = client or AppiumHTTPClient(appium_server_url, timeout_s=timeout_s)
    app = AppiumApplication(client, session_payload)

    with launched(app):
        print(f"Session started: {app.session_id}")
        capturer = SnapshotCapturer(
            app,
            output_dir=output_dir,
            device_name=str(resolved_device) if resolved_device else None,
            locale=locale,
        )
        if clear_previous:
            removed = capturer.clear_previous()
            if removed:
                print(f"Removed {len(removed)} previous screenshot(s) from {capturer.locale_dir}")
        return run_walkthrough(app, capturer)
