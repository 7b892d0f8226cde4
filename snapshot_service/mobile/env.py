from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

DEFAULT_APPIUM_SERVER_URL = "http://127.0.0.1:4723"
DEFAULT_CAPABILITIES_JSON_PATH = str(
    Path(__file__).resolve().parents[1] / "mobile_examples" / "ios_capabilities.example.json"
)
DEFAULT_OUTPUT_DIR = "screenshots"
DEFAULT_LOCALE = "en-US"
DEFAULT_TIMEOUT_S = 30.0

_DOTENV_LOADED = False


def _repo_root() -> Path:
    # snapshot_service/mobile/env.py -> repo root is two levels up
    return Path(__file__).resolve().parents[2]


def load_dotenv(*, path: Optional[str | Path] = None, override: bool = False) -> dict[str, str]:
    """
    Minimal .env loader (no external deps).

    - Ignores blank lines and comments starting with '#'
    - Supports optional leading 'export '
    - Parses KEY=VALUE where VALUE may be quoted
    - Sets os.environ unless the key already exists (unless override=True)

    Returns a dict of keys that were set.
    """
    dotenv_path = Path(path).expanduser().resolve() if path is not None else (_repo_root() / ".env")
    if not dotenv_path.exists():
        return {}
    if dotenv_path.is_dir():
        raise IsADirectoryError(f".env path is a directory: {dotenv_path}")

    loaded: dict[str, str] = {}
    for raw_line in dotenv_path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export ") :].strip()
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        if not key:
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
            value = value[1:-1]

        if not override and os.environ.get(key) is not None:
            continue
        os.environ[key] = value
        loaded[key] = value
    return loaded


def ensure_dotenv_loaded() -> dict[str, str]:
    global _DOTENV_LOADED
    if _DOTENV_LOADED:
        return {}
    loaded = load_dotenv()
    _DOTENV_LOADED = True
    return loaded


def _positive_float(raw: str, *, name: str) -> float:
    try:
        parsed = float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e
    if parsed <= 0:
        raise ValueError(f"{name} must be > 0, got {raw!r}")
    return parsed


@dataclass(frozen=True)
class SnapshotSettings:
    appium_server_url: str = DEFAULT_APPIUM_SERVER_URL
    capabilities_json_path: str = DEFAULT_CAPABILITIES_JSON_PATH
    output_dir: str = DEFAULT_OUTPUT_DIR
    device_name: Optional[str] = None
    locale: str = DEFAULT_LOCALE
    timeout_s: float = DEFAULT_TIMEOUT_S

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "SnapshotSettings":
        """
        Build settings from SNAPSHOT_* environment variables.

        When `environ` is omitted the repo-root .env is loaded (once) and
        os.environ is used.
        """
        if environ is None:
            ensure_dotenv_loaded()
            environ = os.environ

        def _get(name: str, default: str) -> str:
            value = (environ.get(name) or "").strip()
            return value or default

        timeout_raw = (environ.get("SNAPSHOT_TIMEOUT_S") or "").strip()
        return cls(
            appium_server_url=_get("SNAPSHOT_APPIUM_SERVER_URL", DEFAULT_APPIUM_SERVER_URL),
            capabilities_json_path=_get("SNAPSHOT_CAPABILITIES_JSON", DEFAULT_CAPABILITIES_JSON_PATH),
            output_dir=_get("SNAPSHOT_OUTPUT_DIR", DEFAULT_OUTPUT_DIR),
            device_name=(environ.get("SNAPSHOT_DEVICE_NAME") or "").strip() or None,
            locale=_get("SNAPSHOT_LOCALE", DEFAULT_LOCALE),
            timeout_s=_positive_float(timeout_raw, name="SNAPSHOT_TIMEOUT_S") if timeout_raw else DEFAULT_TIMEOUT_S,
        )
