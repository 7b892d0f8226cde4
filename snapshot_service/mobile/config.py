from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional


def load_json_file(path: str | Path) -> dict[str, Any]:
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"JSON file not found: {file_path}")
    if file_path.is_dir():
        raise IsADirectoryError(f"Expected a JSON file but found a directory: {file_path}")

    raw = file_path.read_text(encoding="utf-8")
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {file_path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Expected top-level JSON object in {file_path}")
    return data


def require_key(obj: dict[str, Any], key: str, *, context: str) -> Any:
    if key not in obj:
        raise ValueError(f"Missing required key '{key}' in {context}")
    return obj[key]


def load_capabilities(path: str | Path) -> dict[str, Any]:
    """
    Load a WebDriver session payload ({"capabilities": {...}}) from disk.
    """
    payload = load_json_file(path)
    capabilities = require_key(payload, "capabilities", context=str(path))
    if not isinstance(capabilities, dict):
        raise ValueError(f"'capabilities' must be an object in {path}")
    return payload


def capability(payload: dict[str, Any], name: str) -> Optional[Any]:
    """
    Look up a capability by name, accepting both the vendor-prefixed
    (`appium:deviceName`) and bare (`deviceName`) spellings.
    """
    capabilities = payload.get("capabilities") or {}
    sources: list[dict[str, Any]] = []
    always_match = capabilities.get("alwaysMatch")
    if isinstance(always_match, dict):
        sources.append(always_match)
    first_match = capabilities.get("firstMatch")
    if isinstance(first_match, list):
        sources.extend(item for item in first_match if isinstance(item, dict))
    sources.append(capabilities)

    bare = name.split(":", 1)[-1]
    for source in sources:
        for key in (f"appium:{bare}", bare):
            value = source.get(key)
            if value not in (None, ""):
                return value
    return None
