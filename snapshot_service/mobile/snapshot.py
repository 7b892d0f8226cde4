from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .app_handle import ApplicationHandle
from .env import DEFAULT_LOCALE


@dataclass(frozen=True)
class SnapshotArtifact:
    label: str
    path: Path
    index: int


def _ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def _safe_stem(raw: str) -> str:
    # Spaces are kept ("View A") since fastlane's own file names contain them.
    safe = "".join(c if c.isalnum() or c in ("-", "_", " ", ".") else "_" for c in raw.strip())
    return safe.strip(". ") or "snapshot"


class SnapshotCapturer:
    """
    Writes labeled screenshots of the running app for store-listing tooling.

    Files follow the fastlane snapshot layout:
      <output_dir>/<locale>/<device_name>-<label>.png
    or <label>.png when no device name is known.
    """

    def __init__(
        self,
        app: ApplicationHandle,
        *,
        output_dir: str | Path,
        device_name: Optional[str] = None,
        locale: str = DEFAULT_LOCALE,
    ) -> None:
        if not locale or not locale.strip():
            raise ValueError("locale must be a non-empty string")
        self.app = app
        self.output_dir = Path(output_dir).resolve()
        self.device_name = device_name.strip() if device_name and device_name.strip() else None
        self.locale = locale.strip()
        self._artifacts: list[SnapshotArtifact] = []

    @property
    def locale_dir(self) -> Path:
        return self.output_dir / _safe_stem(self.locale)

    @property
    def artifacts(self) -> list[SnapshotArtifact]:
        return list(self._artifacts)

    @property
    def labels(self) -> list[str]:
        return [a.label for a in self._artifacts]

    def path_for(self, label: str) -> Path:
        stem = _safe_stem(label)
        if self.device_name:
            stem = f"{_safe_stem(self.device_name)}-{stem}"
        return self.locale_dir / f"{stem}.png"

    def capture(self, label: str) -> SnapshotArtifact:
        if not isinstance(label, str) or not label.strip():
            raise ValueError("snapshot label must be a non-empty string")
        if not self.app.is_running:
            raise RuntimeError(f"Cannot capture snapshot {label!r}: application is not running")

        path = self.path_for(label)
        earlier = [a.label for a in self._artifacts if a.path == path]
        if earlier:
            print(
                f"  WARNING: snapshot {label!r} writes to the same file as {earlier[-1]!r} "
                f"captured earlier in this run; overwriting {path.name}"
            )

        png = self.app.screenshot_png()
        _ensure_dir(path.parent)
        path.write_bytes(png)

        artifact = SnapshotArtifact(label=label, path=path, index=len(self._artifacts))
        self._artifacts.append(artifact)
        print(f"  snapshot: {label!r} -> {path}")
        return artifact

    def clear_previous(self) -> list[Path]:
        """
        Delete screenshots left in the locale directory by earlier runs for
        this device. Returns the removed paths.
        """
        if not self.locale_dir.is_dir():
            return []
        pattern = f"{_safe_stem(self.device_name)}-*.png" if self.device_name else "*.png"
        removed: list[Path] = []
        for path in sorted(self.locale_dir.glob(pattern)):
            if path.is_file():
                path.unlink()
                removed.append(path)
        return removed
