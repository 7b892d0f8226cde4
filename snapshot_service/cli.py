#!/usr/bin/env python3
"""
CLI entry point for the store-listing snapshot walkthrough.
"""

from __future__ import annotations

import argparse
import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from snapshot_service.mobile.app_handle import ElementNotFoundError
from snapshot_service.mobile.appium_http_client import AppiumHTTPError
from snapshot_service.mobile.env import SnapshotSettings
from snapshot_service.mobile.flows import run_snapshot_walkthrough


def _build_parser(settings: SnapshotSettings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=(
            "Launch the app through Appium, walk Mainscreen -> View A -> View B "
            "and save a store-listing screenshot at each screen."
        )
    )
    parser.add_argument(
        "--appium-server-url",
        default=settings.appium_server_url,
        help=f"Appium server URL (default: {settings.appium_server_url}).",
    )
    parser.add_argument(
        "--capabilities",
        default=settings.capabilities_json_path,
        help="Path to a WebDriver capabilities JSON file ({\"capabilities\": {...}}).",
    )
    parser.add_argument(
        "--output-dir",
        default=settings.output_dir,
        help=f"Screenshot output directory (default: {settings.output_dir}).",
    )
    parser.add_argument(
        "--device-name",
        default=settings.device_name,
        help="Device name used as file name prefix (default: the deviceName capability).",
    )
    parser.add_argument(
        "--locale",
        default=settings.locale,
        help=f"Locale the app is launched in and screenshot sub-directory (default: {settings.locale}).",
    )
    parser.add_argument(
        "--clear-previous",
        action="store_true",
        help="Delete this device's screenshots from earlier runs before capturing.",
    )
    parser.add_argument(
        "--report-path",
        default="",
        help="Optional path for a JSON report of the run.",
    )
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    try:
        settings = SnapshotSettings.from_env()
    except (ValueError, OSError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    args = _build_parser(settings).parse_args(argv)

    capabilities_path = Path(args.capabilities).resolve()
    if not capabilities_path.is_file():
        print(f"ERROR: capabilities file does not exist or is not a file: {capabilities_path}", file=sys.stderr)
        return 1

    print("\n=== Snapshot Walkthrough ===")
    print(f"Capabilities: {capabilities_path}")
    started_at = datetime.now()
    try:
        result = run_snapshot_walkthrough(
            capabilities_json_path=str(capabilities_path),
            appium_server_url=args.appium_server_url,
            output_dir=args.output_dir,
            device_name=args.device_name,
            locale=args.locale,
            clear_previous=args.clear_previous,
            timeout_s=settings.timeout_s,
        )
    except (ValueError, OSError) as e:
        print(f"ERROR: invalid configuration: {e}", file=sys.stderr)
        return 1
    except ElementNotFoundError as e:
        print(f"ERROR: walkthrough failed: {e}", file=sys.stderr)
        return 2
    except AppiumHTTPError as e:
        print(f"ERROR: Appium request failed: {e}", file=sys.stderr)
        return 2

    print(f"\n✓ Captured {len(result.artifacts)} snapshot(s), final screen: {result.final_state.value}")
    for artifact in result.artifacts:
        print(f"  {artifact.label}: {artifact.path}")

    if args.report_path:
        report_path = Path(args.report_path).resolve()
        report_path.parent.mkdir(parents=True, exist_ok=True)
        report_payload = {
            "timestamp_start": started_at.isoformat(),
            "timestamp_end": datetime.now().isoformat(),
            "capabilities_path": str(capabilities_path),
            "executed_steps": result.executed_steps,
            "final_state": result.final_state.value,
            "snapshots": [{"label": a.label, "path": str(a.path)} for a in result.artifacts],
        }
        report_path.write_text(json.dumps(report_payload, indent=2), encoding="utf-8")
        print(f"report={report_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
