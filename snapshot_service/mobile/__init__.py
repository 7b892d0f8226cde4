"""
Store-listing snapshot automation for native mobile apps, driven through Appium.

The walkthrough is fixed: capture the main screen, tap through to screen A,
capture it, tap through to screen B, capture it. Failures are fail-fast;
there are no retries.
"""

from .app_handle import AppiumApplication, ApplicationHandle, ElementNotFoundError, launched
from .appium_http_client import AppiumHTTPClient, AppiumHTTPError, WebDriverElementRef
from .flows import run_snapshot_walkthrough
from .snapshot import SnapshotArtifact, SnapshotCapturer
from .walkthrough import WALKTHROUGH_STEPS, WalkthroughResult, run_walkthrough

__all__ = [
    "AppiumApplication",
    "ApplicationHandle",
    "AppiumHTTPClient",
    "AppiumHTTPError",
    "ElementNotFoundError",
    "SnapshotArtifact",
    "SnapshotCapturer",
    "WALKTHROUGH_STEPS",
    "WalkthroughResult",
    "WebDriverElementRef",
    "launched",
    "run_snapshot_walkthrough",
    "run_walkthrough",
]
