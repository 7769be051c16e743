"""Screenshot baseline comparison composed into page objects.

Page objects hide volatile regions first, then ask this collaborator to check
the rendered page against a stored PNG baseline. Comparison is byte-exact.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from playwright.sync_api import Page

    from config import Settings

LOGGER = logging.getLogger("qa.ui")


def _sanitize_name(name: str) -> str:
    sanitized = re.sub(r"[^\w.-]+", "_", name)
    return sanitized.strip("._") or "screenshot"


class UIComparison:
    """Capture full-page screenshots and compare them with stored baselines."""

    def __init__(self, page: Page, baseline_dir: Path, artifacts_dir: Path) -> None:
        self.page = page
        self.baseline_dir = Path(baseline_dir)
        self.artifacts_dir = Path(artifacts_dir)

    @classmethod
    def from_settings(cls, page: Page, settings: Settings) -> UIComparison:
        return cls(page, settings.baseline_dir, settings.artifacts_dir)

    def baseline_path(self, name: str) -> Path:
        return self.baseline_dir / f"{_sanitize_name(name)}.png"

    def capture(self, name: str) -> bytes:
        """Take a deterministic full-page screenshot (no animations, no caret)."""
        LOGGER.debug("screenshot_capture", extra={"screenshot": name})
        return self.page.screenshot(full_page=True, animations="disabled", caret="hide")

    def assert_matches_baseline(self, name: str) -> None:
        """Compare the current page to the `name` baseline, creating it on first use."""

        actual = self.capture(name)
        baseline = self.baseline_path(name)
        if not baseline.exists():
            baseline.parent.mkdir(parents=True, exist_ok=True)
            baseline.write_bytes(actual)
            LOGGER.info("baseline_created", extra={"screenshot": name, "path": str(baseline)})
            return

        if baseline.read_bytes() == actual:
            return

        diff_dir = self.artifacts_dir / "ui-diff"
        diff_dir.mkdir(parents=True, exist_ok=True)
        actual_path = diff_dir / f"{_sanitize_name(name)}.actual.png"
        actual_path.write_bytes(actual)
        LOGGER.error(
            "screenshot_mismatch",
            extra={"screenshot": name, "baseline": str(baseline), "actual": str(actual_path)},
        )
        raise AssertionError(
            f"Screenshot [{name}] differs from baseline [{baseline}], actual saved to [{actual_path}]"
        )
