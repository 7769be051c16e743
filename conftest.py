"""Pytest entrypoint for framework fixtures, artifacts, structured logging and metrics.

Main flow: resolve settings once, create a session-scoped Playwright/browser,
create per-test contexts/pages, build page objects from those pages, then
publish artifacts/logs/metrics via hooks.
"""

from __future__ import annotations

import dataclasses
import logging
import os
import re
import shutil
import time
from pathlib import Path
from typing import Generator

import pytest
from playwright.sync_api import Browser, Page, Playwright, sync_playwright
from playwright.sync_api import Error as PlaywrightError

from config import BROWSER_CHOICES, MODE_CHOICES, Settings, get_settings
from metrics import PAGE_EVENTS, SessionMetrics, write_metrics
from pages.dashboard_page import DashboardPage
from pages.login_page import LoginPage
from qa_logging import setup_logging

LOGGER = logging.getLogger("qa")
SITE_DIR = Path(__file__).parent / "tests" / "site"
_session_start: float | None = None
_session_results = {"passed": 0, "failed": 0, "skipped": 0}
_counted_nodeids: set[str] = set()


def _sanitize_nodeid(nodeid: str) -> str:
    """Convert pytest nodeids into filesystem-safe artifact directory names."""
    sanitized = re.sub(r"[^\w.-]+", "__", nodeid)
    return sanitized.strip("._") or "test"


def _should_persist(mode: str, failed: bool) -> bool:
    if mode == "on":
        return True
    if mode == "off":
        return False
    return failed


def pytest_addoption(parser: pytest.Parser) -> None:
    """Register framework CLI options layered on top of env/default config."""
    group = parser.getgroup("qa-ui")
    group.addoption("--base-url", action="store", dest="base_url", default=None, help="Target base URL")
    group.addoption(
        "--browser",
        action="store",
        dest="browser",
        choices=sorted(BROWSER_CHOICES),
        default=None,
        help="Browser engine",
    )
    group.addoption(
        "--headed",
        action="store_const",
        const=False,
        dest="headless",
        default=None,
        help="Run headed (same as HEADLESS=false)",
    )
    group.addoption(
        "--headless", action="store_const", const=True, dest="headless", help="Force headless mode"
    )
    group.addoption(
        "--slowmo-ms",
        action="store",
        type=int,
        dest="slowmo_ms",
        default=None,
        help="Playwright launch slow motion delay in milliseconds",
    )
    group.addoption(
        "--viewport",
        action="store",
        dest="viewport",
        default=None,
        help="Viewport size as WIDTHxHEIGHT (e.g. 1280x720)",
    )
    group.addoption(
        "--artifacts-dir",
        action="store",
        dest="artifacts_dir",
        default=None,
        help="Directory for per-test artifacts and screenshot diffs",
    )
    group.addoption(
        "--screenshot",
        action="store",
        dest="screenshot",
        choices=sorted(MODE_CHOICES),
        default=None,
        help="Screenshot capture policy: on|off|on-failure",
    )
    group.addoption(
        "--timeout-ms",
        action="store",
        type=int,
        dest="timeout_ms",
        default=None,
        help="Default wait/navigation timeout in milliseconds",
    )
    group.addoption("--locale", action="store", dest="locale", default=None, help="Context locale")
    group.addoption(
        "--timezone-id", action="store", dest="timezone_id", default=None, help="Context timezone"
    )
    group.addoption(
        "--hidden-elements",
        action="store",
        dest="hidden_elements",
        default=None,
        help="YAML file listing CSS selectors to hide per page object",
    )
    group.addoption(
        "--page-package-prefix",
        action="store",
        dest="page_package_prefix",
        default=None,
        help="Module prefix stripped from page class names for hidden-elements lookup",
    )
    group.addoption(
        "--baseline-dir",
        action="store",
        dest="baseline_dir",
        default=None,
        help="Directory holding screenshot baselines",
    )


@pytest.fixture(scope="session", autouse=True)
def _init_logging() -> None:
    setup_logging()


@pytest.fixture(scope="session")
def settings(pytestconfig: pytest.Config) -> Settings:
    """Session-cached settings fixture used by all browser/page fixtures."""
    configured = get_settings(pytestconfig)
    configured.artifacts_dir.mkdir(parents=True, exist_ok=True)
    return configured


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "smoke: critical path UI tests")
    config.addinivalue_line("markers", "regression: broader functional UI coverage")
    config.addinivalue_line("markers", "e2e: tests that drive a real browser")


def pytest_sessionstart(session: pytest.Session) -> None:
    global _session_start
    _session_start = time.perf_counter()


def pytest_sessionfinish(session: pytest.Session, exitstatus: int) -> None:
    """Publish Prometheus textfile metrics if METRICS_PATH is configured."""
    if _session_start is None:
        return
    metrics_path = os.getenv("METRICS_PATH")
    if not metrics_path:
        return
    summary = SessionMetrics(
        total=session.testscollected or 0,
        passed=_session_results["passed"],
        failed=_session_results["failed"],
        skipped=_session_results["skipped"],
        duration_seconds=time.perf_counter() - _session_start,
        page_events=dict(PAGE_EVENTS),
    )
    write_metrics(metrics_path, summary)


@pytest.fixture(scope="session")
def playwright_instance() -> Generator[Playwright, None, None]:
    with sync_playwright() as playwright:
        yield playwright


@pytest.fixture(scope="session")
def browser(settings: Settings, playwright_instance: Playwright) -> Generator[Browser, None, None]:
    """Session-scoped browser reused across isolated per-test contexts."""
    browser_type = getattr(playwright_instance, settings.browser_name)
    try:
        browser = browser_type.launch(headless=settings.headless, slow_mo=settings.slowmo_ms)
    except PlaywrightError as exc:
        # Missing browser binaries (no `playwright install`) are an environment gap, not a failure.
        pytest.skip(f"{settings.browser_name} is not available: {exc.message}")
    yield browser
    browser.close()


@pytest.fixture
def page(
    request: pytest.FixtureRequest,
    browser: Browser,
    settings: Settings,
) -> Generator[Page, None, None]:
    """Create a per-test browser context/page and keep a screenshot per the capture policy."""
    test_dir = settings.artifacts_dir / _sanitize_nodeid(request.node.nodeid)
    request.node._qa_artifact_dir = test_dir  # type: ignore[attr-defined]

    context = browser.new_context(
        viewport=settings.viewport,
        locale=settings.locale,
        timezone_id=settings.timezone_id,
    )
    context.set_default_timeout(settings.timeout_ms)
    context.set_default_navigation_timeout(settings.timeout_ms)
    page = context.new_page()

    yield page

    rep_call = getattr(request.node, "rep_call", None)
    failed = bool(rep_call and rep_call.failed)
    if _should_persist(settings.screenshot, failed):
        test_dir.mkdir(parents=True, exist_ok=True)
        screenshot_path = test_dir / "screenshot.png"
        try:
            page.screenshot(path=str(screenshot_path), full_page=True)
        except PlaywrightError:
            LOGGER.exception("screenshot_capture_failed", extra={"test_nodeid": request.node.nodeid})
            shutil.rmtree(test_dir, ignore_errors=True)
    context.close()


@pytest.fixture
def site_settings(settings: Settings, tmp_path: Path) -> Settings:
    """Settings pointed at the bundled static site, with isolated baseline/artifact dirs."""
    return dataclasses.replace(
        settings,
        base_url=SITE_DIR.as_uri() + "/",
        baseline_dir=tmp_path / "baselines",
        artifacts_dir=tmp_path / "artifacts",
    )


@pytest.fixture
def login_page(page: Page, site_settings: Settings) -> LoginPage:
    """Convenience fixture returning an already-open, fully loaded login page."""
    return LoginPage(page=page, settings=site_settings).open().wait_for_page_to_load_elements()


@pytest.fixture
def dashboard_page(page: Page, site_settings: Settings) -> DashboardPage:
    return DashboardPage(page=page, settings=site_settings).open().wait_for_page_to_load_elements()


def pytest_runtest_setup(item: pytest.Item) -> None:
    """Emit a structured start event for each test before fixture-heavy setup runs."""
    item._qa_test_started_at = time.perf_counter()  # type: ignore[attr-defined]
    settings = get_settings(item.config)
    LOGGER.info(
        "test_start",
        extra={
            "event": "test_start",
            "test_nodeid": item.nodeid,
            "browser": settings.browser_name,
            "base_url": settings.base_url,
            "worker": os.getenv("PYTEST_XDIST_WORKER", "master"),
        },
    )


@pytest.hookimpl(hookwrapper=True, tryfirst=True)
def pytest_runtest_makereport(item: pytest.Item, call: pytest.CallInfo[None]):
    """Keep per-phase reports on the item and emit a structured end event."""
    outcome = yield
    report = outcome.get_result()
    setattr(item, f"rep_{report.when}", report)

    if report.when != "teardown":
        return

    started_at = getattr(item, "_qa_test_started_at", None)
    duration_ms = int((time.perf_counter() - started_at) * 1000) if started_at else None
    setup_report = getattr(item, "rep_setup", None)
    call_report = getattr(item, "rep_call", None)
    if setup_report is not None and setup_report.failed:
        outcome_name = "error"
    elif call_report is not None:
        outcome_name = call_report.outcome
    elif setup_report is not None and setup_report.skipped:
        outcome_name = "skipped"
    elif report.failed:
        outcome_name = "error"
    else:
        outcome_name = report.outcome
    LOGGER.info(
        "test_end",
        extra={
            "event": "test_end",
            "test_nodeid": item.nodeid,
            "outcome": outcome_name,
            "duration_ms": duration_ms,
            "artifact_dir": str(getattr(item, "_qa_artifact_dir", "")),
            "worker": os.getenv("PYTEST_XDIST_WORKER", "master"),
        },
    )


def pytest_runtest_logreport(report: pytest.TestReport) -> None:
    """Track one aggregate outcome per test for session metrics export."""
    should_count = report.when == "call" or (report.when == "setup" and report.skipped)
    if not should_count or report.nodeid in _counted_nodeids:
        return

    _counted_nodeids.add(report.nodeid)
    if report.passed:
        _session_results["passed"] += 1
    elif report.failed:
        _session_results["failed"] += 1
    elif report.skipped:
        _session_results["skipped"] += 1
