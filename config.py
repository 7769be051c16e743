"""Runtime settings for pytest + Playwright page-object execution.

Values are resolved from CLI options and environment variables, then frozen
into one Settings object that fixtures hand to every page object explicitly.
"""

from __future__ import annotations

import os
import platform
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pytest import Config

DEFAULT_BASE_URL = "http://localhost:8000/"
DEFAULT_BROWSER = "chromium"
DEFAULT_VIEWPORT = "1280x720"
DEFAULT_ARTIFACTS_DIR = "artifacts"
DEFAULT_BASELINE_DIR = "baselines"
DEFAULT_HIDDEN_ELEMENTS_PATH = "data/hidden_elements.yml"
DEFAULT_PAGE_PACKAGE_PREFIX = "pages."
DEFAULT_TIMEOUT_MS = 10_000
DEFAULT_SCREENSHOT_MODE = "on-failure"
MODE_CHOICES = {"on", "off", "on-failure"}
BROWSER_CHOICES = {"chromium", "firefox", "webkit"}


@dataclass(frozen=True)
class Settings:
    """Resolved settings shared by fixtures, hooks and page objects."""

    base_url: str
    browser_name: str
    headless: bool
    slowmo_ms: int
    viewport_width: int
    viewport_height: int
    artifacts_dir: Path
    timeout_ms: int
    screenshot: str
    locale: str
    timezone_id: str
    os_name: str
    hidden_elements_path: Path
    page_package_prefix: str
    baseline_dir: Path

    @property
    def viewport(self) -> dict[str, int]:
        return {"width": self.viewport_width, "height": self.viewport_height}


def _get_env(name: str) -> str | None:
    value = os.getenv(name)
    if value is None:
        return None
    value = value.strip()
    return value if value else None


def _parse_bool(value: str, *, name: str) -> bool:
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    raise ValueError(f"Invalid boolean for {name}: {value!r}")


def _parse_int(value: str, *, name: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise ValueError(f"Invalid integer for {name}: {value!r}") from exc
    if parsed < 0:
        raise ValueError(f"{name} must be >= 0, got {parsed}")
    return parsed


def parse_viewport(value: str) -> tuple[int, int]:
    """Parse a WIDTHxHEIGHT viewport string into integer dimensions."""

    width_str, sep, height_str = value.lower().strip().partition("x")
    if not sep:
        raise ValueError(f"Viewport must be WIDTHxHEIGHT, got {value!r}")
    width = _parse_int(width_str, name="viewport width")
    height = _parse_int(height_str, name="viewport height")
    if width == 0 or height == 0:
        raise ValueError(f"Viewport dimensions must be > 0, got {value!r}")
    return width, height


def _pick(cli_value, env_value, default_value):
    if cli_value is not None:
        return cli_value
    if env_value is not None:
        return env_value
    return default_value


def _pick_int(cli_value, env_name: str, default_value: int) -> int:
    raw = _pick(cli_value, _get_env(env_name), default_value)
    return raw if isinstance(raw, int) else _parse_int(str(raw), name=env_name)


def _build_settings_from_sources(*, cli: dict[str, object] | None) -> Settings:
    """Merge CLI/env/defaults with precedence CLI > env > defaults."""

    cli = cli or {}

    base_url = str(_pick(cli.get("base_url"), _get_env("BASE_URL"), DEFAULT_BASE_URL))
    browser_name = (
        str(_pick(cli.get("browser"), _get_env("BROWSER"), DEFAULT_BROWSER)).strip().lower()
    )
    if browser_name not in BROWSER_CHOICES:
        raise ValueError(
            f"Unsupported browser {browser_name!r}; expected one of {sorted(BROWSER_CHOICES)}"
        )

    headless_cli = cli.get("headless")
    headless_env = _get_env("HEADLESS")
    if isinstance(headless_cli, bool):
        headless = headless_cli
    elif headless_env is not None:
        headless = _parse_bool(headless_env, name="HEADLESS")
    else:
        headless = True

    viewport_raw = str(_pick(cli.get("viewport"), _get_env("VIEWPORT"), DEFAULT_VIEWPORT))
    viewport_width, viewport_height = parse_viewport(viewport_raw)

    screenshot = str(
        _pick(cli.get("screenshot"), _get_env("SCREENSHOT"), DEFAULT_SCREENSHOT_MODE)
    ).lower()
    if screenshot not in MODE_CHOICES:
        raise ValueError(
            f"Invalid screenshot mode {screenshot!r}; expected one of {sorted(MODE_CHOICES)}"
        )

    hidden_elements_path = Path(
        str(
            _pick(
                cli.get("hidden_elements"),
                _get_env("HIDDEN_ELEMENTS"),
                DEFAULT_HIDDEN_ELEMENTS_PATH,
            )
        )
    )
    # Read with os.getenv, not _get_env: an empty prefix is a valid value (keys are then the
    # full dotted type names) and _get_env would turn it into "unset".
    prefix_env = os.getenv("PAGE_PACKAGE_PREFIX")
    page_package_prefix = str(
        _pick(
            cli.get("page_package_prefix"),
            prefix_env.strip() if prefix_env is not None else None,
            DEFAULT_PAGE_PACKAGE_PREFIX,
        )
    )

    return Settings(
        base_url=base_url,
        browser_name=browser_name,
        headless=headless,
        slowmo_ms=_pick_int(cli.get("slowmo_ms"), "SLOWMO_MS", 0),
        viewport_width=viewport_width,
        viewport_height=viewport_height,
        artifacts_dir=Path(
            str(_pick(cli.get("artifacts_dir"), _get_env("ARTIFACTS_DIR"), DEFAULT_ARTIFACTS_DIR))
        ),
        timeout_ms=_pick_int(cli.get("timeout_ms"), "TIMEOUT_MS", DEFAULT_TIMEOUT_MS),
        screenshot=screenshot,
        locale=str(_pick(cli.get("locale"), _get_env("LOCALE"), "en-US")),
        timezone_id=str(_pick(cli.get("timezone_id"), _get_env("TIMEZONE_ID"), "UTC")),
        os_name=str(_pick(None, _get_env("OS_NAME"), platform.system().lower())),
        hidden_elements_path=hidden_elements_path,
        page_package_prefix=page_package_prefix,
        baseline_dir=Path(
            str(_pick(cli.get("baseline_dir"), _get_env("BASELINE_DIR"), DEFAULT_BASELINE_DIR))
        ),
    )


def get_settings(pytest_config: Config | None = None) -> Settings:
    """Return the cached Settings for a pytest session, or an env/default-only copy."""

    if pytest_config is None:
        return _build_settings_from_sources(cli=None)

    cached = getattr(pytest_config, "_qa_settings_cache", None)
    if cached is not None:
        return cached

    cli_values: dict[str, object] = {
        "base_url": pytest_config.getoption("base_url"),
        "browser": pytest_config.getoption("browser"),
        "headless": pytest_config.getoption("headless"),
        "slowmo_ms": pytest_config.getoption("slowmo_ms"),
        "viewport": pytest_config.getoption("viewport"),
        "artifacts_dir": pytest_config.getoption("artifacts_dir"),
        "screenshot": pytest_config.getoption("screenshot"),
        "timeout_ms": pytest_config.getoption("timeout_ms"),
        "locale": pytest_config.getoption("locale"),
        "timezone_id": pytest_config.getoption("timezone_id"),
        "hidden_elements": pytest_config.getoption("hidden_elements"),
        "page_package_prefix": pytest_config.getoption("page_package_prefix"),
        "baseline_dir": pytest_config.getoption("baseline_dir"),
    }
    settings = _build_settings_from_sources(cli=cli_values)
    pytest_config._qa_settings_cache = settings  # type: ignore[attr-defined]
    return settings
