# Shared page-object helpers: navigation, input clearing, hiding volatile regions, load checks.
from __future__ import annotations

import enum
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TypeVar

from playwright.sync_api import Locator, Page

from config import Settings
from data_loader import flatten, read_map_from_yaml
from metrics import record_page_event
from qa_logging import TRACE
from ui_comparison import UIComparison

LOGGER = logging.getLogger("qa.pages")

HIDE_SCRIPT = "element => { element.style.visibility = 'hidden'; }"

P = TypeVar("P", bound="BasePage")


class HiddenElementsConfigError(ValueError):
    """Raised when the hidden-elements table has no selectors for a page type."""


class StaticKind(enum.Enum):
    ELEMENT = "element"
    COLLECTION = "collection"


@dataclass(frozen=True)
class StaticElement:
    """A page attribute that must be present in the DOM before the page counts as loaded."""

    name: str
    kind: StaticKind


class BasePage:
    """Base class for page objects.

    Concrete pages set `url` and register their static elements in `__init__`
    with `add_static_element` / `add_static_collection`; the registry drives
    `wait_for_page_to_load_elements`.
    """

    url: str = ""

    def __init__(
        self,
        page: Page,
        settings: Settings,
        ui_comparison: UIComparison | None = None,
    ) -> None:
        self.page = page
        self.settings = settings
        self.os_name = settings.os_name
        self.browser_name = settings.browser_name
        self.static_elements: list[StaticElement] = []
        self.ui_comparison = ui_comparison or UIComparison.from_settings(page, settings)

    # Static element registry

    def add_static_element(self, name: str, locator: Locator) -> Locator:
        setattr(self, name, locator)
        self.static_elements.append(StaticElement(name, StaticKind.ELEMENT))
        return locator

    def add_static_collection(self, name: str, locator: Locator) -> Locator:
        setattr(self, name, locator)
        self.static_elements.append(StaticElement(name, StaticKind.COLLECTION))
        return locator

    # Navigation

    @property
    def full_url(self) -> str:
        if "://" in self.url:
            return self.url
        return f"{self.settings.base_url}{self.url}"

    def _require_url(self) -> None:
        if not self.url:
            raise ValueError(f"{type(self).__name__}.url must be set before opening the page")

    def open(self: P) -> P:
        """Navigate to the page and assert the browser landed on it."""
        self._require_url()
        self.page.goto(self.full_url, wait_until="domcontentloaded")
        record_page_event("page_opened")
        self.assert_url()
        return self

    def assert_url(self) -> None:
        """Assert the current URL contains `url`; redirects may append query or path segments."""
        self._require_url()
        current = self.page.url
        if self.url not in current:
            raise AssertionError(f"Given url is: [{self.url}], real url is: [{current}]")

    # Inputs

    def clear_text_input(self, element: Locator) -> None:
        """Clear an input with one Backspace per character; no select-all shortcut."""
        value = element.input_value()
        for _ in range(len(value or "")):
            element.press("Backspace")

    def clear_text_inputs(self, elements: Iterable[Locator]) -> None:
        for element in elements:
            self.clear_text_input(element)

    # Hiding volatile regions before screenshot comparison

    def hide_element(self: P, *elements: Locator) -> P:
        for element in elements:
            element.evaluate(HIDE_SCRIPT)
            record_page_event("element_hidden")
        return self

    def hide_elements(self: P, *collections: Locator | Iterable[Locator]) -> P:
        """Hide every element of each collection; a multi-match Locator counts as one collection."""
        for collection in collections:
            leaves = collection.all() if isinstance(collection, Locator) else collection
            for element in leaves:
                self.hide_element(element)
        return self

    def hide_elements_from_file(self: P, page_type: type[BasePage] | None = None) -> P:
        """Hide the selectors configured for `page_type` (defaults to this page's class)."""
        for selector in self.elements_to_hide(page_type or type(self)):
            located = self.page.locator(selector)
            # A listed selector must match; a stale entry fails with the page timeout.
            located.first.wait_for(state="attached")
            self.hide_elements(located)
        return self

    def page_type_key(self, page_type: type[BasePage]) -> str:
        name = f"{page_type.__module__}.{page_type.__qualname__}"
        prefix = self.settings.page_package_prefix
        if prefix and name.startswith(prefix):
            name = name[len(prefix) :]
        return name

    def elements_to_hide(self, page_type: type[BasePage]) -> list[str]:
        """Return the ordered CSS selectors listed for `page_type` in the hidden-elements file."""
        data = flatten(read_map_from_yaml(self.settings.hidden_elements_path))
        key = self.page_type_key(page_type)
        selectors = data.get(key)
        if not selectors:
            LOGGER.error(
                "hidden_elements_missing",
                extra={"page": key, "path": str(self.settings.hidden_elements_path)},
            )
            raise HiddenElementsConfigError(f"No elements to hide on [{key}].")
        if isinstance(selectors, str):
            return [selectors]
        return [str(selector) for selector in selectors]

    # Load checks

    def wait_for_page_to_load_elements(self: P) -> P:
        """Block until every registered static element is attached to the DOM.

        Single elements must exist (first match); collections must have at least one match.
        Waits use the page's default timeout.
        """
        for static in self.static_elements:
            try:
                element = getattr(self, static.name)
            except AttributeError as exc:
                LOGGER.error(
                    "static_element_unavailable",
                    extra={"page": type(self).__name__, "element": static.name},
                    exc_info=True,
                )
                raise AttributeError(f"Unable to get element: {static.name}") from exc

            if not isinstance(element, Locator):
                raise TypeError(
                    f"Static element {static.name} must be a Locator, got {type(element).__name__}"
                )

            LOGGER.log(
                TRACE,
                "static_element_check",
                extra={"page": type(self).__name__, "element": static.name, "kind": static.kind.value},
            )
            # Both kinds wait on the first match: existence for elements, size > 0 for collections.
            element.first.wait_for(state="attached")
            record_page_event("static_element_checked")

        LOGGER.info("page_loaded", extra={"event": "page_loaded", "page": type(self).__name__})
        return self

    # Visual comparison

    def screenshot_matches(self: P, name: str) -> P:
        self.ui_comparison.assert_matches_baseline(name)
        return self
