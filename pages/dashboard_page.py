from __future__ import annotations

from playwright.sync_api import Locator, Page

from config import Settings
from pages.base_page import BasePage
from ui_comparison import UIComparison


class DashboardPage(BasePage):
    """Landing page after sign-in; banner and clock change on every load."""

    url = "dashboard.html"

    GREETING = "h1.greeting"
    WIDGETS = ".widget"
    BANNER = "#promo-banner"
    CLOCK = ".clock"

    greeting: Locator
    widgets: Locator

    def __init__(
        self,
        page: Page,
        settings: Settings,
        ui_comparison: UIComparison | None = None,
    ) -> None:
        super().__init__(page=page, settings=settings, ui_comparison=ui_comparison)
        self.add_static_element("greeting", page.locator(self.GREETING))
        self.add_static_collection("widgets", page.locator(self.WIDGETS))
        self.banner = page.locator(self.BANNER)
        self.clocks = page.locator(self.CLOCK)

    def greeting_text(self) -> str:
        return self.greeting.inner_text()

    def widget_count(self) -> int:
        return self.widgets.count()
