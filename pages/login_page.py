"""Login page object.

Locators are registered as static elements so tests can block on
`wait_for_page_to_load_elements()` before interacting with the form.
"""

from __future__ import annotations

from playwright.sync_api import Locator, Page

from config import Settings
from pages.base_page import BasePage
from ui_comparison import UIComparison


class LoginPage(BasePage):
    """Page object for the sign-in form."""

    url = "login.html"

    USERNAME = "#username"
    PASSWORD = "#password"
    SUBMIT = "button[type=submit]"
    NAV_LINKS = "nav a"
    ERROR = ".error"

    username_input: Locator
    password_input: Locator
    submit_button: Locator
    nav_links: Locator

    def __init__(
        self,
        page: Page,
        settings: Settings,
        ui_comparison: UIComparison | None = None,
    ) -> None:
        super().__init__(page=page, settings=settings, ui_comparison=ui_comparison)
        self.add_static_element("username_input", page.locator(self.USERNAME))
        self.add_static_element("password_input", page.locator(self.PASSWORD))
        self.add_static_element("submit_button", page.locator(self.SUBMIT))
        self.add_static_collection("nav_links", page.locator(self.NAV_LINKS))
        self.error_message = page.locator(self.ERROR)

    def fill_credentials(self, username: str, password: str) -> LoginPage:
        self.username_input.fill(username)
        self.password_input.fill(password)
        return self

    def login(self, username: str, password: str) -> None:
        """Submit the form; callers build the next page object themselves."""
        self.fill_credentials(username, password)
        self.submit_button.click()

    def clear_form(self) -> LoginPage:
        self.clear_text_inputs([self.username_input, self.password_input])
        return self
