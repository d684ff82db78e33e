"""Playwright-powered browser session implementation."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional, TypeVar

from playwright.sync_api import Error, sync_playwright

from ..config import BrowserConfig
from ..errors import (
    BrowserActionError,
    DriverUnavailableError,
    SessionStartError,
    StaleElementError,
)
from ..models import Locator
from .base import ElementHandle, Session, SessionManager
from .drivers import install_browser, resolve_browser

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

_STALE_MARKERS = (
    "not attached to the dom",
    "execution context was destroyed",
    "jshandle is disposed",
    "element is detached",
    "target closed",
    "target page, context or browser has been closed",
)
_MISSING_BINARY_MARKERS = (
    "executable doesn't exist",
    "is not found at",
    "chromium distribution",
)

_OBSCURED_SCRIPT = """
el => {
    const rect = el.getBoundingClientRect();
    const x = rect.left + rect.width / 2;
    const y = rect.top + rect.height / 2;
    if (x < 0 || y < 0 || x > window.innerWidth || y > window.innerHeight) {
        return false;
    }
    const hit = document.elementFromPoint(x, y);
    return !(hit && (hit === el || el.contains(hit)));
}
"""


def _is_stale(exc: Error) -> bool:
    message = str(exc).lower()
    return any(marker in message for marker in _STALE_MARKERS)


class PlaywrightElement(ElementHandle):
    """Element handle backed by a Playwright ``ElementHandle``."""

    def __init__(self, handle: Any, session: "PlaywrightSession") -> None:
        self._handle = handle
        self._session = session
        self._generation = session.generation

    def _call(self, operation: Callable[[], T]) -> T:
        if self._session.generation != self._generation:
            raise StaleElementError("Element belongs to a document that was navigated away")
        try:
            return operation()
        except Error as exc:
            if _is_stale(exc):
                raise StaleElementError(str(exc)) from exc
            raise BrowserActionError(str(exc)) from exc

    def text(self) -> str:
        return self._call(lambda: self._handle.inner_text()).strip()

    def click(self) -> None:
        self._call(lambda: self._handle.click(timeout=self._session.timeout_ms))

    def send_keys(self, text: str) -> None:
        self._call(lambda: self._handle.fill(text, timeout=self._session.timeout_ms))

    def is_visible(self) -> bool:
        return self._call(self._handle.is_visible)

    def is_enabled(self) -> bool:
        return self._call(self._handle.is_enabled)

    def is_obscured(self) -> bool:
        return bool(self._call(lambda: self._handle.evaluate(_OBSCURED_SCRIPT)))


class PlaywrightSession(Session):
    """Browser session backed by Playwright."""

    def __init__(
        self,
        config: BrowserConfig,
        *,
        playwright: Any,
        browser: Any,
        context: Any,
        page: Any,
    ) -> None:
        super().__init__(config)
        self._playwright = playwright
        self._browser = browser
        self._context = context
        self._page = page
        self.generation = 0

    @property
    def timeout_ms(self) -> int:
        return int(self.default_timeout * 1000)

    @property
    def closed(self) -> bool:
        return self._page is None

    @property
    def current_url(self) -> str:
        return self._require_page().url

    def _require_page(self) -> Any:
        if self._page is None:
            raise BrowserActionError("Browser session is closed")
        return self._page

    def goto(self, url: str) -> None:
        page = self._require_page()
        LOGGER.info("Navigating to %s", url)
        self.generation += 1
        try:
            page.goto(url, wait_until="load")
        except Error as exc:
            raise BrowserActionError(f"Navigation to {url} failed: {exc}") from exc

    def title(self) -> str:
        try:
            return self._require_page().title()
        except Error as exc:
            raise BrowserActionError(str(exc)) from exc

    def query(self, locator: Locator) -> Optional[ElementHandle]:
        page = self._require_page()
        try:
            handle = page.query_selector(locator.selector)
        except Error as exc:
            if _is_stale(exc):
                LOGGER.debug("Document changed while querying %s", locator)
                return None
            raise BrowserActionError(f"Query for {locator} failed: {exc}") from exc
        if handle is None:
            return None
        return PlaywrightElement(handle, self)

    def accept_next_dialog(self) -> None:
        self._require_page().once("dialog", lambda dialog: dialog.accept())

    def screenshot(self) -> bytes:
        try:
            return self._require_page().screenshot()
        except Error as exc:
            raise BrowserActionError(f"Screenshot failed: {exc}") from exc

    def close(self) -> None:
        if self._page is None:
            return
        LOGGER.debug("Stopping Playwright browser session")
        try:
            if self._context:
                self._context.close()
        finally:
            try:
                if self._browser:
                    self._browser.close()
            finally:
                if self._playwright:
                    self._playwright.stop()
                self._context = None
                self._browser = None
                self._playwright = None
                self._page = None


class PlaywrightSessionManager(SessionManager):
    """Launch Playwright browsers, installing the managed build when needed."""

    def __init__(
        self,
        installer: Callable[[str], None] = install_browser,
        playwright_factory: Callable[[], Any] = sync_playwright,
    ) -> None:
        self._installer = installer
        self._playwright_factory = playwright_factory

    def acquire(self, config: BrowserConfig) -> PlaywrightSession:
        LOGGER.debug("Starting Playwright browser session")
        try:
            playwright = self._playwright_factory().start()
        except Error as exc:
            raise SessionStartError(f"Playwright driver failed to start: {exc}") from exc
        browser = None
        try:
            browser_type, executable = resolve_browser(playwright, config, self._installer)
            launch_kwargs: dict[str, Any] = {"headless": config.headless}
            if config.channel:
                launch_kwargs["channel"] = config.channel
            if config.engine.lower() == "chromium":
                launch_kwargs["args"] = [
                    "--no-sandbox",
                    "--disable-dev-shm-usage",
                    "--disable-gpu",
                ]
            try:
                browser = browser_type.launch(**launch_kwargs)
                context = browser.new_context(
                    viewport={"width": config.viewport_width, "height": config.viewport_height}
                )
                context.set_default_timeout(config.default_timeout * 1000)
                page = context.new_page()
            except Error as exc:
                message = str(exc)
                if any(marker in message.lower() for marker in _MISSING_BINARY_MARKERS):
                    raise DriverUnavailableError(message) from exc
                raise SessionStartError(f"Browser launch failed: {message}") from exc
        except BaseException:
            LOGGER.debug("Cleaning up after failed session start")
            try:
                if browser is not None:
                    browser.close()
            finally:
                playwright.stop()
            raise
        LOGGER.info(
            "Browser session ready (%s, %sx%s)",
            executable or config.channel,
            config.viewport_width,
            config.viewport_height,
        )
        return PlaywrightSession(
            config,
            playwright=playwright,
            browser=browser,
            context=context,
            page=page,
        )
