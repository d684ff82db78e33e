"""Browser session abstractions."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Optional

from ..config import BrowserConfig
from ..models import Locator

LOGGER = logging.getLogger(__name__)


class ElementHandle(ABC):
    """Transient reference to a located DOM node.

    A handle is only valid until the next navigation or DOM mutation removes
    its node; afterwards every method raises
    :class:`~sweetshop_e2e.errors.StaleElementError`.
    """

    @abstractmethod
    def text(self) -> str:
        """Return the rendered text of the node."""

    @abstractmethod
    def click(self) -> None:
        """Click the node."""

    @abstractmethod
    def send_keys(self, text: str) -> None:
        """Type ``text`` into the node."""

    @abstractmethod
    def is_visible(self) -> bool:
        """Return whether the node is rendered and visible."""

    @abstractmethod
    def is_enabled(self) -> bool:
        """Return whether the node accepts interaction."""

    @abstractmethod
    def is_obscured(self) -> bool:
        """Return whether another node covers the centre of this one."""


class Session(ABC):
    """One live connection to a browser instance."""

    def __init__(self, config: BrowserConfig) -> None:
        self._config = config

    @property
    def viewport(self) -> tuple[int, int]:
        return self._config.viewport_width, self._config.viewport_height

    @property
    def default_timeout(self) -> float:
        return self._config.default_timeout

    @property
    def poll_interval(self) -> float:
        return self._config.poll_interval

    @property
    @abstractmethod
    def closed(self) -> bool:
        """Whether the session has been closed."""

    @property
    @abstractmethod
    def current_url(self) -> str:
        """URL of the current document."""

    @abstractmethod
    def goto(self, url: str) -> None:
        """Navigate to ``url`` and wait for the page to load."""

    @abstractmethod
    def title(self) -> str:
        """Return the title of the current document."""

    @abstractmethod
    def query(self, locator: Locator) -> Optional[ElementHandle]:
        """Return the first element matching ``locator`` or ``None``."""

    @abstractmethod
    def accept_next_dialog(self) -> None:
        """Accept the next JavaScript dialog the page opens."""

    @abstractmethod
    def screenshot(self) -> bytes:
        """Capture the current viewport as PNG bytes."""

    @abstractmethod
    def close(self) -> None:
        """Close the browser; calling it again has no effect."""


class SessionManager(ABC):
    """Owns the lifecycle of browser sessions."""

    @abstractmethod
    def acquire(self, config: BrowserConfig) -> Session:
        """Resolve a browser binary, launch it and return a configured session."""

    def release(self, session: Session) -> None:
        if session.closed:
            LOGGER.debug("Session already released")
            return
        LOGGER.debug("Releasing browser session")
        session.close()

    @contextmanager
    def session(self, config: BrowserConfig) -> Iterator[Session]:
        """Acquire a session that is released on every exit path."""

        session = self.acquire(config)
        try:
            yield session
        finally:
            self.release(session)
