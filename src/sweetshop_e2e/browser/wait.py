"""Timeout-bounded element lookup and handle interactions."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from ..errors import LocateTimeoutError, NotFoundError, StaleElementError
from ..models import Locator, Predicate
from .base import ElementHandle, Session

LOGGER = logging.getLogger(__name__)


def matches(handle: Optional[ElementHandle], predicate: Predicate) -> bool:
    """Return whether ``handle`` satisfies ``predicate`` right now."""

    if handle is None:
        return False
    if predicate == Predicate.EXISTS:
        return True
    if not handle.is_visible():
        return False
    if predicate == Predicate.VISIBLE:
        return True
    return handle.is_enabled() and not handle.is_obscured()


def wait_for(
    session: Session,
    locator: Locator,
    predicate: Predicate = Predicate.VISIBLE,
    timeout: Optional[float] = None,
    *,
    poll_interval: Optional[float] = None,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> ElementHandle:
    """Poll until an element matching ``locator`` satisfies ``predicate``.

    The last sleep is clipped to the time remaining, so the call returns or
    raises :class:`LocateTimeoutError` no earlier than ``timeout`` and never
    later than one poll interval past it.
    """

    timeout = session.default_timeout if timeout is None else timeout
    interval = session.poll_interval if poll_interval is None else poll_interval
    if interval <= 0:
        raise ValueError("poll_interval must be positive")
    start = clock()
    deadline = start + timeout
    attempts = 0
    while True:
        attempts += 1
        handle = session.query(locator)
        try:
            if handle is not None and matches(handle, predicate):
                LOGGER.debug(
                    "%s is %s after %d attempt(s)", locator, predicate.value, attempts
                )
                return handle
        except StaleElementError:
            LOGGER.debug("%s went stale while checking %s", locator, predicate.value)
        now = clock()
        remaining = deadline - now
        if remaining <= 0:
            raise LocateTimeoutError(locator, predicate, now - start)
        sleep(min(interval, remaining))


def find_immediate(session: Session, locator: Locator) -> ElementHandle:
    """Look ``locator`` up once without waiting."""

    handle = session.query(locator)
    if handle is None:
        raise NotFoundError(locator)
    return handle


def read_text(handle: ElementHandle) -> str:
    return handle.text()


def click(handle: ElementHandle) -> None:
    handle.click()


def send_keys(handle: ElementHandle, text: str) -> None:
    handle.send_keys(text)
