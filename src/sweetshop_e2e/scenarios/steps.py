"""Execute scenario steps against a browser session."""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urljoin

from ..browser import wait
from ..browser.base import ElementHandle, Session
from ..errors import AssertionMismatchError, BrowserActionError
from ..models import Step, StepAction

LOGGER = logging.getLogger(__name__)


class StepExecutor:
    """Run steps for one scenario against a shared session."""

    def __init__(self, session: Session, base_url: str) -> None:
        self._session = session
        self._base_url = base_url

    def resolve_url(self, target: str) -> str:
        return urljoin(self._base_url, target)

    def execute(self, step: Step) -> Optional[str]:
        """Perform ``step`` and return any text it read."""

        LOGGER.debug("Executing step %s", step.label())
        if step.action == StepAction.NAVIGATE:
            self._session.goto(self.resolve_url(_value(step)))
            return None
        if step.action == StepAction.ACCEPT_DIALOG:
            self._session.accept_next_dialog()
            return None
        if step.action == StepAction.ASSERT_TITLE:
            return _expect("page title", _value(step), self._session.title())
        if step.action == StepAction.ASSERT_URL_CONTAINS:
            current = self._session.current_url
            fragment = _value(step)
            if fragment not in current:
                raise AssertionMismatchError("current URL", f"*{fragment}*", current)
            return current

        handle = self._locate(step)
        if step.action == StepAction.CLICK:
            wait.click(handle)
            return None
        if step.action == StepAction.SEND_KEYS:
            wait.send_keys(handle, _value(step))
            return None
        text = wait.read_text(handle)
        if step.action == StepAction.ASSERT_TEXT:
            return _expect(f"text of {step.locator}", _value(step), text)
        return text

    def _locate(self, step: Step) -> ElementHandle:
        if step.locator is None:
            raise BrowserActionError(f"{step.action.value} step requires a locator")
        if step.predicate is None:
            return wait.find_immediate(self._session, step.locator)
        return wait.wait_for(self._session, step.locator, step.predicate, step.timeout)


def _value(step: Step) -> str:
    if step.value is None:
        raise BrowserActionError(f"{step.action.value} step requires a value")
    return step.value


def _expect(subject: str, expected: str, actual: str) -> str:
    if actual != expected:
        raise AssertionMismatchError(subject, expected, actual)
    return actual
