"""Error taxonomy for the scenario harness."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .models import Locator, Predicate


class HarnessError(RuntimeError):
    """Base class for every error raised by the harness."""


class FatalHarnessError(HarnessError):
    """Errors that abort the whole run before any scenario executes."""


class DriverUnavailableError(FatalHarnessError):
    """Raised when no compatible browser binary can be resolved."""


class SessionStartError(FatalHarnessError):
    """Raised when the browser could not be launched."""


class ScenarioDefinitionError(FatalHarnessError):
    """Raised when the registered scenarios cannot be ordered consistently."""


class ScenarioError(HarnessError):
    """Errors isolated to the scenario that raised them."""


class BrowserActionError(ScenarioError):
    """Raised when executing a browser interaction fails."""


class LocateTimeoutError(ScenarioError):
    """Raised when a locator did not satisfy its predicate in time."""

    def __init__(self, locator: "Locator", predicate: "Predicate", elapsed: float) -> None:
        self.locator = locator
        self.predicate = predicate
        self.elapsed = elapsed
        super().__init__(
            f"Timed out after {elapsed:.2f}s waiting for {locator} to be {predicate.value}"
        )


class NotFoundError(ScenarioError):
    """Raised when an immediate lookup finds no element."""

    def __init__(self, locator: "Locator") -> None:
        self.locator = locator
        super().__init__(f"No element matches {locator}")


class StaleElementError(ScenarioError):
    """Raised when an element handle no longer refers to a live node."""


class AssertionMismatchError(ScenarioError):
    """Raised when an observed value differs from the expected one."""

    def __init__(self, subject: str, expected: str, actual: Optional[str]) -> None:
        self.subject = subject
        self.expected = expected
        self.actual = actual
        super().__init__(f"{subject}: expected {expected!r}, got {actual!r}")
