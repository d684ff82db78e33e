"""Shared models used across the scenario harness."""

from __future__ import annotations

import enum
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class LocatorStrategy(str, enum.Enum):
    """How a locator value is interpreted."""

    XPATH = "xpath"
    CSS = "css"


class Locator(BaseModel):
    """Immutable description of how to find an element in the current document."""

    model_config = ConfigDict(frozen=True)

    strategy: LocatorStrategy = LocatorStrategy.XPATH
    value: str

    @classmethod
    def xpath(cls, value: str) -> "Locator":
        return cls(strategy=LocatorStrategy.XPATH, value=value)

    @classmethod
    def css(cls, value: str) -> "Locator":
        return cls(strategy=LocatorStrategy.CSS, value=value)

    @property
    def selector(self) -> str:
        """Selector string understood by the browser driver."""

        return f"{self.strategy.value}={self.value}"

    def __str__(self) -> str:
        return self.selector


class Predicate(str, enum.Enum):
    """Readiness conditions an element must satisfy before interaction."""

    EXISTS = "exists"
    VISIBLE = "visible"
    CLICKABLE = "clickable"


class StepAction(str, enum.Enum):
    """Enumerated interactions a scenario step can perform."""

    NAVIGATE = "navigate"
    CLICK = "click"
    SEND_KEYS = "send_keys"
    READ_TEXT = "read_text"
    ACCEPT_DIALOG = "accept_dialog"
    ASSERT_TEXT = "assert_text"
    ASSERT_TITLE = "assert_title"
    ASSERT_URL_CONTAINS = "assert_url_contains"


_NEEDS_LOCATOR = {
    StepAction.CLICK,
    StepAction.SEND_KEYS,
    StepAction.READ_TEXT,
    StepAction.ASSERT_TEXT,
}
_NEEDS_VALUE = {
    StepAction.NAVIGATE,
    StepAction.SEND_KEYS,
    StepAction.ASSERT_TEXT,
    StepAction.ASSERT_TITLE,
    StepAction.ASSERT_URL_CONTAINS,
}


class Step(BaseModel):
    """A single interaction within a scenario."""

    action: StepAction
    locator: Optional[Locator] = None
    predicate: Optional[Predicate] = Field(
        default=None,
        description="Readiness gate to wait for; immediate lookup when omitted.",
    )
    value: Optional[str] = Field(
        default=None,
        description="URL to open, text to type or the expected value.",
    )
    timeout: Optional[float] = Field(default=None, description="Override for the wait timeout")
    description: Optional[str] = None

    @model_validator(mode="after")
    def _check_arguments(self) -> "Step":
        if self.action in _NEEDS_LOCATOR and self.locator is None:
            raise ValueError(f"{self.action.value} step requires a locator")
        if self.action in _NEEDS_VALUE and self.value is None:
            raise ValueError(f"{self.action.value} step requires a value")
        return self

    def label(self) -> str:
        if self.description:
            return self.description
        parts = [self.action.value]
        if self.locator is not None:
            parts.append(str(self.locator))
        if self.value is not None:
            parts.append(repr(self.value))
        return " ".join(parts)


class Scenario(BaseModel):
    """Named, ordered sequence of steps treated as one pass/fail unit."""

    name: str
    description: Optional[str] = None
    steps: list[Step] = Field(default_factory=list)
    order: Optional[int] = Field(
        default=None,
        description="Explicit ordering key; unkeyed scenarios run after keyed ones.",
    )
    depends_on: list[str] = Field(
        default_factory=list,
        description="Scenarios that must reach a terminal state before this one starts.",
    )
    shares: list[str] = Field(
        default_factory=list,
        description="Tags of site-side state this scenario reads or mutates.",
    )
    notes: Optional[str] = None


class ScenarioStatus(str, enum.Enum):
    """Lifecycle of a scenario within a run."""

    PENDING = "pending"
    RUNNING = "running"
    PASSED = "passed"
    FAILED = "failed"
    ERRORED = "errored"

    @property
    def is_terminal(self) -> bool:
        return self in {ScenarioStatus.PASSED, ScenarioStatus.FAILED, ScenarioStatus.ERRORED}


class StepResult(BaseModel):
    """Outcome of one executed step."""

    index: int
    action: StepAction
    description: str
    ok: bool
    detail: Optional[str] = None
    output: Optional[str] = None
    duration: float = 0.0


class ScenarioResult(BaseModel):
    """Outcome of one scenario."""

    name: str
    status: ScenarioStatus = ScenarioStatus.PENDING
    detail: Optional[str] = None
    error_type: Optional[str] = None
    steps: list[StepResult] = Field(default_factory=list)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    screenshot_path: Optional[Path] = None
    notes: Optional[str] = None

    @property
    def duration(self) -> Optional[float]:
        if self.started_at is None or self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()


class RunReport(BaseModel):
    """Aggregated outcome of a harness run."""

    results: list[ScenarioResult] = Field(default_factory=list)
    fatal_error: Optional[str] = None
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None

    def count(self, status: ScenarioStatus) -> int:
        return sum(1 for result in self.results if result.status == status)

    @property
    def passed(self) -> int:
        return self.count(ScenarioStatus.PASSED)

    @property
    def failed(self) -> int:
        return self.count(ScenarioStatus.FAILED)

    @property
    def errored(self) -> int:
        return self.count(ScenarioStatus.ERRORED)

    @property
    def success(self) -> bool:
        return self.fatal_error is None and all(
            result.status == ScenarioStatus.PASSED for result in self.results
        )


class NotificationLevel(str, enum.Enum):
    """Severity of notification events."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    SUCCESS = "success"


class NotificationEvent(BaseModel):
    """Event emitted while a run progresses."""

    type: str
    message: str
    level: NotificationLevel = NotificationLevel.INFO
    data: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
