"""Load scenario definitions from YAML files."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from ..errors import ScenarioDefinitionError
from ..models import Scenario
from .catalog import sweetshop_scenarios


def parse_scenarios(text: str, source: str = "<string>") -> list[Scenario]:
    """Parse a YAML document whose ``scenarios`` key lists scenario mappings.

    Locators may be written as plain strings, which are read as XPath::

        scenarios:
          - name: home_page_title
            steps:
              - {action: navigate, value: /}
              - {action: assert_title, value: Sweet Shop}
    """

    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        raise ScenarioDefinitionError(f"{source}: invalid YAML: {exc}") from exc
    if not isinstance(data, dict) or not isinstance(data.get("scenarios", []), list):
        raise ScenarioDefinitionError(f"{source}: expected a mapping with a 'scenarios' list")
    scenarios: list[Scenario] = []
    for index, item in enumerate(data.get("scenarios", [])):
        if isinstance(item, dict):
            item = {**item, "steps": [_expand_locator(step) for step in item.get("steps", [])]}
        try:
            scenarios.append(Scenario.model_validate(item))
        except ValidationError as exc:
            raise ScenarioDefinitionError(f"{source}: scenario #{index}: {exc}") from exc
    return scenarios


def load_scenarios(path: Optional[Path] = None) -> list[Scenario]:
    """Load scenarios from ``path`` or fall back to the built-in catalog."""

    if path is None:
        return sweetshop_scenarios()
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ScenarioDefinitionError(f"Cannot read scenarios from {path}: {exc}") from exc
    return parse_scenarios(text, source=str(path))


def _expand_locator(step: object) -> object:
    if isinstance(step, dict) and isinstance(step.get("locator"), str):
        return {**step, "locator": {"strategy": "xpath", "value": step["locator"]}}
    return step
