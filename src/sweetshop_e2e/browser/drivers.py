"""Resolve the browser binary Playwright will drive."""

from __future__ import annotations

import logging
import subprocess
import sys
from pathlib import Path
from typing import Any, Callable, Optional

from ..config import BrowserConfig
from ..errors import DriverUnavailableError

LOGGER = logging.getLogger(__name__)

ENGINES = ("chromium", "firefox", "webkit")


def install_browser(engine: str) -> None:
    """Download the Playwright-managed build of ``engine``."""

    command = [sys.executable, "-m", "playwright", "install", engine]
    LOGGER.info("Installing browser: %s", " ".join(command))
    try:
        subprocess.run(command, check=True, capture_output=True, text=True)
    except FileNotFoundError as exc:
        raise DriverUnavailableError(f"Cannot run browser installer: {exc}") from exc
    except subprocess.CalledProcessError as exc:
        output = (exc.stderr or exc.stdout or "").strip()
        raise DriverUnavailableError(
            f"Installing {engine} failed with exit code {exc.returncode}: {output}"
        ) from exc


def resolve_browser(
    playwright: Any,
    config: BrowserConfig,
    installer: Callable[[str], None] = install_browser,
) -> tuple[Any, Optional[Path]]:
    """Return the Playwright browser type for ``config`` and its executable.

    Branded channels (``chrome``, ``msedge``) are located by Playwright at
    launch time, so no executable path is returned for them.
    """

    engine = config.engine.lower()
    if engine not in ENGINES:
        raise DriverUnavailableError(f"Unsupported browser engine: {config.engine}")
    browser_type = getattr(playwright, engine)
    if config.channel:
        return browser_type, None

    executable = Path(browser_type.executable_path)
    if executable.exists():
        LOGGER.debug("Using %s at %s", engine, executable)
        return browser_type, executable
    if not config.install_missing:
        raise DriverUnavailableError(
            f"{engine} is not installed at {executable}; run 'playwright install {engine}'"
        )
    installer(engine)
    if not executable.exists():
        raise DriverUnavailableError(f"{engine} still missing at {executable} after install")
    return browser_type, executable
