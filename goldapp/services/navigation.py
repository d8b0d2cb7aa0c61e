"""Post-order navigation: a delayed redirect plus an immediate manual option"""

import asyncio
import logging
from typing import Optional, Protocol

logger = logging.getLogger(__name__)

TRANSACTION_HISTORY = "TransactionHistory"
DASHBOARD = "Dashboard"


class Navigator(Protocol):
    """Whatever renders screens; the workflow only tells it where to go"""

    def navigate(self, screen: str) -> None: ...


class ScheduledNavigation:
    """
    Navigate to a screen after a delay, or earlier on request.

    Navigation performs no mutation, so calling navigate_now() repeatedly or
    after the timer fired only re-navigates.
    """

    def __init__(self, navigator: Navigator, screen: str, delay: float):
        self.navigator = navigator
        self.screen = screen
        self.delay = delay
        self.fired = False
        self._handle: Optional[asyncio.TimerHandle] = None

    def start(self) -> "ScheduledNavigation":
        self._handle = asyncio.get_running_loop().call_later(self.delay, self._fire)
        return self

    def _fire(self) -> None:
        self._handle = None
        self.fired = True
        logger.info("Navigating", extra={"screen": self.screen})
        self.navigator.navigate(self.screen)

    def navigate_now(self, screen: Optional[str] = None) -> None:
        self.cancel()
        if screen is not None:
            self.screen = screen
        self._fire()

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


def schedule_navigation(navigator: Optional[Navigator], screen: str, delay: float) -> Optional[ScheduledNavigation]:
    if navigator is None:
        return None
    return ScheduledNavigation(navigator, screen, delay).start()
