"""Latest-call-wins debouncing on the running event loop"""

import asyncio
from typing import Any, Callable, Optional, Tuple


class Debouncer:
    """
    Delay a callback until calls stop arriving for `delay` seconds.

    Each call supersedes the pending one, so the callback only ever sees the
    most recent arguments.
    """

    def __init__(self, delay: float, callback: Callable[..., Any]):
        self.delay = delay
        self.callback = callback
        self._handle: Optional[asyncio.TimerHandle] = None
        self._args: Tuple[Any, ...] = ()

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def __call__(self, *args: Any) -> None:
        self.cancel()
        self._args = args
        self._handle = asyncio.get_running_loop().call_later(self.delay, self._run)

    def _run(self) -> None:
        self._handle = None
        self.callback(*self._args)

    def flush(self) -> None:
        """Run the pending call now, if there is one"""
        if self._handle is not None:
            self._handle.cancel()
            self._run()

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
