"""
Live quote preview while the user types.

For front-ends that embed goldapp in-process. HTTP clients debounce on their
side and call POST /v1/orders/quote, which stays stateless.
"""

from typing import Optional

from goldapp.config import settings
from goldapp.domain.calculator import quote
from goldapp.domain.models import InputMode, OrderSide, Quote, Rate
from goldapp.utils.debounce import Debouncer


class QuotePreview:
    """Recalculates the order preview from the latest keystroke only"""

    def __init__(self, side: OrderSide, rate: Rate, mode: InputMode = InputMode.AMOUNT, delay: Optional[float] = None):
        self.side = side
        self.rate = rate
        self.mode = mode
        self.raw_value = ""
        self.latest: Quote = quote(side, mode, "", rate)
        self._debouncer = Debouncer(
            settings.recalculation_debounce_seconds if delay is None else delay,
            self._recalculate,
        )

    @property
    def calculating(self) -> bool:
        return self._debouncer.pending

    def _recalculate(self, raw_value: str) -> None:
        self.latest = quote(self.side, self.mode, raw_value, self.rate)

    def update(self, raw_value: str) -> None:
        self.raw_value = raw_value
        self._debouncer(raw_value)

    def set_mode(self, mode: InputMode) -> None:
        self.mode = mode
        self._debouncer.cancel()
        self._recalculate(self.raw_value)

    def set_rate(self, rate: Rate) -> None:
        self.rate = rate
        self._debouncer.cancel()
        self._recalculate(self.raw_value)

    def current(self) -> Quote:
        """Settle any pending recalculation and return the up-to-date quote"""
        self._debouncer.flush()
        return self.latest
