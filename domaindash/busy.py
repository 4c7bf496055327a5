from __future__ import annotations

from collections.abc import Callable

from .sync.transport import InstrumentedTransport


class InFlightCounter:
    def __init__(self) -> None:
        self._count = 0

    @property
    def count(self) -> int:
        return self._count

    def increment(self) -> None:
        self._count += 1

    def decrement(self) -> None:
        if self._count > 0:
            self._count -= 1

    def is_busy(self) -> bool:
        return self._count > 0

    # Transport listener hooks.
    def on_start(self) -> None:
        self.increment()

    def on_end(self) -> None:
        self.decrement()

    def attach(self, transport: InstrumentedTransport) -> Callable[[], None]:
        return transport.subscribe(self)
