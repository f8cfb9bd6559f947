# Role: Minimal change notification for the overlay stores: a listener list plus a version counter.
# UI layers either poll `version` or subscribe a callback; there is no framework reactivity.

from __future__ import annotations

from typing import Callable, List

Listener = Callable[[], None]


class Observable:
    def __init__(self) -> None:
        self._listeners: List[Listener] = []
        self.version = 0

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _changed(self) -> None:
        self.version += 1
        for listener in list(self._listeners):
            listener()
