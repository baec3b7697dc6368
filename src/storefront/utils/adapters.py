from collections.abc import Callable
from typing import Any


class AdapterSlot:
    """Process-wide holder for one outbound adapter.

    The configured default is built lazily on first ``get``; ``override`` pins
    a specific instance until ``clear``.
    """

    def __init__(self, build_default: Callable[[], Any]) -> None:
        self._build_default = build_default
        self._instance = None

    def get(self):
        if self._instance is None:
            self._instance = self._build_default()
        return self._instance

    def override(self, instance) -> None:
        self._instance = instance

    def clear(self) -> None:
        self._instance = None
