# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Board: member class catalog - a cached reference list owned by whoever
creates it, with change listeners.
"""

from typing import Callable, Optional

from guild_parties.core.logging import get_logger

logger = get_logger(__name__)

Listener = Callable[[list[str]], None]


class ClassCatalog:
    def __init__(self, loader: Callable[[], list[str]]) -> None:
        self._loader = loader
        self._classes: Optional[list[str]] = None
        self._listeners: list[Listener] = []

    def get_classes(self) -> list[str]:
        """Cached classes; loads on first use."""
        if self._classes is None:
            self._classes = list(self._loader())
        return list(self._classes)

    def reload(self) -> list[str]:
        """Refetch and notify listeners when the list changed."""
        classes = list(self._loader())
        changed = classes != self._classes
        self._classes = classes
        if changed:
            self._notify(classes)
        return list(classes)

    def add_listener(self, listener: Listener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, classes: list[str]) -> None:
        for listener in list(self._listeners):
            try:
                listener(list(classes))
            except Exception:
                logger.exception("Class catalog listener failed")
