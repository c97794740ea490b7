"""
Hook dispatcher coordinating record lifecycle events.
"""

from __future__ import annotations

from collections import defaultdict
from threading import RLock
from typing import Any, Callable, Dict, List, Optional, Type

from ..core.model import Model


HookHandler = Callable[..., None]

EVENTS = frozenset({"before_save", "after_save", "after_find"})


class HookDispatcher:
    """
    Maintains global and per-model hook handlers.

    Per-model handlers fire for instances of exactly that class, after the
    global handlers for the same event.
    """

    def __init__(self) -> None:
        self._global_handlers: Dict[str, List[HookHandler]] = defaultdict(list)
        self._model_handlers: Dict[Type[Model], Dict[str, List[HookHandler]]] = defaultdict(
            lambda: defaultdict(list)
        )
        self._lock = RLock()

    def register(self, event: str, handler: HookHandler, *, model: Optional[Type[Model]] = None) -> None:
        if event not in EVENTS:
            raise ValueError(f"Unknown hook event '{event}'; expected one of {sorted(EVENTS)}")
        with self._lock:
            if model:
                self._model_handlers[model][event].append(handler)
            else:
                self._global_handlers[event].append(handler)

    def fire(self, event: str, instance: Optional[Model], **context: Any) -> None:
        with self._lock:
            handlers = list(self._global_handlers.get(event, []))
            if instance is not None:
                handlers.extend(self._model_handlers.get(type(instance), {}).get(event, []))
        for handler in handlers:
            handler(instance, **context)

    def clear(self) -> None:
        with self._lock:
            self._global_handlers.clear()
            self._model_handlers.clear()


hooks = HookDispatcher()
