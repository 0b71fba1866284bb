from __future__ import annotations

import logging
from typing import Callable, Dict, Generic, List, Optional, TypeVar

logger = logging.getLogger(__name__)

E = TypeVar("E")
Listener = Callable[[E], None]


class EventEmitter(Generic[E]):
	"""Synchronous publish/subscribe keyed by event kind.

	Listeners run in registration order. A listener that raises is logged
	and skipped; the remaining listeners still receive the event.
	"""

	def __init__(self, name: str = "events") -> None:
		self._name = name
		self._listeners: Dict[str, List[Listener[E]]] = {}

	def on(self, kind: str, listener: Listener[E]) -> Callable[[], None]:
		subs = self._listeners.setdefault(kind, [])
		if listener not in subs:
			subs.append(listener)
		return lambda: self.off(kind, listener)

	def off(self, kind: str, listener: Listener[E]) -> None:
		subs = self._listeners.get(kind)
		if subs and listener in subs:
			subs.remove(listener)

	def remove_all_listeners(self, kind: Optional[str] = None) -> None:
		if kind is None:
			self._listeners.clear()
		else:
			self._listeners.pop(kind, None)

	def listener_count(self, kind: str) -> int:
		return len(self._listeners.get(kind, []))

	def emit(self, kind: str, event: E) -> None:
		# snapshot so listeners may unsubscribe while being notified
		for listener in list(self._listeners.get(kind, [])):
			try:
				listener(event)
			except Exception:
				logger.exception("Error in %s listener for %s", self._name, kind)
