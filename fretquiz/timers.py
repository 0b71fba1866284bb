from __future__ import annotations

import heapq
import itertools
import threading
import time
from abc import ABCMeta, abstractmethod
from typing import Callable, List, Optional, Tuple

Callback = Callable[[], None]


class TimerHandle:
	"""Token returned by Scheduler.schedule; pass it back to cancel."""

	__slots__ = ("due", "cancelled", "_timer")

	def __init__(self, due: float) -> None:
		self.due = due
		self.cancelled = False
		self._timer: Optional[threading.Timer] = None


class Scheduler(metaclass=ABCMeta):
	@abstractmethod
	def now(self) -> float:
		raise NotImplementedError()

	@abstractmethod
	def schedule(self, delay: float, callback: Callback) -> TimerHandle:
		raise NotImplementedError()

	@abstractmethod
	def cancel(self, handle: TimerHandle) -> None:
		raise NotImplementedError()


class ThreadingScheduler(Scheduler):
	"""Wall-clock timers; callbacks run on a daemon timer thread."""

	def now(self) -> float:
		return time.monotonic()

	def schedule(self, delay: float, callback: Callback) -> TimerHandle:
		handle = TimerHandle(self.now() + delay)

		def fire() -> None:
			if not handle.cancelled:
				callback()

		timer = threading.Timer(delay, fire)
		timer.daemon = True
		handle._timer = timer
		timer.start()
		return handle

	def cancel(self, handle: TimerHandle) -> None:
		handle.cancelled = True
		if handle._timer is not None:
			handle._timer.cancel()


class ManualScheduler(Scheduler):
	"""Virtual clock. Nothing fires until advance() moves time past a deadline."""

	def __init__(self, start: float = 0.0) -> None:
		self._now = start
		self._seq = itertools.count()
		self._queue: List[Tuple[float, int, TimerHandle, Callback]] = []

	def now(self) -> float:
		return self._now

	def schedule(self, delay: float, callback: Callback) -> TimerHandle:
		handle = TimerHandle(self._now + max(0.0, delay))
		heapq.heappush(self._queue, (handle.due, next(self._seq), handle, callback))
		return handle

	def cancel(self, handle: TimerHandle) -> None:
		handle.cancelled = True

	def pending(self) -> int:
		return sum(1 for _, _, h, _ in self._queue if not h.cancelled)

	def advance(self, seconds: float) -> int:
		"""Move the clock forward, firing due callbacks in deadline order. Returns how many fired."""
		target = self._now + seconds
		fired = 0
		while self._queue and self._queue[0][0] <= target:
			due, _, handle, callback = heapq.heappop(self._queue)
			if handle.cancelled:
				continue
			self._now = due
			callback()
			fired += 1
		self._now = target
		return fired
