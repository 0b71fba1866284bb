from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, List, Optional

from .events import EventEmitter
from .models import FeedbackConfig, FeedbackEvent, FeedbackEventType, FeedbackState, FeedbackType
from .theory import Note
from .timers import Scheduler, ThreadingScheduler, TimerHandle

logger = logging.getLogger(__name__)


class FeedbackTracker:
	"""Transient correct/incorrect/hint markers on fretboard positions.

	Each marker expires on its own after its duration. A position holds at
	most one pending timer: showing new feedback there cancels the old one.
	Call dispose() when done so no timer outlives the tracker.
	"""

	def __init__(
		self,
		config: Optional[FeedbackConfig] = None,
		scheduler: Optional[Scheduler] = None,
		**overrides: Any,
	) -> None:
		self._config = config or FeedbackConfig()
		if overrides:
			self.update_config(**overrides)
		self._scheduler = scheduler or ThreadingScheduler()
		self._active: Dict[str, FeedbackState] = {}
		self._timers: Dict[str, TimerHandle] = {}
		self._events: EventEmitter[FeedbackEvent] = EventEmitter("feedback")
		# threading timers complete on their own thread
		self._lock = threading.RLock()

	@property
	def config(self) -> FeedbackConfig:
		return self._config.model_copy()

	def update_config(self, **changes: Any) -> None:
		callback = changes.pop("on_feedback_complete", self._config.on_feedback_complete)
		merged = FeedbackConfig.model_validate({**self._config.model_dump(), **changes})
		self._config = merged.model_copy(update={"on_feedback_complete": callback})

	@property
	def active_feedback_count(self) -> int:
		return len(self._active)

	@property
	def has_feedback(self) -> bool:
		return bool(self._active)

	def show_correct_feedback(self, note: Note) -> FeedbackState:
		return self._show(note, "correct", self._config.correct_duration)

	def show_incorrect_feedback(self, note: Note) -> FeedbackState:
		return self._show(note, "incorrect", self._config.incorrect_duration)

	def show_hint_feedback(self, note: Note) -> FeedbackState:
		count = self._config.hint_pulse_count
		return self._show(note, "hint", self._config.hint_pulse_duration * count, pulse_count=count)

	def show_feedback(self, note: Note, kind: FeedbackType) -> Optional[FeedbackState]:
		if kind == "correct":
			return self.show_correct_feedback(note)
		if kind == "incorrect":
			return self.show_incorrect_feedback(note)
		if kind == "hint":
			return self.show_hint_feedback(note)
		return None

	def feedback_state(self, position_id: str) -> Optional[FeedbackState]:
		return self._active.get(position_id)

	def feedback_for_note(self, note: Note) -> Optional[FeedbackState]:
		return self._active.get(note.position_id)

	def feedback_type(self, position_id: str) -> FeedbackType:
		state = self._active.get(position_id)
		return state.type if state else "none"

	def has_feedback_at(self, position_id: str) -> bool:
		return position_id in self._active

	def active_feedback(self) -> List[FeedbackState]:
		return list(self._active.values())

	def active_positions(self) -> List[str]:
		return list(self._active.keys())

	def remaining_duration(self, position_id: str) -> float:
		state = self._active.get(position_id)
		if state is None:
			return 0.0
		elapsed = self._scheduler.now() - state.start_time
		return max(0.0, state.duration - elapsed)

	def clear_feedback(self, position_id: str) -> bool:
		with self._lock:
			state = self._active.pop(position_id, None)
			if state is None:
				return False
			self._cancel_timer(position_id)
		self._emit("feedback_clear", state)
		return True

	def clear_feedback_for_note(self, note: Note) -> bool:
		return self.clear_feedback(note.position_id)

	def clear_all_feedback(self) -> None:
		with self._lock:
			for pid in list(self._timers):
				self._cancel_timer(pid)
			cleared = list(self._active.values())
			self._active.clear()
		for state in cleared:
			self._emit("feedback_clear", state)

	def on(self, kind: FeedbackEventType, listener: Callable[[FeedbackEvent], None]) -> Callable[[], None]:
		return self._events.on(kind, listener)

	def off(self, kind: FeedbackEventType, listener: Callable[[FeedbackEvent], None]) -> None:
		self._events.off(kind, listener)

	def remove_all_listeners(self, kind: Optional[FeedbackEventType] = None) -> None:
		self._events.remove_all_listeners(kind)

	def dispose(self) -> None:
		self.clear_all_feedback()
		self.remove_all_listeners()

	def _show(self, note: Note, kind: FeedbackType, duration: float, pulse_count: Optional[int] = None) -> FeedbackState:
		pid = note.position_id
		state = FeedbackState(
			position_id=pid,
			type=kind,
			start_time=self._scheduler.now(),
			duration=duration,
			pulse_count=pulse_count,
		)
		with self._lock:
			self._cancel_timer(pid)
			self._active[pid] = state
			handle: Optional[TimerHandle] = None

			def expire() -> None:
				self._expire(pid, handle)

			handle = self._scheduler.schedule(duration, expire)
			self._timers[pid] = handle
		self._emit("feedback_start", state, note)
		return state

	def _cancel_timer(self, position_id: str) -> None:
		handle = self._timers.pop(position_id, None)
		if handle is not None:
			self._scheduler.cancel(handle)

	def _expire(self, position_id: str, handle: Optional[TimerHandle]) -> None:
		with self._lock:
			# a newer timer owns this position now
			if handle is None or self._timers.get(position_id) is not handle:
				return
			del self._timers[position_id]
			state = self._active.pop(position_id, None)
		if state is None:
			return
		self._emit("feedback_complete", state)
		callback = self._config.on_feedback_complete
		if callback is not None:
			try:
				callback(state.type, position_id)
			except Exception:
				logger.exception("Error in on_feedback_complete callback for %s", position_id)

	def _emit(self, kind: FeedbackEventType, state: FeedbackState, note: Optional[Note] = None) -> None:
		self._events.emit(kind, FeedbackEvent(type=kind, feedback_type=state.type, position_id=state.position_id, note=note))
