from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

import numpy as np

from .events import EventEmitter
from .feedback import FeedbackTracker
from .fretboard import Fretboard
from .generator import IntervalQuestionGenerator
from .models import (
	AnswerResult,
	FeedbackConfig,
	FlowEvent,
	FlowEventType,
	GeneratorConfig,
	IntervalQuizQuestion,
	ProgressData,
	QuizConfig,
	QuizResult,
	ScoreData,
)
from .session import QuizSession, round_half_up
from .theory import Note
from .timers import Scheduler, ThreadingScheduler, TimerHandle
from .zones import HighlightZone

logger = logging.getLogger(__name__)


class IntervalQuizFlow:
	"""Runs an interval quiz end to end.

	Pulls questions from the generator into the session, marks answers on
	the feedback tracker, shows the target as a hint once attempts run out
	and moves on by itself after a correct answer when auto-advance is on.
	Auto-advance may fire on a timer thread, so every state change happens
	under one lock.
	"""

	def __init__(
		self,
		fretboard: Optional[Fretboard] = None,
		generator_config: Optional[GeneratorConfig] = None,
		quiz_config: Optional[QuizConfig] = None,
		feedback_config: Optional[FeedbackConfig] = None,
		scheduler: Optional[Scheduler] = None,
		rng: Optional[np.random.Generator] = None,
	) -> None:
		self.fretboard = fretboard or Fretboard()
		self.scheduler = scheduler or ThreadingScheduler()
		self.generator = IntervalQuestionGenerator(self.fretboard, generator_config, rng=rng)
		self.session = QuizSession(quiz_config)
		self.feedback = FeedbackTracker(feedback_config, scheduler=self.scheduler)
		self._events: EventEmitter[FlowEvent] = EventEmitter("flow")
		self._lock = threading.RLock()
		self._zone: Optional[HighlightZone] = None
		self._advance_timer: Optional[TimerHandle] = None
		self._advance_started: Optional[float] = None
		self._advance_remaining: Optional[float] = None

	@property
	def current_question(self) -> Optional[IntervalQuizQuestion]:
		return self.session.current_question

	@property
	def is_paused(self) -> bool:
		return self.session.is_paused

	@property
	def auto_advance_pending(self) -> bool:
		return self._advance_timer is not None

	def score(self) -> ScoreData:
		s = self.session
		accuracy = int(round_half_up(100 * s.correct_answers / s.questions_answered)) if s.questions_answered else 0
		return ScoreData(
			correct=s.correct_answers,
			total=s.questions_answered,
			hints_used=s.hints_used,
			total_attempts=s.total_attempts,
			display=s.score_display,
			accuracy=accuracy,
		)

	def progress(self) -> ProgressData:
		total = self.session.config.total_questions
		current = min(self.session.questions_answered + 1, total)
		return ProgressData(
			current_question=current,
			total_questions=total,
			display=f"Question {current} of {total}",
			percentage=int(round_half_up(100 * self.session.questions_answered / total)),
		)

	def start(self, zone: HighlightZone) -> bool:
		if zone.is_empty():
			return False
		with self._lock:
			self._cancel_timer()
			self.feedback.clear_all_feedback()
			self.generator.reset()
			if self.session.state != "idle":
				self.session.reset()
			if not self.session.start(zone):
				return False
			self._zone = zone
			self._emit("quiz_started")
			return self._next_question()

	def submit_answer(self, note: Note) -> AnswerResult:
		with self._lock:
			if self.session.is_paused:
				return "invalid"
			question = self.session.current_question
			outcome = self.session.submit_answer(note)
			if outcome == "invalid" or question is None:
				return outcome
			self._cancel_timer()
			if outcome == "correct":
				self.feedback.show_correct_feedback(note)
			else:
				self.feedback.show_incorrect_feedback(note)
			self._emit("answer_processed", question=question)

			if self.session.state == "complete":
				self._finish()
			elif self.session.state == "hint":
				targets = question.target_notes_in_zone or question.all_target_notes
				if targets:
					self.feedback.show_hint_feedback(targets[0])
			elif outcome == "correct" and self.session.config.auto_advance:
				self._schedule_advance(self.session.config.auto_advance_delay)
			return outcome

	def acknowledge_hint(self) -> bool:
		with self._lock:
			if not self.session.acknowledge_hint():
				return False
			self.feedback.clear_all_feedback()
			if self.session.state == "complete":
				self._finish()
				return True
			self._next_question()
			return True

	def advance(self) -> bool:
		"""Skip the auto-advance wait and move to the next question now."""
		with self._lock:
			if self.session.state != "active" or self.session.current_question is not None:
				return False
			self._cancel_timer()
			self.feedback.clear_all_feedback()
			return self._next_question()

	def cancel_auto_advance(self) -> bool:
		with self._lock:
			if self._advance_timer is None:
				return False
			self._cancel_timer()
			self._emit("auto_advance_cancelled")
			return True

	def pause(self) -> bool:
		with self._lock:
			if self.session.is_paused or not self.session.pause():
				return False
			remaining: Optional[float] = None
			if self._advance_timer is not None and self._advance_started is not None:
				elapsed = self.scheduler.now() - self._advance_started
				remaining = max(0.0, (self._advance_remaining or 0.0) - elapsed)
				self._cancel_timer()
				self._advance_remaining = remaining
			self._emit("paused", auto_advance_remaining=remaining)
			return True

	def resume(self) -> bool:
		with self._lock:
			if not self.session.is_paused or not self.session.resume():
				return False
			remaining = self._advance_remaining
			self._advance_remaining = None
			if remaining is not None:
				self._schedule_advance(remaining, announce=False)
			self._emit("resumed", auto_advance_remaining=remaining)
			return True

	def reset(self) -> None:
		with self._lock:
			self._cancel_timer()
			self.feedback.clear_all_feedback()
			self.session.reset()
			self.generator.reset()
			self._zone = None
			self._emit("quiz_reset")

	def dispose(self) -> None:
		with self._lock:
			self._cancel_timer()
			self.feedback.dispose()
			self.session.remove_all_listeners()
			self._events.remove_all_listeners()

	def result(self) -> Optional[QuizResult]:
		return self.session.result()

	def on(self, kind: FlowEventType, listener: Callable[[FlowEvent], None]) -> Callable[[], None]:
		return self._events.on(kind, listener)

	def off(self, kind: FlowEventType, listener: Callable[[FlowEvent], None]) -> None:
		self._events.off(kind, listener)

	def _next_question(self) -> bool:
		if self._zone is None:
			return False
		generated = self.generator.generate_question(self._zone)
		if not generated.success or generated.question is None:
			logger.info("Question generation failed: %s", generated.error)
			self._emit("generation_failed", error=generated.error)
			return False
		if not self.session.set_question(generated.question):
			return False
		self._emit("question_ready", question=generated.question)
		return True

	def _schedule_advance(self, delay: float, announce: bool = True) -> None:
		self._cancel_timer()
		self._advance_started = self.scheduler.now()
		self._advance_remaining = delay
		handle: Optional[TimerHandle] = None

		def fire() -> None:
			self._auto_advance(handle)

		handle = self.scheduler.schedule(delay, fire)
		self._advance_timer = handle
		if announce:
			self._emit("auto_advance_scheduled", auto_advance_remaining=delay)

	def _auto_advance(self, handle: Optional[TimerHandle]) -> None:
		with self._lock:
			# cancelled after the timer thread had already started firing
			if handle is None or handle is not self._advance_timer:
				return
			self._advance_timer = None
			self._advance_started = None
			self._advance_remaining = None
			self.feedback.clear_all_feedback()
			if self.session.state == "active" and self.session.current_question is None and not self.session.is_paused:
				self._next_question()

	def _cancel_timer(self) -> None:
		if self._advance_timer is not None:
			self.scheduler.cancel(self._advance_timer)
		self._advance_timer = None
		self._advance_started = None
		self._advance_remaining = None

	def _finish(self) -> None:
		self._cancel_timer()
		self._emit("quiz_completed", result=self.session.result())

	def _emit(self, kind: FlowEventType, **fields) -> None:
		event = FlowEvent(
			type=kind,
			timestamp=self.scheduler.now(),
			quiz_state=self.session.state,
			paused=self.session.is_paused,
			score=self.score(),
			progress=self.progress(),
			**fields,
		)
		self._events.emit(kind, event)
