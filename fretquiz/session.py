from __future__ import annotations

import logging
import math
from typing import Any, Callable, Optional

from .events import EventEmitter
from .models import (
	AnswerResult,
	QuestionStats,
	QuizConfig,
	QuizEvent,
	QuizEventType,
	QuizQuestion,
	QuizResult,
	QuizState,
)
from .theory import Note
from .zones import HighlightZone

logger = logging.getLogger(__name__)


def round_half_up(value: float, digits: int = 0) -> float:
	scale = 10 ** digits
	return math.floor(value * scale + 0.5) / scale


class QuizSession:
	"""State machine for one run of a quiz.

	idle -> active <-> hint -> complete, with reset() returning to idle from
	anywhere. Pausing is a flag on the active state, not a state of its own.
	Interval and note questions are both answered by target pitch class.
	Illegal calls return False or "invalid" instead of raising.
	"""

	def __init__(self, config: Optional[QuizConfig] = None, **overrides: Any) -> None:
		self._config = config or QuizConfig()
		if overrides:
			self._config = QuizConfig.model_validate({**self._config.model_dump(), **overrides})
		self._events: EventEmitter[QuizEvent] = EventEmitter("quiz")
		self._state: QuizState = "idle"
		self._paused = False
		self._question: Optional[QuizQuestion] = None
		self._question_stats = QuestionStats()
		self._zone: Optional[HighlightZone] = None
		self._zero_counters()

	def _zero_counters(self) -> None:
		self.questions_answered = 0
		self.correct_answers = 0
		self.hints_used = 0
		self.total_attempts = 0

	# queries

	@property
	def state(self) -> QuizState:
		return self._state

	@property
	def config(self) -> QuizConfig:
		return self._config.model_copy()

	@property
	def current_question(self) -> Optional[QuizQuestion]:
		return self._question

	@property
	def question_stats(self) -> QuestionStats:
		return self._question_stats.model_copy()

	@property
	def active_zone(self) -> Optional[HighlightZone]:
		return self._zone

	@property
	def is_paused(self) -> bool:
		return self._paused

	@property
	def can_answer(self) -> bool:
		return self._state == "active" and self._question is not None

	@property
	def can_start(self) -> bool:
		return self._state == "idle"

	@property
	def is_active(self) -> bool:
		return self._state in ("active", "hint")

	@property
	def score_display(self) -> str:
		return f"{self.correct_answers}/{self.questions_answered}"

	@property
	def progress_display(self) -> str:
		current = min(self.questions_answered + 1, self._config.total_questions)
		return f"Question {current} of {self._config.total_questions}"

	# transitions

	def start(self, zone: HighlightZone) -> bool:
		if self._state != "idle" or zone.is_empty():
			return False
		self._zone = zone
		self._zero_counters()
		self._question = None
		self._question_stats = QuestionStats()
		self._paused = False
		self._transition("active")
		return True

	def set_question(self, question: QuizQuestion) -> bool:
		if self._state != "active":
			return False
		self._question = question
		self._question_stats = QuestionStats()
		self._emit("question_generated", question=question)
		return True

	def submit_answer(self, note: Note) -> AnswerResult:
		question = self._question
		if self._state != "active" or question is None:
			return "invalid"

		stats = self._question_stats
		stats.attempts += 1
		self.total_attempts += 1

		if note.pitch_class == question.target_pitch_class:
			stats.answered_correctly = True
			self.correct_answers += 1
			self.questions_answered += 1
			self._emit("correct_answer", question=question, clicked_note=note, attempt_number=stats.attempts, answer_result="correct")
			self._question = None
			if self.questions_answered >= self._config.total_questions:
				self._complete()
			return "correct"

		self._emit("incorrect_answer", question=question, clicked_note=note, attempt_number=stats.attempts, answer_result="incorrect")
		if stats.attempts >= self._config.max_attempts:
			stats.hint_shown = True
			self.hints_used += 1
			self._transition("hint")
			self._emit("hint_shown", question=question, previous_state="active")
		return "incorrect"

	def acknowledge_hint(self) -> bool:
		if self._state != "hint":
			return False
		self.questions_answered += 1
		self._question = None
		if self.questions_answered >= self._config.total_questions:
			self._complete()
		else:
			self._transition("active")
		return True

	def pause(self) -> bool:
		if self._state != "active":
			return False
		self._paused = True
		return True

	def resume(self) -> bool:
		if self._state != "active":
			return False
		self._paused = False
		return True

	def reset(self) -> None:
		previous = self._state
		self._state = "idle"
		self._paused = False
		self._question = None
		self._question_stats = QuestionStats()
		self._zone = None
		self._zero_counters()
		if previous != "idle":
			self._emit("state_change", previous_state=previous)

	def update_config(self, **changes: Any) -> bool:
		if self._state != "idle":
			return False
		self._config = QuizConfig.model_validate({**self._config.model_dump(), **changes})
		return True

	def result(self) -> Optional[QuizResult]:
		if self._state != "complete":
			return None
		return self._calculate_result()

	# events

	def on(self, kind: QuizEventType, listener: Callable[[QuizEvent], None]) -> Callable[[], None]:
		return self._events.on(kind, listener)

	def off(self, kind: QuizEventType, listener: Callable[[QuizEvent], None]) -> None:
		self._events.off(kind, listener)

	def remove_all_listeners(self, kind: Optional[QuizEventType] = None) -> None:
		self._events.remove_all_listeners(kind)

	# internals

	def _transition(self, new_state: QuizState) -> None:
		previous = self._state
		self._state = new_state
		if new_state != "active":
			self._paused = False
		self._emit("state_change", previous_state=previous)

	def _complete(self) -> None:
		previous = self._state
		self._state = "complete"
		self._paused = False
		self._question = None
		logger.info("Quiz complete: %s correct, %s hints", self.correct_answers, self.hints_used)
		self._emit("quiz_complete", previous_state=previous, result=self._calculate_result())
		self._emit("state_change", previous_state=previous)

	def _calculate_result(self) -> QuizResult:
		accuracy = int(round_half_up(100 * self.correct_answers / self.questions_answered)) if self.questions_answered else 0
		average = round_half_up(self.total_attempts / self.correct_answers, 2) if self.correct_answers else 0.0
		return QuizResult(
			total_questions=self.questions_answered,
			correct_answers=self.correct_answers,
			hints_used=self.hints_used,
			total_attempts=self.total_attempts,
			accuracy=accuracy,
			average_attempts=average,
		)

	def _emit(self, kind: QuizEventType, **fields: Any) -> None:
		self._events.emit(kind, QuizEvent(type=kind, state=self._state, **fields))
