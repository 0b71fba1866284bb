from __future__ import annotations

from typing import Callable, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .theory import Interval, Note, normalize_pitch_class


QuizState = Literal["idle", "active", "hint", "complete"]
AnswerResult = Literal["correct", "incorrect", "invalid"]
FeedbackType = Literal["correct", "incorrect", "hint", "none"]
DisplayPreference = Literal["sharps", "flats", "both"]
IntervalSelection = Union[Literal["common", "all"], List[str]]
PitchClassFilter = Literal["natural", "sharps", "flats", "both", "custom"]

QuizEventType = Literal[
	"state_change",
	"question_generated",
	"correct_answer",
	"incorrect_answer",
	"hint_shown",
	"quiz_complete",
]
FeedbackEventType = Literal["feedback_start", "feedback_complete", "feedback_clear"]
FlowEventType = Literal[
	"quiz_started",
	"question_ready",
	"answer_processed",
	"auto_advance_scheduled",
	"auto_advance_cancelled",
	"paused",
	"resumed",
	"quiz_completed",
	"quiz_reset",
	"generation_failed",
]


class StringTuning(BaseModel):
	model_config = ConfigDict(frozen=True)

	pitch_class: str
	octave: int = Field(ge=-1, le=9)

	@field_validator("pitch_class")
	@classmethod
	def _canonical_pitch_class(cls, v: str) -> str:
		return normalize_pitch_class(v)


class FretboardConfig(BaseModel):
	model_config = ConfigDict(frozen=True)

	tuning: List[StringTuning] = Field(
		default_factory=lambda: [
			StringTuning(pitch_class="E", octave=4),
			StringTuning(pitch_class="B", octave=3),
			StringTuning(pitch_class="G", octave=3),
			StringTuning(pitch_class="D", octave=3),
			StringTuning(pitch_class="A", octave=2),
			StringTuning(pitch_class="E", octave=2),
		]
	)
	fret_count: int = Field(default=24, ge=0, le=36)
	string_count: int = Field(default=6, ge=1, le=12)

	@model_validator(mode="after")
	def _tuning_covers_strings(self) -> FretboardConfig:
		if self.string_count > len(self.tuning):
			raise ValueError(f"tuning lists {len(self.tuning)} strings but string_count is {self.string_count}")
		return self


class GeneratorConfig(BaseModel):
	intervals: IntervalSelection = Field(default="common")
	display_preference: DisplayPreference = Field(default="sharps")
	avoid_consecutive_repeats: bool = Field(default=True)
	max_retries: int = Field(default=10, ge=1, le=10_000)
	allow_compound_intervals: bool = Field(default=False)
	allow_root_outside_zone_for_compound: bool = Field(default=True)

	@field_validator("intervals")
	@classmethod
	def _known_short_names(cls, v: IntervalSelection) -> IntervalSelection:
		if isinstance(v, list):
			for name in v:
				Interval.from_short_name(name)
		return v


class QuizConfig(BaseModel):
	max_attempts: int = Field(default=3, ge=1, le=100)
	total_questions: int = Field(default=10, ge=1, le=1000)
	auto_advance: bool = Field(default=True)
	auto_advance_delay: float = Field(default=1.0, ge=0.0)


class FeedbackConfig(BaseModel):
	correct_duration: float = Field(default=0.5, gt=0.0)
	incorrect_duration: float = Field(default=0.5, gt=0.0)
	hint_pulse_duration: float = Field(default=0.5, gt=0.0)
	hint_pulse_count: int = Field(default=3, ge=1)
	on_feedback_complete: Optional[Callable[[str, str], None]] = Field(default=None, exclude=True)


class IntervalQuizQuestion(BaseModel):
	model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

	root_note: Note
	root_pitch_class: str
	interval: Interval
	target_pitch_class: str
	all_target_notes: List[Note]
	target_notes_in_zone: List[Note]
	question_number: int
	question_text: str
	root_in_zone: bool


class NoteGeneratorConfig(BaseModel):
	pitch_class_filter: PitchClassFilter = Field(default="sharps")
	custom_pitch_classes: Optional[List[str]] = Field(default=None)
	display_preference: DisplayPreference = Field(default="sharps")
	avoid_consecutive_repeats: bool = Field(default=True)

	@field_validator("custom_pitch_classes")
	@classmethod
	def _canonical_pitch_classes(cls, v: Optional[List[str]]) -> Optional[List[str]]:
		if v is None:
			return None
		return list(dict.fromkeys(normalize_pitch_class(pc) for pc in v))


class NoteQuizQuestion(BaseModel):
	model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

	target_note: Note
	target_pitch_class: str
	question_number: int
	question_text: str


QuizQuestion = Union[IntervalQuizQuestion, NoteQuizQuestion]


class GenerationResult(BaseModel):
	model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

	success: bool
	question: Optional[QuizQuestion] = None
	error: Optional[str] = None

	@classmethod
	def ok(cls, question: QuizQuestion) -> GenerationResult:
		return cls(success=True, question=question)

	@classmethod
	def fail(cls, error: str) -> GenerationResult:
		return cls(success=False, error=error)


class ValidCombination(BaseModel):
	root: str
	interval: str
	target_count: int


class ZoneStatistics(BaseModel):
	total_positions: int
	available_root_pitch_classes: List[str]
	allowed_intervals: List[str]
	valid_combinations: List[ValidCombination]


class NoteZoneStatistics(BaseModel):
	total_positions: int
	candidate_count: int
	available_pitch_classes: List[str]
	excluded_count: int


class QuestionStats(BaseModel):
	attempts: int = 0
	hint_shown: bool = False
	answered_correctly: bool = False


class QuizResult(BaseModel):
	total_questions: int
	correct_answers: int
	hints_used: int
	total_attempts: int
	accuracy: int
	average_attempts: float


class QuizEvent(BaseModel):
	model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

	type: QuizEventType
	state: QuizState
	previous_state: Optional[QuizState] = None
	question: Optional[QuizQuestion] = None
	answer_result: Optional[AnswerResult] = None
	result: Optional[QuizResult] = None
	attempt_number: Optional[int] = None
	clicked_note: Optional[Note] = None


class FeedbackState(BaseModel):
	model_config = ConfigDict(frozen=True)

	position_id: str
	type: FeedbackType
	start_time: float
	duration: float
	pulse_count: Optional[int] = None


class FeedbackEvent(BaseModel):
	model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

	type: FeedbackEventType
	feedback_type: FeedbackType
	position_id: str
	note: Optional[Note] = None


class ScoreData(BaseModel):
	correct: int
	total: int
	hints_used: int
	total_attempts: int
	display: str
	accuracy: int


class ProgressData(BaseModel):
	current_question: int
	total_questions: int
	display: str
	percentage: int


class FlowEvent(BaseModel):
	model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

	type: FlowEventType
	timestamp: float
	quiz_state: QuizState
	paused: bool = False
	question: Optional[QuizQuestion] = None
	score: Optional[ScoreData] = None
	progress: Optional[ProgressData] = None
	result: Optional[QuizResult] = None
	auto_advance_remaining: Optional[float] = None
	error: Optional[str] = None
