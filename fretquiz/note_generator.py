from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence

import numpy as np

from .fretboard import Fretboard
from .generator import display_pitch_class, pick
from .models import GenerationResult, NoteGeneratorConfig, NoteQuizQuestion, NoteZoneStatistics
from .theory import CHROMATIC_SHARPS, Note, normalize_pitch_class, pitch_class_index
from .zones import HighlightZone

logger = logging.getLogger(__name__)

NATURAL_PITCH_CLASSES: List[str] = ["C", "D", "E", "F", "G", "A", "B"]
ACCIDENTAL_PITCH_CLASSES: List[str] = ["C#", "D#", "F#", "G#", "A#"]


class NoteQuestionGenerator:
	"""Draws "find <note>" questions from the positions of a zone.

	A pitch class is chosen first, among those the zone offers after the
	filter, then one of its positions becomes the target note. Any position
	with that pitch class answers the question.
	"""

	def __init__(
		self,
		fretboard: Fretboard,
		config: Optional[NoteGeneratorConfig] = None,
		rng: Optional[np.random.Generator] = None,
		**overrides: Any,
	) -> None:
		self.fretboard = fretboard
		self._config = config or NoteGeneratorConfig()
		if overrides:
			self.update_config(**overrides)
		self.rng = rng if rng is not None else np.random.default_rng()
		self.last_pitch_class: Optional[str] = None
		self.question_number = 0

	@property
	def config(self) -> NoteGeneratorConfig:
		return self._config.model_copy()

	def update_config(self, **changes: Any) -> None:
		self._config = NoteGeneratorConfig.model_validate({**self._config.model_dump(), **changes})

	def reset(self) -> None:
		self.last_pitch_class = None
		self.question_number = 0

	def allowed_pitch_classes(self) -> List[str]:
		kind = self._config.pitch_class_filter
		if kind == "natural":
			return list(NATURAL_PITCH_CLASSES)
		if kind == "custom" and self._config.custom_pitch_classes:
			return list(self._config.custom_pitch_classes)
		# an empty custom list falls back to every pitch class
		return list(CHROMATIC_SHARPS)

	def candidate_notes(self, zone: HighlightZone) -> List[Note]:
		allowed = set(self.allowed_pitch_classes())
		notes = []
		for pos in zone:
			note = self.fretboard.note_at(pos.string, pos.fret)
			if note is not None and note.pitch_class in allowed:
				notes.append(note)
		return notes

	def unique_pitch_classes(self, notes: Sequence[Note]) -> List[str]:
		return list(dict.fromkeys(n.pitch_class for n in notes))

	def select_random_pitch_class(self, pitch_classes: Sequence[str]) -> Optional[str]:
		if not pitch_classes:
			return None
		if len(pitch_classes) == 1:
			return pitch_classes[0]
		if self._config.avoid_consecutive_repeats and self.last_pitch_class is not None:
			fresh = [pc for pc in pitch_classes if pc != self.last_pitch_class]
			if fresh:
				return pick(self.rng, fresh)
		return pick(self.rng, pitch_classes)

	def display_name(self, pitch_class: str) -> str:
		return display_pitch_class(pitch_class, self._config.display_preference, self.rng)

	def format_question_text(self, pitch_class: str) -> str:
		return f"Find {self.display_name(pitch_class)}"

	def _build_question(self, target: Note) -> NoteQuizQuestion:
		self.last_pitch_class = target.pitch_class
		self.question_number += 1
		return NoteQuizQuestion(
			target_note=target,
			target_pitch_class=target.pitch_class,
			question_number=self.question_number,
			question_text=self.format_question_text(target.pitch_class),
		)

	def generate_question(self, zone: HighlightZone) -> GenerationResult:
		if zone.is_empty():
			return GenerationResult.fail("Cannot generate question from empty zone")
		candidates = self.candidate_notes(zone)
		if not candidates:
			logger.debug("Filter %s leaves nothing in zone %r", self._config.pitch_class_filter, zone)
			return GenerationResult.fail("No notes in zone match the allowed pitch classes")
		pc = self.select_random_pitch_class(self.unique_pitch_classes(candidates))
		if pc is None:
			return GenerationResult.fail("Failed to select a pitch class")
		target = pick(self.rng, [n for n in candidates if n.pitch_class == pc])
		return GenerationResult.ok(self._build_question(target))

	def generate_question_with_pitch_class(self, zone: HighlightZone, pitch_class: str) -> GenerationResult:
		"""Build a question for a fixed pitch class; the filter still applies."""
		if zone.is_empty():
			return GenerationResult.fail("Cannot generate question from empty zone")
		pc = normalize_pitch_class(pitch_class)
		matching = [n for n in self.candidate_notes(zone) if n.pitch_class == pc]
		if not matching:
			return GenerationResult.fail(f"No notes with pitch class {pc} found in zone")
		return GenerationResult.ok(self._build_question(pick(self.rng, matching)))

	def validate_answer(self, note: Note, question: NoteQuizQuestion) -> bool:
		return note.pitch_class == question.target_pitch_class

	def zone_statistics(self, zone: HighlightZone) -> NoteZoneStatistics:
		candidates = self.candidate_notes(zone)
		return NoteZoneStatistics(
			total_positions=zone.size(),
			candidate_count=len(candidates),
			available_pitch_classes=sorted(self.unique_pitch_classes(candidates), key=pitch_class_index),
			excluded_count=zone.size() - len(candidates),
		)
