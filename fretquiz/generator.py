from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence, TypeVar

import numpy as np

from .fretboard import Fretboard
from .models import (
	GenerationResult,
	GeneratorConfig,
	IntervalQuizQuestion,
	ValidCombination,
	ZoneStatistics,
)
from .theory import (
	ALL_INTERVALS,
	COMMON_INTERVALS,
	NATURALS,
	Interval,
	Note,
	normalize_pitch_class,
	pitch_class_index,
	to_flat,
	transpose_pitch_class,
)
from .zones import HighlightZone

logger = logging.getLogger(__name__)

T = TypeVar("T")


def pick(rng: np.random.Generator, items: Sequence[T]) -> T:
	return items[int(rng.integers(len(items)))]


def display_pitch_class(pitch_class: str, preference: str, rng: np.random.Generator) -> str:
	"""Spell a pitch class for question text; "both" picks sharp or flat at random."""
	pc = normalize_pitch_class(pitch_class)
	if pc in NATURALS:
		return pc
	if preference == "flats":
		return to_flat(pc)
	if preference == "both":
		return to_flat(pc) if rng.random() < 0.5 else pc
	return pc


class IntervalQuestionGenerator:
	"""Draws "find the <interval> of <root>" questions constrained to a zone.

	Roots come from the zone's positions. A draw is kept only when the target
	pitch class occurs somewhere inside the zone and, unless a compound
	interval is allowed to start outside it, the root is in the zone too.
	The random source is injectable so runs can be reproduced with a seed.
	"""

	def __init__(
		self,
		fretboard: Fretboard,
		config: Optional[GeneratorConfig] = None,
		rng: Optional[np.random.Generator] = None,
		**overrides: Any,
	) -> None:
		self.fretboard = fretboard
		self._config = config or GeneratorConfig()
		if overrides:
			self.update_config(**overrides)
		self.rng = rng if rng is not None else np.random.default_rng()
		self.last_interval: Optional[Interval] = None
		self.last_root_pitch_class: Optional[str] = None
		self.question_number = 0

	@property
	def config(self) -> GeneratorConfig:
		return self._config.model_copy()

	def update_config(self, **changes: Any) -> None:
		self._config = GeneratorConfig.model_validate({**self._config.model_dump(), **changes})

	def reset(self) -> None:
		self.last_interval = None
		self.last_root_pitch_class = None
		self.question_number = 0

	def allowed_intervals(self) -> List[Interval]:
		selection = self._config.intervals
		if selection == "common":
			intervals = list(COMMON_INTERVALS)
		elif selection == "all":
			intervals = list(ALL_INTERVALS)
		else:
			intervals = [Interval.from_short_name(n) for n in selection]
		if not self._config.allow_compound_intervals:
			intervals = [i for i in intervals if not i.is_compound]
		return intervals

	def calculate_target_pitch_class(self, root_pitch_class: str, interval: Interval) -> str:
		return transpose_pitch_class(root_pitch_class, interval)

	def target_notes_on_fretboard(self, target_pitch_class: str) -> List[Note]:
		return self.fretboard.notes_by_pitch_class(target_pitch_class)

	def filter_target_notes_to_zone(self, notes: Sequence[Note], zone: HighlightZone) -> List[Note]:
		return [n for n in notes if zone.contains(n)]

	def candidate_root_notes(self, zone: HighlightZone) -> List[Note]:
		notes = []
		for pos in zone:
			note = self.fretboard.note_at(pos.string, pos.fret)
			if note is not None:
				notes.append(note)
		return notes

	def unique_pitch_classes(self, notes: Sequence[Note]) -> List[str]:
		# first-seen order
		return list(dict.fromkeys(n.pitch_class for n in notes))

	def _pick(self, items: Sequence[T]) -> T:
		return pick(self.rng, items)

	def select_random_interval(self, intervals: Sequence[Interval]) -> Optional[Interval]:
		if not intervals:
			return None
		if len(intervals) == 1:
			return intervals[0]
		if self._config.avoid_consecutive_repeats and self.last_interval is not None:
			fresh = [i for i in intervals if i != self.last_interval]
			if fresh:
				return self._pick(fresh)
		return self._pick(intervals)

	def select_random_root_note(self, candidates: Sequence[Note]) -> Optional[Note]:
		if not candidates:
			return None
		if len(self.unique_pitch_classes(candidates)) > 1 and self._config.avoid_consecutive_repeats and self.last_root_pitch_class is not None:
			fresh = [n for n in candidates if n.pitch_class != self.last_root_pitch_class]
			if fresh:
				return self._pick(fresh)
		return self._pick(candidates)

	def display_name(self, pitch_class: str) -> str:
		return display_pitch_class(pitch_class, self._config.display_preference, self.rng)

	def format_question_text(self, interval: Interval, root_pitch_class: str) -> str:
		return f"Find the {interval.full_name()} of {self.display_name(root_pitch_class)}"

	def is_valid_combination(
		self, root_note: Note, interval: Interval, zone: HighlightZone, targets_in_zone: Sequence[Note]
	) -> bool:
		if not targets_in_zone:
			return False
		root_in_zone = zone.contains(root_note)
		if not interval.is_compound:
			return root_in_zone
		if self._config.allow_root_outside_zone_for_compound:
			return True
		return root_in_zone

	def _build_question(
		self, zone: HighlightZone, root_note: Note, interval: Interval, target_pc: str, all_targets: List[Note], in_zone: List[Note]
	) -> IntervalQuizQuestion:
		self.last_interval = interval
		self.last_root_pitch_class = root_note.pitch_class
		self.question_number += 1
		return IntervalQuizQuestion(
			root_note=root_note,
			root_pitch_class=root_note.pitch_class,
			interval=interval,
			target_pitch_class=target_pc,
			all_target_notes=all_targets,
			target_notes_in_zone=in_zone,
			question_number=self.question_number,
			question_text=self.format_question_text(interval, root_note.pitch_class),
			root_in_zone=zone.contains(root_note),
		)

	def generate_question(self, zone: HighlightZone) -> GenerationResult:
		if zone.is_empty():
			return GenerationResult.fail("Cannot generate question from empty zone")
		intervals = self.allowed_intervals()
		if not intervals:
			return GenerationResult.fail("No intervals configured for question generation")
		roots = self.candidate_root_notes(zone)
		if not roots:
			return GenerationResult.fail("No valid root notes found in zone")

		for _ in range(self._config.max_retries):
			interval = self.select_random_interval(intervals)
			root = self.select_random_root_note(roots)
			if interval is None or root is None:
				continue
			target_pc = self.calculate_target_pitch_class(root.pitch_class, interval)
			all_targets = self.target_notes_on_fretboard(target_pc)
			in_zone = self.filter_target_notes_to_zone(all_targets, zone)
			if self.is_valid_combination(root, interval, zone, in_zone):
				return GenerationResult.ok(self._build_question(zone, root, interval, target_pc, all_targets, in_zone))

		logger.debug("No valid root/interval draw in %d attempts for zone %r", self._config.max_retries, zone)
		return GenerationResult.fail("Failed to generate valid question after maximum retries")

	def generate_question_with_params(self, zone: HighlightZone, root_pitch_class: str, interval: Interval) -> GenerationResult:
		"""Build a question for a fixed root and interval.

		The validity rule is the same as for random generation. Compound
		intervals go through the compound branch even if the configuration
		does not offer compound intervals.
		"""
		if zone.is_empty():
			return GenerationResult.fail("Cannot generate question from empty zone")
		root_pc = normalize_pitch_class(root_pitch_class)
		matching = [n for n in self.candidate_root_notes(zone) if n.pitch_class == root_pc]
		if not matching:
			return GenerationResult.fail(f"No notes with pitch class {root_pc} found in zone")
		root = self._pick(matching)
		target_pc = self.calculate_target_pitch_class(root_pc, interval)
		all_targets = self.target_notes_on_fretboard(target_pc)
		in_zone = self.filter_target_notes_to_zone(all_targets, zone)
		if not self.is_valid_combination(root, interval, zone, in_zone):
			return GenerationResult.fail("No valid target notes in zone for this root/interval combination")
		return GenerationResult.ok(self._build_question(zone, root, interval, target_pc, all_targets, in_zone))

	def validate_answer(self, note: Note, question: IntervalQuizQuestion) -> bool:
		return note.pitch_class == question.target_pitch_class

	def zone_statistics(self, zone: HighlightZone) -> ZoneStatistics:
		roots = self.candidate_root_notes(zone)
		intervals = self.allowed_intervals()
		pcs = sorted(self.unique_pitch_classes(roots), key=pitch_class_index)
		combos: List[ValidCombination] = []
		for pc in pcs:
			root = next(n for n in roots if n.pitch_class == pc)
			for interval in intervals:
				target_pc = self.calculate_target_pitch_class(pc, interval)
				in_zone = self.filter_target_notes_to_zone(self.target_notes_on_fretboard(target_pc), zone)
				if self.is_valid_combination(root, interval, zone, in_zone):
					combos.append(ValidCombination(root=pc, interval=interval.short_name(), target_count=len(in_zone)))
		return ZoneStatistics(
			total_positions=zone.size(),
			available_root_pitch_classes=pcs,
			allowed_intervals=[i.short_name() for i in intervals],
			valid_combinations=combos,
		)
