from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from .models import FretboardConfig, StringTuning
from .theory import CHROMATIC_SHARPS, Note, normalize_pitch_class, parse_position_id, pitch_class_index


def _tuning(*names: str) -> List[StringTuning]:
	# "E4" -> StringTuning("E", 4); string 1 first
	return [StringTuning(pitch_class=n[:-1], octave=int(n[-1])) for n in names]


STANDARD_TUNING: List[StringTuning] = _tuning("E4", "B3", "G3", "D3", "A2", "E2")
DROP_D_TUNING: List[StringTuning] = _tuning("E4", "B3", "G3", "D3", "A2", "D2")
OPEN_G_TUNING: List[StringTuning] = _tuning("D4", "B3", "G3", "D3", "G2", "D2")

TUNINGS: Dict[str, List[StringTuning]] = {
	"standard": STANDARD_TUNING,
	"drop_d": DROP_D_TUNING,
	"open_g": OPEN_G_TUNING,
}

FRET_MARKERS = frozenset([3, 5, 7, 9, 12, 15, 17, 19, 21, 24])
DOUBLE_FRET_MARKERS = frozenset([12, 24])


def tuning_midi(t: StringTuning) -> int:
	return (t.octave + 1) * 12 + pitch_class_index(t.pitch_class)


class Fretboard:
	"""Every playable note of a fretted instrument, indexed three ways.

	The note set is generated once from the configuration; the position,
	string and pitch-class views all share the same Note objects and are
	never mutated afterwards.
	"""

	def __init__(self, config: Optional[FretboardConfig] = None, **overrides: Any) -> None:
		base = config or FretboardConfig()
		if overrides:
			base = FretboardConfig.model_validate({**base.model_dump(), **overrides})
		self.config = base
		self._by_position: Dict[Tuple[int, int], Note] = {}
		self._by_string: Dict[int, List[Note]] = {}
		self._by_pitch_class: Dict[str, List[Note]] = {pc: [] for pc in CHROMATIC_SHARPS}
		self._generate()

	def _generate(self) -> None:
		for string in range(1, self.config.string_count + 1):
			open_midi = tuning_midi(self.config.tuning[string - 1])
			notes: List[Note] = []
			for fret in range(self.config.fret_count + 1):
				note = Note.from_midi_number(open_midi + fret, string, fret)
				self._by_position[note.position] = note
				self._by_pitch_class[note.pitch_class].append(note)
				notes.append(note)
			self._by_string[string] = notes

	@property
	def string_count(self) -> int:
		return self.config.string_count

	@property
	def fret_count(self) -> int:
		return self.config.fret_count

	def note_at(self, string: int, fret: int) -> Optional[Note]:
		return self._by_position.get((string, fret))

	def note_at_position_id(self, pid: str) -> Optional[Note]:
		pos = parse_position_id(pid)
		if pos is None:
			return None
		return self._by_position.get(pos)

	def notes_on_string(self, string: int) -> List[Note]:
		return list(self._by_string.get(string, []))

	def notes_by_pitch_class(self, pitch_class: str) -> List[Note]:
		return list(self._by_pitch_class[normalize_pitch_class(pitch_class)])

	def all_notes(self) -> List[Note]:
		return list(self._by_position.values())

	def total_note_count(self) -> int:
		return len(self._by_position)

	def open_string(self, string: int) -> Optional[Note]:
		return self.note_at(string, 0)

	def open_strings(self) -> List[Note]:
		return [self._by_string[s][0] for s in range(1, self.string_count + 1)]

	def notes_in_fret_range(self, start_fret: int, end_fret: int) -> List[Note]:
		return self.region(1, self.string_count, start_fret, end_fret)

	def notes_in_string_range(self, start_string: int, end_string: int) -> List[Note]:
		notes: List[Note] = []
		for string in range(start_string, end_string + 1):
			notes.extend(self._by_string.get(string, []))
		return notes

	def find_pitch_class_in_range(self, pitch_class: str, start_fret: int, end_fret: int) -> List[Note]:
		return [n for n in self.notes_by_pitch_class(pitch_class) if start_fret <= n.fret <= end_fret]

	def region(self, start_string: int, end_string: int, start_fret: int, end_fret: int) -> List[Note]:
		"""Notes in the rectangle of strings and frets, string-major order."""
		notes: List[Note] = []
		for string in range(start_string, end_string + 1):
			for note in self._by_string.get(string, []):
				if start_fret <= note.fret <= end_fret:
					notes.append(note)
		return notes

	def has_fret_marker(self, fret: int) -> bool:
		return fret in FRET_MARKERS

	def has_double_fret_marker(self, fret: int) -> bool:
		return fret in DOUBLE_FRET_MARKERS

	def describe(self) -> str:
		tuning = ", ".join(
			f"String {i}: {t.pitch_class}{t.octave}"
			for i, t in enumerate(self.config.tuning[: self.string_count], start=1)
		)
		return "\n".join([
			f"Fretboard: {self.string_count} strings, {self.fret_count} frets",
			f"Tuning: {tuning}",
			f"Total notes: {self.total_note_count()}",
		])

	def __repr__(self) -> str:
		return f"Fretboard(strings={self.string_count}, frets={self.fret_count})"
