"""Builders for common zone shapes: boxes, positions, octave spans, pitch classes."""
from __future__ import annotations

from typing import Iterable, Optional, Tuple

from .fretboard import Fretboard
from .theory import Note, normalize_pitch_class, pitch_class_index
from .zones import MAX_FRET, MAX_STRING, MIN_FRET, MIN_STRING, HighlightZone

Range = Tuple[int, int]


def _check_int(value: object, label: str) -> None:
	if isinstance(value, bool) or not isinstance(value, int):
		raise ValueError(f"{label} must be an integer")


def _check_string(value: int, label: str = "String number") -> None:
	_check_int(value, label)
	if not MIN_STRING <= value <= MAX_STRING:
		raise ValueError(f"{label} must be between {MIN_STRING} and {MAX_STRING}")


def _check_fret(value: int, label: str = "Fret number") -> None:
	_check_int(value, label)
	if not MIN_FRET <= value <= MAX_FRET:
		raise ValueError(f"{label} must be between {MIN_FRET} and {MAX_FRET}")


def _within(note: Note, fret_range: Optional[Range], string_range: Optional[Range]) -> bool:
	if fret_range and not fret_range[0] <= note.fret <= fret_range[1]:
		return False
	if string_range and not string_range[0] <= note.string <= string_range[1]:
		return False
	return True


def create_rectangle_zone(
	start_string: int, end_string: int, start_fret: int, end_fret: int, name: Optional[str] = None
) -> HighlightZone:
	"""Every position inside the box; reversed bounds are accepted."""
	for s in (start_string, end_string):
		_check_string(s)
	for f in (start_fret, end_fret):
		_check_fret(f)
	zone = HighlightZone(name)
	for string in range(min(start_string, end_string), max(start_string, end_string) + 1):
		for fret in range(min(start_fret, end_fret), max(start_fret, end_fret) + 1):
			zone.add_note(string, fret)
	return zone


def create_position_zone(
	position: int, fret_span: int = 4, string_range: Optional[Range] = None, name: Optional[str] = None
) -> HighlightZone:
	"""A hand position: position 1 includes the open strings, position N starts at fret N."""
	_check_int(position, "Position number")
	if not 1 <= position <= MAX_FRET:
		raise ValueError(f"Position number must be between 1 and {MAX_FRET}")
	_check_int(fret_span, "Fret span")
	if not 1 <= fret_span <= MAX_FRET:
		raise ValueError(f"Fret span must be a positive integer up to {MAX_FRET}")
	start_fret = 0 if position == 1 else position
	end_fret = min(start_fret + fret_span, MAX_FRET)
	lo, hi = string_range or (MIN_STRING, MAX_STRING)
	return create_rectangle_zone(lo, hi, start_fret, end_fret, name or f"Position {position}")


def create_single_string_zone(
	string: int, start_fret: int = 0, end_fret: int = 12, name: Optional[str] = None
) -> HighlightZone:
	_check_string(string)
	return create_rectangle_zone(string, string, start_fret, end_fret, name or f"String {string}")


def create_octave_range_zone(
	root_pitch_class: str,
	start_octave: int,
	octave_count: int = 1,
	fret_range: Optional[Range] = None,
	string_range: Optional[Range] = None,
	name: Optional[str] = None,
	fretboard: Optional[Fretboard] = None,
) -> HighlightZone:
	"""Positions sounding from root@start_octave up to, not including, the root octave_count octaves higher."""
	pc = normalize_pitch_class(root_pitch_class)
	_check_int(start_octave, "Start octave")
	if not 0 <= start_octave <= 9:
		raise ValueError("Start octave must be an integer between 0 and 9")
	_check_int(octave_count, "Octave count")
	if octave_count < 1:
		raise ValueError("Octave count must be a positive integer")
	if fret_range:
		for f in fret_range:
			_check_fret(f, "Fret range")
	if string_range:
		for s in string_range:
			_check_string(s, "String range")
	fb = fretboard or Fretboard()
	start_midi = (start_octave + 1) * 12 + pitch_class_index(pc)
	end_midi = start_midi + octave_count * 12 - 1
	zone = HighlightZone(name)
	for note in fb.all_notes():
		if start_midi <= note.midi_number <= end_midi and _within(note, fret_range, string_range):
			zone.add(note)
	return zone


def create_pitch_class_zone(
	pitch_classes: Iterable[str],
	fret_range: Optional[Range] = None,
	string_range: Optional[Range] = None,
	name: Optional[str] = None,
	fretboard: Optional[Fretboard] = None,
) -> HighlightZone:
	pcs = [normalize_pitch_class(pc) for pc in pitch_classes]
	fb = fretboard or Fretboard()
	zone = HighlightZone(name)
	for pc in pcs:
		for note in fb.notes_by_pitch_class(pc):
			if _within(note, fret_range, string_range):
				zone.add(note)
	return zone


def shift_zone(zone: HighlightZone, fret_offset: int, name: Optional[str] = None) -> HighlightZone:
	"""Move every position by fret_offset; positions pushed off the neck are dropped."""
	if name is None and zone.name:
		name = f"{zone.name} ({fret_offset:+d})"
	shifted = HighlightZone(name)
	for pos in zone:
		fret = pos.fret + fret_offset
		if MIN_FRET <= fret <= MAX_FRET:
			shifted.add_note(pos.string, fret)
	return shifted


def zone_shift_range(zone: HighlightZone) -> Range:
	"""(min_offset, max_offset) that still keep at least one position on the neck."""
	frets = [p.fret for p in zone]
	if not frets:
		return (0, 0)
	return (-max(frets), MAX_FRET - min(frets))
