from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional, Tuple

PitchClass = str
Quality = Literal["perfect", "major", "minor", "diminished", "augmented"]
NoteDisplayPreference = Literal["sharps", "flats", "both"]

CHROMATIC_SHARPS: List[PitchClass] = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]
CHROMATIC_FLATS: List[str] = ["C", "Db", "D", "Eb", "E", "F", "Gb", "G", "Ab", "A", "Bb", "B"]
NATURALS = frozenset(["C", "D", "E", "F", "G", "A", "B"])

SHARP_TO_FLAT: Dict[PitchClass, str] = dict(zip(CHROMATIC_SHARPS, CHROMATIC_FLATS))
FLAT_TO_SHARP: Dict[str, PitchClass] = dict(zip(CHROMATIC_FLATS, CHROMATIC_SHARPS))

PERFECT_NUMBERS = frozenset([1, 4, 5, 8, 11, 12, 15])

# major/perfect reference spelling for each interval number
BASE_SEMITONES: Dict[int, int] = {
	1: 0,
	2: 2,
	3: 4,
	4: 5,
	5: 7,
	6: 9,
	7: 11,
	8: 12,
	9: 14,
	10: 16,
	11: 17,
	12: 19,
	13: 21,
	14: 23,
	15: 24,
}

NUMBER_NAMES: Dict[int, str] = {
	1: "unison",
	2: "second",
	3: "third",
	4: "fourth",
	5: "fifth",
	6: "sixth",
	7: "seventh",
	8: "octave",
	9: "ninth",
	10: "tenth",
	11: "eleventh",
	12: "twelfth",
	13: "thirteenth",
	14: "fourteenth",
	15: "fifteenth",
}

QUALITY_ABBREVIATIONS: Dict[str, str] = {
	"perfect": "P",
	"major": "M",
	"minor": "m",
	"diminished": "d",
	"augmented": "A",
}
ABBREVIATION_TO_QUALITY: Dict[str, str] = {v: k for k, v in QUALITY_ABBREVIATIONS.items()}

INVERTED_QUALITY: Dict[str, str] = {
	"major": "minor",
	"minor": "major",
	"augmented": "diminished",
	"diminished": "augmented",
	"perfect": "perfect",
}

# Common spelling per semitone distance; the tritone is spelled A4 / A11
SEMITONE_TO_COMMON: Dict[int, str] = {
	0: "P1",
	1: "m2",
	2: "M2",
	3: "m3",
	4: "M3",
	5: "P4",
	6: "A4",
	7: "P5",
	8: "m6",
	9: "M6",
	10: "m7",
	11: "M7",
	12: "P8",
	13: "m9",
	14: "M9",
	15: "m10",
	16: "M10",
	17: "P11",
	18: "A11",
	19: "P12",
	20: "m13",
	21: "M13",
	22: "m14",
	23: "M14",
	24: "P15",
}

_SHORT_NAME_RE = re.compile(r"^([PMmAd])(\d+)$")


class InvalidInterval(ValueError):
	"""Raised for an impossible quality/number pair or an unparseable interval."""


def pitch_class_index(pc: str) -> int:
	return CHROMATIC_SHARPS.index(normalize_pitch_class(pc))


def pitch_class_from_index(index: int) -> PitchClass:
	return CHROMATIC_SHARPS[index % 12]


def normalize_pitch_class(name: str) -> PitchClass:
	"""Return the canonical sharp spelling for a sharp, flat or natural name."""
	if name in SHARP_TO_FLAT:
		return name
	if name in FLAT_TO_SHARP:
		return FLAT_TO_SHARP[name]
	raise ValueError(f"Unknown pitch class: {name!r}")


def to_flat(pc: str) -> str:
	return SHARP_TO_FLAT[normalize_pitch_class(pc)]


def to_sharp(name: str) -> PitchClass:
	return normalize_pitch_class(name)


def are_enharmonic(a: str, b: str) -> bool:
	return normalize_pitch_class(a) == normalize_pitch_class(b)


def enharmonic_spellings(pc: str) -> List[str]:
	sharp = normalize_pitch_class(pc)
	flat = SHARP_TO_FLAT[sharp]
	return [sharp] if sharp == flat else [sharp, flat]


def semitones_between(from_pc: str, to_pc: str) -> int:
	return (pitch_class_index(to_pc) - pitch_class_index(from_pc)) % 12


def spell(pc: str, preference: str = "sharps") -> str:
	if preference == "flats":
		return to_flat(pc)
	return normalize_pitch_class(pc)


@dataclass(frozen=True)
class Interval:
	"""A musical interval such as a minor third or a perfect twelfth.

	Equality and hashing use quality and number only; the other fields are
	derived. An impossible quality/number pair raises InvalidInterval.
	"""

	quality: str
	number: int
	semitones: int = field(init=False, compare=False, repr=False)
	is_compound: bool = field(init=False, compare=False, repr=False)
	simple_number: int = field(init=False, compare=False, repr=False)

	def __post_init__(self) -> None:
		number, quality = self.number, self.quality
		if isinstance(number, bool) or not isinstance(number, int):
			raise InvalidInterval(f"Interval number must be an integer: {number!r}")
		if number not in BASE_SEMITONES:
			raise InvalidInterval(f"Interval number out of range (1-15): {number}")
		if not isinstance(quality, str) or quality not in QUALITY_ABBREVIATIONS:
			raise InvalidInterval(f"Unknown interval quality: {quality!r}")
		if not Interval.is_valid_combination(quality, number):
			kind = "Perfect" if Interval.is_perfect_number(number) else "Imperfect"
			raise InvalidInterval(
				f"Invalid interval: {quality} {NUMBER_NAMES[number]}. {kind} intervals cannot have {quality} quality."
			)
		object.__setattr__(self, "is_compound", number > 8)
		object.__setattr__(self, "simple_number", Interval.simple_number_of(number))
		object.__setattr__(self, "semitones", self._calculate_semitones())

	@staticmethod
	def is_perfect_number(number: int) -> bool:
		return number in PERFECT_NUMBERS

	@staticmethod
	def is_valid_combination(quality: str, number: int) -> bool:
		if Interval.is_perfect_number(number):
			return quality in ("perfect", "diminished", "augmented")
		return quality in ("major", "minor", "diminished", "augmented")

	@staticmethod
	def simple_number_of(number: int) -> int:
		if number <= 8:
			return number
		simple = (number - 1) % 7 + 1
		# 15 folds to the octave, not to a unison
		return 8 if simple == 1 else simple

	def _calculate_semitones(self) -> int:
		base = BASE_SEMITONES[self.number]
		if self.quality == "minor":
			return base - 1
		if self.quality == "augmented":
			return base + 1
		if self.quality == "diminished":
			return base - (1 if Interval.is_perfect_number(self.number) else 2)
		return base

	def full_name(self) -> str:
		return f"{self.quality} {NUMBER_NAMES[self.number]}"

	def short_name(self) -> str:
		return f"{QUALITY_ABBREVIATIONS[self.quality]}{self.number}"

	def same_semitones(self, other: Interval) -> bool:
		return self.semitones == other.semitones

	def inversion(self) -> Interval:
		return Interval(INVERTED_QUALITY[self.quality], 9 - self.simple_number)

	def compound(self) -> Interval:
		if self.is_compound or self.number == 8:
			raise InvalidInterval("Cannot get compound of an already compound interval or octave")
		return Interval(self.quality, self.number + 7)

	def simple(self) -> Interval:
		if not self.is_compound:
			return self
		return Interval(self.quality, self.simple_number)

	@classmethod
	def from_short_name(cls, short_name: str) -> Interval:
		match = _SHORT_NAME_RE.match(short_name)
		if not match:
			raise InvalidInterval(f"Invalid interval short name: {short_name!r}")
		abbr, digits = match.groups()
		number = int(digits)
		if number < 1 or number > 15:
			raise InvalidInterval(f"Interval number out of range: {number}")
		return cls(ABBREVIATION_TO_QUALITY[abbr], number)

	@classmethod
	def from_semitones(cls, semitones: int, prefer_compound: bool = True) -> Interval:
		"""Common spelling for a distance of 0-24 semitones.

		The result always spans exactly the requested distance. With
		prefer_compound off, a compound spelling within an octave is
		simplified; anything wider than an octave stays compound.
		"""
		if isinstance(semitones, bool) or not isinstance(semitones, int):
			raise InvalidInterval(f"Semitones must be an integer: {semitones!r}")
		if semitones < 0 or semitones > 24:
			raise InvalidInterval(f"Semitones out of range (0-24): {semitones}")
		interval = cls.from_short_name(SEMITONE_TO_COMMON[semitones])
		if not prefer_compound and interval.is_compound and semitones <= 12:
			return interval.simple()
		return interval

	def __repr__(self) -> str:
		return f"Interval({self.short_name()}: {self.full_name()}, {self.semitones} semitones)"


def transpose_pitch_class(root: str, interval: Interval) -> PitchClass:
	return pitch_class_from_index(pitch_class_index(root) + interval.semitones)


def _intervals(*names: str) -> List[Interval]:
	return [Interval.from_short_name(n) for n in names]


SIMPLE_INTERVALS: List[Interval] = _intervals(
	"P1",
	"m2", "M2", "A2",
	"d3", "m3", "M3", "A3",
	"d4", "P4", "A4",
	"d5", "P5", "A5",
	"d6", "m6", "M6", "A6",
	"d7", "m7", "M7", "A7",
	"d8", "P8", "A8",
)

COMPOUND_INTERVALS: List[Interval] = _intervals(
	"m9", "M9", "A9",
	"d10", "m10", "M10", "A10",
	"d11", "P11", "A11",
	"d12", "P12", "A12",
	"d13", "m13", "M13", "A13",
	"d14", "m14", "M14", "A14",
	"d15", "P15", "A15",
)

ALL_INTERVALS: List[Interval] = SIMPLE_INTERVALS + COMPOUND_INTERVALS

COMMON_INTERVALS: List[Interval] = _intervals(
	"P1", "m2", "M2", "m3", "M3", "P4", "A4", "d5", "P5", "m6", "M6", "m7", "M7", "P8",
)


@dataclass(frozen=True)
class Note:
	"""A pitch sounding at a particular string and fret.

	The pitch class is stored in its sharp spelling, so two notes are equal
	when they sound the same pitch at the same position.
	"""

	pitch_class: str
	octave: int
	string: int
	fret: int
	midi_number: int = field(init=False, compare=False, repr=False)

	def __post_init__(self) -> None:
		pc = normalize_pitch_class(self.pitch_class)
		object.__setattr__(self, "pitch_class", pc)
		object.__setattr__(self, "midi_number", (self.octave + 1) * 12 + CHROMATIC_SHARPS.index(pc))

	@classmethod
	def from_midi_number(cls, midi_number: int, string: int, fret: int) -> Note:
		return cls(CHROMATIC_SHARPS[midi_number % 12], midi_number // 12 - 1, string, fret)

	@property
	def position(self) -> Tuple[int, int]:
		return (self.string, self.fret)

	@property
	def position_id(self) -> str:
		return position_id(self.string, self.fret)

	@property
	def sharp_name(self) -> str:
		return self.pitch_class

	@property
	def flat_name(self) -> str:
		return SHARP_TO_FLAT[self.pitch_class]

	def display_name(self, preference: str = "sharps") -> str:
		return self.flat_name if preference == "flats" else self.sharp_name

	def full_name(self, preference: str = "sharps") -> str:
		return f"{self.display_name(preference)}{self.octave}"

	def is_enharmonic_with(self, name: str) -> bool:
		return are_enharmonic(self.pitch_class, name)

	def same_position(self, other: Note) -> bool:
		return self.string == other.string and self.fret == other.fret

	def same_pitch(self, other: Note) -> bool:
		return self.midi_number == other.midi_number

	def same_pitch_class(self, other: Note) -> bool:
		return self.pitch_class == other.pitch_class

	def transpose_by(self, semitones: int) -> Tuple[PitchClass, int]:
		midi = self.midi_number + semitones
		return CHROMATIC_SHARPS[midi % 12], midi // 12 - 1

	def __repr__(self) -> str:
		return f"Note({self.full_name()}, string={self.string}, fret={self.fret})"


def position_id(string: int, fret: int) -> str:
	return f"s{string}f{fret}"


_POSITION_ID_RE = re.compile(r"^s(\d+)f(\d+)$")


def parse_position_id(pid: str) -> Optional[Tuple[int, int]]:
	match = _POSITION_ID_RE.match(pid)
	if not match:
		return None
	return int(match.group(1)), int(match.group(2))
