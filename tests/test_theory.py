import pickle

import pytest

from fretquiz.theory import (
	ALL_INTERVALS,
	COMMON_INTERVALS,
	COMPOUND_INTERVALS,
	SIMPLE_INTERVALS,
	Interval,
	InvalidInterval,
	Note,
	are_enharmonic,
	enharmonic_spellings,
	normalize_pitch_class,
	parse_position_id,
	semitones_between,
	to_flat,
	transpose_pitch_class,
)


def test_interval_table_sizes():
	assert len(SIMPLE_INTERVALS) == 25
	assert len(COMPOUND_INTERVALS) == 24
	assert len(ALL_INTERVALS) == 49
	assert len(COMMON_INTERVALS) == 14


def test_semitone_counts():
	assert Interval("minor", 3).semitones == 3
	assert Interval("diminished", 5).semitones == 6
	assert Interval("augmented", 4).semitones == 6
	assert Interval("diminished", 7).semitones == 9
	assert Interval("perfect", 12).semitones == 19
	assert Interval("perfect", 15).semitones == 24
	assert Interval("major", 9).is_compound
	assert not Interval("perfect", 8).is_compound


def test_invalid_combinations_raise():
	with pytest.raises(InvalidInterval):
		Interval("major", 5)
	with pytest.raises(InvalidInterval):
		Interval("perfect", 3)
	with pytest.raises(InvalidInterval):
		Interval("major", 16)
	with pytest.raises(InvalidInterval):
		Interval.from_short_name("X3")


def test_short_name_round_trip_and_names():
	for interval in ALL_INTERVALS:
		assert Interval.from_short_name(interval.short_name()) == interval
	assert Interval("minor", 10).full_name() == "minor tenth"
	assert Interval("augmented", 4).short_name() == "A4"


def test_simple_intervals_invert_to_an_octave():
	for interval in SIMPLE_INTERVALS:
		if interval.number == 8:
			continue
		assert interval.semitones + interval.inversion().semitones == 12
	assert Interval("major", 3).inversion() == Interval("minor", 6)
	assert Interval("perfect", 4).inversion() == Interval("perfect", 5)
	assert Interval("augmented", 4).inversion() == Interval("diminished", 5)


def test_compound_and_simple():
	assert Interval("major", 3).compound() == Interval("major", 10)
	assert Interval("major", 10).simple() == Interval("major", 3)
	assert Interval("perfect", 15).simple_number == 8
	with pytest.raises(InvalidInterval):
		Interval("perfect", 8).compound()
	with pytest.raises(InvalidInterval):
		Interval("major", 9).compound()


def test_from_semitones():
	assert Interval.from_semitones(6) == Interval("augmented", 4)
	assert Interval.from_semitones(14) == Interval("major", 9)
	assert Interval.from_semitones(14, prefer_compound=False) == Interval("major", 9)
	for n in range(25):
		for prefer in (True, False):
			assert Interval.from_semitones(n, prefer_compound=prefer).semitones == n
	with pytest.raises(InvalidInterval):
		Interval.from_semitones(25)
	with pytest.raises(InvalidInterval):
		Interval.from_semitones(6.5)


def test_interval_number_must_be_an_integer():
	with pytest.raises(InvalidInterval):
		Interval("major", 3.0)
	with pytest.raises(InvalidInterval):
		Interval("perfect", True)
	with pytest.raises(InvalidInterval):
		Interval(None, 3)


def test_interval_is_immutable_and_picklable():
	interval = Interval("minor", 7)
	with pytest.raises(AttributeError):
		interval.number = 3
	assert pickle.loads(pickle.dumps(interval)) == interval


def test_enharmonic_equivalence():
	assert normalize_pitch_class("Db") == "C#"
	assert to_flat("A#") == "Bb"
	assert are_enharmonic("Gb", "F#")
	assert enharmonic_spellings("E") == ["E"]
	assert enharmonic_spellings("D#") == ["D#", "Eb"]
	with pytest.raises(ValueError):
		normalize_pitch_class("H")


def test_transpose_wraps_the_octave():
	assert transpose_pitch_class("C", Interval("major", 3)) == "E"
	assert transpose_pitch_class("A", Interval("minor", 3)) == "C"
	assert transpose_pitch_class("C", Interval("major", 10)) == "E"
	assert semitones_between("B", "C") == 1


def test_circle_of_fifths_visits_every_pitch_class():
	fifth = Interval("perfect", 5)
	pc = "C"
	seen = []
	for _ in range(12):
		seen.append(pc)
		pc = transpose_pitch_class(pc, fifth)
	assert pc == "C"
	assert len(set(seen)) == 12


def test_note_identity():
	a = Note("C", 4, 2, 1)
	b = Note("C", 4, 3, 5)
	assert a.midi_number == 60
	assert a.same_pitch(b)
	assert not a.same_position(b)
	assert a != b
	assert a.position_id == "s2f1"
	assert Note("Db", 4, 1, 9).flat_name == "Db"
	assert Note.from_midi_number(64, 1, 0).full_name() == "E4"
	assert Note("A#", 3, 1, 6).full_name("flats") == "Bb3"
	assert parse_position_id("s6f12") == (6, 12)
	assert parse_position_id("6:12") is None


def test_enharmonic_intervals_share_semitones():
	assert Interval("augmented", 4).same_semitones(Interval("diminished", 5))
	assert Interval("augmented", 2).semitones == Interval("minor", 3).semitones == 3


def test_note_value_semantics():
	flat = Note("Db", 4, 1, 9)
	sharp = Note("C#", 4, 1, 9)
	assert flat == sharp
	assert flat.pitch_class == "C#"
	assert len({flat, sharp, Note("C#", 4, 2, 14)}) == 2
	assert pickle.loads(pickle.dumps(flat)) == flat
	with pytest.raises(AttributeError):
		flat.fret = 3
