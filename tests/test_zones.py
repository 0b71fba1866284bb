import logging

import pytest

from fretquiz.theory import Note
from fretquiz.zones import HighlightZone, ZoneFormatError, is_valid_position


def _zone(*positions, name=None):
	zone = HighlightZone(name)
	for s, f in positions:
		zone.add_note(s, f)
	return zone


def test_add_remove_and_duplicates():
	zone = HighlightZone("box")
	assert zone.add_note(1, 3)
	assert not zone.add_note(1, 3)
	assert not zone.add_note(7, 0)
	assert not zone.add_note(1, 25)
	assert not zone.add_note(True, 3)
	assert zone.size() == 1
	assert zone.contains_note(1, 3)
	assert Note("G", 4, 1, 3) in zone
	assert zone.remove_note(1, 3)
	assert not zone.remove_note(1, 3)
	assert zone.is_empty()


def test_enumeration_is_sorted():
	zone = _zone((3, 2), (1, 5), (1, 0), (2, 7))
	assert zone.all_position_ids() == ["s1f0", "s1f5", "s2f7", "s3f2"]
	assert [tuple(p) for p in zone] == [(1, 0), (1, 5), (2, 7), (3, 2)]


def test_set_operations_do_not_mutate_inputs():
	a = _zone((1, 0), (1, 1))
	b = _zone((1, 1), (2, 2))
	common = a.intersection(b)
	assert common.all_position_ids() == ["s1f1"]
	assert a.size() == 2 and b.size() == 2

	copy = a.clone()
	copy.merge(b)
	assert copy.size() == 3
	assert a.size() == 2


def test_equality_ignores_name():
	assert _zone((1, 1), name="x").equals(_zone((1, 1), name="y"))
	assert _zone((1, 1)) == _zone((1, 1))
	assert _zone((1, 1)) != _zone((1, 2))


def test_json_serialization():
	zone = _zone((2, 3), (1, 0), name="Open")
	data = zone.to_dict()
	assert data == {"version": 1, "name": "Open", "positions": [{"string": 1, "fret": 0}, {"string": 2, "fret": 3}]}
	restored = HighlightZone.from_json(zone.to_json(pretty=True))
	assert restored.name == "Open"
	assert restored.equals(zone)


@pytest.mark.parametrize("text", [
	"not json",
	"[]",
	'{"positions": []}',
	'{"version": 1, "positions": {}}',
	'{"version": 1, "positions": [{"string": 9, "fret": 0}]}',
	'{"version": 1, "positions": [{"string": "1", "fret": 0}]}',
])
def test_json_rejects_malformed_input(text):
	with pytest.raises(ZoneFormatError):
		HighlightZone.from_json(text)


def test_json_tolerates_duplicates_and_warns_on_newer_version(caplog):
	with caplog.at_level(logging.WARNING, logger="fretquiz.zones"):
		zone = HighlightZone.from_dict({"version": 2, "positions": [{"string": 1, "fret": 1}, {"string": 1, "fret": 1}]})
	assert zone.size() == 1
	assert "newer" in caplog.text


def test_compact_string():
	zone = _zone((1, 0), (6, 12), name="My zone: A")
	text = zone.to_compact_string()
	assert text.startswith("v1:")
	assert text.endswith(":s1f0,s6f12")
	restored = HighlightZone.from_compact_string(text)
	assert restored.name == "My zone: A"
	assert restored.equals(zone)
	assert HighlightZone.from_compact_string("v1::").is_empty()
	with pytest.raises(ZoneFormatError):
		HighlightZone.from_compact_string("s1f0,s1f1")
	with pytest.raises(ZoneFormatError):
		HighlightZone.from_compact_string("v1:x:s1f0,bad")
	with pytest.raises(ZoneFormatError):
		HighlightZone.from_compact_string("v1:x:s0f1")


def test_is_valid_position():
	assert is_valid_position(6, 24)
	assert not is_valid_position(0, 0)
	assert not is_valid_position(1, 1.5)
