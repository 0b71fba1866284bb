import pytest

from fretquiz.shapes import create_position_zone
from fretquiz.storage import delete_zone, list_zones, load_zone, save_zone


def test_save_load_delete(tmp_path):
	path = tmp_path / "zones.json"
	assert list_zones(path) == []
	zone = create_position_zone(3)
	assert save_zone(zone, path=path) == "Position 3"
	save_zone(create_position_zone(7), "Seventh", path=path)
	assert list_zones(path) == ["Position 3", "Seventh"]

	loaded = load_zone("Seventh", path=path)
	assert loaded.name == "Seventh"
	assert loaded.equals(create_position_zone(7))
	assert load_zone("missing", path=path) is None

	assert delete_zone("Seventh", path=path)
	assert not delete_zone("Seventh", path=path)
	assert list_zones(path) == ["Position 3"]


def test_unnamed_zone_needs_a_name(tmp_path):
	from fretquiz.zones import HighlightZone
	with pytest.raises(ValueError):
		save_zone(HighlightZone(), path=tmp_path / "zones.json")


def test_corrupt_files_are_ignored(tmp_path):
	path = tmp_path / "zones.json"
	path.write_text("{not json")
	assert list_zones(path) == []
	path.write_text('{"zones": {"bad": {"version": 1, "positions": [{"string": 40, "fret": 0}]}}}')
	assert list_zones(path) == ["bad"]
	assert load_zone("bad", path=path) is None
