from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterator, List, NamedTuple, Optional, Set, Tuple
from urllib.parse import quote, unquote

from .theory import Note, parse_position_id, position_id

logger = logging.getLogger(__name__)

MIN_STRING, MAX_STRING = 1, 6
MIN_FRET, MAX_FRET = 0, 24
SERIALIZATION_VERSION = 1


class ZoneFormatError(ValueError):
	pass


class NotePosition(NamedTuple):
	string: int
	fret: int

	@property
	def position_id(self) -> str:
		return position_id(self.string, self.fret)


def is_valid_position(string: Any, fret: Any) -> bool:
	for v in (string, fret):
		if isinstance(v, bool) or not isinstance(v, int):
			return False
	return MIN_STRING <= string <= MAX_STRING and MIN_FRET <= fret <= MAX_FRET


class HighlightZone:
	"""A named set of fretboard positions.

	Used both as the pool of candidate roots and as the region where answers
	are accepted. Positions only enter or leave through add_note/remove_note;
	enumeration is always ordered by string, then fret.
	"""

	def __init__(self, name: Optional[str] = None) -> None:
		self.name = name
		self._positions: Set[Tuple[int, int]] = set()

	def add_note(self, string: int, fret: int) -> bool:
		if not is_valid_position(string, fret):
			return False
		key = (string, fret)
		if key in self._positions:
			return False
		self._positions.add(key)
		return True

	def add(self, note: Note) -> bool:
		return self.add_note(note.string, note.fret)

	def remove_note(self, string: int, fret: int) -> bool:
		key = (string, fret)
		if key not in self._positions:
			return False
		self._positions.remove(key)
		return True

	def discard(self, note: Note) -> bool:
		return self.remove_note(note.string, note.fret)

	def contains_note(self, string: int, fret: int) -> bool:
		return (string, fret) in self._positions

	def contains(self, note: Note) -> bool:
		return self.contains_note(note.string, note.fret)

	def __contains__(self, item: object) -> bool:
		if isinstance(item, Note):
			return self.contains(item)
		if isinstance(item, tuple) and len(item) == 2:
			return item in self._positions
		return False

	def all_notes(self) -> List[NotePosition]:
		return [NotePosition(s, f) for s, f in sorted(self._positions)]

	def all_position_ids(self) -> List[str]:
		return [p.position_id for p in self.all_notes()]

	def __iter__(self) -> Iterator[NotePosition]:
		return iter(self.all_notes())

	def size(self) -> int:
		return len(self._positions)

	def __len__(self) -> int:
		return len(self._positions)

	def is_empty(self) -> bool:
		return not self._positions

	def clear(self) -> None:
		self._positions.clear()

	def clone(self) -> HighlightZone:
		copy = HighlightZone(self.name)
		copy._positions = set(self._positions)
		return copy

	def merge(self, other: HighlightZone) -> None:
		self._positions |= other._positions

	def intersection(self, other: HighlightZone) -> HighlightZone:
		result = HighlightZone()
		result._positions = self._positions & other._positions
		return result

	def equals(self, other: HighlightZone) -> bool:
		return self._positions == other._positions

	def __eq__(self, other: object) -> bool:
		if not isinstance(other, HighlightZone):
			return NotImplemented
		return self.equals(other)

	__hash__ = None  # type: ignore[assignment]

	def __repr__(self) -> str:
		return f"HighlightZone(name={self.name!r}, size={self.size()})"

	# serialization

	def to_dict(self) -> Dict[str, Any]:
		data: Dict[str, Any] = {"version": SERIALIZATION_VERSION}
		if self.name is not None:
			data["name"] = self.name
		data["positions"] = [{"string": p.string, "fret": p.fret} for p in self.all_notes()]
		return data

	@classmethod
	def from_dict(cls, data: Any) -> HighlightZone:
		if not isinstance(data, dict):
			raise ZoneFormatError("Invalid zone JSON: expected an object")
		version = data.get("version")
		if isinstance(version, bool) or not isinstance(version, int) or version < 1:
			raise ZoneFormatError("Invalid zone JSON: missing or invalid version")
		_warn_if_newer(version)
		positions = data.get("positions")
		if not isinstance(positions, list):
			raise ZoneFormatError("Invalid zone JSON: positions must be an array")
		name = data.get("name")
		zone = cls(name if isinstance(name, str) else None)
		for pos in positions:
			if not isinstance(pos, dict):
				raise ZoneFormatError("Invalid zone JSON: position must be an object")
			string, fret = pos.get("string"), pos.get("fret")
			zone._add_strict(string, fret, "Invalid zone JSON")
		return zone

	def to_json(self, pretty: bool = False) -> str:
		return json.dumps(self.to_dict(), indent=2 if pretty else None)

	@classmethod
	def from_json(cls, text: str) -> HighlightZone:
		try:
			data = json.loads(text)
		except json.JSONDecodeError as e:
			raise ZoneFormatError(f"Invalid zone JSON string: {e}") from e
		return cls.from_dict(data)

	def to_compact_string(self) -> str:
		name = quote(self.name, safe="") if self.name else ""
		return f"v{SERIALIZATION_VERSION}:{name}:{','.join(self.all_position_ids())}"

	@classmethod
	def from_compact_string(cls, text: str) -> HighlightZone:
		parts = text.split(":", 2)
		if len(parts) != 3 or not parts[0].startswith("v") or not parts[0][1:].isdigit():
			raise ZoneFormatError("Invalid compact zone string: wrong format")
		version = int(parts[0][1:])
		if version < 1:
			raise ZoneFormatError("Invalid compact zone string: invalid version")
		_warn_if_newer(version)
		zone = cls(unquote(parts[1]) if parts[1] else None)
		if parts[2]:
			for pid in parts[2].split(","):
				pos = parse_position_id(pid)
				if pos is None:
					raise ZoneFormatError(f"Invalid compact zone string: invalid position format {pid!r}")
				zone._add_strict(pos[0], pos[1], "Invalid compact zone string")
		return zone

	def _add_strict(self, string: Any, fret: Any, prefix: str) -> None:
		if isinstance(string, bool) or isinstance(fret, bool) or not isinstance(string, int) or not isinstance(fret, int):
			raise ZoneFormatError(f"{prefix}: position must have integer string and fret")
		if not is_valid_position(string, fret):
			raise ZoneFormatError(f"{prefix}: position ({string}, {fret}) is out of bounds")
		# duplicates are tolerated
		self.add_note(string, fret)


def _warn_if_newer(version: int) -> None:
	if version > SERIALIZATION_VERSION:
		logger.warning(
			"Zone format version %d is newer than supported version %d; some features may not load",
			version,
			SERIALIZATION_VERSION,
		)
