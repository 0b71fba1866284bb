from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from .zones import HighlightZone, ZoneFormatError

logger = logging.getLogger(__name__)


def _data_path() -> Path:
	home = Path.home()
	dir_ = home / ".fretquiz"
	dir_.mkdir(parents=True, exist_ok=True)
	return dir_ / "zones.json"


def _load_raw(path: Optional[Path] = None) -> Dict[str, Any]:
	p = path or _data_path()
	if not p.exists():
		return {}
	try:
		data = json.loads(p.read_text())
	except (OSError, json.JSONDecodeError):
		logger.warning("Ignoring unreadable zone library at %s", p, exc_info=True)
		return {}
	return data if isinstance(data, dict) else {}


def _save_raw(data: Dict[str, Any], path: Optional[Path] = None) -> None:
	p = path or _data_path()
	p.write_text(json.dumps(data, indent=2))


def list_zones(path: Optional[Path] = None) -> List[str]:
	return sorted(_load_raw(path).get("zones", {}))


def load_zone(name: str, path: Optional[Path] = None) -> Optional[HighlightZone]:
	obj = _load_raw(path).get("zones", {}).get(name)
	if obj is None:
		return None
	try:
		return HighlightZone.from_dict(obj)
	except ZoneFormatError:
		logger.warning("Skipping malformed saved zone %r", name, exc_info=True)
		return None


def save_zone(zone: HighlightZone, name: Optional[str] = None, path: Optional[Path] = None) -> str:
	key = name or zone.name
	if not key:
		raise ValueError("A zone needs a name to be saved")
	raw = _load_raw(path)
	zones = raw.setdefault("zones", {})
	if not isinstance(zones, dict):
		zones = raw["zones"] = {}
	data = zone.to_dict()
	data["name"] = key
	zones[key] = data
	_save_raw(raw, path)
	return key


def delete_zone(name: str, path: Optional[Path] = None) -> bool:
	raw = _load_raw(path)
	zones = raw.get("zones", {})
	if name not in zones:
		return False
	del zones[name]
	_save_raw(raw, path)
	return True
