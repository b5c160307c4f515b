import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..schemas import ClueValue, Level, Wall
from .solvability import validate_level

logger = logging.getLogger(__name__)

# Folder with level files (relative to this file)
LEVELS_DIR = Path(__file__).parent.parent / "levels"
VALID_DIFFICULTIES = {"easy", "medium", "hard"}
ORIENTATION_ALIASES = {
    "h": "horizontal",
    "horizontal": "horizontal",
    "v": "vertical",
    "vertical": "vertical",
}


def _normalize_orientation(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return ORIENTATION_ALIASES.get(value.strip().lower())


def _normalize_difficulty(value: Any) -> str:
    if isinstance(value, str):
        text = value.strip().lower()
        if text in {"normal", "mid"}:
            return "medium"
        if text in VALID_DIFFICULTIES:
            return text
    return "medium"


def _parse_clue(raw: Any) -> Optional[ClueValue]:
    # {"row": r, "col": c, "value": v} or [r, c, v]
    try:
        if isinstance(raw, dict):
            return ClueValue(row=int(raw["row"]), col=int(raw["col"]), value=int(raw["value"]))
        if isinstance(raw, list) and len(raw) == 3:
            return ClueValue(row=int(raw[0]), col=int(raw[1]), value=int(raw[2]))
    except (KeyError, TypeError, ValueError):
        return None
    return None


def _parse_wall(raw: Any) -> Optional[Wall]:
    # {"row": r, "col": c, "orientation": "horizontal"} or [r, c, "h"]
    try:
        if isinstance(raw, dict):
            row, col, orientation = raw["row"], raw["col"], raw.get("orientation")
        elif isinstance(raw, list) and len(raw) == 3:
            row, col, orientation = raw
        else:
            return None
        orientation = _normalize_orientation(orientation)
        if orientation is None:
            return None
        return Wall(row=int(row), col=int(col), orientation=orientation)
    except (KeyError, TypeError, ValueError):
        return None


def _parse_list(raw_data: Dict[str, Any], *keys: str) -> List[Any]:
    for key in keys:
        value = raw_data.get(key)
        if isinstance(value, list):
            return value
    return []


def level_from_dict(raw_data: Dict[str, Any], fallback_id: str = "") -> Level:
    """Build a Level from persisted JSON (snake_case or camelCase keys)."""
    clues = [c for c in (_parse_clue(raw) for raw in _parse_list(raw_data, "initial_values", "initialValues")) if c]
    walls = [w for w in (_parse_wall(raw) for raw in _parse_list(raw_data, "walls")) if w]

    seed = raw_data.get("seed")
    return Level(
        id=str(raw_data.get("id") or fallback_id),
        rows=int(raw_data.get("rows", 6)),
        cols=int(raw_data.get("cols", 6)),
        difficulty=_normalize_difficulty(raw_data.get("difficulty")),
        seed=int(seed) if seed is not None else None,
        initial_values=clues,
        walls=walls,
        fallback=bool(raw_data.get("fallback", False)),
    )


def level_file_path(level_num: int, levels_dir: Optional[Path] = None) -> Path:
    return (levels_dir or LEVELS_DIR) / f"level_{level_num}.json"


def save_level_to_file(level: Level, level_num: int, levels_dir: Optional[Path] = None) -> Path:
    """Write level as snake_case JSON."""
    path = level_file_path(level_num, levels_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(level.model_dump_json(indent=2))
    return path


def load_level_from_file(level_num: int, levels_dir: Optional[Path] = None) -> Optional[Level]:
    """Load, normalize and validate a persisted level."""
    base_dir = levels_dir or LEVELS_DIR

    possible_names = [f"{level_num}.json", f"level_{level_num}.json"]
    file_path = None
    for name in possible_names:
        temp_path = base_dir / name
        if temp_path.exists():
            file_path = temp_path
            break

    if not file_path:
        logger.warning("Level file not found for level %s", level_num)
        return None

    try:
        with open(file_path, "r", encoding="utf-8") as f:
            raw_data = json.load(f)
        level = level_from_dict(raw_data, fallback_id=f"level_{level_num}")
    except (OSError, json.JSONDecodeError, ValidationError, AttributeError, TypeError, ValueError) as e:
        logger.error("Error parsing level file %s: %s", file_path, e)
        return None

    validation = validate_level(level)
    if not validation["valid"]:
        logger.error("Level file %s is malformed: %s", file_path, "; ".join(validation["errors"]))
        return None

    logger.debug(
        "Level %s loaded: %dx%d clues=%d walls=%d",
        level_num, level.rows, level.cols, len(level.initial_values), len(level.walls),
    )
    return level
