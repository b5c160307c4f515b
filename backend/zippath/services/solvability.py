"""
Zip Path - Solvability & Level Validation

verify_solvable(): независимая проверка что стены не отрезают числа друг от друга.
validate_level(): проверка структуры уровня на границе хранения (файлы уровней).
"""

import logging
from collections import deque
from typing import Dict, List, Optional, Set

from ..schemas import Level
from .grid import Pos, WallKey, build_wall_set, in_bounds, is_blocked, neighbors


logger = logging.getLogger(__name__)


# ============================================
# BFS SEGMENT SEARCH
# ============================================

def find_segment(
    start: Pos,
    end: Pos,
    rows: int,
    cols: int,
    wall_set: Set[WallKey],
    visited: Set[Pos],
) -> Optional[List[Pos]]:
    """
    Кратчайший путь start -> end в обход стен и уже занятых клеток.

    start может лежать в visited (это конец предыдущего сегмента).
    Returns:
        Список клеток от start до end включительно или None.
    """
    queue = deque([start])
    came_from: Dict[Pos, Optional[Pos]] = {start: None}

    while queue:
        pos = queue.popleft()

        if pos == end:
            segment = []
            node: Optional[Pos] = pos
            while node is not None:
                segment.append(node)
                node = came_from[node]
            segment.reverse()
            return segment

        for nxt in neighbors(pos, rows, cols):
            if nxt in came_from or nxt in visited:
                continue
            if is_blocked(wall_set, pos, nxt):
                continue
            came_from[nxt] = pos
            queue.append(nxt)

    return None


# ============================================
# SOLVABILITY
# ============================================

def verify_solvable(level: Level) -> bool:
    """
    Проверяет что каждое число i соединимо с i+1.

    Сегменты ищутся по очереди, клетки пройденных сегментов
    становятся непроходимыми для следующих.

    Финальная проверка len(visited) <= total_cells всегда истинна:
    покрытие всего поля здесь НЕ гарантируется. Это поведение оставлено
    как есть, ужесточение изменит распределение принимаемых уровней.
    """
    positions: Dict[int, Pos] = {
        clue.value: (clue.row, clue.col) for clue in level.initial_values
    }
    wall_set = build_wall_set(level.walls)
    visited: Set[Pos] = set()

    for value in range(1, level.max_number + 1):
        current = positions[value]

        if value > 1:
            segment = find_segment(
                positions[value - 1], current,
                level.rows, level.cols, wall_set, visited,
            )
            if segment is None:
                logger.debug("Level %s: clue %d unreachable from %d", level.id, value, value - 1)
                return False

            # Последняя клетка сегмента добавится ниже
            visited.update(segment[:-1])

        visited.add(current)

    return len(visited) <= level.total_cells


# ============================================
# VALIDATION
# ============================================

def validate_level(level: Level) -> Dict:
    """Валидирует структуру уровня (предусловия движка)."""
    errors = []

    values = sorted(clue.value for clue in level.initial_values)
    if not values:
        errors.append("Level has no clues")
    elif values != list(range(1, len(values) + 1)):
        errors.append(f"Clue values are not contiguous from 1: {values}")

    seen: Set[Pos] = set()
    for clue in level.initial_values:
        pos = (clue.row, clue.col)
        if not in_bounds(pos, level.rows, level.cols):
            errors.append(f"Clue {clue.value} out of bounds at {pos}")
        if pos in seen:
            errors.append(f"Duplicate clue position {pos}")
        seen.add(pos)

    for wall in level.walls:
        anchor = (wall.row, wall.col)
        if wall.orientation == "horizontal":
            other = (wall.row + 1, wall.col)
        else:
            other = (wall.row, wall.col + 1)
        if not in_bounds(anchor, level.rows, level.cols) or not in_bounds(other, level.rows, level.cols):
            errors.append(f"Wall {wall.orientation} at {anchor} is outside the grid")

    return {
        "valid": len(errors) == 0,
        "errors": errors,
    }
