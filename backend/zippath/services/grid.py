"""
Zip Path - Grid Helpers

Геометрия поля: соседи, границы, стены между клетками.
Внутри сервисов клетка — это кортеж (row, col).
"""

from typing import Iterable, List, Optional, Set, Tuple

from ..schemas import Wall


Pos = Tuple[int, int]
WallKey = Tuple[int, int, str]

# Только ортогональные направления: поле 4-связное
DIRECTIONS: List[Pos] = [
    (-1, 0),  # up
    (1, 0),   # down
    (0, -1),  # left
    (0, 1),   # right
]


def in_bounds(pos: Pos, rows: int, cols: int) -> bool:
    """Проверяет что клетка в границах поля."""
    return 0 <= pos[0] < rows and 0 <= pos[1] < cols


def neighbors(pos: Pos, rows: int, cols: int) -> List[Pos]:
    """Ортогональные соседи в границах поля."""
    result = []
    for dr, dc in DIRECTIONS:
        nxt = (pos[0] + dr, pos[1] + dc)
        if in_bounds(nxt, rows, cols):
            result.append(nxt)
    return result


def are_adjacent(a: Pos, b: Pos) -> bool:
    """Manhattan distance ровно 1."""
    return abs(a[0] - b[0]) + abs(a[1] - b[1]) == 1


def wall_key_between(a: Pos, b: Pos) -> Optional[WallKey]:
    """
    Ключ стены, которая разделила бы две соседние клетки.

    Стена привязана к верхней/левой клетке пары.
    Для несоседних клеток возвращает None.
    """
    if not are_adjacent(a, b):
        return None
    if a[1] == b[1]:
        return (min(a[0], b[0]), a[1], "horizontal")
    return (a[0], min(a[1], b[1]), "vertical")


def wall_key(wall: Wall) -> WallKey:
    return (wall.row, wall.col, wall.orientation)


def build_wall_set(walls: Iterable[Wall]) -> Set[WallKey]:
    """Множество стен для O(1) проверки."""
    return {wall_key(w) for w in walls}


def path_edge_set(path: List[Pos]) -> Set[WallKey]:
    """Все рёбра, по которым проходит путь, в виде ключей стен."""
    edges = set()
    for i in range(len(path) - 1):
        key = wall_key_between(path[i], path[i + 1])
        if key is not None:
            edges.add(key)
    return edges


def is_blocked(wall_set: Set[WallKey], a: Pos, b: Pos) -> bool:
    """Есть ли стена между двумя соседними клетками."""
    key = wall_key_between(a, b)
    return key is not None and key in wall_set
