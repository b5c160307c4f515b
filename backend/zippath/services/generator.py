"""
Zip Path - Level Generator (Server)

Пайплайн генерации:
1. Случайный гамильтонов путь (рандомизированный DFS с лимитом шагов;
   если поиск не уложился в лимит, змейка из случайного угла)
2. Числа на позициях пути (1 — начало пути, max — конец)
3. Стены, не пересекающие рёбра пути
4. Проверка проходимости (verify_solvable)

Если за GENERATOR_MAX_ATTEMPTS попыток уровень не прошёл проверку,
отдаём уровень без стен (он заведомо проходим по своему пути).
"""

import logging
import math
import secrets
from fractions import Fraction
from typing import Dict, List, Optional, Tuple, Union

from ..config import settings
from ..schemas import ClueValue, Level, Wall
from .grid import Pos, neighbors, path_edge_set, wall_key_between
from .solvability import verify_solvable


logger = logging.getLogger(__name__)


# ============================================
# SEEDED RANDOM
# ============================================

class SeededRandom:
    """Детерминированный PRNG для воспроизводимости уровней."""

    def __init__(self, seed: int):
        self.seed = seed
        self._state = seed & 0x7FFFFFFF

    def next(self) -> float:
        """Возвращает число в [0, 1)."""
        self._state = (self._state * 1103515245 + 12345) & 0x7FFFFFFF
        return self._state / 0x80000000

    def next_int(self, min_val: int, max_val: int) -> int:
        """Возвращает целое число в диапазоне [min, max]."""
        if min_val > max_val:
            return min_val
        return min_val + int(self.next() * (max_val - min_val + 1))

    def shuffle(self, arr: list) -> list:
        """Fisher-Yates shuffle (возвращает копию)."""
        result = arr.copy()
        for i in range(len(result) - 1, 0, -1):
            j = self.next_int(0, i)
            result[i], result[j] = result[j], result[i]
        return result

    def choice(self, arr: list):
        """Случайный элемент массива."""
        if not arr:
            return None
        return arr[self.next_int(0, len(arr) - 1)]

    def token(self, length: int = 6) -> str:
        """Короткий base36 идентификатор."""
        alphabet = "0123456789abcdefghijklmnopqrstuvwxyz"
        return "".join(alphabet[self.next_int(0, 35)] for _ in range(length))


# ============================================
# DIFFICULTY
# ============================================

DIFFICULTY_CONFIG: Dict[str, Dict[str, Union[Fraction, float]]] = {
    "easy": {"clue_fraction": Fraction(1, 3), "wall_density": 0.03},
    "medium": {"clue_fraction": Fraction(1, 4), "wall_density": 0.05},
    "hard": {"clue_fraction": Fraction(1, 5), "wall_density": 0.08},
}


def get_difficulty_config(difficulty: str) -> Dict[str, Union[Fraction, float]]:
    """Параметры сложности: доля клеток с числами и плотность стен."""
    if difficulty not in DIFFICULTY_CONFIG:
        available = ", ".join(DIFFICULTY_CONFIG.keys())
        raise ValueError(f"Unknown difficulty: {difficulty}. Available: {available}")
    return DIFFICULTY_CONFIG[difficulty]


# ============================================
# HAMILTONIAN PATH (RANDOMIZED DFS)
# ============================================

def build_hamiltonian_path(
    rows: int,
    cols: int,
    rng: SeededRandom,
    step_budget: Optional[int] = None,
) -> Optional[List[Pos]]:
    """
    Строит путь, проходящий по каждой клетке ровно один раз.

    Старт выбирается случайно, порядок соседей перемешивается на каждом шаге,
    в тупике — откат. DFS итеративный (явный стек), поэтому не упирается
    в лимит рекурсии.

    Args:
        step_budget: максимум шагов вперёд; при превышении поиск
                     считается неудачным. None — без ограничения.

    Returns:
        Список клеток пути или None если путь не найден.
    """
    total = rows * cols
    start = (rng.next_int(0, rows - 1), rng.next_int(0, cols - 1))

    path: List[Pos] = [start]
    visited = {start}
    # Для каждой клетки пути: ещё не опробованные соседи
    candidates: List[List[Pos]] = [rng.shuffle(neighbors(start, rows, cols))]
    steps = 0

    while path:
        if len(path) == total:
            return path

        pending = candidates[-1]
        advanced = False

        while pending:
            nxt = pending.pop()
            if nxt in visited:
                continue

            steps += 1
            if step_budget is not None and steps > step_budget:
                logger.debug("Path search from %s exceeded step budget %d", start, step_budget)
                return None

            visited.add(nxt)
            path.append(nxt)
            candidates.append(rng.shuffle(neighbors(nxt, rows, cols)))
            advanced = True
            break

        if not advanced:
            visited.discard(path.pop())
            candidates.pop()

    return None


def build_serpentine_path(rows: int, cols: int, rng: SeededRandom) -> List[Pos]:
    """
    Конструктивный гамильтонов путь "змейкой" для любого поля.

    Змейка идёт по строкам или по столбцам и отражается по вертикали
    и горизонтали, так что начинается в случайном углу.
    """
    by_rows = rng.next() < 0.5
    flip_rows = rng.next() < 0.5
    flip_cols = rng.next() < 0.5

    path: List[Pos] = []
    if by_rows:
        for r in range(rows):
            order = range(cols) if r % 2 == 0 else range(cols - 1, -1, -1)
            path.extend((r, c) for c in order)
    else:
        for c in range(cols):
            order = range(rows) if c % 2 == 0 else range(rows - 1, -1, -1)
            path.extend((r, c) for r in order)

    return [
        (rows - 1 - r if flip_rows else r, cols - 1 - c if flip_cols else c)
        for r, c in path
    ]


# ============================================
# CLUES
# ============================================

def place_clues(
    path: List[Pos],
    fraction: Union[Fraction, float],
    rng: SeededRandom,
) -> List[Tuple[int, int]]:
    """
    Выбирает позиции пути под числа.

    Всегда берутся начало и конец пути, остальные — случайно,
    пока не наберётся floor(len(path) * fraction) различных индексов.

    Returns:
        [(path_index, value)] по возрастанию индекса, value = 1..n
    """
    target_count = math.floor(len(path) * fraction)

    indices = {0, len(path) - 1}
    while len(indices) < target_count and len(indices) < len(path):
        indices.add(rng.next_int(0, len(path) - 1))

    return [(path_idx, i + 1) for i, path_idx in enumerate(sorted(indices))]


def clues_to_values(path: List[Pos], clues: List[Tuple[int, int]]) -> List[ClueValue]:
    return [
        ClueValue(row=path[path_idx][0], col=path[path_idx][1], value=value)
        for path_idx, value in clues
    ]


# ============================================
# WALLS
# ============================================

def place_walls(
    rows: int,
    cols: int,
    path: List[Pos],
    density: float,
    rng: SeededRandom,
) -> List[Wall]:
    """
    Случайные стены между соседними клетками.

    Каждое внутреннее ребро получает стену с вероятностью density,
    кроме рёбер, по которым проходит path (известное решение не рвём).
    """
    used_edges = path_edge_set(path)
    walls: List[Wall] = []

    for r in range(rows):
        for c in range(cols):
            if r < rows - 1 and rng.next() < density:
                key = wall_key_between((r, c), (r + 1, c))
                if key not in used_edges:
                    walls.append(Wall(row=r, col=c, orientation="horizontal"))

            if c < cols - 1 and rng.next() < density:
                key = wall_key_between((r, c), (r, c + 1))
                if key not in used_edges:
                    walls.append(Wall(row=r, col=c, orientation="vertical"))

    return walls


# ============================================
# MAIN GENERATOR FUNCTION
# ============================================

def _build_path(
    rows: int,
    cols: int,
    rng: SeededRandom,
    step_budget: Optional[int],
    use_search: bool,
) -> Tuple[List[Pos], bool]:
    """
    Путь для очередной попытки.

    Returns:
        (path, use_search): после первой неудачи DFS дальше берётся
        только змейка, так что поиск тратит не больше одного step_budget.
    """
    if use_search:
        path = build_hamiltonian_path(rows, cols, rng, step_budget)
        if path:
            return path, True
        logger.debug("No hamiltonian path within budget on %dx%d, switching to serpentine", rows, cols)
    return build_serpentine_path(rows, cols, rng), False


def generate_level(
    rows: int,
    cols: int,
    difficulty: str = "medium",
    seed: Optional[int] = None,
    rng: Optional[SeededRandom] = None,
    max_attempts: Optional[int] = None,
    step_budget: Optional[int] = None,
) -> Level:
    """
    Генерирует проверенный уровень.

    При одинаковом seed результат одинаковый. Если seed не задан
    (и rng не передан), берётся случайный.

    Raises:
        ValueError: неизвестная сложность
    """
    config = get_difficulty_config(difficulty)

    if rng is None:
        if seed is None:
            seed = secrets.randbelow(2 ** 31)
        rng = SeededRandom(seed)

    if max_attempts is None:
        max_attempts = settings.GENERATOR_MAX_ATTEMPTS
    if step_budget is None:
        step_budget = settings.PATH_SEARCH_STEP_BUDGET

    use_search = True
    for attempt in range(1, max_attempts + 1):
        path, use_search = _build_path(rows, cols, rng, step_budget, use_search)

        clues = place_clues(path, config["clue_fraction"], rng)
        walls = place_walls(rows, cols, path, config["wall_density"], rng)

        level = Level(
            id=rng.token(),
            rows=rows,
            cols=cols,
            difficulty=difficulty,
            seed=seed,
            initial_values=clues_to_values(path, clues),
            walls=walls,
        )

        if verify_solvable(level):
            logger.info(
                "Generated %dx%d %s level on attempt %d (clues=%d, walls=%d)",
                rows, cols, difficulty, attempt, len(level.initial_values), len(level.walls),
            )
            return level

        logger.debug("Attempt %d: level not solvable, retrying", attempt)

    logger.warning(
        "Failed to generate solvable %dx%d %s level in %d attempts, falling back to no walls",
        rows, cols, difficulty, max_attempts,
    )
    return _generate_fallback_level(rows, cols, difficulty, seed, rng, step_budget, use_search)


def _generate_fallback_level(
    rows: int,
    cols: int,
    difficulty: str,
    seed: Optional[int],
    rng: SeededRandom,
    step_budget: Optional[int],
    use_search: bool,
) -> Level:
    """Уровень без стен: путь генерации сам является решением."""
    config = get_difficulty_config(difficulty)

    path, _ = _build_path(rows, cols, rng, step_budget, use_search)
    clues = place_clues(path, config["clue_fraction"], rng)

    return Level(
        id=rng.token(),
        rows=rows,
        cols=cols,
        difficulty=difficulty,
        seed=seed,
        initial_values=clues_to_values(path, clues),
        walls=[],
        fallback=True,
    )
