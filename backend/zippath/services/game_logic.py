"""
Zip Path - Game Logic (state machine)

initialize_game() -> GameState, затем только apply_move().
Нелегальный ход не ошибка: apply_move() возвращает тот же снапшот.

current_path и visited_order на сетке меняются только здесь,
обе формы синхронизируются в двух операциях: шаг вперёд и откат.
"""

from typing import Iterable, List, Optional, Tuple

from ..schemas import Cell, Coordinate, GameState, Level
from .grid import are_adjacent, build_wall_set, in_bounds, is_blocked


Grid = Tuple[Tuple[Cell, ...], ...]


# ============================================
# INIT
# ============================================

def initialize_game(level: Level) -> GameState:
    """
    Создаёт партию: пустая сетка, числа из уровня, число 1 посещено первым.

    Если числа 1 нет (нарушение предусловия), путь пустой и
    last_visited_number == 0: такой партией нельзя сыграть.
    """
    clues = {(clue.row, clue.col): clue.value for clue in level.initial_values}
    start = next((clue for clue in level.initial_values if clue.value == 1), None)

    grid = tuple(
        tuple(
            Cell(
                row=r,
                col=c,
                value=clues.get((r, c)),
                is_fixed=(r, c) in clues,
                visited_order=1 if start is not None and (start.row, start.col) == (r, c) else None,
            )
            for c in range(level.cols)
        )
        for r in range(level.rows)
    )

    current_path: Tuple[Coordinate, ...] = ()
    last_visited_number = 0
    if start is not None:
        current_path = (Coordinate(row=start.row, col=start.col),)
        last_visited_number = 1

    return GameState(
        level=level,
        grid=grid,
        current_path=current_path,
        last_visited_number=last_visited_number,
        is_complete=_is_complete(level, len(current_path), last_visited_number),
    )


def _is_complete(level: Level, path_length: int, last_visited_number: int) -> bool:
    """Всё поле покрыто и достигнуто максимальное число."""
    return (
        path_length == level.total_cells
        and level.max_number > 0
        and last_visited_number == level.max_number
    )


# ============================================
# VALIDATION
# ============================================

def _is_rewind_target(state: GameState, target: Coordinate) -> bool:
    """Откат допускается только на предпоследнюю клетку пути."""
    return len(state.current_path) >= 2 and state.current_path[-2] == target


def is_valid_move(state: GameState, target: Coordinate) -> bool:
    """Проверяет ход без изменения состояния."""
    if not state.current_path or state.is_complete:
        return False

    level = state.level
    target_pos = (target.row, target.col)
    if not in_bounds(target_pos, level.rows, level.cols):
        return False

    # Клетка уже в пути: только откат на один шаг
    if target in state.current_path:
        return _is_rewind_target(state, target)

    head = state.head
    head_pos = (head.row, head.col)
    if not are_adjacent(head_pos, target_pos):
        return False

    cell = state.cell_at(target)
    if cell.visited_order is not None:
        return False

    if is_blocked(build_wall_set(level.walls), head_pos, target_pos):
        return False

    # Числа строго по порядку
    if cell.is_fixed and cell.value is not None:
        if cell.value != state.last_visited_number + 1:
            return False

    return True


# ============================================
# MOVES
# ============================================

def _replace_cells(grid: Grid, updates: dict) -> Grid:
    """Новая сетка с заменой visited_order у указанных клеток."""
    rows = []
    for r, row in enumerate(grid):
        if any(pos[0] == r for pos in updates):
            row = tuple(
                cell.model_copy(update={"visited_order": updates[(r, c)]})
                if (r, c) in updates else cell
                for c, cell in enumerate(row)
            )
        rows.append(row)
    return tuple(rows)


def _rewind(state: GameState, target: Coordinate) -> GameState:
    cut = state.current_path.index(target) + 1
    new_path = state.current_path[:cut]
    removed = state.current_path[cut:]

    new_grid = _replace_cells(state.grid, {(p.row, p.col): None for p in removed})

    last_visited = 0
    for p in new_path:
        cell = new_grid[p.row][p.col]
        if cell.is_fixed and cell.value is not None and cell.value > last_visited:
            last_visited = cell.value

    return state.model_copy(update={
        "grid": new_grid,
        "current_path": new_path,
        "last_visited_number": last_visited,
        "is_complete": False,
    })


def apply_move(state: GameState, target: Coordinate) -> GameState:
    """
    Применяет ход.

    - завершённая партия не меняется
    - предпоследняя клетка пути -> откат на один шаг
    - нелегальный ход -> тот же объект state
    - иначе клетка добавляется в конец пути
    """
    if state.is_complete:
        return state

    if _is_rewind_target(state, target):
        return _rewind(state, target)

    if not is_valid_move(state, target):
        return state

    order = len(state.current_path) + 1
    new_grid = _replace_cells(state.grid, {(target.row, target.col): order})
    new_path = state.current_path + (target,)

    cell = new_grid[target.row][target.col]
    last_visited = state.last_visited_number
    if cell.is_fixed and cell.value is not None:
        last_visited = cell.value

    return state.model_copy(update={
        "grid": new_grid,
        "current_path": new_path,
        "last_visited_number": last_visited,
        "is_complete": _is_complete(state.level, len(new_path), last_visited),
    })


def replay_moves(
    level: Level,
    moves: Iterable[Coordinate],
    state: Optional[GameState] = None,
) -> GameState:
    """Состояние партии строго по порядку ходов."""
    if state is None:
        state = initialize_game(level)
    for move in moves:
        state = apply_move(state, move)
    return state


def accepted_moves(state: GameState, moves: Iterable[Coordinate]) -> Tuple[GameState, List[Coordinate]]:
    """Применяет ходы по порядку и возвращает те, что изменили состояние."""
    accepted = []
    for move in moves:
        new_state = apply_move(state, move)
        if new_state is not state:
            accepted.append(move)
        state = new_state
    return state, accepted
