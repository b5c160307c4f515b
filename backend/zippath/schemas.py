"""
Zip Path - Pydantic Schemas

Все схемы в одном файле: модели головоломки (Level, GameState)
и схемы запросов/ответов API.
"""

from datetime import datetime
from typing import Optional, List, Tuple, Literal
from pydantic import BaseModel, ConfigDict, Field


Difficulty = Literal["easy", "medium", "hard"]
Orientation = Literal["horizontal", "vertical"]


# ============================================
# PUZZLE
# ============================================

class Coordinate(BaseModel):
    """Клетка поля (row, col)."""
    model_config = ConfigDict(frozen=True)

    row: int
    col: int


class Wall(BaseModel):
    """
    Стена между двумя соседними клетками.

    horizontal в (r, c) разделяет (r, c) и (r+1, c),
    vertical в (r, c) разделяет (r, c) и (r, c+1).
    """
    model_config = ConfigDict(frozen=True)

    row: int
    col: int
    orientation: Orientation


class ClueValue(BaseModel):
    """Число, выставленное генератором."""
    model_config = ConfigDict(frozen=True)

    row: int
    col: int
    value: int


class Cell(BaseModel):
    """Состояние клетки в текущей партии."""
    model_config = ConfigDict(frozen=True)

    row: int
    col: int
    value: Optional[int] = None
    is_fixed: bool = False
    visited_order: Optional[int] = None  # 1-based шаг пути, None если не посещена


class Level(BaseModel):
    """
    Неизменяемое описание головоломки.

    Предусловие для движка: значения initial_values образуют 1..max без
    пропусков и повторов, позиции различны и лежат внутри поля.
    Уровни от генератора или level_loader этому удовлетворяют.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    rows: int = Field(ge=1)
    cols: int = Field(ge=1)
    difficulty: Difficulty = "medium"
    seed: Optional[int] = None
    initial_values: Tuple[ClueValue, ...] = ()
    walls: Tuple[Wall, ...] = ()
    fallback: bool = False

    @property
    def total_cells(self) -> int:
        return self.rows * self.cols

    @property
    def max_number(self) -> int:
        return max((clue.value for clue in self.initial_values), default=0)


class GameState(BaseModel):
    """Снапшот партии. Каждый ход возвращает новый объект."""
    model_config = ConfigDict(frozen=True)

    level: Level
    grid: Tuple[Tuple[Cell, ...], ...]
    current_path: Tuple[Coordinate, ...]
    last_visited_number: int = 0
    is_complete: bool = False

    @property
    def head(self) -> Optional[Coordinate]:
        return self.current_path[-1] if self.current_path else None

    def cell_at(self, coord: Coordinate) -> Cell:
        return self.grid[coord.row][coord.col]


# ============================================
# GAME API
# ============================================

class NewGameRequest(BaseModel):
    """Запрос новой партии."""
    difficulty: Difficulty = "medium"
    rows: Optional[int] = Field(default=None, ge=1)
    cols: Optional[int] = Field(default=None, ge=1)
    seed: Optional[int] = Field(default=None, ge=0)
    level_number: Optional[int] = Field(default=None, ge=1)


class MovesRequest(BaseModel):
    """Упорядоченная серия ходов (после интерполяции на клиенте)."""
    moves: List[Coordinate]


class GameSessionResponse(BaseModel):
    """Ответ с состоянием партии."""
    session_id: str
    state: GameState
    accepted: Optional[bool] = None
    accepted_count: Optional[int] = None


# ============================================
# SCORES
# ============================================

class ScoreSubmitRequest(BaseModel):
    """Запрос сохранения результата."""
    session_id: str
    player_name: str = Field(min_length=1)
    time_seconds: int


class ScoreSubmitResponse(BaseModel):
    """Ответ сохранения результата."""
    recorded: bool
    difficulty: Difficulty
    time_seconds: int
    best_time: Optional[int] = None
    is_best: bool = False


class ScoreEntry(BaseModel):
    """Запись лидерборда."""
    rank: int
    player_name: str
    time_seconds: int
    created_at: datetime


class BestTimeResponse(BaseModel):
    """Лучшее время по сложности."""
    difficulty: Difficulty
    best_time: Optional[int] = None


class LeaderboardResponse(BaseModel):
    """Лидерборд по сложности."""
    difficulty: Difficulty
    best_time: Optional[int] = None
    scores: List[ScoreEntry]
