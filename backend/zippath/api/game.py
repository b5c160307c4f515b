"""
Zip Path - Game API

Партия живёт в Redis как (уровень, принятые ходы).
Клиент шлёт ходы по одному или пачкой уже в нужном порядке
(интерполяция быстрых свайпов — на клиенте), сервер применяет их строго по очереди.
"""

import logging
from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from starlette.concurrency import run_in_threadpool

from ..config import settings
from ..database import get_redis
from ..middleware.security import limiter, game_rate_limit
from ..schemas import (
    Coordinate, Difficulty, GameSessionResponse, Level, MovesRequest, NewGameRequest,
)
from ..services.generator import generate_level
from ..services.level_loader import load_level_from_file
from ..services.sessions import GameSessionStore


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/game", tags=["game"])


# ============================================
# LEVEL CACHE (in-memory LRU)
# ============================================

@lru_cache(maxsize=256)
def _cached_generated_level(difficulty: str, seed: int, rows: int, cols: int) -> Level:
    """Одинаковые (difficulty, seed, rows, cols) дают одинаковый уровень."""
    return generate_level(rows, cols, difficulty, seed=seed)


@lru_cache(maxsize=256)
def _cached_level_file(level_num: int) -> Optional[Level]:
    """Файлы уровней не меняются в рантайме."""
    return load_level_from_file(level_num)


def get_cached_level_file(level_num: int) -> Optional[Level]:
    return _cached_level_file(level_num)


def _resolve_grid_size(rows: Optional[int], cols: Optional[int]) -> tuple[int, int]:
    rows = rows or settings.GRID_ROWS
    cols = cols or settings.GRID_COLS
    if rows > settings.MAX_GRID_SIZE or cols > settings.MAX_GRID_SIZE:
        raise HTTPException(
            status_code=400,
            detail=f"Grid size is limited to {settings.MAX_GRID_SIZE}x{settings.MAX_GRID_SIZE}",
        )
    return rows, cols


# ============================================
# DEPENDENCIES
# ============================================

async def get_session_store(redis=Depends(get_redis)) -> GameSessionStore:
    return GameSessionStore(redis)


# ============================================
# LEVELS
# ============================================

@router.get("/level", response_model=Level)
async def get_level(
    difficulty: Difficulty = "medium",
    seed: int = 0,
    rows: Optional[int] = None,
    cols: Optional[int] = None,
):
    """Детерминированный уровень по seed (для повторной игры и проверки)."""
    if seed < 0:
        raise HTTPException(status_code=400, detail="Invalid seed")
    rows, cols = _resolve_grid_size(rows, cols)
    return await run_in_threadpool(_cached_generated_level, difficulty, seed, rows, cols)


@router.get("/levels/{level_num}", response_model=Level)
async def get_level_file(level_num: int):
    if level_num < 1:
        raise HTTPException(status_code=400, detail="Invalid level number")
    level = get_cached_level_file(level_num)
    if level is None:
        raise HTTPException(status_code=404, detail="Level not found")
    return level


# ============================================
# SESSIONS
# ============================================

@router.post("/new", response_model=GameSessionResponse)
@limiter.limit(game_rate_limit)
async def new_game(
    request: Request,
    payload: NewGameRequest,
    store: GameSessionStore = Depends(get_session_store),
):
    """Новая партия: сгенерированный уровень или уровень из файла."""
    if payload.level_number is not None:
        level = get_cached_level_file(payload.level_number)
        if level is None:
            raise HTTPException(status_code=404, detail="Level not found")
    else:
        rows, cols = _resolve_grid_size(payload.rows, payload.cols)
        if payload.seed is not None:
            level = await run_in_threadpool(
                _cached_generated_level, payload.difficulty, payload.seed, rows, cols,
            )
        else:
            level = await run_in_threadpool(generate_level, rows, cols, payload.difficulty)

    session, state = await store.create(level)
    return GameSessionResponse(session_id=session.session_id, state=state)


@router.get("/{session_id}", response_model=GameSessionResponse)
async def get_game(
    session_id: str,
    store: GameSessionStore = Depends(get_session_store),
):
    loaded = await store.load(session_id)
    if loaded is None:
        raise HTTPException(status_code=404, detail="Session not found")
    session, state = loaded
    return GameSessionResponse(session_id=session.session_id, state=state)


@router.post("/{session_id}/move", response_model=GameSessionResponse)
async def make_move(
    session_id: str,
    target: Coordinate,
    store: GameSessionStore = Depends(get_session_store),
):
    """Один ход. Нелегальный ход не ошибка: accepted=false, состояние прежнее."""
    result = await store.apply_move(session_id, target)
    if result is None:
        raise HTTPException(status_code=404, detail="Session not found")
    session, state, accepted = result
    return GameSessionResponse(
        session_id=session.session_id,
        state=state,
        accepted=bool(accepted),
        accepted_count=len(accepted),
    )


@router.post("/{session_id}/moves", response_model=GameSessionResponse)
async def make_moves(
    session_id: str,
    payload: MovesRequest,
    store: GameSessionStore = Depends(get_session_store),
):
    """Серия ходов в порядке поступления, без переупорядочивания."""
    result = await store.apply_moves(session_id, payload.moves)
    if result is None:
        raise HTTPException(status_code=404, detail="Session not found")
    session, state, accepted = result
    return GameSessionResponse(
        session_id=session.session_id,
        state=state,
        accepted=len(accepted) == len(payload.moves),
        accepted_count=len(accepted),
    )


@router.post("/{session_id}/reset", response_model=GameSessionResponse)
async def reset_game(
    session_id: str,
    store: GameSessionStore = Depends(get_session_store),
):
    result = await store.reset(session_id)
    if result is None:
        raise HTTPException(status_code=404, detail="Session not found")
    session, state = result
    return GameSessionResponse(session_id=session.session_id, state=state)
