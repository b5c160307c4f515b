"""
Zip Path - Scores API

Результаты и лидерборды по сложности.
Время принимается только для партии, которую сервер сам признал
завершённой (повтор ходов сессии).
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..database import get_db
from ..middleware.security import limiter, scores_rate_limit
from ..schemas import (
    BestTimeResponse, LeaderboardResponse, ScoreEntry,
    ScoreSubmitRequest, ScoreSubmitResponse,
)
from ..services.scores import ScoreRepository, SqlScoreRepository
from ..services.sessions import GameSessionStore
from .game import get_session_store


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/scores", tags=["scores"])

VALID_DIFFICULTIES = ["easy", "medium", "hard"]


async def get_score_repository(db: AsyncSession = Depends(get_db)) -> ScoreRepository:
    return SqlScoreRepository(db)


def _check_difficulty(difficulty: str) -> None:
    if difficulty not in VALID_DIFFICULTIES:
        raise HTTPException(status_code=400, detail="Invalid difficulty")


@router.post("", response_model=ScoreSubmitResponse)
@limiter.limit(scores_rate_limit)
async def submit_score(
    request: Request,
    payload: ScoreSubmitRequest,
    store: GameSessionStore = Depends(get_session_store),
    repo: ScoreRepository = Depends(get_score_repository),
):
    """
    Сохранить время прохождения.

    Edge cases:
      - session_not_found: сессия истекла или уже использована
      - not_complete: повтор ходов не даёт завершённую партию
      - too_fast: время меньше SCORE_MIN_TIME_SECONDS
    """
    player_name = payload.player_name.strip()
    if not player_name or len(player_name) > settings.PLAYER_NAME_MAX_LENGTH:
        raise HTTPException(status_code=400, detail="Invalid player name")

    if payload.time_seconds < settings.SCORE_MIN_TIME_SECONDS:
        logger.warning(
            "Rejected score for session %s: %ss < %ss",
            payload.session_id, payload.time_seconds, settings.SCORE_MIN_TIME_SECONDS,
        )
        raise HTTPException(status_code=400, detail="Completion time too fast")

    # Сессия забирается атомарно: второй запрос на ту же партию получит 404
    loaded = await store.finish(payload.session_id)
    if loaded is None:
        raise HTTPException(status_code=404, detail="Session not found")
    session, state = loaded

    if not state.is_complete:
        raise HTTPException(status_code=409, detail="Puzzle is not complete")

    difficulty = session.level.difficulty
    await repo.record(
        difficulty,
        payload.time_seconds,
        player_name,
        level_id=session.level.id,
        level_seed=session.level.seed,
    )

    best = await repo.best_time(difficulty)
    return ScoreSubmitResponse(
        recorded=True,
        difficulty=difficulty,
        time_seconds=payload.time_seconds,
        best_time=best,
        is_best=best == payload.time_seconds,
    )


@router.get("/{difficulty}/best", response_model=BestTimeResponse)
async def get_best_time(
    difficulty: str,
    repo: ScoreRepository = Depends(get_score_repository),
):
    _check_difficulty(difficulty)
    return BestTimeResponse(difficulty=difficulty, best_time=await repo.best_time(difficulty))


@router.get("/{difficulty}", response_model=LeaderboardResponse)
async def get_leaderboard(
    difficulty: str,
    limit: int = settings.LEADERBOARD_LIMIT,
    repo: ScoreRepository = Depends(get_score_repository),
):
    """Лучшие времена: time ASC, created_at ASC (кто раньше — выше)."""
    _check_difficulty(difficulty)
    if limit < 1 or limit > 100:
        raise HTTPException(status_code=400, detail="Invalid limit")

    scores = await repo.list_scores(difficulty, limit)
    entries = [
        ScoreEntry(
            rank=i + 1,
            player_name=s.player_name,
            time_seconds=s.time_seconds,
            created_at=s.created_at,
        )
        for i, s in enumerate(scores)
    ]

    return LeaderboardResponse(
        difficulty=difficulty,
        best_time=entries[0].time_seconds if entries else None,
        scores=entries,
    )
