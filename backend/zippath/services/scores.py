"""
Zip Path - Score Ledger

Append-only хранилище результатов по сложности.
Ядро игры знает только интерфейс ScoreRepository: записать время
и получить лучшее. Реализация — таблица scores через SQLAlchemy.
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from sqlalchemy import select, func, asc
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Score


logger = logging.getLogger(__name__)


class ScoreRepository(ABC):
    """Контракт хранилища результатов."""

    @abstractmethod
    async def record(
        self,
        difficulty: str,
        time_seconds: int,
        player_name: str,
        level_id: Optional[str] = None,
        level_seed: Optional[int] = None,
    ) -> Score:
        """Добавить результат."""

    @abstractmethod
    async def best_time(self, difficulty: str) -> Optional[int]:
        """Минимальное время по сложности или None если результатов нет."""

    @abstractmethod
    async def list_scores(self, difficulty: str, limit: int = 10) -> List[Score]:
        """Лучшие результаты по возрастанию времени."""


class SqlScoreRepository(ScoreRepository):
    """ScoreRepository поверх AsyncSession. Коммит — на стороне вызывающего."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def record(
        self,
        difficulty: str,
        time_seconds: int,
        player_name: str,
        level_id: Optional[str] = None,
        level_seed: Optional[int] = None,
    ) -> Score:
        score = Score(
            difficulty=difficulty,
            time_seconds=time_seconds,
            player_name=player_name,
            level_id=level_id,
            level_seed=level_seed,
        )
        self.db.add(score)
        await self.db.flush()

        logger.info("Score recorded: %s %ss by %r", difficulty, time_seconds, player_name)
        return score

    async def best_time(self, difficulty: str) -> Optional[int]:
        result = await self.db.execute(
            select(func.min(Score.time_seconds)).where(Score.difficulty == difficulty)
        )
        return result.scalar()

    async def list_scores(self, difficulty: str, limit: int = 10) -> List[Score]:
        # При равном времени выше тот, кто поставил его раньше
        result = await self.db.execute(
            select(Score)
            .where(Score.difficulty == difficulty)
            .order_by(asc(Score.time_seconds), asc(Score.created_at), asc(Score.id))
            .limit(limit)
        )
        return list(result.scalars().all())
