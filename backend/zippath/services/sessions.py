"""
Zip Path - Game Sessions (Redis)

Сессия = уровень + список принятых ходов. GameState не хранится:
он каждый раз восстанавливается повтором ходов с initialize_game().
"""

import logging
import secrets
from datetime import datetime
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field

from ..config import settings
from ..schemas import Coordinate, GameState, Level
from .game_logic import accepted_moves, initialize_game, replay_moves


logger = logging.getLogger(__name__)


class GameSession(BaseModel):
    """Запись сессии в Redis."""
    session_id: str
    level: Level
    moves: List[Coordinate] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=datetime.utcnow)


class GameSessionStore:
    """Хранилище партий поверх redis.asyncio клиента."""

    def __init__(self, redis, ttl_seconds: Optional[int] = None, key_prefix: Optional[str] = None):
        self.redis = redis
        self.ttl_seconds = ttl_seconds or settings.SESSION_TTL_SECONDS
        self.key_prefix = key_prefix or settings.SESSION_KEY_PREFIX

    def _key(self, session_id: str) -> str:
        return f"{self.key_prefix}{session_id}"

    def _lock(self, session_id: str):
        """
        Redis-лок на сессию: чтение, повтор и запись ходов идут одним блоком.

        Не дождались лока за SESSION_LOCK_WAIT_SECONDS -> redis.exceptions.LockError.
        """
        return self.redis.lock(
            f"{self._key(session_id)}:lock",
            timeout=settings.SESSION_LOCK_TIMEOUT_SECONDS,
            blocking_timeout=settings.SESSION_LOCK_WAIT_SECONDS,
        )

    async def _save(self, session: GameSession) -> None:
        await self.redis.set(
            self._key(session.session_id),
            session.model_dump_json(),
            ex=self.ttl_seconds,
        )

    async def create(self, level: Level) -> Tuple[GameSession, GameState]:
        """Новая партия на уровне."""
        session = GameSession(session_id=secrets.token_urlsafe(12), level=level)
        await self._save(session)
        logger.info("Session %s started on level %s (%s)", session.session_id, level.id, level.difficulty)
        return session, initialize_game(level)

    async def load(self, session_id: str) -> Optional[Tuple[GameSession, GameState]]:
        raw = await self.redis.get(self._key(session_id))
        if raw is None:
            return None
        session = GameSession.model_validate_json(raw)
        return session, replay_moves(session.level, session.moves)

    async def apply_moves(
        self,
        session_id: str,
        targets: List[Coordinate],
    ) -> Optional[Tuple[GameSession, GameState, List[Coordinate]]]:
        """
        Применяет ходы строго в переданном порядке.

        Сохраняются только принятые ходы; отклонённые ничего не меняют.
        Параллельные запросы к одной сессии выполняются по очереди.
        """
        async with self._lock(session_id):
            loaded = await self.load(session_id)
            if loaded is None:
                return None
            session, state = loaded

            state, accepted = accepted_moves(state, targets)
            if accepted:
                session.moves.extend(accepted)
                await self._save(session)

        return session, state, accepted

    async def apply_move(
        self,
        session_id: str,
        target: Coordinate,
    ) -> Optional[Tuple[GameSession, GameState, List[Coordinate]]]:
        return await self.apply_moves(session_id, [target])

    async def reset(self, session_id: str) -> Optional[Tuple[GameSession, GameState]]:
        """Тот же уровень, ходы сброшены, таймер заново."""
        async with self._lock(session_id):
            loaded = await self.load(session_id)
            if loaded is None:
                return None
            session, _ = loaded

            session.moves = []
            session.started_at = datetime.utcnow()
            await self._save(session)

        return session, initialize_game(session.level)

    async def finish(self, session_id: str) -> Optional[Tuple[GameSession, GameState]]:
        """
        Забирает партию для записи результата.

        Завершённая партия удаляется под локом, поэтому из одной сессии
        результат получает только один вызов; остальные увидят None.
        Незавершённая партия остаётся как есть.
        """
        async with self._lock(session_id):
            loaded = await self.load(session_id)
            if loaded is None:
                return None
            session, state = loaded

            if state.is_complete:
                await self.delete(session_id)

        return session, state

    async def delete(self, session_id: str) -> None:
        await self.redis.delete(self._key(session_id))
