"""
Zip Path - Database Models

SQLAlchemy модели.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Index

from .database import Base


# ============================================
# SCORE
# ============================================

class Score(Base):
    """Результат прохождения (append-only)."""

    __tablename__ = "scores"

    id = Column(Integer, primary_key=True)

    difficulty = Column(String(16), nullable=False)  # 'easy', 'medium', 'hard'
    time_seconds = Column(Integer, nullable=False)
    player_name = Column(String(64), nullable=False)

    # Уровень, на котором поставлен результат
    level_id = Column(String(32), nullable=True)
    level_seed = Column(Integer, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("ix_scores_difficulty_time", "difficulty", "time_seconds"),
    )
