"""Database tables / schema"""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, DateTime, Index
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from chess_sessions.core.shared_types import utc_now


class Base(DeclarativeBase):
    pass


class DBGame(Base):
    __tablename__ = "games"
    __table_args__ = (
        Index("idx_games_status", "status"),
        Index("idx_games_white_player", "white_player_id"),
        Index("idx_games_black_player", "black_player_id"),
    )

    id: Mapped[str] = mapped_column(primary_key=True)
    white_player_id: Mapped[str]
    black_player_id: Mapped[str]
    fen: Mapped[str]
    pgn: Mapped[str]
    status: Mapped[str]
    move_history: Mapped[list[str]] = mapped_column(JSON, default=list)
    position_history: Mapped[dict[str, int]] = mapped_column(JSON, default=dict)
    result: Mapped[Optional[str]]
    termination: Mapped[Optional[str]]
    draw_details: Mapped[Optional[dict[str, str]]] = mapped_column(JSON)
    time_control: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON)
    white_time_remaining: Mapped[Optional[int]]
    black_time_remaining: Mapped[Optional[int]]
    draw_offer_from: Mapped[Optional[str]]
    pause_requested_by: Mapped[Optional[str]]
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    last_move_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
