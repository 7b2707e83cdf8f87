from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from .db import Base


class Player(Base):
    __tablename__ = "player"
    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    color_hex = Column(String(7), nullable=False, default="#FF9F0A")
    avatar_symbol = Column(String, nullable=False, default="person.fill")
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("uq_player_name_lower", func.lower(name), unique=True),
    )


class Match(Base):
    __tablename__ = "match"
    id = Column(String, primary_key=True)
    mode = Column(String, nullable=False)  # "301" | "501" | "x01" | "cricket" | "around_the_clock"
    player_ids = Column(
        JSON().with_variant(JSONB, "postgresql"), nullable=False
    )
    current_turn_index = Column(Integer, nullable=False, default=0)
    dart_index = Column(Integer, nullable=False, default=0)
    rules = Column(JSON, nullable=False)
    scoreboard = Column(JSON, nullable=False, default=dict)
    is_active = Column(Boolean, nullable=False, default=True)
    winner_id = Column(String, nullable=True)
    # player id -> order index; double-ins kept through a deleted busted turn
    double_in_from = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)


class Throw(Base):
    __tablename__ = "throw"
    id = Column(String, primary_key=True)
    match_id = Column(String, ForeignKey("match.id", ondelete="CASCADE"), nullable=False)
    player_id = Column(String, nullable=False)
    order_index = Column(Integer, nullable=False)
    hit = Column(JSON, nullable=False)

    __table_args__ = (
        UniqueConstraint("match_id", "order_index", name="uq_throw_match_id_order_index"),
    )


class CompletedMatch(Base):
    __tablename__ = "completed_match"
    id = Column(String, primary_key=True)
    match_id = Column(String, ForeignKey("match.id", ondelete="CASCADE"), nullable=False)
    finished_at = Column(DateTime, server_default=func.now(), nullable=False)
    mode = Column(String, nullable=False)
    winner_id = Column(String, nullable=True)
    player_ids = Column(
        JSON().with_variant(JSONB, "postgresql"), nullable=False
    )
    throws_count = Column(Integer, nullable=False, default=0)
    notes = Column(Text, nullable=True)
