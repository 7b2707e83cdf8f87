"""Match engine and its storage (pure helpers plus the store collaborator)."""

from .engine import (
    CompletedMatchSummary,
    Match,
    MatchEngine,
    MatchStore,
    PlayerStats,
    Throw,
    ThrowOutcome,
    TurnState,
    replay_log,
)
from .stats import darts_thrown, points_per_dart
from .store import InMemoryMatchStore, SessionMatchStore, load_engine

__all__ = [
    "CompletedMatchSummary",
    "InMemoryMatchStore",
    "Match",
    "MatchEngine",
    "MatchStore",
    "PlayerStats",
    "SessionMatchStore",
    "Throw",
    "ThrowOutcome",
    "TurnState",
    "darts_thrown",
    "load_engine",
    "points_per_dart",
    "replay_log",
]
