from typing import Any, Dict, List, Optional
from datetime import datetime
from pydantic import BaseModel, Field, model_validator, field_validator, ConfigDict

from .scoring import Hit, HitKind


class GameModeOut(BaseModel):
    id: str
    name: str
    defaultRules: Dict[str, Any]


class PlayerCreate(BaseModel):
    name: str = Field(
        ..., min_length=1, max_length=50, pattern=r"^[A-Za-z0-9 '-]+$"
    )
    colorHex: str = Field(default="#FF9F0A", pattern=r"^#[0-9A-Fa-f]{6}$")
    avatarSymbol: str = Field(default="person.fill", min_length=1, max_length=64)

    model_config = ConfigDict(extra="forbid")

    @field_validator("name", mode="before")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        if not isinstance(value, str):
            raise TypeError("name must be a string")
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("name must not be empty")
        return trimmed


class PlayerOut(BaseModel):
    id: str
    name: str
    colorHex: str
    avatarSymbol: str


class HitIn(BaseModel):
    kind: HitKind
    number: Optional[int] = None

    @model_validator(mode="after")
    def _require_number(self) -> "HitIn":
        if self.kind.is_numbered and self.number is None:
            raise ValueError(f"number is required for {self.kind.value} hits")
        return self

    def to_hit(self) -> Hit:
        return Hit.of(self.kind, self.number)


class HitOut(BaseModel):
    """Wire form of a hit; ``points`` is derived from kind and number."""

    kind: HitKind
    number: Optional[int] = None
    points: int
    label: str

    @classmethod
    def from_hit(cls, hit: Hit) -> "HitOut":
        return cls(kind=hit.kind, number=hit.number, points=hit.points, label=hit.label())


class RulesIn(BaseModel):
    doubleIn: bool = False
    doubleOut: bool = True
    startingScore: Optional[int] = None
    handicap: Dict[str, int] = Field(default_factory=dict)
    revokeDoubleInOnBust: Optional[bool] = None

    model_config = ConfigDict(extra="forbid")


class MatchCreate(BaseModel):
    mode: str = "501"
    playerIds: List[str] = Field(..., min_length=1)
    rules: Optional[RulesIn] = None

    @field_validator("playerIds")
    @classmethod
    def _unique_players(cls, value: List[str]) -> List[str]:
        if len(set(value)) != len(value):
            raise ValueError("playerIds must be unique")
        return value


class MatchIdOut(BaseModel):
    """Schema returned after creating a match."""

    id: str


class ThrowIn(BaseModel):
    playerId: str
    hit: HitIn


class ThrowOut(BaseModel):
    id: str
    playerId: str
    orderIndex: int
    hit: HitOut


class ScoreboardEntryOut(BaseModel):
    playerId: str
    remaining: Optional[int] = None
    board: Dict[str, Any]


class MatchStateOut(BaseModel):
    """Derived match state after replaying the stored throw log."""

    id: str
    mode: str
    rules: Dict[str, Any]
    playerIds: List[str]
    currentPlayerId: Optional[str] = None
    currentTurnIndex: int
    dartIndex: int
    isActive: bool
    winnerId: Optional[str] = None
    doubledIn: List[str] = Field(default_factory=list)
    scoreboard: List[ScoreboardEntryOut] = Field(default_factory=list)
    throwsCount: int


class ThrowResultOut(BaseModel):
    throw: ThrowOut
    bust: bool
    win: bool
    discardedThrowIds: List[str] = Field(default_factory=list)
    state: MatchStateOut


class UndoOut(BaseModel):
    undone: Optional[ThrowOut] = None
    state: MatchStateOut


class PlayerStatsOut(BaseModel):
    playerId: str
    dartsThrown: int
    pointsPerDart: float


class CompletedMatchOut(BaseModel):
    id: str
    matchId: str
    mode: str
    winnerId: Optional[str] = None
    playerIds: List[str]
    throwsCount: int
    finishedAt: Optional[datetime] = None
    notes: Optional[str] = None
