"""Match rule configuration."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional

from ..exceptions import InvalidConfiguration
from .modes import AroundTheClock, Cricket, GameMode, X01


@dataclass(frozen=True)
class Rules:
    double_in: bool = False
    double_out: bool = True
    starting_score: Optional[int] = 501
    handicap: Mapping[str, int] = field(default_factory=dict)
    # Whether a bust takes back a double-in earned earlier in the same turn.
    revoke_double_in_on_bust: bool = True

    def handicap_for(self, player_id: str) -> int:
        return int(self.handicap.get(player_id, 0))

    def to_payload(self) -> Dict[str, Any]:
        return {
            "doubleIn": self.double_in,
            "doubleOut": self.double_out,
            "startingScore": self.starting_score,
            "handicap": dict(self.handicap),
            "revokeDoubleInOnBust": self.revoke_double_in_on_bust,
        }

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Rules":
        return cls(
            double_in=bool(payload.get("doubleIn", False)),
            double_out=bool(payload.get("doubleOut", True)),
            starting_score=payload.get("startingScore"),
            handicap={str(k): int(v) for k, v in (payload.get("handicap") or {}).items()},
            revoke_double_in_on_bust=bool(payload.get("revokeDoubleInOnBust", True)),
        )


def default_rules(mode: GameMode, *, revoke_double_in_on_bust: bool = True) -> Rules:
    """Rules a new match of ``mode`` gets when the caller sends none."""

    if isinstance(mode, X01):
        return Rules(
            double_in=False,
            double_out=True,
            starting_score=mode.starting_score,
            revoke_double_in_on_bust=revoke_double_in_on_bust,
        )
    if isinstance(mode, (Cricket, AroundTheClock)):
        return Rules(
            double_in=False,
            double_out=False,
            starting_score=None,
            revoke_double_in_on_bust=revoke_double_in_on_bust,
        )
    raise TypeError(f"unsupported game mode: {mode!r}")


def resolve_rules(mode: GameMode, rules: Rules) -> Rules:
    """Pin the starting score for ``mode``.

    301 and 501 fix the starting score regardless of what ``rules`` carries;
    the free X01 mode takes it from ``rules``. Non-X01 modes have none.
    """

    if isinstance(mode, X01):
        score = mode.starting_score if mode.starting_score is not None else rules.starting_score
        if score is None or isinstance(score, bool):
            raise InvalidConfiguration("X01 games require a starting score")
        try:
            score = int(score)
        except (TypeError, ValueError):
            raise InvalidConfiguration("starting score must be an integer")
        if score <= 0:
            raise InvalidConfiguration("starting score must be positive")
        return replace(rules, starting_score=score)
    if isinstance(mode, (Cricket, AroundTheClock)):
        return replace(rules, starting_score=None)
    raise TypeError(f"unsupported game mode: {mode!r}")
