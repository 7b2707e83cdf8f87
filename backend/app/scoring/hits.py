"""Dart hit values.

A hit is a board segment plus the ring it landed in. Bulls and misses carry
no segment number; their value is fixed.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

MIN_SEGMENT = 1
MAX_SEGMENT = 20


class HitKind(str, Enum):
    MISS = "miss"
    SINGLE = "single"
    DOUBLE = "double"
    TRIPLE = "triple"
    OUTER_BULL = "outer_bull"
    INNER_BULL = "inner_bull"

    @property
    def multiplier(self) -> int:
        return _MULTIPLIERS[self]

    @property
    def is_numbered(self) -> bool:
        return self in (HitKind.SINGLE, HitKind.DOUBLE, HitKind.TRIPLE)

    @property
    def is_double(self) -> bool:
        """Doubles and the inner bull open and close double-in/out games."""
        return self in (HitKind.DOUBLE, HitKind.INNER_BULL)


_MULTIPLIERS = {
    HitKind.MISS: 0,
    HitKind.SINGLE: 1,
    HitKind.DOUBLE: 2,
    HitKind.TRIPLE: 3,
    HitKind.OUTER_BULL: 1,
    HitKind.INNER_BULL: 2,
}

_FIXED_POINTS = {
    HitKind.MISS: 0,
    HitKind.OUTER_BULL: 25,
    HitKind.INNER_BULL: 50,
}


@dataclass(frozen=True)
class Hit:
    kind: HitKind
    number: Optional[int] = None

    @classmethod
    def of(cls, kind: HitKind | str, number: Optional[int] = None) -> "Hit":
        """Build a normalised hit.

        The segment number is dropped for bulls and misses and clamped to
        ``1..20`` for numbered kinds. A numbered kind without a number is
        rejected.
        """

        kind = HitKind(kind)
        if not kind.is_numbered:
            return cls(kind=kind, number=None)
        if number is None or isinstance(number, bool):
            raise ValueError(f"{kind.value} hits require a segment number")
        clamped = max(MIN_SEGMENT, min(MAX_SEGMENT, int(number)))
        return cls(kind=kind, number=clamped)

    @property
    def points(self) -> int:
        if self.kind in _FIXED_POINTS:
            return _FIXED_POINTS[self.kind]
        return (self.number or 0) * self.kind.multiplier

    def label(self) -> str:
        if self.kind is HitKind.MISS:
            return "miss"
        if self.kind is HitKind.OUTER_BULL:
            return "25"
        if self.kind is HitKind.INNER_BULL:
            return "bull"
        prefix = {HitKind.SINGLE: "S", HitKind.DOUBLE: "D", HitKind.TRIPLE: "T"}
        return f"{prefix[self.kind]}{self.number}"

    def to_payload(self) -> Dict[str, Any]:
        return {"number": self.number, "kind": self.kind.value, "points": self.points}

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "Hit":
        if not isinstance(payload, dict) or "kind" not in payload:
            raise ValueError("invalid hit payload")
        return cls.of(payload["kind"], payload.get("number"))


MISS = Hit(kind=HitKind.MISS)
