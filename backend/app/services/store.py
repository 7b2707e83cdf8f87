"""Storage behind ``MatchEngine``.

``SessionMatchStore`` writes through a synchronous SQLAlchemy session. The
routers run it inside ``AsyncSession.run_sync`` so the engine can stay
synchronous while the application keeps its async database stack.
"""

from __future__ import annotations

import logging
import uuid
from typing import Dict, List, Optional, Tuple

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import models, scoring
from ..exceptions import MatchNotFound, PersistenceFailure
from ..scoring import Hit, Rules
from .engine import CompletedMatchSummary, Match, MatchEngine, Throw

logger = logging.getLogger(__name__)


def match_from_row(row: models.Match) -> Match:
    mode = scoring.parse_mode(row.mode)
    boards = {
        pid: scoring.board_from_payload(payload)
        for pid, payload in (row.scoreboard or {}).items()
    }
    return Match(
        id=row.id,
        mode=mode,
        rules=Rules.from_payload(row.rules or {}),
        player_ids=list(row.player_ids or []),
        boards=boards,
        current_turn_index=row.current_turn_index or 0,
        is_active=bool(row.is_active),
        winner_id=row.winner_id,
        dart_index=row.dart_index or 0,
        double_in_from={
            pid: int(index) for pid, index in (row.double_in_from or {}).items()
        },
    )


def throw_from_row(row: models.Throw) -> Throw:
    return Throw(
        id=row.id,
        player_id=row.player_id,
        order_index=row.order_index,
        hit=Hit.from_payload(row.hit),
    )


class SessionMatchStore:
    def __init__(self, session: Session, match_id: str) -> None:
        self.session = session
        self.match_id = match_id

    def insert(self, throw: Throw) -> None:
        row = models.Throw(
            id=throw.id,
            match_id=self.match_id,
            player_id=throw.player_id,
            order_index=throw.order_index,
            hit=throw.hit.to_payload(),
        )
        self.session.add(row)
        self._flush("insert throw")

    def delete(self, throw: Throw) -> None:
        row = self.session.get(models.Throw, throw.id)
        if row is None:
            return
        self.session.delete(row)
        self._flush("delete throw")

    def record_completed(self, summary: CompletedMatchSummary) -> None:
        self.session.add(
            models.CompletedMatch(
                id=uuid.uuid4().hex,
                match_id=summary.match_id,
                mode=summary.mode_key,
                winner_id=summary.winner_id,
                player_ids=list(summary.player_ids),
                throws_count=summary.throws_count,
            )
        )
        self._flush("record completed match")

    def retract_completed(self, match_id: str) -> None:
        try:
            self.session.execute(
                delete(models.CompletedMatch).where(models.CompletedMatch.match_id == match_id)
            )
        except SQLAlchemyError as exc:
            raise PersistenceFailure(f"could not retract completed match: {exc}") from exc

    def save(self, match: Match) -> None:
        try:
            row = self.session.get(models.Match, match.id)
            if row is None:
                row = models.Match(id=match.id)
                self.session.add(row)
            row.mode = match.mode.key
            row.player_ids = list(match.player_ids)
            row.current_turn_index = match.current_turn_index
            row.dart_index = match.dart_index
            row.double_in_from = dict(match.double_in_from)
            row.rules = match.rules.to_payload()
            row.scoreboard = {
                pid: scoring.board_to_payload(board) for pid, board in match.boards.items()
            }
            row.is_active = match.is_active
            row.winner_id = match.winner_id
            self.session.commit()
        except SQLAlchemyError as exc:
            raise PersistenceFailure(f"could not save match '{match.id}': {exc}") from exc

    def rollback(self) -> None:
        self.session.rollback()

    def _flush(self, what: str) -> None:
        try:
            self.session.flush()
        except SQLAlchemyError as exc:
            raise PersistenceFailure(f"could not {what}: {exc}") from exc


def load_engine(session: Session, match_id: str) -> MatchEngine:
    """Build an engine for a stored match by replaying its throw log."""

    row = session.get(models.Match, match_id)
    if row is None:
        raise MatchNotFound(match_id)
    throw_rows = session.execute(
        select(models.Throw)
        .where(models.Throw.match_id == match_id)
        .order_by(models.Throw.order_index)
    ).scalars().all()
    engine = MatchEngine.load(
        match_from_row(row),
        [throw_from_row(t) for t in throw_rows],
        SessionMatchStore(session, match_id),
    )
    # The row's turn position is saved after every operation, including busts
    # and manual switches that leave no trace in the log.
    engine.resume_turn(row.current_turn_index or 0, row.dart_index or 0)
    return engine


class InMemoryMatchStore:
    """Store for a single match kept in memory.

    Writes are staged and only applied by ``save`` so ``rollback`` behaves
    like a database transaction.
    """

    def __init__(self) -> None:
        self.match: Optional[Match] = None
        self.throws: Dict[str, Throw] = {}
        self.completed: List[CompletedMatchSummary] = []
        self.saves = 0
        self._pending: List[Tuple[str, object]] = []

    def insert(self, throw: Throw) -> None:
        self._pending.append(("insert", throw))

    def delete(self, throw: Throw) -> None:
        self._pending.append(("delete", throw))

    def record_completed(self, summary: CompletedMatchSummary) -> None:
        self._pending.append(("complete", summary))

    def retract_completed(self, match_id: str) -> None:
        self._pending.append(("retract", match_id))

    def save(self, match: Match) -> None:
        for op, item in self._pending:
            if op == "insert":
                self.throws[item.id] = item
            elif op == "delete":
                self.throws.pop(item.id, None)
            elif op == "complete":
                self.completed.append(item)
            elif op == "retract":
                self.completed = [c for c in self.completed if c.match_id != item]
        self._pending.clear()
        self.match = match
        self.saves += 1

    def rollback(self) -> None:
        if self._pending:
            logger.debug("Discarding %d staged writes", len(self._pending))
        self._pending.clear()

    def log(self) -> List[Throw]:
        return sorted(self.throws.values(), key=lambda t: t.order_index)
