"""Turn and match state machine for darts matches.

``MatchEngine`` owns one match and its ordered throw log. Every operation
computes the next state on copies, hands the changes to the store, and only
then swaps the copies in, so a failing store never leaves memory ahead of
the stored log.

Derived turn bookkeeping (dart index, double-in set, turn-start snapshot)
is always rebuilt from the log by ``replay_log``; undo and load both go
through it. The two facts a busted or switched turn erases from the log
travel on ``Match`` instead: ``double_in_from`` and the saved turn position.
"""

from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, Iterator, List, Optional, Protocol, Sequence, Tuple

from .. import scoring
from ..exceptions import (
    InvalidConfiguration,
    MatchInactive,
    PersistenceFailure,
    UnknownPlayer,
    WrongTurn,
)
from ..scoring import Board, Evaluation, GameMode, Hit, Rules, X01, X01Board
from .stats import darts_thrown, points_per_dart

logger = logging.getLogger(__name__)

DARTS_PER_TURN = 3


@dataclass(frozen=True)
class Throw:
    id: str
    player_id: str
    order_index: int
    hit: Hit


@dataclass
class Match:
    """Aggregate root: configuration plus the persisted scoreboard."""

    id: str
    mode: GameMode
    rules: Rules
    player_ids: List[str]
    boards: Dict[str, Board] = field(default_factory=dict)
    current_turn_index: int = 0
    is_active: bool = True
    winner_id: Optional[str] = None
    # Position within the current turn as of the last save.
    dart_index: int = 0
    # Double-ins kept through a bust whose qualifying throw was deleted with
    # the busted turn: player id -> order index from which it applies.
    double_in_from: Dict[str, int] = field(default_factory=dict)

    @property
    def current_player_id(self) -> Optional[str]:
        if not self.player_ids:
            return None
        return self.player_ids[self.current_turn_index % len(self.player_ids)]

    def initial_board(self, player_id: str) -> Board:
        start = self.rules.starting_score
        if isinstance(self.mode, X01) and start is not None:
            start += self.rules.handicap_for(player_id)
        return scoring.initial_board(self.mode, start)

    def advance_turn(self) -> None:
        if self.player_ids:
            self.current_turn_index = (self.current_turn_index + 1) % len(self.player_ids)

    def copy(self) -> "Match":
        return replace(
            self,
            player_ids=list(self.player_ids),
            boards=dict(self.boards),
            double_in_from=dict(self.double_in_from),
        )


@dataclass
class TurnState:
    """Bookkeeping derived from the log; never the only source of truth."""

    dart_index: int = 0
    doubled_in: set = field(default_factory=set)
    start_board: Optional[Board] = None
    start_doubled_in: bool = False

    def reset(self) -> None:
        self.dart_index = 0
        self.start_board = None
        self.start_doubled_in = False

    def copy(self) -> "TurnState":
        return replace(self, doubled_in=set(self.doubled_in))


@dataclass(frozen=True)
class CompletedMatchSummary:
    match_id: str
    mode_key: str
    winner_id: Optional[str]
    player_ids: Tuple[str, ...]
    throws_count: int


@dataclass(frozen=True)
class ThrowOutcome:
    throw: Throw
    evaluation: Evaluation
    discarded: Tuple[Throw, ...] = ()

    @property
    def is_bust(self) -> bool:
        return self.evaluation.is_bust

    @property
    def is_win(self) -> bool:
        return self.evaluation.is_win


@dataclass(frozen=True)
class PlayerStats:
    player_id: str
    darts_thrown: int
    points_per_dart: float


class MatchStore(Protocol):
    """Durable storage the engine writes through.

    ``save`` is the commit point. Implementations raise
    ``PersistenceFailure`` when a write cannot be made durable and must
    discard uncommitted work on ``rollback``.
    """

    def insert(self, throw: Throw) -> None: ...

    def delete(self, throw: Throw) -> None: ...

    def record_completed(self, summary: CompletedMatchSummary) -> None: ...

    def retract_completed(self, match_id: str) -> None: ...

    def save(self, match: Match) -> None: ...

    def rollback(self) -> None: ...


def _apply_throw(match: Match, turn: TurnState, throw: Throw) -> Evaluation:
    """Apply one throw in place. Shared by live submission and replay."""

    pid = throw.player_id
    if turn.dart_index == 0 or turn.start_board is None:
        turn.start_board = match.boards[pid]
        turn.start_doubled_in = pid in turn.doubled_in

    evaluation = scoring.evaluate(
        match.mode, match.rules, match.boards[pid], pid in turn.doubled_in, throw.hit
    )

    if evaluation.is_bust:
        match.boards[pid] = turn.start_board
        if match.rules.double_in:
            if turn.start_doubled_in:
                turn.doubled_in.add(pid)
            elif match.rules.revoke_double_in_on_bust:
                turn.doubled_in.discard(pid)
            elif evaluation.doubled_in:
                turn.doubled_in.add(pid)
        match.advance_turn()
        turn.reset()
        return evaluation

    match.boards[pid] = evaluation.board
    if match.rules.double_in and evaluation.doubled_in:
        turn.doubled_in.add(pid)

    if scoring.check_win(match.mode, evaluation.board):
        match.winner_id = pid
        match.is_active = False
        return evaluation

    if turn.dart_index >= DARTS_PER_TURN - 1:
        match.advance_turn()
        turn.reset()
    else:
        turn.dart_index += 1
    return evaluation


def replay_log(match: Match, throws: Iterable[Throw]) -> Tuple[Match, TurnState]:
    """Rebuild scoreboard and turn bookkeeping from ``throws``.

    Only the configuration of ``match`` (mode, rules, roster, double-ins kept
    through deleted busts) is used; the result is the same however often it
    runs. Throws of players no longer in the roster are skipped.
    """

    fresh = match.copy()
    fresh.boards = {pid: fresh.initial_board(pid) for pid in fresh.player_ids}
    fresh.current_turn_index = 0
    fresh.winner_id = None
    fresh.is_active = bool(fresh.player_ids)
    turn = TurnState()
    pending = {
        pid: index for pid, index in fresh.double_in_from.items() if pid in fresh.boards
    }

    for t in sorted(throws, key=lambda t: t.order_index):
        if not fresh.is_active:
            break
        for pid, index in list(pending.items()):
            if index <= t.order_index:
                turn.doubled_in.add(pid)
                del pending[pid]
        if t.player_id not in fresh.boards:
            logger.warning(
                "Skipping throw %s of removed player %s in match %s",
                t.id,
                t.player_id,
                fresh.id,
            )
            continue
        while fresh.current_player_id != t.player_id:
            fresh.advance_turn()
            turn.reset()
        _apply_throw(fresh, turn, t)

    if fresh.is_active:
        turn.doubled_in.update(pending)
    fresh.dart_index = turn.dart_index
    return fresh, turn


def _stored(match: Match, turn: TurnState) -> Match:
    """Copy of ``match`` to hand to the store, carrying the turn position."""

    match.dart_index = turn.dart_index
    return match.copy()


def _initial_match(
    match_id: str, mode: GameMode, player_ids: Sequence[str], rules: Rules
) -> Match:
    if not player_ids:
        raise InvalidConfiguration("a match needs at least one player")
    if len(set(player_ids)) != len(player_ids):
        raise InvalidConfiguration("players may only take part once")

    resolved = scoring.resolve_rules(mode, rules)
    match = Match(id=match_id, mode=mode, rules=resolved, player_ids=list(player_ids))
    for pid in match.player_ids:
        board = match.initial_board(pid)
        if isinstance(board, X01Board) and board.remaining <= 0:
            raise InvalidConfiguration(
                f"handicap leaves player '{pid}' without a positive starting score"
            )
        match.boards[pid] = board
    return match


class MatchEngine:
    def __init__(
        self,
        match: Match,
        throws: Sequence[Throw],
        store: MatchStore,
        turn: Optional[TurnState] = None,
    ) -> None:
        self._match = match
        self._throws: List[Throw] = sorted(throws, key=lambda t: t.order_index)
        self._store = store
        self._turn = turn or TurnState()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    @classmethod
    def start(
        cls,
        mode: GameMode | str,
        player_ids: Sequence[str],
        rules: Optional[Rules],
        store: MatchStore,
        *,
        match_id: Optional[str] = None,
    ) -> "MatchEngine":
        if isinstance(mode, str):
            mode = scoring.parse_mode(mode)
        rules = rules or scoring.default_rules(mode)
        match = _initial_match(match_id or uuid.uuid4().hex, mode, player_ids, rules)
        engine = cls(match, [], store)
        with engine._persisting("start"):
            store.save(match.copy())
        logger.info(
            "Match %s started: mode=%s players=%d start=%s",
            match.id,
            mode.key,
            len(match.player_ids),
            match.rules.starting_score,
        )
        return engine

    @classmethod
    def load(cls, match: Match, throws: Sequence[Throw], store: MatchStore) -> "MatchEngine":
        """Hydrate a stored match and derive all of its state by replay."""

        replayed, turn = replay_log(match, throws)
        return cls(replayed, throws, store, turn)

    def resume_turn(self, turn_index: int, dart_index: Optional[int] = None) -> None:
        """Point the match at a stored turn position.

        Busts delete their throws and manual switches are not logged, so the
        log alone cannot tell whose turn follows them. A caller holding the
        turn index and dart index saved after the last operation passes them
        here; when they name another player, or a fresh turn where replay is
        mid-turn (a switch all the way round), the turn restarts. Nothing is
        written.
        """

        if not self.is_active:
            return
        index = turn_index % len(self._match.player_ids)
        if index != self._match.current_turn_index:
            self._match.current_turn_index = index
            self._turn.reset()
        elif dart_index == 0 and self._turn.dart_index != 0:
            self._turn.reset()
        self._match.dart_index = self._turn.dart_index

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def submit_throw(self, player_id: str, hit: Hit) -> ThrowOutcome:
        self._require_active()
        current = self._match.current_player_id
        if player_id != current:
            raise WrongTurn(player_id, current)

        throw = Throw(
            id=uuid.uuid4().hex,
            player_id=player_id,
            order_index=self._next_order_index(),
            hit=hit,
        )
        match, turn = self._match.copy(), self._turn.copy()
        evaluation = _apply_throw(match, turn, throw)

        throws = self._throws + [throw]
        discarded: Tuple[Throw, ...] = ()
        if evaluation.is_bust:
            discarded = self._turn_throws(throws, player_id, self._turn.dart_index + 1)
            gone = {t.id for t in discarded}
            throws = [t for t in throws if t.id not in gone]
            if (
                match.rules.double_in
                and player_id in turn.doubled_in
                and not self._doubled_in_at_turn_start(player_id)
            ):
                # The qualifying throw goes with the busted turn.
                match.double_in_from.setdefault(player_id, discarded[-1].order_index)

        summary = None
        if match.winner_id is not None:
            summary = CompletedMatchSummary(
                match_id=match.id,
                mode_key=match.mode.key,
                winner_id=match.winner_id,
                player_ids=tuple(match.player_ids),
                throws_count=len(throws),
            )

        with self._persisting("submit_throw"):
            self._store.insert(throw)
            for t in discarded:
                self._store.delete(t)
            if summary is not None:
                self._store.record_completed(summary)
            self._store.save(_stored(match, turn))

        self._match, self._turn, self._throws = match, turn, throws

        logger.debug(
            "Match %s: player %s threw %s (%d points) bust=%s",
            match.id,
            player_id,
            hit.label(),
            hit.points,
            evaluation.is_bust,
        )
        if summary is not None:
            logger.info(
                "Match %s won by %s after %d throws",
                match.id,
                match.winner_id,
                summary.throws_count,
            )
        return ThrowOutcome(throw=throw, evaluation=evaluation, discarded=discarded)

    def switch_turn(self) -> None:
        self._require_active()
        match, turn = self._match.copy(), self._turn.copy()
        match.advance_turn()
        turn.reset()
        with self._persisting("switch_turn"):
            self._store.save(_stored(match, turn))
        self._match, self._turn = match, turn

    def undo_last_throw(self) -> Optional[Throw]:
        if not self._throws:
            return None
        last = self._throws[-1]
        throws = self._throws[:-1]
        base = self._match.copy()
        # Kept double-ins stay ahead of every remaining throw.
        base.double_in_from = {
            pid: min(index, last.order_index) for pid, index in base.double_in_from.items()
        }
        match, turn = replay_log(base, throws)
        reopened = self._match.winner_id is not None and match.winner_id is None

        with self._persisting("undo_last_throw"):
            self._store.delete(last)
            if reopened:
                self._store.retract_completed(match.id)
            self._store.save(_stored(match, turn))

        self._match, self._turn, self._throws = match, turn, throws
        logger.info(
            "Match %s: undid throw %s of player %s", match.id, last.order_index, last.player_id
        )
        return last

    def remove_player(self, player_id: str) -> None:
        """Drop ``player_id`` from the roster; their logged throws stay.

        Unlike taking the old index modulo the new roster size, removing a
        player seated before the current one shifts the index down so the
        same player keeps the turn and their dart count.
        """

        self._require_active()
        if player_id not in self._match.player_ids:
            raise UnknownPlayer(self._match.id, player_id)

        match, turn = self._match.copy(), self._turn.copy()
        removed_at = match.player_ids.index(player_id)
        current_at = match.current_turn_index % len(match.player_ids)
        match.player_ids.pop(removed_at)
        match.boards.pop(player_id, None)
        match.double_in_from.pop(player_id, None)
        turn.doubled_in.discard(player_id)

        if not match.player_ids:
            match.current_turn_index = 0
            match.is_active = False
            match.winner_id = None
            turn.reset()
        else:
            if removed_at < current_at:
                current_at -= 1
            elif removed_at == current_at:
                turn.reset()
            match.current_turn_index = current_at % len(match.player_ids)

        with self._persisting("remove_player"):
            self._store.save(_stored(match, turn))

        self._match, self._turn = match, turn
        logger.info(
            "Match %s: removed player %s (%d left)", match.id, player_id, len(match.player_ids)
        )

    def replay(self) -> None:
        """Rederive the in-memory state from the log without touching the store."""

        self._match, self._turn = replay_log(self._match, self._throws)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def match(self) -> Match:
        return self._match.copy()

    @property
    def match_id(self) -> str:
        return self._match.id

    @property
    def current_player_id(self) -> Optional[str]:
        return self._match.current_player_id

    @property
    def dart_index(self) -> int:
        return self._turn.dart_index

    @property
    def doubled_in(self) -> frozenset:
        return frozenset(self._turn.doubled_in)

    @property
    def winner_id(self) -> Optional[str]:
        return self._match.winner_id

    @property
    def is_active(self) -> bool:
        return self._match.is_active and bool(self._match.player_ids)

    @property
    def throws(self) -> Tuple[Throw, ...]:
        return tuple(self._throws)

    def scoreboard(self) -> List[Tuple[str, Board]]:
        return [(pid, self._match.boards[pid]) for pid in self._match.player_ids]

    def remaining(self, player_id: str) -> Optional[int]:
        board = self._match.boards.get(player_id)
        return board.remaining if isinstance(board, X01Board) else None

    def history(self, player_id: Optional[str] = None) -> List[Throw]:
        return [t for t in self._throws if player_id is None or t.player_id == player_id]

    def statistics(self) -> Dict[str, PlayerStats]:
        counts = darts_thrown(self._match.player_ids, [t.player_id for t in self._throws])
        stats: Dict[str, PlayerStats] = {}
        for pid, darts in counts.items():
            ppd = 0.0
            board = self._match.boards[pid]
            start = self._match.initial_board(pid)
            if isinstance(board, X01Board) and isinstance(start, X01Board):
                ppd = points_per_dart(start.remaining, board.remaining, darts)
            stats[pid] = PlayerStats(player_id=pid, darts_thrown=darts, points_per_dart=ppd)
        return stats

    def snapshot(self) -> Dict:
        m = self._match
        return {
            "matchId": m.id,
            "mode": m.mode.key,
            "rules": m.rules.to_payload(),
            "playerIds": list(m.player_ids),
            "currentPlayerId": m.current_player_id,
            "currentTurnIndex": m.current_turn_index,
            "dartIndex": self._turn.dart_index,
            "isActive": self.is_active,
            "winnerId": m.winner_id,
            "doubledIn": sorted(self._turn.doubled_in),
            "scoreboard": [
                {"playerId": pid, "board": scoring.board_to_payload(board)}
                for pid, board in self.scoreboard()
            ],
            "throwsCount": len(self._throws),
        }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _require_active(self) -> None:
        if not self.is_active:
            raise MatchInactive(self._match.id)

    def _doubled_in_at_turn_start(self, player_id: str) -> bool:
        if self._turn.dart_index > 0:
            return self._turn.start_doubled_in
        return player_id in self._turn.doubled_in

    def _next_order_index(self) -> int:
        return self._throws[-1].order_index + 1 if self._throws else 0

    @staticmethod
    def _turn_throws(throws: Sequence[Throw], player_id: str, count: int) -> Tuple[Throw, ...]:
        """Trailing throws of ``player_id`` belonging to the current turn."""

        limit = min(count, DARTS_PER_TURN)
        picked: List[Throw] = []
        for t in reversed(throws):
            if t.player_id != player_id or len(picked) >= limit:
                break
            picked.append(t)
        return tuple(picked)

    @contextmanager
    def _persisting(self, operation: str) -> Iterator[None]:
        try:
            yield
        except PersistenceFailure:
            logger.warning(
                "Match %s: %s not persisted; discarding changes", self._match.id, operation
            )
            self._store.rollback()
            raise
