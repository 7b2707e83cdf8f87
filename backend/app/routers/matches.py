# backend/app/routers/matches.py
import uuid
from typing import Any, Callable, Optional, Tuple

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import DEFAULT_REVOKE_DOUBLE_IN_ON_BUST
from ..db import get_session
from ..exceptions import PlayerNotFound
from ..models import CompletedMatch, Player
from ..schemas import (
    CompletedMatchOut,
    HitOut,
    MatchCreate,
    MatchIdOut,
    MatchStateOut,
    PlayerStatsOut,
    ScoreboardEntryOut,
    ThrowIn,
    ThrowOut,
    ThrowResultOut,
    UndoOut,
)
from ..scoring import Rules, X01Board, board_to_payload, default_rules, parse_mode
from ..services import MatchEngine, SessionMatchStore, Throw, load_engine
from ..time_utils import coerce_utc


# Resource-only prefix; versioning is added in main.py
router = APIRouter(prefix="/matches", tags=["matches"])


def _throw_out(t: Throw) -> ThrowOut:
    return ThrowOut(
        id=t.id,
        playerId=t.player_id,
        orderIndex=t.order_index,
        hit=HitOut.from_hit(t.hit),
    )


def _state_out(engine: MatchEngine) -> MatchStateOut:
    m = engine.match
    return MatchStateOut(
        id=m.id,
        mode=m.mode.key,
        rules=m.rules.to_payload(),
        playerIds=m.player_ids,
        currentPlayerId=engine.current_player_id,
        currentTurnIndex=m.current_turn_index,
        dartIndex=engine.dart_index,
        isActive=engine.is_active,
        winnerId=engine.winner_id,
        doubledIn=sorted(engine.doubled_in),
        scoreboard=[
            ScoreboardEntryOut(
                playerId=pid,
                remaining=board.remaining if isinstance(board, X01Board) else None,
                board=board_to_payload(board),
            )
            for pid, board in engine.scoreboard()
        ],
        throwsCount=len(engine.throws),
    )


async def _with_engine(
    session: AsyncSession, mid: str, op: Callable[[MatchEngine], Any]
) -> Tuple[Any, MatchStateOut]:
    """Load the match, run ``op`` against a fresh engine and return its state.

    The engine is synchronous, so everything runs on the session's
    synchronous side in one ``run_sync`` call.
    """

    def _run(sync_session):
        engine = load_engine(sync_session, mid)
        result = op(engine)
        return result, _state_out(engine)

    return await session.run_sync(_run)


def _rules_for(body: MatchCreate, mode) -> Rules:
    if body.rules is None:
        return default_rules(mode, revoke_double_in_on_bust=DEFAULT_REVOKE_DOUBLE_IN_ON_BUST)
    revoke = body.rules.revokeDoubleInOnBust
    return Rules(
        double_in=body.rules.doubleIn,
        double_out=body.rules.doubleOut,
        starting_score=body.rules.startingScore,
        handicap=dict(body.rules.handicap),
        revoke_double_in_on_bust=DEFAULT_REVOKE_DOUBLE_IN_ON_BUST if revoke is None else revoke,
    )


# POST /api/v0/matches
@router.post("", response_model=MatchIdOut)
async def create_match(
    body: MatchCreate,
    session: AsyncSession = Depends(get_session),
):
    known = set(
        (
            await session.execute(select(Player.id).where(Player.id.in_(body.playerIds)))
        ).scalars().all()
    )
    for pid in body.playerIds:
        if pid not in known:
            raise PlayerNotFound(pid)

    mode = parse_mode(body.mode)
    rules = _rules_for(body, mode)
    mid = uuid.uuid4().hex

    def _start(sync_session):
        MatchEngine.start(
            mode,
            body.playerIds,
            rules,
            SessionMatchStore(sync_session, mid),
            match_id=mid,
        )

    await session.run_sync(_start)
    return MatchIdOut(id=mid)


# GET /api/v0/matches/completed
@router.get("/completed", response_model=list[CompletedMatchOut])
async def list_completed_matches(
    limit: int = Query(50, ge=1, le=500),
    session: AsyncSession = Depends(get_session),
):
    rows = (
        await session.execute(
            select(CompletedMatch)
            .order_by(CompletedMatch.finished_at.desc(), CompletedMatch.id)
            .limit(limit)
        )
    ).scalars().all()
    return [
        CompletedMatchOut(
            id=c.id,
            matchId=c.match_id,
            mode=c.mode,
            winnerId=c.winner_id,
            playerIds=list(c.player_ids or []),
            throwsCount=c.throws_count,
            finishedAt=coerce_utc(c.finished_at),
            notes=c.notes,
        )
        for c in rows
    ]


# GET /api/v0/matches/{mid}
@router.get("/{mid}", response_model=MatchStateOut)
async def get_match(mid: str, session: AsyncSession = Depends(get_session)):
    _, state = await _with_engine(session, mid, lambda engine: None)
    return state


# POST /api/v0/matches/{mid}/throws
@router.post("/{mid}/throws", response_model=ThrowResultOut)
async def submit_throw(
    mid: str,
    body: ThrowIn,
    session: AsyncSession = Depends(get_session),
):
    hit = body.hit.to_hit()
    outcome, state = await _with_engine(
        session, mid, lambda engine: engine.submit_throw(body.playerId, hit)
    )
    return ThrowResultOut(
        throw=_throw_out(outcome.throw),
        bust=outcome.is_bust,
        win=outcome.is_win,
        discardedThrowIds=[t.id for t in outcome.discarded],
        state=state,
    )


# POST /api/v0/matches/{mid}/undo
@router.post("/{mid}/undo", response_model=UndoOut)
async def undo_last_throw(mid: str, session: AsyncSession = Depends(get_session)):
    undone, state = await _with_engine(session, mid, lambda engine: engine.undo_last_throw())
    return UndoOut(undone=_throw_out(undone) if undone else None, state=state)


# POST /api/v0/matches/{mid}/switch-turn
@router.post("/{mid}/switch-turn", response_model=MatchStateOut)
async def switch_turn(mid: str, session: AsyncSession = Depends(get_session)):
    _, state = await _with_engine(session, mid, lambda engine: engine.switch_turn())
    return state


# DELETE /api/v0/matches/{mid}/players/{pid}
@router.delete("/{mid}/players/{pid}", response_model=MatchStateOut)
async def remove_player(
    mid: str,
    pid: str,
    session: AsyncSession = Depends(get_session),
):
    _, state = await _with_engine(session, mid, lambda engine: engine.remove_player(pid))
    return state


# GET /api/v0/matches/{mid}/history
@router.get("/{mid}/history", response_model=list[ThrowOut])
async def match_history(
    mid: str,
    playerId: Optional[str] = Query(None),
    session: AsyncSession = Depends(get_session),
):
    throws, _ = await _with_engine(session, mid, lambda engine: engine.history(playerId))
    return [_throw_out(t) for t in throws]


# GET /api/v0/matches/{mid}/stats
@router.get("/{mid}/stats", response_model=list[PlayerStatsOut])
async def match_stats(mid: str, session: AsyncSession = Depends(get_session)):
    stats, _ = await _with_engine(session, mid, lambda engine: engine.statistics())
    return [
        PlayerStatsOut(
            playerId=s.player_id,
            dartsThrown=s.darts_thrown,
            pointsPerDart=round(s.points_per_dart, 2),
        )
        for s in stats.values()
    ]
