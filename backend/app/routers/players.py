import uuid

from fastapi import APIRouter, Depends
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_session
from ..models import Player
from ..schemas import PlayerCreate, PlayerOut
from ..exceptions import PlayerAlreadyExists, PlayerNotFound

router = APIRouter(prefix="/players", tags=["players"])


def _player_out(p: Player) -> PlayerOut:
    return PlayerOut(
        id=p.id,
        name=p.name,
        colorHex=p.color_hex,
        avatarSymbol=p.avatar_symbol,
    )


# POST /api/v0/players
@router.post("", response_model=PlayerOut)
async def create_player(
    body: PlayerCreate,
    session: AsyncSession = Depends(get_session),
):
    normalized_name = body.name.lower()
    exists = (
        await session.execute(
            select(Player).where(func.lower(Player.name) == normalized_name)
        )
    ).scalar_one_or_none()
    if exists:
        raise PlayerAlreadyExists(body.name)
    p = Player(
        id=uuid.uuid4().hex,
        name=body.name,
        color_hex=body.colorHex,
        avatar_symbol=body.avatarSymbol,
    )
    session.add(p)
    await session.commit()
    return _player_out(p)


# GET /api/v0/players
@router.get("", response_model=list[PlayerOut])
async def list_players(session: AsyncSession = Depends(get_session)):
    rows = (
        await session.execute(select(Player).order_by(func.lower(Player.name)))
    ).scalars().all()
    return [_player_out(p) for p in rows]


# GET /api/v0/players/{pid}
@router.get("/{pid}", response_model=PlayerOut)
async def get_player(pid: str, session: AsyncSession = Depends(get_session)):
    p = await session.get(Player, pid)
    if not p:
        raise PlayerNotFound(pid)
    return _player_out(p)
