from __future__ import annotations

from fastapi import APIRouter

from ..config import DEFAULT_REVOKE_DOUBLE_IN_ON_BUST
from ..schemas import GameModeOut
from ..scoring import MODE_NAMES, default_rules, parse_mode

router = APIRouter(prefix="/modes", tags=["modes"])


# GET /api/v0/modes
@router.get("", response_model=list[GameModeOut])
async def list_modes() -> list[GameModeOut]:
    catalog = []
    for mode_id, name in MODE_NAMES.items():
        rules = default_rules(
            parse_mode(mode_id),
            revoke_double_in_on_bust=DEFAULT_REVOKE_DOUBLE_IN_ON_BUST,
        )
        catalog.append(GameModeOut(id=mode_id, name=name, defaultRules=rules.to_payload()))
    return catalog
