from pydantic import BaseModel
from typing import Optional


class ProblemDetail(BaseModel):
    """RFC 7807 compliant error response."""

    type: str = "about:blank"
    title: str
    detail: Optional[str] = None
    status: int
    instance: Optional[str] = None
    code: str


class DomainException(Exception):
    """Base class for domain-specific exceptions."""

    def __init__(
        self,
        status_code: int,
        title: str,
        *,
        code: str,
        detail: str | None = None,
        type_: str = "about:blank",
    ) -> None:
        super().__init__(detail or title)
        self.status_code = status_code
        self.title = title
        self.detail = detail
        self.type = type_
        self.code = code


class WrongTurn(DomainException):
    def __init__(self, player_id: str, current_player_id: str | None) -> None:
        super().__init__(
            status_code=409,
            title="Wrong turn",
            detail=f"player '{player_id}' may not throw; current player is '{current_player_id}'",
            code="wrong_turn",
        )
        self.player_id = player_id
        self.current_player_id = current_player_id


class MatchInactive(DomainException):
    def __init__(self, match_id: str) -> None:
        super().__init__(
            status_code=409,
            title="Match inactive",
            detail=f"match '{match_id}' is finished or has no players",
            code="match_inactive",
        )
        self.match_id = match_id


class InvalidConfiguration(DomainException):
    def __init__(self, detail: str) -> None:
        super().__init__(
            status_code=422,
            title="Invalid configuration",
            detail=detail,
            code="invalid_configuration",
        )


class PersistenceFailure(DomainException):
    def __init__(self, detail: str) -> None:
        super().__init__(
            status_code=503,
            title="Persistence failure",
            detail=detail,
            code="persistence_failure",
        )


class UnknownPlayer(DomainException):
    def __init__(self, match_id: str, player_id: str) -> None:
        super().__init__(
            status_code=404,
            title="Player not in match",
            detail=f"player '{player_id}' is not part of match '{match_id}'",
            code="player_not_in_match",
        )


class MatchNotFound(DomainException):
    def __init__(self, match_id: str) -> None:
        super().__init__(
            status_code=404,
            title="Match not found",
            detail=f"match '{match_id}' not found",
            code="match_not_found",
        )


class PlayerAlreadyExists(DomainException):
    def __init__(self, name: str) -> None:
        super().__init__(
            status_code=400,
            title="Player exists",
            detail=f"player name '{name}' already exists",
            code="player_exists",
        )


class PlayerNotFound(DomainException):
    def __init__(self, player_id: str) -> None:
        super().__init__(
            status_code=404,
            title="Player not found",
            detail=f"player '{player_id}' not found",
            code="player_not_found",
        )
