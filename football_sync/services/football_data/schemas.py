"""
Typed records for football-data.org v4 payloads.

The provider speaks camelCase JSON; the records expose snake_case
attributes matching our column names. Unknown fields are ignored so new
provider fields never break a sync.
"""
from typing import Any, Dict, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class _Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class CompetitionRecord(_Record):
    """Entry of ``GET /competitions``."""

    id: int
    name: str
    code: Optional[str] = None
    type: Optional[str] = None
    emblem: Optional[str] = None
    plan: Optional[str] = None


class TeamRecord(_Record):
    """Entry of ``GET /competitions/{code}/teams``."""

    id: int
    name: str
    short_name: Optional[str] = Field(default=None, alias="shortName")
    tla: Optional[str] = None
    crest: Optional[str] = None
    address: Optional[str] = None
    website: Optional[str] = None
    founded: Optional[int] = None
    club_colors: Optional[str] = Field(default=None, alias="clubColors")
    venue: Optional[str] = None


class MatchTeamRef(_Record):
    """Team reference embedded in a match; id is null while a cup tie is undecided."""

    id: Optional[int] = None
    name: Optional[str] = None


class MatchRecord(_Record):
    """Entry of ``GET /competitions/{code}/matches``."""

    id: int
    status: str
    utc_date: str = Field(alias="utcDate")
    stage: Optional[str] = None
    matchday: Optional[int] = None
    home_team: MatchTeamRef = Field(default_factory=MatchTeamRef, alias="homeTeam")
    away_team: MatchTeamRef = Field(default_factory=MatchTeamRef, alias="awayTeam")

    @field_validator("home_team", "away_team", mode="before")
    @classmethod
    def _null_team_is_unknown(cls, value: Any) -> Any:
        return {} if value is None else value


class InvalidRecord:
    """
    A collection entry that did not validate.

    Kept in the fetched list (instead of failing the whole fetch) so the
    consuming sync job can count it as a single record-level error.
    """

    def __init__(self, payload: Any, error: str):
        self.payload = payload
        self.error = error

    @property
    def external_id(self) -> Optional[Any]:
        return self.payload.get("id") if isinstance(self.payload, dict) else None

    def __repr__(self) -> str:
        return f"InvalidRecord(id={self.external_id!r}, error={self.error!r})"


R = TypeVar("R", bound=_Record)


def decode_records(model: Type[R], items: List[Dict[str, Any]]) -> List[Union[R, InvalidRecord]]:
    """Validate every item, keeping failures as InvalidRecord entries."""
    records: List[Union[R, InvalidRecord]] = []
    for item in items:
        try:
            records.append(model.model_validate(item))
        except ValidationError as e:
            records.append(InvalidRecord(item, f"{e.error_count()} validation error(s): {e.errors()[0]['msg']}"))
    return records
