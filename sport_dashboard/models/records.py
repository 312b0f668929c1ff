"""In-memory snapshot records.

These are the shapes handed to the statistics layer and written by the JSON
storage backend. Attribute names mirror the SQLAlchemy models so ORM rows can
be converted with ``model_validate(row)``.
"""
from datetime import datetime, timezone
from typing import Literal, Optional
import uuid

from pydantic import BaseModel, ConfigDict, Field, field_validator

SportType = Literal["padel", "badminton"]
MatchType = Literal["singles", "doubles"]
Side = Literal["player1", "player2"]

SPORT_TYPES = ("padel", "badminton")
MATCH_TYPES = ("singles", "doubles")


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    return str(uuid.uuid4())


def naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class Record(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class PlayerRecord(Record):
    id: str = Field(default_factory=new_id)
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)

    @field_validator("created_at")
    @classmethod
    def created_at_utc(cls, value):
        return naive_utc(value)


class SetRecord(Record):
    id: str = Field(default_factory=new_id)
    set_order: int = 1
    player1_score: int
    player2_score: int
    winner: Side


class MatchRecord(Record):
    id: str = Field(default_factory=new_id)
    sport_type: SportType
    match_type: MatchType
    player1_id: str
    player2_id: str
    player3_id: Optional[str] = None
    player4_id: Optional[str] = None
    player1_name: str
    player2_name: str
    player3_name: Optional[str] = None
    player4_name: Optional[str] = None
    sets: list[SetRecord] = Field(default_factory=list)
    winner: Optional[Side] = None
    date: datetime
    duration: Optional[int] = None
    notes: Optional[str] = None

    @field_validator("date")
    @classmethod
    def date_utc(cls, value):
        return naive_utc(value)


class Snapshot(BaseModel):
    players: list[PlayerRecord] = Field(default_factory=list)
    matches: list[MatchRecord] = Field(default_factory=list)
