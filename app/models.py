from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, Field


class RoomStatus(StrEnum):
    WAITING = "waiting"
    RUNNING = "running"
    COMPLETED = "completed"


class Unmatched(BaseModel):
    kind: Literal["unmatched"] = "unmatched"


class PairedWith(BaseModel):
    kind: Literal["paired"] = "paired"
    partner: str


class TripledWith(BaseModel):
    kind: Literal["tripled"] = "tripled"
    partners: tuple[str, str]


MatchState = Annotated[
    Unmatched | PairedWith | TripledWith, Field(discriminator="kind")
]


class Participant(BaseModel):
    id: str
    name: str
    affiliation: str
    tags: list[str] = []
    online: bool = True
    score: int = 0
    met: set[str] = set()
    match: MatchState = Field(default_factory=Unmatched)
    joined_at: str = ""

    @property
    def partner_ids(self) -> list[str]:
        """Ids this participant's match state points at (may be dangling)."""
        if isinstance(self.match, PairedWith):
            return [self.match.partner]
        if isinstance(self.match, TripledWith):
            return list(self.match.partners)
        return []


class Connection(BaseModel):
    id: str
    member_ids: list[str]
    group_size: int
    common_traits: list[str] = []
    individual_traits: dict[str, list[str]] = {}
    submitted_by: list[str] = []
    created_at: str = ""

    @property
    def is_complete(self) -> bool:
        return len(self.submitted_by) >= self.group_size


class Room(BaseModel):
    id: str
    name: str
    status: RoomStatus = RoomStatus.WAITING
    participants: dict[str, Participant] = {}
    connections: list[Connection] = []
    timer_end: str | None = None
    created_at: str = ""


class SubmissionOutcome(BaseModel):
    connection_id: str
    applied: bool
    delta: int = 0
    finalized: bool = False
    released: list[str] = []
