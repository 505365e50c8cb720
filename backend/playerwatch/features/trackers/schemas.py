"""Pydantic schemas for tracker operations."""

from typing import List, Optional

from pydantic import BaseModel, Field

from playerwatch.core.enums import MutationStatus
from playerwatch.features.social_graph.schemas import ScrapeReport
from .models import Player, Tracker


class TrackerEdit(BaseModel):
    """Values submitted by the tracker edit form.

    Optional form fields default to ``""``. An empty base location or notes
    clears the stored value; the clan tag is stored as entered.
    """

    name: str = Field(..., min_length=1)
    battlemetrics_id: str = ""
    clan_tag: str = ""
    base_location: str = ""
    notes: str = ""


class PlayerEdit(BaseModel):
    """Values submitted by the player edit form; ``""`` clears a field.

    ``discord_id`` may be a numeric user id or a username to look up.
    """

    steam_id: str = ""
    battlemetrics_id: str = ""
    discord_id: str = ""


class MutationResult(BaseModel):
    """Outcome of a tracker operation."""

    status: MutationStatus
    index: Optional[int] = Field(None, description="Index of the affected player")
    indices: List[int] = Field(
        default_factory=list, description="Indices of players added in bulk"
    )
    removed: int = 0
    player: Optional[Player] = None
    tracker: Optional[Tracker] = None

    @property
    def ok(self) -> bool:
        return self.status == MutationStatus.OK

    @classmethod
    def failed(cls, status: MutationStatus, index: Optional[int] = None) -> "MutationResult":
        return cls(status=status, index=index)


class ScrapeResult(BaseModel):
    """Outcome of scraping a tracked player's friends."""

    status: MutationStatus
    report: Optional[ScrapeReport] = None

    @property
    def ok(self) -> bool:
        return self.status == MutationStatus.OK
