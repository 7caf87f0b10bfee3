"""
Meeting Board schemas.

Meetings are immutable snapshots owned by the caller; everything else here is
derived on each classification or render pass.
"""

import enum
from datetime import date, datetime
from typing import Any, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class LifecycleCategory(str, enum.Enum):
    pending = "pending"
    upcoming = "upcoming"
    ongoing = "ongoing"
    completed = "completed"
    cancelled = "cancelled"


class ViewerRole(str, enum.Enum):
    visitor = "visitor"
    exhibitor = "exhibitor"


class Meeting(BaseModel):
    """A normalized meeting as seen by one viewer.

    ``start_at``/``end_at`` are ``None`` when the source times could not be
    parsed. ``start_at <= end_at`` is assumed but not enforced.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    title: str = ""
    start_at: Optional[datetime] = None
    end_at: Optional[datetime] = None
    is_approved: bool = False
    is_cancelled: bool = False
    status: str = ""
    approval_status_hint: str = ""
    is_initiator: bool = False

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Union[str, int]) -> str:
        return str(v)

    @field_validator("approval_status_hint", mode="before")
    @classmethod
    def lower_hint(cls, v: Optional[str]) -> str:
        return (v or "").strip().lower()


class CategoryCounts(BaseModel):
    pending: int = 0
    upcoming: int = 0
    ongoing: int = 0
    completed: int = 0
    cancelled: int = 0


class Classification(BaseModel):
    """Tab memberships for a snapshot. A meeting may appear in several lists."""

    pending: List[Meeting] = []
    upcoming: List[Meeting] = []
    ongoing: List[Meeting] = []
    completed: List[Meeting] = []
    cancelled: List[Meeting] = []
    counts: CategoryCounts = Field(default_factory=CategoryCounts)


class OverlapCluster(BaseModel):
    """Meetings on one day whose time ranges transitively intersect."""

    model_config = ConfigDict(frozen=True)

    meetings: Tuple[Meeting, ...]
    start_minute: int
    end_minute: int

    @property
    def size(self) -> int:
        return len(self.meetings)


class HourRange(BaseModel):
    model_config = ConfigDict(frozen=True)

    first_hour: int = Field(9, ge=0, le=23)
    last_hour: int = Field(18, ge=0, le=23)

    @model_validator(mode="after")
    def check_order(self) -> "HourRange":
        if self.first_hour > self.last_hour:
            raise ValueError("first_hour must not be after last_hour")
        return self

    @property
    def start_minute(self) -> int:
        return self.first_hour * 60

    @property
    def end_minute(self) -> int:
        return (self.last_hour + 1) * 60


class LayoutBlock(BaseModel):
    """Render geometry for one meeting on the day grid.

    ``top_offset`` is measured from the top of the ``hour_slot`` row.
    """

    meeting_id: str
    cluster_size: int
    column_index: int
    column_width_pct: float
    left_pct: float
    hour_slot: int
    top_offset: float
    height: float


class DayLayout(BaseModel):
    day: date
    blocks: List[LayoutBlock] = []


# Remote record shapes, as returned by the matchmaking API


class RawAttendee(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    attendee_id: Optional[str] = Field(None, alias="attendeeId")
    status: Optional[str] = None
    is_approved: Optional[bool] = Field(None, alias="isApproved")

    @field_validator("attendee_id", mode="before")
    @classmethod
    def coerce_attendee_id(cls, v: Union[str, int, None]) -> Optional[str]:
        return None if v is None else str(v)


class RawMeetingRecord(BaseModel):
    """One meeting record from the matchmaking API, before viewer projection."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    title: Optional[str] = None
    agenda: Optional[str] = None
    meeting_date: Optional[str] = Field(None, alias="meetingDate")
    start_time: Optional[str] = Field(None, alias="startTime")
    end_time: Optional[str] = Field(None, alias="endTime")
    status: Optional[str] = None
    approval_status: Optional[str] = Field(None, alias="approvalStatus")
    is_approved: Optional[bool] = Field(None, alias="isApproved")
    is_cancelled: Optional[bool] = Field(None, alias="isCancelled")
    initiator_id: Optional[str] = Field(None, alias="initiatorId")
    visitor_id: Optional[str] = Field(None, alias="visitorId")
    exhibitor_id: Optional[str] = Field(None, alias="exhibitorId")
    attendees: List[RawAttendee] = []

    @field_validator(
        "id", "initiator_id", "visitor_id", "exhibitor_id", mode="before"
    )
    @classmethod
    def coerce_ids(cls, v: Union[str, int, None]) -> Optional[str]:
        return None if v is None else str(v)


class ApiEnvelope(BaseModel):
    """Response wrapper used by every matchmaking API endpoint."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    version: Optional[Any] = None
    status_code: Optional[int] = Field(None, alias="statusCode")
    message: Optional[str] = None
    is_error: bool = Field(False, alias="isError")
    result: Any = None


# Request/response models for the HTTP surface


class ClassifyRequest(BaseModel):
    meetings: List[Meeting]
    now: datetime


class LayoutRequest(BaseModel):
    meetings: List[Meeting]
    hour_range: Optional[HourRange] = None
    px_per_hour: Optional[float] = Field(None, gt=0)
    min_block_height: Optional[float] = Field(None, ge=0)


class LayoutResponse(BaseModel):
    blocks: List[LayoutBlock]


class BoardResponse(BaseModel):
    event_identifier: str
    viewer_id: str
    now: datetime
    classification: Classification
    calendar: List[DayLayout]


__all__ = [
    "ApiEnvelope",
    "BoardResponse",
    "CategoryCounts",
    "Classification",
    "ClassifyRequest",
    "DayLayout",
    "HourRange",
    "LayoutBlock",
    "LayoutRequest",
    "LayoutResponse",
    "LifecycleCategory",
    "Meeting",
    "OverlapCluster",
    "RawAttendee",
    "RawMeetingRecord",
    "ViewerRole",
]
