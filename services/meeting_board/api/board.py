from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from services.common.http_errors import ErrorCode, ServiceError, ValidationError
from services.common.logging_config import get_logger
from services.meeting_board.schemas import (
    BoardResponse,
    Classification,
    ClassifyRequest,
    HourRange,
    LayoutRequest,
    LayoutResponse,
    ViewerRole,
)
from services.meeting_board.services.layout import build_calendar, layout_day
from services.meeting_board.services.lifecycle import classify
from services.meeting_board.services.snapshot_provider import (
    MeetingSnapshotProvider,
    get_snapshot_provider,
)
from services.meeting_board.settings import get_settings

logger = get_logger(__name__)

router = APIRouter()


def default_hour_range() -> HourRange:
    settings = get_settings()
    try:
        return HourRange(
            first_hour=settings.calendar_first_hour,
            last_hour=settings.calendar_last_hour,
        )
    except ValueError as e:
        # pydantic's ValidationError is a ValueError
        raise ServiceError(
            "Configured calendar hours are invalid",
            details={"setting": "calendar_hours", "error": str(e)},
            code=ErrorCode.SERVICE_ERROR,
            status_code=500,
        )


def resolve_grid(
    hour_range: Optional[HourRange],
    px_per_hour: Optional[float],
    min_block_height: Optional[float],
) -> tuple[HourRange, float, float]:
    settings = get_settings()
    px = px_per_hour if px_per_hour is not None else settings.calendar_px_per_hour
    if px <= 0:
        raise ValidationError("px_per_hour must be positive", field="px_per_hour", value=px)
    min_height = (
        min_block_height
        if min_block_height is not None
        else settings.calendar_min_block_height
    )
    return hour_range or default_hour_range(), px, min_height


@router.post("/classify", response_model=Classification)
def classify_meetings(body: ClassifyRequest) -> Classification:
    """Split a meeting snapshot into the dashboard tabs."""
    return classify(body.meetings, body.now)


@router.post("/layout", response_model=LayoutResponse)
def layout_meetings(body: LayoutRequest) -> LayoutResponse:
    """Lay out one day's meetings on the calendar grid."""
    hour_range, px_per_hour, min_block_height = resolve_grid(
        body.hour_range, body.px_per_hour, body.min_block_height
    )
    days = {meeting.start_at.date() for meeting in body.meetings if meeting.start_at}
    if len(days) > 1:
        raise ValidationError(
            "All meetings must start on the same day",
            field="meetings",
            details={"days": sorted(day.isoformat() for day in days)},
        )
    blocks = layout_day(body.meetings, hour_range, px_per_hour, min_block_height)
    return LayoutResponse(blocks=blocks)


@router.get(
    "/events/{event_identifier}/viewers/{viewer_id}/board",
    response_model=BoardResponse,
)
async def get_board(
    event_identifier: str,
    viewer_id: str,
    role: ViewerRole = Query(ViewerRole.visitor),
    now: Optional[datetime] = Query(None),
    first_hour: Optional[int] = Query(None, ge=0, le=23),
    last_hour: Optional[int] = Query(None, ge=0, le=23),
    refresh: bool = Query(False),
    provider: MeetingSnapshotProvider = Depends(get_snapshot_provider),
) -> BoardResponse:
    """Fetch the viewer's meetings and return tabs plus calendar in one call."""
    hour_range = None
    if first_hour is not None or last_hour is not None:
        settings = get_settings()
        first = first_hour if first_hour is not None else settings.calendar_first_hour
        last = last_hour if last_hour is not None else settings.calendar_last_hour
        if first > last:
            raise ValidationError(
                "first_hour must not be after last_hour",
                field="hour_range",
                details={"first_hour": first, "last_hour": last},
            )
        hour_range = HourRange(first_hour=first, last_hour=last)
    hour_range, px_per_hour, min_block_height = resolve_grid(hour_range, None, None)

    # Wall clock is the caller-side fallback when no instant is supplied
    current = now or datetime.now()
    meetings = await provider.fetch_meetings(
        event_identifier, viewer_id, role, use_cache=not refresh
    )
    classification = classify(meetings, current)
    calendar = build_calendar(
        meetings, current, hour_range, px_per_hour, min_block_height
    )
    logger.info(
        "Built meeting board",
        event_identifier=event_identifier,
        viewer_id=viewer_id,
        meeting_count=len(meetings),
        calendar_days=len(calendar),
    )
    return BoardResponse(
        event_identifier=event_identifier,
        viewer_id=viewer_id,
        now=current,
        classification=classification,
        calendar=calendar,
    )
