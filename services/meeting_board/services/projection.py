"""
Projection of raw matchmaking API records into viewer-relative meetings.

The same meeting looks different to its initiator and to an invited
attendee. This is the only place that knows about the viewer; the
classifier and the layout only ever see the projected ``Meeting``.
"""

from typing import Any, Dict, Iterable, List, Union

from pydantic import ValidationError as PydanticValidationError

from services.common.logging_config import get_logger
from services.meeting_board.schemas import Meeting, RawAttendee, RawMeetingRecord
from services.meeting_board.services.timeparse import combine_meeting_range

logger = get_logger(__name__)

APPROVED_ATTENDEE_STATUSES = {"approved", "accepted", "confirmed", "upcoming", "scheduled"}
CANCELLED_STATUSES = {"cancelled", "canceled"}


def _attendee_approved(attendee: RawAttendee) -> bool:
    if attendee.is_approved is not None:
        return attendee.is_approved
    return (attendee.status or "").strip().lower() in APPROVED_ATTENDEE_STATUSES


def _resolve_approval(record: RawMeetingRecord, viewer_id: str, is_initiator: bool) -> bool:
    if record.is_approved is not None:
        return record.is_approved
    if is_initiator:
        # The initiator sees the meeting as approved once anyone invited confirms
        return any(_attendee_approved(attendee) for attendee in record.attendees)
    own = [a for a in record.attendees if a.attendee_id == viewer_id]
    if own:
        return any(_attendee_approved(attendee) for attendee in own)
    return any(_attendee_approved(attendee) for attendee in record.attendees)


def project_for_viewer(
    raw: Union[RawMeetingRecord, Dict[str, Any]], viewer_id: Union[str, int]
) -> Meeting:
    """
    Build the viewer-relative Meeting for one raw record.

    Args:
        raw: Record as returned by the matchmaking API (model or plain dict)
        viewer_id: Identifier of the visitor or exhibitor looking at it

    Returns:
        Meeting with parsed times (None when unparseable) and role flags
    """
    record = raw if isinstance(raw, RawMeetingRecord) else RawMeetingRecord.model_validate(raw)
    viewer = str(viewer_id)

    start_at, end_at = combine_meeting_range(
        record.meeting_date, record.start_time, record.end_time
    )
    is_initiator = record.initiator_id is not None and record.initiator_id == viewer
    status = (record.status or "").strip().lower()

    return Meeting(
        id=record.id,
        title=record.title or record.agenda or "",
        start_at=start_at,
        end_at=end_at,
        is_approved=_resolve_approval(record, viewer, is_initiator),
        is_cancelled=bool(record.is_cancelled) or status in CANCELLED_STATUSES,
        status=status,
        approval_status_hint=record.approval_status or "",
        is_initiator=is_initiator,
    )


def project_snapshot(
    records: Iterable[Union[RawMeetingRecord, Dict[str, Any]]],
    viewer_id: Union[str, int],
) -> List[Meeting]:
    """Project a whole API result, dropping records that are not meetings at all."""
    meetings: List[Meeting] = []
    skipped = 0
    for raw in records:
        try:
            meetings.append(project_for_viewer(raw, viewer_id))
        except PydanticValidationError as e:
            skipped += 1
            logger.warning(
                "Dropping malformed meeting record",
                viewer_id=str(viewer_id),
                errors=e.error_count(),
            )
    if skipped:
        logger.info(
            "Projected meeting snapshot with dropped records",
            viewer_id=str(viewer_id),
            kept=len(meetings),
            skipped=skipped,
        )
    return meetings
