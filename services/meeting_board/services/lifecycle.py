"""
Meeting lifecycle classification for the dashboard tabs and badges.

The five predicates are evaluated independently. With inconsistent source
data (for example ``is_approved=True`` together with a ``"pending"`` hint) a
meeting can satisfy more than one of them, or none. That is preserved rather
than normalized: the tab UI decides what to show, and ``primary_category``
exists for callers that need exactly one answer.
"""

from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional

from services.common.logging_config import get_logger
from services.meeting_board.schemas import (
    CategoryCounts,
    Classification,
    LifecycleCategory,
    Meeting,
)
from services.meeting_board.services.timeparse import same_frame

logger = get_logger(__name__)

PENDING_HINT = "pending"
UPCOMING_HINT = "upcoming"
CANCELLED_STATUS = "cancelled"


def is_cancelled(meeting: Meeting) -> bool:
    return meeting.status.strip().lower() == CANCELLED_STATUS or meeting.is_cancelled


def is_pending(meeting: Meeting) -> bool:
    if is_cancelled(meeting):
        return False
    hint = meeting.approval_status_hint
    return hint == PENDING_HINT or (not meeting.is_approved and hint != UPCOMING_HINT)


def _is_confirmed(meeting: Meeting) -> bool:
    # Ongoing/completed only need some approval signal; a "pending" hint does not veto it.
    return meeting.is_approved or meeting.approval_status_hint == UPCOMING_HINT


def is_upcoming(meeting: Meeting, now: datetime) -> bool:
    if is_cancelled(meeting) or meeting.start_at is None:
        return False
    hint = meeting.approval_status_hint
    approved = hint == UPCOMING_HINT or (meeting.is_approved and hint != PENDING_HINT)
    return approved and meeting.start_at > same_frame(now, meeting.start_at)


def is_ongoing(meeting: Meeting, now: datetime) -> bool:
    if meeting.start_at is None or meeting.end_at is None:
        return False
    if is_cancelled(meeting) or not _is_confirmed(meeting):
        return False
    return (
        meeting.start_at
        <= same_frame(now, meeting.start_at)
        <= same_frame(meeting.end_at, meeting.start_at)
    )


def is_completed(meeting: Meeting, now: datetime) -> bool:
    if meeting.end_at is None:
        return False
    if is_cancelled(meeting) or not _is_confirmed(meeting):
        return False
    return same_frame(now, meeting.end_at) > meeting.end_at


PREDICATES: Dict[LifecycleCategory, Callable[[Meeting, datetime], bool]] = {
    LifecycleCategory.pending: lambda m, now: is_pending(m),
    LifecycleCategory.upcoming: is_upcoming,
    LifecycleCategory.ongoing: is_ongoing,
    LifecycleCategory.completed: is_completed,
    LifecycleCategory.cancelled: lambda m, now: is_cancelled(m),
}

# Display precedence when a single category is required.
PRIMARY_PRECEDENCE = (
    LifecycleCategory.cancelled,
    LifecycleCategory.ongoing,
    LifecycleCategory.completed,
    LifecycleCategory.pending,
    LifecycleCategory.upcoming,
)


def categories_for(meeting: Meeting, now: datetime) -> List[LifecycleCategory]:
    """Every category the meeting belongs to at ``now``, in enum order."""
    return [category for category, check in PREDICATES.items() if check(meeting, now)]


def primary_category(meeting: Meeting, now: datetime) -> Optional[LifecycleCategory]:
    """The single category to display, or None if no predicate holds."""
    for category in PRIMARY_PRECEDENCE:
        if PREDICATES[category](meeting, now):
            return category
    return None


def classify(meetings: Iterable[Meeting], now: datetime) -> Classification:
    """
    Split a snapshot into the five dashboard tabs.

    Input order is preserved inside each tab. The meetings themselves are not
    copied or modified.

    Args:
        meetings: Snapshot of meetings for one viewer
        now: Current instant in the same frame as the meeting times

    Returns:
        Classification with one list per category and their counts
    """
    buckets: Dict[LifecycleCategory, List[Meeting]] = {
        category: [] for category in LifecycleCategory
    }
    total = 0
    for meeting in meetings:
        total += 1
        for category in categories_for(meeting, now):
            buckets[category].append(meeting)

    counts = CategoryCounts(
        **{category.value: len(members) for category, members in buckets.items()}
    )
    logger.debug(
        "Classified meeting snapshot",
        meeting_count=total,
        **counts.model_dump(),
    )
    return Classification(
        **{category.value: members for category, members in buckets.items()},
        counts=counts,
    )


def count_by_category(meetings: Iterable[Meeting], now: datetime) -> CategoryCounts:
    """Badge counters for a snapshot."""
    return classify(meetings, now).counts
