"""
Column layout for the meeting calendar grid.

Each overlap cluster is split into equal-width columns, one per member, in
start-time order. This is not minimum interval-graph colouring: a chain of
three meetings where only neighbours overlap still gets three columns. The
grid UI relies on that predictable shape.
"""

from collections import defaultdict
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Sequence

from services.common.logging_config import get_logger
from services.meeting_board.schemas import (
    DayLayout,
    HourRange,
    LayoutBlock,
    Meeting,
    OverlapCluster,
)
from services.meeting_board.services.lifecycle import is_upcoming
from services.meeting_board.services.overlap import group_overlaps, meeting_interval

logger = get_logger(__name__)

DEFAULT_HOUR_RANGE = HourRange(first_hour=9, last_hour=18)
DEFAULT_PX_PER_HOUR = 60.0
DEFAULT_MIN_BLOCK_HEIGHT = 20.0


def block_geometry(
    start_minute: int,
    end_minute: int,
    hour_range: HourRange,
    px_per_hour: float,
    min_block_height: float = DEFAULT_MIN_BLOCK_HEIGHT,
) -> tuple[int, float, float]:
    """
    Place a ``[start_minute, end_minute)`` range on the hour grid.

    Args:
        start_minute: Start in minutes from midnight
        end_minute: End in minutes from midnight (may precede the start)
        hour_range: Hour rows rendered on the grid
        px_per_hour: Pixel height of one hour row
        min_block_height: Smallest height a block is drawn with

    Returns:
        ``(hour_slot, top_offset, height)`` where ``top_offset`` is measured
        from the top of the ``hour_slot`` row. The block never extends past
        the last row, even if that means going below ``min_block_height``.
        A meeting lying entirely before or after the grid gets height 0.
    """
    grid_start = hour_range.start_minute
    grid_end = hour_range.end_minute

    visible_start = min(max(start_minute, grid_start), grid_end)
    visible_end = min(max(end_minute, grid_start), grid_end)
    hour_slot = min(visible_start // 60, hour_range.last_hour)
    top_offset = (visible_start - hour_slot * 60) / 60 * px_per_hour

    if start_minute <= end_minute and (end_minute <= grid_start or start_minute >= grid_end):
        return hour_slot, top_offset, 0.0

    duration = visible_end - visible_start
    height = max(duration / 60 * px_per_hour, min_block_height)
    room_left = (grid_end - visible_start) / 60 * px_per_hour
    height = min(height, room_left)
    return hour_slot, top_offset, height


def assign_columns(
    cluster: OverlapCluster,
    hour_range: HourRange = DEFAULT_HOUR_RANGE,
    px_per_hour: float = DEFAULT_PX_PER_HOUR,
    min_block_height: float = DEFAULT_MIN_BLOCK_HEIGHT,
) -> List[LayoutBlock]:
    """Give every cluster member its own equal-width column, ordered by start."""
    size = cluster.size
    width = 100 / size
    placed = []
    for meeting in cluster.meetings:
        interval = meeting_interval(meeting)
        if interval is not None:
            placed.append((meeting, interval))
    # Stable sort: equal starts keep cluster order
    placed.sort(key=lambda entry: entry[1][0])

    blocks = []
    for column_index, (meeting, (start_minute, end_minute)) in enumerate(placed):
        hour_slot, top_offset, height = block_geometry(
            start_minute, end_minute, hour_range, px_per_hour, min_block_height
        )
        blocks.append(
            LayoutBlock(
                meeting_id=meeting.id,
                cluster_size=size,
                column_index=column_index,
                column_width_pct=width,
                left_pct=column_index * width,
                hour_slot=hour_slot,
                top_offset=top_offset,
                height=height,
            )
        )
    return blocks


def layout_day(
    meetings: Sequence[Meeting],
    hour_range: Optional[HourRange] = None,
    px_per_hour: float = DEFAULT_PX_PER_HOUR,
    min_block_height: float = DEFAULT_MIN_BLOCK_HEIGHT,
) -> List[LayoutBlock]:
    """
    Lay out one day's meetings so overlapping meetings sit side by side.

    Args:
        meetings: Meetings on a single calendar day
        hour_range: Hour rows of the grid (business hours when omitted)
        px_per_hour: Pixel height of one hour row
        min_block_height: Smallest height a block is drawn with

    Returns:
        One block per placeable meeting, cluster by cluster
    """
    hour_range = hour_range or DEFAULT_HOUR_RANGE
    blocks: List[LayoutBlock] = []
    for cluster in group_overlaps(meetings):
        blocks.extend(assign_columns(cluster, hour_range, px_per_hour, min_block_height))
    return blocks


def group_by_day(meetings: Iterable[Meeting]) -> Dict[date, List[Meeting]]:
    """Bucket meetings by the calendar day they start on, days in order."""
    by_day: Dict[date, List[Meeting]] = defaultdict(list)
    for meeting in meetings:
        if meeting.start_at is None:
            continue
        by_day[meeting.start_at.date()].append(meeting)
    return dict(sorted(by_day.items()))


def build_calendar(
    meetings: Iterable[Meeting],
    now: datetime,
    hour_range: Optional[HourRange] = None,
    px_per_hour: float = DEFAULT_PX_PER_HOUR,
    min_block_height: float = DEFAULT_MIN_BLOCK_HEIGHT,
) -> List[DayLayout]:
    """Calendar view: upcoming meetings only, laid out per day."""
    upcoming = [meeting for meeting in meetings if is_upcoming(meeting, now)]
    days = [
        DayLayout(
            day=day,
            blocks=layout_day(day_meetings, hour_range, px_per_hour, min_block_height),
        )
        for day, day_meetings in group_by_day(upcoming).items()
    ]
    logger.debug(
        "Built calendar layout",
        upcoming_count=len(upcoming),
        day_count=len(days),
    )
    return days
