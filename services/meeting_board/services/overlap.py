"""
Overlap clustering for meetings that share one calendar day.
"""

from typing import Dict, List, Optional, Sequence, Tuple

from services.common.logging_config import get_logger
from services.meeting_board.schemas import Meeting, OverlapCluster
from services.meeting_board.services.timeparse import minute_of_day

logger = get_logger(__name__)

Interval = Tuple[int, int]


def meeting_interval(meeting: Meeting) -> Optional[Interval]:
    """``[start, end)`` in minutes from midnight of the meeting's start day.

    None when either time is missing; such a meeting has no place on the grid.
    """
    if meeting.start_at is None or meeting.end_at is None:
        return None
    day = meeting.start_at.date()
    return minute_of_day(meeting.start_at, day), minute_of_day(meeting.end_at, day)


def ranges_overlap(a: Interval, b: Interval) -> bool:
    """Strict intersection: ranges that only touch at an endpoint do not overlap."""
    return a[0] < b[1] and b[0] < a[1]


def _is_forward(interval: Interval) -> bool:
    # Inverted intervals (end before start) never join or attract a cluster
    return interval[0] <= interval[1]


def group_overlaps(meetings: Sequence[Meeting]) -> List[OverlapCluster]:
    """
    Partition one day's meetings into clusters of transitively overlapping meetings.

    A meeting joins a cluster when it overlaps any member already in it, so a
    meeting that bridges two others pulls all three together even if the outer
    two never overlap each other. Scanning repeats until a pass adds nothing.

    Meetings whose start or end could not be parsed have no place on the grid
    and are left out. A meeting that ends before it starts always forms a
    cluster of its own.

    Args:
        meetings: Meetings on the same calendar day, in input order

    Returns:
        Clusters ordered by earliest start; members keep their input order
    """
    placeable: List[Tuple[int, Meeting, Interval]] = []
    for index, meeting in enumerate(meetings):
        interval = meeting_interval(meeting)
        if interval is None:
            logger.debug("Skipping meeting without parsed times", meeting_id=meeting.id)
            continue
        placeable.append((index, meeting, interval))

    remaining = list(placeable)
    groups: List[List[Tuple[int, Meeting, Interval]]] = []
    while remaining:
        group = [remaining.pop(0)]
        added = True
        while added:
            added = False
            still_remaining = []
            for candidate in remaining:
                if _is_forward(candidate[2]) and any(
                    _is_forward(member[2]) and ranges_overlap(candidate[2], member[2])
                    for member in group
                ):
                    group.append(candidate)
                    added = True
                else:
                    still_remaining.append(candidate)
            remaining = still_remaining
        group.sort(key=lambda entry: entry[0])
        groups.append(group)

    clusters = [
        OverlapCluster(
            meetings=tuple(entry[1] for entry in group),
            start_minute=min(entry[2][0] for entry in group),
            end_minute=max(entry[2][1] for entry in group),
        )
        for group in groups
    ]
    # sorted() is stable, so clusters that start together keep discovery order
    clusters = sorted(clusters, key=lambda cluster: cluster.start_minute)

    logger.debug(
        "Grouped overlapping meetings",
        meeting_count=len(placeable),
        cluster_sizes=[cluster.size for cluster in clusters],
    )
    return clusters


def cluster_index(clusters: Sequence[OverlapCluster]) -> Dict[str, int]:
    """Map each meeting id to the position of the cluster that holds it."""
    return {
        meeting.id: position
        for position, cluster in enumerate(clusters)
        for meeting in cluster.meetings
    }
