"""
Tests for overlap clustering of same-day meetings.
"""

import random

from services.meeting_board.services.overlap import (
    cluster_index,
    group_overlaps,
    meeting_interval,
    ranges_overlap,
)
from services.meeting_board.tests.meeting_board_test_base import make_meeting


def ids(cluster):
    return [meeting.id for meeting in cluster.meetings]


class TestRangesOverlap:
    def test_strict_intersection(self):
        assert ranges_overlap((540, 600), (570, 630))
        assert ranges_overlap((540, 660), (570, 600))

    def test_touching_ranges_do_not_overlap(self):
        assert not ranges_overlap((540, 600), (600, 660))
        assert not ranges_overlap((600, 660), (540, 600))


class TestMeetingInterval:
    def test_minutes_from_midnight(self):
        assert meeting_interval(make_meeting("a", "09:15", "10:45")) == (555, 645)

    def test_missing_time_gives_none(self):
        assert meeting_interval(make_meeting("a", "09:00", None)) is None
        assert meeting_interval(make_meeting("b", None, "10:00")) is None


class TestGroupOverlaps:
    def test_transitive_chain_forms_one_cluster(self):
        a = make_meeting("A", "09:00", "10:30")
        b = make_meeting("B", "10:00", "11:00")
        c = make_meeting("C", "10:45", "11:30")
        assert not ranges_overlap(meeting_interval(a), meeting_interval(c))

        clusters = group_overlaps([a, b, c])
        assert len(clusters) == 1
        assert clusters[0].size == 3
        assert clusters[0].start_minute == 540
        assert clusters[0].end_minute == 690

    def test_bridge_found_regardless_of_input_order(self):
        """The bridging meeting comes last, so one scan pass is not enough."""
        a = make_meeting("A", "09:00", "10:30")
        c = make_meeting("C", "10:45", "11:30")
        b = make_meeting("B", "10:00", "11:00")
        clusters = group_overlaps([a, c, b])
        assert len(clusters) == 1
        assert ids(clusters[0]) == ["A", "C", "B"]

    def test_adjacent_meetings_stay_separate(self):
        a = make_meeting("A", "09:00", "10:00")
        b = make_meeting("B", "10:00", "11:00")
        clusters = group_overlaps([a, b])
        assert [cluster.size for cluster in clusters] == [1, 1]
        assert [ids(cluster) for cluster in clusters] == [["A"], ["B"]]

    def test_clusters_sorted_by_earliest_start(self):
        late = make_meeting("late", "15:00", "16:00")
        early = make_meeting("early", "09:00", "09:30")
        middle_a = make_meeting("mid-a", "12:00", "13:00")
        middle_b = make_meeting("mid-b", "12:30", "13:30")
        clusters = group_overlaps([late, middle_b, early, middle_a])
        assert [ids(cluster) for cluster in clusters] == [
            ["early"],
            ["mid-b", "mid-a"],
            ["late"],
        ]

    def test_meetings_without_times_are_skipped(self):
        placed = make_meeting("placed", "09:00", "10:00")
        no_end = make_meeting("no-end", "09:00", None)
        no_start = make_meeting("no-start", None, "10:00")
        clusters = group_overlaps([placed, no_end, no_start])
        assert [ids(cluster) for cluster in clusters] == [["placed"]]

    def test_empty_input(self):
        assert group_overlaps([]) == []

    def test_inverted_meeting_forms_its_own_cluster(self):
        inverted = make_meeting("inv", "10:00", "09:00")
        normal = make_meeting("ok", "09:00", "11:00")
        # The raw formula would report an overlap here
        assert ranges_overlap(meeting_interval(inverted), meeting_interval(normal))

        clusters = group_overlaps([inverted, normal])
        assert [ids(cluster) for cluster in clusters] == [["ok"], ["inv"]]
        assert all(cluster.size == 1 for cluster in clusters)

    def test_inverted_meeting_does_not_bridge_clusters(self):
        a = make_meeting("A", "09:00", "09:30")
        bridge = make_meeting("bridge", "11:00", "09:00")
        b = make_meeting("B", "10:00", "10:30")
        clusters = group_overlaps([a, bridge, b])
        assert len(clusters) == 3

    def test_partition_invariant_on_random_days(self):
        rng = random.Random(20240125)
        for _ in range(50):
            meetings = []
            for index in range(rng.randint(1, 12)):
                start = rng.randint(8 * 60, 17 * 60)
                duration = rng.choice([15, 30, 45, 60, 90])
                end = start + duration
                meetings.append(
                    make_meeting(
                        f"m{index}",
                        f"{start // 60:02d}:{start % 60:02d}",
                        f"{min(end, 23 * 60 + 59) // 60:02d}:{min(end, 23 * 60 + 59) % 60:02d}",
                    )
                )

            clusters = group_overlaps(meetings)

            placed = [meeting.id for cluster in clusters for meeting in cluster.meetings]
            assert sorted(placed) == sorted(m.id for m in meetings)
            assert all(cluster.size >= 1 for cluster in clusters)

            # No meeting overlaps a meeting in a different cluster
            index = cluster_index(clusters)
            for first in meetings:
                for second in meetings:
                    if ranges_overlap(meeting_interval(first), meeting_interval(second)):
                        assert index[first.id] == index[second.id]

            starts = [cluster.start_minute for cluster in clusters]
            assert starts == sorted(starts)

    def test_input_is_not_mutated(self):
        meetings = [make_meeting("b", "10:00", "11:00"), make_meeting("a", "09:00", "10:30")]
        snapshot = list(meetings)
        group_overlaps(meetings)
        assert meetings == snapshot
