"""
Tests for meeting lifecycle classification.
"""

from datetime import datetime, timedelta, timezone

import pytest

from services.meeting_board.schemas import LifecycleCategory
from services.meeting_board.services.lifecycle import (
    categories_for,
    classify,
    count_by_category,
    is_cancelled,
    is_completed,
    is_ongoing,
    is_pending,
    is_upcoming,
    primary_category,
)
from services.meeting_board.tests.meeting_board_test_base import at, make_meeting

TIME_SENSITIVE = (is_upcoming, is_ongoing, is_completed)


class TestCancelled:
    def test_status_or_flag(self):
        assert is_cancelled(make_meeting("a", status="cancelled"))
        assert is_cancelled(make_meeting("b", status="Cancelled"))
        assert is_cancelled(make_meeting("c", is_cancelled=True))
        assert not is_cancelled(make_meeting("d"))

    @pytest.mark.parametrize(
        "overrides",
        [
            {},
            {"is_approved": False},
            {"approval_status_hint": "pending"},
            {"approval_status_hint": "upcoming"},
            {"start": None, "end": None},
        ],
    )
    def test_cancelled_dominates_every_other_category(self, overrides):
        meeting = make_meeting("m", is_cancelled=True, **overrides)
        for now in (at("08:00"), at("09:30"), at("11:00")):
            assert not is_pending(meeting)
            assert not is_upcoming(meeting, now)
            assert not is_ongoing(meeting, now)
            assert not is_completed(meeting, now)
            assert categories_for(meeting, now) == [LifecycleCategory.cancelled]


class TestPending:
    def test_unapproved_meeting_is_pending(self):
        assert is_pending(make_meeting("m", is_approved=False))

    def test_pending_hint_wins_over_approval(self):
        assert is_pending(make_meeting("m", is_approved=True, approval_status_hint="pending"))

    def test_upcoming_hint_clears_pending(self):
        assert not is_pending(
            make_meeting("m", is_approved=False, approval_status_hint="upcoming")
        )

    def test_hint_is_case_insensitive(self):
        meeting = make_meeting("m", is_approved=True, approval_status_hint="  PENDING ")
        assert meeting.approval_status_hint == "pending"
        assert is_pending(meeting)

    def test_pending_does_not_need_times(self):
        assert is_pending(make_meeting("m", start=None, end=None, is_approved=False))


class TestUpcoming:
    def test_approved_future_meeting(self):
        assert is_upcoming(make_meeting("m", "11:00", "11:30"), at("09:00"))

    def test_started_meeting_is_not_upcoming(self):
        meeting = make_meeting("m", "09:00", "10:00")
        assert not is_upcoming(meeting, at("09:00"))
        assert not is_upcoming(meeting, at("09:30"))

    def test_upcoming_hint_without_approval(self):
        meeting = make_meeting("m", "11:00", "12:00", is_approved=False, approval_status_hint="upcoming")
        assert is_upcoming(meeting, at("09:00"))

    def test_pending_hint_blocks_upcoming(self):
        meeting = make_meeting("m", "11:00", "12:00", approval_status_hint="pending")
        assert not is_upcoming(meeting, at("09:00"))

    def test_missing_end_still_allows_upcoming(self):
        assert is_upcoming(make_meeting("m", "11:00", None), at("09:00"))

    def test_missing_start_is_never_upcoming(self):
        assert not is_upcoming(make_meeting("m", None, "11:00"), at("09:00"))


class TestOngoingAndCompleted:
    def test_boundaries_are_inclusive_for_ongoing(self):
        meeting = make_meeting("m", "09:00", "10:00")
        assert is_ongoing(meeting, at("09:00"))
        assert is_ongoing(meeting, at("10:00"))
        assert not is_completed(meeting, at("10:00"))
        assert is_completed(meeting, at("10:00") + timedelta(seconds=1))

    def test_unapproved_meeting_never_ongoing_or_completed(self):
        meeting = make_meeting("m", "09:00", "10:00", is_approved=False)
        assert not is_ongoing(meeting, at("09:30"))
        assert not is_completed(meeting, at("11:00"))

    def test_upcoming_hint_counts_as_confirmation(self):
        meeting = make_meeting("m", "09:00", "10:00", is_approved=False, approval_status_hint="upcoming")
        assert is_ongoing(meeting, at("09:30"))
        assert is_completed(meeting, at("10:30"))

    def test_unparseable_end_is_never_ongoing_or_completed(self):
        meeting = make_meeting("m", "09:00", None)
        now = at("00:00")
        while now < at("23:59"):
            assert not is_ongoing(meeting, now)
            assert not is_completed(meeting, now)
            now += timedelta(minutes=15)

    def test_inverted_interval_does_not_raise(self):
        meeting = make_meeting("m", "10:00", "09:00")
        assert not is_ongoing(meeting, at("09:30"))
        assert is_completed(meeting, at("09:30"))

    def test_aware_now_against_naive_meeting(self):
        meeting = make_meeting("m", "09:00", "10:00")
        now = datetime(2024, 1, 25, 9, 30, tzinfo=timezone.utc)
        assert is_ongoing(meeting, now)
        assert not is_upcoming(meeting, now)


class TestExclusivityUnderCleanData:
    def test_single_category_and_monotonic_progression(self):
        meeting = make_meeting("m", "09:00", "10:00", approval_status_hint="")
        order = {
            LifecycleCategory.upcoming: 0,
            LifecycleCategory.ongoing: 1,
            LifecycleCategory.completed: 2,
        }
        seen = []
        now = at("08:00")
        while now <= at("11:00"):
            categories = [
                c for c in categories_for(meeting, now) if c != LifecycleCategory.cancelled
            ]
            assert len(categories) <= 1
            assert LifecycleCategory.pending not in categories
            if categories:
                seen.append(order[categories[0]])
            now += timedelta(minutes=5)
        assert seen == sorted(seen)
        assert set(seen) == {0, 1, 2}

    def test_contradictory_flags_are_not_normalized(self):
        """Approved plus a pending hint: pending, and also ongoing while it runs."""
        meeting = make_meeting("m", "09:00", "10:00", approval_status_hint="pending")
        assert categories_for(meeting, at("09:30")) == [
            LifecycleCategory.pending,
            LifecycleCategory.ongoing,
        ]
        assert primary_category(meeting, at("09:30")) == LifecycleCategory.ongoing


class TestPrimaryCategory:
    def test_precedence(self):
        assert primary_category(make_meeting("a", is_cancelled=True), at("09:30")) == LifecycleCategory.cancelled
        assert primary_category(make_meeting("b"), at("09:30")) == LifecycleCategory.ongoing
        assert primary_category(make_meeting("c"), at("11:00")) == LifecycleCategory.completed
        assert primary_category(make_meeting("d", is_approved=False), at("08:00")) == LifecycleCategory.pending
        assert primary_category(make_meeting("e"), at("08:00")) == LifecycleCategory.upcoming

    def test_no_category(self):
        meeting = make_meeting("m", None, None)
        assert primary_category(meeting, at("09:00")) is None


class TestClassify:
    def test_end_to_end_tabs(self):
        m1 = make_meeting("M1", "09:00", "09:30")
        m2 = make_meeting("M2", "09:15", "10:00")
        m3 = make_meeting("M3", "11:00", "11:30")
        result = classify([m1, m2, m3], at("09:20"))

        assert [m.id for m in result.ongoing] == ["M1", "M2"]
        assert [m.id for m in result.upcoming] == ["M3"]
        assert result.pending == []
        assert result.completed == []
        assert result.cancelled == []
        assert result.counts.ongoing == 2
        assert result.counts.upcoming == 1

    def test_snapshot_spanning_every_tab(self):
        meetings = [
            make_meeting("pending", "13:00", "14:00", is_approved=False),
            make_meeting("upcoming", "13:00", "14:00"),
            make_meeting("ongoing", "11:30", "12:30"),
            make_meeting("completed", "09:00", "10:00"),
            make_meeting("cancelled", "13:00", "14:00", status="cancelled"),
        ]
        result = classify(meetings, at("12:00"))
        for category in LifecycleCategory:
            members = getattr(result, category.value)
            assert [m.id for m in members] == [category.value]
        assert count_by_category(meetings, at("12:00")).model_dump() == {
            "pending": 1,
            "upcoming": 1,
            "ongoing": 1,
            "completed": 1,
            "cancelled": 1,
        }

    def test_meetings_are_shared_not_copied(self):
        meeting = make_meeting("m", "11:00", "12:00")
        result = classify([meeting], at("09:00"))
        assert result.upcoming[0] is meeting

    def test_empty_snapshot(self):
        result = classify([], at("09:00"))
        assert result.counts.model_dump() == {
            "pending": 0,
            "upcoming": 0,
            "ongoing": 0,
            "completed": 0,
            "cancelled": 0,
        }

    def test_accepts_generator(self):
        result = classify((make_meeting(str(i), "11:00", "12:00") for i in range(3)), at("09:00"))
        assert result.counts.upcoming == 3
