from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import UTC, date, datetime

import pytest
from src.domain.capacity import (
    COMPLETE_TIMELINE,
    active_allocation,
    available_capacity,
    engineer_capacity,
    overlap_filter,
    project_progress,
    timeline_progress,
    total_allocation,
    utilization_summary,
)


@dataclass
class Record:
    start_date: date
    end_date: date
    allocation_percentage: float = 50
    status: str = "active"
    hours_allocated: float = 0
    hours_worked: float = 0
    role: str = "developer"


@dataclass
class Engineer:
    id: str


@dataclass
class Project:
    start_date: date
    end_date: date


A1 = Record(date(2026, 1, 1), date(2026, 6, 30), allocation_percentage=40)
A2 = Record(date(2026, 4, 1), date(2026, 12, 31), allocation_percentage=70)


def test_overlapping_assignments_sum_past_full_capacity() -> None:
    counted = overlap_filter([A1, A2], date(2026, 3, 1), date(2026, 5, 1))

    assert total_allocation(counted) == 110
    assert available_capacity(total_allocation(counted)) == 0


def test_overlap_filter_drops_records_outside_window() -> None:
    outside = Record(date(2025, 1, 1), date(2025, 2, 1), allocation_percentage=90)

    counted = overlap_filter([A1, outside], date(2026, 2, 1), date(2026, 2, 28))

    assert counted == [A1]
    assert total_allocation(counted) == 40


def test_overlap_filter_bounds_are_inclusive() -> None:
    assert overlap_filter([A1], date(2026, 6, 30), date(2026, 7, 31)) == [A1]
    assert overlap_filter([A1], date(2025, 12, 1), date(2026, 1, 1)) == [A1]
    assert overlap_filter([A1], date(2026, 7, 1), date(2026, 7, 31)) == []


def test_overlap_filter_without_window_returns_copy() -> None:
    records = [A1, A2]

    result = overlap_filter(records)

    assert result == records
    assert result is not records


def test_overlap_filter_accepts_single_bound() -> None:
    assert overlap_filter([A1, A2], range_start=date(2026, 7, 1)) == [A2]
    assert overlap_filter([A1, A2], range_end=date(2026, 2, 1)) == [A1]


@pytest.mark.parametrize("total", [-10, 0, 35.5, 100, 110, 250])
def test_available_capacity_never_negative(total: float) -> None:
    assert available_capacity(total) == max(100 - total, 0)


def test_total_allocation_of_nothing_is_zero() -> None:
    assert total_allocation([]) == 0


def test_active_allocation_ignores_inactive_status() -> None:
    completed = Record(
        date(2026, 1, 1), date(2026, 12, 31), allocation_percentage=80, status="completed"
    )

    total, counted = active_allocation([A1, completed])

    assert total == 40
    assert counted == [A1]


def test_engineer_capacity_flags_overallocation() -> None:
    capacity = engineer_capacity(Engineer("e1"), [A1, A2], date(2026, 3, 1), date(2026, 5, 1))

    assert capacity.total_allocation == 110
    assert capacity.available_capacity == 0
    assert capacity.is_overallocated


def test_utilization_summary_on_empty_input() -> None:
    summary = utilization_summary([], {})

    assert summary.total_engineers == 0
    assert summary.average_utilization == 0
    assert summary.underutilized_engineers == 0
    assert summary.overutilized_engineers == 0
    assert summary.engineers == []


def test_utilization_summary_counts_under_and_over_utilized() -> None:
    busy, idle, absent = Engineer("busy"), Engineer("idle"), Engineer("absent")
    by_engineer = {
        "busy": [A1, A2],
        "idle": [Record(date(2026, 1, 1), date(2026, 12, 31), allocation_percentage=20)],
    }

    summary = utilization_summary(
        [busy, idle, absent], by_engineer, date(2026, 3, 1), date(2026, 5, 1)
    )

    assert summary.total_engineers == 3
    assert summary.overutilized_engineers == 1
    # idle has 80 free, absent has 100 free
    assert summary.underutilized_engineers == 2
    assert summary.average_utilization == round((110 + 20 + 0) / 3, 2)


def test_project_progress_without_allocated_hours_is_zero() -> None:
    project = Project(date(2026, 1, 1), date(2026, 12, 31))
    records = [Record(date(2026, 1, 1), date(2026, 3, 1), hours_worked=12)]

    progress = project_progress(project, records, now=datetime(2026, 2, 1, tzinfo=UTC))

    assert progress.progress_percentage == 0
    assert not math.isnan(progress.timeline_progress)


def test_project_progress_sums_hours_and_roles() -> None:
    project = Project(date(2026, 1, 1), date(2026, 12, 31))
    records = [
        Record(
            date(2026, 1, 1), date(2026, 6, 1), hours_allocated=100, hours_worked=25, role="lead"
        ),
        Record(
            date(2026, 1, 1),
            date(2026, 6, 1),
            allocation_percentage=30,
            hours_allocated=100,
            hours_worked=50,
            status="completed",
        ),
    ]

    progress = project_progress(project, records, now=datetime(2026, 1, 1, tzinfo=UTC))

    assert progress.total_hours_allocated == 200
    assert progress.total_hours_worked == 75
    assert progress.progress_percentage == 37.5
    assert progress.total_engineers == 2
    assert progress.total_allocation == 50
    assert progress.role_distribution == {"lead": 1, "developer": 1}
    assert progress.timeline_progress == 0


def test_zero_duration_project_reports_full_timeline() -> None:
    day = date(2026, 5, 5)

    assert timeline_progress(day, day, now=datetime(2020, 1, 1, tzinfo=UTC)) == COMPLETE_TIMELINE
    assert timeline_progress(day, date(2026, 5, 1)) == COMPLETE_TIMELINE


def test_timeline_progress_is_clamped() -> None:
    start, end = date(2026, 1, 1), date(2026, 1, 11)

    assert timeline_progress(start, end, now=datetime(2025, 1, 1, tzinfo=UTC)) == 0
    assert timeline_progress(start, end, now=datetime(2027, 1, 1, tzinfo=UTC)) == 100
    assert timeline_progress(start, end, now=datetime(2026, 1, 6, tzinfo=UTC)) == 50
