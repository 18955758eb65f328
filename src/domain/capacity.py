"""Capacity accounting over assignment records.

Every endpoint that reports allocation, capacity, utilization or progress goes
through these functions so the figures agree everywhere. The order used for an
engineer's allocation is fixed: keep ``active`` assignments, then keep those
overlapping the requested window, then sum.

All functions are pure and synchronous. Inputs only need the attributes named
in the protocols below, so ORM rows and plain dataclasses both work.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, time
from operator import attrgetter
from typing import Any, Protocol, TypeVar

FULL_CAPACITY = 100.0
COMPLETE_TIMELINE = 100.0
UNDERUTILIZED_THRESHOLD = 50.0
ACTIVE_STATUS = "active"


class DatedRecord(Protocol):
    start_date: date
    end_date: date


class AllocationRecord(DatedRecord, Protocol):
    allocation_percentage: float
    status: Any


class HoursRecord(AllocationRecord, Protocol):
    hours_allocated: float
    hours_worked: float
    role: Any


R = TypeVar("R", bound=DatedRecord)


@dataclass(slots=True)
class EngineerCapacity:
    engineer: Any
    total_allocation: float
    available_capacity: float
    assignments: list[Any] = field(default_factory=list)

    @property
    def is_overallocated(self) -> bool:
        return self.total_allocation > FULL_CAPACITY


@dataclass(slots=True)
class UtilizationSummary:
    engineers: list[EngineerCapacity]
    total_engineers: int
    average_utilization: float
    underutilized_engineers: int
    overutilized_engineers: int


@dataclass(slots=True)
class ProjectProgress:
    total_engineers: int
    total_allocation: float
    total_hours_allocated: float
    total_hours_worked: float
    progress_percentage: float
    timeline_progress: float
    role_distribution: dict[str, int]


def overlap_filter(
    assignments: Iterable[R],
    range_start: date | None = None,
    range_end: date | None = None,
) -> list[R]:
    """Keep records whose ``[start_date, end_date]`` touches the window.

    Both ends are inclusive. A missing bound is not applied.
    """
    start = _as_date(range_start) if range_start is not None else None
    end = _as_date(range_end) if range_end is not None else None

    kept: list[R] = []
    for record in assignments:
        if end is not None and _as_date(record.start_date) > end:
            continue
        if start is not None and _as_date(record.end_date) < start:
            continue
        kept.append(record)
    return kept


def only_active(assignments: Iterable[AllocationRecord]) -> list[AllocationRecord]:
    return [record for record in assignments if _label(record.status) == ACTIVE_STATUS]


def total_allocation(assignments: Iterable[AllocationRecord]) -> float:
    """Sum allocation percentages without filtering anything."""
    return float(sum(record.allocation_percentage for record in assignments))


def available_capacity(total: float) -> float:
    """Remaining capacity, floored at zero. Over-allocation stays visible in ``total``."""
    return max(FULL_CAPACITY - total, 0.0)


def active_allocation(
    assignments: Iterable[AllocationRecord],
    range_start: date | None = None,
    range_end: date | None = None,
) -> tuple[float, list[AllocationRecord]]:
    """Return the engineer's allocation and the records that produced it."""
    counted = overlap_filter(only_active(assignments), range_start, range_end)
    return total_allocation(counted), counted


def engineer_capacity(
    engineer: Any,
    assignments: Iterable[AllocationRecord],
    range_start: date | None = None,
    range_end: date | None = None,
) -> EngineerCapacity:
    total, counted = active_allocation(assignments, range_start, range_end)
    return EngineerCapacity(
        engineer=engineer,
        total_allocation=total,
        available_capacity=available_capacity(total),
        assignments=counted,
    )


def utilization_summary(
    engineers: Sequence[Any],
    assignments_by_engineer: Mapping[Any, Sequence[AllocationRecord]],
    range_start: date | None = None,
    range_end: date | None = None,
    *,
    key: Callable[[Any], Any] = attrgetter("id"),
) -> UtilizationSummary:
    """Per-engineer capacity plus fleet-wide aggregates.

    Engineers missing from ``assignments_by_engineer`` count as fully
    available. The average divides by ``max(len(engineers), 1)``.
    """
    rows = [
        engineer_capacity(
            engineer, assignments_by_engineer.get(key(engineer), ()), range_start, range_end
        )
        for engineer in engineers
    ]
    allocated = sum(row.total_allocation for row in rows)

    return UtilizationSummary(
        engineers=rows,
        total_engineers=len(rows),
        average_utilization=round(allocated / max(len(rows), 1), 2),
        underutilized_engineers=sum(
            1 for row in rows if row.available_capacity > UNDERUTILIZED_THRESHOLD
        ),
        overutilized_engineers=sum(1 for row in rows if row.is_overallocated),
    )


def timeline_progress(start: date, end: date, now: datetime | None = None) -> float:
    """Elapsed share of ``[start, end]`` in percent, clamped to 0..100.

    A project whose duration is not positive reports 100.
    """
    start_at = _as_datetime(start)
    end_at = _as_datetime(end)
    current = _as_datetime(now) if now is not None else datetime.now(UTC)

    duration = (end_at - start_at).total_seconds()
    if duration <= 0:
        return COMPLETE_TIMELINE

    elapsed = (current - start_at).total_seconds()
    return round(min(max(elapsed / duration * 100, 0.0), 100.0), 2)


def project_progress(
    project: DatedRecord,
    assignments: Sequence[HoursRecord],
    now: datetime | None = None,
) -> ProjectProgress:
    """Hours-based and calendar-based progress for one project.

    Hours are summed over every assignment of the project. Allocation only
    counts active assignments, same as engineer capacity.
    """
    hours_allocated = float(sum(record.hours_allocated for record in assignments))
    hours_worked = float(sum(record.hours_worked for record in assignments))
    progress = hours_worked / hours_allocated * 100 if hours_allocated > 0 else 0.0

    return ProjectProgress(
        total_engineers=len(assignments),
        total_allocation=total_allocation(only_active(assignments)),
        total_hours_allocated=hours_allocated,
        total_hours_worked=hours_worked,
        progress_percentage=round(progress, 2),
        timeline_progress=timeline_progress(project.start_date, project.end_date, now),
        role_distribution=distribution(record.role for record in assignments),
    )


def distribution(values: Iterable[Any]) -> dict[str, int]:
    """Count occurrences of enum or string labels."""
    return dict(Counter(_label(value) for value in values))


def _label(value: Any) -> str:
    return str(getattr(value, "value", value))


def _as_date(value: date) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def _as_datetime(value: date) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    return datetime.combine(value, time.min, tzinfo=UTC)
