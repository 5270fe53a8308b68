"""Overdue flags, traffic light and aggregate status for a single row."""
from __future__ import annotations

from workback.schedule.dates import days_until, parse_iso
from workback.schedule.models import AggregateStatus, DerivedDates, OverdueFlags, Row, TrafficStatus

AMBER_WINDOW_DAYS = 7


def overdue_flags(row: Row, dates: DerivedDates, today_iso: str) -> OverdueFlags:
    if row.is_header or row.not_required:
        return OverdueFlags()
    today = parse_iso(today_iso)
    if today is None:
        return OverdueFlags()

    req = parse_iso(dates.required_on_site)
    status_a = parse_iso(dates.status_a)
    first = parse_iso(dates.first_issue)

    # a completed row is done on every milestone
    overdue_req = req is not None and req < today and not row.completed
    overdue_a = status_a is not None and status_a < today and not row.status_a_done and not row.completed
    overdue_f = first is not None and first < today and not row.first_issue_done and not row.completed

    return OverdueFlags(
        overdue_req=overdue_req,
        overdue_a=overdue_a,
        overdue_f=overdue_f,
        overdue=overdue_req or overdue_a or overdue_f,
    )


def traffic_for_row(row: Row, dates: DerivedDates, today_iso: str) -> TrafficStatus:
    """Traffic light driven by the Status A milestone only."""
    if row.is_header or row.not_required:
        return TrafficStatus.NA
    if row.completed:
        return TrafficStatus.GREEN

    today = parse_iso(today_iso)
    status_a = parse_iso(dates.status_a)
    if today is None or status_a is None:
        return TrafficStatus.NA

    days_left = days_until(status_a, today)
    if days_left < 0:
        return TrafficStatus.RED
    if days_left <= AMBER_WINDOW_DAYS:
        return TrafficStatus.AMBER
    return TrafficStatus.GREEN


def aggregate_status(row: Row, flags: OverdueFlags) -> AggregateStatus:
    if row.completed:
        return AggregateStatus.DONE
    if flags.overdue:
        return AggregateStatus.OVERDUE
    return AggregateStatus.ONGOING
