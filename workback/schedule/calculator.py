"""Derive the three milestone dates of a row from its anchor date."""
from __future__ import annotations

from typing import Any, Optional, Tuple

from workback.schedule.dates import add_days, clamp_int, format_iso, parse_iso, today_iso
from workback.schedule.models import (
    AnchorKey,
    ComputedRow,
    DerivedDates,
    OffsetDefaults,
    OverdueFlags,
    Row,
    ScheduleInput,
    TrafficStatus,
)
from workback.schedule.status import overdue_flags, traffic_for_row


def compute_dates(
    anchor_key: Any,
    anchor_date_iso: Any,
    days_req_to_status_a: Any,
    days_status_a_to_first_issue: Any,
) -> DerivedDates:
    """
    Required-on-Site -> Status A -> First Issue, walked from whichever one is
    the anchor. An invalid anchor date yields three empty strings.
    """
    anchor = parse_iso(anchor_date_iso)
    if anchor is None:
        return DerivedDates()

    d1 = max(0, clamp_int(days_req_to_status_a, 0))
    d2 = max(0, clamp_int(days_status_a_to_first_issue, 0))
    key = anchor_key.value if isinstance(anchor_key, AnchorKey) else anchor_key

    if key == AnchorKey.REQUIRED_ON_SITE.value:
        req = anchor
        status_a = add_days(req, -d1)
        first = add_days(status_a, -d2)
    elif key == AnchorKey.STATUS_A.value:
        status_a = anchor
        req = add_days(status_a, d1)
        first = add_days(status_a, -d2)
    else:
        first = anchor
        status_a = add_days(first, d2)
        req = add_days(status_a, d1)

    return DerivedDates(
        required_on_site=format_iso(req),
        status_a=format_iso(status_a),
        first_issue=format_iso(first),
    )


def compute_from_input(payload: ScheduleInput) -> DerivedDates:
    return compute_dates(
        payload.anchor_key,
        payload.anchor_date_iso,
        payload.days_req_to_status_a,
        payload.days_status_a_to_first_issue,
    )


def effective_offsets(row: Row, defaults: OffsetDefaults) -> Tuple[int, int]:
    d1 = row.override_days_req_to_status_a
    d2 = row.override_days_status_a_to_first_issue
    return (
        defaults.days_req_to_status_a if d1 is None else d1,
        defaults.days_status_a_to_first_issue if d2 is None else d2,
    )


def row_dates(row: Row, defaults: OffsetDefaults) -> DerivedDates:
    if row.is_header:
        return DerivedDates()
    d1, d2 = effective_offsets(row, defaults)
    return compute_dates(row.anchor_key, row.anchor_date_iso, d1, d2)


def compute_row(row: Row, defaults: OffsetDefaults, today: Optional[str] = None) -> ComputedRow:
    today = today or today_iso()
    d1, d2 = effective_offsets(row, defaults)
    dates = row_dates(row, defaults)
    if row.is_header:
        flags = OverdueFlags()
        traffic = TrafficStatus.NA
    else:
        flags = overdue_flags(row, dates, today)
        traffic = traffic_for_row(row, dates, today)
    return ComputedRow(
        row=row,
        dates=dates,
        days_req_to_status_a=d1,
        days_status_a_to_first_issue=d2,
        overdue=flags,
        traffic=traffic,
    )
