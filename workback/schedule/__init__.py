"""Schedule module - milestone dates, row status and summary reporting."""

from workback.schedule.calculator import compute_dates, compute_row, effective_offsets
from workback.schedule.models import (
    AggregateStatus,
    AnchorKey,
    AppState,
    DerivedDates,
    OverdueFlags,
    Row,
    RowKind,
    SummaryEntry,
    TrafficStatus,
)
from workback.schedule.patch import InvalidPatchError, apply_row_patch, validate_row_patch
from workback.schedule.status import aggregate_status, overdue_flags, traffic_for_row
from workback.schedule.summary import build_summary, filter_summary

__all__ = [
    "AggregateStatus",
    "AnchorKey",
    "AppState",
    "DerivedDates",
    "OverdueFlags",
    "Row",
    "RowKind",
    "SummaryEntry",
    "TrafficStatus",
    "InvalidPatchError",
    "aggregate_status",
    "apply_row_patch",
    "build_summary",
    "compute_dates",
    "compute_row",
    "effective_offsets",
    "filter_summary",
    "overdue_flags",
    "traffic_for_row",
    "validate_row_patch",
]
