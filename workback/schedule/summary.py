"""
Summary Aggregator.

Flattens every trackable row of every project into one ordered report, and
derives the filtered views, CSV export and chatbot context from it.
"""

from __future__ import annotations

import csv
import io
from typing import Any, Dict, Iterable, List, Optional

from workback.schedule.calculator import row_dates
from workback.schedule.dates import parse_iso, today_iso
from workback.schedule.models import AggregateStatus, AppState, SummaryEntry
from workback.schedule.status import aggregate_status, overdue_flags, traffic_for_row

STATUS_RANK = {
    AggregateStatus.OVERDUE.value: 0,
    AggregateStatus.ONGOING.value: 1,
    AggregateStatus.DONE.value: 2,
}
UNKNOWN_STATUS_RANK = 9
# sorts after any real date's ordinal
MISSING_DATE_SENTINEL = 10**9

CSV_HEADER = [
    "Status",
    "Traffic",
    "Project",
    "Responsibility",
    "Supplier",
    "Item",
    "Required on Site",
    "Status A",
    "First Issue",
]


def _status_value(status: Any) -> str:
    return getattr(status, "value", status)


def summary_sort_key(entry: SummaryEntry):
    status_a = parse_iso(entry.status_a)
    return (
        STATUS_RANK.get(_status_value(entry.status), UNKNOWN_STATUS_RANK),
        status_a.toordinal() if status_a else MISSING_DATE_SENTINEL,
        entry.title,
    )


def sort_summary(entries: Iterable[SummaryEntry]) -> List[SummaryEntry]:
    # sorted() is stable: full ties keep their input order
    return sorted(entries, key=summary_sort_key)


def build_summary(state: AppState, today: Optional[str] = None) -> List[SummaryEntry]:
    today = today or today_iso()
    defaults = state.offsets
    out: List[SummaryEntry] = []

    for project in state.projects:
        supplier_by_resp = {r.id: r.supplier or "" for r in project.responsibilities}
        for page in project.pages:
            if page.meta.is_master:
                continue
            supplier = supplier_by_resp.get(page.meta.responsibility_id, "") if page.meta.responsibility_id else ""
            for row in page.rows:
                if row.is_header or row.not_required:
                    continue
                dates = row_dates(row, defaults)
                flags = overdue_flags(row, dates, today)
                out.append(
                    SummaryEntry(
                        project_id=project.id,
                        project_name=project.name,
                        page_id=page.id,
                        page_name=page.name,
                        row_id=row.id,
                        title=row.item,
                        supplier=supplier,
                        required_on_site=dates.required_on_site,
                        status_a=dates.status_a,
                        first_issue=dates.first_issue,
                        completed=row.completed,
                        status=aggregate_status(row, flags),
                        traffic=traffic_for_row(row, dates, today),
                    )
                )

    return sort_summary(out)


def filter_summary(
    entries: Iterable[SummaryEntry],
    status: str = "all",
    project_id: str = "all",
    supplier: str = "all",
) -> List[SummaryEntry]:
    result = list(entries)
    if status and status != "all":
        result = [e for e in result if _status_value(e.status) == status]
    if project_id and project_id != "all":
        result = [e for e in result if e.project_id == project_id]
    if supplier and supplier != "all":
        result = [e for e in result if e.supplier == supplier]
    return result


def supplier_options(state: AppState) -> List[str]:
    suppliers = {
        r.supplier.strip()
        for project in state.projects
        for r in project.responsibilities
        if r.supplier and r.supplier.strip()
    }
    return sorted(suppliers)


def summary_counts(entries: Iterable[SummaryEntry]) -> Dict[str, int]:
    counts = {status.value: 0 for status in AggregateStatus}
    total = 0
    for entry in entries:
        total += 1
        key = _status_value(entry.status)
        counts[key] = counts.get(key, 0) + 1
    counts["total"] = total
    return counts


def summary_csv(entries: Iterable[SummaryEntry]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for e in entries:
        writer.writerow(
            [
                _status_value(e.status),
                _status_value(e.traffic),
                e.project_name,
                e.page_name,
                e.supplier,
                e.title,
                e.required_on_site,
                e.status_a,
                e.first_issue,
            ]
        )
    return buf.getvalue()


def build_chat_context(
    state: AppState,
    entries: List[SummaryEntry],
    today: Optional[str] = None,
    limit: int = 30,
) -> Dict[str, Any]:
    """Compact view of the programme handed to the chatbot as APP_CONTEXT_JSON."""
    today = today or today_iso()
    overdue = [e for e in entries if _status_value(e.status) == AggregateStatus.OVERDUE.value][:limit]

    def _status_a_ordinal(entry: SummaryEntry) -> int:
        parsed = parse_iso(entry.status_a)
        return parsed.toordinal() if parsed else MISSING_DATE_SENTINEL

    upcoming = sorted(
        (e for e in entries if _status_value(e.status) != AggregateStatus.DONE.value and e.status_a),
        key=_status_a_ordinal,
    )[:limit]

    by_supplier: Dict[str, Dict[str, int]] = {}
    for e in entries:
        bucket = by_supplier.setdefault(e.supplier or "-", {"overdue": 0, "ongoing": 0, "done": 0, "total": 0})
        bucket["total"] += 1
        bucket[_status_value(e.status)] += 1

    counts = summary_counts(entries)
    return {
        "today": today,
        "counts": {
            "projects": len(state.projects),
            "summaryItems": counts["total"],
            "overdue": counts[AggregateStatus.OVERDUE.value],
            "ongoing": counts[AggregateStatus.ONGOING.value],
            "done": counts[AggregateStatus.DONE.value],
        },
        "sample": {
            "overdueTop": [
                {
                    "project": e.project_name,
                    "responsibility": e.page_name,
                    "supplier": e.supplier or "-",
                    "item": e.title,
                    "requiredOnSite": e.required_on_site,
                    "statusA": e.status_a,
                    "traffic": _status_value(e.traffic),
                }
                for e in overdue
            ],
            "upcomingStatusA": [
                {
                    "project": e.project_name,
                    "responsibility": e.page_name,
                    "supplier": e.supplier or "-",
                    "item": e.title,
                    "statusA": e.status_a,
                    "traffic": _status_value(e.traffic),
                }
                for e in upcoming
            ],
        },
        "bySupplier": by_supplier,
    }
