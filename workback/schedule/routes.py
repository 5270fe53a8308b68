from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Query
from fastapi.responses import PlainTextResponse

from workback.common.error_envelope import error_response
from workback.schedule.calculator import compute_from_input
from workback.schedule.dates import today_iso
from workback.schedule.generation import build_programme_items, find_project
from workback.schedule.models import AppState, DerivedDates, ScheduleInput, SummaryEntry
from workback.schedule.summary import build_summary, filter_summary, summary_counts, summary_csv, supplier_options
from workback.state_store.service import get_state_service

router = APIRouter(prefix="/api", tags=["schedule"])


def _stored_state() -> AppState:
    return get_state_service().current_state()


def _filtered_entries(
    state: AppState,
    status: str,
    project_id: str,
    supplier: str,
    today: str,
) -> List[SummaryEntry]:
    return filter_summary(build_summary(state, today), status=status, project_id=project_id, supplier=supplier)


@router.post("/schedule/dates", response_model=DerivedDates, response_model_by_alias=True)
def schedule_dates(payload: ScheduleInput):
    return compute_from_input(payload)


@router.get("/summary")
def summary(
    status: str = Query("all"),
    project_id: str = Query("all"),
    supplier: str = Query("all"),
    today: Optional[str] = Query(None),
):
    today = today or today_iso()
    state = _stored_state()
    entries = _filtered_entries(state, status, project_id, supplier, today)
    return {
        "today": today,
        "counts": summary_counts(entries),
        "suppliers": supplier_options(state),
        "entries": [e.model_dump(mode="json", by_alias=True) for e in entries],
    }


@router.get("/summary.csv", response_class=PlainTextResponse)
def summary_export(
    status: str = Query("all"),
    project_id: str = Query("all"),
    supplier: str = Query("all"),
    today: Optional[str] = Query(None),
):
    today = today or today_iso()
    entries = _filtered_entries(_stored_state(), status, project_id, supplier, today)
    return PlainTextResponse(
        summary_csv(entries),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="workback-summary-{today}.csv"'},
    )


@router.get("/projects/{project_id}/programme")
def project_programme(project_id: str):
    project = find_project(_stored_state().projects, project_id)
    if project is None:
        error_response(
            code="project.not_found",
            message=f"project {project_id} not found",
            status_code=404,
            resource_kind="project",
        )
    items = build_programme_items(project.master)
    return {
        "projectId": project.id,
        "projectName": project.name,
        "items": [item.model_dump(mode="json", by_alias=True) for item in items],
    }
