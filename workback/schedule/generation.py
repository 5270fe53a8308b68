"""
Row Generation.

Builds tracker rows and responsibility pages from a project's master
schedule (blocks/zones and their levels), and normalises documents loaded
from storage.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pydantic import ValidationError

from workback.schedule.dates import diff_days
from workback.schedule.models import (
    AnchorKey,
    BlockZone,
    Level,
    Page,
    PageMeta,
    ProgrammeItem,
    Project,
    Responsibility,
    Row,
    RowKind,
    RowMeta,
    new_id,
)

logger = logging.getLogger(__name__)

MASTER_PAGE_NAME = "Project Home"
LEGACY_MASTER_PAGE_NAME = "Master"


def clean(text: Any) -> str:
    return str(text if text is not None else "").strip()


def _level_name(level: Level, idx: int) -> str:
    return clean(level.name) or f"Level {idx + 1}"


def build_generated_rows(page_name: str, master: Iterable[BlockZone]) -> List[Row]:
    """One header per block/zone, then one item per level, anchored on Required on Site."""
    rows: List[Row] = []
    page = clean(page_name)

    for block in master or []:
        label = clean(block.block_zone)
        if not label or not block.levels:
            continue

        rows.append(
            Row(
                kind=RowKind.HEADER,
                item=label,
                meta=RowMeta(generated=True, block_zone=label),
            )
        )
        for idx, level in enumerate(block.levels):
            level_name = _level_name(level, idx)
            rows.append(
                Row(
                    kind=RowKind.ITEM,
                    item=f"{page}_{label}_{level_name}",
                    anchor_key=AnchorKey.REQUIRED_ON_SITE,
                    anchor_date_iso=level.start_date or "",
                    meta=RowMeta(
                        generated=True,
                        block_zone=label,
                        level_id=level.id,
                        level_name=level_name,
                        finish_date=level.finish_date or "",
                    ),
                )
            )
    return rows


def _row_signature(row: Row) -> Tuple[str, str, str, str]:
    return (row.kind.value, row.item, row.meta.block_zone or "", row.meta.level_id or "")


def regenerate_page_rows(page: Page, master: Iterable[BlockZone]) -> List[Row]:
    """
    Generated rows rebuilt from the master, followed by the manual rows.

    A generated row whose signature is unchanged is kept as-is (id, anchor,
    ticks); generated rows whose source level or block is gone are dropped.
    """
    if page.meta.is_master:
        return list(page.rows)

    existing: Dict[Tuple[str, str, str, str], Row] = {}
    for row in page.rows:
        if row.meta.generated:
            existing.setdefault(_row_signature(row), row)

    next_rows: List[Row] = []
    for fresh in build_generated_rows(page.name, master):
        next_rows.append(existing.get(_row_signature(fresh), fresh))
    next_rows.extend(row for row in page.rows if not row.meta.generated)
    return next_rows


def sync_responsibility_pages(project: Project) -> List[Page]:
    """Master page, one generated page per named responsibility, then user pages."""
    responsibilities = [r for r in project.responsibilities if clean(r.name)]
    pages = project.pages

    next_pages: List[Page] = []
    master_page = next((p for p in pages if p.meta.is_master), None)
    if master_page is not None:
        next_pages.append(master_page)

    generated_by_resp = {
        p.meta.responsibility_id: p for p in pages if p.meta.generated and p.meta.responsibility_id
    }
    for resp in responsibilities:
        name = clean(resp.name)
        page = generated_by_resp.get(resp.id)
        if page is None:
            next_pages.append(
                Page(name=name, meta=PageMeta(generated=True, responsibility_id=resp.id, is_master=False))
            )
        elif page.name != name:
            next_pages.append(page.model_copy(update={"name": name}))
        else:
            next_pages.append(page)

    next_pages.extend(p for p in pages if not p.meta.is_master and not p.meta.generated)
    return next_pages


def refresh_project(project: Project) -> Project:
    """Re-derive pages and generated rows after an edit to the master or responsibilities."""
    pages = sync_responsibility_pages(project)
    pages = [
        p if p.meta.is_master else p.model_copy(update={"rows": regenerate_page_rows(p, project.master)})
        for p in pages
    ]
    return project.model_copy(update={"pages": pages})


def master_page(name: str = MASTER_PAGE_NAME) -> Page:
    return Page(name=name, meta=PageMeta(generated=False, responsibility_id=None, is_master=True))


def default_project(name: str = "New Project") -> Project:
    return Project(
        name=name,
        master=[BlockZone()],
        responsibilities=[Responsibility()],
        pages=[master_page()],
    )


def _hydrate_level(raw: Dict[str, Any], idx: int) -> Level:
    return Level(
        id=raw.get("id") or new_id(),
        name=raw.get("name") or f"Level {idx + 1}",
        start_date=raw.get("startDate") or "",
        finish_date=raw.get("finishDate") or "",
    )


def _hydrate_page(raw: Dict[str, Any]) -> Page:
    meta = raw.get("meta") or {}
    is_master = bool(meta.get("isMaster"))
    name = raw.get("name") or "Untitled Page"
    if is_master and name == LEGACY_MASTER_PAGE_NAME:
        name = MASTER_PAGE_NAME

    rows: List[Row] = []
    for raw_row in raw.get("rows") or []:
        if not isinstance(raw_row, dict):
            continue
        data = dict(raw_row)
        data["id"] = data.get("id") or new_id()
        row_meta = data.get("meta") or {}
        data["meta"] = {
            "generated": bool(row_meta.get("generated")),
            "blockZone": row_meta.get("blockZone") or "",
            "levelId": row_meta.get("levelId"),
            "levelName": row_meta.get("levelName") or "",
            "finishDate": row_meta.get("finishDate") or "",
        }
        try:
            rows.append(Row.model_validate(data))
        except ValidationError as exc:
            logger.warning("Dropping unreadable row %s: %s", data.get("id"), exc)

    return Page(
        id=raw.get("id") or new_id(),
        name=name,
        rows=rows,
        meta=PageMeta(
            generated=bool(meta.get("generated")),
            responsibility_id=meta.get("responsibilityId"),
            is_master=is_master,
        ),
    )


def hydrate_projects(raw_projects: Any) -> List[Project]:
    """Normalise projects loaded from storage or posted by a client."""
    if not isinstance(raw_projects, list) or not raw_projects:
        return [default_project("Project 1")]

    projects: List[Project] = []
    for raw in raw_projects:
        if isinstance(raw, Project):
            projects.append(raw)
            continue
        if not isinstance(raw, dict):
            continue

        master = [
            BlockZone(
                id=m.get("id") or new_id(),
                block_zone=m.get("blockZone") or "",
                levels=[_hydrate_level(lv, i) for i, lv in enumerate(m.get("levels") or []) if isinstance(lv, dict)]
                or [Level()],
            )
            for m in raw.get("master") or []
            if isinstance(m, dict)
        ] or [BlockZone()]

        responsibilities = [
            Responsibility(id=r.get("id") or new_id(), name=r.get("name") or "", supplier=r.get("supplier") or "")
            for r in raw.get("responsibilities") or []
            if isinstance(r, dict)
        ] or [Responsibility()]

        pages = [_hydrate_page(pg) for pg in raw.get("pages") or [] if isinstance(pg, dict)]
        if not any(p.meta.is_master for p in pages):
            pages.insert(0, master_page())

        projects.append(
            Project(
                id=raw.get("id") or new_id(),
                name=raw.get("name") or "Untitled Project",
                master=master,
                responsibilities=responsibilities,
                pages=pages,
            )
        )
    return projects or [default_project("Project 1")]


def build_programme_items(master: Iterable[BlockZone]) -> List[ProgrammeItem]:
    items: List[ProgrammeItem] = []
    for block in master or []:
        label = clean(block.block_zone)
        for idx, level in enumerate(block.levels):
            level_name = _level_name(level, idx)
            start = level.start_date or ""
            finish = level.finish_date or level.start_date or ""
            items.append(
                ProgrammeItem(
                    id=level.id,
                    label=f"{label} - {level_name}" if label else level_name,
                    start_iso=start,
                    finish_iso=finish,
                    duration_days=diff_days(start, finish),
                )
            )
    return items


def find_project(projects: Iterable[Project], project_id: str) -> Optional[Project]:
    return next((p for p in projects if p.id == project_id), None)
