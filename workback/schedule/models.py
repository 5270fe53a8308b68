"""
Schedule Models.

Shapes of the persisted project tree (projects, master schedule, pages, rows)
and of the values derived from it. Attributes are snake_case; the JSON form
uses the camelCase keys the tracker front end stores.
"""

from __future__ import annotations

import math
import uuid
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from workback.config import runtime_config
from workback.schedule.dates import clamp_int


def _enum_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def new_id() -> str:
    return uuid.uuid4().hex


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AnchorKey(str, Enum):
    """Milestone the user dates directly."""
    REQUIRED_ON_SITE = "requiredOnSite"
    STATUS_A = "statusA"
    FIRST_ISSUE = "firstIssue"


class RowKind(str, Enum):
    HEADER = "header"
    ITEM = "item"


class TrafficStatus(str, Enum):
    GREEN = "green"
    AMBER = "amber"
    RED = "red"
    NA = "na"


class AggregateStatus(str, Enum):
    OVERDUE = "overdue"
    ONGOING = "ongoing"
    DONE = "done"


class RowMeta(CamelModel):
    generated: bool = False
    block_zone: str = ""
    level_id: Optional[str] = None
    level_name: str = ""
    finish_date: str = ""


class Row(CamelModel):
    """
    One trackable deliverable, or a display-only group header.
    """
    id: str = Field(default_factory=new_id)
    kind: RowKind = RowKind.ITEM
    item: str = ""

    anchor_key: AnchorKey = AnchorKey.REQUIRED_ON_SITE
    anchor_date_iso: str = Field(default="", alias="anchorDateISO")
    override_days_req_to_status_a: Optional[int] = None
    override_days_status_a_to_first_issue: Optional[int] = None

    completed: bool = False
    not_required: bool = False
    status_a_done: bool = False
    first_issue_done: bool = False

    meta: RowMeta = Field(default_factory=RowMeta)

    @model_validator(mode="before")
    @classmethod
    def coerce_loose_fields(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for key in ("anchorKey", "anchor_key"):
            if key in data and _enum_value(data[key]) not in {a.value for a in AnchorKey}:
                data[key] = AnchorKey.REQUIRED_ON_SITE.value
        for key in ("anchorDateISO", "anchor_date_iso", "item"):
            if key in data and data[key] is None:
                data[key] = ""
        for key in (
            "overrideDaysReqToStatusA",
            "override_days_req_to_status_a",
            "overrideDaysStatusAToFirstIssue",
            "override_days_status_a_to_first_issue",
        ):
            if key in data:
                value = data[key]
                data[key] = None if value is None or value == "" else clamp_int(value)
        if _enum_value(data.get("kind")) not in {k.value for k in RowKind}:
            data["kind"] = RowKind.ITEM.value
        for key in ("completed", "notRequired", "statusADone", "firstIssueDone"):
            if key in data:
                data[key] = bool(data[key])
        if data.get("meta") is None:
            data.pop("meta", None)
        return data

    @model_validator(mode="after")
    def clear_flags_when_not_required(self):
        if self.not_required:
            self.completed = False
            self.status_a_done = False
            self.first_issue_done = False
        return self

    @property
    def is_header(self) -> bool:
        return self.kind == RowKind.HEADER


class Level(CamelModel):
    id: str = Field(default_factory=new_id)
    name: str = "Level 1"
    start_date: str = ""
    finish_date: str = ""


class BlockZone(CamelModel):
    """A block/zone of the master schedule: an ordered run of levels."""
    id: str = Field(default_factory=new_id)
    block_zone: str = ""
    levels: List[Level] = Field(default_factory=lambda: [Level()])


class Responsibility(CamelModel):
    id: str = Field(default_factory=new_id)
    name: str = ""
    supplier: str = ""


class PageMeta(CamelModel):
    generated: bool = False
    responsibility_id: Optional[str] = None
    is_master: bool = False


class Page(CamelModel):
    id: str = Field(default_factory=new_id)
    name: str = "Page"
    rows: List[Row] = Field(default_factory=list)
    meta: PageMeta = Field(default_factory=PageMeta)


class Project(CamelModel):
    id: str = Field(default_factory=new_id)
    name: str = "New Project"
    master: List[BlockZone] = Field(default_factory=list)
    responsibilities: List[Responsibility] = Field(default_factory=list)
    pages: List[Page] = Field(default_factory=list)


class OffsetDefaults(CamelModel):
    """Project-wide day offsets used when a row carries no override."""
    days_req_to_status_a: int = Field(default_factory=runtime_config.get_default_days_req_to_status_a)
    days_status_a_to_first_issue: int = Field(default_factory=runtime_config.get_default_days_status_a_to_first_issue)


class AppState(CamelModel):
    """The whole stored document. Unknown top-level keys are kept."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    global_days_req_to_status_a: int = Field(default_factory=runtime_config.get_default_days_req_to_status_a)
    global_days_status_a_to_first_issue: int = Field(default_factory=runtime_config.get_default_days_status_a_to_first_issue)
    projects: List[Project] = Field(default_factory=list)
    active_project_id: Optional[str] = None
    active_page_id: Optional[str] = None
    view: Optional[str] = None
    summary_filter: str = "ongoing"
    summary_project_id: str = "all"
    summary_supplier: str = "all"

    @model_validator(mode="before")
    @classmethod
    def drop_unusable_settings(cls, data: Any) -> Any:
        """Null or non-numeric offsets and non-string view settings fall back to defaults."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for field in ("global_days_req_to_status_a", "global_days_status_a_to_first_issue"):
            for key in (field, to_camel(field)):
                if key not in data:
                    continue
                value = data[key]
                if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
                    data.pop(key)
                else:
                    data[key] = clamp_int(value)
        for field in ("summary_filter", "summary_project_id", "summary_supplier"):
            for key in (field, to_camel(field)):
                if key in data and not isinstance(data[key], str):
                    data.pop(key)
        for field in ("active_project_id", "active_page_id", "view"):
            for key in (field, to_camel(field)):
                if key in data and not isinstance(data[key], str):
                    data[key] = None
        return data

    @property
    def offsets(self) -> OffsetDefaults:
        return OffsetDefaults(
            days_req_to_status_a=self.global_days_req_to_status_a,
            days_status_a_to_first_issue=self.global_days_status_a_to_first_issue,
        )

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class DerivedDates(CamelModel):
    required_on_site: str = ""
    status_a: str = ""
    first_issue: str = ""


class OverdueFlags(CamelModel):
    overdue_req: bool = False
    overdue_a: bool = False
    overdue_f: bool = False
    overdue: bool = False


class ScheduleInput(CamelModel):
    """Calculator input: one anchor date and the two day offsets."""
    anchor_key: AnchorKey = AnchorKey.REQUIRED_ON_SITE
    anchor_date_iso: str = Field(default="", alias="anchorDateISO")
    days_req_to_status_a: Any = 0
    days_status_a_to_first_issue: Any = 0


class ComputedRow(CamelModel):
    row: Row
    dates: DerivedDates
    days_req_to_status_a: int
    days_status_a_to_first_issue: int
    overdue: OverdueFlags
    traffic: TrafficStatus


class SummaryEntry(CamelModel):
    project_id: str
    project_name: str
    page_id: str
    page_name: str
    row_id: str
    title: str
    supplier: str = ""
    required_on_site: str = ""
    status_a: str = ""
    first_issue: str = ""
    completed: bool = False
    status: AggregateStatus
    traffic: TrafficStatus


class ProgrammeItem(CamelModel):
    """One level of the master schedule laid out for a Gantt view."""
    id: str
    label: str
    start_iso: str = ""
    finish_iso: str = ""
    duration_days: Optional[int] = None
