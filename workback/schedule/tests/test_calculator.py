from workback.schedule.calculator import compute_dates, compute_row, effective_offsets
from workback.schedule.models import AnchorKey, DerivedDates, OffsetDefaults, Row, RowKind, TrafficStatus


def test_required_on_site_anchor_walks_back():
    dates = compute_dates("requiredOnSite", "2024-03-10", 14, 28)
    assert dates == DerivedDates(required_on_site="2024-03-10", status_a="2024-02-25", first_issue="2024-01-28")


def test_status_a_anchor_walks_both_ways():
    dates = compute_dates(AnchorKey.STATUS_A, "2024-02-25", 14, 28)
    assert dates.required_on_site == "2024-03-10"
    assert dates.first_issue == "2024-01-28"


def test_first_issue_anchor_walks_forward():
    dates = compute_dates("firstIssue", "2024-01-28", 14, 28)
    assert dates.status_a == "2024-02-25"
    assert dates.required_on_site == "2024-03-10"


def test_anchoring_on_any_derived_date_reproduces_the_same_triple():
    base = compute_dates("requiredOnSite", "2024-11-03", 10, 21)
    assert compute_dates("statusA", base.status_a, 10, 21) == base
    assert compute_dates("firstIssue", base.first_issue, 10, 21) == base


def test_invalid_anchor_date_gives_empty_dates():
    assert compute_dates("requiredOnSite", "2024-02-30", 14, 28) == DerivedDates()
    assert compute_dates("statusA", "", 14, 28) == DerivedDates()


def test_offsets_are_truncated_and_floored_at_zero():
    dates = compute_dates("requiredOnSite", "2024-03-10", -5, "3.7")
    assert dates.status_a == "2024-03-10"
    assert dates.first_issue == "2024-03-07"


def test_unknown_anchor_key_falls_through_to_first_issue():
    dates = compute_dates("somethingElse", "2024-01-28", 14, 28)
    assert dates.first_issue == "2024-01-28"
    assert dates.required_on_site == "2024-03-10"


def test_effective_offsets_prefer_row_overrides():
    defaults = OffsetDefaults(days_req_to_status_a=14, days_status_a_to_first_issue=28)
    row = Row(override_days_req_to_status_a=0)
    assert effective_offsets(row, defaults) == (0, 28)
    assert effective_offsets(Row(), defaults) == (14, 28)


def test_row_override_strings_are_coerced():
    row = Row.model_validate({"overrideDaysReqToStatusA": "9.8", "overrideDaysStatusAToFirstIssue": ""})
    assert row.override_days_req_to_status_a == 9
    assert row.override_days_status_a_to_first_issue is None


def test_compute_row_for_header_has_no_dates():
    defaults = OffsetDefaults(days_req_to_status_a=14, days_status_a_to_first_issue=28)
    header = Row(kind=RowKind.HEADER, item="Block A", anchor_date_iso="2024-03-10")
    computed = compute_row(header, defaults, today="2024-06-01")
    assert computed.dates == DerivedDates()
    assert computed.traffic == TrafficStatus.NA
    assert not computed.overdue.overdue


def test_compute_row_item():
    defaults = OffsetDefaults(days_req_to_status_a=14, days_status_a_to_first_issue=28)
    row = Row(item="Facade", anchor_date_iso="2024-03-10")
    computed = compute_row(row, defaults, today="2024-03-01")
    assert computed.dates.status_a == "2024-02-25"
    assert computed.overdue.overdue_a is True
    assert computed.overdue.overdue_req is False
    assert computed.traffic == TrafficStatus.RED
    assert (computed.days_req_to_status_a, computed.days_status_a_to_first_issue) == (14, 28)
