from __future__ import annotations

import pytest

from core.config import Thresholds
from core.normalize import normalize_budget_data
from core.redflags import build_summary, cost_type_status, identify_red_flags, progress_status, schedule_summary


def _record(time_pct=50.0, billed_pct=50.0, overage_pct=0.0, overage=0.0, cost_types=None, divisions=None):
    return {
        "project_data": {
            "percent_time_elapsed": time_pct,
            "percent_billed": billed_pct,
            "percent_overage": overage_pct,
            "projected_overage": overage,
            "display": {"projected_overage": f"${overage:,.0f}"},
        },
        "cost_type_data": cost_types or [],
        "division_data": divisions or [],
    }


def test_sample_project_findings(budget_rows, project_meta):
    findings = identify_red_flags(normalize_budget_data(budget_rows, project_meta))
    assert [f["title"] for f in findings] == [
        "Schedule Status",
        "Subcontracts (S) Progress Concern",
        "Div 3 - Concrete Behind Schedule",
        "Div 9 - Finishes Behind Schedule",
    ]
    schedule = findings[0]
    assert schedule["type"] == "danger"
    assert schedule["description"] == "Project is 25.7% behind schedule (49.9% time elapsed vs 24.1% budget spent)"
    assert findings[1]["recommendation"] == "Expedite Subcontracts procurement and activities"
    assert findings[1]["description"] == "Subcontracts (S) only 8.9% complete vs expected 49.9%"
    assert findings[2]["recommendation"] == "Prioritize Div 3 - Concrete activities to prevent cascading delays"


@pytest.mark.parametrize("billed_pct,expected", [(46.0, None), (43.0, "warning"), (39.0, "danger")])
def test_schedule_severity(billed_pct, expected):
    findings = identify_red_flags(_record(time_pct=50.0, billed_pct=billed_pct))
    kinds = [f["type"] for f in findings if f["title"] == "Schedule Status"]
    assert kinds == ([expected] if expected else [])


def test_cost_type_boundary_is_strict():
    at_limit = {"name": "Labor (L)", "complete": 35.0, "remaining": 65.0, "expected_complete": 50.0}
    past_limit = {"name": "Materials (M)", "complete": 34.9, "remaining": 65.1, "expected_complete": 50.0}
    findings = identify_red_flags(_record(cost_types=[at_limit, past_limit]))
    assert [f["title"] for f in findings] == ["Materials (M) Progress Concern"]
    assert findings[0]["recommendation"] == "Expedite Materials procurement and activities"


def test_division_boundary_is_strict():
    divisions = [
        {"name": "Div 5 - Metals", "complete": 30.0, "expected": 50.0, "variance": -20.0},
        {"name": "Div 8 - Doors/Windows", "complete": 29.0, "expected": 50.0, "variance": -21.0},
    ]
    findings = identify_red_flags(_record(divisions=divisions))
    assert [f["title"] for f in findings] == ["Div 8 - Doors/Windows Behind Schedule"]
    assert findings[0]["description"] == "Div 8 - Doors/Windows only 29.0% complete vs expected 50.0%"


@pytest.mark.parametrize("overage_pct,expected", [(0.0, None), (3.0, "warning"), (7.5, "danger")])
def test_budget_overrun(overage_pct, expected):
    findings = identify_red_flags(_record(overage_pct=overage_pct, overage=12000))
    budget = [f for f in findings if f["title"] == "Budget Concerns"]
    if expected is None:
        assert budget == []
    else:
        assert budget[0]["type"] == expected
        assert budget[0]["description"] == f"Projected overrun of $12,000 ({overage_pct:.1f}% over budget)"


def test_custom_thresholds():
    record = _record(time_pct=50.0, billed_pct=47.0)
    assert identify_red_flags(record) == []
    findings = identify_red_flags(record, Thresholds(schedule_warning=2.0, schedule_danger=2.5))
    assert findings[0]["type"] == "danger"


def test_empty_record_has_no_findings():
    assert identify_red_flags({}) == []


@pytest.mark.parametrize(
    "percent,expected,status",
    [(80, 50, "ahead"), (50, 50, "on_track"), (45, 50, "on_track"), (30, 50, "behind"), (10, 50, "critical"), (10, 0, "on_track")],
)
def test_progress_status(percent, expected, status):
    assert progress_status(percent, expected) == status


@pytest.mark.parametrize(
    "complete,status",
    [(60, "ahead of schedule"), (48, "on schedule"), (40, "slightly behind"), (30, "significantly behind")],
)
def test_cost_type_status(complete, status):
    assert cost_type_status(complete, 50) == status


def test_schedule_summary_ahead_and_behind():
    assert schedule_summary({"percent_time_elapsed": 40, "percent_billed": 55})["message"] == "Project is 15.00% ahead of schedule"
    behind = schedule_summary({"percent_time_elapsed": 60, "percent_billed": 55})
    assert behind["status"] == "behind"
    assert behind["variance"] == pytest.approx(5.0)


def test_build_summary_for_sample_project(budget_rows, project_meta):
    summary = build_summary(normalize_budget_data(budget_rows, project_meta))
    assert summary["schedule"]["status"] == "behind"
    assert summary["schedule"]["recommendations"][0] == "Project is 25.7% behind schedule"
    assert summary["budget"][0] == "Project is currently $35K under budget"
    assert [c["message"] for c in summary["cost_types"]] == [
        "Labor (L): 40.0% complete (slightly behind)",
        "Subcontracts (S): 8.9% complete (significantly behind)",
        "Materials (M): 60.0% complete (ahead of schedule)",
    ]
    assert len(summary["next_steps"]) == 4


def test_build_summary_overrun():
    summary = build_summary(_record(overage_pct=4.0, overage=20000))
    assert summary["budget"][0] == "Projected overrun of $20,000 (4.0% over budget)"
