from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from core.config import Thresholds
from core.data import format_currency_compact

NEXT_STEPS = [
    "Update project forecast and schedule",
    "Review findings with project team and stakeholders",
    "Implement recommended corrective actions",
    "Schedule follow-up review in 2-4 weeks",
]


def _finding(title: str, description: str, kind: str, recommendation: str) -> Dict[str, str]:
    return {"title": title, "description": description, "type": kind, "recommendation": recommendation}


def identify_red_flags(record: Mapping[str, Any], thresholds: Optional[Thresholds] = None) -> List[Dict[str, str]]:
    """Heuristic findings for a normalized budget record, most general first."""
    t = thresholds or Thresholds()
    project = record.get("project_data", {}) or {}
    time_pct = float(project.get("percent_time_elapsed", 0) or 0)
    billed_pct = float(project.get("percent_billed", 0) or 0)
    findings: List[Dict[str, str]] = []

    schedule_variance = time_pct - billed_pct
    if schedule_variance > t.schedule_warning:
        findings.append(
            _finding(
                "Schedule Status",
                f"Project is {schedule_variance:.1f}% behind schedule "
                f"({time_pct:.1f}% time elapsed vs {billed_pct:.1f}% budget spent)",
                "danger" if schedule_variance > t.schedule_danger else "warning",
                "Review schedule and accelerate critical path activities",
            )
        )

    for cost_type in record.get("cost_type_data", []) or []:
        complete = float(cost_type["complete"])
        expected = float(cost_type["expected_complete"])
        if complete - expected < t.cost_type_behind:
            name = str(cost_type["name"])
            findings.append(
                _finding(
                    f"{name} Progress Concern",
                    f"{name} only {complete:.1f}% complete vs expected {expected:.1f}%",
                    "danger",
                    f"Expedite {name.split(' ')[0]} procurement and activities",
                )
            )

    for division in record.get("division_data", []) or []:
        if float(division["variance"]) < t.division_behind:
            name = str(division["name"])
            findings.append(
                _finding(
                    f"{name} Behind Schedule",
                    f"{name} only {float(division['complete']):.1f}% complete "
                    f"vs expected {float(division['expected']):.1f}%",
                    "danger",
                    f"Prioritize {name} activities to prevent cascading delays",
                )
            )

    percent_overage = float(project.get("percent_overage", 0) or 0)
    if percent_overage > t.overage_warning:
        overage = (project.get("display") or {}).get("projected_overage") or project.get("projected_overage")
        findings.append(
            _finding(
                "Budget Concerns",
                f"Projected overrun of {overage} ({percent_overage:.1f}% over budget)",
                "danger" if percent_overage > t.overage_danger else "warning",
                "Review contingency usage and implement cost controls",
            )
        )

    return findings


def progress_status(percent: float, expected: float = 50.0) -> str:
    """Band progress against expectation: ahead, on_track, behind or critical."""
    if not expected:
        return "on_track"
    ratio = percent / expected
    if ratio >= 1.5:
        return "ahead"
    if ratio >= 0.9:
        return "on_track"
    if ratio >= 0.6:
        return "behind"
    return "critical"


def cost_type_status(complete: float, expected: float) -> str:
    variance = complete - expected
    if variance >= 5:
        return "ahead of schedule"
    if variance >= -5:
        return "on schedule"
    if variance >= -15:
        return "slightly behind"
    return "significantly behind"


def schedule_summary(project: Mapping[str, Any]) -> Dict[str, Any]:
    time_pct = float(project.get("percent_time_elapsed", 0) or 0)
    billed_pct = float(project.get("percent_billed", 0) or 0)
    if time_pct > billed_pct:
        variance = time_pct - billed_pct
        return {"status": "behind", "variance": variance, "message": f"Project is {variance:.2f}% behind schedule"}
    variance = billed_pct - time_pct
    return {"status": "ahead", "variance": variance, "message": f"Project is {variance:.2f}% ahead of schedule"}


def build_summary(record: Mapping[str, Any]) -> Dict[str, Any]:
    project = record.get("project_data", {}) or {}
    sched = schedule_summary(project)
    if sched["status"] == "behind":
        schedule = [
            f"Project is {sched['variance']:.1f}% behind schedule",
            "Consider expediting critical path activities",
            "Review resource allocation to increase pace",
            "Focus on divisions significantly behind expected progress",
        ]
    else:
        schedule = [
            f"Project is {sched['variance']:.1f}% ahead of schedule",
            "Maintain current pace and monitor quality",
            "Ensure early completions align with project sequencing",
            "Verify that billings reflect actual physical progress",
        ]

    percent_overage = float(project.get("percent_overage", 0) or 0)
    overage = float(project.get("projected_overage", 0) or 0)
    if percent_overage > 0:
        overage_label = (project.get("display") or {}).get("projected_overage") or format_currency_compact(overage)
        budget = [
            f"Projected overrun of {overage_label} ({percent_overage:.1f}% over budget)",
            "Implement cost control measures for remaining work",
            "Review change order management process",
            "Identify opportunities for value engineering",
        ]
    else:
        budget = [
            f"Project is currently {format_currency_compact(abs(overage))} under budget",
            "Continue monitoring cost performance",
            "Document cost-saving measures for future projects",
            "Consider potential quality or scope improvements if budget remains favorable",
        ]

    cost_types = []
    for cost_type in record.get("cost_type_data", []) or []:
        complete = float(cost_type["complete"])
        status = cost_type_status(complete, float(cost_type["expected_complete"]))
        cost_types.append(
            {
                "name": cost_type["name"],
                "status": status,
                "progress": progress_status(complete, float(cost_type["expected_complete"])),
                "message": f"{cost_type['name']}: {complete:.1f}% complete ({status})",
            }
        )

    return {
        "schedule": {**sched, "recommendations": schedule},
        "budget": budget,
        "cost_types": cost_types,
        "next_steps": list(NEXT_STEPS),
    }
