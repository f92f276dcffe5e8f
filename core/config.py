from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional


@dataclass(frozen=True)
class Thresholds:
    schedule_warning: float = 5.0
    schedule_danger: float = 10.0
    cost_type_behind: float = -15.0
    division_behind: float = -20.0
    overage_warning: float = 0.0
    overage_danger: float = 5.0


@dataclass(frozen=True)
class ProjectMeta:
    project_name: str = "Construction Project"
    start_date: str = ""
    end_date: str = ""
    current_date: str = ""


@dataclass(frozen=True)
class DashboardOptions:
    meta: ProjectMeta = field(default_factory=ProjectMeta)
    thresholds: Thresholds = field(default_factory=Thresholds)
    top_n: int = 5


META_KEYS = {
    "project_name": ("project_name", "projectName"),
    "start_date": ("start_date", "startDate"),
    "end_date": ("end_date", "endDate"),
    "current_date": ("current_date", "currentDate"),
}


def _as_float(value: Any, default: float) -> float:
    if value is None:
        return default
    try:
        out = float(value)
    except Exception:
        return default
    return out if math.isfinite(out) else default


def _pick(raw: Mapping[str, Any], keys) -> Optional[Any]:
    for k in keys:
        if raw.get(k) not in (None, ""):
            return raw[k]
    return None


def normalize_meta(raw: Optional[Mapping[str, Any]]) -> ProjectMeta:
    if isinstance(raw, ProjectMeta):
        return raw
    raw = raw or {}
    values = {name: _pick(raw, keys) for name, keys in META_KEYS.items()}
    return ProjectMeta(
        project_name=str(values["project_name"] or ProjectMeta.project_name),
        start_date=str(values["start_date"] or ""),
        end_date=str(values["end_date"] or ""),
        current_date=str(values["current_date"] or ""),
    )


def normalize_thresholds(raw: Optional[Mapping[str, Any]]) -> Thresholds:
    if isinstance(raw, Thresholds):
        return raw
    t = raw or {}
    d = Thresholds()
    return Thresholds(
        schedule_warning=_as_float(t.get("schedule_warning"), d.schedule_warning),
        schedule_danger=_as_float(t.get("schedule_danger"), d.schedule_danger),
        cost_type_behind=_as_float(t.get("cost_type_behind"), d.cost_type_behind),
        division_behind=_as_float(t.get("division_behind"), d.division_behind),
        overage_warning=_as_float(t.get("overage_warning"), d.overage_warning),
        overage_danger=_as_float(t.get("overage_danger"), d.overage_danger),
    )


def normalize_options(raw: Optional[Mapping[str, Any]] = None) -> DashboardOptions:
    """Build options from a loose dict (API body, query params, plain kwargs).

    Meta may be nested under ``meta`` / ``projectMeta`` or given at the top level.
    """
    if isinstance(raw, DashboardOptions):
        return raw
    raw = raw or {}
    meta_raw = raw.get("meta") or raw.get("projectMeta") or raw.get("project_meta") or raw

    top_n = raw.get("top_n", 5)
    try:
        top_n = int(top_n)
    except Exception:
        top_n = 5
    top_n = max(1, min(200, top_n))

    return DashboardOptions(
        meta=normalize_meta(meta_raw),
        thresholds=normalize_thresholds(raw.get("thresholds")),
        top_n=top_n,
    )
