from __future__ import annotations

from dataclasses import asdict
from datetime import date
from typing import Any, Dict, Mapping, Optional, Union

from core.config import DashboardOptions, normalize_options
from core.data import Rows, parse_budget_csv
from core.normalize import normalize_budget_data
from core.redflags import build_summary, identify_red_flags, progress_status

OptionsLike = Union[DashboardOptions, Mapping[str, Any], None]


def compute_project_dashboard(
    rows: Optional[Rows],
    options: OptionsLike = None,
    *,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    opts = normalize_options(options)
    record = normalize_budget_data(rows, opts.meta, top_n=opts.top_n, today=today)

    for division in record["division_data"]:
        division["status"] = progress_status(division["complete"], division["expected"])

    return {
        "options": asdict(opts),
        **record,
        "key_findings": identify_red_flags(record, opts.thresholds),
        "summary": build_summary(record),
    }


def compute_project_dashboard_from_csv(
    text: str,
    options: OptionsLike = None,
    *,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    return compute_project_dashboard(parse_budget_csv(text), options, today=today)
