from __future__ import annotations

import logging
import re
from dataclasses import asdict
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Union

import pandas as pd

from core.columns import ColumnMap, map_columns, unresolved_columns
from core.config import ProjectMeta, normalize_meta
from core.data import (
    Rows,
    amount_series,
    compute_schedule,
    format_currency_0,
    pct,
    round2,
    rows_to_frame,
    text_series,
    today_label,
    two_slice,
)

logger = logging.getLogger(__name__)

TOP_ITEMS_DEFAULT = 5
OTHER = "Other"

COST_TYPE_LABELS = {
    "L": "Labor (L)",
    "M": "Materials (M)",
    "S": "Subcontracts (S)",
    "O": "Other (O)",
    "LABOR": "Labor (L)",
    "MATERIAL": "Materials (M)",
    "SUBCONTRACT": "Subcontracts (S)",
    "OTHER": "Other (O)",
}

DIVISION_NAMES = {
    1: "General",
    2: "Site Work",
    3: "Concrete",
    4: "Masonry",
    5: "Metals",
    6: "Wood/Plastics",
    7: "Thermal/Moisture",
    8: "Doors/Windows",
    9: "Finishes",
    10: "Specialties",
    11: "Equipment",
    12: "Furnishings",
    13: "Special Construction",
    14: "Conveying Systems",
    15: "Mechanical/Plumbing",
    16: "Electrical",
    17: "Communications",
    18: "Builder's Contingency",
    19: "Project Reqmts",
    20: "Builder's Fee",
    21: "Fire Suppression",
    22: "Plumbing",
    23: "HVAC",
    26: "Electrical",
    27: "Communications",
    28: "Electronic Safety",
}

MetaLike = Union[ProjectMeta, Mapping[str, Any], None]


def derive_division(cost_code: object) -> str:
    """``"03-305"`` -> ``"Div 3"``; codes without leading digits -> ``"Other"``."""
    match = re.match(r"^(\d+)", str(cost_code or "").strip())
    if not match:
        return OTHER
    return f"Div {int(match.group(1))}"


def division_label(division: str) -> str:
    match = re.match(r"^Div (\d+)$", division)
    if match and int(match.group(1)) in DIVISION_NAMES:
        return f"{division} - {DIVISION_NAMES[int(match.group(1))]}"
    return division


def cost_type_label(raw: object) -> str:
    s = str(raw or "").strip()
    if not s:
        return OTHER
    return COST_TYPE_LABELS.get(s.upper(), s)


def budget_frame(df: pd.DataFrame, columns: ColumnMap) -> pd.DataFrame:
    """Project the raw table onto the fields the aggregates need."""
    work = pd.DataFrame(
        {
            "cost_code": text_series(df, columns.cost_code),
            "description": text_series(df, columns.description),
            "cost_type": text_series(df, columns.cost_type),
            "budget": amount_series(df, columns.current_budget),
            "billed": amount_series(df, columns.billed_to_date),
            "projected": amount_series(df, columns.projected_cost),
        },
        index=df.index,
    )
    work["division"] = work["cost_code"].map(derive_division)
    work["cost_type_label"] = work["cost_type"].map(cost_type_label)
    return work


def _grouped_progress(work: pd.DataFrame, key: str) -> pd.DataFrame:
    grouped = work.groupby(key, sort=False)[["budget", "billed"]].sum().reset_index()
    grouped = grouped[grouped["budget"] > 0].copy()
    grouped["complete"] = (grouped["billed"] / grouped["budget"] * 100).map(round2)
    return grouped


def summarize_cost_types(work: pd.DataFrame, expected: float) -> List[Dict[str, Any]]:
    if work.empty:
        return []
    grouped = _grouped_progress(work, "cost_type_label")
    return [
        {
            "name": str(row["cost_type_label"]),
            "complete": float(row["complete"]),
            "remaining": round2(100 - row["complete"]),
            "expected_complete": expected,
        }
        for _, row in grouped.iterrows()
    ]


def summarize_divisions(work: pd.DataFrame, expected: float) -> List[Dict[str, Any]]:
    if work.empty:
        return []
    grouped = _grouped_progress(work, "division")
    records = [
        {
            "name": division_label(str(row["division"])),
            "complete": float(row["complete"]),
            "expected": expected,
            "variance": round2(row["complete"] - expected),
        }
        for _, row in grouped.iterrows()
    ]
    return sorted(records, key=lambda r: -r["complete"])


def top_budget_items(work: pd.DataFrame, limit: int = TOP_ITEMS_DEFAULT) -> List[Dict[str, Any]]:
    items = []
    for _, row in work.iterrows():
        budget = float(row["budget"])
        billed = float(row["billed"])
        projected = float(row["projected"]) or budget
        items.append(
            {
                "name": row["description"] or "Unnamed Item",
                "cost_code": row["cost_code"],
                "budget": budget,
                "billed": billed,
                "percent_billed": pct(billed, budget),
                "projected": projected,
                "variance": budget - projected,
            }
        )
    return sorted(items, key=lambda i: -i["budget"])[: max(0, int(limit))]


def empty_result(meta: MetaLike = None, today: Optional[date] = None) -> Dict[str, Any]:
    m = normalize_meta(meta)
    return {
        "project_data": {
            "project_name": m.project_name,
            "start_date": m.start_date,
            "end_date": m.end_date,
            "current_date": m.current_date or today_label(today),
            "days_elapsed": 0,
            "total_duration": "",
            "percent_time_elapsed": 0.0,
            "total_budget": 0.0,
            "total_billed": 0.0,
            "percent_billed": 0.0,
            "projected_final": 0.0,
            "projected_overage": 0.0,
            "percent_overage": 0.0,
            "display": {
                "total_budget": format_currency_0(0),
                "total_billed": format_currency_0(0),
                "projected_final": format_currency_0(0),
                "projected_overage": format_currency_0(0),
            },
        },
        "budget_data": [],
        "time_data": [],
        "budget_spent_data": [],
        "cost_type_data": [],
        "division_data": [],
        "columns": {},
        "row_count": 0,
    }


def normalize_budget_data(
    rows: Optional[Rows],
    meta: MetaLike = None,
    *,
    top_n: int = TOP_ITEMS_DEFAULT,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """Turn parsed budget rows into the dashboard aggregate record.

    ``rows`` is a DataFrame or a list of dicts keyed by column header. On empty
    input, or on any failure while aggregating, the zeroed record from
    :func:`empty_result` is returned and the problem is logged.
    """
    m = normalize_meta(meta)
    df = rows_to_frame(rows)
    if df.empty:
        logger.error("No budget data provided")
        return empty_result(m, today)

    try:
        result = empty_result(m, today)
        project = result["project_data"]
        project.update(compute_schedule(m, today))
        expected = float(project["percent_time_elapsed"])

        columns = map_columns(df)
        missing = unresolved_columns(columns, df.columns)
        if missing:
            logger.warning("Budget columns not found, treating as zero/blank: %s", ", ".join(missing))

        work = budget_frame(df, columns)
        total_budget = float(work["budget"].sum())
        total_billed = float(work["billed"].sum())
        projected_final = float(work["projected"].sum())
        projected_overage = projected_final - total_budget

        project.update(
            {
                "total_budget": total_budget,
                "total_billed": total_billed,
                "percent_billed": round2(pct(total_billed, total_budget)),
                "projected_final": projected_final,
                "projected_overage": projected_overage,
                "percent_overage": round2(pct(projected_overage, total_budget)),
                "display": {
                    "total_budget": format_currency_0(total_budget),
                    "total_billed": format_currency_0(total_billed),
                    "projected_final": format_currency_0(projected_final),
                    "projected_overage": format_currency_0(projected_overage),
                },
            }
        )

        result["time_data"] = two_slice("Time Elapsed", "Time Remaining", project["percent_time_elapsed"])
        result["budget_spent_data"] = two_slice("Budget Spent", "Budget Remaining", project["percent_billed"])
        result["cost_type_data"] = summarize_cost_types(work, expected)
        result["division_data"] = summarize_divisions(work, expected)
        result["budget_data"] = top_budget_items(work, top_n)
        result["columns"] = asdict(columns)
        result["row_count"] = int(len(work))
        return result
    except Exception:
        logger.exception("Error normalizing budget data")
        return empty_result(m, today)
