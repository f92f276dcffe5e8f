"""Guess which budget export column holds which field.

Budget exports name the same column many ways ("Budget Code", "Cost Code",
"E - Current Contract Budget", "Current Budget", ...). Headers are matched against
patterns; anything left unmatched falls back to a looser guess, then to the header
name used by the common export format.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, fields
from typing import Dict, Iterable, List, Mapping, Union

import pandas as pd


@dataclass(frozen=True)
class ColumnMap:
    cost_code: str = "Budget Code"
    description: str = "Budget Code Description"
    cost_type: str = "Cost Type"
    current_budget: str = "E - Current Contract Budget"
    billed_to_date: str = "J - Total Billed to Date"
    percent_billed: str = "% Billed to Date"
    projected_cost: str = "Q - Proj Cost @ Complete (J+P)"
    variance: str = "(Over) / Under Budget (G-Q)"


# Order matters: a header is claimed by the first still-unassigned field it matches.
DETECT_PATTERNS: List[tuple] = [
    ("cost_code", re.compile(r"cost.?code|budget.?code")),
    ("description", re.compile(r"description|desc\.?")),
    ("cost_type", re.compile(r"cost.?type|type")),
    ("percent_billed", re.compile(r"%\s*billed|billed\s*%")),
    ("current_budget", re.compile(r"current.?contract.?budget|current.?budget|e.{1,3}current")),
    ("billed_to_date", re.compile(r"total.?billed|billed.?to.?date|j.{1,3}total.?billed")),
    ("projected_cost", re.compile(r"proj.*cost.*complet|forecast.*complet|q.{1,3}proj")),
    ("variance", re.compile(r"\(over\)|under|variance|g.*q")),
]

FALLBACK_PATTERNS: Dict[str, re.Pattern] = {
    "cost_code": re.compile(r"code", re.I),
    "description": re.compile(r"descr", re.I),
    "cost_type": re.compile(r"type", re.I),
    "current_budget": re.compile(r"budget", re.I),
    "billed_to_date": re.compile(r"billed", re.I),
    "percent_billed": re.compile(r"%.*billed", re.I),
    "projected_cost": re.compile(r"projected|forecast", re.I),
    "variance": re.compile(r"variance|over|under", re.I),
}

# "Cost Code Description" names the description, never the code.
NOT_COST_CODE = re.compile(r"desc", re.I)


def _keys(sample: Union[Mapping[str, object], Iterable[str], pd.DataFrame, None]) -> List[str]:
    if sample is None:
        return []
    if isinstance(sample, pd.DataFrame):
        return [str(c) for c in sample.columns]
    if isinstance(sample, Mapping):
        return [str(k) for k in sample.keys()]
    return [str(k) for k in sample]


def detect_columns(keys: Iterable[str]) -> Dict[str, str]:
    found: Dict[str, str] = {}
    for key in keys:
        lower = key.lower()
        for name, pattern in DETECT_PATTERNS:
            if name == "cost_code" and NOT_COST_CODE.search(lower):
                continue
            if name not in found and pattern.search(lower):
                found[name] = key
                break
    return found


def infer_columns(keys: Iterable[str]) -> Dict[str, str]:
    keys = list(keys)
    defaults = ColumnMap()
    out: Dict[str, str] = {}
    for f in fields(ColumnMap):
        pattern = FALLBACK_PATTERNS[f.name]
        candidates = [k for k in keys if not (f.name == "cost_code" and NOT_COST_CODE.search(k))]
        out[f.name] = next((k for k in candidates if pattern.search(k)), getattr(defaults, f.name))
    return out


def map_columns(sample: Union[Mapping[str, object], Iterable[str], pd.DataFrame, None]) -> ColumnMap:
    """Resolve the column map from a sample row, a header list, or a frame."""
    keys = _keys(sample)
    merged = {**infer_columns(keys), **detect_columns(keys)}
    return ColumnMap(**merged)


def unresolved_columns(columns: ColumnMap, available: Iterable[str]) -> List[str]:
    have = set(available)
    return [f.name for f in fields(ColumnMap) if getattr(columns, f.name) not in have]

