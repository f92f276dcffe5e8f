from __future__ import annotations

import csv
import io
import logging
import math
import re
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import numpy as np
import pandas as pd

from core.config import ProjectMeta

logger = logging.getLogger(__name__)

CSV_DELIMITERS = ",\t|;"
DAYS_PER_MONTH = 30.4

Rows = Union[pd.DataFrame, Iterable[Mapping[str, Any]]]


# ---------------- Table helpers ----------------
def strip_headers(df: pd.DataFrame) -> pd.DataFrame:
    df.columns = [str(c).strip() for c in df.columns]
    return df.loc[:, ~df.columns.duplicated()]


def rows_to_frame(rows: Optional[Rows]) -> pd.DataFrame:
    if rows is None:
        return pd.DataFrame()
    if isinstance(rows, pd.DataFrame):
        df = rows.copy()
    else:
        df = pd.DataFrame.from_records(list(rows))
    if df.empty:
        return df
    df = strip_headers(df)
    return df.dropna(how="all").reset_index(drop=True)


def sniff_delimiter(text: str) -> str:
    sample = "\n".join([line for line in text.splitlines() if line.strip()][:20])
    try:
        return csv.Sniffer().sniff(sample, delimiters=CSV_DELIMITERS).delimiter
    except csv.Error:
        return ","


def parse_budget_csv(text: str) -> pd.DataFrame:
    """Parse budget CSV text (header row first) into a DataFrame.

    Numbers are typed by pandas, blank lines are skipped and header whitespace is
    trimmed. Reading the file is left to the caller.
    """
    if text is None or not str(text).strip():
        raise ValueError("Budget CSV is empty")
    text = str(text).lstrip("\ufeff")
    delimiter = sniff_delimiter(text)
    df = pd.read_csv(
        io.StringIO(text),
        sep=delimiter,
        skip_blank_lines=True,
        skipinitialspace=True,
        on_bad_lines="warn",
    )
    unnamed = [c for c in df.columns if str(c).startswith("Unnamed:") and df[c].isna().all()]
    if unnamed:
        logger.warning("Dropping %d empty unnamed column(s) from budget CSV", len(unnamed))
        df = df.drop(columns=unnamed)
    return rows_to_frame(df)


def is_blank(value: object) -> bool:
    if value is None:
        return True
    try:
        if pd.isna(value):
            return True
    except (TypeError, ValueError):
        return False
    return isinstance(value, str) and not value.strip()


def to_amounts(values: pd.Series) -> pd.Series:
    """Money/number column to floats; anything unreadable is 0.

    Only ``$``, ``,`` and whitespace are dropped; ``"(500)"`` and ``"500-"`` are
    accounting negatives.
    """
    if pd.api.types.is_numeric_dtype(values):
        out = pd.to_numeric(values, errors="coerce").astype(float)
    else:
        s = values.astype(str).str.strip()
        negative = (s.str.match(r"^\(.*\)$") | s.str.endswith("-")).fillna(False).astype(bool)
        cleaned = (
            s.str.replace(r"^\((.*)\)$", r"\1", regex=True)
            .str.replace(r"-$", "", regex=True)
            .str.replace(r"[$,\s]", "", regex=True)
        )
        out = pd.to_numeric(cleaned, errors="coerce").astype(float)
        out = out.where(~negative, -out)
    return out.replace([np.inf, -np.inf], np.nan).fillna(0.0)


def parse_amount(value: object) -> float:
    return float(to_amounts(pd.Series([value], dtype=object)).iloc[0])


def amount_series(df: pd.DataFrame, col: Optional[str]) -> pd.Series:
    if not col or col not in df.columns:
        return pd.Series(0.0, index=df.index, dtype=float)
    return to_amounts(df[col])


def as_text(value: object) -> str:
    if is_blank(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def text_series(df: pd.DataFrame, col: Optional[str]) -> pd.Series:
    """Column as stripped strings, blanks as ``""``."""
    if not col or col not in df.columns:
        return pd.Series("", index=df.index, dtype=object)
    return df[col].map(as_text)


# ---------------- Numbers / formatting ----------------
def round_half_up(value: object, ndigits: int = 0) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


def round2(value: object) -> float:
    out = round_half_up(value, 2)
    return 0.0 if out is None else out


def pct(part: float, whole: float) -> float:
    return (part / whole) * 100 if whole > 0 else 0.0


def format_currency_0(value: object) -> str:
    if value is None or pd.isna(value):
        return "N/A"
    amount = round_half_up(value, 0) or 0.0
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.0f}"


def _plain_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(round(value, 2))


def format_currency_compact(value: object) -> str:
    """Short money label for tiles: ``$1.2M``, ``$450K`` or ``$812``."""
    if isinstance(value, str):
        value = re.sub(r"[^0-9.-]+", "", value)
    try:
        amount = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return "$0"
    if math.isnan(amount):
        return "$0"
    sign = "-" if amount < 0 else ""
    amount = abs(amount)
    if amount >= 1_000_000:
        return f"{sign}${amount / 1_000_000:.1f}M"
    if amount >= 1_000:
        return f"{sign}${amount / 1_000:.0f}K"
    return f"{sign}${_plain_number(amount)}"


# ---------------- Schedule ----------------
def parse_project_date(value: object) -> Optional[pd.Timestamp]:
    if is_blank(value):
        return None
    ts = pd.to_datetime(str(value).strip(), errors="coerce")
    if pd.isna(ts):
        logger.warning("Could not parse project date %r", value)
        return None
    return ts.normalize()


def today_label(today: Optional[date] = None) -> str:
    d = today or date.today()
    return f"{d.month}/{d.day}/{d.year}"


def compute_schedule(meta: ProjectMeta, today: Optional[date] = None) -> Dict[str, Any]:
    out: Dict[str, Any] = {"days_elapsed": 0, "total_duration": "", "percent_time_elapsed": 0.0}
    start = parse_project_date(meta.start_date)
    end = parse_project_date(meta.end_date)
    if start is None or end is None:
        return out

    current = parse_project_date(meta.current_date)
    if current is None:
        current = pd.Timestamp(today or date.today())
    total_days = math.ceil((end - start) / pd.Timedelta(days=1))
    elapsed_days = math.ceil((current - start) / pd.Timedelta(days=1))

    out["days_elapsed"] = elapsed_days
    out["total_duration"] = f"{math.ceil(total_days / DAYS_PER_MONTH)} months"
    out["percent_time_elapsed"] = round2(elapsed_days / total_days * 100) if total_days > 0 else 0.0
    return out


def two_slice(first: str, second: str, value: float) -> List[Dict[str, Any]]:
    return [{"name": first, "value": value}, {"name": second, "value": round2(100 - value)}]
