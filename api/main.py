from __future__ import annotations

import logging
import math

import numpy as np
import pandas as pd
from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.schemas import BudgetCsvRequest, BudgetRowsRequest, DashboardOptionsModel, FindingsResponse
from core.config import DashboardOptions, normalize_options
from core.metrics_project import compute_project_dashboard, compute_project_dashboard_from_csv
from core.normalize import normalize_budget_data
from core.redflags import identify_red_flags


app = FastAPI(title="Construction Budget Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _options_from_model(model: DashboardOptionsModel) -> DashboardOptions:
    return normalize_options(model.model_dump())


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        )
    )


def _error(exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


@app.get("/health")
def health():
    return {"status": "ok"}


@app.post("/normalize")
def normalize(body: BudgetRowsRequest):
    try:
        opts = _options_from_model(body.options)
        return _json(normalize_budget_data(body.rows, opts.meta, top_n=opts.top_n))
    except Exception as exc:
        logger.exception("normalize failed")
        return _error(exc)


@app.post("/red-flags", response_model=FindingsResponse)
def red_flags(body: BudgetRowsRequest):
    try:
        opts = _options_from_model(body.options)
        record = normalize_budget_data(body.rows, opts.meta, top_n=opts.top_n)
        return {"key_findings": identify_red_flags(record, opts.thresholds)}
    except Exception as exc:
        logger.exception("red_flags failed")
        return _error(exc)


@app.post("/dashboard")
def dashboard(body: BudgetRowsRequest):
    try:
        opts = _options_from_model(body.options)
        return _json(compute_project_dashboard(body.rows, opts))
    except Exception as exc:
        logger.exception("dashboard failed")
        return _error(exc)


@app.post("/dashboard/csv")
def dashboard_csv(body: BudgetCsvRequest):
    try:
        opts = _options_from_model(body.options)
        return _json(compute_project_dashboard_from_csv(body.csv, opts))
    except ValueError as exc:
        logger.warning("dashboard_csv rejected input: %s", exc)
        return JSONResponse(status_code=400, content={"error": str(exc), "type": type(exc).__name__})
    except Exception as exc:
        logger.exception("dashboard_csv failed")
        return _error(exc)
