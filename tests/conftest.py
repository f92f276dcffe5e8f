from __future__ import annotations

from datetime import date

import pytest

BUDGET = "E - Current Contract Budget"
BILLED = "J - Total Billed to Date"
PROJECTED = "Q - Proj Cost @ Complete (J+P)"


def _row(code, description, cost_type, budget, billed, projected):
    return {
        "Budget Code": code,
        "Budget Code Description": description,
        "Cost Type": cost_type,
        BUDGET: budget,
        BILLED: billed,
        "% Billed to Date": round(billed / budget * 100, 2) if budget else 0,
        PROJECTED: projected,
        "(Over) / Under Budget (G-Q)": budget - projected,
    }


@pytest.fixture
def budget_rows():
    return [
        _row("01-100", "General Conditions", "L", 100000, 40000, 110000),
        _row("03-305", "Concrete Slab", "S", 200000, 20000, 200000),
        _row("03-310", "Footings", "M", 50000, 30000, 0),
        _row("09-900", "Painting", "S", 25000, 0, 30000),
        _row("GEN", "Permits", "O", 0, 500, 0),
    ]


@pytest.fixture
def project_meta():
    return {
        "projectName": "Riverside Clinic",
        "startDate": "2024-01-01",
        "endDate": "2024-12-31",
        "currentDate": "2024-07-01",
    }


@pytest.fixture
def today():
    return date(2024, 7, 1)
