from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field


class ThresholdsModel(BaseModel):
    schedule_warning: float = 5.0
    schedule_danger: float = 10.0
    cost_type_behind: float = -15.0
    division_behind: float = -20.0
    overage_warning: float = 0.0
    overage_danger: float = 5.0


class ProjectMetaModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    project_name: str = Field(default="Construction Project", alias="projectName")
    start_date: str = Field(default="", alias="startDate")
    end_date: str = Field(default="", alias="endDate")
    current_date: str = Field(default="", alias="currentDate")


class DashboardOptionsModel(BaseModel):
    meta: ProjectMetaModel = Field(default_factory=ProjectMetaModel)
    thresholds: ThresholdsModel = Field(default_factory=ThresholdsModel)
    top_n: int = 5


class BudgetRowsRequest(BaseModel):
    rows: List[Dict[str, Any]] = Field(default_factory=list)
    options: DashboardOptionsModel = Field(default_factory=DashboardOptionsModel)


class BudgetCsvRequest(BaseModel):
    csv: str
    options: DashboardOptionsModel = Field(default_factory=DashboardOptionsModel)


class FindingModel(BaseModel):
    title: str
    description: str
    type: str
    recommendation: str


class FindingsResponse(BaseModel):
    key_findings: List[FindingModel]
