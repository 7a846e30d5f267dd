from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ReportRequest(BaseModel):
    query: str
    data: List[Dict[str, Any]] = Field(default_factory=list)

    @field_validator("query", mode="before")
    @classmethod
    def _query_required(cls, value):
        if value is None or not str(value).strip():
            raise ValueError("A consulta não pode estar vazia.")
        return str(value).strip()


class ReportOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    report_data: List[Dict[str, Any]] = Field(alias="reportData")
