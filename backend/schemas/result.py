from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from backend.schemas.template import ResultTemplate

ResultStatus = Literal["pending", "completed"]
ScalarValue = str | int | float | bool | None
StructuredValue = dict[str, ScalarValue]
ResultValue = str | StructuredValue


class LabResult(BaseModel):
    """One result instance per invoiced service."""
    id: str
    invoice_id: str
    patient_id: str
    service_id: str
    position: int = 0
    value: ResultValue = ""
    status: ResultStatus = "pending"
    reported_by: str | None = None
    report_date: datetime | None = None


class ResultWithTemplate(LabResult):
    service_name: str | None = None
    template: ResultTemplate | None = None
    is_complete: bool = False


class ResultValueUpdate(BaseModel):
    value: ResultValue


class ResultEntry(BaseModel):
    result_id: str
    value: ResultValue


class InvoiceResultsUpdate(BaseModel):
    entries: list[ResultEntry] = Field(default_factory=list)
