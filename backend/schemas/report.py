from datetime import datetime
from typing import Literal

from pydantic import BaseModel

RowKind = Literal["section", "measurement", "text"]


class ReportRow(BaseModel):
    kind: RowKind
    field_id: str
    label: str
    depth: int = 0
    value: str | None = None
    unit: str | None = None
    reference_range: str | None = None


class RenderedResult(BaseModel):
    structured: bool
    rows: list[ReportRow] = []
    text: str | None = None


class ResultReport(RenderedResult):
    result_id: str
    service_id: str
    service_name: str | None = None
    status: str
    reported_by: str | None = None
    reported_by_name: str | None = None
    report_date: datetime | None = None


class InvoiceReport(BaseModel):
    invoice_id: str
    patient_id: str
    patient_name: str | None = None
    date: datetime
    complete: bool
    results: list[ResultReport]
