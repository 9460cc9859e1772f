from collections.abc import Mapping, Sequence
from typing import Any

from backend.schemas.report import RenderedResult, ReportRow
from backend.schemas.template import FieldNode, GroupField, NumberField, ResultTemplate
from backend.services.completion import is_present
from backend.services.field_tree import iter_fields

NOT_AVAILABLE = "N/A"


def render_rows(fields: Sequence[FieldNode], value: Any) -> list[ReportRow]:
    """Flatten a template tree into display rows, pre-order, in declaration order.

    The same rows back the data-entry form and the printed report.
    """
    values = value if isinstance(value, Mapping) else {}
    rows: list[ReportRow] = []
    for _, depth, node in iter_fields(fields):
        if isinstance(node, GroupField):
            rows.append(ReportRow(kind="section", field_id=node.id, label=node.label, depth=depth))
            continue

        raw = values.get(node.id)
        shown = str(raw) if is_present(raw) else NOT_AVAILABLE
        if isinstance(node, NumberField):
            rows.append(
                ReportRow(
                    kind="measurement",
                    field_id=node.id,
                    label=node.label,
                    depth=depth,
                    value=shown,
                    unit=node.unit,
                    reference_range=node.reference_range,
                )
            )
        else:
            rows.append(ReportRow(kind="text", field_id=node.id, label=node.label, depth=depth, value=shown))
    return rows


def render_result(template: ResultTemplate | None, value: Any) -> RenderedResult:
    if template is None:
        return RenderedResult(structured=False, text=value if isinstance(value, str) else "")
    return RenderedResult(structured=True, rows=render_rows(template.fields, value))
