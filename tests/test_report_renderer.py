from backend.schemas.template import GroupField, NumberField, ResultTemplate, TextField
from backend.services.report_renderer import NOT_AVAILABLE, render_result, render_rows


def _template():
    return ResultTemplate(
        id="TPL-T",
        name="Test",
        fields=[
            GroupField(
                id="grp",
                label="Red Cells",
                children=[
                    NumberField(id="hb", label="Hemoglobin", unit="g/dL", reference_range="12-16"),
                    GroupField(id="sub", label="Indices", children=[NumberField(id="mcv", label="MCV", unit="fL")]),
                ],
            ),
            TextField(id="obs", label="Observations"),
        ],
    )


def test_rows_follow_declaration_order_with_sections():
    rows = render_rows(_template().fields, {"hb": 13.5, "mcv": "88", "obs": "  Mild anisocytosis.\nRepeat in 3 months.  "})

    assert [(row.kind, row.field_id, row.depth) for row in rows] == [
        ("section", "grp", 0),
        ("measurement", "hb", 1),
        ("section", "sub", 1),
        ("measurement", "mcv", 2),
        ("text", "obs", 0),
    ]
    assert rows[0].value is None
    assert rows[1].value == "13.5"
    assert rows[1].unit == "g/dL"
    assert rows[1].reference_range == "12-16"
    assert rows[4].value == "  Mild anisocytosis.\nRepeat in 3 months.  "


def test_absent_values_render_placeholder():
    rows = render_rows(_template().fields, {"hb": "", "mcv": None})
    values = {row.field_id: row.value for row in rows if row.kind != "section"}
    assert values == {"hb": NOT_AVAILABLE, "mcv": NOT_AVAILABLE, "obs": NOT_AVAILABLE}


def test_zero_is_rendered_not_replaced():
    rows = render_rows(_template().fields, {"hb": 0})
    assert rows[1].value == "0"


def test_structured_result_with_text_value_renders_placeholders():
    rendered = render_result(_template(), "legacy free text")
    assert rendered.structured is True
    assert all(row.value in (None, NOT_AVAILABLE) for row in rendered.rows)


def test_unstructured_result_is_a_single_text_block():
    rendered = render_result(None, "Total cholesterol: 180 mg/dL\nHDL: 55 mg/dL")
    assert rendered.structured is False
    assert rendered.rows == []
    assert rendered.text == "Total cholesterol: 180 mg/dL\nHDL: 55 mg/dL"

    assert render_result(None, {"a": 1}).text == ""
