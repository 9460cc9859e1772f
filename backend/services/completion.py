from collections.abc import Mapping
from typing import Any

from backend.schemas.template import ResultTemplate
from backend.services.field_tree import iter_leaves


def is_present(value: Any) -> bool:
    # 0 and "0" are real measurements, only None and blank strings are missing.
    return value is not None and str(value).strip() != ""


def missing_leaf_ids(template: ResultTemplate, value: Any) -> list[str]:
    values = value if isinstance(value, Mapping) else {}
    return [leaf.id for leaf in iter_leaves(template.fields) if not is_present(values.get(leaf.id))]


def is_complete(template: ResultTemplate | None, value: Any) -> bool:
    """Whether a result value fills its template (or is non-blank text when there is no template)."""
    if template is None:
        return isinstance(value, str) and value.strip() != ""
    if not isinstance(value, Mapping):
        return False
    return all(is_present(value.get(leaf.id)) for leaf in iter_leaves(template.fields))
