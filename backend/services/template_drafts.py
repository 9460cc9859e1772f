"""
Template edit sessions.

Opening a draft deep-copies a template (or starts an empty one) into the
``template_drafts`` namespace. Field edits only ever touch the draft; the
stored template changes in a single write on commit, and discarding a draft
leaves no trace.
"""

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from backend.errors import InvalidFieldProps, NotFoundError
from backend.schemas.template import FieldNode, NumberField, ResultTemplate, TemplateDraft
from backend.services import field_tree
from backend.services.catalog import get_template, load, put, save_template
from backend.storage.base import DataStore
from backend.storage.namespaces import TEMPLATE_DRAFTS, new_key

logger = logging.getLogger(__name__)


def open_draft(store: DataStore, template_id: str | None = None, name: str = "", opened_by: str | None = None) -> TemplateDraft:
    fields: list[FieldNode] = []
    if template_id is not None:
        template = get_template(store, template_id)
        if template is None:
            raise NotFoundError(f"Template {template_id} not found")
        name = template.name
        fields = [node.model_copy(deep=True) for node in template.fields]

    draft = TemplateDraft(
        id=new_key("DRAFT"),
        template_id=template_id,
        name=name,
        fields=fields,
        opened_by=opened_by,
        opened_at=datetime.now(timezone.utc),
    )
    put(store, TEMPLATE_DRAFTS, draft)
    return draft


def get_draft(store: DataStore, draft_id: str) -> TemplateDraft:
    draft = load(TemplateDraft, store.get(TEMPLATE_DRAFTS, draft_id), TEMPLATE_DRAFTS)
    if draft is None:
        raise NotFoundError(f"Draft {draft_id} not found")
    return draft


def _edit(store: DataStore, draft_id: str, edit: Callable[[list[FieldNode]], list[FieldNode]]) -> TemplateDraft:
    draft = get_draft(store, draft_id)
    try:
        updated = TemplateDraft.model_validate({**dict(draft), "fields": edit(draft.fields)})
    except ValidationError as exc:
        raise InvalidFieldProps(f"Edit would leave draft {draft_id} invalid: {exc.errors()[0]['msg']}") from exc
    put(store, TEMPLATE_DRAFTS, updated)
    return updated


def add_field(store: DataStore, draft_id: str, parent_path: list[int], new_field: FieldNode | None = None) -> TemplateDraft:
    node = new_field if new_field is not None else NumberField()
    return _edit(store, draft_id, lambda fields: field_tree.add_field(fields, parent_path, node))


def update_field(store: DataStore, draft_id: str, path: list[int], props: dict[str, Any]) -> TemplateDraft:
    return _edit(store, draft_id, lambda fields: field_tree.update_field(fields, path, props))


def remove_field(store: DataStore, draft_id: str, path: list[int]) -> TemplateDraft:
    return _edit(store, draft_id, lambda fields: field_tree.remove_field(fields, path))


def rename(store: DataStore, draft_id: str, name: str) -> TemplateDraft:
    draft = get_draft(store, draft_id)
    updated = draft.model_copy(update={"name": name})
    put(store, TEMPLATE_DRAFTS, updated)
    return updated


def commit_draft(store: DataStore, draft_id: str) -> ResultTemplate:
    draft = get_draft(store, draft_id)
    template = ResultTemplate(id=draft.template_id or new_key("TPL"), name=draft.name, fields=draft.fields)
    save_template(store, template)
    store.remove(TEMPLATE_DRAFTS, draft_id)
    logger.info("Committed draft %s as template %s (%d fields)", draft_id, template.id, field_tree.count_fields(template.fields))
    return template


def discard_draft(store: DataStore, draft_id: str) -> None:
    get_draft(store, draft_id)
    store.remove(TEMPLATE_DRAFTS, draft_id)
