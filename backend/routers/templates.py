from fastapi import APIRouter, Depends, HTTPException

from backend.models.user import User
from backend.routers.deps import envelope, get_current_user, get_store
from backend.schemas.template import (
    AddFieldRequest,
    DraftOpenRequest,
    DraftRenameRequest,
    RemoveFieldRequest,
    TemplateSummary,
    UpdateFieldRequest,
)
from backend.services import template_drafts
from backend.services.catalog import delete_template, get_template, list_templates
from backend.services.field_tree import count_fields
from backend.storage.base import DataStore

router = APIRouter(prefix="/api/templates", tags=["templates"])


@router.get("")
def templates_index(store: DataStore = Depends(get_store), current_user: User = Depends(get_current_user)):
    summaries = [
        TemplateSummary(id=t.id, name=t.name, field_count=count_fields(t.fields))
        for t in sorted(list_templates(store), key=lambda t: t.name.lower())
    ]
    return envelope(summaries)


@router.get("/{template_id}")
def template_detail(template_id: str, store: DataStore = Depends(get_store), current_user: User = Depends(get_current_user)):
    template = get_template(store, template_id)
    if template is None:
        raise HTTPException(status_code=404, detail="Template not found")
    return envelope(template)


@router.delete("/{template_id}")
def template_delete(template_id: str, store: DataStore = Depends(get_store), current_user: User = Depends(get_current_user)):
    if get_template(store, template_id) is None:
        raise HTTPException(status_code=404, detail="Template not found")
    if not delete_template(store, template_id):
        raise HTTPException(status_code=503, detail="Could not delete template")
    return envelope(None, message="Template deleted")


@router.post("/drafts")
def draft_open(payload: DraftOpenRequest, store: DataStore = Depends(get_store), current_user: User = Depends(get_current_user)):
    draft = template_drafts.open_draft(store, payload.template_id, payload.name, opened_by=current_user.id)
    return envelope(draft, message="Draft opened")


@router.get("/drafts/{draft_id}")
def draft_detail(draft_id: str, store: DataStore = Depends(get_store), current_user: User = Depends(get_current_user)):
    return envelope(template_drafts.get_draft(store, draft_id))


@router.patch("/drafts/{draft_id}")
def draft_rename(
    draft_id: str,
    payload: DraftRenameRequest,
    store: DataStore = Depends(get_store),
    current_user: User = Depends(get_current_user),
):
    return envelope(template_drafts.rename(store, draft_id, payload.name))


@router.post("/drafts/{draft_id}/fields")
def draft_add_field(
    draft_id: str,
    payload: AddFieldRequest,
    store: DataStore = Depends(get_store),
    current_user: User = Depends(get_current_user),
):
    return envelope(template_drafts.add_field(store, draft_id, payload.parent_path, payload.field))


@router.patch("/drafts/{draft_id}/fields")
def draft_update_field(
    draft_id: str,
    payload: UpdateFieldRequest,
    store: DataStore = Depends(get_store),
    current_user: User = Depends(get_current_user),
):
    return envelope(template_drafts.update_field(store, draft_id, payload.path, payload.props))


@router.post("/drafts/{draft_id}/fields/remove")
def draft_remove_field(
    draft_id: str,
    payload: RemoveFieldRequest,
    store: DataStore = Depends(get_store),
    current_user: User = Depends(get_current_user),
):
    return envelope(template_drafts.remove_field(store, draft_id, payload.path))


@router.post("/drafts/{draft_id}/commit")
def draft_commit(draft_id: str, store: DataStore = Depends(get_store), current_user: User = Depends(get_current_user)):
    return envelope(template_drafts.commit_draft(store, draft_id), message="Template saved")


@router.delete("/drafts/{draft_id}")
def draft_discard(draft_id: str, store: DataStore = Depends(get_store), current_user: User = Depends(get_current_user)):
    template_drafts.discard_draft(store, draft_id)
    return envelope(None, message="Draft discarded")
