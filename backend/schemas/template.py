from datetime import datetime
from typing import Annotated, Any, Literal, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator


def new_field_id() -> str:
    return f"field-{uuid4().hex[:12]}"


class FieldBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_field_id, min_length=1, description="Unique across the whole template tree")
    label: str = Field(default="", description="Display text")


class NumberField(FieldBase):
    """Numeric data-entry leaf with optional unit and free-text reference range."""
    type: Literal["number"] = "number"
    unit: str | None = None
    reference_range: str | None = None


class TextField(FieldBase):
    """Multi-line free-text leaf."""
    type: Literal["textarea"] = "textarea"


class GroupField(FieldBase):
    """Named section; carries no value of its own."""
    type: Literal["group"] = "group"
    children: list["FieldNode"] = Field(default_factory=list)


FieldNode = Annotated[Union[NumberField, TextField, GroupField], Field(discriminator="type")]
FieldType = Literal["number", "textarea", "group"]

GroupField.model_rebuild()

field_node_adapter: TypeAdapter = TypeAdapter(FieldNode)


def _duplicate_ids(fields: list[FieldNode]) -> list[str]:
    seen: set[str] = set()
    duplicates: list[str] = []
    stack = list(reversed(fields))
    while stack:
        node = stack.pop()
        if node.id in seen:
            duplicates.append(node.id)
        seen.add(node.id)
        if isinstance(node, GroupField):
            stack.extend(reversed(node.children))
    return duplicates


class TemplateBody(BaseModel):
    name: str = ""
    fields: list[FieldNode] = Field(default_factory=list)

    @model_validator(mode="after")
    def _field_ids_unique(self):
        duplicates = _duplicate_ids(self.fields)
        if duplicates:
            raise ValueError(f"Duplicate field ids in template: {sorted(set(duplicates))}")
        return self


class ResultTemplate(TemplateBody):
    id: str


class TemplateSummary(BaseModel):
    id: str
    name: str
    field_count: int


class TemplateDraft(TemplateBody):
    """Working copy of a template under edit. The stored template is untouched until commit."""
    id: str
    template_id: str | None = None
    opened_by: str | None = None
    opened_at: datetime


class DraftOpenRequest(BaseModel):
    template_id: str | None = None
    name: str = ""


class DraftRenameRequest(BaseModel):
    name: str


class AddFieldRequest(BaseModel):
    parent_path: list[int] = Field(default_factory=list)
    field: FieldNode | None = None


class UpdateFieldRequest(BaseModel):
    path: list[int]
    props: dict[str, Any]


class RemoveFieldRequest(BaseModel):
    path: list[int]
