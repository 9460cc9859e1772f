"""
Pure, path-addressed editing of template field trees.

A path is a list of child indices from the root: ``[]`` is the root level,
``[2]`` the third root field, ``[2, 0]`` the first child of that group.
Every operation returns a new list and leaves its input untouched; nodes on
the edited path are rebuilt, all other nodes are shared.
"""

from collections.abc import Callable, Iterator, Sequence
from typing import Any

from pydantic import ValidationError

from backend.errors import DuplicateFieldId, InvalidFieldPath, InvalidFieldProps
from backend.schemas.template import FieldNode, GroupField, field_node_adapter

Path = Sequence[int]


def iter_fields(fields: Sequence[FieldNode], _prefix: Path = (), _depth: int = 0) -> Iterator[tuple[list[int], int, FieldNode]]:
    """Depth-first pre-order walk yielding ``(path, depth, node)``."""
    for index, node in enumerate(fields):
        path = [*_prefix, index]
        yield path, _depth, node
        if isinstance(node, GroupField):
            yield from iter_fields(node.children, path, _depth + 1)


def iter_leaves(fields: Sequence[FieldNode]) -> Iterator[FieldNode]:
    for _, _, node in iter_fields(fields):
        if not isinstance(node, GroupField):
            yield node


def leaf_ids(fields: Sequence[FieldNode]) -> list[str]:
    return [leaf.id for leaf in iter_leaves(fields)]


def all_ids(fields: Sequence[FieldNode]) -> list[str]:
    return [node.id for _, _, node in iter_fields(fields)]


def count_fields(fields: Sequence[FieldNode]) -> int:
    """Number of nodes in the tree, groups included."""
    return sum(1 for _ in iter_fields(fields))


def _check_index(siblings: Sequence[FieldNode], index: Any, path: Path) -> None:
    if isinstance(index, bool) or not isinstance(index, int):
        raise InvalidFieldPath(path, f"index {index!r} is not an integer")
    if not 0 <= index < len(siblings):
        raise InvalidFieldPath(path, f"index {index} out of range for {len(siblings)} field(s)")


def find_field(fields: Sequence[FieldNode], path: Path) -> FieldNode:
    if not path:
        raise InvalidFieldPath(path, "path is empty")
    siblings: Sequence[FieldNode] = fields
    node: FieldNode | None = None
    for depth, index in enumerate(path):
        if node is not None:
            if not isinstance(node, GroupField):
                raise InvalidFieldPath(path, f"'{node.id}' at depth {depth - 1} is a {node.type} field, not a group")
            siblings = node.children
        _check_index(siblings, index, path)
        node = siblings[index]
    return node


def _edit_children(
    fields: Sequence[FieldNode],
    parent_path: Path,
    edit: Callable[[list[FieldNode]], list[FieldNode]],
    full_path: Path,
) -> list[FieldNode]:
    if not parent_path:
        return edit(list(fields))
    index, rest = parent_path[0], parent_path[1:]
    _check_index(fields, index, full_path)
    node = fields[index]
    if not isinstance(node, GroupField):
        raise InvalidFieldPath(full_path, f"'{node.id}' is a {node.type} field, not a group")
    rebuilt = node.model_copy(update={"children": _edit_children(node.children, rest, edit, full_path)})
    return [*fields[:index], rebuilt, *fields[index + 1 :]]


def add_field(fields: Sequence[FieldNode], parent_path: Path, new_field: FieldNode) -> list[FieldNode]:
    """Append ``new_field`` as the last child of the group at ``parent_path`` (root when empty)."""
    existing = set(all_ids(fields))
    for field_id in all_ids([new_field]):
        if field_id in existing:
            raise DuplicateFieldId(field_id)
        existing.add(field_id)
    return _edit_children(fields, list(parent_path), lambda siblings: [*siblings, new_field], list(parent_path))


def remove_field(fields: Sequence[FieldNode], path: Path) -> list[FieldNode]:
    """Drop the node at ``path`` together with its subtree."""
    path = list(path)
    if not path:
        raise InvalidFieldPath(path, "path is empty")
    index = path[-1]

    def drop(siblings: list[FieldNode]) -> list[FieldNode]:
        _check_index(siblings, index, path)
        return [*siblings[:index], *siblings[index + 1 :]]

    return _edit_children(fields, path[:-1], drop, path)


def update_field(fields: Sequence[FieldNode], path: Path, props: dict[str, Any]) -> list[FieldNode]:
    """Merge ``props`` into the node at ``path``.

    Switching ``type`` to ``group`` starts an empty child list; switching away
    from ``group`` discards the children and every descendant. Attributes the
    new variant does not carry are dropped. Children are only edited through
    :func:`add_field` / :func:`remove_field`.
    """
    path = list(path)
    node = find_field(fields, path)

    merged = node.model_dump()
    merged.update({key: value for key, value in props.items() if key != "children"})
    if merged.get("type") == "group":
        merged["children"] = merged.get("children") or []
    else:
        merged.pop("children", None)

    try:
        updated = field_node_adapter.validate_python(merged)
    except ValidationError as exc:
        raise InvalidFieldProps(f"Invalid properties for field '{node.id}': {exc.errors()}") from exc

    if updated.id != node.id:
        # Kept descendants count too: a group cannot take the id of its own child.
        taken = set(all_ids(fields)) - set(all_ids([node]))
        if isinstance(updated, GroupField):
            taken.update(all_ids(updated.children))
        if updated.id in taken:
            raise DuplicateFieldId(updated.id)

    index = path[-1]
    return _edit_children(fields, path[:-1], lambda siblings: [*siblings[:index], updated, *siblings[index + 1 :]], path)
