class FieldTreeError(ValueError):
    """Base class for rejected template tree edits."""


class InvalidFieldPath(FieldTreeError):
    def __init__(self, path, reason: str):
        self.path = list(path)
        super().__init__(f"Invalid field path {self.path}: {reason}")


class DuplicateFieldId(FieldTreeError):
    def __init__(self, field_id: str):
        self.field_id = field_id
        super().__init__(f"Field id '{field_id}' is already used in this template")


class ResultShapeError(ValueError):
    """The submitted value does not match the structured/unstructured shape of the result."""


class StoreWriteError(RuntimeError):
    """A data store write reported failure."""


class InvalidFieldProps(FieldTreeError):
    """Merged field properties do not form a valid field node."""


class NotFoundError(LookupError):
    """A referenced document does not exist in the data store."""


class PurgeForbidden(PermissionError):
    """Record purge attempted without the configured deletion password."""
