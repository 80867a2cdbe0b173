"""Error types raised by the data-access layer."""


class ModelHubError(Exception):
    """Base class for modelhub data-access errors."""


class NotFoundError(ModelHubError):
    """
    No record matches the id within the caller's scope.

    Raised the same way whether the record does not exist or belongs to
    another owner, so callers cannot probe for other owners' records.
    """

    def __init__(self, kind: str, record_id: object):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} not found: {record_id}")


class StoreFailure(ModelHubError):
    """The entity store rejected an operation (connectivity, constraint, cascade)."""

    def __init__(self, operation: str, kind: str, detail: str):
        self.operation = operation
        self.kind = kind
        self.detail = detail
        super().__init__(f"{operation} {kind} failed: {detail}")
