"""
Workflow error taxonomy.

Every failure the bimbingan workflow reports to its caller is one of the
classes below. Each carries an HTTP ``status_code`` and a human readable
``detail`` so the API layer can translate it without a lookup table.

Notification failures never reach the caller and have no class here.
"""


class WorkflowError(Exception):
    """Base class for errors surfaced by the bimbingan workflow."""

    status_code = 500
    kind = "internal"

    def __init__(self, detail: str, *, cleanup_paths: tuple[str, ...] = ()):
        super().__init__(detail)
        self.detail = detail
        self.cleanup_paths = cleanup_paths
        """Storage locators of uploaded blobs the caller must discard."""


class InvalidInputError(WorkflowError):
    """Malformed or policy-violating request data."""

    status_code = 400
    kind = "invalid_input"


class ForbiddenError(WorkflowError):
    """The principal lacks rights over the targeted record."""

    status_code = 403
    kind = "forbidden"


class NotFoundError(WorkflowError):
    """The referenced record does not exist."""

    status_code = 404
    kind = "not_found"


class ConflictError(WorkflowError):
    """A state invariant would be violated."""

    status_code = 409
    kind = "conflict"


class InternalError(WorkflowError):
    """Storage or unexpected failure."""

    status_code = 500
    kind = "internal"
