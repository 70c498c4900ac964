"""Domain error taxonomy.

Learn: services raise these instead of HTTPException so they stay usable
outside a request (CLI, tests). main.create_app() registers a single
handler that maps each class to its HTTP status via `status_code`.

Ownership failures are not a separate class: an event that
exists but belongs to someone else raises NotFoundError, exactly like an
event that does not exist.
"""


class PlannoraError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(PlannoraError):
    """Missing or malformed input."""

    status_code = 400
    default_message = "Invalid request"


class CannotReuseIdError(ValidationError):
    """An explicit create was given a payload that already carries an id."""

    default_message = (
        "Cannot create a new event with an existing ID. "
        "Use PUT /api/events/{id} to update existing events."
    )


class AuthenticationError(PlannoraError):
    """Missing, invalid or expired credentials.

    The message stays coarse; callers must not put the
    underlying cause (expired vs. malformed, unknown user) in it.
    """

    status_code = 401
    default_message = "Invalid token"


class NotFoundError(PlannoraError):
    status_code = 404
    default_message = "Not found"


class ConflictError(PlannoraError):
    """Uniqueness violation, e.g. an email that is already registered."""

    status_code = 400
    default_message = "User already exists"


class StorageError(PlannoraError):
    """Database unreachable, timed out, or failed unexpectedly.

    Only the generic message reaches the client; details are logged
    where the error is raised.
    """

    status_code = 500
    default_message = "Storage error"
