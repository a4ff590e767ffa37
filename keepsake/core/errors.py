"""
Exception hierarchy shared by services and the HTTP layer.
"""


class KeepsakeError(Exception):
    """Base exception for all domain errors."""

    status_code = 500
    default_message = "Internal error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(KeepsakeError):
    """Malformed input. Nothing was written."""

    status_code = 422
    default_message = "Invalid request"


class ConflictError(KeepsakeError):
    """The write would duplicate an existing record."""

    status_code = 409
    default_message = "A contact with this email already exists"


class NotFoundError(KeepsakeError):
    """Record does not exist or is not visible to the caller."""

    status_code = 404
    default_message = "Not found"


class AuthorizationError(KeepsakeError):
    """
    Caller may not perform the action.

    The message is fixed so a denial never reveals whether the target
    account or relationship exists.
    """

    status_code = 403
    default_message = "Not authorized to perform this action"

    def __init__(self) -> None:
        super().__init__(self.default_message)


class ReleaseFailedError(KeepsakeError):
    """The release cascade could not complete; the owner is unchanged and the call can be retried."""

    status_code = 503
    default_message = "Confirmation could not be completed. Please try again later."


class CollaboratorError(KeepsakeError):
    """Base exception for external collaborator failures."""

    status_code = 502
    default_message = "Upstream service unavailable"


class DirectoryUnavailableError(CollaboratorError):
    """Account directory could not be queried."""


class EmailDeliveryError(CollaboratorError):
    """Email provider rejected or failed the send."""


class StorageError(CollaboratorError):
    """Media storage could not produce a signed URL."""


class AuthenticationError(KeepsakeError):
    """Missing or invalid credentials."""

    status_code = 401
    default_message = "Authentication required"
