"""Error taxonomy for session operations."""


class KinRecallError(Exception):
    """Base class for errors reported to callers."""

    kind = "error"


class AuthError(KinRecallError):
    """Credentials were rejected or the session is invalid."""

    kind = "auth_error"


class ValidationError(KinRecallError):
    """User input was empty or invalid."""

    kind = "validation_error"


class PreconditionError(KinRecallError):
    """The operation needs state that is not established yet."""

    kind = "precondition_error"


class TransportError(KinRecallError):
    """The backend could not be reached or returned an error."""

    kind = "transport_error"


class PartialFailure(KinRecallError):
    """A family row was created but its membership row was not."""

    kind = "partial_failure"

    def __init__(self, message: str, family_id: str) -> None:
        super().__init__(message)
        self.family_id = family_id
