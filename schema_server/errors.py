"""Error taxonomy shared by the store, the refresh core and the HTTP layer."""

from collections.abc import Iterable


class SchemaServiceError(Exception):
    """Base class for every expected failure the service reports."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_body(self) -> dict[str, object]:
        return {"success": False, "message": self.message}


class NotReadyError(SchemaServiceError):
    """No snapshot has been installed yet."""

    status_code = 503

    def __init__(self, message: str = "Schema is not loaded yet. Try again shortly."):
        super().__init__(message)


class InvalidInputError(SchemaServiceError):
    """Malformed or missing request input."""

    status_code = 400
    accepted_field = "accepted"

    def __init__(self, message: str, accepted: Iterable[str] | None = None):
        super().__init__(message)
        self.accepted = list(accepted) if accepted is not None else None

    def to_body(self) -> dict[str, object]:
        body = super().to_body()
        if self.accepted is not None:
            body[self.accepted_field] = self.accepted
        return body


class InvalidClassError(InvalidInputError):
    accepted_field = "validChar"


class InvalidRawKeyError(InvalidInputError):
    accepted_field = "validKeys"


class NotFoundError(SchemaServiceError, LookupError):
    """A well-formed key has no entry in the current snapshot."""

    status_code = 404


class UpstreamFetchFailed(SchemaServiceError):
    """The upstream dataset could not be fetched or decoded."""

    status_code = 500


class SnapshotInvalid(UpstreamFetchFailed):
    """The fetched document does not have the expected shape."""
