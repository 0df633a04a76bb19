class DatingAPIError(Exception):
    """Base class for errors that map onto a client-facing HTTP status."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(DatingAPIError):
    status_code = 400


class NotFoundError(DatingAPIError):
    status_code = 404


class StorageUnavailable(DatingAPIError):
    """The document store could not be reached. The whole operation may be retried."""

    status_code = 503
