"""TrainingLog exceptions.

Remote calls other than login do not raise these to callers; the client
turns ``APIError`` into an ``Err`` result so sync failures stay local.
"""


class TrainingLogError(Exception):
    """Base exception for TrainingLog errors."""


class AuthenticationError(TrainingLogError):
    """The server rejected the username and password, or answered login without success."""


class APIError(TrainingLogError):
    """A request to the TrainingLog server did not produce a usable answer.

    ``status_code`` is the HTTP status for non-2xx replies and invalid JSON
    bodies, and ``None`` when the server could not be reached at all. It is
    copied onto ``Err.status_code``.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class StorageError(TrainingLogError):
    """The local store file could not be written; what was on disk is unchanged."""
