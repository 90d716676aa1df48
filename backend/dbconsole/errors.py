"""
Error taxonomy for the console backend.

Every error is contained per request; none of them is retried.
"""


class ConsoleError(Exception):
    """Base class for errors surfaced to the console user."""

    status_code = 500

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class ValidationError(ConsoleError):
    """Input rejected locally, before any call to the database."""

    status_code = 400


class ExecutorError(ConsoleError):
    """The database rejected or failed a statement. The message is kept verbatim."""

    status_code = 400

    def __init__(self, message, errno=None):
        super().__init__(message)
        self.errno = errno


class NotFoundError(ConsoleError):
    """The requested table or column does not exist."""

    status_code = 404


class FetchError(ConsoleError):
    """A listing call (tables, relationships) failed. Callers degrade to an empty list."""

    status_code = 502
