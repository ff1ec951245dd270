from typing import Optional


class V0FetchError(Exception):
    """Base class for failures the CLI reports as `ERROR: ...`."""


class InputError(V0FetchError):
    pass


class InvalidInputError(InputError):
    pass


class UnsupportedLocatorError(InputError):
    pass


class PathTraversalError(InputError):
    pass


class RemoteError(V0FetchError):
    """Non-2xx answer from the v0 API.

    Carries the HTTP status and the chat/version identifier the request used so
    callers can tell which of the slug/hash attempts failed.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        identifier: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.identifier = identifier


class UnauthorizedError(RemoteError):
    pass


class NotFoundError(RemoteError):
    pass


class EmptyResultError(V0FetchError):
    pass


class ArchiveError(V0FetchError):
    pass


class SecurityViolationError(ArchiveError):
    pass
