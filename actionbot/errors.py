"""Error types raised by handlers, ports and adapters."""

from typing import Optional

from actionbot.domain.models import ErrorKind, Failure


class ActionError(Exception):
    """Base for errors the dispatcher turns into a Failure result."""

    kind = ErrorKind.EXTERNAL_API_ERROR

    def __init__(self, detail: str = ""):
        super().__init__(detail)
        self.detail = detail

    def to_failure(self) -> Failure:
        return Failure(self.kind, self.detail)


class InvalidArguments(ActionError):
    kind = ErrorKind.INVALID_ARGUMENTS


class PersistenceError(ActionError):
    kind = ErrorKind.PERSISTENCE_ERROR


class NotFoundError(PersistenceError):
    """No record exists for the requested key."""

    kind = ErrorKind.NOT_CONFIGURED


class ExternalAPIError(ActionError):
    kind = ErrorKind.EXTERNAL_API_ERROR

    def __init__(self, detail: str = "", status: Optional[int] = None):
        super().__init__(detail)
        self.status = status

    def __repr__(self) -> str:
        if self.status is not None:
            return f"{type(self).__name__}(status={self.status}, {self.detail!r})"
        return f"{type(self).__name__}({self.detail!r})"


class InvalidLocation(ExternalAPIError):
    pass


class UnknownAction(ActionError):
    kind = ErrorKind.UNKNOWN_ACTION


class OutboundChannelClosed(Exception):
    """The outbound consumer is gone; the producing invocation cannot continue."""
