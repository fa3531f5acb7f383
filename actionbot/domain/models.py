"""Domain data models — pure Python dataclasses."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union


class ErrorKind(str, Enum):
    INVALID_ARGUMENTS = "invalid_arguments"
    NOT_CONFIGURED = "not_configured"
    PERSISTENCE_ERROR = "persistence_error"
    EXTERNAL_API_ERROR = "external_api_error"
    UNKNOWN_ACTION = "unknown_action"


@dataclass(frozen=True)
class ActionRequest:
    """A single action invocation coming from the chat command parser."""

    name: str  # e.g. "hitman", "spotify.playlist"
    args: Tuple[str, ...]
    channel: str


# ---------------------------------------------------------------------------
# Action results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Reply:
    text: str


@dataclass(frozen=True)
class NoReply:
    pass


@dataclass(frozen=True)
class Failure:
    kind: ErrorKind
    detail: str


ActionResult = Union[Reply, NoReply, Failure]


# ---------------------------------------------------------------------------
# Outbound chat traffic
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Say:
    """Ordinary chat line."""

    channel: str
    text: str


@dataclass(frozen=True)
class Raw:
    """Platform command string (e.g. "/timeout user 600"), sent as-is."""

    channel: str
    text: str


OutboundMessage = Union[Say, Raw]


@dataclass
class HitmanRecord:
    channel: str
    user: str
    protected: bool = False


# ---------------------------------------------------------------------------
# Command identity
# ---------------------------------------------------------------------------

_BUILTIN_KINDS = frozenset({"addcmd", "delcmd", "showcmd", "listcmd", "join", "part"})


@dataclass(frozen=True)
class Action:
    """Identity of a chat command: a user-defined macro or a fixed built-in."""

    kind: str  # "custom" | "addcmd" | "delcmd" | "showcmd" | "listcmd" | "join" | "part"
    name: Optional[str] = None  # macro name, custom actions only

    def __post_init__(self):
        if self.kind == "custom":
            if not self.name:
                raise ValueError("custom action requires a name")
        elif self.kind not in _BUILTIN_KINDS:
            raise ValueError(f"unknown action kind: {self.kind!r}")

    @classmethod
    def custom(cls, name: str) -> "Action":
        return cls(kind="custom", name=name)

    @property
    def is_custom(self) -> bool:
        return self.kind == "custom"

    def serialize(self) -> str:
        """Only custom actions have a stored representation."""
        if self.is_custom:
            return self.name
        return "Unsupported type"


# ---------------------------------------------------------------------------
# External service payloads
# ---------------------------------------------------------------------------

@dataclass
class Weather:
    name: str
    country: str
    temp: float
    description: str


@dataclass
class Translation:
    src: str
    dest: str
    text: str
