"""actionbot — command-execution core for a chat automation bot."""

from actionbot.config import CONFIG
from actionbot.domain.models import (
    Action,
    ActionRequest,
    ActionResult,
    ErrorKind,
    Failure,
    NoReply,
    Raw,
    Reply,
    Say,
)
from actionbot.errors import (
    ActionError,
    ExternalAPIError,
    InvalidArguments,
    NotFoundError,
    OutboundChannelClosed,
    PersistenceError,
)
from actionbot.channel import OutboundChannel, deliver
from actionbot.bots.action_handler import ActionHandler

__all__ = [
    "CONFIG",
    "Action",
    "ActionRequest",
    "ActionResult",
    "ErrorKind",
    "Failure",
    "NoReply",
    "Raw",
    "Reply",
    "Say",
    "ActionError",
    "ExternalAPIError",
    "InvalidArguments",
    "NotFoundError",
    "OutboundChannelClosed",
    "PersistenceError",
    "OutboundChannel",
    "deliver",
    "ActionHandler",
]
