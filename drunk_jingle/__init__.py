"""
DRUNK-JINGLE - Jingle (XEP-0166) session negotiation core

Stanza model and validation (stanza.py), contents (content.py), XML codec
(codec.py), per-session state machine (session.py) and the session manager
that ties them to a signaling transport (manager.py, transport.py).
"""

from .constants import (
    JINGLE_NS,
    Action,
    Creator,
    Senders,
    SessionState,
    ContentState,
    ReasonCondition,
    SessionInfoType,
)
from .content import Content
from .stanza import JingleStanza, Reason, SessionInfo, validate, new_sid
from .codec import encode, decode, encode_string, decode_string, error_element
from .session import JingleSession
from .events import EventType, SessionEvent
from .manager import SessionManager
from .transport import Transport, SlixmppTransport
from .config import JingleSettings, load_settings
from .exceptions import (
    JingleError,
    ValidationError,
    DecodeError,
    UnknownAction,
    StateError,
    DuplicateContent,
    UnknownContent,
    CreatorMismatch,
    DuplicateInitiate,
    ActionAfterTerminate,
    OutOfOrder,
    UnknownSession,
    PeerMismatch,
    UnsupportedInfo,
    TransportError,
)

__version__ = "0.1.0"
__all__ = [
    "JINGLE_NS",
    "Action",
    "Creator",
    "Senders",
    "SessionState",
    "ContentState",
    "ReasonCondition",
    "SessionInfoType",
    "Content",
    "JingleStanza",
    "Reason",
    "SessionInfo",
    "validate",
    "new_sid",
    "encode",
    "decode",
    "encode_string",
    "decode_string",
    "error_element",
    "JingleSession",
    "EventType",
    "SessionEvent",
    "SessionManager",
    "Transport",
    "SlixmppTransport",
    "JingleSettings",
    "load_settings",
    "JingleError",
    "ValidationError",
    "DecodeError",
    "UnknownAction",
    "StateError",
    "DuplicateContent",
    "UnknownContent",
    "CreatorMismatch",
    "DuplicateInitiate",
    "ActionAfterTerminate",
    "OutOfOrder",
    "UnknownSession",
    "PeerMismatch",
    "UnsupportedInfo",
    "TransportError",
]
