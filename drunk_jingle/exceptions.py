"""
Jingle error taxonomy.

Every error knows the XMPP stanza error condition (RFC 6120) and, where
XEP-0166 defines one, the Jingle-specific condition, so that the dispatcher
can turn any rejected stanza into a peer-facing IQ error.
"""

from typing import Optional


class JingleError(Exception):
    """Base class for all errors raised by drunk_jingle."""

    condition = 'undefined-condition'
    error_type = 'cancel'
    jingle_condition: Optional[str] = None

    def __init__(self, message: str, sid: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.sid = sid


class ValidationError(JingleError):
    """A field required by the stanza's action is missing or malformed."""

    condition = 'bad-request'
    error_type = 'modify'

    def __init__(self, message: str, action=None, field: Optional[str] = None,
                 sid: Optional[str] = None):
        super().__init__(message, sid=sid)
        self.action = action
        self.field = field


class DecodeError(JingleError):
    """The XML could not be turned into a Jingle stanza."""

    condition = 'bad-request'
    error_type = 'modify'


class UnknownAction(DecodeError):
    """The action attribute is absent or outside the closed Action set."""

    def __init__(self, action: Optional[str], sid: Optional[str] = None):
        if action is None:
            message = "Jingle element has no action attribute"
        else:
            message = f"Unknown Jingle action: {action!r}"
        super().__init__(message, sid=sid)
        self.action = action


class StateError(JingleError):
    """The stanza is not legal for the session's current state."""


class DuplicateContent(StateError):
    condition = 'conflict'

    def __init__(self, key, sid: Optional[str] = None):
        creator, name = key
        super().__init__(f"Content {name!r} (creator={creator.value}) already exists",
                         sid=sid)
        self.key = key


class UnknownContent(StateError):
    condition = 'item-not-found'

    def __init__(self, key, sid: Optional[str] = None):
        creator, name = key
        super().__init__(f"No content {name!r} (creator={creator.value}) in session",
                         sid=sid)
        self.key = key


class CreatorMismatch(StateError):
    condition = 'bad-request'
    error_type = 'modify'

    def __init__(self, key, stored_creator, sid: Optional[str] = None):
        creator, name = key
        super().__init__(
            f"Content {name!r} was created by {stored_creator.value}, "
            f"not {creator.value}", sid=sid)
        self.key = key
        self.stored_creator = stored_creator


class DuplicateInitiate(StateError):
    condition = 'conflict'
    jingle_condition = 'tie-break'


class ActionAfterTerminate(StateError):
    condition = 'item-not-found'
    jingle_condition = 'unknown-session'


class OutOfOrder(StateError):
    condition = 'unexpected-request'
    error_type = 'wait'
    jingle_condition = 'out-of-order'


class UnknownSession(StateError):
    condition = 'item-not-found'
    jingle_condition = 'unknown-session'


class PeerMismatch(StateError):
    """Known sid, but the stanza belongs to a different pair of parties."""

    condition = 'item-not-found'
    jingle_condition = 'unknown-session'


class UnsupportedInfo(JingleError):
    """session-info payload the receiver does not understand (XEP-0166 section 7.2.15)."""

    condition = 'feature-not-implemented'
    error_type = 'modify'
    jingle_condition = 'unsupported-info'


class TransportError(JingleError):
    """The signaling transport failed to deliver a stanza. Never retried here."""

    condition = 'remote-server-timeout'
    error_type = 'wait'
