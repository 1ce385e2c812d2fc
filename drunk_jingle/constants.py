"""
Jingle protocol constants and enums.

Centralized place for namespaces and the closed value sets of XEP-0166 so
that no raw action/creator/senders strings float around the code.
"""

from enum import Enum


# XEP-0166 base namespace and element
JINGLE_NS = 'urn:xmpp:jingle:1'
JINGLE_ELEMENT = 'jingle'
JINGLE_TAG = f'{{{JINGLE_NS}}}{JINGLE_ELEMENT}'
CONTENT_TAG = f'{{{JINGLE_NS}}}content'
REASON_TAG = f'{{{JINGLE_NS}}}reason'
REASON_TEXT_TAG = f'{{{JINGLE_NS}}}text'

# XEP-0166 section 10: Jingle-specific error conditions
JINGLE_ERRORS_NS = 'urn:xmpp:jingle:errors:1'

# XEP-0167 informational messages (ringing, hold, mute...)
RTP_INFO_NS = 'urn:xmpp:jingle:apps:rtp:info:1'

# Namespaces whose children of <jingle/> are informational payloads
DEFAULT_SESSION_INFO_NAMESPACES = frozenset({RTP_INFO_NS})

# RFC 6120 stanza errors, used for IQ error replies
STANZA_ERROR_NS = 'urn:ietf:params:xml:ns:xmpp-stanzas'

DEFAULT_DISPOSITION = 'session'


class Action(str, Enum):
    """
    Jingle action attribute values (XEP-0166 section 7.2).

    The set is closed: anything else on the wire is a decode error.
    """
    CONTENT_ACCEPT = 'content-accept'
    CONTENT_ADD = 'content-add'
    CONTENT_MODIFY = 'content-modify'
    CONTENT_REJECT = 'content-reject'
    CONTENT_REMOVE = 'content-remove'
    DESCRIPTION_INFO = 'description-info'
    SECURITY_INFO = 'security-info'
    SESSION_ACCEPT = 'session-accept'
    SESSION_INFO = 'session-info'
    SESSION_INITIATE = 'session-initiate'
    SESSION_TERMINATE = 'session-terminate'
    TRANSPORT_ACCEPT = 'transport-accept'
    TRANSPORT_INFO = 'transport-info'
    TRANSPORT_REJECT = 'transport-reject'
    TRANSPORT_REPLACE = 'transport-replace'

    @classmethod
    def normalize(cls, value):
        """
        Map a wire value to an Action.

        Returns None for unknown values (and for None), leaving it to the
        caller to decide whether that is an error.

        Examples:
            >>> Action.normalize("session-initiate")
            <Action.SESSION_INITIATE: 'session-initiate'>
            >>> Action.normalize("session-dance") is None
            True
        """
        if value is None:
            return None
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip())
        except ValueError:
            return None


TRANSPORT_ACTIONS = frozenset({
    Action.TRANSPORT_ACCEPT,
    Action.TRANSPORT_INFO,
    Action.TRANSPORT_REJECT,
    Action.TRANSPORT_REPLACE,
})


class Creator(str, Enum):
    """Party that introduced a content; also used for a session's local role."""
    INITIATOR = 'initiator'
    RESPONDER = 'responder'

    @property
    def other(self):
        """The opposite party."""
        if self is Creator.INITIATOR:
            return Creator.RESPONDER
        return Creator.INITIATOR


class Senders(str, Enum):
    """Which parties may send media for a content."""
    INITIATOR = 'initiator'
    RESPONDER = 'responder'
    BOTH = 'both'
    NONE = 'none'


class SessionState(str, Enum):
    """States in which a Jingle session may be."""
    PENDING = 'pending'
    ACTIVE = 'active'
    TERMINATED = 'terminated'


class ContentState(str, Enum):
    """Negotiation state of a single content inside a session."""
    PENDING = 'pending'
    ACCEPTED = 'accepted'
    REJECTED = 'rejected'


class ReasonCondition(str, Enum):
    """
    <reason/> conditions (XEP-0166 section 7.4).

    Unknown conditions received from peers map to GENERAL_ERROR.
    """
    ALTERNATIVE_SESSION = 'alternative-session'
    BUSY = 'busy'
    CANCEL = 'cancel'
    CONNECTIVITY_ERROR = 'connectivity-error'
    DECLINE = 'decline'
    EXPIRED = 'expired'
    FAILED_APPLICATION = 'failed-application'
    FAILED_TRANSPORT = 'failed-transport'
    GENERAL_ERROR = 'general-error'
    GONE = 'gone'
    INCOMPATIBLE_PARAMETERS = 'incompatible-parameters'
    MEDIA_ERROR = 'media-error'
    SECURITY_ERROR = 'security-error'
    SUCCESS = 'success'
    TIMEOUT = 'timeout'
    UNSUPPORTED_APPLICATIONS = 'unsupported-applications'
    UNSUPPORTED_TRANSPORTS = 'unsupported-transports'

    @classmethod
    def normalize(cls, value):
        """Return the matching condition or None for unknown values."""
        if value is None:
            return None
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


class SessionInfoType(str, Enum):
    """XEP-0167 section 7 informational payloads."""
    ACTIVE = 'active'
    HOLD = 'hold'
    UNHOLD = 'unhold'
    MUTE = 'mute'
    UNMUTE = 'unmute'
    RINGING = 'ringing'
