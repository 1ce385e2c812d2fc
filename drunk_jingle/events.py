"""
Session events delivered to the application's on_session_event callback.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .constants import Action
from .content import ContentKey
from .stanza import JingleStanza, Reason, SessionInfo


class EventType(str, Enum):
    """What happened to a session."""
    SESSION_INITIATED = 'session-initiated'
    SESSION_ACCEPTED = 'session-accepted'
    SESSION_TERMINATED = 'session-terminated'
    SESSION_INFO = 'session-info'
    CONTENT_ADDED = 'content-added'
    CONTENT_MODIFIED = 'content-modified'
    CONTENT_ACCEPTED = 'content-accepted'
    CONTENT_REJECTED = 'content-rejected'
    CONTENT_REMOVED = 'content-removed'
    TRANSPORT_UPDATED = 'transport-updated'
    DESCRIPTION_UPDATED = 'description-updated'
    SECURITY_UPDATED = 'security-updated'
    CONNECTION_LOST = 'connection-lost'


EVENT_FOR_ACTION = {
    Action.SESSION_INITIATE: EventType.SESSION_INITIATED,
    Action.SESSION_ACCEPT: EventType.SESSION_ACCEPTED,
    Action.SESSION_TERMINATE: EventType.SESSION_TERMINATED,
    Action.SESSION_INFO: EventType.SESSION_INFO,
    Action.CONTENT_ADD: EventType.CONTENT_ADDED,
    Action.CONTENT_MODIFY: EventType.CONTENT_MODIFIED,
    Action.CONTENT_ACCEPT: EventType.CONTENT_ACCEPTED,
    Action.CONTENT_REJECT: EventType.CONTENT_REJECTED,
    Action.CONTENT_REMOVE: EventType.CONTENT_REMOVED,
    Action.TRANSPORT_INFO: EventType.TRANSPORT_UPDATED,
    Action.TRANSPORT_ACCEPT: EventType.TRANSPORT_UPDATED,
    Action.TRANSPORT_REPLACE: EventType.TRANSPORT_UPDATED,
    Action.TRANSPORT_REJECT: EventType.TRANSPORT_UPDATED,
    Action.DESCRIPTION_INFO: EventType.DESCRIPTION_UPDATED,
    Action.SECURITY_INFO: EventType.SECURITY_UPDATED,
}


@dataclass
class SessionEvent:
    """
    A change applied to a session.

    Attributes:
        type: Kind of event
        sid: Session id
        outbound: True for changes we sent, False for changes from the peer
        action: Action that caused the event (None for local events)
        peer_jid: The other party
        content_keys: (creator, name) of the contents involved
        reason: Termination/rejection reason, if any
        session_info: Informational payload, for SESSION_INFO
        stanza: The stanza that caused the event (None for local events)
    """
    type: EventType
    sid: str
    outbound: bool
    action: Optional[Action] = None
    peer_jid: Optional[str] = None
    content_keys: List[ContentKey] = field(default_factory=list)
    reason: Optional[Reason] = None
    session_info: Optional[SessionInfo] = None
    stanza: Optional[JingleStanza] = None

    @classmethod
    def from_stanza(cls, stanza: JingleStanza, outbound: bool,
                    peer_jid: Optional[str] = None) -> 'SessionEvent':
        return cls(EVENT_FOR_ACTION[stanza.action], stanza.sid, outbound,
                   action=stanza.action,
                   peer_jid=peer_jid,
                   content_keys=stanza.content_keys(),
                   reason=stanza.reason,
                   session_info=stanza.session_info,
                   stanza=stanza)
