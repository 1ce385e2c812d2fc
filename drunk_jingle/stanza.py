"""
Jingle stanza model and field-presence validation.

A JingleStanza is the content of one <jingle/> element (XEP-0166 section
7.1). Building one never fails because of a missing field: outbound stanzas
are often assembled in steps. Whether the stanza is a legal protocol message
is decided separately by `validate()`, driven by the REQUIREMENTS table.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from slixmpp.jid import JID, InvalidJID
from slixmpp.xmlstream import ET

from .constants import (
    Action,
    ReasonCondition,
    SessionInfoType,
    RTP_INFO_NS,
    JINGLE_NS,
    CONTENT_TAG,
    REASON_TAG,
    DEFAULT_SESSION_INFO_NAMESPACES,
)
from .content import Content
from .exceptions import ValidationError
from .utils.xml_utils import element_lists_equal, namespace_of

logger = logging.getLogger(__name__)


def new_sid(length: Optional[int] = None) -> str:
    """
    Generate a fresh session id.

    Args:
        length: Optional length to truncate the random hex id to

    Returns:
        Random session identifier
    """
    sid = uuid.uuid4().hex
    if length:
        sid = sid[:length]
    return sid


@dataclass
class Reason:
    """<reason/> of a session-terminate (or content/transport rejection)."""
    condition: ReasonCondition = ReasonCondition.SUCCESS
    text: Optional[str] = None

    def __post_init__(self):
        self.condition = ReasonCondition(self.condition)
        # <text/> with no character data reads back as None
        if self.text == '':
            self.text = None


class SessionInfo:
    """
    Informational payload of a session-info action.

    Kept as a thin wrapper around one foreign element: its name, namespace,
    attributes and opaque children. XEP-0167 payloads (ringing, hold,
    mute...) are recognised through `info_type`; anything else is carried
    as-is.
    """

    def __init__(self, name: str, namespace: str = RTP_INFO_NS,
                 attributes: Optional[Dict[str, str]] = None,
                 children: Optional[List[ET.Element]] = None):
        if not name:
            raise ValueError("Session info element name is required")
        self.name = str(name)
        self.namespace = namespace
        self.attributes = dict(attributes or {})
        self.children = list(children or [])

    @classmethod
    def rtp(cls, info_type, **attributes) -> 'SessionInfo':
        """
        Build an XEP-0167 informational payload.

        Examples:
            >>> SessionInfo.rtp(SessionInfoType.RINGING).name
            'ringing'
            >>> SessionInfo.rtp('mute', creator='initiator', name='voice').attributes['name']
            'voice'
        """
        return cls(SessionInfoType(info_type).value, RTP_INFO_NS, attributes)

    @property
    def tag(self) -> str:
        if self.namespace:
            return f'{{{self.namespace}}}{self.name}'
        return self.name

    @property
    def info_type(self) -> Optional[SessionInfoType]:
        """The XEP-0167 payload type, or None for foreign payloads."""
        if self.namespace != RTP_INFO_NS:
            return None
        try:
            return SessionInfoType(self.name)
        except ValueError:
            return None

    def __eq__(self, other):
        if not isinstance(other, SessionInfo):
            return NotImplemented
        return (self.tag == other.tag
                and self.attributes == other.attributes
                and element_lists_equal(self.children, other.children))

    __hash__ = None

    def __repr__(self):
        return f"<SessionInfo {self.tag} {self.attributes!r}>"


@dataclass(eq=False)
class JingleStanza:
    """
    One Jingle negotiation message.

    Attributes:
        action: What the message does; decides which other fields matter
        sid: Session id, generated by the initiator
        initiator: Full JID of the initiating party
        responder: Full JID of the responding party
        contents: Contents, in negotiation order
        session_info: Informational payload (session-info)
        reason: Termination/rejection reason
        extensions: Unrecognised <jingle/> children, preserved as-is
    """
    action: Action
    sid: str
    initiator: Optional[str] = None
    responder: Optional[str] = None
    contents: List[Content] = field(default_factory=list)
    session_info: Optional[SessionInfo] = None
    reason: Optional[Reason] = None
    extensions: List[ET.Element] = field(default_factory=list)

    def __post_init__(self):
        self.action = Action(self.action)
        self.contents = list(self.contents)
        self.extensions = list(self.extensions)

    def add_content(self, content: Content):
        """Append a content to the stanza."""
        self.contents.append(content)

    def content_keys(self):
        """(creator, name) keys of the contents, in order."""
        return [content.key for content in self.contents]

    def __eq__(self, other):
        if not isinstance(other, JingleStanza):
            return NotImplemented
        return (self.action == other.action
                and self.sid == other.sid
                and self.initiator == other.initiator
                and self.responder == other.responder
                and self.contents == other.contents
                and self.session_info == other.session_info
                and self.reason == other.reason
                and element_lists_equal(self.extensions, other.extensions))

    __hash__ = None

    def __repr__(self):
        return (f"<JingleStanza {self.action.value} sid={self.sid!r} "
                f"contents={self.content_keys()!r}>")


@dataclass(frozen=True)
class Requirement:
    """Fields that must be present for an action."""
    initiator: bool = False
    responder: bool = False
    contents: bool = False
    transport: bool = False
    session_info: bool = False


_CONTENTS = Requirement(contents=True)
_TRANSPORTS = Requirement(contents=True, transport=True)

REQUIREMENTS: Dict[Action, Requirement] = {
    Action.SESSION_INITIATE: Requirement(initiator=True, contents=True),
    Action.SESSION_ACCEPT: Requirement(responder=True, contents=True),
    Action.SESSION_TERMINATE: Requirement(),
    Action.SESSION_INFO: Requirement(session_info=True),
    Action.CONTENT_ADD: _CONTENTS,
    Action.CONTENT_MODIFY: _CONTENTS,
    Action.CONTENT_ACCEPT: _CONTENTS,
    Action.CONTENT_REJECT: _CONTENTS,
    Action.CONTENT_REMOVE: _CONTENTS,
    Action.TRANSPORT_INFO: _TRANSPORTS,
    Action.TRANSPORT_ACCEPT: _TRANSPORTS,
    Action.TRANSPORT_REPLACE: _TRANSPORTS,
    Action.TRANSPORT_REJECT: _TRANSPORTS,
    Action.DESCRIPTION_INFO: _CONTENTS,
    Action.SECURITY_INFO: _CONTENTS,
}


def _check_jid(stanza: JingleStanza, field_name: str, require_full: bool):
    value = getattr(stanza, field_name)
    try:
        jid = JID(value)
    except InvalidJID as e:
        raise ValidationError(f"{field_name} is not a valid JID: {value!r} ({e})",
                              action=stanza.action, field=field_name, sid=stanza.sid)
    if require_full and not jid.resource:
        raise ValidationError(f"{field_name} must be a full JID: {value!r}",
                              action=stanza.action, field=field_name, sid=stanza.sid)


def validate(stanza: JingleStanza, require_full_jids: bool = True,
             session_info_namespaces: Optional[Iterable[str]] = None):
    """
    Check that `stanza` carries every field its action requires.

    Rules are checked in a fixed order (sid, initiator, responder, contents,
    per-content transport, session info, extensions) and the first violation
    is raised.
    Nothing is fixed up.

    Args:
        stanza: The stanza to check
        require_full_jids: Whether initiator/responder must carry a resource
        session_info_namespaces: Namespaces an informational payload may use
            on actions other than session-info (default: XEP-0167 only)

    Raises:
        ValidationError: naming the violated rule
    """
    if session_info_namespaces is None:
        session_info_namespaces = DEFAULT_SESSION_INFO_NAMESPACES
    action = stanza.action
    if not stanza.sid:
        raise ValidationError(f"{action.value} requires a session id",
                              action=action, field='sid')

    requirement = REQUIREMENTS[action]

    if requirement.initiator and not stanza.initiator:
        raise ValidationError(f"{action.value} requires an initiator",
                              action=action, field='initiator', sid=stanza.sid)
    if requirement.responder and not stanza.responder:
        raise ValidationError(f"{action.value} requires a responder",
                              action=action, field='responder', sid=stanza.sid)
    for field_name in ('initiator', 'responder'):
        if getattr(stanza, field_name):
            _check_jid(stanza, field_name, require_full_jids)

    if requirement.contents and not stanza.contents:
        raise ValidationError(f"{action.value} requires at least one content",
                              action=action, field='contents', sid=stanza.sid)
    if requirement.transport:
        for content in stanza.contents:
            if content.transport is None:
                raise ValidationError(
                    f"{action.value} content {content.name!r} has no transport",
                    action=action, field='transport', sid=stanza.sid)

    if requirement.session_info and stanza.session_info is None:
        raise ValidationError(f"{action.value} requires an informational payload",
                              action=action, field='session_info', sid=stanza.sid)
    if stanza.session_info is not None and stanza.session_info.namespace == JINGLE_NS:
        raise ValidationError(
            f"{action.value} payload cannot be in the Jingle namespace",
            action=action, field='session_info', sid=stanza.sid)
    if (stanza.session_info is not None and action != Action.SESSION_INFO
            and stanza.session_info.namespace not in session_info_namespaces):
        raise ValidationError(
            f"{action.value} cannot carry a {stanza.session_info.tag} payload",
            action=action, field='session_info', sid=stanza.sid)

    # Extensions must not read back as contents, reason or payload
    for extension in stanza.extensions:
        if extension.tag == CONTENT_TAG or (extension.tag == REASON_TAG
                                            and stanza.reason is None):
            raise ValidationError(
                f"{action.value} extension {extension.tag} is a Jingle element",
                action=action, field='extensions', sid=stanza.sid)
        if (stanza.session_info is None
                and namespace_of(extension.tag) in session_info_namespaces):
            raise ValidationError(
                f"{action.value} extension {extension.tag} would be read as a payload",
                action=action, field='extensions', sid=stanza.sid)

    if stanza.session_info is not None and stanza.contents:
        logger.warning(f"Stanza {action.value} sid={stanza.sid} carries both session info "
                       f"and {len(stanza.contents)} content(s)")
