"""
Jingle stanza <-> XML conversion.

encode() and decode() map between JingleStanza and a <jingle/> element in
the urn:xmpp:jingle:1 namespace. Content sub-elements and unrecognised
<jingle/> children are carried opaquely in both directions, so
decode(encode(stanza)) == stanza for every valid stanza.
"""

import copy
import logging
from typing import Iterable, Optional, Union

from slixmpp.xmlstream import ET

from .constants import (
    Action,
    Creator,
    Senders,
    ReasonCondition,
    DEFAULT_DISPOSITION,
    JINGLE_NS,
    JINGLE_TAG,
    CONTENT_TAG,
    REASON_TAG,
    REASON_TEXT_TAG,
    JINGLE_ERRORS_NS,
    DEFAULT_SESSION_INFO_NAMESPACES,
    STANZA_ERROR_NS,
)
from .content import Content
from .exceptions import DecodeError, JingleError, UnknownAction
from .stanza import JingleStanza, Reason, SessionInfo
from .utils.xml_utils import local_name, namespace_of

logger = logging.getLogger(__name__)


# =============================================================================
# Encoding
# =============================================================================

def encode_content(content: Content, parent: Optional[ET.Element] = None) -> ET.Element:
    """
    Build a <content/> element.

    Args:
        content: The content to encode
        parent: Optional parent to attach the element to

    Returns:
        The <content/> element
    """
    if parent is not None:
        element = ET.SubElement(parent, CONTENT_TAG)
    else:
        element = ET.Element(CONTENT_TAG)
    element.set('creator', content.creator.value)
    if content.disposition != DEFAULT_DISPOSITION:
        element.set('disposition', content.disposition)
    element.set('name', content.name)
    element.set('senders', content.senders.value)
    for node in content.sub_elements:
        element.append(copy.deepcopy(node))
    return element


def encode_reason(reason: Reason, parent: Optional[ET.Element] = None) -> ET.Element:
    """Build a <reason/> element: condition child plus optional <text/>."""
    if parent is not None:
        element = ET.SubElement(parent, REASON_TAG)
    else:
        element = ET.Element(REASON_TAG)
    ET.SubElement(element, f'{{{JINGLE_NS}}}{reason.condition.value}')
    if reason.text:
        ET.SubElement(element, REASON_TEXT_TAG).text = reason.text
    return element


def encode_session_info(info: SessionInfo, parent: Optional[ET.Element] = None) -> ET.Element:
    """Build the informational payload element."""
    if parent is not None:
        element = ET.SubElement(parent, info.tag)
    else:
        element = ET.Element(info.tag)
    for name, value in info.attributes.items():
        element.set(name, value)
    for child in info.children:
        element.append(copy.deepcopy(child))
    return element


def encode(stanza: JingleStanza) -> ET.Element:
    """
    Build the <jingle/> element for a stanza.

    Children are written in a fixed order: contents, reason, informational
    payload, then preserved extensions.

    Args:
        stanza: Stanza to encode (validate it first for outbound use)

    Returns:
        The <jingle/> element
    """
    jingle = ET.Element(JINGLE_TAG)
    jingle.set('action', stanza.action.value)
    if stanza.initiator:
        jingle.set('initiator', stanza.initiator)
    if stanza.responder:
        jingle.set('responder', stanza.responder)
    jingle.set('sid', stanza.sid)

    for content in stanza.contents:
        encode_content(content, jingle)
    if stanza.reason is not None:
        encode_reason(stanza.reason, jingle)
    if stanza.session_info is not None:
        encode_session_info(stanza.session_info, jingle)
    for extension in stanza.extensions:
        jingle.append(copy.deepcopy(extension))
    return jingle


def encode_string(stanza: JingleStanza) -> str:
    """Serialize a stanza to XML text."""
    return ET.tostring(encode(stanza), encoding='unicode')


# =============================================================================
# Decoding
# =============================================================================

def decode_content(element: ET.Element) -> Content:
    """
    Parse a <content/> element.

    Raises:
        DecodeError: missing or invalid creator/name, invalid senders
    """
    if element.tag != CONTENT_TAG:
        raise DecodeError(f"{element.tag!r} is not a Jingle content element")

    creator = element.get('creator')
    name = element.get('name')
    if not creator:
        raise DecodeError(f"Content {name!r} has no creator")
    if not name:
        raise DecodeError("Content has no name")
    try:
        creator = Creator(creator)
    except ValueError:
        raise DecodeError(f"Content {name!r} has invalid creator {creator!r}")

    senders = element.get('senders')
    if senders is not None:
        try:
            senders = Senders(senders)
        except ValueError:
            raise DecodeError(f"Content {name!r} has invalid senders {senders!r}")

    return Content(creator, name,
                   disposition=element.get('disposition'),
                   senders=senders,
                   sub_elements=[copy.deepcopy(child) for child in element])


def decode_reason(element: ET.Element) -> Reason:
    """Parse a <reason/> element. Unknown conditions become general-error."""
    condition = None
    text = None
    for child in element:
        if child.tag == REASON_TEXT_TAG:
            text = child.text
            continue
        if condition is not None:
            logger.debug(f"Ignoring extra reason child: {child.tag}")
            continue
        condition = ReasonCondition.normalize(local_name(child.tag))
        if condition is None:
            logger.warning(f"Unknown reason condition {child.tag!r}, using general-error")
            condition = ReasonCondition.GENERAL_ERROR
    if condition is None:
        raise DecodeError("Reason element has no condition")
    return Reason(condition, text)


def decode_session_info(element: ET.Element) -> SessionInfo:
    """Wrap a foreign <jingle/> child as an informational payload."""
    return SessionInfo(local_name(element.tag),
                       namespace_of(element.tag),
                       dict(element.attrib),
                       [copy.deepcopy(child) for child in element])


def decode(element: ET.Element,
           session_info_namespaces: Optional[Iterable[str]] = None) -> JingleStanza:
    """
    Parse a <jingle/> element.

    For the session-info action the first non-Jingle child is the payload;
    for other actions only children in `session_info_namespaces` are
    treated as such. Everything unrecognised ends up in `extensions`.

    Args:
        element: The <jingle/> element
        session_info_namespaces: Namespaces of informational payloads

    Returns:
        The decoded stanza

    Raises:
        UnknownAction: action attribute missing or not a known action
        DecodeError: any other structural problem
    """
    if element.tag != JINGLE_TAG:
        raise DecodeError(f"{element.tag!r} is not a Jingle element")
    if session_info_namespaces is None:
        session_info_namespaces = DEFAULT_SESSION_INFO_NAMESPACES

    sid = element.get('sid')
    raw_action = element.get('action')
    action = Action.normalize(raw_action)
    if action is None:
        raise UnknownAction(raw_action, sid=sid)
    if not sid:
        raise DecodeError(f"{action.value} has no sid attribute")

    stanza = JingleStanza(action, sid,
                          initiator=element.get('initiator'),
                          responder=element.get('responder'))

    for child in element:
        if child.tag == CONTENT_TAG:
            stanza.contents.append(decode_content(child))
        elif child.tag == REASON_TAG and stanza.reason is None:
            stanza.reason = decode_reason(child)
        elif stanza.session_info is None and namespace_of(child.tag) != JINGLE_NS and (
                action == Action.SESSION_INFO
                or namespace_of(child.tag) in session_info_namespaces):
            stanza.session_info = decode_session_info(child)
        else:
            logger.debug(f"Preserving unrecognised Jingle child: {child.tag}")
            stanza.extensions.append(copy.deepcopy(child))

    return stanza


def decode_string(data: Union[str, bytes],
                  session_info_namespaces: Optional[Iterable[str]] = None) -> JingleStanza:
    """
    Parse XML text holding a <jingle/> element.

    Raises:
        DecodeError: not well-formed XML, or any decode() failure
    """
    try:
        element = ET.fromstring(data)
    except ET.ParseError as e:
        raise DecodeError(f"Malformed XML: {e}")
    return decode(element, session_info_namespaces)


# =============================================================================
# Errors
# =============================================================================

def jingle_condition_element(error: JingleError) -> Optional[ET.Element]:
    """The XEP-0166 section 10 condition element for `error`, if it has one."""
    if not error.jingle_condition:
        return None
    return ET.Element(f'{{{JINGLE_ERRORS_NS}}}{error.jingle_condition}')


def error_element(error: JingleError, namespace: str = 'jabber:client') -> ET.Element:
    """
    Build the <error/> child of an IQ error reply for a rejected stanza.

    Contains the RFC 6120 condition and, when defined, the XEP-0166
    Jingle-specific condition.
    """
    element = ET.Element(f'{{{namespace}}}error')
    element.set('type', error.error_type)
    ET.SubElement(element, f'{{{STANZA_ERROR_NS}}}{error.condition}')
    condition = jingle_condition_element(error)
    if condition is not None:
        element.append(condition)
    if error.message:
        ET.SubElement(element, f'{{{STANZA_ERROR_NS}}}text').text = error.message
    return element
