"""
SessionManager - Jingle session registry and dispatcher.

Owns every JingleSession of one local party, keyed by sid. Inbound XML goes
through `receive()`, which never raises: it returns the rejection (or None)
so the transport can answer the peer. Outbound operations build a stanza,
validate it, apply it to the session and hand the encoded XML to the
transport; those raise to their caller.
"""

import logging
from collections import OrderedDict
from typing import Callable, Dict, Iterable, Optional

from .codec import decode_string, encode_string
from .config import JingleSettings
from .constants import Action, Creator, ReasonCondition, RTP_INFO_NS, TRANSPORT_ACTIONS
from .content import Content
from .events import EventType, SessionEvent
from .exceptions import (
    ActionAfterTerminate,
    DuplicateInitiate,
    JingleError,
    PeerMismatch,
    UnknownContent,
    UnknownSession,
    UnsupportedInfo,
)
from .session import JingleSession
from .stanza import JingleStanza, Reason, SessionInfo, new_sid, validate
from .transport import Transport


class SessionManager:
    """
    Jingle sessions of one local party.

    Responsibilities:
    - Create sessions for outgoing and incoming session-initiate
    - Route every later stanza to its session by sid, checking the peer
    - Run validation and the state machine on both directions
    - Report applied changes through on_session_event(sid, event)
    - Keep recently terminated sessions so late stanzas get a proper error
    """

    def __init__(self, transport: Transport, local_jid: str,
                 settings: Optional[JingleSettings] = None,
                 on_session_event: Optional[Callable] = None,
                 logger: Optional[logging.Logger] = None):
        """
        Initialize session manager.

        Args:
            transport: Signaling transport used to send stanzas
            local_jid: Our full JID
            settings: JingleSettings (defaults if omitted)
            on_session_event: Callback for session events (sid, event)
            logger: Logger instance (optional)
        """
        self.transport = transport
        self.local_jid = local_jid
        self.settings = settings or JingleSettings()
        self.on_session_event = on_session_event
        self.logger = logger or logging.getLogger(__name__)

        self.sessions: Dict[str, JingleSession] = {}
        self.archived: 'OrderedDict[str, JingleSession]' = OrderedDict()

        self.transport.attach(self)
        self.logger.info(f"SessionManager initialized for {local_jid}")

    # ============================================================================
    # Lookups
    # ============================================================================

    def get_session(self, sid: str) -> Optional[JingleSession]:
        """Return the live or archived session with this sid, or None."""
        return self.sessions.get(sid) or self.archived.get(sid)

    def _live_session(self, sid: str) -> JingleSession:
        session = self.sessions.get(sid)
        if session is not None:
            return session
        if sid in self.archived:
            raise ActionAfterTerminate(f"Session {sid} is terminated", sid=sid)
        raise UnknownSession(f"No session {sid}", sid=sid)

    def _generate_sid(self) -> str:
        while True:
            sid = new_sid(self.settings.sid_length)
            if sid not in self.sessions and sid not in self.archived:
                return sid

    # ============================================================================
    # Public API - outbound
    # ============================================================================

    def open_session(self, peer: str, contents: Iterable[Content],
                     sid: Optional[str] = None) -> str:
        """
        Start a session with `peer` by sending session-initiate.

        Args:
            peer: Full JID of the peer
            contents: Contents to offer (creator normally 'initiator')
            sid: Session id to use (generated if omitted)

        Returns:
            The session id

        Raises:
            ValidationError, DuplicateInitiate, ActionAfterTerminate, DuplicateContent,
            TransportError
        """
        sid = sid or self._generate_sid()
        stanza = JingleStanza(Action.SESSION_INITIATE, sid,
                              initiator=self.local_jid,
                              contents=list(contents))
        validate(stanza, self.settings.require_full_jids,
                 self.settings.session_info_namespaces)
        self._check_new_sid(sid)

        session = JingleSession.from_initiate(stanza, self.local_jid, peer, outbound=True,
                                              allow_early_info=self.settings.allow_early_info)
        self.sessions[sid] = session
        self.logger.info(f"Opening session {sid} with {peer}")
        self._transmit(session, stanza)
        return sid

    def accept(self, sid: str, contents: Optional[Iterable[Content]] = None):
        """
        Accept an incoming session.

        Args:
            sid: Session id
            contents: Accepted contents (with our description/transport); defaults
                to every content currently in the session
        """
        session = self._live_session(sid)
        if contents is None:
            contents = [content.copy() for content in session.contents.values()]
        stanza = JingleStanza(Action.SESSION_ACCEPT, sid,
                              initiator=session.initiator,
                              responder=self.local_jid,
                              contents=list(contents))
        self._send(session, stanza)

    def terminate(self, sid: str, reason=None):
        """
        End a session.

        Args:
            sid: Session id
            reason: Reason, ReasonCondition or condition string (default 'success')
        """
        session = self._live_session(sid)
        stanza = JingleStanza(Action.SESSION_TERMINATE, sid,
                              reason=self._make_reason(reason))
        self._send(session, stanza)

    def add_content(self, sid: str, content: Content):
        """Propose an additional content (content-add)."""
        session = self._live_session(sid)
        self._send(session, JingleStanza(Action.CONTENT_ADD, sid, contents=[content]))

    def modify_content(self, sid: str, content: Content):
        """Change senders/disposition (or sub-elements) of a content (content-modify)."""
        session = self._live_session(sid)
        self._send(session, JingleStanza(Action.CONTENT_MODIFY, sid, contents=[content]))

    def remove_content(self, sid: str, creator, name: str, reason=None):
        """Remove a content from the session (content-remove)."""
        self._send_content_reference(Action.CONTENT_REMOVE, sid, creator, name, reason)

    def accept_content(self, sid: str, creator, name: str):
        """Accept a content proposed by the peer (content-accept)."""
        self._send_content_reference(Action.CONTENT_ACCEPT, sid, creator, name)

    def reject_content(self, sid: str, creator, name: str, reason=None):
        """Reject a content proposed by the peer (content-reject)."""
        self._send_content_reference(Action.CONTENT_REJECT, sid, creator, name, reason)

    def send_transport_info(self, sid: str, content: Content, action=Action.TRANSPORT_INFO):
        """
        Send transport information for a content.

        Args:
            sid: Session id
            content: Content carrying the transport sub-element (e.g. ICE candidates)
            action: One of the transport-* actions (default transport-info)
        """
        action = Action(action)
        if action not in TRANSPORT_ACTIONS:
            raise ValueError(f"{action.value} is not a transport action")
        session = self._live_session(sid)
        self._send(session, JingleStanza(action, sid, contents=[content]))

    def send_session_info(self, sid: str, info: SessionInfo):
        """Send an informational payload (ringing, hold, mute...)."""
        session = self._live_session(sid)
        self._send(session, JingleStanza(Action.SESSION_INFO, sid, session_info=info))

    def connection_lost(self):
        """Terminate every live session locally after the signaling channel dropped."""
        reason = Reason(ReasonCondition.CONNECTIVITY_ERROR)
        for sid, session in list(self.sessions.items()):
            session.terminate_locally(reason)
            self._archive(session)
            self._emit(SessionEvent(EventType.CONNECTION_LOST, sid, outbound=False,
                                    peer_jid=session.peer_jid, reason=reason))
        self.logger.info("Signaling connection lost, all sessions terminated")

    # ============================================================================
    # Inbound
    # ============================================================================

    def receive(self, raw_xml, sender: str) -> Optional[JingleError]:
        """
        Process one inbound <jingle/> element.

        Args:
            raw_xml: Serialized <jingle/> element
            sender: Full JID the stanza came from

        Returns:
            None if the stanza was applied, otherwise the JingleError explaining
            the rejection (to be turned into an IQ error by the transport)
        """
        try:
            stanza = decode_string(raw_xml, self.settings.session_info_namespaces)
            self.handle_stanza(stanza, sender)
        except JingleError as e:
            self.logger.warning(f"Rejected Jingle stanza from {sender} "
                                f"(sid={e.sid}): {type(e).__name__}: {e}")
            return e
        return None

    def handle_stanza(self, stanza: JingleStanza, sender: str):
        """
        Apply a decoded inbound stanza.

        Raises:
            JingleError: any validation or state violation
        """
        self.logger.debug(f"Jingle stanza from {sender}: {stanza.action.value} sid={stanza.sid}")
        validate(stanza, self.settings.require_full_jids,
                 self.settings.session_info_namespaces)

        if stanza.action == Action.SESSION_INITIATE:
            self._check_new_sid(stanza.sid)
            session = JingleSession.from_initiate(stanza, self.local_jid, sender,
                                                  outbound=False,
                                                  allow_early_info=self.settings.allow_early_info)
            self.sessions[stanza.sid] = session
            self.logger.info(f"Incoming session {stanza.sid} from {sender}")
        else:
            session = self._live_session(stanza.sid)
            if sender != session.peer_jid:
                raise PeerMismatch(f"Session {stanza.sid} belongs to {session.peer_jid}, "
                                   f"not {sender}", sid=stanza.sid)
            if stanza.action == Action.SESSION_INFO:
                self._check_session_info(stanza)
            session.apply(stanza, outbound=False)
            if session.is_terminated:
                self._archive(session)

        self._emit(SessionEvent.from_stanza(stanza, outbound=False, peer_jid=sender))

    # ============================================================================
    # Internals
    # ============================================================================

    def _check_new_sid(self, sid: str):
        if sid in self.sessions:
            raise DuplicateInitiate(f"Session {sid} already exists", sid=sid)
        if sid in self.archived:
            raise ActionAfterTerminate(f"Session {sid} is terminated", sid=sid)

    def _check_session_info(self, stanza: JingleStanza):
        info = stanza.session_info
        if info.namespace == RTP_INFO_NS:
            understood = info.info_type is not None
        else:
            understood = info.namespace in self.settings.session_info_namespaces
        if not understood:
            raise UnsupportedInfo(f"Unsupported session-info payload {info.tag}",
                                  sid=stanza.sid)

    def _send_content_reference(self, action: Action, sid: str, creator, name: str,
                                reason=None):
        session = self._live_session(sid)
        key = (Creator(creator), name)
        if key not in session.contents:
            raise UnknownContent(key, sid=sid)
        stanza = JingleStanza(action, sid, contents=[Content(key[0], name)])
        if reason is not None:
            stanza.reason = self._make_reason(reason)
        self._send(session, stanza)

    def _send(self, session: JingleSession, stanza: JingleStanza):
        """Validate, apply and transmit an outbound stanza for an existing session."""
        validate(stanza, self.settings.require_full_jids,
                 self.settings.session_info_namespaces)
        session.apply(stanza, outbound=True)
        if session.is_terminated:
            self._archive(session)
        self._transmit(session, stanza)

    def _transmit(self, session: JingleSession, stanza: JingleStanza):
        raw_xml = encode_string(stanza)
        self.logger.debug(f"Sending {stanza.action.value} sid={stanza.sid} to {session.peer_jid}")
        self.transport.send(raw_xml, session.peer_jid)
        self._emit(SessionEvent.from_stanza(stanza, outbound=True, peer_jid=session.peer_jid))

    def _archive(self, session: JingleSession):
        self.sessions.pop(session.sid, None)
        self.archived[session.sid] = session
        while len(self.archived) > self.settings.max_archived_sessions:
            self.archived.popitem(last=False)

    @staticmethod
    def _make_reason(reason) -> Reason:
        if reason is None:
            return Reason(ReasonCondition.SUCCESS)
        if isinstance(reason, Reason):
            return reason
        return Reason(reason)

    def _emit(self, event: SessionEvent):
        if not self.on_session_event:
            return
        try:
            self.on_session_event(event.sid, event)
        except Exception as e:
            self.logger.error(f"Error in session event callback for {event.sid}: {e}",
                              exc_info=True)
