"""
JingleSession - per-sid negotiation state machine.

Tracks one session's lifecycle (pending -> active -> terminated) and its
content map keyed by (creator, name). Every stanza, inbound or outbound,
goes through `apply()`, which first checks that the action is legal in the
current state and that every referenced content exists, and only then
mutates anything. A rejected stanza leaves the session exactly as it was.
"""

import logging
from typing import Callable, Dict, List, Optional

from .constants import Action, ContentState, Creator, SessionState, TRANSPORT_ACTIONS
from .content import Content, ContentKey
from .exceptions import (
    ActionAfterTerminate,
    CreatorMismatch,
    DuplicateContent,
    DuplicateInitiate,
    OutOfOrder,
    PeerMismatch,
    UnknownContent,
)
from .stanza import JingleStanza, Reason, SessionInfo


# Actions legal while waiting for session-accept (besides accept/terminate)
EARLY_ACTIONS = frozenset({Action.SESSION_INFO, Action.TRANSPORT_INFO})


class JingleSession:
    """
    One Jingle negotiation between the local party and a single peer.

    Attributes:
        sid: Session id
        local_role: Whether we initiated the session or are responding to it
        local_jid: Our full JID
        peer_jid: Full JID of the other party
        initiator: Full JID of the initiator, as announced in session-initiate
        responder: Full JID of the responder, known once set
        state: Current SessionState
        contents: Negotiated contents keyed by (creator, name)
        content_states: Per-content negotiation state, same keys as contents
        reason: Termination reason, once terminated
        session_info: Most recent informational payload
    """

    def __init__(self, sid: str, local_role, local_jid: str, peer_jid: str,
                 initiator: str, responder: Optional[str] = None,
                 allow_early_info: bool = True,
                 logger: Optional[logging.Logger] = None):
        self.sid = sid
        self.local_role = Creator(local_role)
        self.local_jid = local_jid
        self.peer_jid = peer_jid
        self.initiator = initiator
        self.responder = responder
        self.allow_early_info = allow_early_info
        self.logger = logger or logging.getLogger(__name__)

        self.state = SessionState.PENDING
        self.contents: Dict[ContentKey, Content] = {}
        self.content_states: Dict[ContentKey, ContentState] = {}
        self.reason: Optional[Reason] = None
        self.session_info: Optional[SessionInfo] = None

        # action -> handler(stanza, contents, content_states, outbound)
        self._handlers: Dict[Action, Callable] = {
            Action.SESSION_ACCEPT: self._on_session_accept,
            Action.SESSION_TERMINATE: self._on_session_terminate,
            Action.SESSION_INFO: self._on_session_info,
            Action.CONTENT_ADD: self._on_content_add,
            Action.CONTENT_MODIFY: self._on_content_modify,
            Action.CONTENT_ACCEPT: self._on_content_accept,
            Action.CONTENT_REJECT: self._on_content_reject,
            Action.CONTENT_REMOVE: self._on_content_remove,
            Action.DESCRIPTION_INFO: self._on_description_info,
            Action.SECURITY_INFO: self._on_security_info,
        }
        for action in TRANSPORT_ACTIONS:
            self._handlers[action] = self._on_transport

    @classmethod
    def from_initiate(cls, stanza: JingleStanza, local_jid: str, peer_jid: str,
                      outbound: bool, allow_early_info: bool = True,
                      logger: Optional[logging.Logger] = None) -> 'JingleSession':
        """
        Create a session from a (validated) session-initiate.

        Args:
            stanza: The session-initiate stanza
            local_jid: Our full JID
            peer_jid: The other party's full JID
            outbound: True if we are sending the initiate, False if receiving it
            allow_early_info: Accept session-info/transport-info before session-accept
            logger: Logger instance (optional)

        Returns:
            New session in PENDING state

        Raises:
            OutOfOrder: stanza is not a session-initiate
            DuplicateContent: the initiate lists a (creator, name) twice
        """
        if stanza.action != Action.SESSION_INITIATE:
            raise OutOfOrder(f"Cannot open session {stanza.sid} with {stanza.action.value}",
                             sid=stanza.sid)

        session = cls(stanza.sid,
                      Creator.INITIATOR if outbound else Creator.RESPONDER,
                      local_jid, peer_jid,
                      initiator=stanza.initiator,
                      responder=stanza.responder,
                      allow_early_info=allow_early_info,
                      logger=logger)

        contents: Dict[ContentKey, Content] = {}
        for content in stanza.contents:
            if content.key in contents:
                raise DuplicateContent(content.key, sid=stanza.sid)
            contents[content.key] = content.copy()
        session.contents = contents
        session.content_states = {key: ContentState.PENDING for key in contents}

        session.logger.info(f"Session {session.sid} created ({session.local_role.value}, "
                            f"peer={peer_jid}, {len(contents)} content(s))")
        return session

    # ============================================================================
    # State queries
    # ============================================================================

    @property
    def is_active(self) -> bool:
        return self.state == SessionState.ACTIVE

    @property
    def is_terminated(self) -> bool:
        return self.state == SessionState.TERMINATED

    def get_content(self, creator, name: str) -> Optional[Content]:
        """Return the stored content for (creator, name), or None."""
        return self.contents.get((Creator(creator), name))

    def sender_role(self, outbound: bool) -> Creator:
        """Role of the party sending a stanza in the given direction."""
        return self.local_role if outbound else self.local_role.other

    # ============================================================================
    # Applying stanzas
    # ============================================================================

    def apply(self, stanza: JingleStanza, outbound: bool = False):
        """
        Apply a validated stanza to the session.

        Args:
            stanza: Stanza for this session's sid
            outbound: True if we are sending it, False if it was received

        Raises:
            ActionAfterTerminate: session already terminated
            DuplicateInitiate: session-initiate for a live session
            OutOfOrder: action not legal in the current state
            PeerMismatch: stanza names a different initiator
            DuplicateContent, UnknownContent, CreatorMismatch: content map violations
        """
        action = stanza.action
        direction = 'out' if outbound else 'in'

        if self.state == SessionState.TERMINATED:
            raise ActionAfterTerminate(
                f"Session {self.sid} is terminated, rejecting {action.value}", sid=self.sid)
        if action == Action.SESSION_INITIATE:
            raise DuplicateInitiate(
                f"Session {self.sid} already exists ({self.state.value})", sid=self.sid)
        if stanza.initiator and stanza.initiator != self.initiator:
            raise PeerMismatch(
                f"Session {self.sid} was initiated by {self.initiator}, "
                f"not {stanza.initiator}", sid=self.sid)
        self._check_state(action)

        # Work on copies, commit only if every check passed
        contents = dict(self.contents)
        content_states = dict(self.content_states)
        self._handlers[action](stanza, contents, content_states, outbound)
        self.contents = contents
        self.content_states = content_states

        self.logger.debug(f"Session {self.sid} applied {action.value} ({direction}), "
                          f"state={self.state.value}, contents={len(self.contents)}")

    def terminate_locally(self, reason: Optional[Reason] = None):
        """Mark the session terminated without any stanza (e.g. connection loss)."""
        if self.state == SessionState.TERMINATED:
            return
        self.state = SessionState.TERMINATED
        self.reason = reason
        self.logger.info(f"Session {self.sid} terminated locally "
                         f"({reason.condition.value if reason else 'no reason'})")

    def _check_state(self, action: Action):
        if self.state == SessionState.PENDING:
            allowed = action in (Action.SESSION_ACCEPT, Action.SESSION_TERMINATE)
            if not allowed and self.allow_early_info:
                allowed = action in EARLY_ACTIONS
        else:
            allowed = action != Action.SESSION_ACCEPT
        if not allowed:
            raise OutOfOrder(f"{action.value} not allowed in {self.state.value} "
                             f"session {self.sid}", sid=self.sid)

    def _existing(self, contents: Dict[ContentKey, Content], content: Content) -> Content:
        """Stored content for `content.key`, or UnknownContent."""
        stored = contents.get(content.key)
        if stored is None:
            raise UnknownContent(content.key, sid=self.sid)
        return stored

    # ============================================================================
    # Session-level actions
    # ============================================================================

    def _on_session_accept(self, stanza: JingleStanza, contents, content_states, outbound):
        if self.sender_role(outbound) != Creator.RESPONDER:
            raise OutOfOrder(f"session-accept for {self.sid} must come from the responder",
                             sid=self.sid)
        for content in stanza.contents:
            self._existing(contents, content)
        for content in stanza.contents:
            contents[content.key] = content.copy()
        for key in contents:
            content_states[key] = ContentState.ACCEPTED

        self.responder = stanza.responder
        self.state = SessionState.ACTIVE
        self.logger.info(f"Session {self.sid} active (responder={self.responder})")

    def _on_session_terminate(self, stanza: JingleStanza, contents, content_states, outbound):
        self.state = SessionState.TERMINATED
        self.reason = stanza.reason
        condition = stanza.reason.condition.value if stanza.reason else 'no reason'
        self.logger.info(f"Session {self.sid} terminated by "
                         f"{'us' if outbound else 'peer'} ({condition})")

    def _on_session_info(self, stanza: JingleStanza, contents, content_states, outbound):
        self.session_info = stanza.session_info

    # ============================================================================
    # Content actions
    # ============================================================================

    def _on_content_add(self, stanza: JingleStanza, contents, content_states, outbound):
        for content in stanza.contents:
            if content.key in contents:
                raise DuplicateContent(content.key, sid=self.sid)
            contents[content.key] = content.copy()
            content_states[content.key] = ContentState.PENDING

    def _on_content_modify(self, stanza: JingleStanza, contents, content_states, outbound):
        updated: List[Content] = []
        for content in stanza.contents:
            stored = contents.get(content.key)
            if stored is None:
                other = (content.creator.other, content.name)
                if other in contents:
                    raise CreatorMismatch(content.key, content.creator.other, sid=self.sid)
                raise UnknownContent(content.key, sid=self.sid)
            # No sub-elements means "change attributes only"
            sub_elements = content.sub_elements or None
            updated.append(stored.evolve(disposition=content.disposition,
                                         senders=content.senders,
                                         sub_elements=sub_elements))
        for content in updated:
            contents[content.key] = content

    def _on_content_accept(self, stanza: JingleStanza, contents, content_states, outbound):
        self._set_content_states(stanza, contents, content_states, ContentState.ACCEPTED)

    def _on_content_reject(self, stanza: JingleStanza, contents, content_states, outbound):
        self._set_content_states(stanza, contents, content_states, ContentState.REJECTED)

    def _set_content_states(self, stanza, contents, content_states, state: ContentState):
        for content in stanza.contents:
            self._existing(contents, content)
        for content in stanza.contents:
            content_states[content.key] = state

    def _on_content_remove(self, stanza: JingleStanza, contents, content_states, outbound):
        for content in stanza.contents:
            self._existing(contents, content)
            del contents[content.key]
            content_states.pop(content.key, None)

    # ============================================================================
    # Sub-element replacement (transport / description / security)
    # ============================================================================

    def _replace_sub_element(self, stanza: JingleStanza, contents, kind: str):
        updated: List[Content] = []
        for content in stanza.contents:
            stored = self._existing(contents, content)
            node = content.find_sub_element(kind)
            if node is not None:
                updated.append(stored.with_sub_element(node))
        for content in updated:
            contents[content.key] = content

    def _on_transport(self, stanza: JingleStanza, contents, content_states, outbound):
        self._replace_sub_element(stanza, contents, 'transport')

    def _on_description_info(self, stanza: JingleStanza, contents, content_states, outbound):
        self._replace_sub_element(stanza, contents, 'description')

    def _on_security_info(self, stanza: JingleStanza, contents, content_states, outbound):
        self._replace_sub_element(stanza, contents, 'security')

    def __repr__(self):
        return (f"<JingleSession {self.sid} {self.state.value} "
                f"role={self.local_role.value} peer={self.peer_jid} "
                f"contents={list(self.contents)!r}>")
