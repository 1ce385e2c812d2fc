"""
Signaling transports.

The session manager only needs `send(raw_xml, to)`; inbound stanzas are fed
to `SessionManager.receive()`. SlixmppTransport carries Jingle over XMPP IQs
of an existing slixmpp client (XEP-0166 section 6).
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from slixmpp.stanza import Iq
from slixmpp.xmlstream import ET
from slixmpp.xmlstream.handler import Callback
from slixmpp.xmlstream.matcher import MatchXPath

from .codec import jingle_condition_element
from .constants import JINGLE_TAG
from .exceptions import JingleError, TransportError


class Transport(ABC):
    """Outbound half of the signaling channel."""

    def attach(self, manager):
        """Called by the manager it serves; inbound-capable transports hook in here."""

    @abstractmethod
    def send(self, raw_xml: str, to: str):
        """
        Deliver one serialized <jingle/> element to `to`.

        Raises:
            TransportError: the stanza could not be handed to the channel
        """


class SlixmppTransport(Transport):
    """
    Jingle over XMPP IQ, using a connected slixmpp client.

    Outbound elements are wrapped in <iq type='set'/>. Inbound IQs carrying
    a <jingle/> child are handed to the manager; the IQ is acknowledged with
    a result, or answered with an error built from the rejection.
    """

    HANDLER_NAME = 'Jingle IQ'

    def __init__(self, xmpp_client, logger: Optional[logging.Logger] = None):
        """
        Args:
            xmpp_client: slixmpp ClientXMPP (or compatible) instance
            logger: Logger instance (optional)
        """
        self.xmpp = xmpp_client
        self.manager = None
        self.logger = logger or logging.getLogger(__name__)

    def attach(self, manager):
        """Route inbound Jingle IQs to `manager` and register the IQ handler."""
        self.manager = manager
        self.xmpp.register_handler(
            Callback(
                self.HANDLER_NAME,
                MatchXPath("{jabber:client}iq[@type='set']/{urn:xmpp:jingle:1}jingle"),
                self._handle_jingle_iq
            )
        )
        self.logger.debug("Registered Jingle IQ handler")

    def detach(self):
        """Stop receiving Jingle IQs."""
        self.xmpp.remove_handler(self.HANDLER_NAME)
        self.manager = None
        self.logger.debug("Removed Jingle IQ handler")

    def send(self, raw_xml: str, to: str):
        try:
            iq = self.xmpp.make_iq_set(ito=to)
            iq.append(ET.fromstring(raw_xml))
            future = iq.send()
        except Exception as e:
            raise TransportError(f"Failed to send Jingle IQ to {to}: {e}")

        if future is not None and hasattr(future, 'add_done_callback'):
            future.add_done_callback(lambda f: self._on_send_done(f, to))
        self.logger.debug(f"Sent Jingle IQ to {to}")

    def _on_send_done(self, future, to: str):
        if future.cancelled():
            self.logger.warning(f"Jingle IQ to {to} cancelled")
            return
        error = future.exception()
        if error is not None:
            # Peer-side rejection or timeout; the session itself is not touched here
            self.logger.warning(f"Jingle IQ to {to} failed: {error}")

    def _handle_jingle_iq(self, iq: Iq):
        """Handle incoming Jingle IQ stanza."""
        jingle = iq.xml.find(JINGLE_TAG)
        if jingle is None:
            self.logger.warning("Received IQ with no jingle element")
            return
        if self.manager is None:
            self.logger.warning("Jingle IQ received but no session manager attached")
            return

        sender = str(iq['from'])
        error = self.manager.receive(ET.tostring(jingle, encoding='unicode'), sender)
        if error is None:
            iq.reply().send()
        else:
            self._send_error_reply(iq, error)

    def _send_error_reply(self, iq: Iq, error: JingleError):
        reply = iq.reply()
        reply['type'] = 'error'
        reply['error']['type'] = error.error_type
        reply['error']['condition'] = error.condition
        reply['error']['text'] = error.message
        condition = jingle_condition_element(error)
        if condition is not None:
            reply['error'].xml.append(condition)
        self.logger.debug(f"Replying {error.condition}/{error.jingle_condition} "
                          f"to {iq['from']}")
        reply.send()
