"""
XML builders and fakes shared by the drunk-jingle tests.
"""

from slixmpp.xmlstream import ET

from drunk_jingle.constants import Creator
from drunk_jingle.content import Content
from drunk_jingle.transport import Transport


ALICE = 'alice@example.com/phone'
BOB = 'bob@example.org/laptop'

RTP_NS = 'urn:xmpp:jingle:apps:rtp:1'
ICE_NS = 'urn:xmpp:jingle:transports:ice-udp:1'


def rtp_description(media='audio'):
    description = ET.Element(f'{{{RTP_NS}}}description', {'media': media})
    ET.SubElement(description, f'{{{RTP_NS}}}payload-type',
                  {'id': '111', 'name': 'opus', 'clockrate': '48000', 'channels': '2'})
    return description


def ice_transport(ufrag='u1', candidate_ip=None):
    transport = ET.Element(f'{{{ICE_NS}}}transport', {'ufrag': ufrag, 'pwd': 'secret'})
    if candidate_ip:
        ET.SubElement(transport, f'{{{ICE_NS}}}candidate',
                      {'ip': candidate_ip, 'port': '5000', 'component': '1',
                       'foundation': '1', 'generation': '0', 'id': 'c1',
                       'network': '0', 'priority': '2130706431', 'protocol': 'udp',
                       'type': 'host'})
    return transport


def media_content(name='voice', creator=Creator.INITIATOR, media='audio', ufrag='u1'):
    return Content(creator, name,
                   sub_elements=[rtp_description(media), ice_transport(ufrag)])


class RecordingTransport(Transport):
    """Transport that keeps every sent stanza instead of delivering it."""

    def __init__(self):
        self.sent = []
        self.manager = None

    def attach(self, manager):
        self.manager = manager

    def send(self, raw_xml, to):
        self.sent.append((raw_xml, to))


