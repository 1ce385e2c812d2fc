"""
Tests for Jingle XML encoding and decoding.
"""

import pytest
from slixmpp.xmlstream import ET

from drunk_jingle.codec import (
    decode,
    decode_string,
    encode,
    encode_string,
    error_element,
)
from drunk_jingle.constants import (
    Action,
    Creator,
    ReasonCondition,
    Senders,
    SessionInfoType,
    JINGLE_NS,
)
from drunk_jingle.content import Content
from drunk_jingle.exceptions import (
    DecodeError,
    DuplicateInitiate,
    UnknownAction,
    UnsupportedInfo,
    ValidationError,
)
from drunk_jingle.stanza import REQUIREMENTS, JingleStanza, Reason, SessionInfo, validate

from helpers import ALICE, BOB, media_content


INITIATE = '''<jingle xmlns="urn:xmpp:jingle:1" action="session-initiate"
        initiator="alice@example.com/phone" sid="abc123">
  <content creator="initiator" name="voice">
    <description xmlns="urn:xmpp:jingle:apps:rtp:1" media="audio">
      <payload-type id="111" name="opus" clockrate="48000" channels="2"/>
    </description>
    <transport xmlns="urn:xmpp:jingle:transports:ice-udp:1" ufrag="u1" pwd="secret"/>
    <x xmlns="urn:example:unknown" level="3"/>
  </content>
</jingle>'''

RINGING = '''<jingle xmlns="urn:xmpp:jingle:1" action="session-info" sid="abc123">
  <ringing xmlns="urn:xmpp:jingle:apps:rtp:info:1"/>
</jingle>'''

TERMINATE = '''<jingle xmlns="urn:xmpp:jingle:1" action="session-terminate" sid="abc123">
  <reason><busy/><text>In a meeting</text></reason>
</jingle>'''


class TestDecode:
    def test_session_initiate(self):
        stanza = decode(ET.fromstring(INITIATE))
        assert stanza.action is Action.SESSION_INITIATE
        assert stanza.sid == 'abc123'
        assert stanza.initiator == ALICE
        assert stanza.responder is None
        assert len(stanza.contents) == 1

        content = stanza.contents[0]
        assert content.key == (Creator.INITIATOR, 'voice')
        assert content.disposition == 'session'
        assert content.senders is Senders.BOTH
        assert content.description.get('media') == 'audio'
        assert content.transport.get('ufrag') == 'u1'
        # Unknown sub-elements survive
        assert content.sub_elements[2].tag == '{urn:example:unknown}x'

    def test_session_info(self):
        stanza = decode_string(RINGING)
        assert stanza.session_info.info_type is SessionInfoType.RINGING
        assert stanza.contents == []

    def test_foreign_session_info_payload(self):
        stanza = decode_string(
            '<jingle xmlns="urn:xmpp:jingle:1" action="session-info" sid="s1">'
            '<checksum xmlns="urn:xmpp:jingle:apps:file-transfer:5" name="a"/>'
            '</jingle>')
        assert stanza.session_info.name == 'checksum'
        assert stanza.session_info.namespace == 'urn:xmpp:jingle:apps:file-transfer:5'
        assert stanza.session_info.info_type is None

    def test_reason(self):
        stanza = decode_string(TERMINATE)
        assert stanza.reason == Reason(ReasonCondition.BUSY, 'In a meeting')

    def test_unknown_reason_condition(self):
        stanza = decode_string(
            '<jingle xmlns="urn:xmpp:jingle:1" action="session-terminate" sid="s1">'
            '<reason><sleepy/></reason></jingle>')
        assert stanza.reason.condition is ReasonCondition.GENERAL_ERROR

    def test_unknown_children_preserved(self):
        stanza = decode_string(
            '<jingle xmlns="urn:xmpp:jingle:1" action="session-terminate" sid="s1">'
            '<group xmlns="urn:xmpp:jingle:apps:grouping:0" semantics="BUNDLE"/>'
            '</jingle>')
        assert stanza.session_info is None
        assert [e.tag for e in stanza.extensions] == \
            ['{urn:xmpp:jingle:apps:grouping:0}group']

    def test_missing_action(self):
        with pytest.raises(UnknownAction):
            decode_string('<jingle xmlns="urn:xmpp:jingle:1" sid="s1"/>')

    def test_unknown_action(self):
        with pytest.raises(UnknownAction) as info:
            decode_string('<jingle xmlns="urn:xmpp:jingle:1" action="session-dance" sid="s1"/>')
        assert info.value.action == 'session-dance'
        assert isinstance(info.value, DecodeError)

    def test_missing_sid(self):
        with pytest.raises(DecodeError):
            decode_string('<jingle xmlns="urn:xmpp:jingle:1" action="session-terminate"/>')

    def test_wrong_root(self):
        with pytest.raises(DecodeError):
            decode_string('<jingle xmlns="urn:xmpp:jingle:0" action="session-terminate" sid="s"/>')

    @pytest.mark.parametrize('content', [
        '<content name="voice"/>',
        '<content creator="initiator"/>',
        '<content creator="bystander" name="voice"/>',
        '<content creator="initiator" name="voice" senders="everyone"/>',
    ])
    def test_malformed_content(self, content):
        with pytest.raises(DecodeError):
            decode_string('<jingle xmlns="urn:xmpp:jingle:1" action="content-add" sid="s1">'
                          f'{content}</jingle>')

    def test_malformed_xml(self):
        with pytest.raises(DecodeError):
            decode_string('<jingle xmlns="urn:xmpp:jingle:1" action=')

    def test_decode_does_not_validate(self):
        # session-initiate without initiator decodes fine; validate() rejects it later
        stanza = decode_string('<jingle xmlns="urn:xmpp:jingle:1" action="session-initiate" '
                               'sid="s1"/>')
        assert stanza.initiator is None


class TestEncode:
    def test_attributes(self):
        stanza = JingleStanza(Action.SESSION_ACCEPT, 'abc123', initiator=ALICE, responder=BOB,
                              contents=[media_content()])
        element = encode(stanza)
        assert element.tag == f'{{{JINGLE_NS}}}jingle'
        assert element.get('action') == 'session-accept'
        assert element.get('sid') == 'abc123'
        assert element.get('initiator') == ALICE
        assert element.get('responder') == BOB

        content = element.find(f'{{{JINGLE_NS}}}content')
        assert content.get('creator') == 'initiator'
        assert content.get('name') == 'voice'
        assert content.get('senders') == 'both'
        assert content.get('disposition') is None

    def test_optional_attributes_omitted(self):
        element = encode(JingleStanza(Action.SESSION_TERMINATE, 's1'))
        assert element.get('initiator') is None
        assert element.get('responder') is None

    def test_non_default_disposition(self):
        stanza = JingleStanza(Action.CONTENT_ADD, 's1',
                              contents=[Content(Creator.RESPONDER, 'slides',
                                                disposition='early-session',
                                                senders='responder')])
        content = encode(stanza).find(f'{{{JINGLE_NS}}}content')
        assert content.get('disposition') == 'early-session'
        assert content.get('senders') == 'responder'

    def test_reason(self):
        stanza = JingleStanza(Action.SESSION_TERMINATE, 's1',
                              reason=Reason(ReasonCondition.DECLINE, 'No thanks'))
        reason = encode(stanza).find(f'{{{JINGLE_NS}}}reason')
        assert reason.find(f'{{{JINGLE_NS}}}decline') is not None
        assert reason.find(f'{{{JINGLE_NS}}}text').text == 'No thanks'

    def test_text_is_escaped(self):
        stanza = JingleStanza(Action.SESSION_TERMINATE, 's1',
                              reason=Reason(ReasonCondition.GONE, '<bye & "later">'))
        text = encode_string(stanza)
        assert '<bye' not in text
        assert decode_string(text).reason.text == '<bye & "later">'

    def test_encoding_does_not_alias_sub_elements(self):
        content = media_content()
        element = encode(JingleStanza(Action.CONTENT_ADD, 's1', contents=[content]))
        encoded_transport = element.find(f'{{{JINGLE_NS}}}content')[1]
        encoded_transport.set('ufrag', 'changed')
        assert content.transport.get('ufrag') == 'u1'


def minimal_stanza(action):
    """Smallest stanza `validate()` accepts for `action`."""
    requirement = REQUIREMENTS[action]
    stanza = JingleStanza(action, 'abc123')
    if requirement.initiator:
        stanza.initiator = ALICE
    if requirement.responder:
        stanza.responder = BOB
    if requirement.contents:
        stanza.contents = [media_content()]
    if requirement.session_info:
        stanza.session_info = SessionInfo.rtp('ringing')
    if action == Action.SESSION_TERMINATE:
        stanza.reason = Reason(ReasonCondition.DECLINE, 'Busy elsewhere')
    return stanza


class TestRoundTrip:
    @pytest.mark.parametrize('xml', [INITIATE, RINGING, TERMINATE])
    def test_decode_encode_decode(self, xml):
        stanza = decode_string(xml)
        assert decode(encode(stanza)) == stanza

    @pytest.mark.parametrize('action', list(Action))
    def test_every_action(self, action):
        stanza = minimal_stanza(action)
        validate(stanza)
        assert decode(encode(stanza)) == stanza
        assert decode_string(encode_string(stanza)) == stanza

    def test_full_stanza(self):
        stanza = JingleStanza(
            Action.SESSION_INFO, 'abc123', initiator=ALICE, responder=BOB,
            session_info=SessionInfo.rtp('mute', creator='initiator', name='voice'),
            extensions=[ET.Element('{urn:example:ext}flag', {'on': 'yes'})])
        assert decode_string(encode_string(stanza)) == stanza

    def test_contents_with_informational_payload(self):
        stanza = JingleStanza(Action.CONTENT_ADD, 'abc123',
                              contents=[media_content('video', media='video')],
                              session_info=SessionInfo.rtp('mute', creator='initiator',
                                                           name='video'))
        validate(stanza)
        back = decode(encode(stanza))
        assert back.session_info == stanza.session_info
        assert back.extensions == []
        assert back == stanza

    def test_foreign_payload_with_contents_is_not_valid(self):
        # Would come back as an extension, so it cannot be sent
        stanza = JingleStanza(Action.CONTENT_ADD, 'abc123',
                              contents=[media_content('video')],
                              session_info=SessionInfo('custom', 'urn:example:x'))
        with pytest.raises(ValidationError):
            validate(stanza)

    def test_foreign_payload_with_contents_when_recognised(self):
        namespaces = ['urn:example:x']
        stanza = JingleStanza(Action.CONTENT_ADD, 'abc123',
                              contents=[media_content('video')],
                              session_info=SessionInfo('custom', 'urn:example:x'))
        validate(stanza, session_info_namespaces=namespaces)
        assert decode(encode(stanza), namespaces) == stanza

    @pytest.mark.parametrize('text', ['', 'Busy elsewhere'])
    def test_reason_text(self, text):
        stanza = JingleStanza(Action.SESSION_TERMINATE, 'abc123',
                              reason=Reason('success', text))
        validate(stanza)
        assert decode_string(encode_string(stanza)) == stanza

    def test_non_default_disposition_and_senders(self):
        content = Content(Creator.RESPONDER, 'screen', disposition='early-session',
                          senders='responder',
                          sub_elements=media_content(media='video').sub_elements)
        stanza = JingleStanza(Action.CONTENT_ADD, 'abc123', contents=[content])
        validate(stanza)
        back = decode(encode(stanza))
        assert back.contents[0].disposition == 'early-session'
        assert back.contents[0].senders is Senders.RESPONDER
        assert back == stanza


class TestErrorElement:
    def test_stanza_and_jingle_conditions(self):
        element = error_element(DuplicateInitiate("Session abc123 already exists", sid='abc123'))
        assert element.tag == '{jabber:client}error'
        assert element.get('type') == 'cancel'
        assert element.find('{urn:ietf:params:xml:ns:xmpp-stanzas}conflict') is not None
        assert element.find('{urn:xmpp:jingle:errors:1}tie-break') is not None
        assert element.find('{urn:ietf:params:xml:ns:xmpp-stanzas}text').text == \
            'Session abc123 already exists'

    def test_no_jingle_condition(self):
        element = error_element(ValidationError("missing responder"))
        assert element.get('type') == 'modify'
        assert element.find('{urn:ietf:params:xml:ns:xmpp-stanzas}bad-request') is not None
        assert len(element.findall('{urn:xmpp:jingle:errors:1}*')) == 0

    def test_unsupported_info(self):
        element = error_element(UnsupportedInfo("Unsupported session-info payload"))
        assert element.get('type') == 'modify'
        assert element.find(
            '{urn:ietf:params:xml:ns:xmpp-stanzas}feature-not-implemented') is not None
        assert element.find('{urn:xmpp:jingle:errors:1}unsupported-info') is not None
