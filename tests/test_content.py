"""
Tests for the Content model.
"""

import threading

import pytest
from slixmpp.xmlstream import ET

from drunk_jingle.constants import Creator, Senders
from drunk_jingle.content import Content

from helpers import ice_transport, media_content, rtp_description


class TestContent:
    def test_defaults(self):
        content = Content('initiator', 'voice')
        assert content.creator is Creator.INITIATOR
        assert content.name == 'voice'
        assert content.disposition == 'session'
        assert content.senders is Senders.BOTH
        assert content.sub_elements == []
        assert content.key == (Creator.INITIATOR, 'voice')

    def test_required_fields(self):
        with pytest.raises(ValueError):
            Content(None, 'voice')
        with pytest.raises(ValueError):
            Content(Creator.INITIATOR, '')
        with pytest.raises(ValueError):
            Content('somebody', 'voice')

    def test_add_sub_element(self):
        content = Content(Creator.RESPONDER, 'video')
        content.add_sub_element(rtp_description('video'))
        content.add_sub_element(ice_transport())
        assert len(content.sub_elements) == 2
        assert content.description.get('media') == 'video'
        assert content.transport.get('ufrag') == 'u1'
        assert content.security is None

    def test_add_sub_element_rejects_non_elements(self):
        content = Content(Creator.INITIATOR, 'voice')
        with pytest.raises(TypeError):
            content.add_sub_element('<transport/>')

    def test_sub_elements_is_snapshot(self):
        content = media_content()
        snapshot = content.sub_elements
        snapshot.clear()
        assert len(content.sub_elements) == 2

    def test_same_name_different_creator_are_distinct(self):
        ours = Content(Creator.INITIATOR, 'voice')
        theirs = Content(Creator.RESPONDER, 'voice')
        assert ours.key != theirs.key
        assert ours != theirs

    def test_structural_equality(self):
        assert media_content() == media_content()
        assert media_content(ufrag='u1') != media_content(ufrag='u2')

    def test_copy_is_independent(self):
        original = media_content()
        duplicate = original.copy()
        assert duplicate == original
        duplicate.add_sub_element(ET.Element('{urn:example}extra'))
        assert duplicate != original
        assert duplicate.transport is not original.transport

    def test_evolve_keeps_identity(self):
        original = media_content()
        changed = original.evolve(senders='initiator')
        assert changed.key == original.key
        assert changed.senders is Senders.INITIATOR
        assert changed.sub_elements[0].tag == original.sub_elements[0].tag

    def test_with_sub_element_replaces_by_local_name(self):
        original = media_content(ufrag='u1')
        changed = original.with_sub_element(ice_transport('u2'))
        assert changed.transport.get('ufrag') == 'u2'
        assert len(changed.sub_elements) == 2
        assert original.transport.get('ufrag') == 'u1'

    def test_concurrent_append_and_read(self):
        content = Content(Creator.INITIATOR, 'data')
        done = threading.Event()
        seen = []

        def reader():
            while not done.is_set():
                seen.append(len(content.sub_elements))

        thread = threading.Thread(target=reader)
        thread.start()
        for i in range(200):
            content.add_sub_element(ET.Element(f'{{urn:example}}item{i}'))
        done.set()
        thread.join()

        assert len(content.sub_elements) == 200
        assert seen == sorted(seen)
