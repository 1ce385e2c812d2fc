"""
Jingle <content/> model.

A Content is one negotiated media or data stream (XEP-0166 section 7.3).
Its application description, transport and any other extension data are
carried as opaque ElementTree nodes; only the attributes are interpreted.
"""

import copy
import threading
from typing import Iterable, List, Optional, Tuple

from slixmpp.xmlstream import ET

from .constants import Creator, Senders, DEFAULT_DISPOSITION
from .utils.xml_utils import local_name, element_lists_equal


ContentKey = Tuple[Creator, str]


class Content:
    """
    One negotiated content (stream) of a Jingle session.

    Only `creator` and `name` are mandatory; `disposition` defaults to
    "session" and `senders` to "both". The pair (creator, name) is the
    content's identity inside a session.

    The sub-element list is the only mutable part. It is guarded by a
    per-content lock so a serializer can read it while another thread
    appends during assembly of an outbound stanza; readers get a snapshot.
    """

    def __init__(self, creator, name: str,
                 disposition: Optional[str] = None,
                 senders=None,
                 sub_elements: Optional[Iterable[ET.Element]] = None):
        """
        Args:
            creator: Creator enum or its wire value ('initiator'/'responder')
            name: Content name, unique per creator within a session
            disposition: Optional disposition, defaults to 'session'
            senders: Senders enum or wire value, defaults to 'both'
            sub_elements: Initial opaque child elements (description, transport...)
        """
        if creator is None:
            raise ValueError("Content creator is required")
        if not name:
            raise ValueError("Content name is required")
        self._creator = Creator(creator)
        self._name = str(name)
        self._disposition = disposition or DEFAULT_DISPOSITION
        self._senders = Senders(senders) if senders is not None else Senders.BOTH
        self._lock = threading.Lock()
        self._sub_elements: List[ET.Element] = list(sub_elements or [])

    @property
    def creator(self) -> Creator:
        return self._creator

    @property
    def name(self) -> str:
        return self._name

    @property
    def key(self) -> ContentKey:
        """Identity of the content within a session."""
        return (self._creator, self._name)

    @property
    def disposition(self) -> str:
        return self._disposition

    @property
    def senders(self) -> Senders:
        return self._senders

    @property
    def sub_elements(self) -> List[ET.Element]:
        """Snapshot of the sub-elements, safe to iterate while others append."""
        with self._lock:
            return list(self._sub_elements)

    def add_sub_element(self, node: ET.Element):
        """Append an opaque child element (description, transport, ...)."""
        if not ET.iselement(node):
            raise TypeError(f"Expected an XML element, got {type(node).__name__}")
        with self._lock:
            self._sub_elements.append(node)

    def find_sub_element(self, name: str) -> Optional[ET.Element]:
        """Return the first sub-element with the given local name."""
        for node in self.sub_elements:
            if local_name(node.tag) == name:
                return node
        return None

    @property
    def description(self) -> Optional[ET.Element]:
        return self.find_sub_element('description')

    @property
    def transport(self) -> Optional[ET.Element]:
        return self.find_sub_element('transport')

    @property
    def security(self) -> Optional[ET.Element]:
        return self.find_sub_element('security')

    def copy(self) -> 'Content':
        """Independent copy; sub-elements are deep-copied."""
        return Content(self._creator, self._name, self._disposition, self._senders,
                       [copy.deepcopy(node) for node in self.sub_elements])

    def evolve(self, disposition: Optional[str] = None, senders=None,
               sub_elements: Optional[Iterable[ET.Element]] = None) -> 'Content':
        """
        Return a new version of this content.

        Creator and name are never changed; any argument left as None keeps
        the current value.
        """
        if sub_elements is None:
            nodes = [copy.deepcopy(node) for node in self.sub_elements]
        else:
            nodes = [copy.deepcopy(node) for node in sub_elements]
        return Content(self._creator, self._name,
                       disposition if disposition is not None else self._disposition,
                       senders if senders is not None else self._senders,
                       nodes)

    def with_sub_element(self, node: ET.Element) -> 'Content':
        """
        Return a new version with `node` replacing the first sub-element of
        the same local name, or appended when there is none.
        """
        name = local_name(node.tag)
        nodes = self.sub_elements
        for index, existing in enumerate(nodes):
            if local_name(existing.tag) == name:
                nodes[index] = node
                break
        else:
            nodes.append(node)
        return self.evolve(sub_elements=nodes)

    def __eq__(self, other):
        if not isinstance(other, Content):
            return NotImplemented
        return (self.key == other.key
                and self._disposition == other.disposition
                and self._senders == other.senders
                and element_lists_equal(self.sub_elements, other.sub_elements))

    __hash__ = None

    def __repr__(self):
        return (f"<Content {self._name!r} creator={self._creator.value} "
                f"senders={self._senders.value} disposition={self._disposition} "
                f"sub_elements={len(self.sub_elements)}>")
