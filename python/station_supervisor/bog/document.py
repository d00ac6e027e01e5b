"""
In-memory model of a station bog document.

A bog document is an XML tree of slots. Every slot element carries its name
in the ``n`` attribute, its type in ``t`` and its scalar value in ``v``. The
document element (``bajaObjectGraph``) is only an envelope: its first element
child is the root slot, i.e. the station component itself.

Slots are addressed with ``/``-separated selectors such as
``/Services/WebService/httpPort``. Empty segments match the current slot, so
``""`` and ``"/"`` both select the root slot.
"""

import xml.etree.ElementTree as ET
from typing import Iterator, List, Optional

from ..exceptions import MalformedDocumentError
from ..logging_config import get_logger

logger = get_logger(__name__)

ENVELOPE_TAG = "bajaObjectGraph"
SLOT_TAG = "p"

NAME_ATTR = "n"
TYPE_ATTR = "t"
VALUE_ATTR = "v"


class Slot:
    """View over one slot element of a bog document.

    Two Slot objects compare equal when they wrap the same element.
    """

    __slots__ = ("element",)

    def __init__(self, element: ET.Element) -> None:
        self.element = element

    @property
    def name(self) -> Optional[str]:
        return self.element.get(NAME_ATTR)

    @property
    def type_tag(self) -> Optional[str]:
        return self.element.get(TYPE_ATTR)

    @property
    def value(self) -> Optional[str]:
        return self.element.get(VALUE_ATTR)

    @value.setter
    def value(self, value: object) -> None:
        self.element.set(VALUE_ATTR, str(value))

    @property
    def children(self) -> List["Slot"]:
        return [Slot(kid) for kid in self.element]

    def child(self, name: str) -> Optional["Slot"]:
        """Return the direct child slot called ``name``, if any."""
        for kid in self.element:
            if kid.get(NAME_ATTR) == name:
                return Slot(kid)
        return None

    def append_child(self, name: str, type_tag: Optional[str] = None) -> "Slot":
        """Append a new slot as the last child and return it."""
        kid = ET.SubElement(self.element, SLOT_TAG)
        kid.set(NAME_ATTR, name)
        if type_tag is not None:
            kid.set(TYPE_ATTR, type_tag)
        return Slot(kid)

    def __iter__(self) -> Iterator["Slot"]:
        return iter(self.children)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Slot) and other.element is self.element

    def __hash__(self) -> int:
        return id(self.element)

    def __repr__(self) -> str:
        return f"Slot(name={self.name!r}, type_tag={self.type_tag!r}, value={self.value!r})"


def split_selector(selector: str) -> List[str]:
    """Split a selector into slot names, dropping empty (no-op) segments."""
    return [segment for segment in selector.split("/") if segment]


def walk(start: Slot, names: List[str]) -> Optional[Slot]:
    """Follow ``names`` from ``start`` without mutating anything."""
    current = start
    for name in names:
        found = current.child(name)
        if found is None:
            return None
        current = found
    return current


class ConfigDocument:
    """A parsed bog document."""

    def __init__(self, envelope: ET.Element) -> None:
        root = next(iter(envelope), None)
        if root is None:
            raise MalformedDocumentError(
                f"<{envelope.tag}> does not contain a root slot"
            )
        self._envelope = envelope
        self._root = Slot(root)

    @classmethod
    def new(cls, root_type: str = "b:Station") -> "ConfigDocument":
        """Create an empty document containing only a root slot."""
        envelope = ET.Element(ENVELOPE_TAG, {"version": "1.0"})
        root = ET.SubElement(envelope, SLOT_TAG)
        root.set(TYPE_ATTR, root_type)
        return cls(envelope)

    @classmethod
    def from_xml(cls, xml: bytes) -> "ConfigDocument":
        """Parse XML markup into a document.

        Raises:
            MalformedDocumentError: If the markup cannot be parsed
        """
        try:
            envelope = ET.fromstring(xml)
        except ET.ParseError as e:
            raise MalformedDocumentError(f"Unparsable bog markup: {e}") from e
        return cls(envelope)

    @property
    def root(self) -> Slot:
        return self._root

    @property
    def envelope(self) -> ET.Element:
        return self._envelope

    def select(self, selector: str) -> Optional[Slot]:
        """Return the slot at ``selector``, or None if any segment is missing."""
        return walk(self._root, split_selector(selector))

    def set_value(self, selector: str, value: object = None) -> Optional[Slot]:
        """Set the value of the slot at ``selector``, creating the final slot if needed.

        Every segment but the last must already exist; otherwise nothing is
        changed and None is returned. When ``value`` is None the slot is only
        ensured to exist.

        Args:
            selector: Path of the slot to set
            value: New value, stored as ``str(value)``

        Returns:
            The existing or newly created slot, or None
        """
        names = split_selector(selector)
        if not names:
            target: Optional[Slot] = self._root
        else:
            parent = walk(self._root, names[:-1])
            if parent is None:
                logger.debug(f"Cannot set '{selector}': parent slot not found")
                return None
            target = parent.child(names[-1]) or parent.append_child(names[-1])

        if value is not None:
            target.value = value
        return target

    def add_node(self, selector: str, name: str, type_tag: str) -> Optional[Slot]:
        """Ensure the slot at ``selector`` has a child called ``name``.

        A new child is appended with type ``type_tag``. An existing child is
        returned as-is, even if its type differs.

        Returns:
            The existing or newly created child slot, or None if ``selector``
            does not resolve
        """
        parent = self.select(selector)
        if parent is None:
            logger.debug(f"Cannot add '{name}': slot '{selector}' not found")
            return None
        return parent.child(name) or parent.append_child(name, type_tag)

    def to_xml(self) -> bytes:
        """Serialize the document to UTF-8 XML."""
        return ET.tostring(self._envelope, encoding="UTF-8", xml_declaration=True)
