"""Convert XML elements to plain attribute/text/children structures and back.

Both document models read elements through :func:`to_struct` and the GPX
writer emits its output through :func:`to_markup`. Tag and attribute names
are namespace stripped so GPX 1.0/1.1 and un-namespaced documents read the
same way.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional
from xml.etree.ElementTree import Element

from .utils import escape_xml

ElementPredicate = Callable[[Element], bool]


def local_name(tag: object) -> str:
    """Tag without its ``{namespace}`` prefix; empty for comments and PIs."""

    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]


@dataclass(slots=True)
class Struct:
    """Attributes, own text and ordered children (grouped by tag) of an element."""

    attributes: Dict[str, str] = field(default_factory=dict)
    text: str = ""
    children: Dict[str, List["Struct"]] = field(default_factory=dict)

    def first(self, tag: str) -> Optional["Struct"]:
        items = self.children.get(tag)
        return items[0] if items else None

    def child_text(self, tag: str) -> Optional[str]:
        child = self.first(tag)
        if child is None:
            return None
        return child.text

    def add(self, tag: str, child: "Struct") -> "Struct":
        """Append ``child`` under ``tag`` and return it."""

        self.children.setdefault(tag, []).append(child)
        return child


def to_struct(element: Element, depth: Optional[int] = 0) -> Struct:
    """Build a :class:`Struct` from ``element``.

    Args:
        element: Source element.
        depth: Levels of children to include. ``0`` keeps only attributes and
            text, ``None`` recurses through the whole subtree.

    Returns:
        The structure. Text is the element's own text (child text excluded),
        stripped of surrounding whitespace.
    """

    attributes = {local_name(name): value for name, value in element.attrib.items()}
    own_text = (element.text or "") + "".join(child.tail or "" for child in element)
    result = Struct(attributes=attributes, text=own_text.strip())
    if depth is not None and depth <= 0:
        return result
    next_depth = None if depth is None else depth - 1
    for child in element:
        tag = local_name(child.tag)
        if not tag:
            continue
        result.add(tag, to_struct(child, next_depth))
    return result


def to_markup(struct: Struct, tag: str, level: int = 0, indent: str = "  ") -> str:
    """Serialize ``struct`` as a ``tag`` element indented by nesting level."""

    pad = indent * level
    attrs = "".join(
        f' {name}="{escape_xml(str(value))}"' for name, value in struct.attributes.items()
    )
    text = escape_xml(struct.text) if struct.text else ""
    if not struct.children:
        if text:
            return f"{pad}<{tag}{attrs}>{text}</{tag}>\n"
        return f"{pad}<{tag}{attrs}/>\n"
    parts = [f"{pad}<{tag}{attrs}>{text}\n"]
    for child_tag, items in struct.children.items():
        for item in items:
            parts.append(to_markup(item, child_tag, level + 1, indent))
    parts.append(f"{pad}</{tag}>\n")
    return "".join(parts)


def iter_elements(
    root: Element, tag: str, predicate: Optional[ElementPredicate] = None
) -> Iterator[Element]:
    """Yield descendants of ``root`` (root included) named ``tag`` in document order."""

    for element in root.iter():
        if local_name(element.tag) != tag:
            continue
        if predicate is None or predicate(element):
            yield element


def find_children(element: Element, tag: str) -> List[Element]:
    return [child for child in element if local_name(child.tag) == tag]


def find_child(element: Element, tag: str) -> Optional[Element]:
    for child in element:
        if local_name(child.tag) == tag:
            return child
    return None
