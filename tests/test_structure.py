"""Tests for the element <-> structure adapter."""

from __future__ import annotations

from xml.etree import ElementTree as ET

from subsurface_tools.structure import (
    Struct,
    find_child,
    find_children,
    iter_elements,
    local_name,
    to_markup,
    to_struct,
)

TRKPT = '<trkpt lat="-23.5" lon="-44"><ele>3</ele><time>2023-01-01T11:00:00Z</time></trkpt>'


def test_local_name_strips_namespace():
    assert local_name("{http://www.topografix.com/GPX/1/1}gpx") == "gpx"
    assert local_name("site") == "site"
    assert local_name(ET.Comment) == ""


def test_to_struct_depth_limits_children():
    element = ET.fromstring(TRKPT)
    flat = to_struct(element)
    assert flat.attributes == {"lat": "-23.5", "lon": "-44"}
    assert flat.children == {}

    one = to_struct(element, 1)
    assert one.child_text("ele") == "3"
    assert one.first("time").text == "2023-01-01T11:00:00Z"
    assert one.first("name") is None
    assert one.child_text("name") is None


def test_to_struct_collects_own_text_only():
    element = ET.fromstring("<notes> Nice <b>bold</b> reef </notes>")
    struct = to_struct(element, None)
    assert struct.text == "Nice  reef"
    assert struct.first("b").text == "bold"


def test_to_struct_strips_namespaces():
    element = ET.fromstring(
        '<gpx xmlns="http://www.topografix.com/GPX/1/1"><wpt lat="1" lon="2"><name>A</name></wpt></gpx>'
    )
    struct = to_struct(element, None)
    assert struct.first("wpt").child_text("name") == "A"


def test_markup_reproduces_structure():
    element = ET.fromstring(TRKPT)
    markup = to_markup(to_struct(element, None), "trkpt")
    assert markup == (
        '<trkpt lat="-23.5" lon="-44">\n'
        "  <ele>3</ele>\n"
        "  <time>2023-01-01T11:00:00Z</time>\n"
        "</trkpt>\n"
    )
    again = ET.fromstring(markup)
    assert to_struct(again, None) == to_struct(element, None)


def test_markup_escapes_and_self_closes():
    struct = Struct(attributes={"name": 'a "b" & c'})
    struct.add("empty", Struct())
    struct.add("text", Struct(text="x < y"))
    markup = to_markup(struct, "root", indent="\t")
    assert markup == (
        '<root name="a &quot;b&quot; &amp; c">\n'
        "\t<empty/>\n"
        "\t<text>x &lt; y</text>\n"
        "</root>\n"
    )


def test_tree_walks():
    root = ET.fromstring(
        "<divelog><dives><dive number='1'/><dive number='2' tags='x'/></dives><dive number='3'/></divelog>"
    )
    assert [d.get("number") for d in iter_elements(root, "dive")] == ["1", "2", "3"]
    tagged = iter_elements(root, "dive", lambda el: el.get("tags") is not None)
    assert [d.get("number") for d in tagged] == ["2"]
    assert [d.get("number") for d in find_children(root, "dive")] == ["3"]
    assert find_child(root, "dives") is not None
    assert find_child(root, "settings") is None
