"""Textual encodings of the structured element representation."""

from __future__ import annotations

from collections.abc import Mapping
import json
import re
from typing import Any
from xml.etree import ElementTree

import yaml


_XML_NAME_RE = re.compile(r"^[A-Za-z_][\w.-]*$")


def dump_json(payload: Any, **kwargs: Any) -> str:
    """Encode ``payload`` as JSON, keeping non-ASCII characters readable."""
    kwargs.setdefault("ensure_ascii", False)
    return json.dumps(payload, **kwargs)


def dump_yaml(payload: Any) -> str:
    """Encode ``payload`` as block-style YAML preserving key order."""
    return yaml.safe_dump(
        payload,
        allow_unicode=True,
        sort_keys=False,
        default_flow_style=False,
    )


def structured_to_xml(payload: Mapping[str, Any]) -> ElementTree.Element:
    """Build an XML tree from a single-rooted structured mapping.

    Nested mappings become child elements, sequences become ``item`` children,
    and scalars become text. Keys that are not valid XML names are written as
    ``<field name="...">`` so arbitrary citation keys survive the conversion.
    """
    if len(payload) != 1:
        raise ValueError("XML conversion requires a mapping with exactly one root key.")
    ((name, value),) = payload.items()
    return _build_node(str(name), value)


def xml_to_string(node: ElementTree.Element) -> str:
    return ElementTree.tostring(node, encoding="unicode")


def _build_node(name: str, value: Any) -> ElementTree.Element:
    node = _make_node(name)
    if isinstance(value, Mapping):
        for key, child in value.items():
            node.append(_build_node(str(key), child))
    elif isinstance(value, (list, tuple)):
        for child in value:
            node.append(_build_node("item", child))
    elif value is not None:
        node.text = str(value)
    return node


def _make_node(name: str) -> ElementTree.Element:
    if _XML_NAME_RE.match(name):
        return ElementTree.Element(name)
    node = ElementTree.Element("field")
    node.set("name", name)
    return node


__all__ = ["dump_json", "dump_yaml", "structured_to_xml", "xml_to_string"]
