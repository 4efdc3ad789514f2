"""Default result serializer producing EPCIS-style query documents.

Output is deterministic: element order follows the envelope structure and
the insertion order of each event mapping, so identical envelopes always
yield identical bytes.
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any

from services.action.query_subscription.domain import (
    EventList,
    EventRecord,
    QueryDocument,
    QueryResult,
)
from services.action.query_subscription.errors import SerializationError

EPCIS_QUERY_NAMESPACE = "urn:epcglobal:epcis-query:xsd:1"
_PREFIX = "epcisq"

_ELEMENT_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9._-]*$")
_INVALID_XML_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ufffe\uffff]")

_CATEGORY_ELEMENTS = (
    ("aggregation_events", "AggregationEvent"),
    ("object_events", "ObjectEvent"),
    ("quantity_events", "QuantityEvent"),
    ("transaction_events", "TransactionEvent"),
)


class XmlResultSerializer:
    """Serialize ``QueryDocument`` envelopes to UTF-8 XML bytes."""

    def serialize(self, document: QueryDocument) -> bytes:
        root = ET.Element(
            f"{_PREFIX}:EPCISQueryDocument",
            {
                f"xmlns:{_PREFIX}": EPCIS_QUERY_NAMESPACE,
                "schemaVersion": document.schema_version,
                "creationDate": _text(document.creation_date),
            },
        )
        body = ET.SubElement(root, "EPCISBody")
        _append_query_results(body, document.query_results)
        try:
            return ET.tostring(root, encoding="utf-8", xml_declaration=True)
        except (TypeError, ValueError) as exc:
            raise SerializationError(
                f"Query document could not be encoded: {exc}", cause=exc
            ) from exc


def _append_query_results(parent: ET.Element, result: QueryResult) -> None:
    element = ET.SubElement(parent, f"{_PREFIX}:QueryResults")
    ET.SubElement(element, "queryName").text = _text(result.query_name)
    if result.subscription_id is not None:
        ET.SubElement(element, "subscriptionID").text = _text(result.subscription_id)
    results_body = ET.SubElement(element, "resultsBody")
    _append_event_list(results_body, result.event_list)


def _append_event_list(parent: ET.Element, event_list: EventList | None) -> None:
    element = ET.SubElement(parent, "EventList")
    if event_list is None:
        return
    for attribute, tag in _CATEGORY_ELEMENTS:
        for event in getattr(event_list, attribute) or ():
            _append_event(element, tag, event)


def _append_event(parent: ET.Element, tag: str, event: EventRecord) -> None:
    element = ET.SubElement(parent, tag)
    for key, value in event.items():
        _append_value(element, key, value)


def _append_value(parent: ET.Element, name: object, value: Any) -> None:
    tag = _element_name(name)
    if value is None:
        return
    child = ET.SubElement(parent, tag)
    if isinstance(value, Mapping):
        for key, subvalue in value.items():
            _append_value(child, key, subvalue)
        return
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
        item_tag = _item_name(tag)
        for item in value:
            _append_value(child, item_tag, item)
        return
    child.text = _text(value)


def _element_name(name: object) -> str:
    if not isinstance(name, str) or not _ELEMENT_NAME.match(name):
        raise SerializationError(f"Invalid XML element name: {name!r}")
    if name.lower().startswith("xml"):
        raise SerializationError(f"Reserved XML element name: {name!r}")
    return name


def _item_name(tag: str) -> str:
    """Return the element name for members of a list element."""
    if tag.endswith("List") and len(tag) > len("List"):
        return tag[: -len("List")]
    if tag.endswith("s") and len(tag) > 1:
        return tag[:-1]
    return "item"


def _text(value: object) -> str:
    if isinstance(value, bool):
        text = "true" if value else "false"
    elif isinstance(value, datetime):
        text = value.isoformat()
    elif isinstance(value, (str, int, float)):
        text = str(value)
    else:
        raise SerializationError(
            f"Unsupported value type for XML text: {type(value).__name__}"
        )
    if _INVALID_XML_CHARS.search(text):
        raise SerializationError("Value contains characters not allowed in XML")
    return text
