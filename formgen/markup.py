#!/usr/bin/env python3
"""ElementTree helpers shared by the XML artifact generators."""

import xml.etree.ElementTree as ET
from typing import Iterable, Optional, Tuple

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'


def attributes(pairs: Iterable[Tuple[str, Optional[object]]]) -> dict:
    """Ordered attribute dict without empty values."""
    return {key: str(value) for key, value in pairs if value not in (None, "")}


def serialize(root: ET.Element, doctype: str = "", space: str = "\t") -> str:
    """Indented document text with the XML declaration (and DOCTYPE, when given)."""
    ET.indent(root, space=space)
    body = ET.tostring(root, encoding="unicode")
    header = [XML_DECLARATION]
    if doctype:
        header.append(doctype)
    return "\n".join(header) + "\n" + body + "\n"
