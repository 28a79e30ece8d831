#!/usr/bin/env python3
"""Attribute-soup scanning helpers for Oracle Forms XML exports.

frmf2xml output qualifies attributes with tool-specific prefixes such as
``ODGLS144_overridden:Name`` or ``FORM_STD_default:Name``. Lookups here
match on the local name only and take the first occurrence in document
order, whatever the prefix. Every accessor has a default and never raises.
"""

import html
import re
from typing import Dict, Iterator, NamedTuple, Optional

_ATTR_RE = re.compile(r'([\w.\-]+(?::[\w.\-]+)?)\s*=\s*"([^"]*)"')


class TagMatch(NamedTuple):
    attrs: Dict[str, str]
    start: int
    end: int
    self_closing: bool


def _tag_pattern(tag: str) -> "re.Pattern":
    return re.compile(rf"<(?:[\w\-]+:)?{re.escape(tag)}\s+([^>]*?)(/?)>", re.DOTALL)


def decode_entities(text: str) -> str:
    """Decode XML/HTML character references (&amp; &lt; &#10; ...)."""
    if not text or "&" not in text:
        return text or ""
    return html.unescape(text)


def parse_attributes(attr_text: str) -> Dict[str, str]:
    """Split a raw attribute string into ``{qualified name: decoded value}``.

    A repeated qualified name keeps its first value.
    """
    attrs: Dict[str, str] = {}
    for name, value in _ATTR_RE.findall(attr_text or ""):
        if name not in attrs:
            attrs[name] = decode_entities(value)
    return attrs


def scan_tags(text: str, tag: str) -> Iterator[TagMatch]:
    """Yield every opening (or self-closing) ``<tag ...>`` in document order."""
    for m in _tag_pattern(tag).finditer(text or ""):
        yield TagMatch(parse_attributes(m.group(1)), m.start(), m.end(), m.group(2) == "/")


def local_name(qualified: str) -> str:
    return qualified.rsplit(":", 1)[-1]


def lookup_attr(attrs: Dict[str, str], name: str, default: str = "") -> str:
    """First attribute whose local name equals ``name`` (case-insensitive)."""
    wanted = name.lower()
    for qualified, value in attrs.items():
        if local_name(qualified).lower() == wanted:
            return value
    return default


def lookup_any(attrs: Dict[str, str], *names: str, default: str = "") -> str:
    """First non-empty value among several attribute names, tried in order."""
    for name in names:
        value = lookup_attr(attrs, name)
        if value:
            return value
    return default


def has_attr(attrs: Dict[str, str], name: str) -> bool:
    wanted = name.lower()
    return any(local_name(q).lower() == wanted for q in attrs)


def lookup_int(attrs: Dict[str, str], name: str, default: int = 0) -> int:
    """Leading-integer parse; non-numeric content yields ``default``."""
    m = re.match(r"\s*([+-]?\d+)", lookup_attr(attrs, name))
    return int(m.group(1)) if m else default


def lookup_bool(attrs: Dict[str, str], name: str, default: Optional[bool] = False) -> Optional[bool]:
    """true/yes -> True, false/no -> False (any case), else ``default``."""
    value = lookup_attr(attrs, name).strip().lower()
    if value in ("true", "yes"):
        return True
    if value in ("false", "no"):
        return False
    return default
