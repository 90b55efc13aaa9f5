"""
HTML sanitization for rewritten article bodies.

Provider output is treated as untrusted markup. Sanitization runs in two
passes over a deny-list:
1. A textual pass removing dangerous elements, inline event handlers and
   javascript: URLs with regular expressions
2. A BeautifulSoup pass repeating the same rules on parsed markup, which
   catches unquoted, entity-encoded and whitespace-padded variants

This is a deny-list filter, not an allow-list: unknown tags and attributes
pass through untouched.
"""

from __future__ import annotations

import re
from typing import Any

from bs4 import BeautifulSoup

DENIED_TAGS = ("script", "style", "iframe", "object", "embed", "form")
URL_ATTRS = ("href", "src")
SAFE_HREF = "#"

_PAIRED_RE = re.compile(
    r"<(%s)\b[^>]*>.*?</\1\s*>" % "|".join(DENIED_TAGS),
    re.IGNORECASE | re.DOTALL,
)
_LONE_RE = re.compile(r"</?(%s)\b[^>]*>" % "|".join(DENIED_TAGS), re.IGNORECASE)
_TAG_RE = re.compile(r"<[a-zA-Z][^>]*>")
_EVENT_ATTR_RE = re.compile(
    r"""\s+on[a-z0-9_-]*\s*=\s*(?:"[^"]*"|'[^']*'|[^\s>]+)""",
    re.IGNORECASE,
)
_JS_HREF_RE = re.compile(
    r"""\bhref\s*=\s*(?:"\s*javascript:[^"]*"|'\s*javascript:[^']*'|javascript:[^\s>]*)""",
    re.IGNORECASE,
)
_JS_SRC_RE = re.compile(
    r"""\s+src\s*=\s*(?:"\s*javascript:[^"]*"|'\s*javascript:[^']*'|javascript:[^\s>]*)""",
    re.IGNORECASE,
)
_SCHEME_NOISE_RE = re.compile(r"[\s\x00-\x1f]+")


def sanitize_html(html: Any) -> str:
    """Strip unsafe markup from an HTML fragment.

    Never raises: None or any non-string input yields an empty string.

    Args:
        html: HTML fragment produced by a rewrite provider

    Returns:
        The fragment without script/style/iframe/object/embed/form elements,
        on* attributes, or javascript: href/src values
    """
    if not isinstance(html, str) or not html:
        return ""
    cleaned = _textual_pass(html)
    return _parsed_pass(cleaned).strip()


def _textual_pass(html: str) -> str:
    html = _PAIRED_RE.sub("", html)
    html = _LONE_RE.sub("", html)
    return _TAG_RE.sub(_clean_tag, html)


def _clean_tag(match: re.Match[str]) -> str:
    tag = _EVENT_ATTR_RE.sub("", match.group(0))
    tag = _JS_HREF_RE.sub(f'href="{SAFE_HREF}"', tag)
    return _JS_SRC_RE.sub("", tag)


def _parsed_pass(html: str) -> str:
    soup = BeautifulSoup(html, "html.parser")
    for node in soup.find_all(list(DENIED_TAGS)):
        node.decompose()
    for node in soup.find_all(True):
        for name in list(node.attrs):
            lowered = name.lower()
            if lowered.startswith("on"):
                del node.attrs[name]
            elif lowered in URL_ATTRS and _is_script_url(node.attrs[name]):
                if lowered == "href":
                    node.attrs[name] = SAFE_HREF
                else:
                    del node.attrs[name]
    return str(soup)


def _is_script_url(value: Any) -> bool:
    if isinstance(value, list):
        value = " ".join(value)
    compact = _SCHEME_NOISE_RE.sub("", str(value)).lower()
    return compact.startswith(("javascript:", "vbscript:"))
