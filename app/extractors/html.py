"""Shared helpers for the pattern extractors.

All helpers work on a BeautifulSoup tree and tolerate partial markup: missing
attributes, odd nesting and broken JSON blocks simply produce no result.
"""

import json
import logging
import re
from collections.abc import Iterator
from html import unescape
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup, Tag

logger = logging.getLogger(__name__)

_WS_RE = re.compile(r"\s+")
_UNICODE_ESCAPE_RE = re.compile(r"\\u([0-9a-fA-F]{4})")


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def clean_text(text: str | None) -> str:
    """Decode entities and collapse whitespace."""
    if not text:
        return ""
    text = unescape(text)
    text = _UNICODE_ESCAPE_RE.sub(lambda m: chr(int(m.group(1), 16)), text)
    return _WS_RE.sub(" ", text).strip()


def element_text(el: Tag | None) -> str:
    if el is None:
        return ""
    return clean_text(el.get_text(" "))


def resolve_url(url: str | None, base_url: str) -> str | None:
    """Resolve a possibly relative URL against the page URL."""
    if not url:
        return None
    url = url.strip()
    if not url or url.startswith(("data:", "javascript:", "mailto:", "tel:")):
        return None
    if url.startswith("//"):
        return f"https:{url}"
    return urljoin(base_url, url)


def origin_of(url: str) -> str:
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}"


def host_matches(host: str, domain: str) -> bool:
    """True for the domain itself or any of its subdomains."""
    host = host.lower().split(":")[0]
    return host == domain or host.endswith("." + domain)


def meta_content(soup: BeautifulSoup, *keys: str) -> str | None:
    """Return the first non-empty meta content for the given property/name keys."""
    for key in keys:
        for attr in ("property", "name", "itemprop"):
            tag = soup.find("meta", attrs={attr: re.compile(rf"^{re.escape(key)}$", re.I)})
            if tag and tag.get("content"):
                value = clean_text(tag["content"])
                if value:
                    return value
    return None


def class_string(el: Tag) -> str:
    classes = el.get("class") or []
    if isinstance(classes, str):
        return classes.lower()
    return " ".join(classes).lower()


def attr_mentions(el: Tag, pattern: re.Pattern, attrs: tuple[str, ...] = ("class", "id")) -> bool:
    """Check whether any of the given attributes match the pattern."""
    for attr in attrs:
        value = class_string(el) if attr == "class" else el.get(attr)
        if isinstance(value, list):
            value = " ".join(value)
        if value and pattern.search(value):
            return True
    return False


def image_source(img: Tag) -> str | None:
    """Pick the best source attribute for an <img>, including lazy-load variants."""
    for attr in ("src", "data-src", "data-lazy-src", "data-original"):
        value = img.get(attr)
        if value and not value.startswith("data:"):
            return value
    srcset = img.get("srcset") or img.get("data-srcset")
    if srcset:
        first = srcset.split(",")[0].strip().split(" ")[0]
        if first:
            return first
    return None


def iter_json_ld(soup: BeautifulSoup) -> Iterator[object]:
    """Yield each parsed JSON-LD block. Invalid blocks are skipped."""
    for script in soup.find_all("script", attrs={"type": re.compile(r"application/ld\+json", re.I)}):
        raw = script.string or script.get_text()
        if not raw or not raw.strip():
            continue
        try:
            yield json.loads(raw)
        except (json.JSONDecodeError, ValueError, RecursionError):
            logger.debug("Skipping malformed JSON-LD block")


def has_type(obj: object, type_name: str) -> bool:
    """Check a JSON-LD node's @type, which may be a string or a list."""
    if not isinstance(obj, dict):
        return False
    value = obj.get("@type")
    if isinstance(value, list):
        return any(isinstance(v, str) and v.lower() == type_name.lower() for v in value)
    return isinstance(value, str) and value.lower() == type_name.lower()


def walk_json(obj: object) -> Iterator[dict]:
    """Depth-first walk over every dict nested in a JSON value."""
    stack = [obj]
    while stack:
        current = stack.pop()
        if isinstance(current, dict):
            yield current
            stack.extend(reversed(list(current.values())))
        elif isinstance(current, list):
            stack.extend(reversed(current))
