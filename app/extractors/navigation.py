"""Discovery of the site's own section pages (about, services, team, ...).

Only same-host links whose path or anchor text names a known section are
kept, one per section, ordered so the most useful pages are fetched first.
"""

import logging
import re
from enum import StrEnum
from typing import NamedTuple
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from app.extractors.html import element_text, resolve_url

logger = logging.getLogger(__name__)

MAX_SECTION_PAGES = 4


class SectionKind(StrEnum):
    services = "services"
    about = "about"
    portfolio = "portfolio"
    gallery = "gallery"
    testimonials = "testimonials"
    team = "team"
    pricing = "pricing"


class SectionLink(NamedTuple):
    url: str
    kind: SectionKind
    text: str


# Checked in order; the order is also the fetch priority
_SECTION_PATTERNS: tuple[tuple[SectionKind, re.Pattern], ...] = (
    (SectionKind.services, re.compile(r"\bservices?\b|what[- ]we[- ]do|\bofferings?\b", re.I)),
    (SectionKind.about, re.compile(r"\babout\b|who[- ]we[- ]are|our[- ]story", re.I)),
    (SectionKind.portfolio, re.compile(r"\bportfolio\b|\bprojects?\b|\bour[- ]work\b|case[- ]stud", re.I)),
    (SectionKind.gallery, re.compile(r"\bgallery\b|\bphotos\b|\bshowcase\b", re.I)),
    (SectionKind.testimonials, re.compile(r"\btestimonials?\b|\breviews\b|kind[- ]words", re.I)),
    (SectionKind.team, re.compile(r"\bteam\b|\bstaff\b|our[- ]people|meet[- ]the\b", re.I)),
    (SectionKind.pricing, re.compile(r"\bpricing\b|\bprices\b|\bplans\b|\bpackages\b|\brates\b", re.I)),
)
_PRIORITY = {kind: i for i, (kind, _) in enumerate(_SECTION_PATTERNS)}

_SKIP_RE = re.compile(
    r"cart|checkout|basket|log-?in|sign-?in|log-?out|sign-?out|register|sign-?up|account|"
    r"admin|dashboard|search|privacy|terms|cookie|gdpr|sitemap|\brss\b|/feed",
    re.I,
)
_SKIP_EXTENSIONS = (".pdf", ".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg", ".zip", ".mp4")


def _bare_host(netloc: str) -> str:
    host = netloc.lower().split(":")[0]
    return host[4:] if host.startswith("www.") else host


def section_kind(path: str, text: str) -> SectionKind | None:
    """Name the section a link points to from its path and anchor text."""
    combined = f"{path} {text}"
    for kind, pattern in _SECTION_PATTERNS:
        if pattern.search(combined):
            return kind
    return None


def extract_navigation_links(
    soup: BeautifulSoup,
    base_url: str,
    limit: int = MAX_SECTION_PAGES,
) -> list[SectionLink]:
    """Same-host section pages linked from the page, at most one per kind."""
    base = urlparse(base_url)
    base_host = _bare_host(base.netloc)
    base_path = base.path.rstrip("/")

    found: dict[SectionKind, SectionLink] = {}
    for a in soup.find_all("a", href=True):
        resolved = resolve_url(a["href"].split("#")[0], base_url)
        if not resolved:
            continue
        parsed = urlparse(resolved)
        if parsed.scheme not in ("http", "https") or _bare_host(parsed.netloc) != base_host:
            continue
        path = parsed.path.rstrip("/")
        if not path or path == base_path or path.lower().endswith(_SKIP_EXTENSIONS):
            continue

        text = element_text(a) or a.get("aria-label", "") or a.get("title", "")
        if _SKIP_RE.search(path) or _SKIP_RE.search(text):
            continue
        kind = section_kind(path, text)
        if kind is None or kind in found:
            continue
        found[kind] = SectionLink(f"{parsed.scheme}://{parsed.netloc}{parsed.path}", kind, text)

    links = sorted(found.values(), key=lambda link: _PRIORITY[link.kind])
    logger.debug("Section links for %s: %s", base_url, [link.kind.value for link in links])
    return links[:limit]
