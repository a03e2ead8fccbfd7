import logging
import re
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from app.extractors.html import (
    attr_mentions,
    clean_text,
    element_text,
    has_type,
    host_matches,
    iter_json_ld,
    walk_json,
)

logger = logging.getLogger(__name__)

# Phone shapes, most specific first: labelled numbers, NANP, international
_PHONE_RES = (
    re.compile(r"(?:tel|phone|call(?: us)?|contact)\s*[:.]?\s*(\+?\(?\d[\d\s\-().]{8,}\d)", re.I),
    re.compile(r"(?<!\d)((?:\+?1[\s.\-]?)?\(?\d{3}\)?[\s.\-]\d{3}[\s.\-]\d{4})(?!\d)"),
    re.compile(r"(?<!\d)(\+\d{1,3}[\s.\-]?\(?\d{1,4}\)?(?:[\s.\-]?\d{2,4}){2,4})(?!\d)"),
)

_EMAIL_RE = re.compile(r"[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}")

# Placeholder and vendor domains that show up in page source
_BLOCKED_EMAIL_DOMAINS = frozenset({
    "example.com", "example.org", "email.com", "domain.com", "yourdomain.com",
    "sentry.io", "wixpress.com", "sentry-next.wixpress.com", "w3.org",
})

_IMAGE_SUFFIXES = (".png", ".jpg", ".jpeg", ".gif", ".webp", ".svg")

_PLATFORM_DOMAINS: dict[str, tuple[str, ...]] = {
    "instagram": ("instagram.com", "instagr.am"),
    "facebook": ("facebook.com", "fb.com"),
    "twitter": ("twitter.com", "x.com"),
    "linkedin": ("linkedin.com",),
    "youtube": ("youtube.com", "youtu.be"),
    "tiktok": ("tiktok.com",),
}

_SHARE_PATH_RE = re.compile(r"/(sharer|share|intent|dialog|plugins|shareArticle)\b", re.I)

_ADDRESS_CLASS_RE = re.compile(r"address|location", re.I)

_HOURS_BLOCK_RE = re.compile(r"hour|opening|schedule|horario", re.I)

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

_DAY_ABBREVIATIONS = {
    "mo": 0, "mon": 0, "tu": 1, "tue": 1, "tues": 1, "we": 2, "wed": 2,
    "th": 3, "thu": 3, "thur": 3, "thurs": 3, "fr": 4, "fri": 4,
    "sa": 5, "sat": 5, "su": 6, "sun": 6,
}

_DAY = r"(?:mon|tue|wed|thu|fri|sat|sun)[a-z]*\.?"
_TIME = r"\d{1,2}(?:[:.]\d{2})?\s*(?:[ap]\.?m\.?)?"
_HOURS_TEXT_RE = re.compile(
    rf"({_DAY})(?:\s*(?:-|–|to|through)\s*({_DAY}))?\s*:?\s*"
    rf"(closed|({_TIME})\s*(?:-|–|to)\s*({_TIME}))",
    re.I,
)
_JSON_LD_HOURS_RE = re.compile(
    r"([A-Za-z]{2})(?:\s*-\s*([A-Za-z]{2}))?(?:,[A-Za-z,]+)?\s+(\d{1,2}:\d{2})\s*-\s*(\d{1,2}:\d{2})"
)


def _digits_only(phone: str) -> str:
    return "".join(c for c in phone if c.isdigit())


def format_phone(raw: str) -> str:
    """Format NANP numbers for display, everything else as +digits."""
    digits = _digits_only(raw)
    if len(digits) == 10:
        return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"
    if len(digits) == 11 and digits.startswith("1"):
        return f"+1 ({digits[1:4]}) {digits[4:7]}-{digits[7:]}"
    return f"+{digits}"


def find_phone_in_text(text: str) -> str | None:
    for pattern in _PHONE_RES:
        for match in pattern.findall(text):
            if 10 <= len(_digits_only(match)) <= 15:
                return format_phone(match)
    return None


def _is_blocked_email(email: str) -> bool:
    local, _, domain = email.lower().partition("@")
    if domain in _BLOCKED_EMAIL_DOMAINS or domain.endswith(_IMAGE_SUFFIXES):
        return True
    return local in ("noreply", "no-reply", "yourname", "name", "user")


def find_email_in_text(text: str) -> str | None:
    for match in _EMAIL_RE.findall(text):
        if not _is_blocked_email(match):
            return match.lower()
    return None


def extract_phone(soup: BeautifulSoup) -> str | None:
    """tel: links first, then phone-shaped text."""
    for a in soup.find_all("a", href=True):
        href = a["href"].strip()
        if href.lower().startswith("tel:"):
            raw = href[4:]
            if 7 <= len(_digits_only(raw)) <= 15:
                return format_phone(raw)

    text = soup.get_text(" ")
    return find_phone_in_text(text)


def extract_email(soup: BeautifulSoup) -> str | None:
    """mailto: links first, then text matches."""
    for a in soup.find_all("a", href=True):
        href = a["href"].strip()
        if href.lower().startswith("mailto:"):
            email = href[7:].split("?")[0].strip().lower()
            if "@" in email and not _is_blocked_email(email):
                return email

    return find_email_in_text(soup.get_text(" "))


def _address_from_json_ld(soup: BeautifulSoup) -> str | None:
    for block in iter_json_ld(soup):
        for node in walk_json(block):
            street = node.get("streetAddress")
            if not isinstance(street, str) or not street.strip():
                continue
            if not (has_type(node, "PostalAddress") or "@type" not in node):
                continue
            parts = [street]
            for key in ("addressLocality", "addressRegion", "postalCode"):
                value = node.get(key)
                if isinstance(value, str) and value.strip():
                    parts.append(value)
            return clean_text(", ".join(parts))
    return None


def extract_address(soup: BeautifulSoup) -> str | None:
    address = _address_from_json_ld(soup)
    if address:
        return address

    candidates = list(soup.find_all("address"))
    candidates.extend(soup.find_all(attrs={"itemprop": "address"}))
    candidates.extend(
        el for el in soup.find_all(["div", "p", "span", "li"]) if attr_mentions(el, _ADDRESS_CLASS_RE, ("class",))
    )
    for el in candidates:
        text = element_text(el)
        if 10 < len(text) < 200:
            return text
    return None


def platform_for_url(url: str) -> str | None:
    """Return the social platform a URL belongs to, if any."""
    try:
        host = urlparse(url).netloc
    except ValueError:
        return None
    if not host:
        return None
    for platform, domains in _PLATFORM_DOMAINS.items():
        if any(host_matches(host, d) for d in domains):
            return platform
    return None


def extract_social_links(soup: BeautifulSoup) -> dict[str, str]:
    links: dict[str, str] = {}
    for a in soup.find_all("a", href=True):
        href = a["href"].strip()
        if not href.lower().startswith(("http://", "https://")):
            continue
        platform = platform_for_url(href)
        if not platform or platform in links:
            continue
        path = urlparse(href).path
        if not path.strip("/") or _SHARE_PATH_RE.search(path):
            continue
        links[platform] = href
    return links


def _day_index(token: str) -> int | None:
    token = token.lower().rstrip(".")
    for length in (5, 4, 3, 2):
        if token[:length] in _DAY_ABBREVIATIONS:
            return _DAY_ABBREVIATIONS[token[:length]]
    return None


def _day_range(start: str, end: str | None) -> list[str]:
    first = _day_index(start)
    if first is None:
        return []
    last = _day_index(end) if end else first
    if last is None:
        last = first
    if last < first:
        last += 7
    return [WEEKDAYS[i % 7] for i in range(first, last + 1)]


def _hours_from_json_ld(soup: BeautifulSoup) -> dict[str, str]:
    hours: dict[str, str] = {}
    for block in iter_json_ld(soup):
        for node in walk_json(block):
            declared = node.get("openingHours")
            if isinstance(declared, list):
                entries = declared
            elif isinstance(declared, str):
                entries = [declared]
            else:
                entries = []
            for entry in entries:
                for match in _JSON_LD_HOURS_RE.finditer(str(entry)):
                    for day in _day_range(match.group(1), match.group(2)):
                        hours.setdefault(day, f"{match.group(3)} - {match.group(4)}")

            if has_type(node, "OpeningHoursSpecification"):
                opens, closes = node.get("opens"), node.get("closes")
                days = node.get("dayOfWeek")
                days = days if isinstance(days, list) else [days]
                if not (isinstance(opens, str) and isinstance(closes, str)):
                    continue
                for day in days:
                    if not isinstance(day, str):
                        continue
                    name = day.rstrip("/").rsplit("/", 1)[-1]
                    if name in WEEKDAYS:
                        hours.setdefault(name, f"{opens[:5]} - {closes[:5]}")
    return hours


def _hours_from_text(text: str) -> dict[str, str]:
    hours: dict[str, str] = {}
    for match in _HOURS_TEXT_RE.finditer(text):
        if match.group(3).lower() == "closed":
            value = "Closed"
        else:
            value = f"{clean_text(match.group(4))} - {clean_text(match.group(5))}"
        for day in _day_range(match.group(1), match.group(2)):
            hours.setdefault(day, value)
    return hours


def extract_opening_hours(soup: BeautifulSoup) -> dict[str, str] | None:
    hours = _hours_from_json_ld(soup)

    if not hours:
        for meta in soup.find_all(attrs={"itemprop": "openingHours"}):
            value = meta.get("content") or element_text(meta)
            for match in _JSON_LD_HOURS_RE.finditer(value):
                for day in _day_range(match.group(1), match.group(2)):
                    hours.setdefault(day, f"{match.group(3)} - {match.group(4)}")

    if not hours:
        for block in soup.find_all(["div", "section", "table", "ul", "dl", "p"]):
            if attr_mentions(block, _HOURS_BLOCK_RE):
                hours.update(
                    {k: v for k, v in _hours_from_text(element_text(block)).items() if k not in hours}
                )

    if not hours:
        return None
    return {day: hours[day] for day in WEEKDAYS if day in hours}
