import logging
import re

from bs4 import BeautifulSoup

from app.extractors.html import (
    attr_mentions,
    clean_text,
    element_text,
    image_source,
    meta_content,
    resolve_url,
)
from app.schemas.scraper import DEFAULT_PRIMARY_COLOR

logger = logging.getLogger(__name__)

_TITLE_SUFFIX_RES = (
    re.compile(r"\s*[-|–—:]\s*(Home|Official|Website|Shop|Store|Online)\b.*$", re.I),
    re.compile(r"\s*\|\s*.*$"),
    re.compile(r"\s+[-–—]\s+.*$"),
)

_INTRO_CLASS_RE = re.compile(r"hero|intro|tagline|subtitle|description|lead", re.I)
_LOGO_RE = re.compile(r"logo", re.I)
_HERO_CLASS_RE = re.compile(r"hero|banner|featured|cover|main-image", re.I)
_HERO_BLOCK_RE = re.compile(r"hero|banner|slideshow|slider|carousel", re.I)
_BG_URL_RE = re.compile(r"background(?:-image)?\s*:[^;]*url\(\s*['\"]?([^'\")\s]+)['\"]?\s*\)", re.I)
_NOT_HERO_RE = re.compile(r"favicon|icon|logo", re.I)

_HEX_RE = re.compile(r"^#(?:[0-9a-f]{3}|[0-9a-f]{6})$", re.I)
_CSS_VAR_RES = tuple(
    re.compile(rf"--{name}[\w-]*\s*:\s*(#[0-9a-fA-F]{{6}}|#[0-9a-fA-F]{{3}})\b", re.I)
    for name in ("primary", "brand", "main", "accent", "color-primary")
)


def _clean_title(raw: str) -> str:
    title = clean_text(raw)
    for pattern in _TITLE_SUFFIX_RES:
        title = pattern.sub("", title)
    return title.strip()


def extract_title(soup: BeautifulSoup) -> str:
    candidates = [
        meta_content(soup, "og:title"),
        element_text(soup.title),
        meta_content(soup, "og:site_name"),
        meta_content(soup, "application-name"),
        element_text(soup.find("h1")),
    ]
    for candidate in candidates:
        if not candidate:
            continue
        title = _clean_title(candidate)
        if title:
            return title
    return ""


def extract_description(soup: BeautifulSoup) -> str:
    for candidate in (
        meta_content(soup, "description"),
        meta_content(soup, "og:description"),
        meta_content(soup, "twitter:description"),
    ):
        if candidate and len(candidate) > 20:
            return candidate

    for p in soup.find_all("p"):
        if attr_mentions(p, _INTRO_CLASS_RE):
            text = element_text(p)
            if len(text) > 20:
                return text

    # First meaningful paragraph
    for p in soup.find_all("p"):
        text = element_text(p)
        if len(text) >= 40:
            return text
    return ""


def extract_logo(soup: BeautifulSoup, base_url: str) -> str | None:
    scopes = [el for el in (soup.find("header"), soup.find("nav")) if el is not None]
    scopes.append(soup)
    for scope in scopes:
        for img in scope.find_all("img"):
            if attr_mentions(img, _LOGO_RE, ("class", "id", "alt")) or (
                img.parent is not None and attr_mentions(img.parent, _LOGO_RE)
            ):
                url = resolve_url(image_source(img), base_url)
                if url:
                    return url

    for rel in ("apple-touch-icon", "apple-touch-icon-precomposed"):
        link = soup.find("link", rel=re.compile(rf"^{rel}$", re.I), href=True)
        if link:
            return resolve_url(link["href"], base_url)

    png_icon = soup.find(
        "link", rel=re.compile(r"^icon$", re.I), type=re.compile(r"image/png", re.I), href=True
    )
    if png_icon:
        return resolve_url(png_icon["href"], base_url)

    icon = soup.find("link", rel=re.compile(r"icon", re.I), href=True)
    if icon:
        return resolve_url(icon["href"], base_url)
    return None


def _hero_candidates(soup: BeautifulSoup):
    yield meta_content(soup, "og:image")
    yield meta_content(soup, "og:image:secure_url")
    yield meta_content(soup, "twitter:image")

    for img in soup.find_all("img"):
        if attr_mentions(img, _HERO_CLASS_RE):
            yield image_source(img)

    for el in soup.find_all(style=_BG_URL_RE):
        if el.name == "section" or attr_mentions(el, _HERO_BLOCK_RE):
            match = _BG_URL_RE.search(el["style"])
            if match:
                yield match.group(1)

    for block in soup.find_all(["section", "div"]):
        if attr_mentions(block, _HERO_BLOCK_RE):
            img = block.find("img")
            if img:
                yield image_source(img)


def extract_hero_image(soup: BeautifulSoup, base_url: str) -> str | None:
    for candidate in _hero_candidates(soup):
        url = resolve_url(candidate, base_url)
        if url and not _NOT_HERO_RE.search(url):
            return url
    return None


def normalize_hex(color: str | None) -> str | None:
    """Return the color as lowercase #rrggbb, or None if it is not a hex color."""
    if not color:
        return None
    color = color.strip().lower()
    if not _HEX_RE.match(color):
        return None
    if len(color) == 4:
        color = "#" + "".join(c * 2 for c in color[1:])
    return color


def extract_primary_color(soup: BeautifulSoup) -> str:
    for key in ("theme-color", "msapplication-TileColor"):
        color = normalize_hex(meta_content(soup, key))
        if color:
            return color

    css_sources = [style.get_text() for style in soup.find_all("style")]
    css_sources.extend(el["style"] for el in soup.find_all(style=True))
    css = "\n".join(css_sources)
    for pattern in _CSS_VAR_RES:
        match = pattern.search(css)
        if match:
            color = normalize_hex(match.group(1))
            if color:
                return color

    return DEFAULT_PRIMARY_COLOR


def _shift(rgb: tuple[int, int, int], delta: tuple[int, int, int]) -> tuple[int, int, int]:
    return tuple(min(255, max(0, c + d)) for c, d in zip(rgb, delta))


def derive_secondary_color(primary: str) -> str:
    """Derive a companion color from the primary. Pure, and never equal to its input."""
    color = normalize_hex(primary) or DEFAULT_PRIMARY_COLOR
    rgb = (int(color[1:3], 16), int(color[3:5], 16), int(color[5:7], 16))

    shifted = _shift(rgb, (30, -20, 40))
    if shifted == rgb:
        shifted = _shift(rgb, (-30, 20, -40))
    return "#{:02x}{:02x}{:02x}".format(*shifted)
