import logging
import re

from bs4 import BeautifulSoup, Tag

from app.extractors.html import attr_mentions, element_text, image_source, resolve_url
from app.schemas.scraper import PricingPlan, TeamMember, Testimonial

logger = logging.getLogger(__name__)

MAX_SERVICES = 8
MAX_FEATURES = 6
MAX_TESTIMONIALS = 4
MAX_GALLERY_IMAGES = 10
MAX_TEAM_MEMBERS = 12
MAX_PRICING_PLANS = 6
MAX_ABOUT_CHARS = 1500

_SERVICE_RE = re.compile(r"service|offering", re.I)
_SERVICE_SECTION_RE = re.compile(r"service|about|what-we-do|what_we_do", re.I)
_FEATURE_RE = re.compile(r"feature(?!d)|benefit|highlight|\busp", re.I)
_TESTIMONIAL_RE = re.compile(r"testimonial|review|quote", re.I)
_AUTHOR_RE = re.compile(r"author|name|customer|client|reviewer|cite", re.I)
_STAR_RE = re.compile(r"star", re.I)
_EMPTY_STAR_RE = re.compile(r"empty|outline|\boff\b|half|blank|inactive|star-o\b", re.I)
_RATING_TEXT_RES = (
    re.compile(r"(\d(?:\.\d)?)\s*(?:/|out of)\s*5\b", re.I),
    re.compile(r"\b([1-5](?:\.\d)?)\s*stars?\b", re.I),
)
_GALLERY_SKIP_RE = re.compile(
    r"icon|logo|pixel|tracking|1x1|spacer|avatar|badge|payment|sprite|placeholder|\.svg|\.gif(?:\?|$)",
    re.I,
)
_ABOUT_RE = re.compile(r"about|story|who-we-are|mission", re.I)
_TEAM_RE = re.compile(r"team|staff|member|person|people", re.I)
_ROLE_RE = re.compile(r"role|position|job|title|designation", re.I)
_PLAN_RE = re.compile(r"pricing|plan|package|tier", re.I)
_PRICE_CLASS_RE = re.compile(r"price|amount|cost", re.I)
_PRICE_TEXT_RE = re.compile(r"(?:[$€£]\s?\d[\d.,]*|\d[\d.,]*\s?[$€£])(?:\s*/\s*[a-z]+)?", re.I)
_NAV_WORDS_RE = re.compile(
    r"^(?:home|about|about us|contact|contact us|services|our services|portfolio|gallery|menu|"
    r"testimonials|get in touch|follow us|quick links)$",
    re.I,
)
_HEADINGS = ["h2", "h3", "h4", "h5", "h6"]
_CARD_TAGS = ["div", "article", "li", "figure", "section"]


_SECTION_HEADINGS = frozenset({
    "services", "our services", "what we do", "what we offer", "features", "our features",
    "why choose us", "benefits",
})


def _add_unique(items: list[str], text: str, min_len: int, max_len: int) -> None:
    if text.lower().rstrip(":") in _SECTION_HEADINGS:
        return
    if min_len <= len(text) <= max_len and text not in items:
        items.append(text)


def _first_text(el: Tag, names: list[str]) -> str:
    """Text of the first descendant with the given tag names, else the element's own text."""
    child = el.find(names)
    if child is not None:
        return element_text(child)
    return element_text(el)


def extract_services(soup: BeautifulSoup, headings: bool = False) -> list[str]:
    """Service names from service-classed markup.

    On a dedicated services page (``headings=True``) the page's own h2-h4
    headings are the last fallback.
    """
    services: list[str] = []

    for el in soup.find_all(["li", "h2", "h3", "h4", "div", "article"]):
        if len(services) >= MAX_SERVICES:
            break
        if not attr_mentions(el, _SERVICE_RE, ("class",)):
            continue
        # Skip section wrappers that hold several service items
        if el.name in ("div", "article") and len(el.find_all(["li", "h2", "h3", "h4"])) > 2:
            continue
        text = _first_text(el, ["h2", "h3", "h4", "h5", "strong"]) if el.name in ("div", "article") else element_text(el)
        _add_unique(services, text, 4, 100)

    if not services:
        for section in soup.find_all(["section", "div"], id=_SERVICE_RE):
            for item in section.find_all(["h2", "h3", "h4", "li"]):
                if len(services) >= MAX_SERVICES:
                    break
                _add_unique(services, element_text(item), 4, 100)

    if not services:
        for section in soup.find_all("section"):
            if not attr_mentions(section, _SERVICE_SECTION_RE):
                continue
            for item in section.find_all("li"):
                if len(services) >= MAX_SERVICES:
                    break
                _add_unique(services, element_text(item), 6, 80)

    if not services and headings:
        for heading in soup.find_all(["h2", "h3", "h4"]):
            if len(services) >= MAX_SERVICES:
                break
            if heading.find_parent(["nav", "header", "footer"]) is not None:
                continue
            text = element_text(heading)
            if not _NAV_WORDS_RE.match(text):
                _add_unique(services, text, 4, 80)

    return services[:MAX_SERVICES]


def extract_features(soup: BeautifulSoup) -> list[str]:
    features: list[str] = []
    for el in soup.find_all(["div", "li", "article"]):
        if len(features) >= MAX_FEATURES:
            break
        if not attr_mentions(el, _FEATURE_RE, ("class",)):
            continue
        if el.name == "li":
            text = element_text(el)
        else:
            if len(el.find_all(["div", "li", "article"], class_=_FEATURE_RE)) > 0:
                continue
            text = _first_text(el, ["h2", "h3", "h4", "p", "span"])
        _add_unique(features, text, 6, 100)
    return features


def _is_wrapper(el: Tag) -> bool:
    """A block holding two or more quoted entries is a list wrapper, not a testimonial."""
    entries = [
        child for child in el.find_all(["div", "blockquote", "li", "article", "figure"])
        if attr_mentions(child, _TESTIMONIAL_RE, ("class",)) and _quote_text(child)
    ]
    return len(entries) >= 2


def _rating(el: Tag) -> float | None:
    for attr_el in [el, *el.find_all(attrs={"data-rating": True})]:
        raw = attr_el.get("data-rating")
        if raw:
            try:
                value = float(raw)
            except ValueError:
                continue
            if 0 < value <= 5:
                return value

    labelled = [el.get("aria-label", "")] + [t.get("aria-label", "") for t in el.find_all(attrs={"aria-label": True})]
    for text in [*labelled, element_text(el)]:
        for pattern in _RATING_TEXT_RES:
            match = pattern.search(text or "")
            if match:
                value = float(match.group(1))
                if 0 < value <= 5:
                    return value

    stars = [
        s for s in el.find_all(["i", "span", "svg", "li"])
        if attr_mentions(s, _STAR_RE, ("class",))
        and not attr_mentions(s, _EMPTY_STAR_RE, ("class",))
        and s.find(class_=_STAR_RE) is None
    ]
    if 1 <= len(stars) <= 5:
        return float(len(stars))
    text = element_text(el)
    star_chars = text.count("★")
    if 1 <= star_chars <= 5:
        return float(star_chars)
    return None


def _author(el: Tag) -> str:
    for child in el.find_all(["cite", "span", "p", "div", "h3", "h4", "h5", "strong"]):
        if child.name == "cite" or attr_mentions(child, _AUTHOR_RE, ("class",)):
            name = element_text(child).lstrip("-–— ").strip()
            if 1 < len(name) <= 80:
                return name
    strong = el.find(["strong", "b"])
    if strong is not None:
        name = element_text(strong).lstrip("-–— ").strip()
        if 1 < len(name) <= 80:
            return name
    return "Customer"


def _quote_text(el: Tag) -> str:
    candidates = el.find_all(["p", "blockquote", "q"])
    if el.name == "blockquote":
        candidates.insert(0, el)
    for child in candidates:
        text = element_text(child).strip("\"“”")
        if 20 <= len(text) <= 500 and not attr_mentions(child, _AUTHOR_RE, ("class",)):
            return text
    return ""


def extract_testimonials(soup: BeautifulSoup) -> list[Testimonial]:
    testimonials: list[Testimonial] = []
    seen: set[str] = set()
    for el in soup.find_all(["div", "blockquote", "li", "article", "figure"]):
        if len(testimonials) >= MAX_TESTIMONIALS:
            break
        if not attr_mentions(el, _TESTIMONIAL_RE, ("class",)) or _is_wrapper(el):
            continue
        text = _quote_text(el)
        if not text or text in seen:
            continue
        seen.add(text)
        testimonials.append(Testimonial(name=_author(el), text=text, rating=_rating(el)))
    return testimonials


def _too_small(img: Tag) -> bool:
    for attr in ("width", "height"):
        raw = str(img.get(attr, "")).strip().rstrip("px")
        if raw.isdigit() and int(raw) <= 50:
            return True
    return False


def extract_gallery_images(
    soup: BeautifulSoup,
    base_url: str,
    exclude: tuple[str | None, ...] = (),
) -> list[str]:
    images: list[str] = []
    seen = {url for url in exclude if url}
    for img in soup.find_all("img"):
        if len(images) >= MAX_GALLERY_IMAGES:
            break
        src = image_source(img)
        if not src or _GALLERY_SKIP_RE.search(src) or _too_small(img):
            continue
        if attr_mentions(img, _GALLERY_SKIP_RE, ("class", "alt")):
            continue
        resolved = resolve_url(src, base_url)
        if resolved and resolved not in seen:
            seen.add(resolved)
            images.append(resolved)
    return images


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[:limit].rsplit(" ", 1)[0]


def extract_about_content(soup: BeautifulSoup) -> str:
    """Body copy of an about page: about/story blocks first, then <article> or <main>."""
    candidates = [
        el for el in soup.find_all(["section", "div", "article"])
        if attr_mentions(el, _ABOUT_RE)
    ]
    candidates += soup.find_all(["article", "main"])
    for el in candidates:
        paragraphs = [element_text(p) for p in el.find_all("p")]
        text = " ".join(p for p in paragraphs if p) or element_text(el)
        if len(text) > 100:
            return _truncate(text, MAX_ABOUT_CHARS)
    return ""


def _is_card_list(el: Tag, pattern: re.Pattern) -> bool:
    """A block holding two or more titled cards of the same kind is a list wrapper."""
    cards = [
        child for child in el.find_all(_CARD_TAGS)
        if attr_mentions(child, pattern, ("class",)) and child.find(_HEADINGS) is not None
    ]
    return len(cards) >= 2


def _member_role(card: Tag, name_el: Tag) -> str:
    for el in card.find_all(["p", "span", "div", "em", "small", "h4", "h5", "h6"]):
        if el is name_el or not attr_mentions(el, _ROLE_RE, ("class",)):
            continue
        role = element_text(el)
        if 1 < len(role) <= 80:
            return role
    for el in card.find_all(["span", "em", "small", "i"]):
        role = element_text(el)
        if 1 < len(role) <= 60 and role != element_text(name_el):
            return role
    return ""


def extract_team_members(soup: BeautifulSoup, base_url: str) -> list[TeamMember]:
    members: list[TeamMember] = []
    seen: set[str] = set()
    for card in soup.find_all(_CARD_TAGS):
        if len(members) >= MAX_TEAM_MEMBERS:
            break
        if not attr_mentions(card, _TEAM_RE, ("class",)) or _is_card_list(card, _TEAM_RE):
            continue
        name_el = card.find(_HEADINGS) or card.find("strong")
        name = element_text(name_el)
        if not 2 <= len(name) <= 60 or len(name.split()) > 5 or name in seen:
            continue
        seen.add(name)

        role = _member_role(card, name_el)
        img = card.find("img")
        bio = next(
            (
                text for text in (element_text(p) for p in card.find_all("p"))
                if len(text) >= 20 and text != role
            ),
            None,
        )
        members.append(
            TeamMember(
                name=name,
                role=role,
                image=resolve_url(image_source(img), base_url) if img is not None else None,
                bio=bio,
            )
        )
    return members


def _plan_price(card: Tag) -> str:
    for el in card.find_all(["span", "div", "p", "strong", "h3", "h4", "h5"]):
        if attr_mentions(el, _PRICE_CLASS_RE, ("class",)):
            price = element_text(el)
            if price and any(ch.isdigit() for ch in price):
                return price
    match = _PRICE_TEXT_RE.search(element_text(card))
    return match.group(0).strip() if match else ""


def extract_pricing_info(soup: BeautifulSoup) -> list[PricingPlan]:
    plans: list[PricingPlan] = []
    seen: set[str] = set()
    for card in soup.find_all(_CARD_TAGS):
        if len(plans) >= MAX_PRICING_PLANS:
            break
        if not attr_mentions(card, _PLAN_RE, ("class",)) or _is_card_list(card, _PLAN_RE):
            continue
        name = element_text(card.find(_HEADINGS))
        if not 2 <= len(name) <= 60 or name in seen:
            continue
        price = _plan_price(card)
        features: list[str] = []
        for li in card.find_all("li"):
            _add_unique(features, element_text(li), 3, 100)
        if not price and not features:
            continue
        seen.add(name)
        plans.append(PricingPlan(name=name, price=price, features=features[:10]))
    return plans
