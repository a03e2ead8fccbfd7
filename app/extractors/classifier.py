"""Keyword scoring of a page into one of the fixed business types."""

import logging
import re

from app.extractors.html import parse_html
from app.schemas.scraper import BusinessType

logger = logging.getLogger(__name__)

MIN_HITS = 2
CONFIDENT_HITS = 4

# Ties resolve in this order so generic service wording never shadows commerce
PRIORITY = (
    BusinessType.ecommerce,
    BusinessType.restaurant,
    BusinessType.healthcare,
    BusinessType.fitness,
    BusinessType.beauty,
    BusinessType.realestate,
    BusinessType.education,
    BusinessType.agency,
    BusinessType.portfolio,
    BusinessType.service,
)

# (strong phrases worth 2 hits, ordinary keywords worth 1)
KEYWORDS: dict[BusinessType, tuple[tuple[str, ...], tuple[str, ...]]] = {
    BusinessType.ecommerce: (
        ("add to cart", "add to bag", "shopping cart", "buy now", "free shipping"),
        ("shop now", "checkout", "cart", "in stock", "sold out", "sale", "shipping", "returns", "wishlist"),
    ),
    BusinessType.restaurant: (
        ("order online", "book a table", "our menu", "dine-in", "takeout"),
        ("menu", "reservation", "restaurant", "cafe", "bistro", "cuisine", "appetizer", "entree",
         "dessert", "brunch", "pizza", "chef", "delivery", "bar", "grill"),
    ),
    BusinessType.healthcare: (
        ("book an appointment", "medical center", "new patients"),
        ("doctor", "clinic", "medical", "patient", "healthcare", "treatment", "therapy",
         "diagnosis", "physician", "dentist", "dental", "pharmacy", "clinician"),
    ),
    BusinessType.fitness: (
        ("personal trainer", "personal training", "free trial class"),
        ("gym", "fitness", "workout", "exercise", "membership", "crossfit", "yoga", "pilates",
         "bootcamp", "strength"),
    ),
    BusinessType.beauty: (
        ("hair salon", "nail salon", "beauty salon", "day spa"),
        ("salon", "spa", "beauty", "haircut", "nail", "massage", "facial", "skincare", "makeup",
         "stylist", "lash", "brow", "manicure", "pedicure"),
    ),
    BusinessType.realestate: (
        ("real estate", "homes for sale", "for rent", "open house"),
        ("property", "realtor", "mortgage", "listing", "apartment", "bedroom", "sqft", "mls",
         "broker", "condo"),
    ),
    BusinessType.education: (
        ("enroll now", "online course", "sign up for class"),
        ("course", "education", "certificate", "enroll", "lesson", "tutorial", "student",
         "curriculum", "tutor", "academy", "school"),
    ),
    BusinessType.agency: (
        ("case study", "digital agency", "creative agency", "marketing agency"),
        ("agency", "studio", "creative", "marketing", "branding", "campaign", "clients", "seo"),
    ),
    BusinessType.portfolio: (
        ("my work", "selected work", "hire me", "about me"),
        ("portfolio", "freelance", "freelancer", "designer", "developer", "photographer",
         "illustrator", "projects"),
    ),
    BusinessType.service: (
        ("free estimate", "free quote", "licensed and insured", "call us today"),
        ("services", "repair", "installation", "maintenance", "plumbing", "cleaning",
         "contractor", "consulting", "emergency", "quote"),
    ),
}

# Raw markup markers, matched case-insensitively as substrings
PLATFORM_MARKERS: dict[BusinessType, tuple[str, ...]] = {
    BusinessType.ecommerce: (
        "cdn.shopify.com", "shopify.theme", "woocommerce", "bigcommerce", "wix-ecommerce",
        "squarespace-commerce", "product-price", "price--sale", "data-product-id",
    ),
    BusinessType.restaurant: ("opentable.com", "doordash.com", "ubereats.com", "grubhub.com", "resy.com"),
    BusinessType.beauty: ("vagaro.com", "booksy.com", "fresha.com"),
    BusinessType.healthcare: ("zocdoc.com",),
}

URL_HINTS: dict[BusinessType, tuple[str, ...]] = {
    BusinessType.ecommerce: ("shop", "store", "boutique"),
    BusinessType.restaurant: ("pizza", "restaurant", "cafe", "grill", "kitchen", "bistro"),
    BusinessType.service: ("plumbing", "repair", "cleaning", "services"),
}

# Substring markers that suggest a store even when classification disagrees
_COMMERCE_MARKERS = (
    "add to cart", "add to bag", "shopping cart", "buy now", "cdn.shopify.com", "woocommerce",
    "bigcommerce", "product-price", "price--sale", "/cart", "checkout", "data-product-id",
    '"@type":"product"', '"@type": "product"',
)
COMMERCE_THRESHOLD = 2


def _keyword_re(keyword: str) -> re.Pattern:
    return re.compile(rf"\b{re.escape(keyword)}(?:s|es)?\b", re.I)


_COMPILED: dict[BusinessType, tuple[list[re.Pattern], list[re.Pattern]]] = {
    business_type: ([_keyword_re(k) for k in strong], [_keyword_re(k) for k in ordinary])
    for business_type, (strong, ordinary) in KEYWORDS.items()
}


def score_business_types(text: str, url: str = "", markup: str = "") -> dict[BusinessType, int]:
    """Count keyword hits per business type. Each keyword counts once."""
    scores: dict[BusinessType, int] = {}
    for business_type, (strong, ordinary) in _COMPILED.items():
        hits = 2 * sum(1 for pattern in strong if pattern.search(text))
        hits += sum(1 for pattern in ordinary if pattern.search(text))
        scores[business_type] = hits

    lowered_markup = markup.lower()
    for business_type, markers in PLATFORM_MARKERS.items():
        if any(marker in lowered_markup for marker in markers):
            scores[business_type] += 2

    lowered_url = url.lower()
    for business_type, hints in URL_HINTS.items():
        if any(hint in lowered_url for hint in hints):
            scores[business_type] += 1
    return scores


def best_type(scores: dict[BusinessType, int], threshold: int = MIN_HITS) -> BusinessType:
    best = BusinessType.other
    best_score = 0
    for business_type in PRIORITY:
        score = scores.get(business_type, 0)
        if score > best_score:
            best, best_score = business_type, score
    if best_score < threshold:
        return BusinessType.other
    return best


def is_ambiguous(scores: dict[BusinessType, int]) -> bool:
    top = max(scores.values(), default=0)
    return top < CONFIDENT_HITS or best_type(scores) == BusinessType.other


def page_text(html: str) -> str:
    soup = parse_html(html)
    for tag in soup(["script", "style", "noscript", "template"]):
        tag.decompose()
    meta = " ".join(
        m.get("content", "") for m in soup.find_all("meta") if m.get("content")
    )
    return f"{meta} {soup.get_text(' ')}"


def classify(html: str, url: str = "") -> BusinessType:
    scores = score_business_types(page_text(html), url, html)
    result = best_type(scores)
    logger.debug("Classified %s as %s (scores=%s)", url, result, scores)
    return result


def classify_text(text: str) -> BusinessType:
    """Classify a short bio, where a single hit is already a signal."""
    return best_type(score_business_types(text), threshold=1)


def is_likely_ecommerce(html: str) -> bool:
    lowered = html.lower()
    return sum(1 for marker in _COMMERCE_MARKERS if marker in lowered) >= COMMERCE_THRESHOLD
