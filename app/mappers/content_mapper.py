"""Map between scraped records and the content generator's typed contracts."""

import logging

from app.schemas.content import ContentGenerationInput, GeneratedContent
from app.schemas.scraper import ScrapedData

logger = logging.getLogger(__name__)

_MAX_LIST_ITEMS = 8


def build_content_input(data: ScrapedData, name: str | None = None) -> ContentGenerationInput:
    """Build generator input from a scrape. An explicit name wins over the scraped title."""
    return ContentGenerationInput(
        name=(name or data.title or "Your Business").strip(),
        description=data.description,
        business_type=data.business_type,
        services=list(data.services),
        features=list(data.features),
    )


def _text(value: object) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _text_list(value: object) -> list[str] | None:
    if not isinstance(value, list):
        return None
    items = [item.strip() for item in value if isinstance(item, str) and item.strip()]
    return items[:_MAX_LIST_ITEMS] if items else None


def _service_descriptions(value: object) -> list[str] | None:
    """Accept plain strings or {name, description} objects."""
    if not isinstance(value, list):
        return None
    items: list[str] = []
    for item in value:
        if isinstance(item, str) and item.strip():
            items.append(item.strip())
        elif isinstance(item, dict):
            text = _text(item.get("description")) or _text(item.get("name"))
            if text:
                items.append(text)
    return items[:_MAX_LIST_ITEMS] if items else None


# JSON key -> (model field, validator)
_FIELDS = {
    "headline": ("headline", _text),
    "subheadline": ("subheadline", _text),
    "aboutText": ("about_text", _text),
    "ctaText": ("cta_text", _text),
    "services": ("services", _text_list),
    "features": ("features", _text_list),
    "metaDescription": ("meta_description", _text),
    "tagline": ("tagline", _text),
    "valuePropositions": ("value_propositions", _text_list),
    "serviceDescriptions": ("service_descriptions", _service_descriptions),
    "socialMediaBio": ("social_media_bio", _text),
}


def map_generated_content(raw: dict, fallback: GeneratedContent) -> GeneratedContent:
    """Take each field from the model output only when it has the expected shape."""
    values = fallback.model_dump()
    rejected: list[str] = []
    for key, (field, validate) in _FIELDS.items():
        # Accept snake_case keys as well
        value = raw.get(key, raw.get(field))
        if value is None:
            continue
        checked = validate(value)
        if checked is None:
            rejected.append(key)
            continue
        values[field] = checked
    if rejected:
        logger.info("Rejected malformed generated fields: %s", ", ".join(rejected))
    return GeneratedContent(**values)
