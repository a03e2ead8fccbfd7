import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.exceptions.custom import ContentGenerationError
from app.schemas.content import ContentGenerationInput
from app.schemas.scraper import BusinessType
from app.services.content_generator import (
    DEFAULT_SERVICES,
    MODEL,
    ContentGeneratorService,
    template_content,
)


def _make_response(text: str):
    """Build a mock Anthropic response."""
    block = MagicMock()
    block.text = text
    resp = MagicMock()
    resp.content = [block]
    return resp


@pytest.fixture
def service():
    return ContentGeneratorService(api_key="test-key")


@pytest.fixture
def pizza():
    return ContentGenerationInput(
        name="Joe's Pizza",
        description="Wood-fired pizza in Brooklyn since 1998.",
        business_type=BusinessType.restaurant,
        services=["Dine-In", "Catering"],
    )


GENERATED = {
    "headline": "Brooklyn's Wood-Fired Favorite",
    "subheadline": "Hand-stretched pies baked in a brick oven every night",
    "aboutText": "Joe's Pizza has served Brooklyn since 1998.",
    "ctaText": "Order Tonight",
    "services": ["Dine-In", "Catering"],
    "features": ["Brick oven", "Family recipes"],
    "metaDescription": "Wood-fired pizza in Brooklyn.",
    "tagline": "Fired Up Since 1998",
    "valuePropositions": ["Fresh dough", "Local produce", "Quick service", "Cozy room"],
    "serviceDescriptions": [{"name": "Catering", "description": "Pizza for your next party."}, "Dine-in seating for 40."],
    "socialMediaBio": "Wood-fired pizza in Brooklyn",
}


# --- templates ---


def test_template_restaurant(pizza):
    content = template_content(pizza)
    assert content.headline == "Welcome to Joe's Pizza"
    assert content.cta_text == "Reserve a Table"
    assert content.services == ["Dine-In", "Catering"]
    assert content.about_text.startswith("Wood-fired pizza in Brooklyn since 1998.")
    assert len(content.meta_description) <= 155
    assert len(content.value_propositions) == 4


def test_template_ecommerce_defaults():
    content = template_content(ContentGenerationInput(name="Thread & Co", business_type=BusinessType.ecommerce))
    assert content.headline == "Shop the Best at Thread & Co"
    assert content.cta_text == "Shop Now"
    assert content.services == DEFAULT_SERVICES[BusinessType.ecommerce]


def test_template_other_reads_like_service():
    other = template_content(ContentGenerationInput(name="Acme", business_type=BusinessType.other))
    service = template_content(ContentGenerationInput(name="Acme", business_type=BusinessType.service))
    assert other == service
    assert other.cta_text == "Get Started"


@pytest.mark.parametrize("business_type", list(BusinessType))
def test_template_covers_every_type(business_type):
    content = template_content(ContentGenerationInput(name="Acme", business_type=business_type))
    assert content.headline and content.subheadline and content.cta_text
    assert content.services


# --- generate ---


async def test_generate_without_key_uses_templates(pizza):
    service = ContentGeneratorService(api_key="")
    assert service._client is None
    content = await service.generate(pizza)
    assert content == template_content(pizza)


async def test_generate_success(service, pizza):
    mock_resp = _make_response(json.dumps(GENERATED))
    with patch.object(service._client.messages, "create", new_callable=AsyncMock, return_value=mock_resp) as create:
        content = await service.generate(pizza)

    assert content.headline == "Brooklyn's Wood-Fired Favorite"
    assert content.cta_text == "Order Tonight"
    assert content.service_descriptions == ["Pizza for your next party.", "Dine-in seating for 40."]
    assert content.value_propositions == ["Fresh dough", "Local produce", "Quick service", "Cozy room"]
    kwargs = create.call_args.kwargs
    assert kwargs["model"] == MODEL
    assert "Joe's Pizza" in kwargs["messages"][0]["content"]
    assert "restaurant" in kwargs["messages"][0]["content"]


async def test_generate_with_markdown_fences(service, pizza):
    mock_resp = _make_response(f"```json\n{json.dumps({'headline': 'Slice of Heaven'})}\n```")
    with patch.object(service._client.messages, "create", new_callable=AsyncMock, return_value=mock_resp):
        content = await service.generate(pizza)
    assert content.headline == "Slice of Heaven"
    # Missing keys keep the template copy
    assert content.cta_text == "Reserve a Table"


async def test_generate_malformed_fields_fall_back_per_field(service, pizza):
    mock_resp = _make_response(json.dumps({"headline": 42, "ctaText": "  ", "services": "Dine-In", "tagline": "Hot & Fresh"}))
    with patch.object(service._client.messages, "create", new_callable=AsyncMock, return_value=mock_resp):
        content = await service.generate(pizza)
    assert content.headline == "Welcome to Joe's Pizza"
    assert content.cta_text == "Reserve a Table"
    assert content.services == ["Dine-In", "Catering"]
    assert content.tagline == "Hot & Fresh"


async def test_generate_api_error_uses_templates(service, pizza):
    with patch.object(service._client.messages, "create", new_callable=AsyncMock, side_effect=Exception("API error")):
        content = await service.generate(pizza)
    assert content == template_content(pizza)


async def test_generate_unparseable_uses_templates(service, pizza):
    mock_resp = _make_response("I'd be happy to help with your website!")
    with patch.object(service._client.messages, "create", new_callable=AsyncMock, return_value=mock_resp):
        content = await service.generate(pizza)
    assert content.headline == "Welcome to Joe's Pizza"


async def test_generate_raises_without_template_fallback(pizza):
    service = ContentGeneratorService(api_key="test-key", fallback_to_templates=False)
    with patch.object(service._client.messages, "create", new_callable=AsyncMock, side_effect=Exception("API error")):
        with pytest.raises(ContentGenerationError):
            await service.generate(pizza)


# --- _try_parse_json ---


def test_try_parse_json_direct():
    assert ContentGeneratorService._try_parse_json('{"a": 1}') == {"a": 1}


def test_try_parse_json_fenced():
    assert ContentGeneratorService._try_parse_json('```json\n{"a": 1}\n```') == {"a": 1}


def test_try_parse_json_fallback_regex():
    assert ContentGeneratorService._try_parse_json('Sure! {"a": 1} Enjoy.') == {"a": 1}


def test_try_parse_json_rejects_non_objects():
    assert ContentGeneratorService._try_parse_json("[1, 2]") is None
    assert ContentGeneratorService._try_parse_json("no json here") is None
