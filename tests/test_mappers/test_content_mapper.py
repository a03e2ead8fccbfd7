from app.mappers.content_mapper import build_content_input, map_generated_content
from app.schemas.content import ContentGenerationInput, GeneratedContent
from app.schemas.scraper import BusinessType, ScrapedData


def _fallback() -> GeneratedContent:
    return GeneratedContent(
        headline="Welcome",
        subheadline="Sub",
        about_text="About",
        cta_text="Get Started",
        services=["Consultation"],
        tagline="Excellence Delivered",
    )


# --- build_content_input ---


def test_build_input_from_scrape():
    data = ScrapedData(
        title="Glow Salon",
        description="Hair salon in Portland",
        business_type=BusinessType.beauty,
        services=["Haircuts", "Coloring"],
        features=["Free parking"],
    )
    result = build_content_input(data)
    assert result == ContentGenerationInput(
        name="Glow Salon",
        description="Hair salon in Portland",
        business_type=BusinessType.beauty,
        services=["Haircuts", "Coloring"],
        features=["Free parking"],
    )


def test_build_input_explicit_name_wins():
    assert build_content_input(ScrapedData(title="Home"), name=" Glow Salon ").name == "Glow Salon"


def test_build_input_default_name():
    assert build_content_input(ScrapedData()).name == "Your Business"


def test_build_input_copies_lists():
    data = ScrapedData(services=["A service"])
    result = build_content_input(data)
    result.services.append("Another")
    assert data.services == ["A service"]


# --- map_generated_content ---


def test_map_camel_case_keys():
    result = map_generated_content(
        {"headline": "Hi", "aboutText": "We cut hair.", "valuePropositions": ["Fast", "Friendly"]},
        _fallback(),
    )
    assert result.headline == "Hi"
    assert result.about_text == "We cut hair."
    assert result.value_propositions == ["Fast", "Friendly"]
    assert result.cta_text == "Get Started"


def test_map_snake_case_keys():
    result = map_generated_content({"cta_text": "Book Now", "social_media_bio": "Cuts & color"}, _fallback())
    assert result.cta_text == "Book Now"
    assert result.social_media_bio == "Cuts & color"


def test_map_rejects_wrong_shapes():
    result = map_generated_content(
        {"headline": ["not", "a", "string"], "services": "Haircuts", "features": [1, 2], "tagline": ""},
        _fallback(),
    )
    assert result.headline == "Welcome"
    assert result.services == ["Consultation"]
    assert result.features == []
    assert result.tagline == "Excellence Delivered"


def test_map_list_items_trimmed_and_capped():
    result = map_generated_content({"features": [f" Feature {i} " for i in range(12)] + [3]}, _fallback())
    assert result.features == [f"Feature {i}" for i in range(8)]


def test_map_service_descriptions_objects_and_strings():
    result = map_generated_content(
        {"serviceDescriptions": [
            {"name": "Haircuts", "description": "Precision cuts for every style."},
            {"name": "Coloring"},
            "Blowouts that last.",
            {"other": "ignored"},
        ]},
        _fallback(),
    )
    assert result.service_descriptions == ["Precision cuts for every style.", "Coloring", "Blowouts that last."]


def test_map_ignores_unknown_keys():
    result = map_generated_content({"testimonials": ["Great!"], "headline": "Hello"}, _fallback())
    assert result.headline == "Hello"
    assert not hasattr(result, "testimonials")
