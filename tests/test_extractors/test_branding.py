from app.extractors.branding import (
    derive_secondary_color,
    extract_description,
    extract_hero_image,
    extract_logo,
    extract_primary_color,
    extract_title,
    normalize_hex,
)
from app.extractors.html import parse_html
from app.schemas.scraper import DEFAULT_PRIMARY_COLOR, DEFAULT_SECONDARY_COLOR

BASE = "https://shop.example.org/"


def _soup(head: str = "", body: str = ""):
    return parse_html(f"<html><head>{head}</head><body>{body}</body></html>")


# --- Title ---


def test_title_prefers_og_title():
    soup = _soup('<meta property="og:title" content="Joe&#39;s Pizza"><title>Home | Joe</title>')
    assert extract_title(soup) == "Joe's Pizza"


def test_title_strips_site_suffix():
    soup = _soup("<title>Bloom Florist | Home</title>")
    assert extract_title(soup) == "Bloom Florist"


def test_title_strips_dash_suffix():
    soup = _soup("<title>Bloom Florist - Fresh flowers delivered</title>")
    assert extract_title(soup) == "Bloom Florist"


def test_title_falls_back_to_h1():
    soup = _soup(body="<h1>Corner Bakery</h1>")
    assert extract_title(soup) == "Corner Bakery"


def test_title_empty_when_missing():
    assert extract_title(_soup()) == ""


# --- Description ---


def test_description_from_meta():
    soup = _soup('<meta name="description" content="Wood-fired pizza in the heart of downtown.">')
    assert extract_description(soup) == "Wood-fired pizza in the heart of downtown."


def test_description_skips_short_meta_and_uses_hero_paragraph():
    soup = _soup(
        '<meta name="description" content="Pizza">',
        '<p class="hero-subtitle">Hand-stretched dough and local produce since 1998.</p>',
    )
    assert extract_description(soup) == "Hand-stretched dough and local produce since 1998."


def test_description_first_long_paragraph():
    soup = _soup(body="<p>Hi</p><p>We repair bicycles of every make and model, fast and at fair prices.</p>")
    assert extract_description(soup).startswith("We repair bicycles")


# --- Logo ---


def test_logo_in_header_resolved():
    soup = _soup(body='<header><a class="site-logo" href="/"><img src="/img/brand.png"></a></header>')
    assert extract_logo(soup, BASE) == "https://shop.example.org/img/brand.png"


def test_logo_by_alt_text():
    soup = _soup(body='<img src="https://cdn.example.org/a.png" alt="Acme logo">')
    assert extract_logo(soup, BASE) == "https://cdn.example.org/a.png"


def test_logo_falls_back_to_apple_touch_icon():
    soup = _soup('<link rel="apple-touch-icon" href="/apple-icon.png"><link rel="icon" href="/favicon.ico">')
    assert extract_logo(soup, BASE) == "https://shop.example.org/apple-icon.png"


def test_logo_none_when_missing():
    assert extract_logo(_soup(body="<p>text</p>"), BASE) is None


# --- Hero image ---


def test_hero_from_og_image():
    soup = _soup('<meta property="og:image" content="//cdn.example.org/hero.jpg">')
    assert extract_hero_image(soup, BASE) == "https://cdn.example.org/hero.jpg"


def test_hero_skips_logo_og_image():
    soup = _soup(
        '<meta property="og:image" content="/logo.png">',
        '<section class="hero"><img src="/images/storefront.jpg"></section>',
    )
    assert extract_hero_image(soup, BASE) == "https://shop.example.org/images/storefront.jpg"


def test_hero_from_background_image():
    soup = _soup(body="<section class=\"banner\" style=\"background-image: url('/bg/main.jpg')\"></section>")
    assert extract_hero_image(soup, BASE) == "https://shop.example.org/bg/main.jpg"


# --- Colors ---


def test_primary_color_from_theme_color():
    soup = _soup('<meta name="theme-color" content="#FF5733">')
    assert extract_primary_color(soup) == "#ff5733"


def test_primary_color_from_css_variable():
    soup = _soup("<style>:root { --brand-color: #0a0; }</style>")
    assert extract_primary_color(soup) == "#00aa00"


def test_primary_color_fallback():
    assert extract_primary_color(_soup(body="<p>plain</p>")) == DEFAULT_PRIMARY_COLOR


def test_invalid_theme_color_ignored():
    soup = _soup('<meta name="theme-color" content="rgb(1,2,3)">')
    assert extract_primary_color(soup) == DEFAULT_PRIMARY_COLOR


def test_secondary_of_default_matches_constant():
    assert derive_secondary_color(DEFAULT_PRIMARY_COLOR) == DEFAULT_SECONDARY_COLOR


def test_secondary_is_deterministic():
    assert derive_secondary_color("#123456") == derive_secondary_color("#123456")


def test_secondary_differs_from_primary():
    for color in ("#000000", "#ffffff", "#ff00ff", "#00ff00", "#6366f1", "#1e1e1e"):
        assert derive_secondary_color(color) != color


def test_secondary_shifts_back_when_clamped():
    # +30/-20/+40 clamps magenta to itself, so the shift reverses
    assert derive_secondary_color("#ff00ff") == "#e114d7"


def test_normalize_hex():
    assert normalize_hex("#ABC") == "#aabbcc"
    assert normalize_hex("blue") is None
    assert normalize_hex(None) is None
