import httpx
import respx
from httpx import Response

from app.exceptions.custom import ContentGenerationError

JOES_URL = "https://joes.example.com"

JOES_HTML = """
<html><head>
<title>Joe's Pizza | Home</title>
<meta name="description" content="Wood-fired pizza and cold drinks in Brooklyn since 1998.">
</head><body>
<p>See our menu and book reservations for Friday night.</p>
<a href="tel:7185550123">Call us</a>
</body></html>
"""


def _mock_joes():
    respx.get(JOES_URL).mock(
        return_value=Response(200, html=JOES_HTML, headers={"content-type": "text/html"})
    )


# --- GET /api/test-scraper ---


@respx.mock
async def test_test_scraper_summary(client):
    _mock_joes()
    resp = await client.get("/api/test-scraper", params={"url": JOES_URL})
    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["duration"].endswith("s")
    assert data["basicInfo"]["name"] == "Joe's Pizza"
    assert data["basicInfo"]["businessType"] == "restaurant"
    assert data["branding"]["primaryColor"] == "#6366f1"
    assert data["contact"]["phone"] == "(718) 555-0123"
    assert data["fullData"]["title"] == "Joe's Pizza"
    assert data["content"]["teamMembersCount"] == 0
    assert data["content"]["hasAboutContent"] is False


async def test_test_scraper_requires_url(client):
    resp = await client.get("/api/test-scraper")
    assert resp.status_code == 422
    assert resp.json() == {"detail": "A URL is required"}


# --- POST /scrape ---


@respx.mock
async def test_scrape_returns_camel_case_record(client):
    _mock_joes()
    resp = await client.post("/scrape", json={"url": "joes.example.com"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["title"] == "Joe's Pizza"
    assert data["businessType"] == "restaurant"
    assert data["sourceType"] == "website"
    assert data["secondaryColor"] == "#8152ff"
    assert "scrapedAt" in data


async def test_scrape_blank_url_rejected(client):
    resp = await client.post("/scrape", json={"url": "   "})
    assert resp.status_code == 422
    assert resp.json()["detail"] == "A URL is required"


async def test_scrape_missing_body_field(client):
    resp = await client.post("/scrape", json={})
    assert resp.status_code == 422


@respx.mock
async def test_scrape_unreachable_site_returns_default(client):
    respx.get("https://down.example.com").mock(side_effect=httpx.ConnectError("refused"))
    resp = await client.post("/scrape", json={"url": "https://down.example.com"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["title"] == ""
    assert data["businessType"] == "other"
    assert data["confidence"] == "low"
    assert data["products"] == []


# --- POST /sites/preview ---


@respx.mock
async def test_preview_with_template_content(client):
    _mock_joes()
    resp = await client.post("/sites/preview", json={"url": JOES_URL})
    assert resp.status_code == 200
    data = resp.json()
    assert data["scraped"]["businessType"] == "restaurant"
    assert data["content"]["headline"] == "Welcome to Joe's Pizza"
    assert data["content"]["ctaText"] == "Reserve a Table"
    assert data["needsUserInput"] is False


@respx.mock
async def test_preview_low_confidence_needs_user_input(client):
    respx.get("https://down.example.com").mock(return_value=Response(503))
    resp = await client.post("/sites/preview", json={"url": "https://down.example.com"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["needsUserInput"] is True
    assert data["content"]["headline"] == "Professional Solutions You Can Trust"


# --- POST /content ---


async def test_content_from_input(client):
    resp = await client.post(
        "/content",
        json={"name": "Glow Salon", "businessType": "beauty", "services": ["Haircuts", "Coloring"]},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["headline"] == "Discover Your Best Self"
    assert data["ctaText"] == "Book Now"
    assert data["services"] == ["Haircuts", "Coloring"]


async def test_content_rejects_unknown_business_type(client):
    resp = await client.post("/content", json={"name": "Glow Salon", "businessType": "spaceship"})
    assert resp.status_code == 422


async def test_content_generation_error_returns_502(client):
    from app.dependencies import get_content_generator
    from app.main import app

    class FailingGenerator:
        async def generate(self, data):
            raise ContentGenerationError("model unavailable")

    app.dependency_overrides[get_content_generator] = lambda: FailingGenerator()
    try:
        resp = await client.post("/content", json={"name": "Glow Salon"})
    finally:
        app.dependency_overrides.clear()
    assert resp.status_code == 502
    assert resp.json() == {"detail": "Content generation error: model unavailable"}
