import logging
import time

from fastapi import APIRouter, Query

from app.dependencies import ContentGeneratorDep, WebsiteScraperDep
from app.exceptions.custom import InvalidUrlError
from app.mappers.content_mapper import build_content_input
from app.schemas.content import ContentGenerationInput, GeneratedContent
from app.schemas.responses import (
    BasicInfo,
    BrandingInfo,
    ContactInfo,
    ContentSummary,
    ScrapeRequest,
    ScrapeSummaryResponse,
    SitePreviewResponse,
)
from app.schemas.scraper import Confidence, ScrapedData

logger = logging.getLogger(__name__)

router = APIRouter()


def _require_url(url: str | None) -> str:
    if not url or not url.strip():
        raise InvalidUrlError("A URL is required")
    return url.strip()


def summarize(data: ScrapedData, duration: float) -> ScrapeSummaryResponse:
    return ScrapeSummaryResponse(
        success=True,
        duration=f"{duration:.2f}s",
        basic_info=BasicInfo(
            name=data.title,
            description=data.description[:200],
            business_type=data.business_type,
            source_type=data.source_type,
            confidence=data.confidence,
        ),
        branding=BrandingInfo(
            has_logo=data.logo is not None,
            logo_url=data.logo,
            has_hero_image=data.hero_image is not None,
            hero_image_url=data.hero_image,
            primary_color=data.primary_color,
            secondary_color=data.secondary_color,
            gallery_images_count=len(data.gallery_images),
        ),
        contact=ContactInfo(
            phone=data.phone,
            email=data.email,
            address=data.address,
            social_links=data.social_links,
            opening_hours=data.opening_hours,
        ),
        content=ContentSummary(
            services_count=len(data.services),
            services=data.services[:10],
            features_count=len(data.features),
            features=data.features[:10],
            products_count=len(data.products),
            products=data.products[:5],
            testimonials_count=len(data.testimonials),
            testimonials=data.testimonials[:3],
            team_members_count=len(data.team_members),
            pricing_plans_count=len(data.pricing_info),
            has_about_content=bool(data.about_content),
        ),
        full_data=data,
    )


@router.get("/api/test-scraper", response_model=ScrapeSummaryResponse)
async def test_scraper(
    scraper: WebsiteScraperDep,
    url: str | None = Query(default=None),
) -> ScrapeSummaryResponse:
    target = _require_url(url)
    started = time.perf_counter()
    data = await scraper.scrape(target)
    return summarize(data, time.perf_counter() - started)


@router.post("/scrape", response_model=ScrapedData)
async def scrape(request: ScrapeRequest, scraper: WebsiteScraperDep) -> ScrapedData:
    return await scraper.scrape(_require_url(request.url))


@router.post("/sites/preview", response_model=SitePreviewResponse)
async def preview_site(
    request: ScrapeRequest,
    scraper: WebsiteScraperDep,
    generator: ContentGeneratorDep,
) -> SitePreviewResponse:
    data = await scraper.scrape(_require_url(request.url))
    content = await generator.generate(build_content_input(data))
    needs_user_input = data.confidence == Confidence.low
    if needs_user_input:
        logger.info("Low-confidence scrape for %s, asking for user input", request.url)
    return SitePreviewResponse(scraped=data, content=content, needs_user_input=needs_user_input)


@router.post("/content", response_model=GeneratedContent)
async def generate_content(
    request: ContentGenerationInput, generator: ContentGeneratorDep
) -> GeneratedContent:
    return await generator.generate(request)
