import logging
import sys
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from app.config import Settings
from app.exceptions.custom import ContentGenerationError, InvalidUrlError
from app.exceptions.handlers import (
    content_generation_error_handler,
    invalid_url_error_handler,
)
from app.routers.scraper import router as scraper_router
from app.services.content_generator import ContentGeneratorService
from app.services.fetcher import PageFetcher
from app.services.social_scraper import SocialScraperService
from app.services.website_scraper import WebsiteScraperService


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = Settings()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stdout,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)

    async with httpx.AsyncClient(timeout=30.0) as client:
        fetcher = PageFetcher(client, settings.fetch_timeout, settings.max_page_bytes)
        social = SocialScraperService(fetcher)

        app.state.website_scraper = WebsiteScraperService(
            fetcher,
            social,
            listing_paths=settings.product_listing_paths,
            soft_cap=settings.product_soft_cap,
            section_pages=settings.section_pages,
        )
        app.state.content_generator = ContentGeneratorService(
            settings.anthropic_api_key,
            model=settings.content_model,
            fallback_to_templates=settings.content_fallback_templates,
        )

        yield


app = FastAPI(title="Business Scraper", lifespan=lifespan)

app.add_exception_handler(InvalidUrlError, invalid_url_error_handler)
app.add_exception_handler(ContentGenerationError, content_generation_error_handler)

app.include_router(scraper_router)
