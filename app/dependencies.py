from typing import Annotated

from fastapi import Depends, Request

from app.services.content_generator import ContentGeneratorService
from app.services.website_scraper import WebsiteScraperService


def get_website_scraper(request: Request) -> WebsiteScraperService:
    return request.app.state.website_scraper


def get_content_generator(request: Request) -> ContentGeneratorService:
    return request.app.state.content_generator


WebsiteScraperDep = Annotated[WebsiteScraperService, Depends(get_website_scraper)]
ContentGeneratorDep = Annotated[ContentGeneratorService, Depends(get_content_generator)]
