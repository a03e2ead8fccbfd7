from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.schemas.content import GeneratedContent
from app.schemas.scraper import ProductData, ScrapedData, Testimonial


class ScrapeRequest(BaseModel):
    url: str


class BasicInfo(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str
    description: str
    business_type: str
    source_type: str
    confidence: str


class BrandingInfo(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    has_logo: bool
    logo_url: str | None = None
    has_hero_image: bool
    hero_image_url: str | None = None
    primary_color: str
    secondary_color: str
    gallery_images_count: int


class ContactInfo(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    phone: str | None = None
    email: str | None = None
    address: str | None = None
    social_links: dict[str, str] = {}
    opening_hours: dict[str, str] | None = None


class ContentSummary(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    services_count: int
    services: list[str] = []
    features_count: int
    features: list[str] = []
    products_count: int
    products: list[ProductData] = []
    testimonials_count: int
    testimonials: list[Testimonial] = []
    team_members_count: int = 0
    pricing_plans_count: int = 0
    has_about_content: bool = False


class ScrapeSummaryResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool
    duration: str
    basic_info: BasicInfo
    branding: BrandingInfo
    contact: ContactInfo
    content: ContentSummary
    full_data: ScrapedData


class SitePreviewResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    scraped: ScrapedData
    content: GeneratedContent
    needs_user_input: bool
