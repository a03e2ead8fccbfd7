from __future__ import annotations

from datetime import datetime, timezone
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

DEFAULT_PRIMARY_COLOR = "#6366f1"
# derive_secondary_color(DEFAULT_PRIMARY_COLOR)
DEFAULT_SECONDARY_COLOR = "#8152ff"

SOCIAL_PLATFORMS = ("instagram", "facebook", "twitter", "linkedin", "youtube", "tiktok")


class BusinessType(StrEnum):
    ecommerce = "ecommerce"
    restaurant = "restaurant"
    service = "service"
    portfolio = "portfolio"
    agency = "agency"
    healthcare = "healthcare"
    fitness = "fitness"
    beauty = "beauty"
    realestate = "realestate"
    education = "education"
    other = "other"


class SourceType(StrEnum):
    website = "website"
    instagram = "instagram"
    facebook = "facebook"
    tiktok = "tiktok"
    twitter = "twitter"
    linkedin = "linkedin"


class Confidence(StrEnum):
    high = "high"
    medium = "medium"
    low = "low"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProductData(_CamelModel):
    name: str
    description: str | None = None
    price: float | None = None
    sale_price: float | None = None
    image: str | None = None
    category: str | None = None
    url: str | None = None


class Testimonial(_CamelModel):
    name: str
    text: str
    rating: float | None = None


class TeamMember(_CamelModel):
    name: str
    role: str = ""
    image: str | None = None
    bio: str | None = None


class PricingPlan(_CamelModel):
    name: str
    price: str = ""
    features: list[str] = []


def dedupe_products(products: list[ProductData]) -> list[ProductData]:
    """Drop products whose name was already seen. First occurrence wins."""
    seen: set[str] = set()
    unique: list[ProductData] = []
    for product in products:
        if product.name in seen:
            continue
        seen.add(product.name)
        unique.append(product)
    return unique


class ScrapedData(_CamelModel):
    title: str = ""
    description: str = ""
    logo: str | None = None
    hero_image: str | None = None
    primary_color: str = DEFAULT_PRIMARY_COLOR
    secondary_color: str = DEFAULT_SECONDARY_COLOR
    business_type: BusinessType = BusinessType.other
    phone: str | None = None
    email: str | None = None
    address: str | None = None
    social_links: dict[str, str] = {}  # platform -> URL, plus "website"
    products: list[ProductData] = []
    services: list[str] = []
    opening_hours: dict[str, str] | None = None
    features: list[str] = []
    testimonials: list[Testimonial] = []
    gallery_images: list[str] = []
    about_content: str = ""
    team_members: list[TeamMember] = []
    pricing_info: list[PricingPlan] = []
    source_type: SourceType = SourceType.website
    confidence: Confidence = Confidence.low
    scraped_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("products")
    @classmethod
    def _unique_product_names(cls, value: list[ProductData]) -> list[ProductData]:
        return dedupe_products(value)
