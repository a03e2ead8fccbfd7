from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.schemas.scraper import BusinessType


class ContentGenerationInput(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str
    description: str = ""
    business_type: BusinessType = BusinessType.other
    services: list[str] = []
    features: list[str] = []


class GeneratedContent(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    headline: str
    subheadline: str
    about_text: str
    cta_text: str
    services: list[str] = []
    features: list[str] = []
    meta_description: str | None = None
    tagline: str | None = None
    value_propositions: list[str] = []
    service_descriptions: list[str] = []
    social_media_bio: str | None = None
