from pydantic import BaseModel

from app.schemas.scraper import SourceType


class SocialPost(BaseModel):
    image_url: str | None = None
    caption: str = ""
    is_video: bool = False


class SocialProfile(BaseModel):
    platform: SourceType
    handle: str
    display_name: str | None = None
    bio: str | None = None
    avatar_url: str | None = None
    cover_url: str | None = None
    follower_count: int | None = None
    following_count: int | None = None
    post_count: int | None = None
    website: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    category: str | None = None
    is_business: bool = False
    is_company: bool = False  # LinkedIn company page vs. personal profile
    posts: list[SocialPost] = []
