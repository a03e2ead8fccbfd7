import logging
from collections.abc import Callable
from typing import TypeVar
from urllib.parse import urljoin

import httpx

from app.config import Settings
from app.extractors.branding import (
    derive_secondary_color,
    extract_description,
    extract_hero_image,
    extract_logo,
    extract_primary_color,
    extract_title,
)
from app.extractors.classifier import (
    best_type,
    is_ambiguous,
    is_likely_ecommerce,
    page_text,
    score_business_types,
)
from app.extractors.contact import (
    extract_address,
    extract_email,
    extract_opening_hours,
    extract_phone,
    extract_social_links,
)
from app.extractors.content import (
    MAX_FEATURES,
    MAX_GALLERY_IMAGES,
    MAX_PRICING_PLANS,
    MAX_SERVICES,
    MAX_TEAM_MEMBERS,
    MAX_TESTIMONIALS,
    extract_about_content,
    extract_features,
    extract_gallery_images,
    extract_pricing_info,
    extract_services,
    extract_team_members,
    extract_testimonials,
)
from app.extractors.html import origin_of, parse_html
from app.extractors.navigation import (
    MAX_SECTION_PAGES,
    SectionKind,
    SectionLink,
    extract_navigation_links,
)
from app.extractors.products import (
    extract_json_ld_products,
    extract_products,
    merge_products,
)
from app.schemas.scraper import (
    DEFAULT_PRIMARY_COLOR,
    BusinessType,
    Confidence,
    ProductData,
    ScrapedData,
)
from app.services.fetcher import PageFetcher
from app.services.social_scraper import SocialScraperService, detect_platform

logger = logging.getLogger(__name__)

T = TypeVar("T")

_DEFAULT_LISTING_PATHS = (
    "/products",
    "/shop",
    "/collections",
    "/collections/all",
    "/store",
    "/catalog",
    "/all-products",
)
_DEFAULT_SOFT_CAP = 8
_MAX_DESCRIPTION_CHARS = 300


def normalize_url(url: str) -> str:
    """Trim the URL and add https:// when no scheme is given."""
    url = url.strip()
    if url and "://" not in url:
        url = f"https://{url.lstrip('/')}"
    return url


def _safe(name: str, func: Callable[[], T], default: T) -> T:
    """Run one extractor; a failure is logged and replaced by its default."""
    try:
        return func()
    except Exception:
        logger.exception("Extractor %s failed", name)
        return default


def _merge_unique(existing: list, new: list, limit: int) -> list:
    merged = list(existing)
    for item in new:
        if len(merged) >= limit:
            break
        if item not in merged:
            merged.append(item)
    return merged


def apply_section_page(data: ScrapedData, kind: SectionKind, html: str, url: str) -> None:
    """Merge what one section page adds into the record, in place."""
    soup = parse_html(html)
    if kind == SectionKind.services:
        data.services = _merge_unique(data.services, extract_services(soup, headings=True), MAX_SERVICES)
    elif kind == SectionKind.testimonials:
        known = {t.text for t in data.testimonials}
        new = [t for t in extract_testimonials(soup) if t.text not in known]
        data.testimonials = (data.testimonials + new)[:MAX_TESTIMONIALS]
    elif kind in (SectionKind.portfolio, SectionKind.gallery):
        images = extract_gallery_images(soup, url, exclude=(data.logo, data.hero_image))
        data.gallery_images = _merge_unique(data.gallery_images, images, MAX_GALLERY_IMAGES)
    elif kind == SectionKind.about:
        data.about_content = extract_about_content(soup) or data.about_content
        if not data.description and data.about_content:
            description = data.about_content
            if len(description) > _MAX_DESCRIPTION_CHARS:
                description = description[:_MAX_DESCRIPTION_CHARS].rsplit(" ", 1)[0]
            data.description = description
    elif kind == SectionKind.team:
        known = {m.name for m in data.team_members}
        new = [m for m in extract_team_members(soup, url) if m.name not in known]
        data.team_members = (data.team_members + new)[:MAX_TEAM_MEMBERS]
    elif kind == SectionKind.pricing:
        known = {p.name for p in data.pricing_info}
        new = [p for p in extract_pricing_info(soup) if p.name not in known]
        data.pricing_info = (data.pricing_info + new)[:MAX_PRICING_PLANS]
    data.features = _merge_unique(data.features, extract_features(soup), MAX_FEATURES)


def compute_confidence(data: ScrapedData) -> Confidence:
    has_identity = bool(data.title) and bool(data.description)
    signals = sum([
        data.logo is not None,
        bool(data.phone or data.email or data.address),
        bool(data.social_links),
        bool(data.products),
        bool(data.services),
        bool(data.hero_image or data.gallery_images),
    ])
    if has_identity and signals >= 3:
        return Confidence.high
    if data.title or data.description:
        return Confidence.medium
    return Confidence.low


def parse_website(html: str, url: str) -> ScrapedData:
    """Run every extractor over one page. Each field degrades on its own."""
    soup = parse_html(html)

    logo = _safe("logo", lambda: extract_logo(soup, url), None)
    hero_image = _safe("hero_image", lambda: extract_hero_image(soup, url), None)
    primary_color = _safe("primary_color", lambda: extract_primary_color(soup), DEFAULT_PRIMARY_COLOR)
    products = _safe("products", lambda: extract_products(soup, url), [])

    scores = _safe("business_type", lambda: score_business_types(page_text(html), url, html), {})
    business_type = best_type(scores)
    if products and is_ambiguous(scores):
        business_type = BusinessType.ecommerce

    data = ScrapedData(
        title=_safe("title", lambda: extract_title(soup), ""),
        description=_safe("description", lambda: extract_description(soup), ""),
        logo=logo,
        hero_image=hero_image,
        primary_color=primary_color,
        secondary_color=derive_secondary_color(primary_color),
        business_type=business_type,
        phone=_safe("phone", lambda: extract_phone(soup), None),
        email=_safe("email", lambda: extract_email(soup), None),
        address=_safe("address", lambda: extract_address(soup), None),
        social_links=_safe("social_links", lambda: extract_social_links(soup), {}),
        products=products,
        services=_safe("services", lambda: extract_services(soup), []),
        opening_hours=_safe("opening_hours", lambda: extract_opening_hours(soup), None),
        features=_safe("features", lambda: extract_features(soup), []),
        testimonials=_safe("testimonials", lambda: extract_testimonials(soup), []),
        gallery_images=_safe(
            "gallery_images",
            lambda: extract_gallery_images(soup, url, exclude=(logo, hero_image)),
            [],
        ),
    )
    data.confidence = compute_confidence(data)
    return data


class WebsiteScraperService:
    def __init__(
        self,
        fetcher: PageFetcher,
        social: SocialScraperService,
        listing_paths: tuple[str, ...] | list[str] = _DEFAULT_LISTING_PATHS,
        soft_cap: int = _DEFAULT_SOFT_CAP,
        section_pages: int = MAX_SECTION_PAGES,
    ):
        self._fetcher = fetcher
        self._social = social
        self._listing_paths = tuple(listing_paths)
        self._soft_cap = soft_cap
        self._section_pages = section_pages

    async def scrape(self, url: str) -> ScrapedData:
        """Scrape a business website or social profile. Best-effort, never raises."""
        try:
            return await self._do_scrape(url)
        except Exception:
            logger.exception("Website scrape failed for %s", url)
            return ScrapedData()

    async def _do_scrape(self, url: str) -> ScrapedData:
        url = normalize_url(url)
        if not url:
            return ScrapedData()

        if detect_platform(url) is not None:
            return await self._social.scrape(url)

        html = await self._fetcher.fetch_page(url)
        if not html:
            logger.info("Main page unavailable for %s", url)
            return ScrapedData()

        data = parse_website(html, url)
        soup = parse_html(html)

        if self._section_pages > 0:
            links = _safe(
                "navigation", lambda: extract_navigation_links(soup, url, limit=self._section_pages), []
            )
            await self._crawl_sections(data, links)

        if not data.products and (
            data.business_type == BusinessType.ecommerce or is_likely_ecommerce(html)
        ):
            data.business_type = BusinessType.ecommerce
            data.products = await self._scrape_listing_pages(url)

        if not data.products:
            data.products = _safe(
                "json_ld_deep", lambda: extract_json_ld_products(soup, url, deep=True), []
            )

        # Products found by a later stage still settle an undecided classification
        if data.products and data.business_type != BusinessType.ecommerce:
            scores = _safe("business_type", lambda: score_business_types(page_text(html), url, html), {})
            if is_ambiguous(scores):
                data.business_type = BusinessType.ecommerce

        data.confidence = compute_confidence(data)
        logger.info(
            "Scraped %s: type=%s, products=%d, services=%d, confidence=%s",
            url, data.business_type, len(data.products), len(data.services), data.confidence,
        )
        return data

    async def _crawl_sections(self, data: ScrapedData, links: list[SectionLink]) -> None:
        """Fetch the linked section pages one at a time and merge what each adds."""
        for link in links:
            try:
                html = await self._fetcher.fetch_page(link.url)
                if not html:
                    continue
                apply_section_page(data, link.kind, html, link.url)
            except Exception:
                logger.exception("Section page %s failed", link.url)
                continue
            logger.debug("Section page %s (%s) merged", link.url, link.kind)

    async def _scrape_listing_pages(self, url: str) -> list[ProductData]:
        """Fetch candidate listing pages one at a time until the soft cap is met."""
        origin = origin_of(url)
        products: list[ProductData] = []
        for path in self._listing_paths:
            if len(products) >= self._soft_cap:
                break
            candidate = urljoin(origin, path)
            try:
                html = await self._fetcher.fetch_page(candidate)
                if not html:
                    continue
                found = extract_products(parse_html(html), candidate, listing_page=True)
            except Exception:
                logger.exception("Listing page %s failed", candidate)
                continue
            products = merge_products(products, found)
            logger.debug("Listing page %s: %d products (total %d)", candidate, len(found), len(products))
        return products


async def scrape_website(url: str, settings: Settings | None = None) -> ScrapedData:
    """Run the pipeline once with a short-lived HTTP client."""
    settings = settings or Settings()
    async with httpx.AsyncClient() as client:
        fetcher = PageFetcher(client, settings.fetch_timeout, settings.max_page_bytes)
        service = WebsiteScraperService(
            fetcher,
            SocialScraperService(fetcher),
            listing_paths=settings.product_listing_paths,
            soft_cap=settings.product_soft_cap,
            section_pages=settings.section_pages,
        )
        return await service.scrape(url)
