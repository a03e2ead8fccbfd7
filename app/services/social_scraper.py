import json
import logging
import math
import re
from urllib.parse import parse_qs, urlparse

from bs4 import BeautifulSoup

from app.extractors.classifier import classify_text, is_ambiguous, score_business_types
from app.extractors.contact import (
    extract_address,
    extract_email,
    extract_phone,
    find_email_in_text,
    find_phone_in_text,
    format_phone,
    platform_for_url,
)
from app.extractors.html import clean_text, element_text, host_matches, meta_content, parse_html
from app.extractors.products import parse_price
from app.schemas.scraper import (
    BusinessType,
    Confidence,
    ProductData,
    ScrapedData,
    SourceType,
)
from app.schemas.social import SocialPost, SocialProfile
from app.services.fetcher import PageFetcher

logger = logging.getLogger(__name__)

_PLATFORM_HOSTS: dict[SourceType, tuple[str, ...]] = {
    SourceType.instagram: ("instagram.com", "instagr.am"),
    SourceType.facebook: ("facebook.com", "fb.com"),
    SourceType.tiktok: ("tiktok.com",),
    SourceType.twitter: ("twitter.com", "x.com"),
    SourceType.linkedin: ("linkedin.com",),
}

BRAND_COLORS: dict[SourceType, tuple[str, str]] = {
    SourceType.instagram: ("#e1306c", "#833ab4"),
    SourceType.facebook: ("#1877f2", "#42b72a"),
    SourceType.tiktok: ("#00f2ea", "#ff0050"),
    SourceType.twitter: ("#1da1f2", "#14171a"),
    SourceType.linkedin: ("#0a66c2", "#004182"),
}

# First path segments that are never a profile handle
_RESERVED_PATHS: dict[SourceType, frozenset[str]] = {
    SourceType.instagram: frozenset({"p", "reel", "reels", "stories", "explore", "accounts", "api", "tv", "direct"}),
    SourceType.facebook: frozenset({"sharer", "sharer.php", "share", "login", "login.php", "groups", "events", "watch", "marketplace", "help", "dialog", "plugins"}),
    SourceType.twitter: frozenset({"home", "intent", "share", "i", "search", "hashtag", "explore", "settings", "login"}),
}

_HANDLE_RE = re.compile(r"^[A-Za-z0-9._-]+$")

_LOGIN_WALL_MARKERS = (
    "loginform", "login_form", "/accounts/login", "authwall", "you must log in",
    "log in to continue", "sign in to view", "join linkedin", "log into facebook",
)
_GENERIC_TITLE_RE = re.compile(
    r"^(?:instagram|facebook|tiktok.*|x|twitter|linkedin|log ?in.*|sign ?in.*|login.*)$", re.I
)
# og:description text the platforms serve on their own login pages
_LOGIN_TEXT_RE = re.compile(
    r"^(?:log ?in(?:to)?|sign ?in|sign up)\b|create an account or log in|log in or sign up", re.I
)

_SHARED_DATA_RE = re.compile(r"window\._sharedData\s*=\s*(\{.+?\});\s*</script>", re.S)
_ADDITIONAL_DATA_RE = re.compile(
    r"window\.__additionalDataLoaded\s*\(\s*['\"][^'\"]*['\"]\s*,\s*(\{.+?\})\s*\)\s*;?\s*</script>", re.S
)
_IG_COUNTS_RE = {
    "follower_count": re.compile(r"([\d.,]+\s*[KMB]?)\s+Followers", re.I),
    "following_count": re.compile(r"([\d.,]+\s*[KMB]?)\s+Following", re.I),
    "post_count": re.compile(r"([\d.,]+\s*[KMB]?)\s+Posts", re.I),
}
_IG_BIO_RE = re.compile(r"on Instagram:\s*[\"“](.+?)[\"”]\s*$", re.S)
_TITLE_NAME_RE = re.compile(r"^([^(@•|]+)")
_TITLE_SUFFIX_RE = re.compile(r"\s*(?:[|•/-]\s*(?:Instagram|Facebook|TikTok|X|Twitter|LinkedIn)\b.*)$", re.I)

_BIO_SPLIT_RE = re.compile(r"[•·|\n,;]|[\U0001F300-\U0001FAFF☀-➿]")
_CAPTION_PRICE_RE = re.compile(r"[$£€]\s?\d+(?:[.,]\d{2})?")
_CAPTION_NAME_RE = re.compile(r"^([^.\n!?#]+)")

MAX_SOCIAL_POSTS = 12


def _host(url: str) -> str:
    if "://" not in url:
        url = f"https://{url}"
    try:
        return urlparse(url).netloc.lower()
    except ValueError:
        return ""


def detect_platform(url: str) -> SourceType | None:
    """Return the social platform for a profile URL, by host."""
    host = _host(url)
    if not host:
        return None
    for platform, domains in _PLATFORM_HOSTS.items():
        if any(host_matches(host, d) for d in domains):
            return platform
    return None


def extract_handle(platform: SourceType, url: str) -> tuple[str | None, bool]:
    """Return (handle, is_company). LinkedIn yields the company or profile id."""
    if "://" not in url:
        url = f"https://{url}"
    parsed = urlparse(url)
    segments = [s for s in parsed.path.split("/") if s]

    if platform == SourceType.linkedin:
        if len(segments) >= 2 and segments[0] in ("company", "school", "showcase"):
            return segments[1], True
        if len(segments) >= 2 and segments[0] == "in":
            return segments[1], False
        return None, False

    if platform == SourceType.facebook:
        if segments and segments[0] == "profile.php":
            ids = parse_qs(parsed.query).get("id")
            return (ids[0], False) if ids else (None, False)
        if len(segments) >= 2 and segments[0] in ("pages", "pg"):
            segments = segments[1:]

    if platform == SourceType.tiktok:
        handle = next((s[1:] for s in segments if s.startswith("@")), None)
        return (handle, False) if handle and _HANDLE_RE.match(handle) else (None, False)

    if not segments:
        return None, False
    handle = segments[0].lstrip("@")
    if handle.lower() in _RESERVED_PATHS.get(platform, frozenset()) or not _HANDLE_RE.match(handle):
        return None, False
    return handle, False


def profile_url(platform: SourceType, handle: str, is_company: bool = False, original: str = "") -> str:
    if platform == SourceType.instagram:
        return f"https://www.instagram.com/{handle}/"
    if platform == SourceType.facebook:
        if handle.isdigit() and "profile.php" in original:
            return f"https://www.facebook.com/profile.php?id={handle}"
        return f"https://www.facebook.com/{handle}"
    if platform == SourceType.tiktok:
        return f"https://www.tiktok.com/@{handle}"
    if platform == SourceType.twitter:
        return f"https://x.com/{handle}"
    kind = "company" if is_company else "in"
    return f"https://www.linkedin.com/{kind}/{handle}/"


def parse_count(raw: str | int | float | None) -> int | None:
    """Parse follower-style counts such as "1,234", "12K" or "1.5M"."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if math.isfinite(raw) else None
    if not isinstance(raw, str):
        return None
    text = raw.strip().upper().replace(" ", "")
    multiplier = 1
    if text and text[-1] in "KMB":
        multiplier = {"K": 1_000, "M": 1_000_000, "B": 1_000_000_000}[text[-1]]
        text = text[:-1]
        try:
            return int(float(text.replace(",", ".")) * multiplier)
        except ValueError:
            return None
    digits = text.replace(",", "").replace(".", "")
    return int(digits) if digits.isdigit() else None


def format_count(count: int) -> str:
    if count >= 1_000_000:
        return f"{count / 1_000_000:.1f}M".replace(".0M", "M")
    if count >= 1_000:
        return f"{count / 1_000:.1f}K".replace(".0K", "K")
    return str(count)


def is_login_wall(soup: BeautifulSoup, html: str) -> bool:
    title = meta_content(soup, "og:title")
    description = meta_content(soup, "og:description")
    if description and _LOGIN_TEXT_RE.search(description):
        return True
    if title and not _GENERIC_TITLE_RE.match(title):
        return False
    if description and not title:
        return False
    lowered = html.lower()
    return any(marker in lowered for marker in _LOGIN_WALL_MARKERS)


def _display_name(raw: str | None) -> str | None:
    if not raw or _GENERIC_TITLE_RE.match(raw):
        return None
    name = _TITLE_SUFFIX_RE.sub("", raw)
    match = _TITLE_NAME_RE.match(name)
    name = clean_text(match.group(1) if match else name)
    return name or None


def _script_json(soup: BeautifulSoup, script_id: str) -> dict | None:
    script = soup.find("script", id=script_id)
    if script is None:
        return None
    try:
        data = json.loads(script.string or script.get_text())
    except (json.JSONDecodeError, ValueError):
        logger.debug("Skipping malformed %s payload", script_id)
        return None
    return data if isinstance(data, dict) else None


def _instagram_user(html: str) -> dict | None:
    """The profile's user object from `_sharedData` or an `__additionalDataLoaded` call."""
    for pattern, path in (
        (_SHARED_DATA_RE, ("entry_data", "ProfilePage", 0, "graphql", "user")),
        (_ADDITIONAL_DATA_RE, ("graphql", "user")),
    ):
        match = pattern.search(html)
        if not match:
            continue
        try:
            user = json.loads(match.group(1))
            for key in path:
                user = user[key]
        except (json.JSONDecodeError, ValueError, RecursionError, KeyError, IndexError, TypeError):
            continue
        if isinstance(user, dict):
            return user
    return None


def _apply_instagram(profile: SocialProfile, soup: BeautifulSoup, html: str) -> None:
    description = meta_content(soup, "og:description", "description") or ""
    for field, pattern in _IG_COUNTS_RE.items():
        match = pattern.search(description)
        if match:
            setattr(profile, field, parse_count(match.group(1)))
    bio = _IG_BIO_RE.search(description)
    if bio:
        profile.bio = clean_text(bio.group(1))

    user = _instagram_user(html)
    if user is None:
        logger.debug("Instagram user payload missing for @%s", profile.handle)
        return

    profile.display_name = clean_text(user.get("full_name")) or profile.display_name
    profile.bio = clean_text(user.get("biography")) or profile.bio
    profile.website = user.get("external_url") or profile.website
    profile.email = user.get("business_email") or profile.email
    profile.phone = user.get("business_phone_number") or profile.phone
    profile.category = user.get("category_name") or user.get("business_category_name") or profile.category
    profile.is_business = bool(user.get("is_business_account"))
    profile.avatar_url = user.get("profile_pic_url_hd") or user.get("profile_pic_url") or profile.avatar_url
    for field, key in (
        ("follower_count", "edge_followed_by"),
        ("following_count", "edge_follow"),
        ("post_count", "edge_owner_to_timeline_media"),
    ):
        count = (user.get(key) or {}).get("count")
        if isinstance(count, int):
            setattr(profile, field, count)

    edges = (user.get("edge_owner_to_timeline_media") or {}).get("edges") or []
    for edge in edges[:MAX_SOCIAL_POSTS]:
        node = edge.get("node") or {}
        captions = (node.get("edge_media_to_caption") or {}).get("edges") or []
        caption = captions[0].get("node", {}).get("text", "") if captions else ""
        profile.posts.append(
            SocialPost(
                image_url=node.get("display_url"),
                caption=clean_text(caption),
                is_video=bool(node.get("is_video")),
            )
        )


def _tiktok_user(soup: BeautifulSoup, handle: str) -> tuple[dict, dict]:
    """Return (user, stats) from whichever state payload the page carries."""
    sigi = _script_json(soup, "SIGI_STATE")
    if sigi:
        module = sigi.get("UserModule") or {}
        user = (module.get("users") or {}).get(handle) or {}
        stats = (module.get("stats") or {}).get(handle) or {}
        if user:
            return user, stats

    universal = _script_json(soup, "__UNIVERSAL_DATA_FOR_REHYDRATION__")
    if universal:
        detail = (universal.get("__DEFAULT_SCOPE__") or {}).get("webapp.user-detail") or {}
        info = detail.get("userInfo") or {}
        return info.get("user") or {}, info.get("stats") or {}
    return {}, {}


def _apply_tiktok(profile: SocialProfile, soup: BeautifulSoup) -> None:
    user, stats = _tiktok_user(soup, profile.handle)
    if not user:
        return
    profile.display_name = clean_text(user.get("nickname")) or profile.display_name
    profile.bio = clean_text(user.get("signature")) or profile.bio
    profile.avatar_url = user.get("avatarLarger") or user.get("avatarMedium") or profile.avatar_url
    bio_link = user.get("bioLink")
    if isinstance(bio_link, dict) and bio_link.get("link"):
        link = bio_link["link"]
        profile.website = link if "://" in link else f"https://{link}"
    profile.is_business = bool((user.get("commerceUserInfo") or {}).get("commerceUser")) or profile.is_business
    profile.follower_count = parse_count(stats.get("followerCount")) or profile.follower_count
    profile.following_count = parse_count(stats.get("followingCount")) or profile.following_count
    profile.post_count = parse_count(stats.get("videoCount")) or profile.post_count


def _facebook_website(soup: BeautifulSoup) -> str | None:
    for a in soup.find_all("a", href=True):
        href = a["href"]
        host = _host(href)
        # Outbound links go through the l.facebook.com redirector
        if host_matches(host, "l.facebook.com"):
            target = parse_qs(urlparse(href).query).get("u")
            if target:
                return target[0]
        if href.startswith("http") and not host_matches(host, "facebook.com") and not host_matches(host, "fb.com"):
            if re.search(r"website|visit", element_text(a), re.I):
                return href
    return None


def _apply_facebook(profile: SocialProfile, soup: BeautifulSoup) -> None:
    profile.phone = extract_phone(soup) or profile.phone
    profile.email = extract_email(soup) or profile.email
    profile.address = extract_address(soup) or profile.address
    profile.website = _facebook_website(soup) or profile.website
    profile.category = meta_content(soup, "category") or profile.category
    cover = soup.find("img", attrs={"data-imgperflogname": "profileCoverPhoto"})
    if cover is not None and cover.get("src"):
        profile.cover_url = cover["src"]


def _apply_linkedin(profile: SocialProfile, soup: BeautifulSoup) -> None:
    profile.address = extract_address(soup) or profile.address
    industry = soup.find(attrs={"data-test-id": "about-us__industry"})
    if industry is not None:
        profile.category = element_text(industry.find("dd") or industry) or profile.category


def parse_profile(
    platform: SourceType, handle: str, html: str, is_company: bool = False
) -> SocialProfile | None:
    """Build a profile from public markup. None when the page is a login wall."""
    soup = parse_html(html)
    if is_login_wall(soup, html):
        return None

    profile = SocialProfile(
        platform=platform,
        handle=handle,
        display_name=_display_name(meta_content(soup, "og:title", "twitter:title")),
        avatar_url=meta_content(soup, "og:image", "twitter:image"),
        is_company=is_company,
    )
    description = meta_content(soup, "og:description", "twitter:description", "description")

    if platform == SourceType.instagram:
        _apply_instagram(profile, soup, html)
    else:
        profile.bio = description
        if platform == SourceType.tiktok:
            _apply_tiktok(profile, soup)
        elif platform == SourceType.facebook:
            _apply_facebook(profile, soup)
        elif platform == SourceType.linkedin:
            _apply_linkedin(profile, soup)

    bio = profile.bio or ""
    profile.email = profile.email or find_email_in_text(bio)
    profile.phone = profile.phone or find_phone_in_text(bio)
    return profile


def services_from_bio(bio: str | None) -> list[str]:
    if not bio:
        return []
    parts = [clean_text(p) for p in _BIO_SPLIT_RE.split(bio)]
    parts = [
        p for p in parts
        if 3 < len(p) < 50 and "http" not in p and "@" not in p and find_phone_in_text(p) is None
    ]
    # A bio without separators is a sentence, not a list
    if len(parts) < 2:
        return []
    unique: list[str] = []
    for part in parts:
        if part not in unique:
            unique.append(part)
    return unique[:8]


def products_from_posts(posts: list[SocialPost]) -> list[ProductData]:
    """Posts whose caption carries a price become products."""
    products: list[ProductData] = []
    for post in posts:
        price_match = _CAPTION_PRICE_RE.search(post.caption)
        if not price_match:
            continue
        name_match = _CAPTION_NAME_RE.match(post.caption)
        name = clean_text(_CAPTION_PRICE_RE.sub("", name_match.group(1)))[:60] if name_match else ""
        if len(name) < 3:
            continue
        products.append(
            ProductData(
                name=name,
                description=post.caption[:200],
                price=parse_price(price_match.group(0)),
                image=post.image_url,
            )
        )
    return products[:12]


def features_from_profile(profile: SocialProfile) -> list[str]:
    features: list[str] = []
    if profile.follower_count:
        features.append(f"{format_count(profile.follower_count)} Followers")
    if profile.post_count:
        features.append(f"{profile.post_count}+ Posts")
    if profile.website:
        features.append("Shop Online")
    if profile.is_business:
        features.append("Verified Business")
    return features


def _social_links(platform: SourceType, url: str, website: str | None) -> dict[str, str]:
    links = {platform.value: url}
    if website:
        other = platform_for_url(website)
        key = other or "website"
        links.setdefault(key, website)
    return links


def _business_type(profile: SocialProfile) -> BusinessType:
    text = " ".join(
        [profile.bio or "", profile.category or "", *(p.caption for p in profile.posts)]
    )
    business_type = classify_text(text)
    if (
        profile.platform == SourceType.linkedin
        and not profile.is_company
        and is_ambiguous(score_business_types(text))
    ):
        return BusinessType.portfolio
    return business_type


def profile_to_scraped_data(profile: SocialProfile, url: str) -> ScrapedData:
    primary, secondary = BRAND_COLORS[profile.platform]
    images = [p.image_url for p in profile.posts if p.image_url and not p.is_video]
    gallery = list(dict.fromkeys(images))[:10]

    if profile.display_name and profile.bio:
        confidence = Confidence.high
    elif profile.display_name or profile.bio:
        confidence = Confidence.medium
    else:
        confidence = Confidence.low

    return ScrapedData(
        title=profile.display_name or f"@{profile.handle}",
        description=profile.bio or "",
        logo=profile.avatar_url,
        hero_image=profile.cover_url or (gallery[0] if gallery else None),
        primary_color=primary,
        secondary_color=secondary,
        business_type=_business_type(profile),
        phone=format_phone(profile.phone) if profile.phone else None,
        email=profile.email.lower() if profile.email else None,
        address=profile.address,
        social_links=_social_links(profile.platform, url, profile.website),
        products=products_from_posts(profile.posts),
        services=services_from_bio(profile.bio),
        features=features_from_profile(profile),
        gallery_images=gallery,
        source_type=profile.platform,
        confidence=confidence,
    )


def fallback_data(platform: SourceType, url: str, handle: str | None = None) -> ScrapedData:
    primary, secondary = BRAND_COLORS[platform]
    return ScrapedData(
        title=f"@{handle}" if handle else "",
        primary_color=primary,
        secondary_color=secondary,
        social_links={platform.value: url},
        source_type=platform,
        confidence=Confidence.low,
    )


class SocialScraperService:
    def __init__(self, fetcher: PageFetcher):
        self._fetcher = fetcher

    async def scrape(self, url: str) -> ScrapedData:
        """Scrape a public social profile. Best-effort, never raises."""
        platform = detect_platform(url)
        if platform is None:
            return ScrapedData()
        try:
            return await self._do_scrape(platform, url)
        except Exception:
            logger.exception("Social scrape failed for %s", url)
            try:
                handle, _ = extract_handle(platform, url)
            except ValueError:
                handle = None
            return fallback_data(platform, url, handle)

    async def _do_scrape(self, platform: SourceType, url: str) -> ScrapedData:
        handle, is_company = extract_handle(platform, url)
        if not handle:
            logger.info("No %s handle in %s", platform, url)
            return fallback_data(platform, url)

        html = await self._fetcher.fetch_page(profile_url(platform, handle, is_company, url))
        if not html:
            return fallback_data(platform, url, handle)

        profile = parse_profile(platform, handle, html, is_company)
        if profile is None:
            logger.info("Login wall for %s @%s", platform, handle)
            return fallback_data(platform, url, handle)

        data = profile_to_scraped_data(profile, url)
        logger.info(
            "%s @%s: name=%s, bio=%s, posts=%d, confidence=%s",
            platform, handle, profile.display_name, bool(profile.bio), len(profile.posts), data.confidence,
        )
        return data
