import logging
import re
from collections.abc import Callable

from bs4 import BeautifulSoup, Tag

from app.extractors.html import (
    class_string,
    clean_text,
    element_text,
    has_type,
    image_source,
    iter_json_ld,
    resolve_url,
    walk_json,
)
from app.schemas.scraper import ProductData, dedupe_products

logger = logging.getLogger(__name__)

MAX_PRODUCTS_PER_PAGE = 12

# A space only groups thousands; separate numbers never merge
_NUMBER_RE = re.compile(r"\d{1,3}(?:[.,\s]\d{3}(?!\d))+(?:[.,]\d+)?|\d+(?:[.,]\d+)?")
_CURRENCY_PRICE_RE = re.compile(r"(?:[$€£¥₹]|USD|EUR|GBP)\s?\d[\d.,]*|\d[\d.,]*\s?(?:[$€£]|USD|EUR|GBP)")
_THOUSANDS_COMMA_RE = re.compile(r"^\d{1,3}(,\d{3})+$")
_THOUSANDS_DOT_RE = re.compile(r"^\d{1,3}(\.\d{3}){2,}$")

# Shopify and WooCommerce card containers, matched per class token
_PLATFORM_CARD_RE = re.compile(
    r"^(?:card--product|product-card|grid-product|product-item|collection-product|productitem|type-product)$"
)
_GENERIC_CARD_RE = re.compile(
    r"^(?:product|card-product|card_product|item-card|shop-item|"
    r"product[-_]?(?:tile|box|block|wrapper|container|grid-item|list-item|thumb))$"
)
_TITLE_CLASS_RE = re.compile(r"title|name|heading", re.I)
_PRICE_CLASS_RE = re.compile(r"price|amount|money", re.I)
_SALE_CLASS_RE = re.compile(r"sale|special|discount|current", re.I)
_REGULAR_CLASS_RE = re.compile(r"compare|regular|original|was|old", re.I)
_DESCRIPTION_CLASS_RE = re.compile(r"desc|excerpt|summary", re.I)
_ALT_SKIP_RE = re.compile(r"icon|logo|avatar|banner|\.svg", re.I)


def parse_price(value: object) -> float | None:
    """Normalize a price to a number. Unparsable input gives None, never a guess."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if value >= 0 else None
    if not isinstance(value, str):
        return None

    match = _NUMBER_RE.search(value)
    if not match:
        return None
    number = re.sub(r"\s", "", match.group(0)).rstrip(".,")
    if not number:
        return None

    if "," in number and "." in number:
        if number.rfind(",") > number.rfind("."):
            number = number.replace(".", "").replace(",", ".")
        else:
            number = number.replace(",", "")
    elif "," in number:
        if _THOUSANDS_COMMA_RE.match(number):
            number = number.replace(",", "")
        else:
            number = number.replace(",", ".")
    elif _THOUSANDS_DOT_RE.match(number):
        number = number.replace(".", "")

    try:
        return float(number)
    except ValueError:
        return None


def _json_ld_image(value: object, base_url: str) -> str | None:
    if isinstance(value, str):
        return resolve_url(value, base_url)
    if isinstance(value, list) and value:
        return _json_ld_image(value[0], base_url)
    if isinstance(value, dict):
        return resolve_url(value.get("url") or value.get("contentUrl"), base_url)
    return None


def _json_ld_offer_prices(offers: object) -> tuple[float | None, float | None]:
    """Return (price, sale_price) from an offers node."""
    if isinstance(offers, list):
        for offer in offers:
            price, sale = _json_ld_offer_prices(offer)
            if price is not None:
                return price, sale
        return None, None
    if not isinstance(offers, dict):
        return None, None

    price = parse_price(offers.get("price"))
    if price is None:
        price = parse_price(offers.get("lowPrice"))
    if price is None and isinstance(offers.get("priceSpecification"), dict):
        price = parse_price(offers["priceSpecification"].get("price"))

    # A listed regular price above the offer price marks a sale
    regular = None
    spec = offers.get("priceSpecification")
    for node in spec if isinstance(spec, list) else [spec]:
        if isinstance(node, dict) and "ListPrice" in str(node.get("priceType", "")):
            regular = parse_price(node.get("price"))
    if regular is not None and price is not None and regular > price:
        return regular, price
    return price, None


def parse_json_ld_product(data: dict, base_url: str) -> ProductData | None:
    name = clean_text(str(data.get("name") or ""))
    if not name:
        return None
    price, sale_price = _json_ld_offer_prices(data.get("offers"))
    description = clean_text(str(data.get("description") or ""))[:200] or None
    category = data.get("category")
    if isinstance(category, dict):
        category = category.get("name")
    url = data.get("url")
    return ProductData(
        name=name,
        description=description,
        price=price,
        sale_price=sale_price,
        image=_json_ld_image(data.get("image"), base_url),
        category=clean_text(category) if isinstance(category, str) else None,
        url=resolve_url(url, base_url) if isinstance(url, str) else None,
    )


def _json_ld_product_nodes(block: object, deep: bool) -> list[dict]:
    if deep:
        return [node for node in walk_json(block) if has_type(node, "Product")]

    nodes: list[dict] = []
    roots = block if isinstance(block, list) else [block]
    for root in roots:
        if not isinstance(root, dict):
            continue
        if has_type(root, "Product"):
            nodes.append(root)
        if has_type(root, "ItemList") and isinstance(root.get("itemListElement"), list):
            for item in root["itemListElement"]:
                if has_type(item, "Product"):
                    nodes.append(item)
                elif isinstance(item, dict) and has_type(item.get("item"), "Product"):
                    nodes.append(item["item"])
        if isinstance(root.get("@graph"), list):
            nodes.extend(node for node in root["@graph"] if has_type(node, "Product"))
    return nodes


def extract_json_ld_products(soup: BeautifulSoup, base_url: str, deep: bool = False) -> list[ProductData]:
    """Products declared in JSON-LD. A malformed block is skipped on its own."""
    products: list[ProductData] = []
    for block in iter_json_ld(soup):
        for node in _json_ld_product_nodes(block, deep):
            if len(products) >= MAX_PRODUCTS_PER_PAGE:
                return dedupe_products(products)
            product = parse_json_ld_product(node, base_url)
            if product is not None:
                products.append(product)
    return dedupe_products(products)


def _card_name(card: Tag) -> str:
    for el in card.find_all(["h2", "h3", "h4", "h5", "a", "span", "div", "p"]):
        if _TITLE_CLASS_RE.search(class_string(el)) and not _PRICE_CLASS_RE.search(class_string(el)):
            text = element_text(el)
            if text:
                return text
    if card.get("data-product-title"):
        return clean_text(card["data-product-title"])
    named = card.find(attrs={"itemprop": "name"})
    if named is not None:
        return named.get("content") or element_text(named)
    heading = card.find(["h1", "h2", "h3", "h4", "h5", "h6"])
    if heading is not None:
        return element_text(heading)
    img = card.find("img", alt=True)
    if img is not None:
        return clean_text(img["alt"])
    return ""


def _card_prices(card: Tag) -> tuple[float | None, float | None]:
    """Return (price, sale_price) for a card."""
    struck = card.find(["del", "s", "strike"])
    if struck is not None:
        regular = parse_price(element_text(struck))
        inserted = card.find("ins")
        sale = parse_price(element_text(inserted)) if inserted is not None else None
        if sale is None:
            for el in card.find_all(class_=_PRICE_CLASS_RE):
                if el is struck or struck in el.parents or el in struck.parents:
                    continue
                sale = parse_price(element_text(el))
                if sale is not None:
                    break
        if regular is not None and sale is not None and sale < regular:
            return regular, sale
        if regular is not None:
            return regular, None

    regular_el = sale_el = None
    for el in card.find_all(class_=_PRICE_CLASS_RE):
        classes = class_string(el)
        if regular_el is None and _REGULAR_CLASS_RE.search(classes):
            regular_el = el
        elif sale_el is None and _SALE_CLASS_RE.search(classes):
            sale_el = el
    if regular_el is not None and sale_el is not None:
        regular = parse_price(element_text(regular_el))
        sale = parse_price(element_text(sale_el))
        if regular is not None and sale is not None and sale < regular:
            return regular, sale

    price_meta = card.find(attrs={"itemprop": "price"})
    if price_meta is not None:
        price = parse_price(price_meta.get("content") or element_text(price_meta))
        if price is not None:
            return price, None

    for el in card.find_all(class_=_PRICE_CLASS_RE):
        price = parse_price(element_text(el))
        if price is not None:
            return price, None

    match = _CURRENCY_PRICE_RE.search(element_text(card))
    if match:
        return parse_price(match.group(0)), None
    return None, None


def parse_product_card(card: Tag, base_url: str) -> ProductData | None:
    name = _card_name(card)
    if not 3 <= len(name) <= 100:
        return None

    price, sale_price = _card_prices(card)
    img = card.find("img")
    link = card if card.name == "a" and card.get("href") else card.find("a", href=True)
    description_el = next(
        (el for el in card.find_all(["p", "div", "span"]) if _DESCRIPTION_CLASS_RE.search(class_string(el))),
        None,
    )
    description = element_text(description_el)[:200] or None

    return ProductData(
        name=name,
        price=price,
        sale_price=sale_price,
        image=resolve_url(image_source(img), base_url) if img is not None else None,
        url=resolve_url(link["href"], base_url) if link is not None else None,
        description=description,
    )


def _matches_card(el: Tag, pattern: re.Pattern) -> bool:
    classes = el.get("class") or []
    return any(pattern.match(token.lower()) for token in classes)


def _cards_from(soup: BeautifulSoup, is_card: Callable[[Tag], bool], base_url: str) -> list[ProductData]:
    cards = [el for el in soup.find_all(["div", "li", "article", "a", "section"]) if is_card(el)]
    # Prefer the innermost card when cards are nested
    card_ids = {id(c) for c in cards}
    cards = [c for c in cards if not any(id(d) in card_ids for d in c.find_all(True))]

    products: list[ProductData] = []
    for card in cards:
        if len(products) >= MAX_PRODUCTS_PER_PAGE:
            break
        product = parse_product_card(card, base_url)
        if product is not None:
            products.append(product)
    return dedupe_products(products)


def extract_platform_products(soup: BeautifulSoup, base_url: str) -> list[ProductData]:
    """Shopify and WooCommerce product cards."""
    return _cards_from(soup, lambda el: _matches_card(el, _PLATFORM_CARD_RE), base_url)


def _is_generic_card(el: Tag) -> bool:
    if _matches_card(el, _GENERIC_CARD_RE):
        return True
    if el.get("data-product-id") or el.get("data-product-handle"):
        return True
    itemtype = el.get("itemtype") or ""
    return "schema.org/Product" in itemtype


def _alt_text_products(soup: BeautifulSoup, base_url: str) -> list[ProductData]:
    products: list[ProductData] = []
    for img in soup.find_all("img", alt=True):
        if len(products) >= MAX_PRODUCTS_PER_PAGE:
            break
        alt = clean_text(img["alt"])
        src = image_source(img)
        if not src or _ALT_SKIP_RE.search(src) or _ALT_SKIP_RE.search(alt):
            continue
        if 2 <= len(alt.split()) <= 8:
            products.append(ProductData(name=alt, image=resolve_url(src, base_url)))
    return dedupe_products(products)


def extract_generic_products(
    soup: BeautifulSoup, base_url: str, listing_page: bool = False
) -> list[ProductData]:
    """Broad card patterns; image alt text as a last resort on known listing pages."""
    products = _cards_from(soup, _is_generic_card, base_url)
    if not products and listing_page:
        products = _alt_text_products(soup, base_url)
    return products


def extract_products(soup: BeautifulSoup, base_url: str, listing_page: bool = False) -> list[ProductData]:
    """Run the strategies from most to least specific, stopping at the first hit."""
    strategies: list[tuple[str, Callable[[], list[ProductData]]]] = [
        ("json-ld", lambda: extract_json_ld_products(soup, base_url)),
        ("platform", lambda: extract_platform_products(soup, base_url)),
        ("generic", lambda: extract_generic_products(soup, base_url, listing_page)),
    ]
    for name, strategy in strategies:
        try:
            products = strategy()
        except Exception:
            logger.exception("Product strategy %s failed for %s", name, base_url)
            continue
        if products:
            logger.debug("Product strategy %s found %d products on %s", name, len(products), base_url)
            return products[:MAX_PRODUCTS_PER_PAGE]
    return []


def merge_products(
    existing: list[ProductData], new: list[ProductData], limit: int | None = None
) -> list[ProductData]:
    """Append new products whose name has not been seen. Discovery order is kept."""
    merged = dedupe_products(existing)
    names = {p.name for p in merged}
    for product in new:
        if limit is not None and len(merged) >= limit:
            break
        if product.name not in names:
            names.add(product.name)
            merged.append(product)
    return merged
