from app.extractors.contact import (
    extract_address,
    extract_email,
    extract_opening_hours,
    extract_phone,
    extract_social_links,
    format_phone,
    platform_for_url,
)
from app.extractors.html import parse_html


def _soup(body: str):
    return parse_html(f"<html><body>{body}</body></html>")


# --- Phone ---


def test_phone_from_tel_link():
    soup = _soup('<a href="tel:+1-555-123-4567">Call</a>')
    assert extract_phone(soup) == "+1 (555) 123-4567"


def test_phone_tel_link_wins_over_text():
    soup = _soup('<p>Phone: (555) 222-3333</p><a href="tel:5551234567">Call</a>')
    assert extract_phone(soup) == "(555) 123-4567"


def test_phone_from_text():
    soup = _soup("<p>Call us today at 555.987.6543 for a quote</p>")
    assert extract_phone(soup) == "(555) 987-6543"


def test_phone_international_text():
    soup = _soup("<p>Reservas: +54 11 5263 0435</p>")
    assert extract_phone(soup) == "+541152630435"


def test_phone_ignores_dates_and_short_numbers():
    soup = _soup("<p>Open since 2019-05-01. Unit 12.</p>")
    assert extract_phone(soup) is None


def test_format_phone():
    assert format_phone("555 123 4567") == "(555) 123-4567"
    assert format_phone("15551234567") == "+1 (555) 123-4567"
    assert format_phone("+44 20 7946 0958") == "+442079460958"


# --- Email ---


def test_email_from_mailto():
    soup = _soup('<a href="mailto:Hello@JoesPizza.com?subject=Hi">Email</a>')
    assert extract_email(soup) == "hello@joespizza.com"


def test_email_from_text_skips_placeholders():
    soup = _soup("<p>you@example.com</p><p>Write to orders@bloomflorist.co</p>")
    assert extract_email(soup) == "orders@bloomflorist.co"


def test_email_skips_image_filenames():
    soup = _soup("<p>logo@2x.png</p>")
    assert extract_email(soup) is None


# --- Address ---


def test_address_from_json_ld():
    soup = _soup(
        '<script type="application/ld+json">'
        '{"@type": "Restaurant", "address": {"@type": "PostalAddress", '
        '"streetAddress": "12 Main St", "addressLocality": "Springfield", '
        '"addressRegion": "IL", "postalCode": "62701"}}'
        "</script>"
    )
    assert extract_address(soup) == "12 Main St, Springfield, IL, 62701"


def test_address_from_address_tag():
    soup = _soup("<address>400 Elm Avenue, Portland, OR</address>")
    assert extract_address(soup) == "400 Elm Avenue, Portland, OR"


def test_address_too_short_ignored():
    soup = _soup('<div class="address">Here</div>')
    assert extract_address(soup) is None


# --- Social links ---


def test_social_links_by_host():
    soup = _soup(
        '<a href="https://www.instagram.com/joespizza">IG</a>'
        '<a href="https://x.com/joespizza">X</a>'
        '<a href="https://m.facebook.com/joespizza">FB</a>'
        '<a href="https://www.youtube.com/@joespizza">YT</a>'
    )
    links = extract_social_links(soup)
    assert links == {
        "instagram": "https://www.instagram.com/joespizza",
        "twitter": "https://x.com/joespizza",
        "facebook": "https://m.facebook.com/joespizza",
        "youtube": "https://www.youtube.com/@joespizza",
    }


def test_social_links_skip_share_and_bare_hosts():
    soup = _soup(
        '<a href="https://www.facebook.com/sharer/sharer.php?u=x">Share</a>'
        '<a href="https://twitter.com/intent/tweet?text=hi">Tweet</a>'
        '<a href="https://www.instagram.com/">Instagram</a>'
    )
    assert extract_social_links(soup) == {}


def test_social_links_first_wins():
    soup = _soup(
        '<a href="https://instagram.com/first">1</a><a href="https://instagram.com/second">2</a>'
    )
    assert extract_social_links(soup)["instagram"] == "https://instagram.com/first"


def test_platform_for_url_is_host_based():
    assert platform_for_url("https://notinstagram.com.evil.io/x") is None
    assert platform_for_url("https://blog.example.com/instagram.com") is None
    assert platform_for_url("https://www.tiktok.com/@brand") == "tiktok"


# --- Opening hours ---


def test_hours_from_json_ld_string():
    soup = _soup(
        '<script type="application/ld+json">'
        '{"@type": "Restaurant", "openingHours": ["Mo-Fr 11:00-22:00", "Sa 12:00-23:00"]}'
        "</script>"
    )
    hours = extract_opening_hours(soup)
    assert hours["Monday"] == "11:00 - 22:00"
    assert hours["Friday"] == "11:00 - 22:00"
    assert hours["Saturday"] == "12:00 - 23:00"
    assert "Sunday" not in hours


def test_hours_from_specification():
    soup = _soup(
        '<script type="application/ld+json">'
        '{"@type": "Store", "openingHoursSpecification": [{"@type": "OpeningHoursSpecification", '
        '"dayOfWeek": ["https://schema.org/Monday", "https://schema.org/Tuesday"], '
        '"opens": "09:00:00", "closes": "17:00:00"}]}'
        "</script>"
    )
    assert extract_opening_hours(soup) == {"Monday": "09:00 - 17:00", "Tuesday": "09:00 - 17:00"}


def test_hours_from_text_block_in_weekday_order():
    soup = _soup(
        '<div class="opening-hours">'
        "<p>Sunday: Closed</p><p>Mon - Fri: 9am - 5pm</p><p>Saturday: 10am - 2pm</p>"
        "</div>"
    )
    hours = extract_opening_hours(soup)
    assert list(hours) == ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
    assert hours["Wednesday"] == "9am - 5pm"
    assert hours["Sunday"] == "Closed"


def test_hours_none_when_missing():
    assert extract_opening_hours(_soup("<p>Welcome</p>")) is None
