import pytest

from app.extractors.html import parse_html
from app.extractors.navigation import SectionKind, extract_navigation_links, section_kind

BASE = "https://www.acme.example.com/"

NAV = """
<nav>
  <a href="/">Home</a>
  <a href="/pricing">Pricing</a>
  <a href="/about-us/">About Us</a>
  <a href="https://acme.example.com/services#top">Our Services</a>
  <a href="/services/branding">Branding services</a>
  <a href="/cart">Cart</a>
  <a href="/account/login">About your account</a>
  <a href="https://www.facebook.com/acme">Facebook</a>
  <a href="https://other.example.com/team">Partner team</a>
  <a href="/blog">Journal</a>
  <a href="/docs/brochure.pdf">Our services brochure</a>
  <a href="/people" aria-label="Meet the team"><img src="/icons/team.svg"></a>
  <a href="mailto:hi@acme.example.com">Email</a>
</nav>
"""


def test_section_links_ordered_one_per_kind():
    links = extract_navigation_links(parse_html(NAV), BASE, limit=10)
    assert [(link.kind, link.url) for link in links] == [
        (SectionKind.services, "https://acme.example.com/services"),
        (SectionKind.about, "https://www.acme.example.com/about-us/"),
        (SectionKind.team, "https://www.acme.example.com/people"),
        (SectionKind.pricing, "https://www.acme.example.com/pricing"),
    ]


def test_section_links_capped():
    links = extract_navigation_links(parse_html(NAV), BASE, limit=2)
    assert [link.kind for link in links] == [SectionKind.services, SectionKind.about]


def test_current_page_not_linked_to_itself():
    soup = parse_html('<a href="/about">About</a><a href="/services">Services</a>')
    links = extract_navigation_links(soup, "https://acme.example.com/about")
    assert [link.kind for link in links] == [SectionKind.services]


def test_no_section_links_on_plain_page():
    soup = parse_html('<a href="/blog">Journal</a><a href="https://twitter.com/acme">Twitter</a>')
    assert extract_navigation_links(soup, BASE) == []


@pytest.mark.parametrize(
    "path, text, expected",
    [
        ("/what-we-do", "", SectionKind.services),
        ("/our-story", "", SectionKind.about),
        ("/projects", "Work", SectionKind.portfolio),
        ("/photos", "", SectionKind.gallery),
        ("/kind-words", "", SectionKind.testimonials),
        ("/p/12", "Client reviews", SectionKind.testimonials),
        ("/staff", "", SectionKind.team),
        ("/packages", "", SectionKind.pricing),
        ("/blog", "Journal", None),
        ("/aboutface", "", None),
    ],
)
def test_section_kind(path, text, expected):
    assert section_kind(path, text) == expected
