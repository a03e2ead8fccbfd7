import json
import logging
import re

from anthropic import AsyncAnthropic

from app.exceptions.custom import ContentGenerationError
from app.mappers.content_mapper import map_generated_content
from app.schemas.content import ContentGenerationInput, GeneratedContent
from app.schemas.scraper import BusinessType

logger = logging.getLogger(__name__)

MODEL = "claude-sonnet-4-20250514"

_JSON_RE = re.compile(r"\{.*\}", re.S)

_SYSTEM_PROMPT = (
    "You write website copy for small businesses. "
    "Return ONLY valid JSON, no markdown fences, no explanation. "
    "Use only facts present in the business details; never invent prices, "
    "awards, reviews or customer names."
)

_USER_PROMPT_TEMPLATE = (
    "Business name: {name}\n"
    "Business type: {business_type}\n"
    "Description: {description}\n"
    "Services: {services}\n"
    "Features: {features}\n\n"
    "Return a JSON object with these keys: "
    '"headline" (max 8 words), "subheadline" (10-20 words), "aboutText" (2-3 short paragraphs), '
    '"ctaText" (2-4 words), "services" (list), "features" (list), "metaDescription" (max 155 chars), '
    '"tagline", "valuePropositions" (4 items), '
    '"serviceDescriptions" (list of {{"name", "description"}}), "socialMediaBio" (max 150 chars).'
)

HEADLINES = {
    BusinessType.restaurant: "Welcome to {name}",
    BusinessType.ecommerce: "Shop the Best at {name}",
    BusinessType.healthcare: "Your Health, Our Priority",
    BusinessType.fitness: "Transform Your Life Today",
    BusinessType.beauty: "Discover Your Best Self",
    BusinessType.realestate: "Find Your Dream Home",
    BusinessType.education: "Learn, Grow, Succeed",
    BusinessType.agency: "We Bring Ideas to Life",
    BusinessType.portfolio: "Creative Excellence",
    BusinessType.service: "Professional Solutions You Can Trust",
}

SUBHEADLINES = {
    BusinessType.restaurant: "Fresh ingredients, warm hospitality and flavors worth coming back for",
    BusinessType.ecommerce: "Quality products delivered to your door with service you can count on",
    BusinessType.healthcare: "Compassionate care and modern treatment for you and your family",
    BusinessType.fitness: "Expert coaching, a supportive community and results that last",
    BusinessType.beauty: "Personalized treatments from skilled professionals in a relaxing space",
    BusinessType.realestate: "Expert guidance to help you buy, sell or rent with confidence",
    BusinessType.education: "Quality learning that prepares you for what comes next",
    BusinessType.agency: "Strategic, creative work that helps brands grow",
    BusinessType.portfolio: "Bringing creative visions to life with care and precision",
    BusinessType.service: "Reliable work delivered with care from start to finish",
}

CTAS = {
    BusinessType.restaurant: "Reserve a Table",
    BusinessType.ecommerce: "Shop Now",
    BusinessType.healthcare: "Book Appointment",
    BusinessType.fitness: "Start Free Trial",
    BusinessType.beauty: "Book Now",
    BusinessType.realestate: "View Listings",
    BusinessType.education: "Enroll Today",
    BusinessType.agency: "Get a Quote",
    BusinessType.portfolio: "View Portfolio",
    BusinessType.service: "Get Started",
}

TAGLINES = {
    BusinessType.restaurant: "Where Every Meal is Special",
    BusinessType.ecommerce: "Quality You Can Trust",
    BusinessType.healthcare: "Care That Makes a Difference",
    BusinessType.fitness: "Your Journey Starts Here",
    BusinessType.beauty: "Beauty Redefined",
    BusinessType.realestate: "Home is Where We Help",
    BusinessType.education: "Empowering Minds",
    BusinessType.agency: "Ideas That Inspire",
    BusinessType.portfolio: "Creating with Purpose",
    BusinessType.service: "Excellence Delivered",
}

VALUE_PROPOSITIONS = {
    BusinessType.restaurant: ["Fresh ingredients daily", "Friendly service", "Welcoming atmosphere", "Made with care"],
    BusinessType.ecommerce: ["Carefully selected products", "Secure checkout", "Easy returns", "Responsive support"],
    BusinessType.healthcare: ["Patient-centered care", "Experienced team", "Modern treatments", "Comfortable environment"],
    BusinessType.fitness: ["Expert trainers", "Modern equipment", "Flexible schedules", "Supportive community"],
    BusinessType.beauty: ["Premium products", "Skilled professionals", "Relaxing atmosphere", "Personalized service"],
    BusinessType.realestate: ["Local expertise", "Transparent process", "Dedicated support", "Honest advice"],
    BusinessType.education: ["Expert instructors", "Hands-on learning", "Flexible options", "Personal guidance"],
    BusinessType.agency: ["Creative solutions", "Measurable results", "Transparent pricing", "Dedicated team"],
    BusinessType.portfolio: ["Original work", "Attention to detail", "Clear communication", "On-time delivery"],
    BusinessType.service: ["Professional team", "Quality workmanship", "Fair pricing", "Customer-first approach"],
}

DEFAULT_SERVICES = {
    BusinessType.restaurant: ["Dine-In", "Takeout", "Catering", "Delivery"],
    BusinessType.ecommerce: ["Online Shopping", "Shipping", "Returns", "Customer Support"],
    BusinessType.healthcare: ["Consultations", "Treatment Plans", "Preventive Care", "Follow-up Visits"],
    BusinessType.fitness: ["Personal Training", "Group Classes", "Nutrition Coaching", "Membership Plans"],
    BusinessType.beauty: ["Hair Styling", "Manicure & Pedicure", "Facials", "Makeup"],
    BusinessType.realestate: ["Property Listings", "Buyer Representation", "Seller Services", "Market Analysis"],
    BusinessType.education: ["Courses", "Workshops", "Tutoring", "Certification Programs"],
    BusinessType.agency: ["Brand Strategy", "Creative Design", "Digital Marketing", "Content Creation"],
    BusinessType.portfolio: ["Design", "Consulting", "Commissions", "Collaborations"],
    BusinessType.service: ["Consultation", "Installation", "Maintenance", "Support"],
}


def template_content(data: ContentGenerationInput) -> GeneratedContent:
    """Deterministic copy for a business type. `other` reads like `service`."""
    kind = data.business_type if data.business_type in HEADLINES else BusinessType.service
    name = data.name
    services = data.services[:8] or DEFAULT_SERVICES[kind]
    features = data.features[:6] or VALUE_PROPOSITIONS[kind]

    intro = data.description.strip() or f"{name} is dedicated to doing great work for every customer."
    about = (
        f"{intro}\n\n"
        f"We specialise in {', '.join(services[:3])}, and every visit gets the same care and attention.\n\n"
        f"Get in touch today to find out how {name} can help."
    )
    meta = f"{name} - {' & '.join(services[:2])}. {data.description.strip()}".strip()

    return GeneratedContent(
        headline=HEADLINES[kind].format(name=name),
        subheadline=SUBHEADLINES[kind],
        about_text=about,
        cta_text=CTAS[kind],
        services=services,
        features=features,
        meta_description=meta[:155],
        tagline=TAGLINES[kind],
        value_propositions=VALUE_PROPOSITIONS[kind],
        service_descriptions=[f"{s} from {name}." for s in services[:4]],
        social_media_bio=f"{name} | {services[0]} | {TAGLINES[kind]}"[:150],
    )


class ContentGeneratorService:
    def __init__(self, api_key: str, model: str = MODEL, fallback_to_templates: bool = True):
        self._client = AsyncAnthropic(api_key=api_key) if api_key else None
        self._model = model
        self._fallback_to_templates = fallback_to_templates

    async def generate(self, data: ContentGenerationInput) -> GeneratedContent:
        fallback = template_content(data)
        if self._client is None:
            return fallback

        raw = await self._request(data)
        if raw is None:
            if not self._fallback_to_templates:
                raise ContentGenerationError(f"No usable content generated for {data.name}")
            logger.info("Using template content for %s", data.name)
            return fallback
        return map_generated_content(raw, fallback)

    async def _request(self, data: ContentGenerationInput) -> dict | None:
        prompt = _USER_PROMPT_TEMPLATE.format(
            name=data.name,
            business_type=data.business_type,
            description=data.description or "(none)",
            services=", ".join(data.services) or "(none)",
            features=", ".join(data.features) or "(none)",
        )
        try:
            response = await self._client.messages.create(
                model=self._model,
                max_tokens=2048,
                system=_SYSTEM_PROMPT,
                messages=[{"role": "user", "content": prompt}],
            )
            text = response.content[0].text
        except Exception:
            logger.exception("Content generation call failed")
            return None
        return self._try_parse_json(text)

    @staticmethod
    def _try_parse_json(text: str) -> dict | None:
        # Strip markdown fences
        stripped = re.sub(r"```(?:json)?\s*", "", text).strip().rstrip("`")

        try:
            obj = json.loads(stripped)
            if isinstance(obj, dict):
                return obj
        except (json.JSONDecodeError, ValueError):
            pass

        # Fallback: outermost braces in the text
        match = _JSON_RE.search(stripped)
        if match:
            try:
                obj = json.loads(match.group(0))
            except (json.JSONDecodeError, ValueError):
                return None
            return obj if isinstance(obj, dict) else None

        return None
