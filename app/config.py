from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    log_level: str = "INFO"
    anthropic_api_key: str = ""
    content_model: str = "claude-sonnet-4-20250514"
    content_fallback_templates: bool = True
    fetch_timeout: float = 12.0
    max_page_bytes: int = 2 * 1024 * 1024
    product_listing_paths: list[str] = [
        "/products",
        "/shop",
        "/collections",
        "/collections/all",
        "/store",
        "/catalog",
        "/all-products",
    ]
    product_soft_cap: int = 8
    section_pages: int = 4
