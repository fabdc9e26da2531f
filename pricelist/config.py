"""
Runtime settings (environment / .env).

Only the outer surfaces (streamlit_app.py, cli.py) read these. The extraction
core takes an ExtractionPolicy and a credential string as plain arguments.
"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from pricelist.models.schemas import ExtractionPolicy


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "PriceListDocs"
    log_level: str = "INFO"

    gemini_api_key: Optional[str] = None
    gemini_api_base: str = "https://generativelanguage.googleapis.com"
    ai_request_timeout: float = 60.0
    ai_text_char_budget: int = 30000

    noise_threshold: int = 2
    draft_min_length: int = 18
    brand_header_max_length: int = 20
    min_retail_price: float = 10
    default_brand: str = "UNKNOWN"
    prescan_document_brand: bool = False

    def policy(self) -> ExtractionPolicy:
        return ExtractionPolicy(
            noise_threshold=self.noise_threshold,
            draft_min_length=self.draft_min_length,
            brand_header_max_length=self.brand_header_max_length,
            min_retail_price=self.min_retail_price,
            default_brand=self.default_brand,
            prescan_document_brand=self.prescan_document_brand,
        )


settings = Settings()
