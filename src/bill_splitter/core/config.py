from pydantic_settings import BaseSettings
from typing import Optional, List


class Settings(BaseSettings):
    app_name: str = "Bill Splitter API"
    app_version: str = "1.0.0"
    debug: bool = False

    # API settings
    api_v1_str: str = "/api/v1"
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    allowed_file_types: List[str] = ["image/jpeg", "image/jpg", "image/png"]

    # CORS settings
    backend_cors_origins: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    trusted_hosts: List[str] = ["localhost", "127.0.0.1", "0.0.0.0", "testserver"]

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None
    log_rotation: str = "1 MB"

    # Money tolerances, in currency units
    discrepancy_tolerance: float = 0.02
    custom_split_tolerance: float = 0.01
    item_split_tolerance: float = 0.01
    final_split_tolerance: float = 0.015

    # Form limits
    max_expense_amount: float = 999999.99
    max_title_length: int = 100
    max_notes_length: int = 500
    max_description_length: int = 200

    # Splitwise
    splitwise_api_base_url: str = "https://secure.splitwise.com/api/v3.0"
    splitwise_timeout: int = 30
    auth_cookie_name: str = "sw_access_token"
    currency_code: str = "USD"
    default_category_id: int = 18

    # Receipt extraction
    default_store_name: str = "Unknown Store"
    llm_model_name: str = "gpt-4o"
    llm_provider: str = "azure_openai"
    llm_output_retries: int = 3

    class Config:
        env_file = ".env"
        # LLM keys live in the same .env and are read by the model factory
        extra = "ignore"


settings = Settings()
