from functools import lru_cache

from pydantic_settings import BaseSettings

from app.core.doppler import load_doppler_secrets

# Load Doppler secrets into environment BEFORE Settings is instantiated
load_doppler_secrets()


class Settings(BaseSettings):
    # Supabase (record store endpoint + access key)
    supabase_url: str = ""
    supabase_secret_key: str = ""
    supabase_timeout: int = 10

    # Shared secret staff enter to confirm a coupon redemption
    admin_redemption_secret: str = ""

    # Identity
    allow_guest_login: bool = True  # False requires pre-registration
    phone_pattern: str = r"^[0-9]{3}-[0-9]{4}-[0-9]{4}$"

    # Loyalty rules
    stamp_target: int = 10
    review_max_length: int = 100
    report_max_length: int = 500

    # Server
    environment: str = "development"
    cors_origin_pattern: str = r"^https://([a-z0-9-]+\.)?tarotcafe\.app$"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    return Settings()


