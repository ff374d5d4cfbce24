import os
from functools import lru_cache

from pydantic import BaseModel


class Settings(BaseModel):
    CRYPTO_ACCOUNT_ID: str
    CRYPTO_API_TOKEN: str | None = None
    CRYPTO_API_BASE_URL: str = "https://nummus.robinhood.com"
    CRYPTO_HTTP_TIMEOUT: float = 5.0

    @classmethod
    def from_env(cls) -> "Settings":
        raw = {
            "CRYPTO_ACCOUNT_ID": os.getenv("CRYPTO_ACCOUNT_ID"),
            "CRYPTO_API_TOKEN": os.getenv("CRYPTO_API_TOKEN") or None,
        }
        base_url = os.getenv("CRYPTO_API_BASE_URL", "").strip()
        if base_url:
            raw["CRYPTO_API_BASE_URL"] = base_url.rstrip("/")
        timeout = os.getenv("CRYPTO_HTTP_TIMEOUT", "").strip()
        if timeout:
            raw["CRYPTO_HTTP_TIMEOUT"] = timeout

        return cls.model_validate(raw)


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
