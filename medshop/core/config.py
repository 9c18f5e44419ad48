"""Application configuration.

Environment variables override all defaults. A `.env` file at the project
root is loaded for local development.
"""

import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv

_PROJECT_DIR = Path(__file__).resolve().parents[2]
load_dotenv(dotenv_path=_PROJECT_DIR / ".env", override=False)


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


class Settings:
    # Database Configuration (storage collaborator)
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./medshop.db")
    CATALOG_SLOT: str = os.getenv("CATALOG_SLOT", "medicines")
    HISTORY_SLOT: str = os.getenv("HISTORY_SLOT", "sales")

    # Shop display
    SHOP_NAME: str = os.getenv("SHOP_NAME", "Vicky Medical")
    CURRENCY_SYMBOL: str = os.getenv("CURRENCY_SYMBOL", "₹")

    # Stock rules
    # Pack size used when a Tablet record has no usable tabletsPerStrip
    DEFAULT_TABLETS_PER_STRIP: int = _int_env("DEFAULT_TABLETS_PER_STRIP", 10)
    LOW_STOCK_THRESHOLD: int = _int_env("LOW_STOCK_THRESHOLD", 20)
    # Category given to quantity-only legacy catalog records (they carry none)
    LEGACY_CATALOG_CATEGORY: str = os.getenv("LEGACY_CATALOG_CATEGORY", "Tablet")

    # CORS (browser POS runs on the dev server)
    CORS_ORIGINS: List[str] = [
        origin.strip()
        for origin in os.getenv(
            "CORS_ORIGINS",
            "http://localhost:3000,http://127.0.0.1:3000,http://localhost:9002",
        ).split(",")
        if origin.strip()
    ]

    # Groq vision model for prescription scanning (Must be set via .env, never in code)
    GROQ_API_KEY: str = os.getenv("GROQ_API_KEY", "")
    GROQ_VISION_MODEL: str = os.getenv(
        "GROQ_VISION_MODEL", "meta-llama/llama-4-scout-17b-16e-instruct"
    )
    VISION_TIMEOUT_SECONDS: int = _int_env("VISION_TIMEOUT_SECONDS", 20)

    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    DEBUG: bool = ENVIRONMENT == "development"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "info")
    SERVER_HOST: str = os.getenv("SERVER_HOST", "127.0.0.1")
    SERVER_PORT: int = _int_env("SERVER_PORT", 8000)


settings = Settings()
