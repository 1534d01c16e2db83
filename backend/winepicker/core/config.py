import os
from pathlib import Path


class Settings:
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./winepicker.db")

    ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY")
    VISION_MODEL = os.getenv("VISION_MODEL", "claude-sonnet-4-20250514")

    PRICE_CACHE_HOURS = int(os.getenv("PRICE_CACHE_HOURS", "24"))
    SCRAPER_TIMEOUT_SECONDS = float(os.getenv("SCRAPER_TIMEOUT_SECONDS", "15"))
    SCRAPER_RETRIES = int(os.getenv("SCRAPER_RETRIES", "3"))

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    CORS_ORIGINS = [
        origin.strip()
        for origin in os.getenv(
            "CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000"
        ).split(",")
        if origin.strip()
    ]

    SEED_DATA_PATH = os.getenv(
        "SEED_DATA_PATH",
        str(Path(__file__).resolve().parents[1] / "data" / "burgundy_wines.json"),
    )


settings = Settings()
