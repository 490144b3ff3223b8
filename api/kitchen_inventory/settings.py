# kitchen_inventory/settings.py
"""
Kitchen Inventory Settings.

Every component receives a Settings instance explicitly (see main.create_app);
the module-level ``settings`` is only the default used at process start.
"""
from __future__ import annotations
from pathlib import Path
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, AliasChoices, field_validator

DEFAULT_ALLOW_LIST = [
    "apple", "orange", "banana", "carrot", "broccoli",
    "tomato", "cucumber", "potato", "onion", "lemon",
]


class Settings(BaseSettings):
    # =========================================================================
    # Storage
    # =========================================================================
    DATA_ROOT: Path = Field(
        default=(Path(__file__).resolve().parents[2] / "kitchen-data"),
        validation_alias=AliasChoices("DATA_ROOT", "KITCHEN_DATA_ROOT"),
    )
    # Empty -> sqlite file under DATA_ROOT (see database_url)
    DATABASE_URL: str = Field(default="", validation_alias=AliasChoices("DATABASE_URL", "KITCHEN_DB_URL"))
    DB_ECHO: bool = False

    # =========================================================================
    # HTTP
    # =========================================================================
    # e.g. "/api" to serve the dashboard routes under /api/inventory
    API_PREFIX: str = ""
    CORS_ORIGINS: List[str] = Field(default_factory=lambda: [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
    ])
    HOST: str = "0.0.0.0"
    PORT: int = 5000

    # =========================================================================
    # Logging
    # =========================================================================
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = True

    # =========================================================================
    # Detection -> inventory
    # =========================================================================
    DETECTION_ALLOW_LIST: List[str] = Field(default_factory=lambda: list(DEFAULT_ALLOW_LIST))
    DETECTION_PLACEHOLDER_COST: str = "100"
    DETECTION_EXPIRY_DAYS: int = Field(default=10, ge=0)
    DETECTION_MIN_CONFIDENCE: float = Field(default=0.0, ge=0.0, le=1.0)
    # False keeps the old behaviour: status from the frame's own count
    DETECTION_STATUS_FROM_TOTAL: bool = True

    # =========================================================================
    # Recipe lookup (spoonacular)
    # =========================================================================
    RECIPES_API_URL: str = "https://api.spoonacular.com"
    RECIPES_API_KEY: str = ""
    RECIPES_RESULT_COUNT: int = Field(default=3, ge=1, le=100)
    RECIPES_TIMEOUT: float = 15.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("DETECTION_ALLOW_LIST", mode="after")
    @classmethod
    def _normalize_allow_list(cls, v: List[str]) -> List[str]:
        return sorted({(s or "").strip().lower() for s in v if (s or "").strip()})

    @field_validator("API_PREFIX", mode="after")
    @classmethod
    def _normalize_prefix(cls, v: str) -> str:
        v = (v or "").strip().rstrip("/")
        if v and not v.startswith("/"):
            v = "/" + v
        return v

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"sqlite+aiosqlite:///{(Path(self.DATA_ROOT) / 'kitchen_dashboard.db').as_posix()}"


settings = Settings()
