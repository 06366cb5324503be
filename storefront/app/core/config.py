from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import List

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env from repo root if present
ENV_PATH = Path(__file__).resolve().parents[3] / ".env"
if ENV_PATH.exists():
    load_dotenv(dotenv_path=ENV_PATH)


class Settings(BaseSettings):
    """Storefront settings (loaded from env).

    The service sits between the browser and the platform API:
      - "api_*" points at the remote platform backend.
      - "storage_*" selects where per-browser state (cart, session, region) lives.
      - "razorpay_*" / "crypto_*" configure the two checkout paths.
    """

    # --- service ---
    service_name: str = Field(default="emerite-storefront", description="Service name")
    version: str = Field(default="0.1.0", description="Service version")
    environment: str = Field(default="dev", description="Environment name (dev/staging/prod)")
    host: str = Field(default="0.0.0.0", description="API bind host")
    port: int = Field(default=8080, description="API bind port")

    # Logging
    log_level: str = Field(default="INFO", description="Root log level")
    log_format: str = Field(default="text", description="text|json")

    # --- remote platform API ---
    api_base_url: str = Field(
        default="http://localhost:2407",
        description="Platform API origin; requests go to <api_base_url>/api<endpoint>",
    )
    api_timeout_seconds: float = Field(default=30.0, gt=0, description="Per-request timeout")
    api_get_attempts: int = Field(
        default=2, ge=1, le=5,
        description="Attempts for idempotent GETs on transport errors (1 disables retry)",
    )

    # --- per-browser storage ---
    storage_backend: str = Field(default="file", description="memory|file|redis")
    storage_dir: Path = Field(default=Path("workspace/.storefront"), description="File backend root")
    redis_url: str = Field(default="redis://redis:6379/0", description="Redis connection URL")
    session_cookie_name: str = Field(default="emerite_sid", description="Browser id cookie")
    session_cookie_max_age: int = Field(default=60 * 60 * 24 * 30, description="Cookie lifetime (s)")

    # --- checkout ---
    store_name: str = Field(default="Emerite Store", description="Shown in the payment widget")
    razorpay_script_url: str = Field(default="https://checkout.razorpay.com/v1/checkout.js")
    razorpay_key_id: str = Field(default="", description="Fallback key when the order omits key_id")
    crypto_address_evm: str = Field(
        default="0x680e71e7733a8333f1a8dca2532a4d3f87724e90",
        description="Deposit address for BEP20/ERC20 transfers",
    )
    crypto_address_tron: str = Field(
        default="TT2fYWs2gfUbbyMzU3wdUps6ECqGPUt7zP",
        description="Deposit address for TRC20 transfers",
    )
    qr_service_url: str = Field(default="https://api.qrserver.com/v1/create-qr-code/")
    support_url: str = Field(default="https://discord.gg/YUD2hXZj2V", description="Manual payment support")

    # --- CORS ---
    cors_allow_origins: List[str] = Field(default_factory=lambda: ["*"])
    cors_allow_methods: List[str] = Field(default_factory=lambda: ["*"])
    cors_allow_headers: List[str] = Field(default_factory=lambda: ["*"])

    # pydantic-settings v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ---- Convenience helpers ----
    @property
    def api_root(self) -> str:
        """Base URL every endpoint is appended to."""
        return self.api_base_url.rstrip("/") + "/api"


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
