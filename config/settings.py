"""Application settings loaded from environment variables.

Uses pydantic-settings for validation and type coercion. App-specific
settings use the ``GRAMCARE_`` prefix; GCP and Twilio credentials use
their canonical environment variable names via ``validation_alias``.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from config.languages import normalize_language


class Environment(StrEnum):
    DEVELOPMENT = "development"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """Central configuration for the GramCare message router.

    Environment variables are loaded from a ``.env`` file when present.
    """

    model_config = SettingsConfigDict(
        env_prefix="GRAMCARE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # ── App ────────────────────────────────────────────────────────────
    env: Literal["development", "production"] = "development"
    cors_origins: str = "http://localhost:3000"  # comma-separated

    # ── Logging ────────────────────────────────────────────────────────
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_format: str = Field(default="json", validation_alias="LOG_FORMAT")

    # ── Sessions ───────────────────────────────────────────────────────
    session_ttl_hours: float = 24.0
    session_sweep_interval_seconds: float = 3_600.0  # hourly
    session_history_limit: int = Field(default=10, ge=2)

    # ── Language ───────────────────────────────────────────────────────
    default_language: str = "en"
    detection_min_length: int = 10

    # ── External call budgets (seconds) ────────────────────────────────
    translation_timeout_seconds: float = 5.0
    detection_timeout_seconds: float = 3.0
    ai_timeout_seconds: float = 12.0
    # Whole-turn budget for SMS/WhatsApp; Twilio drops webhook replies after 15 s.
    webhook_turn_deadline_seconds: float = 12.0

    # ── Translation cache ──────────────────────────────────────────────
    translation_cache_ttl: int = 2_592_000  # 30 days
    translation_cache_max_size: int = 5_000

    # ── GCP ────────────────────────────────────────────────────────────
    gcp_project_id: str = Field(default="", validation_alias="GCP_PROJECT_ID")
    gcp_region: str = Field(default="global", validation_alias="GCP_REGION")

    # ── Vertex AI / Gemini ─────────────────────────────────────────────
    ai_enabled: bool = Field(default=False, validation_alias="AI_ENABLED")
    preferred_ai_service: str = Field(default="auto", validation_alias="PREFERRED_AI_SERVICE")
    vertex_ai_model: str = Field(default="gemini-2.0-flash", validation_alias="VERTEX_AI_MODEL")
    vertex_ai_location: str = Field(default="asia-south1", validation_alias="VERTEX_AI_LOCATION")

    # ── Twilio / messaging ─────────────────────────────────────────────
    sms_provider: Literal["twilio", "mock"] = "mock"
    twilio_account_sid: str = Field(default="", validation_alias="TWILIO_ACCOUNT_SID")
    twilio_auth_token: str = Field(default="", validation_alias="TWILIO_AUTH_TOKEN")
    sms_from_number: str = Field(default="", validation_alias="SMS_FROM_NUMBER")
    whatsapp_from_number: str = Field(default="", validation_alias="WHATSAPP_FROM_NUMBER")

    # ── Static data (empty means bundled files) ────────────────────────
    faq_data_path: str = ""
    alert_data_path: str = ""

    # ── Phone verification ─────────────────────────────────────────────
    verification_code_ttl_seconds: int = 300

    @field_validator("default_language")
    @classmethod
    def _check_default_language(cls, value: str) -> str:
        code = normalize_language(value)
        if code is None:
            raise ValueError(f"unsupported default language: {value!r}")
        return code

    # ── Derived Properties ─────────────────────────────────────────────

    @property
    def is_production(self) -> bool:
        return self.env == Environment.PRODUCTION

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def twilio_configured(self) -> bool:
        return bool(self.twilio_account_sid and self.twilio_auth_token)


# Module-level singleton; import ``settings`` everywhere.
settings = Settings()
