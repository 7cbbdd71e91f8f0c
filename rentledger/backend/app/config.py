from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ---- App ----
    app_env: str = "local"  # local|dev|prod
    database_url: str = "sqlite:///./rentledger.db"

    # ---- CORS (used by main.py) ----
    cors_allow_origins: list[str] | str = ["*"]

    # ---- Reproducibility ----
    engine_version: str = "2026-10-18.v1"

    # ---- Auth (dev header scope only) ----
    auth_mode: str = "dev"
    dev_auto_provision: bool = True
    dev_header_user_email: str = "X-User-Email"
    dev_header_user_role: str = "X-User-Role"

    # ---- Dashboards ----
    default_trend_months: int = 6
    max_trend_months: int = 36

    # ---- Payments ----
    enforce_payment_allowance: bool = True

    # ---- Logging ----
    log_level: str = "INFO"
    log_format: str = "json"  # json|text
    sql_log_level: str = "WARNING"

    # Routers default "today" to the date in this zone when no as_of is given.
    business_tz: str = "UTC"

    def model_post_init(self, __context) -> None:
        env = (self.app_env or "local").strip().lower()
        is_prod = env in ("prod", "production")

        if is_prod:
            if (self.auth_mode or "").strip().lower() == "dev":
                raise ValueError("SECURITY: auth_mode=dev is not allowed in prod")

            origins = self.cors_allow_origins
            if origins == "*" or origins == ["*"] or (isinstance(origins, str) and "*" in origins):
                raise ValueError("SECURITY: cors_allow_origins wildcard is not allowed in prod")

        if self.default_trend_months < 1 or self.default_trend_months > self.max_trend_months:
            raise ValueError("default_trend_months must be between 1 and max_trend_months")


settings = Settings()
