from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class ApplicationSettings(BaseSettings):
    """Storefront settings.

    Everything stays minimal: catalog and promotion data come from external
    providers, the files below only back the bundled file providers.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    log_level: str = "INFO"

    # Local clock used for happy-hour slots and validity windows.
    timezone: str = "Asia/Ho_Chi_Minh"

    default_payment_method: str = "Cash"
    note_max_length: int = 200

    catalog_path: str | None = None
    promotions_path: str | None = None


application_settings = ApplicationSettings()
