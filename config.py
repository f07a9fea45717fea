"""Application configuration using pydantic-settings."""

from typing import Any

from pydantic import field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from services.credential_manager import CREDENTIAL_KEYS, get_credential


class KeychainSettingsSource(PydanticBaseSettingsSource):
    """Load credential fields from the OS keychain via ``keyring``.

    Only fields whose uppercase name appears in
    :data:`~services.credential_manager.CREDENTIAL_KEYS` are looked up.
    All other fields return ``None`` so the next source in the chain
    handles them.
    """

    def get_field_value(
        self, field: FieldInfo, field_name: str
    ) -> tuple[Any, str, bool]:
        env_name = field_name.upper()
        if env_name not in CREDENTIAL_KEYS:
            return None, field_name, False
        value = get_credential(env_name)
        return value, field_name, False

    def __call__(self) -> dict[str, Any]:
        d: dict[str, Any] = {}
        for field_name, field_info in self.settings_cls.model_fields.items():
            value, key, is_complex = self.get_field_value(field_info, field_name)
            if value is not None:
                d[key] = value
        return d


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            KeychainSettingsSource(settings_cls),
            env_settings,
            dotenv_settings,
            file_secret_settings,
        )

    # Alpaca API credentials
    APCA_API_KEY_ID: str = ""
    APCA_API_SECRET_KEY: str = ""
    APCA_API_BASE_URL: str = "https://api.alpaca.markets"

    # Activity feed paging
    PAGE_SIZE: int = 100
    REQUEST_TIMEOUT: float = 30.0

    # Ledger account names
    INVESTMENT_ACCOUNT: str = "Assets:Investments:Alpaca:Stock"
    BROKERAGE_ACCOUNT: str = "Assets:Alpaca Brokerage"
    BROKERAGE_FEE_ACCOUNT: str = "Expenses:Broker:Fee"
    DIVIDEND_ACCOUNT: str = "Income:Dividend"
    SEC_FEE_ACCOUNT: str = "Expenses:Broker:SEC Fee"
    FINRA_TAF_ACCOUNT: str = "Expenses:Broker:FINRA TAF"
    INTEREST_ACCOUNT: str = "Income:Interest"
    TRANSFER_ACCOUNT: str = "Assets:Transfer"

    @field_validator("APCA_API_BASE_URL", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Drop a trailing slash so request paths can be joined verbatim."""
        if isinstance(v, str):
            return v.rstrip("/")
        return v

    @field_validator("PAGE_SIZE")
    @classmethod
    def validate_page_size(cls, v: int) -> int:
        """The activities endpoint accepts between 1 and 100 records per page."""
        if not 1 <= v <= 100:
            raise ValueError(f"PAGE_SIZE must be between 1 and 100, got {v}")
        return v

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize LOG_LEVEL to an uppercase Python logging level."""
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"LOG_LEVEL must be one of {valid}, got {v!r}")
        return v.upper()

    # App settings
    LOG_LEVEL: str = "WARNING"


settings = Settings()
