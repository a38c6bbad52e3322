"""Application configuration."""

from typing import Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


HOST_FIPS_BACKENDS = ("auto", "openssl3", "openssl-legacy", "none")
LOG_FORMATS = ("plain", "human", "json")


class Settings(BaseSettings):
    """Settings loaded from FIPSGATE_* environment variables."""

    # Host FIPS accessor
    # Options: "auto" (probe libcrypto), "openssl3", "openssl-legacy", "none"
    host_fips_backend: str = "auto"

    # Explicit libcrypto to load; otherwise ctypes.util.find_library("crypto")
    libcrypto_path: Optional[str] = None

    # Logging
    log_level: str = "INFO"
    log_format: str = "plain"  # plain, human, json

    model_config = SettingsConfigDict(
        env_prefix="FIPSGATE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def _normalize_choices(self) -> "Settings":
        """Lower-case enum-like fields and reject unknown values."""
        self.host_fips_backend = self.host_fips_backend.strip().lower().replace("_", "-")
        if self.host_fips_backend not in HOST_FIPS_BACKENDS:
            raise ValueError(
                f"Unknown host FIPS backend '{self.host_fips_backend}'. "
                f"Supported: {', '.join(HOST_FIPS_BACKENDS)}"
            )
        self.log_format = self.log_format.strip().lower()
        if self.log_format not in LOG_FORMATS:
            raise ValueError(
                f"Unknown log format '{self.log_format}'. Supported: {', '.join(LOG_FORMATS)}"
            )
        self.log_level = self.log_level.strip().upper()
        return self


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
