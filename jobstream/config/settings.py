from enum import Enum
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TransformType(str, Enum):
    FREQUENCY_BASE64 = "frequency_base64"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="JobStream", description="Application name")
    version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment")
    debug: bool = Field(default=True, description="Debug mode")

    # Algorithms
    transform: TransformType = Field(
        default=TransformType.FREQUENCY_BASE64,
        description="String transform applied to job input",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Logging level"
    )

    # Server
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8000, description="Server port")

    # Job processing
    job_concurrency: int = Field(
        default=100, ge=1, description="Maximum jobs processed at the same time"
    )
    job_start_delay_ms: int = Field(
        default=1000, description="Pause between claiming a job and announcing it"
    )
    job_unit_delay_min_ms: int = Field(
        default=1000, description="Lower bound of the per-unit streaming delay"
    )
    job_unit_delay_max_ms: int = Field(
        default=5000, description="Upper bound of the per-unit streaming delay"
    )
    job_cancel_grace_ms: int = Field(
        default=250,
        description="Pause before the cancelled event so the cancel response lands first",
    )
    job_shutdown_timeout_s: float = Field(
        default=30.0, description="How long shutdown waits for in-flight jobs"
    )

    # Real-time hub
    cancel_on_disconnect: bool = Field(
        default=True, description="Cancel a job when its subscriber leaves"
    )

    def model_post_init(self, __context) -> None:
        """Validate settings after initialization."""
        delays = {
            "job_start_delay_ms": self.job_start_delay_ms,
            "job_unit_delay_min_ms": self.job_unit_delay_min_ms,
            "job_unit_delay_max_ms": self.job_unit_delay_max_ms,
            "job_cancel_grace_ms": self.job_cancel_grace_ms,
        }
        for name, value in delays.items():
            if value < 0:
                raise ValueError(f"{name.upper()} must not be negative, got {value}")

        if self.job_unit_delay_min_ms > self.job_unit_delay_max_ms:
            raise ValueError(
                "JOB_UNIT_DELAY_MIN_MS must not exceed JOB_UNIT_DELAY_MAX_MS "
                f"({self.job_unit_delay_min_ms} > {self.job_unit_delay_max_ms})"
            )


# Global settings instance
settings = Settings()
