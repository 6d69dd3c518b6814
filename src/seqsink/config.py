"""
Seq Logging Configuration.
"""

from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class SeqSettings(BaseSettings):
    """Settings for process-wide Seq logging (see seqsink.core)."""

    model_config = SettingsConfigDict(
        env_prefix="SEQ_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    url: str = Field(default="http://localhost:5341", description="Seq server URL")
    api_key: str = Field(default="", description="Seq API key, empty for none")
    level: LogLevel = Field(default=LogLevel.INFO, description="Minimum log level")
    timeout: float = Field(default=10.0, gt=0, description="Per-request timeout in seconds")
    intercept_stdlib: bool = Field(
        default=False,
        description="Route records from the stdlib logging module to Seq as well",
    )
