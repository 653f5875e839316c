"""
Configuration settings for ficta
"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from ficta.models.directive_models import CommentConfig, Dialect, get_dialect_profile
from ficta.service.exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings, read from the environment and .env"""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    LOG_LEVEL: str = "INFO"

    # OpenAI credentials
    OPENAI_API_KEY: str = ""
    OPENAI_API_ORG: str = ""
    OPENAI_BASE_URL: Optional[str] = None

    # Protocol
    DIALECT: Dialect = Dialect.MARKER
    BACKUP_EXTENSION: str = ""  # empty disables backups

    # Author annotation syntax
    COMMENT_PREFIX: str = "@"
    LINE_COMMENT_PREFIX: str = "//"
    BLOCK_COMMENT_PREFIX: str = "/*"
    BLOCK_COMMENT_SUFFIX: str = "*/"

    # Completion
    COMPLETION_TIMEOUT: float = 120.0  # seconds
    TEMPERATURE_SCALE: Optional[float] = None  # None = dialect default

    # Watcher
    DEBOUNCE_SECONDS: float = 0.5
    OBSERVER_JOIN_TIMEOUT: float = 5.0

    @property
    def comment_config(self) -> CommentConfig:
        return CommentConfig(
            comment_prefix=self.COMMENT_PREFIX,
            line_comment_prefix=self.LINE_COMMENT_PREFIX,
            block_comment_prefix=self.BLOCK_COMMENT_PREFIX,
            block_comment_suffix=self.BLOCK_COMMENT_SUFFIX,
        )

    @property
    def temperature_scale(self) -> float:
        """Outbound temperature multiplier; the file always shows the unscaled value"""
        if self.TEMPERATURE_SCALE is not None:
            return self.TEMPERATURE_SCALE
        return get_dialect_profile(self.DIALECT).temperature_scale

    def validate_startup(self) -> None:
        """Validate required settings"""
        if not self.OPENAI_API_KEY:
            raise ConfigurationError("Please set the OPENAI_API_KEY environment variable")
        if self.COMPLETION_TIMEOUT <= 0:
            raise ConfigurationError("COMPLETION_TIMEOUT must be positive")
        for name in ("COMMENT_PREFIX", "LINE_COMMENT_PREFIX", "BLOCK_COMMENT_PREFIX", "BLOCK_COMMENT_SUFFIX"):
            if not getattr(self, name):
                raise ConfigurationError(f"{name} must not be empty")

