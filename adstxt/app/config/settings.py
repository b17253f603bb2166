from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from adstxt.app.constants import (
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENT,
)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    user_agent: str = Field(DEFAULT_USER_AGENT, validation_alias="ADSTXT_USER_AGENT")

    # Bounds each individual HTTP call, not the whole redirect sequence.
    request_timeout_seconds: float = Field(
        DEFAULT_REQUEST_TIMEOUT_SECONDS,
        validation_alias="ADSTXT_REQUEST_TIMEOUT_SECONDS",
    )
    connect_timeout_seconds: float = Field(
        DEFAULT_REQUEST_TIMEOUT_SECONDS,
        validation_alias="ADSTXT_CONNECT_TIMEOUT_SECONDS",
    )
    max_redirects: int = Field(DEFAULT_MAX_REDIRECTS, validation_alias="ADSTXT_MAX_REDIRECTS")

    include_psl_private_domains: bool = Field(
        False,
        validation_alias="ADSTXT_INCLUDE_PSL_PRIVATE_DOMAINS",
    )
    log_level: str = Field("INFO", validation_alias="ADSTXT_LOG_LEVEL")
