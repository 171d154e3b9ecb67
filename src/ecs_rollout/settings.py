# src/ecs_rollout/settings.py
from typing import Optional, Dict, Any
from pydantic import Field, validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


MATCH_MODES = ["substring", "exact"]


class Settings(BaseSettings):
    """
    Run configuration for a rollout.

    Configuration precedence:
    1. Values passed explicitly (CLI flags, via ``with_overrides``)
    2. Environment variables
    3. .env file (if exists)
    4. Default values in this class (lowest priority)

    A single instance is built at startup and handed to the driver and the
    client manager; nothing below the CLI reads the environment directly.

    Usage:
        from ecs_rollout.settings import get_settings
        settings = get_settings().with_overrides(aws_region="us-west-2")
    """

    # AWS Core Settings
    aws_region: Optional[str] = Field(
        default=None,
        alias="AWS_DEFAULT_REGION",
        description="Region of the cluster (the -r flag takes precedence)"
    )

    aws_access_key_id: Optional[str] = Field(
        default=None,
        alias="AWS_ACCESS_KEY_ID"
    )

    aws_secret_access_key: Optional[str] = Field(
        default=None,
        alias="AWS_SECRET_ACCESS_KEY"
    )

    aws_session_token: Optional[str] = Field(
        default=None,
        alias="AWS_SESSION_TOKEN"
    )

    aws_profile: Optional[str] = Field(
        default=None,
        alias="AWS_PROFILE",
        description="Named profile (SSO or shared credentials file)"
    )

    aws_endpoint_url: Optional[str] = Field(
        default=None,
        alias="AWS_ENDPOINT_URL",
        description="Custom ECS endpoint, e.g. a local moto server"
    )

    # Stabilization wait
    wait_delay: int = Field(
        default=15,
        alias="ECS_ROLLOUT_WAIT_DELAY",
        description="Seconds between services_stable polls"
    )

    wait_max_attempts: int = Field(
        default=40,
        alias="ECS_ROLLOUT_WAIT_MAX_ATTEMPTS",
        description="Polls before the stabilization wait times out"
    )

    # Rollout behaviour
    match_mode: str = Field(
        default="substring",
        alias="ECS_ROLLOUT_MATCH_MODE",
        description="Image matching rule: substring or exact"
    )

    legacy_exit_codes: bool = Field(
        default=False,
        alias="ECS_ROLLOUT_LEGACY_EXIT_CODES",
        description="Exit 0 on every failure path"
    )

    # Logging
    log_level: str = Field(
        default="WARNING",
        alias="LOG_LEVEL",
        description="Logging level"
    )

    @validator('match_mode')
    def validate_match_mode(cls, v):
        """Validate match mode is one of the allowed values."""
        v = v.lower()
        if v not in MATCH_MODES:
            raise ValueError(f"Invalid match_mode: {v}. Must be one of {MATCH_MODES}")
        return v

    @validator('wait_delay', 'wait_max_attempts')
    def validate_positive(cls, v):
        if v < 1:
            raise ValueError("must be a positive integer")
        return v

    @validator('log_level')
    def normalize_log_level(cls, v):
        return v.upper()

    @property
    def waiter_config(self) -> Dict[str, int]:
        """WaiterConfig for boto3 waiters."""
        return {
            'Delay': self.wait_delay,
            'MaxAttempts': self.wait_max_attempts
        }

    def with_overrides(self, **overrides: Any) -> "Settings":
        """Return a copy with the non-None overrides applied and re-validated."""
        values = self.model_dump()
        values.update({k: v for k, v in overrides.items() if v is not None})
        return Settings.model_validate(values)

    def client_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for ``boto3.Session.client``."""
        kwargs: Dict[str, Any] = {'region_name': self.aws_region}
        if self.aws_access_key_id:
            kwargs['aws_access_key_id'] = self.aws_access_key_id
        if self.aws_secret_access_key:
            kwargs['aws_secret_access_key'] = self.aws_secret_access_key
        if self.aws_session_token:
            kwargs['aws_session_token'] = self.aws_session_token
        if self.aws_endpoint_url:
            kwargs['endpoint_url'] = self.aws_endpoint_url
        return kwargs

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    This ensures we only read the environment once per process.
    """
    return Settings()
