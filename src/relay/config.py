"""Process configuration for the checkout relay.

Settings are read once at startup from the environment and never mutated.
Secrets missing from the environment can be pulled from SSM Parameter Store
by setting SSM_PARAMETER_PREFIX, e.g. "/checkout-relay/prod".

Usage:
    from relay.config import get_settings

    settings = get_settings()
    settings.stripe_webhook_secret
"""

import logging
import os
from collections.abc import Mapping
from functools import lru_cache
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from relay.services.ssm_service import SSMService, SSMServiceError, get_ssm_service

logger = logging.getLogger(__name__)

DEFAULT_MAIL_FROM = "copat@copatcher.com"
DEFAULT_OPERATOR_EMAIL = "279sdh@gmail.com"
DEFAULT_TIMEZONE = "Europe/Copenhagen"

# Secret setting -> (environment variable, SSM parameter suffix)
SECRET_SOURCES: dict[str, tuple[str, str]] = {
    "stripe_secret_key": ("STRIPE_SECRET_KEY", "stripe/secret_key"),
    "stripe_webhook_secret": ("STRIPE_WEBHOOK_SECRET", "stripe/webhook_secret"),
    "sendgrid_api_key": ("SENDGRID_API_KEY", "sendgrid/api_key"),
}


class ConfigurationError(Exception):
    """Raised when required settings are missing or invalid."""

    pass


class Settings(BaseModel):
    """Immutable runtime configuration."""

    model_config = ConfigDict(frozen=True)

    stripe_secret_key: str = Field(..., min_length=1)
    stripe_webhook_secret: str = Field(..., min_length=1)
    stripe_webhook_tolerance: int = Field(default=300, gt=0)
    email_provider: Literal["sendgrid", "ses"] = "sendgrid"
    sendgrid_api_key: str | None = None
    ses_region: str | None = None
    download_url: str = Field(..., min_length=1)
    mail_from: str = DEFAULT_MAIL_FROM
    operator_email: str = DEFAULT_OPERATOR_EMAIL
    mail_reply_to: str | None = None
    payment_date_timezone: str = DEFAULT_TIMEZONE

    @field_validator("payment_date_timezone")
    @classmethod
    def _check_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {value}") from e
        return value

    @property
    def reply_to(self) -> str:
        """Reply-to address for customer emails."""
        return self.mail_reply_to or self.operator_email

    @property
    def timezone(self) -> ZoneInfo:
        return ZoneInfo(self.payment_date_timezone)

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        ssm: SSMService | None = None,
    ) -> "Settings":
        """Build settings from environment variables.

        Args:
            environ: Mapping to read from. Defaults to os.environ.
            ssm: SSM service used for secrets when SSM_PARAMETER_PREFIX is set.
                Defaults to the shared instance.

        Returns:
            Validated settings.

        Raises:
            ConfigurationError: If required values are missing or invalid.
        """
        env = os.environ if environ is None else environ

        values: dict[str, object] = {
            "email_provider": env.get("EMAIL_PROVIDER", "sendgrid").strip().lower(),
            "ses_region": env.get("SES_REGION") or env.get("AWS_DEFAULT_REGION"),
            "download_url": env.get("COPATCHER_DOWNLOAD_URL", ""),
            "mail_from": env.get("MAIL_FROM") or DEFAULT_MAIL_FROM,
            "operator_email": env.get("OPERATOR_EMAIL") or DEFAULT_OPERATOR_EMAIL,
            "mail_reply_to": env.get("MAIL_REPLY_TO") or None,
            "payment_date_timezone": env.get("PAYMENT_DATE_TIMEZONE") or DEFAULT_TIMEZONE,
        }
        if env.get("STRIPE_WEBHOOK_TOLERANCE"):
            values["stripe_webhook_tolerance"] = env["STRIPE_WEBHOOK_TOLERANCE"]

        prefix = (env.get("SSM_PARAMETER_PREFIX") or "").rstrip("/")
        missing: dict[str, str] = {}
        for field_name, (env_name, ssm_suffix) in SECRET_SOURCES.items():
            values[field_name] = env.get(env_name) or ""
            if not values[field_name] and prefix:
                missing[field_name] = f"{prefix}/{ssm_suffix}"

        if missing:
            found = _read_ssm_secrets(ssm or get_ssm_service(), list(missing.values()))
            for field_name, parameter_name in missing.items():
                values[field_name] = found.get(parameter_name, "")

        if values["sendgrid_api_key"] == "":
            values["sendgrid_api_key"] = None

        try:
            settings = cls.model_validate(values)
        except ValidationError as e:
            raise ConfigurationError(_describe_validation_error(e)) from e

        if settings.email_provider == "sendgrid" and not settings.sendgrid_api_key:
            raise ConfigurationError("SENDGRID_API_KEY is required when EMAIL_PROVIDER=sendgrid")

        logger.info(
            "Settings loaded (email_provider=%s, timezone=%s)",
            settings.email_provider,
            settings.payment_date_timezone,
        )
        return settings


def _read_ssm_secrets(ssm: SSMService, names: list[str]) -> dict[str, str]:
    """Read secrets from SSM; an unreachable store is a configuration error."""
    try:
        return ssm.get_secrets(names)
    except SSMServiceError as e:
        raise ConfigurationError(f"Could not read secrets from SSM: {e}") from e


def _describe_validation_error(error: ValidationError) -> str:
    fields = sorted({".".join(str(p) for p in err["loc"]) for err in error.errors()})
    return f"Invalid or missing settings: {', '.join(fields)}"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the process-wide settings, read once on first use.

    Raises:
        ConfigurationError: If the environment is incomplete.
    """
    return Settings.from_env()
