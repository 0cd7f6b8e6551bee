"""
Coordinator Settings

Runtime settings for the tap coordinator. Values come from explicit
arguments first and from the environment (optionally a ``.env`` file)
otherwise.

Environment Variables:
    - PAYMASTER_SERVICE_URL: Fee-sponsorship service URL; unset disables
      sponsorship entirely
    - WALLET_RPC_URL: JSON-RPC endpoint of the ambient wallet provider
    - TAP_LOG_LEVEL: Log level for the default log sink (default INFO)
    - TAP_UNSUPPORTED_STATUS_POLICY: ``assume_success`` (default) or
      ``treat_as_failure``
"""

import os
from typing import Optional

import dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from .engine.exceptions import ConfigurationError
from .schemas.status import UnsupportedStatusPolicy

dotenv.load_dotenv()


def _env(name: str) -> Optional[str]:
    """Read an environment variable, treating blank values as unset."""
    value = os.getenv(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def get_paymaster_url_from_env() -> Optional[str]:
    return _env("PAYMASTER_SERVICE_URL")


def get_wallet_rpc_url_from_env() -> Optional[str]:
    return _env("WALLET_RPC_URL")


class CoordinatorSettings(BaseModel):
    """
    Tunables of the submission pipeline.

    Attributes:
        paymaster_service_url: Sponsorship endpoint; ``None`` disables the
            capability negotiator
        wallet_rpc_url: Ambient wallet JSON-RPC endpoint
        confirmation_timeout: Seconds to poll a bundle before giving up
        poll_interval: Seconds between status polls
        unsupported_delay: Calming delay before resolving ``UNSUPPORTED``
        settle_delay: Pause between queue items so wallet prompts never overlap
        missing_id_delay: Pause used when the wallet returns no bundle id
        rpc_timeout: HTTP timeout for the ambient wallet transport
        log_level: Level of the default log sink
        unsupported_status_policy: Crediting policy for indeterminate outcomes
    """

    paymaster_service_url: Optional[str] = Field(default=None)
    wallet_rpc_url: Optional[str] = Field(default=None)
    confirmation_timeout: float = Field(default=45.0, gt=0)
    poll_interval: float = Field(default=0.8, ge=0)
    unsupported_delay: float = Field(default=1.5, ge=0)
    settle_delay: float = Field(default=0.22, ge=0)
    missing_id_delay: float = Field(default=1.2, ge=0)
    rpc_timeout: float = Field(default=60.0, gt=0)
    log_level: str = Field(default="INFO")
    unsupported_status_policy: UnsupportedStatusPolicy = Field(
        default=UnsupportedStatusPolicy.ASSUME_SUCCESS
    )

    @field_validator("paymaster_service_url", "wallet_rpc_url")
    @classmethod
    def _blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        return value or None

    @property
    def sponsorship_enabled(self) -> bool:
        return self.paymaster_service_url is not None

    @classmethod
    def from_env(cls, **overrides) -> "CoordinatorSettings":
        """
        Build settings from environment variables.

        Keyword overrides take precedence over the environment.

        Example:
            settings = CoordinatorSettings.from_env(poll_interval=0.5)
        """
        values = {
            "paymaster_service_url": get_paymaster_url_from_env(),
            "wallet_rpc_url": get_wallet_rpc_url_from_env(),
        }
        log_level = _env("TAP_LOG_LEVEL")
        if log_level:
            values["log_level"] = log_level.upper()
        policy = _env("TAP_UNSUPPORTED_STATUS_POLICY")
        if policy:
            values["unsupported_status_policy"] = policy.lower()
        values.update(overrides)
        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid coordinator settings: {e}") from e
