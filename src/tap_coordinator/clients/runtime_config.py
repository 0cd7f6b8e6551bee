"""
Runtime Configuration Loader

Fetches the deployment's runtime configuration from the ``/api/config``
endpoint served by :class:`~tap_coordinator.servers.ConfigServer`. The only
value today is the optional paymaster service URL.

Loading never fails: an unreachable endpoint, a non-2xx status or a
malformed body all leave sponsorship disabled.
"""

from typing import Optional

import httpx
from loguru import logger
from pydantic import Field, ValidationError, field_validator

from ..schemas.bases import CanonicalModel

CONFIG_PATH = "/api/config"


class RuntimeConfig(CanonicalModel):
    """
    Runtime configuration payload.

    Attributes:
        paymaster_service_url: Sponsorship endpoint (``paymasterServiceUrl``
            on the wire); ``None`` when sponsorship is not configured
    """

    paymaster_service_url: Optional[str] = Field(default=None, alias="paymasterServiceUrl")

    @field_validator("paymaster_service_url", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        if value is None:
            return None
        value = str(value).strip()
        return value or None


async def load_runtime_config(
    base_url: str,
    override: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> RuntimeConfig:
    """
    Resolve the runtime configuration.

    Args:
        base_url: Origin serving ``/api/config``
        override: Explicit paymaster URL; wins over the endpoint when non-blank
        client: Optional httpx client (a temporary one is created otherwise)

    Returns:
        RuntimeConfig: Never raises; failures yield an empty config.
    """
    explicit = RuntimeConfig(paymaster_service_url=override)
    if explicit.paymaster_service_url:
        return explicit

    url = base_url.rstrip("/") + CONFIG_PATH
    owns_client = client is None
    client = client or httpx.AsyncClient(timeout=10.0)
    try:
        response = await client.get(url, headers={"Cache-Control": "no-store"})
        if not response.is_success:
            logger.info("Runtime config unavailable (HTTP {}), sponsorship disabled", response.status_code)
            return RuntimeConfig()
        return RuntimeConfig.model_validate(response.json())
    except (httpx.HTTPError, ValueError, ValidationError) as e:
        logger.info("Runtime config unavailable ({}), sponsorship disabled", e)
        return RuntimeConfig()
    finally:
        if owns_client:
            await client.aclose()
