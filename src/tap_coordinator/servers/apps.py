"""
Runtime Config Server - FastAPI app exposing non-secret configuration.

Clients fetch ``GET /api/config`` at startup to learn whether fee
sponsorship is available for this deployment.
"""

from typing import Callable, Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from ..config import get_paymaster_url_from_env
from ..clients.runtime_config import CONFIG_PATH


class ConfigServer(FastAPI):
    """FastAPI server publishing the runtime configuration."""

    def __init__(
        self,
        paymaster_url_source: Optional[Callable[[], Optional[str]]] = None,
        config_endpoint: str = CONFIG_PATH,
        **fastapi_kwargs
    ):
        """Initialize config server.

        Args:
            paymaster_url_source: Callable returning the paymaster URL, read on
                every request (default: ``PAYMASTER_SERVICE_URL`` from the environment)
            config_endpoint: Endpoint path (default: /api/config)
            **fastapi_kwargs: FastAPI arguments (title, version, etc.)
        """
        self.paymaster_url_source = paymaster_url_source or get_paymaster_url_from_env
        super().__init__(**fastapi_kwargs)

        self.config_endpoint = config_endpoint
        self._setup_config_endpoint(config_endpoint)

    def _setup_config_endpoint(self, path: str = CONFIG_PATH) -> None:
        """Setup runtime config endpoint.

        Args:
            path: Endpoint path (default: /api/config)
        """
        @self.get(path)
        async def runtime_config():
            """Non-secret runtime configuration; never cached."""
            return JSONResponse(
                status_code=200,
                content={"paymasterServiceUrl": self.paymaster_url_source() or ""},
                headers={"Cache-Control": "no-store"},
            )
