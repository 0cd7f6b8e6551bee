"""
Client module for runtime configuration.

Loads the deployment configuration served by the config endpoint.
"""

from .runtime_config import RuntimeConfig, load_runtime_config

__all__ = ["RuntimeConfig", "load_runtime_config"]
