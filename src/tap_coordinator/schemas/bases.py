"""
Base Schema Models for the Tap Coordinator

This module defines the base model every wallet-facing schema inherits from.
Wallet requests use camelCase keys (``chainId``, ``atomicRequired``) while the
Python side uses snake_case attributes, so all models accept both and dump
by alias when they are sent over the wire.

Core Classes:
    - CanonicalModel: Pydantic base model with alias-keyed wire serialization

Dependencies:
    - pydantic: For data validation and serialization
"""

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict


class CanonicalModel(BaseModel):
    """
    Pydantic base model with a fixed wire representation.

    Features:
        - Populate by field name or by wire alias
        - ``to_rpc()`` produces the exact params object a wallet expects
          (aliases, no ``None`` fields, JSON-compatible values)

    Example:
        class Call(CanonicalModel):
            to: str
            value: str = "0x0"

        Call(to="0xabc").to_rpc()  # {"to": "0xabc", "value": "0x0"}
    """

    model_config = ConfigDict(populate_by_name=True)

    def to_rpc(self) -> Dict[str, Any]:
        """
        Convert model to the dict sent as a JSON-RPC parameter.

        Returns:
            Dict[str, Any]: Alias-keyed dictionary without ``None`` values.
        """
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
