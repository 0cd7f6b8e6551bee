from .apps import ConfigServer

__all__ = [
    "ConfigServer",
]
