"""Core utilities"""
from .connection_cache import ConnectionCache

__all__ = [
    "ConnectionCache",
]
