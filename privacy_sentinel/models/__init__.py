"""Data models for the Privacy Sentinel system."""

from .config import EngineConfiguration

__all__ = [
    "EngineConfiguration",
]
