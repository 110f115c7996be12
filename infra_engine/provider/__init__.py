# Provider module - resource type catalogs
from .base import Provider, StaticProvider

__all__ = [
    "Provider",
    "StaticProvider",
]
