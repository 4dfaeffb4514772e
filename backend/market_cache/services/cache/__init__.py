"""
Cache Services

Resource cache orchestrating the entry store, TTLs and refills.
"""

from .resource_cache import ResourceCache

__all__ = ["ResourceCache"]
