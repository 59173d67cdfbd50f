"""Storage package.

This package persists the small amount of state a check keeps between
invocations: the API session id and the channel list of each server.
Both live as versioned JSON files in a shared cache directory and are
replaced atomically so concurrent checks never read a torn entry.
"""

from .api_cache import ApiCache, safe_host

__all__ = ["ApiCache", "safe_host"]
