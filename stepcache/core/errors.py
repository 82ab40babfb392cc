"""Exception types raised by the cache engine.

Every error derives from `CacheSimError` and also from the closest builtin,
so callers that only know about `ValueError`/`IndexError` still catch them.
"""


class CacheSimError(Exception):
    """Base class for all simulator errors."""


class ConfigError(CacheSimError, ValueError):
    """Cache geometry, policy or address width is not usable."""


class AddressOutOfRangeError(CacheSimError, IndexError):
    """Address outside [0, 2**address_width)."""


class BusyError(CacheSimError, RuntimeError):
    """A request was issued while another trace is still being stepped."""


class RequestError(CacheSimError, ValueError):
    """Malformed request (unknown type, or a write without data)."""


__all__ = ["CacheSimError", "ConfigError", "AddressOutOfRangeError", "BusyError", "RequestError"]
