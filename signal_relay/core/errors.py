import asyncio
import functools
from typing import Tuple, Type

from signal_relay.core.logging import system_logger


class RelayError(Exception):
    """Base class for relay failures."""


class ConfigError(RelayError):
    """Required configuration is missing or malformed. Fatal at startup."""


class SourceError(RelayError):
    """Raw messages could not be fetched."""


class PersistenceError(RelayError):
    """Dedup state could not be read or written."""


class DeliveryError(RelayError):
    """The sink rejected or failed to accept a signal."""

    def __init__(self, message: str, errcode=None):
        super().__init__(message)
        self.errcode = errcode


def retry_async(step_name: str, attempts: int = 3, delay: float = 1.0,
                exceptions: Tuple[Type[BaseException], ...] = (Exception,)):
    """Retry an async step a fixed number of times with a constant delay.

    Attempt counts and delays may also be given per call through the
    ``_attempts`` / ``_delay`` keyword arguments, which are consumed here.
    The last error is re-raised once attempts run out.
    """
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            max_attempts = max(1, int(kwargs.pop("_attempts", attempts)))
            wait = kwargs.pop("_delay", delay)
            for attempt in range(1, max_attempts + 1):
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    system_logger.warning(f"{step_name} failed", {
                        "attempt": attempt,
                        "max_attempts": max_attempts,
                        "error": str(e),
                    })
                    if attempt >= max_attempts:
                        raise
                    await asyncio.sleep(wait)
        return wrapper
    return decorator
