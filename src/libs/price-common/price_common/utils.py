# src/libs/price-common/price_common/utils.py
import time
import functools
from typing import Callable, Optional

from .monitoring import DB_OPERATION_LATENCY_SECONDS

def async_timed(repository: str, method: Optional[str] = None) -> Callable:
    """
    Records how long an async repository call takes in the
    DB_OPERATION_LATENCY_SECONDS histogram, whether it returns or raises.
    `method` defaults to the decorated function's name.
    """
    def decorator(func: Callable) -> Callable:
        histogram = DB_OPERATION_LATENCY_SECONDS.labels(repository=repository, method=method or func.__name__)

        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            started = time.perf_counter()
            try:
                return await func(*args, **kwargs)
            finally:
                histogram.observe(time.perf_counter() - started)
        return wrapper
    return decorator
