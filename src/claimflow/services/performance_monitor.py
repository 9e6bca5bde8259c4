"""Performance monitoring decorator for claim lifecycle operations."""

import inspect
import time
from collections.abc import Callable
from functools import wraps
from typing import Any, ParamSpec, TypeVar

from beartype import beartype

from ..core.logging_utils import get_logger

P = ParamSpec("P")
T = TypeVar("T")

logger = get_logger(__name__)


@beartype
def performance_monitor(
    operation_name: str,
    max_duration_ms: int = 2000,
    log_slow_operations: bool = True,
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """Decorator to time an operation and report slow or failed runs.

    Args:
        operation_name: Name of the operation for monitoring
        max_duration_ms: Warn when a call takes longer than this
        log_slow_operations: Whether to log slow operations
    """

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        @wraps(func)
        async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> Any:
            start_time = time.perf_counter()
            try:
                result = await func(*args, **kwargs)  # type: ignore[misc]
            except Exception as e:
                duration_ms = (time.perf_counter() - start_time) * 1000
                logger.error(
                    "%s failed after %.2fms: %s", operation_name, duration_ms, e
                )
                raise

            duration_ms = (time.perf_counter() - start_time) * 1000
            _log_duration(
                operation_name, duration_ms, max_duration_ms, log_slow_operations
            )
            return result

        @wraps(func)
        def sync_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            start_time = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                duration_ms = (time.perf_counter() - start_time) * 1000
                logger.error(
                    "%s failed after %.2fms: %s", operation_name, duration_ms, e
                )
                raise

            duration_ms = (time.perf_counter() - start_time) * 1000
            _log_duration(
                operation_name, duration_ms, max_duration_ms, log_slow_operations
            )
            return result

        # Return appropriate wrapper based on function type
        if inspect.iscoroutinefunction(func):
            return async_wrapper  # type: ignore[return-value]
        return sync_wrapper

    return decorator


def _log_duration(
    operation_name: str,
    duration_ms: float,
    max_duration_ms: int,
    log_slow_operations: bool,
) -> None:
    if log_slow_operations and duration_ms > max_duration_ms:
        logger.warning(
            "PERFORMANCE WARNING: %s took %.2fms (threshold: %dms)",
            operation_name,
            duration_ms,
            max_duration_ms,
        )
    else:
        logger.debug("%s completed in %.2fms", operation_name, duration_ms)
