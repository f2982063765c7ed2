"""Retry utilities with exponential backoff."""

import time
from typing import Any, Callable, Tuple, Type, TypeVar

import structlog

log = structlog.stdlib.get_logger()

T = TypeVar("T")


def retry_call(
    func: Callable[..., T],
    *args: Any,
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exceptions: Tuple[Type[BaseException], ...] = (Exception,),
    non_retryable: Tuple[Type[BaseException], ...] = (),
    **kwargs: Any,
) -> T:
    """
    Call func, retrying with exponential backoff when it raises.

    Args:
        func: Callable to invoke
        max_retries: Maximum number of retry attempts after the first call
        base_delay: Initial delay in seconds
        max_delay: Maximum delay in seconds
        exceptions: Exception types that trigger a retry
        non_retryable: Subclasses of exceptions that are re-raised immediately

    Returns:
        Whatever func returns on its first successful attempt

    Raises:
        The last exception raised by func once retries are exhausted
    """
    for attempt in range(max_retries + 1):
        try:
            return func(*args, **kwargs)
        except exceptions as e:
            if non_retryable and isinstance(e, non_retryable):
                raise

            if attempt == max_retries:
                if max_retries:
                    log.error(
                        "max_retries_reached",
                        function=getattr(func, "__name__", repr(func)),
                        max_retries=max_retries,
                        error=str(e),
                    )
                raise

            delay = min(base_delay * (2**attempt), max_delay)

            log.warning(
                "retrying_after_error",
                function=getattr(func, "__name__", repr(func)),
                attempt=attempt + 1,
                max_retries=max_retries,
                delay_seconds=delay,
                error=str(e),
            )

            time.sleep(delay)

    raise AssertionError("unreachable")
