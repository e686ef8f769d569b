"""
Decorators that log repository commands without touching their bodies.
"""

import functools
import inspect
import time
from typing import Any, Callable, Dict

from .logger import get_twig_logger, log_repository_operation

PREVIEW_LENGTH = 100


def _preview_arguments(sig: inspect.Signature, args: tuple, kwargs: dict) -> Dict[str, str]:
    """Truncated string form of every bound argument except ``self``."""
    bound = sig.bind(*args, **kwargs)
    bound.apply_defaults()
    return {
        name: str(value)[:PREVIEW_LENGTH]
        for name, value in bound.arguments.items()
        if name != "self"
    }


def track_operation(operation_type: str, component: str = "repository") -> Callable:
    """
    Record start, completion and failure of a repository command.

    Three audit records share an ``operation_id``: ``<type>`` with the
    argument previews, then ``<type>_complete`` or ``<type>_error``.
    Exceptions propagate unchanged.

    Example:
        >>> @track_operation("commit")
        ... def commit(self, message: str) -> str:
        ...     ...
    """

    def decorator(func: Callable) -> Callable:
        sig = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            log = get_twig_logger(component)
            operation_id = time.time_ns()
            log_repository_operation(
                log,
                operation_type,
                operation_id=operation_id,
                function=func.__name__,
                arguments=_preview_arguments(sig, args, kwargs),
            )

            try:
                result = func(*args, **kwargs)
            except Exception as e:
                log_repository_operation(
                    log,
                    f"{operation_type}_error",
                    operation_id=operation_id,
                    error=str(e),
                    error_type=type(e).__name__,
                    success=False,
                )
                raise

            log_repository_operation(
                log,
                f"{operation_type}_complete",
                operation_id=operation_id,
                success=True,
            )
            return result

        return wrapper

    return decorator


def performance_monitor(threshold_ms: float = 1000.0) -> Callable:
    """
    Warn when the wrapped call takes longer than ``threshold_ms``.

    Faster calls, and calls that raise, get a DEBUG timing record.
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            start = time.perf_counter()
            outcome = "failed"
            try:
                result = func(*args, **kwargs)
                outcome = "finished"
                return result
            finally:
                elapsed_ms = (time.perf_counter() - start) * 1000
                log = get_twig_logger("system").bind(
                    function=func.__name__, elapsed_ms=round(elapsed_ms, 3)
                )
                if outcome == "finished" and elapsed_ms > threshold_ms:
                    log.warning(
                        f"Performance threshold exceeded: {func.__name__} "
                        f"took {elapsed_ms:.0f} ms (limit {threshold_ms:.0f} ms)"
                    )
                else:
                    log.debug(f"{func.__name__} {outcome} in {elapsed_ms:.1f} ms")

        return wrapper

    return decorator
