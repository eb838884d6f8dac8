"""
Timeout handling for blocking collaborator calls.

The pricing core itself never blocks; the only call that can is the external
price-choice callback. These helpers bound it so a silent collaborator cannot
stall a whole tender.
"""

import signal
import threading
from contextlib import contextmanager
from typing import Any, Generator

from tender_pricing.kernel.logging import get_logger

logger = get_logger(__name__)


class TimeoutError(Exception):
    """Raised when an operation exceeds its timeout."""

    pass


def _alarm_supported() -> bool:
    return hasattr(signal, "SIGALRM") and (
        threading.current_thread() is threading.main_thread()
    )


@contextmanager
def timeout_context(
    seconds: int | None, operation_name: str = "operation"
) -> Generator[None, None, None]:
    """
    Context manager that raises TimeoutError if operation exceeds time limit.

    Note: This uses SIGALRM and only works on Unix-like systems in the main
    thread. Elsewhere, or when seconds is None or not positive, the body runs
    unbounded.

    Args:
        seconds: Maximum seconds to allow for operation
        operation_name: Name of operation for logging

    Raises:
        TimeoutError: If operation exceeds timeout

    Example:
        with timeout_context(30, "choose_reference_price"):
            source = chooser(item, sources)
    """
    if not seconds or seconds <= 0 or not _alarm_supported():
        yield
        return

    def _timeout_handler(signum: int, frame: Any) -> None:
        logger.error(
            "Operation exceeded timeout",
            operation=operation_name,
            timeout_seconds=seconds,
        )
        raise TimeoutError(f"{operation_name} exceeded timeout of {seconds} seconds")

    old_handler = signal.signal(signal.SIGALRM, _timeout_handler)
    signal.alarm(seconds)

    try:
        yield
    finally:
        signal.alarm(0)
        signal.signal(signal.SIGALRM, old_handler)

