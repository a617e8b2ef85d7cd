import logging
from collections.abc import Callable
from typing import TypeVar

from tenacity import Retrying, before_sleep_log, retry_if_exception_type, stop_after_attempt, wait_exponential

_log = logging.getLogger("todolist.retry_utils")

T = TypeVar("T")


def retrying_write(*, attempts: int = 3, max_wait: float = 0.5) -> Retrying:
    """
    Retry policy for local storage writes.

    Only `OSError` is retried.
    Quota and serialization errors surface on the first attempt.
    """
    return Retrying(
        retry=retry_if_exception_type(OSError),
        wait=wait_exponential(multiplier=0.05, max=max_wait),
        stop=stop_after_attempt(attempts),
        before_sleep=before_sleep_log(_log, logging.WARNING),
        # Re-raise the last exception if all retries fail
        reraise=True,
    )


def call_with_retries(fn: Callable[[], T], *, policy: Callable[[], Retrying] = retrying_write) -> T:
    """Run `fn` under the given retry policy and return its result"""
    return policy()(fn)
