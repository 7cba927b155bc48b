import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Tuple, Type, TypeVar

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ragbot.errors import UpstreamError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryPolicy:
    """How many times to call and how long to wait in between.

    The wait before attempt ``n + 1`` is ``backoff_base * 2 ** (n - 1)``
    seconds, so 1s then 2s with the defaults.
    """
    max_attempts: int = 3
    backoff_base: float = 1.0
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)
    retry_on: Tuple[Type[BaseException], ...] = (UpstreamError,)


def _log_retry(retry_state: RetryCallState):
    logger.warning(
        "Attempt %d failed: %s; retrying in %.1fs",
        retry_state.attempt_number,
        retry_state.outcome.exception(),
        retry_state.next_action.sleep,
    )


def call_with_retry(func: Callable[[], T], policy: RetryPolicy) -> T:
    """Call ``func`` until it succeeds or the policy gives up.

    Only exceptions in ``policy.retry_on`` are retried; after the last attempt
    the final exception is re-raised unchanged.
    """
    retrying = Retrying(
        stop=stop_after_attempt(policy.max_attempts),
        wait=wait_exponential(multiplier=policy.backoff_base, min=0),
        retry=retry_if_exception_type(policy.retry_on),
        sleep=policy.sleep,
        before_sleep=_log_retry,
        reraise=True,
    )
    return retrying(func)
