import asyncio
import logging
import random
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from botocore.exceptions import ClientError
from tenacity import AsyncRetrying, RetryCallState, before_sleep_log, retry_if_exception

logger = logging.getLogger(__name__)

THROTTLING_ERROR_CODES = frozenset(
    {
        "Throttling",
        "ThrottlingException",
        "ThrottledException",
        "TooManyRequestsException",
        "RequestLimitExceeded",
        "RequestThrottled",
        "RequestThrottledException",
        "PriorRequestNotComplete",
        "ProvisionedThroughputExceededException",
        "SlowDown",
    }
)


def is_throttling_error(error: BaseException) -> bool:
    if not isinstance(error, ClientError):
        return False
    return error.response.get("Error", {}).get("Code") in THROTTLING_ERROR_CODES


@dataclass(frozen=True, kw_only=True)
class BackoffPolicy:
    """Decorrelated jitter backoff bounded by a cumulative wait budget.

    Each wait is ``max(min_wait, random() * min(max_wait, previous_wait * 3))``.
    Retrying stops once the sum of waits would exceed ``budget`` seconds.
    """

    min_wait: float = 3
    max_wait: float = 60
    budget: float = 300
    rand: Callable[[], float] = field(default=random.random, repr=False)

    def next_wait(self, previous_wait: float) -> float:
        return max(self.min_wait, self.rand() * min(self.max_wait, previous_wait * 3))


DEFAULT_BACKOFF = BackoffPolicy()


class _DecorrelatedJitter:
    """tenacity wait strategy, each wait derived from the previous one."""

    def __init__(self, policy: BackoffPolicy) -> None:
        self._policy = policy
        self._previous = policy.min_wait

    def __call__(self, retry_state: RetryCallState) -> float:
        self._previous = self._policy.next_wait(self._previous)
        return self._previous


def _stop_after_budget(policy: BackoffPolicy) -> Callable[[RetryCallState], bool]:
    def stop(retry_state: RetryCallState) -> bool:
        # idle_for is the time already slept, upcoming_sleep the wait about to start
        return retry_state.idle_for + retry_state.upcoming_sleep > policy.budget

    return stop


async def throttled_call(
    operation: Callable[..., Any], policy: BackoffPolicy = DEFAULT_BACKOFF, **params: Any
) -> Any:
    """Run a blocking boto3 operation off the event loop, retrying throttling errors.

    Any other error propagates on the first attempt. When the budget runs out the
    last throttling error is re-raised.
    """
    retrying = AsyncRetrying(
        retry=retry_if_exception(is_throttling_error),
        wait=_DecorrelatedJitter(policy),
        stop=_stop_after_budget(policy),
        sleep=asyncio.sleep,
        before_sleep=before_sleep_log(logger, logging.DEBUG),
        reraise=True,
    )
    async for attempt in retrying:
        with attempt:
            return await asyncio.to_thread(operation, **params)


async def get_all_pages(
    operation: Callable[..., Any],
    results_key: str,
    request_token_key: str,
    response_token_key: str,
    policy: BackoffPolicy = DEFAULT_BACKOFF,
    **params: Any,
) -> list[Any]:
    """Drain a cursor paginated list operation into one list, in page order.

    One throttled call is made per page, until a response has no next token.
    """
    items: list[Any] = []
    while True:
        response = await throttled_call(operation, policy, **params)
        items.extend(response.get(results_key) or [])
        token = response.get(response_token_key)
        if not token:
            return items
        params = {**params, request_token_key: token}
