"""
Retry policy for the sync pipeline.

Only the version check is retried; downloads and extraction fail the run
on the first error.
"""

import logging

from tenacity import (
    AsyncRetrying,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from .exceptions import UpstreamUnavailable

logger = logging.getLogger(__name__)

_RETRY_MIN_WAIT_SECONDS = 1
_RETRY_MAX_WAIT_SECONDS = 10


def _log_before_retry(retry_state):
    """Log the retry attempt with details about the exception and wait time."""
    exception = retry_state.outcome.exception()
    next_attempt_in = retry_state.next_action.sleep
    logger.warning(
        f"Retrying version check in {next_attempt_in:.2f}s due to "
        f"{type(exception).__name__} (attempt {retry_state.attempt_number})..."
    )


def version_check_retrying(attempts: int) -> AsyncRetrying:
    """
    Builds the retry loop used around the upstream version check.

    With `attempts=1` the first failure is re-raised unchanged, which is the
    default behaviour. Only UpstreamUnavailable is retried: a malformed
    version list will not fix itself.
    """
    return AsyncRetrying(
        stop=stop_after_attempt(max(1, int(attempts))),
        wait=wait_exponential(
            multiplier=1,
            min=_RETRY_MIN_WAIT_SECONDS,
            max=_RETRY_MAX_WAIT_SECONDS,
        ),
        retry=retry_if_exception_type(UpstreamUnavailable),
        before_sleep=_log_before_retry,
        reraise=True,
    )
