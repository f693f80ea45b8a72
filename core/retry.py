"""
Optimistic Concurrency Retry

tenacity policy shared by services whose repositories reject stale writes
with a ConcurrencyError.

Usage:
    async for attempt in optimistic_retry(config):
        with attempt:
            entity = await repo.get(...)
            ...
            await repo.save(entity, expected_version=entity.version)
"""
import logging

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from core.config import CommerceConfig
from core.errors import ConcurrencyError

logger = logging.getLogger(__name__)


def optimistic_retry(config: CommerceConfig) -> AsyncRetrying:
    """Build the retry loop for a load-validate-mutate-save unit"""
    return AsyncRetrying(
        stop=stop_after_attempt(config.retry_attempts),
        wait=wait_exponential(multiplier=config.retry_min_wait, min=config.retry_min_wait, max=config.retry_max_wait),
        retry=retry_if_exception_type(ConcurrencyError),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
