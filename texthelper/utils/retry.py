"""Retry policy for calls to the AI completion service."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

import anthropic
import openai
import requests
from tenacity import (
    after_log,
    before_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

RETRYABLE_STATUS_CODES = {408, 409, 425, 429, 500, 502, 503, 504}
DEFAULT_ATTEMPTS = 3


def _has_retryable_status(exception: BaseException) -> bool:
    """Return True when an exception exposes an HTTP status worth retrying."""
    status_code = getattr(exception, "status_code", None)
    if status_code and (status_code >= 500 or status_code in RETRYABLE_STATUS_CODES):
        return True

    response = getattr(exception, "response", None)
    if response is not None:
        code = getattr(response, "status_code", None)
        if code and (code >= 500 or code in RETRYABLE_STATUS_CODES):
            return True

    return False


def should_retry(exception: BaseException) -> bool:
    """Determine whether a given exception warrants a retry."""
    if isinstance(exception, (asyncio.TimeoutError, TimeoutError)):
        return True

    if isinstance(
        exception,
        (
            requests.exceptions.Timeout,
            requests.exceptions.ConnectionError,
            requests.exceptions.ChunkedEncodingError,
            openai.APIConnectionError,
            anthropic.APIConnectionError,
        ),
    ):
        return True

    return _has_retryable_status(exception)


def llm_retry(
    attempts: int = DEFAULT_ATTEMPTS,
    min_wait: float = 1,
    max_wait: float = 10,
) -> Callable:
    """Retry decorator for LLM API calls."""
    retry_logger = logging.getLogger(f"{__name__}.llm")
    return retry(
        reraise=True,
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
        retry=retry_if_exception(should_retry),
        before=before_log(retry_logger, logging.DEBUG),
        after=after_log(retry_logger, logging.WARNING),
    )
