#!/usr/bin/env python3
"""
HTTP request layer with linear-backoff retries

One GET through requests is the raw primitive (send). Policy on top of it:
  - up to max_attempts attempts (default 3)
  - delay before attempt n (n >= 2) is base_delay * (n - 1)
  - a transport fault is retried until the last attempt, then propagates
    as TransientNetworkError
  - a non-2xx response is retried while attempts remain; on the last attempt
    it is passed through to the caller as-is (fetch) or turned into
    FatalResponseError (request)

There is no wall-clock deadline and no cancellation: a retry sequence runs
to completion once started.
"""

import time
import logging
from typing import Any, Callable, Dict, Iterable, Optional
from urllib.parse import urlencode

import requests
from tenacity import (
    RetryCallState, Retrying, retry_if_exception_type, retry_if_result,
    stop_after_attempt, wait_incrementing,
)

from iptvcore.errors import FatalResponseError, TransientNetworkError

logger = logging.getLogger(__name__)

SENSITIVE_PARAMS = ('password', 'api_key')


def is_success(response: requests.Response) -> bool:
    return 200 <= response.status_code < 300


def _last_outcome(retry_state: RetryCallState):
    # Attempts exhausted: hand back the final response, or re-raise the final fault
    return retry_state.outcome.result()


class RetryingTransport:
    """Retrying GET + JSON decoding over a shared requests.Session"""

    def __init__(self, session: Optional[requests.Session] = None, max_attempts: int = 3,
                 base_delay: float = 1.0, timeout: float = 10.0,
                 sleep: Callable[[float], None] = time.sleep,
                 sensitive_params: Iterable[str] = SENSITIVE_PARAMS):
        self.session = session or requests.Session()
        self.max_attempts = max(1, int(max_attempts))
        self.base_delay = base_delay
        self.timeout = timeout
        self.sleep = sleep
        self.sensitive_params = tuple(sensitive_params)
        self.request_count = 0

    def loggable_url(self, url: str, params: Optional[Dict[str, Any]] = None) -> str:
        """URL with credentials masked, for log lines"""
        if not params:
            return url
        masked = {
            k: ('***' if k in self.sensitive_params else v)
            for k, v in params.items()
        }
        return f"{url}?{urlencode(masked)}"

    def send(self, url: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        """Single GET: returns the response whatever its status, or raises TransientNetworkError"""
        shown = self.loggable_url(url, params)
        self.request_count += 1
        logger.debug(f"HTTP> {shown}")
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f"HTTP! {type(e).__name__}: {e} {shown}")
            raise TransientNetworkError(f"{type(e).__name__} for {shown}") from e
        logger.debug(f"HTTP< {response.status_code} {shown}")
        return response

    def _before_sleep(self, retry_state: RetryCallState):
        outcome = retry_state.outcome
        if outcome.failed:
            reason = str(outcome.exception())
        else:
            reason = f"HTTP {outcome.result().status_code}"
        delay = retry_state.next_action.sleep if retry_state.next_action else 0
        logger.warning(
            f"Attempt {retry_state.attempt_number}/{self.max_attempts} failed ({reason}), "
            f"retrying in {delay:g}s"
        )

    def fetch(self, url: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        """
        GET with retries. Returns the final attempt's response even when it
        is non-2xx (degraded pass-through); raises TransientNetworkError when
        the final attempt itself faulted.
        """
        retryer = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_incrementing(start=self.base_delay, increment=self.base_delay),
            retry=(
                retry_if_exception_type(TransientNetworkError) |
                retry_if_result(lambda response: not is_success(response))
            ),
            before_sleep=self._before_sleep,
            retry_error_callback=_last_outcome,
            sleep=self.sleep,
        )
        return retryer(self.send, url, params)

    def request(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        GET with retries and decode the JSON body.

        Raises:
            TransientNetworkError: transport fault on the final attempt
            FatalResponseError: non-2xx on the final attempt, or malformed JSON
        """
        response = self.fetch(url, params)
        shown = self.loggable_url(url, params)

        if not is_success(response):
            raise FatalResponseError(
                f"HTTP {response.status_code} for {shown} after {self.max_attempts} attempts",
                status_code=response.status_code,
                url=shown,
            )

        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Malformed JSON from {shown}: {e}")
            raise FatalResponseError(
                f"Malformed JSON body from {shown}", status_code=response.status_code, url=shown
            ) from e
