# api/tests/test_retry.py
"""
Tests for http_retry.py - rate-limit detection and backoff schedule.
"""

import os
import sys
from unittest.mock import MagicMock

import httpx
import openai
import pytest

# Add api directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from services.chat.llm_service import CompletionProviderError
from utils.http_retry import RetryPolicy, is_rate_limit_error


class StatusError(Exception):
    def __init__(self, status_code):
        super().__init__(f"HTTP {status_code}")
        self.status_code = status_code


def _openai_rate_limit():
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    response = httpx.Response(429, request=request)
    return openai.RateLimitError("Rate limit reached", response=response, body=None)


def test_is_rate_limit_error():
    assert is_rate_limit_error(_openai_rate_limit())
    assert is_rate_limit_error(StatusError(429))
    assert is_rate_limit_error(RuntimeError("You exceeded your current quota"))
    assert is_rate_limit_error(CompletionProviderError("rate_limited", "groq"))

    assert not is_rate_limit_error(StatusError(500))
    assert not is_rate_limit_error(RuntimeError("invalid api key"))
    # A classified error is trusted even if its message mentions 429
    assert not is_rate_limit_error(CompletionProviderError("auth", "openai", "401 after 429"))


def test_requests_style_response_attribute():
    exc = Exception("Too Many Requests")
    exc.response = MagicMock(status_code=429)
    assert is_rate_limit_error(exc)


def test_delay_schedule_is_exponential():
    policy = RetryPolicy(max_attempts=4, base_delay=1.0)
    assert [policy.delay_for(n) for n in range(3)] == [1.0, 2.0, 4.0]


def test_retries_until_success():
    sleeps = []
    fn = MagicMock(side_effect=[StatusError(429), StatusError(429), "stream"])
    policy = RetryPolicy(max_attempts=3, base_delay=0.5, sleep=sleeps.append)

    assert policy.call(fn) == "stream"
    assert fn.call_count == 3
    assert sleeps == [0.5, 1.0]


def test_gives_up_after_max_attempts_without_final_sleep():
    sleeps = []
    fn = MagicMock(side_effect=StatusError(429))
    policy = RetryPolicy(max_attempts=3, base_delay=1.0, sleep=sleeps.append)

    with pytest.raises(StatusError):
        policy.call(fn)
    assert fn.call_count == 3
    assert sleeps == [1.0, 2.0]


def test_non_retryable_errors_propagate_immediately():
    sleeps = []
    fn = MagicMock(side_effect=ValueError("bad request"))
    policy = RetryPolicy(max_attempts=3, sleep=sleeps.append)

    with pytest.raises(ValueError):
        policy.call(fn)
    assert fn.call_count == 1
    assert sleeps == []


def test_single_attempt_policy():
    fn = MagicMock(side_effect=StatusError(429))
    policy = RetryPolicy(max_attempts=0, sleep=lambda s: None)
    with pytest.raises(StatusError):
        policy.call(fn)
    assert fn.call_count == 1
