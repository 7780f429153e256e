"""
Retry/backoff and rate-limit-aware HTTP GET helper for the GitHub collector.
Responses are never cached; every call goes to the network.
"""

import os
import time
import random
import logging
import email.utils
from datetime import datetime, timezone
from typing import Optional, Dict, Any
import requests

logger = logging.getLogger(__name__)

# retry/backoff defaults from environment
DEFAULT_MAX_RETRIES = int(os.getenv("REPOSCORE_MAX_RETRIES", "3"))
DEFAULT_BACKOFF_BASE = float(os.getenv("REPOSCORE_BACKOFF_BASE", "0.5"))
_env_jitter = os.getenv("REPOSCORE_BACKOFF_JITTER")
DEFAULT_BACKOFF_JITTER = float(_env_jitter) if _env_jitter else None
DEFAULT_MAX_BACKOFF = float(os.getenv("REPOSCORE_MAX_BACKOFF", "120.0"))

# waits derived from server headers are capped at five minutes
MAX_SERVER_WAIT = 300.0


def _parse_retry_after(raw_ra: Optional[str]) -> Optional[float]:
    if not raw_ra:
        return None
    try:
        return float(raw_ra)
    except (TypeError, ValueError):
        pass
    try:
        dt = email.utils.parsedate_to_datetime(raw_ra)
    except (TypeError, ValueError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return max(0.0, (dt - datetime.now(timezone.utc)).total_seconds())


def _header_number(headers, key: str, cast):
    val = headers.get(key)
    if val is None:
        return None
    try:
        return cast(val)
    except (TypeError, ValueError):
        return None


def _parse_rate_headers(resp):
    headers = getattr(resp, 'headers', None) or {}
    ra = _parse_retry_after(headers.get('Retry-After'))
    rl_remaining = _header_number(headers, 'X-RateLimit-Remaining', int)
    rl_reset = _header_number(headers, 'X-RateLimit-Reset', float)
    return ra, rl_remaining, rl_reset


def _resolve_backoff_params(backoff_base: Optional[float], backoff_jitter: Optional[float], max_backoff: Optional[float]):
    base = float(backoff_base) if backoff_base is not None else DEFAULT_BACKOFF_BASE

    if backoff_jitter is not None:
        jitter = float(backoff_jitter)
    elif DEFAULT_BACKOFF_JITTER is not None:
        jitter = DEFAULT_BACKOFF_JITTER
    else:
        jitter = base

    cap = float(max_backoff) if max_backoff is not None else DEFAULT_MAX_BACKOFF

    return base, jitter, cap


def _should_retry_response(status_code: int, ra: Optional[float], rl_remaining: Optional[int]) -> bool:
    if status_code in (429, 502, 503):
        return True
    if status_code == 403 and (ra is not None or (rl_remaining is not None and rl_remaining <= 0)):
        return True
    return False


def _compute_wait_seconds(ra: Optional[float], rl_reset: Optional[float], backoff: float, jitter: float) -> float:
    if ra is not None:
        wait = ra
    elif rl_reset:
        wait = max(0.0, rl_reset - time.time())
    else:
        wait = backoff
    return min(wait + random.uniform(0, jitter), MAX_SERVER_WAIT)


def _parse_body(resp):
    try:
        return resp.json()
    except ValueError:
        return getattr(resp, 'text', None)


def perform_request_with_retries(
    url: str,
    headers: Optional[Dict[str, str]] = None,
    params: Optional[Dict[str, Any]] = None,
    max_retries: Optional[int] = None,
    backoff_base: Optional[float] = None,
    backoff_jitter: Optional[float] = None,
    max_backoff: Optional[float] = None,
) -> Dict[str, Any]:
    """GET url, retrying on throttling responses and connection errors.

    Returns a dict with 'status', 'response' (decoded JSON or text) and 'timestamp'.
    A connection error on the final attempt is re-raised; a throttled final attempt
    returns its status so the caller can decide.
    """
    base, jitter, cap = _resolve_backoff_params(backoff_base, backoff_jitter, max_backoff)
    attempts = max(1, int(max_retries if max_retries is not None else DEFAULT_MAX_RETRIES))

    backoff = base
    for attempt in range(attempts):
        last = attempt == attempts - 1
        try:
            resp = requests.get(url, headers=headers or {}, params=params or {})
        except requests.RequestException as exc:
            if last:
                raise
            wait = min(backoff + random.uniform(0, jitter), cap)
            logger.debug("GET %s failed (%s); retrying in %.1fs", url, exc, wait)
            time.sleep(wait)
            backoff = min(backoff * 2, cap)
            continue

        status = getattr(resp, 'status_code', 0)
        ra, rl_remaining, rl_reset = _parse_rate_headers(resp)
        if not last and _should_retry_response(status, ra, rl_remaining):
            wait = _compute_wait_seconds(ra, rl_reset, backoff, jitter)
            logger.debug("GET %s throttled with status %s; retrying in %.1fs", url, status, wait)
            time.sleep(wait)
            backoff = min(backoff * 2, cap)
            continue

        return {'response': _parse_body(resp), 'status': status, 'timestamp': time.time()}

    # unreachable: the final attempt always returns or raises
    raise RuntimeError("retry loop exited without a result")


__all__ = ["perform_request_with_retries"]
