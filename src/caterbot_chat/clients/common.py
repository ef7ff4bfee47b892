from __future__ import annotations

from loguru import logger
from tenacity import retry_if_exception_type, stop_after_attempt, wait_exponential


def _log_retry(max_attempts: int):
    def _on_retry(retry_state) -> None:
        attempt = retry_state.attempt_number
        wait = retry_state.next_action.sleep if retry_state.next_action else 0
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        reason = type(exc).__name__ if exc else "Unknown"
        logger.warning(f"{reason}. Retrying in {wait:.1f}s (attempt {attempt}/{max_attempts})...")

    return _on_retry


def default_retry_kwargs(
    exception_types: tuple[type[Exception], ...],
    *,
    max_attempts: int = 3,
    backoff_seconds: float = 1.0,
) -> dict:
    return {
        "retry": retry_if_exception_type(exception_types),
        "wait": wait_exponential(multiplier=backoff_seconds, min=backoff_seconds, max=backoff_seconds * 8),
        "stop": stop_after_attempt(max(1, max_attempts)),
        "before_sleep": _log_retry(max_attempts),
        "reraise": True,
    }
