from __future__ import annotations


def backoff_delay(attempt: int, base: float = 1.0) -> float:
    """Seconds to wait after the failed ``attempt`` (1-based) before the next one."""

    if attempt < 1:
        raise ValueError("attempt must be >= 1")
    return base * 2 ** (attempt - 1)
