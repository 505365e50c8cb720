"""Error handling utilities for calls to external services.

Every call that leaves the process (Steam, BattleMetrics, the member
directory, the presentation layer) is single-attempt and bounded by a timeout.
Failures of any kind are logged here and converted to a caller supplied
default, so nothing raised by a collaborator crosses a public operation.

Error Handling Strategy:
- Timeouts: logged as a warning, default returned
- Authentication/forbidden errors: logged as an error (misconfigured key), default returned
- General errors: logged as a warning, default returned
- Cancellation: always propagates
"""

import asyncio
from typing import Any, Awaitable, Optional, TypeVar

import structlog

from .steam_api.errors import AuthenticationError, ForbiddenError

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def _log_failure(error: BaseException, operation: str, context: dict) -> None:
    """Log a failed external call with consistent fields."""
    if isinstance(error, asyncio.TimeoutError):
        logger.warning(f"Timed out during {operation}", **context)
        return

    if isinstance(error, (AuthenticationError, ForbiddenError)):
        logger.error(
            f"Authentication failure during {operation}",
            error=str(error),
            error_type=type(error).__name__,
            **context,
        )
        return

    logger.warning(
        f"Failed to {operation}",
        error=str(error),
        error_type=type(error).__name__,
        **context,
    )


async def call_external(
    operation: str,
    call: Awaitable[T],
    *,
    default: T,
    timeout: Optional[float] = None,
    **context: Any,
) -> T:
    """Await an external call, converting any failure into ``default``.

    :param operation: Description of the operation (e.g., "fetch player name").
    :param call: The awaitable to run.
    :param default: Value returned on failure or timeout.
    :param timeout: Seconds before the call is abandoned; ``None`` disables it.
    :param context: Extra fields added to the failure log entry.
    """
    try:
        if timeout is None:
            return await call
        return await asyncio.wait_for(call, timeout)
    except Exception as error:
        _log_failure(error, operation, context)
        return default
