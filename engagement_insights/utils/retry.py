"""
Retry utilities for resilient browser work.
Bounded retries with a configurable backoff and a retryability predicate.
"""
import asyncio
import logging
from typing import Awaitable, Callable, TypeVar, Optional

logger = logging.getLogger(__name__)

T = TypeVar('T')


def always_retry(exc: BaseException) -> bool:
    return True


async def retry_async(
    func: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    initial_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    exceptions: tuple = (Exception,),
    retry_if: Callable[[BaseException], bool] = always_retry,
    on_retry: Optional[Callable] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
) -> T:
    """
    Retry an async function with backoff.

    Args:
        func: Zero-argument coroutine function to retry
        max_attempts: Maximum number of attempts
        initial_delay: Delay before the second attempt, in seconds
        max_delay: Maximum delay in seconds
        exponential_base: Backoff growth factor; 1.0 gives a fixed backoff
        exceptions: Tuple of exceptions to catch
        retry_if: Predicate deciding whether a caught exception is worth retrying
        on_retry: Optional callback called as on_retry(attempt, delay, exc)
        sleep: Coroutine used to wait between attempts

    Returns:
        Result of the function call

    Raises:
        The last exception if all attempts fail, or immediately if the
        exception is not retryable
    """
    name = getattr(func, '__name__', repr(func))

    for attempt in range(1, max_attempts + 1):
        try:
            return await func()
        except exceptions as e:
            if not retry_if(e):
                logger.info(f"{name} failed with non-retryable {type(e).__name__}: {e}")
                raise

            if attempt == max_attempts:
                logger.error(f"Function {name} failed after {max_attempts} attempts: {e}")
                raise

            delay = min(
                initial_delay * (exponential_base ** (attempt - 1)),
                max_delay
            )

            logger.warning(
                f"Attempt {attempt}/{max_attempts} failed for {name}: {e}. "
                f"Retrying in {delay:.2f}s..."
            )

            if on_retry:
                on_retry(attempt, delay, e)

            await sleep(delay)

    raise ValueError("max_attempts must be at least 1")
