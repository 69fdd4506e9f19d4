"""
Retry utility tests.
"""
import pytest
from engagement_insights.utils.retry import retry_async


class Recorder:
    def __init__(self):
        self.delays = []

    async def sleep(self, delay):
        self.delays.append(delay)


def flaky(failures, exc=ValueError):
    calls = {"count": 0}

    async def func():
        calls["count"] += 1
        if calls["count"] <= failures:
            raise exc(f"failure {calls['count']}")
        return "ok"
    return func, calls


@pytest.mark.asyncio
async def test_retry_succeeds_after_transient_failures():
    """Test fixed backoff between attempts."""
    func, calls = flaky(2)
    recorder = Recorder()
    result = await retry_async(
        func, max_attempts=3, initial_delay=5.0, exponential_base=1.0, sleep=recorder.sleep
    )
    assert result == "ok"
    assert calls["count"] == 3
    assert recorder.delays == [5.0, 5.0]


@pytest.mark.asyncio
async def test_retry_raises_last_error_when_exhausted():
    func, calls = flaky(5)
    recorder = Recorder()
    with pytest.raises(ValueError, match="failure 3"):
        await retry_async(func, max_attempts=3, initial_delay=0, sleep=recorder.sleep)
    assert calls["count"] == 3
    assert len(recorder.delays) == 2


@pytest.mark.asyncio
async def test_non_retryable_error_is_raised_immediately():
    func, calls = flaky(5)
    recorder = Recorder()
    with pytest.raises(ValueError):
        await retry_async(func, max_attempts=3, retry_if=lambda e: False, sleep=recorder.sleep)
    assert calls["count"] == 1
    assert recorder.delays == []


@pytest.mark.asyncio
async def test_unlisted_exceptions_are_not_caught():
    func, calls = flaky(5, exc=KeyError)
    with pytest.raises(KeyError):
        await retry_async(func, max_attempts=3, exceptions=(ValueError,), sleep=Recorder().sleep)
    assert calls["count"] == 1


@pytest.mark.asyncio
async def test_exponential_backoff_is_capped():
    func, _ = flaky(3)
    recorder = Recorder()
    retries = []
    await retry_async(
        func,
        max_attempts=4,
        initial_delay=1.0,
        max_delay=3.0,
        exponential_base=2.0,
        on_retry=lambda attempt, delay, exc: retries.append(attempt),
        sleep=recorder.sleep
    )
    assert recorder.delays == [1.0, 2.0, 3.0]
    assert retries == [1, 2, 3]

