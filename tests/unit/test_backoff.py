import pytest

from gateway.app.core.backoff import exponential_backoff


@pytest.mark.asyncio
async def test_bounded_backoff_stops_after_max_attempts():
    delays = [d async for d in exponential_backoff(0.0, 0.0, 2.0, 3)]
    assert delays == [0.0, 0.0, 0.0]


@pytest.mark.asyncio
async def test_backoff_grows_and_caps(monkeypatch):
    import gateway.app.core.backoff as mod

    slept = []

    async def _sleep(delay):
        slept.append(delay)

    monkeypatch.setattr(mod.asyncio, "sleep", _sleep)
    delays = [d async for d in exponential_backoff(1.0, 5.0, 2.0, 5)]
    assert delays == [1.0, 2.0, 4.0, 5.0, 5.0]
    assert slept == [1.0, 2.0, 4.0, 5.0]


@pytest.mark.asyncio
async def test_zero_max_attempts_is_unbounded():
    delays = []
    async for delay in exponential_backoff(0.0, 0.0, 2.0, 0):
        delays.append(delay)
        if len(delays) == 10:
            break
    assert len(delays) == 10


@pytest.mark.asyncio
async def test_sleep_matches_delay_yielded_for_that_attempt(monkeypatch):
    import gateway.app.core.backoff as mod

    events = []

    async def _sleep(delay):
        events.append(("sleep", delay))

    monkeypatch.setattr(mod.asyncio, "sleep", _sleep)
    async for delay in exponential_backoff(0.5, 10.0, 3.0, 3):
        events.append(("attempt", delay))

    assert events == [
        ("attempt", 0.5),
        ("sleep", 0.5),
        ("attempt", 1.5),
        ("sleep", 1.5),
        ("attempt", 4.5),
    ]
