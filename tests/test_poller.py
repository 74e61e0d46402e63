import asyncio

import pytest

from hubconsole.errors import AgentError
from hubconsole.services.poller import Poller
from hubconsole.utils.timers import Scheduler

from conftest import eventually


@pytest.fixture
async def scheduler():
    sched = Scheduler()
    yield sched
    await sched.close()


async def test_first_fetch_is_immediate(scheduler):
    results = []

    async def source():
        return "snapshot"

    poller = Poller("interfaces", source, 3600, results.append, scheduler)
    await poller.start()
    await eventually(lambda: results == ["snapshot"])
    await poller.stop()


async def test_repeats_on_interval(scheduler):
    results = []
    counter = iter(range(1000))

    async def source():
        return next(counter)

    poller = Poller("network", source, 0.01, results.append, scheduler)
    await poller.start()
    await eventually(lambda: len(results) >= 3)
    await poller.stop()
    assert results[:3] == [0, 1, 2]


async def test_failure_keeps_previous_value(scheduler):
    held = {"value": "old"}

    async def failing():
        raise AgentError("/api/usb/devices", "connection refused")

    async def working():
        return "new"

    down = Poller("devices", failing, 1, lambda v: held.update(value=v), scheduler)
    await down.tick()
    assert held["value"] == "old"
    assert down.failures == 1
    assert "connection refused" in down.last_error
    assert down.last_success is None

    up = Poller("devices", working, 1, lambda v: held.update(value=v), scheduler)
    await up.tick()
    assert held["value"] == "new"
    assert up.failures == 0
    assert up.last_error is None
    assert up.last_success is not None


async def test_stalled_fetch_does_not_block_next_tick(scheduler):
    release = asyncio.Event()
    calls = []
    results = []

    async def source():
        calls.append(len(calls))
        if len(calls) == 1:
            await release.wait()
            return "late"
        return "fresh"

    poller = Poller("metrics", source, 0.01, results.append, scheduler)
    await poller.start()
    await eventually(lambda: len(calls) >= 3)
    assert "fresh" in results
    assert "late" not in results

    release.set()
    await eventually(lambda: "late" in results)
    # late answers are applied when they land, after fresher ones
    assert results.index("late") > results.index("fresh")
    await poller.stop()


async def test_stop_cancels_in_flight_fetches(scheduler):
    started = asyncio.Event()
    results = []

    async def source():
        started.set()
        await asyncio.sleep(3600)
        return "never"

    poller = Poller("errors", source, 3600, results.append, scheduler)
    await poller.start()
    await started.wait()
    await poller.stop()
    assert not poller.running
    assert results == []
    assert scheduler.pending == 0


async def test_one_failing_poller_does_not_affect_another(scheduler):
    good = []

    async def broken():
        raise AgentError("/api/metrics", "500 Server Error")

    async def healthy():
        return 1

    bad_poller = Poller("metrics", broken, 0.01, lambda v: None, scheduler)
    good_poller = Poller("network", healthy, 0.01, good.append, scheduler)
    await bad_poller.start()
    await good_poller.start()
    await eventually(lambda: len(good) >= 3 and bad_poller.failures >= 3)
    await bad_poller.stop()
    await good_poller.stop()


def test_interval_must_be_positive():
    with pytest.raises(ValueError):
        Poller("x", None, 0, print, Scheduler())


def test_max_inflight_must_be_positive():
    with pytest.raises(ValueError):
        Poller("x", None, 1, print, Scheduler(), max_inflight=0)


async def test_hung_source_caps_pending_fetches(scheduler):
    release = asyncio.Event()
    calls = []

    async def hung():
        calls.append(1)
        await release.wait()
        return "late"

    poller = Poller("network", hung, 0.01, lambda v: None, scheduler, max_inflight=3)
    await poller.start()
    await eventually(lambda: poller.skipped >= 5)
    assert poller.in_flight == 3
    assert len(calls) == 3

    # once the stalled fetches drain, ticks launch again
    release.set()
    await eventually(lambda: len(calls) > 3)
    await poller.stop()
    assert poller.in_flight == 0
