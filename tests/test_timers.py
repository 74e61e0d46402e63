import asyncio

from hubconsole.utils.timers import Scheduler


async def test_call_later_fires_and_forgets_handle():
    sched = Scheduler()
    fired = []
    sched.call_later(0.01, fired.append, "x")
    assert sched.pending == 1
    await asyncio.sleep(0.05)
    assert fired == ["x"]
    assert sched.pending == 0
    await sched.close()


async def test_cancel_prevents_callback():
    sched = Scheduler()
    fired = []
    handle = sched.call_later(0.01, fired.append, "x")
    sched.cancel(handle)
    await asyncio.sleep(0.05)
    assert fired == []
    assert sched.pending == 0
    await sched.close()


async def test_close_cancels_timers_and_tasks():
    sched = Scheduler()
    fired = []
    sched.call_later(0.01, fired.append, "timer")
    task = sched.spawn(asyncio.sleep(3600))
    await sched.close()
    assert task.cancelled()
    assert sched.pending == 0
    await asyncio.sleep(0.05)
    assert fired == []
