from hubconsole.models.status import ThroughputSample
from hubconsole.services.throughput import ThroughputHistory


def test_starts_full_of_zero_samples():
    history = ThroughputHistory()
    assert len(history) == 60
    assert all(s.rx == 0 and s.tx == 0 for s in history.samples())
    assert history.latest == ThroughputSample(rx=0, tx=0)


def test_keeps_last_sixty_in_arrival_order():
    history = ThroughputHistory()
    pushed = [ThroughputSample(rx=float(i), tx=float(i) / 2) for i in range(150)]
    for sample in pushed:
        history.push(sample)
        assert len(history) == 60
    assert history.samples() == pushed[-60:]
    assert history.latest.rx == 149.0


def test_partial_fill_keeps_zero_head():
    history = ThroughputHistory(capacity=5)
    history.push(ThroughputSample(rx=3, tx=4))
    samples = history.samples()
    assert len(samples) == 5
    assert samples[:4] == [ThroughputSample()] * 4
    assert samples[-1] == ThroughputSample(rx=3, tx=4)
