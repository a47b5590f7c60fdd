"""Unit tests for Data and Probe."""

from simkernel import Data, Instant, Probe, Simulation


class TestData:
    def test_empty_aggregations(self):
        data = Data()
        assert data.count() == 0
        assert data.mean() == 0.0
        assert data.min() == 0.0
        assert data.max() == 0.0

    def test_aggregations(self):
        data = Data("depth")
        for t, v in [(0.0, 2), (1.0, 4), (2.0, 6)]:
            data.add_stat(v, Instant.from_seconds(t))
        assert data.count() == 3
        assert data.mean() == 4.0
        assert data.min() == 2
        assert data.max() == 6
        assert data.between(0.5, 2.0).values == [(1.0, 4)]

    def test_to_dataframe(self):
        data = Data()
        data.add_stat(1.5, Instant.from_seconds(0.5))
        frame = data.to_dataframe()
        assert list(frame.columns) == ["time_s", "value"]
        assert frame["value"].tolist() == [1.5]


class TestProbe:
    def test_samples_metric_each_tick(self):
        sim = Simulation()
        counter = {"n": 0}
        sim.every(1.0, lambda: counter.update(n=counter["n"] + 1), start=0.25)
        probe = Probe(sim, lambda: counter["n"], interval=1.0, name="count")
        sim.run(3.0)
        assert probe.data.values == [(1.0, 1), (2.0, 2), (3.0, 3)]

    def test_stop(self):
        sim = Simulation()
        probe = Probe(sim, lambda: 1, interval=1.0)
        sim.schedule(probe.stop, at=1.5)
        sim.run(4.0)
        assert probe.data.count() == 1
        assert not probe.active
