"""Unit tests for Simulation scheduling and the run loop."""

import pytest

from simkernel import (
    ActionFailure,
    AlreadyRunning,
    EventLog,
    Instant,
    KernelState,
    PastSchedule,
    Simulation,
)


def _recorder(sim: Simulation, log: list, name: str):
    return lambda: log.append((name, sim.current_time()))


class TestScheduling:
    def test_same_delay_fires_in_registration_order(self, sim):
        log = []
        for name in "ABCDE":
            sim.schedule(_recorder(sim, log, name), after=1.0)
        sim.run(2.0)
        assert [name for name, _ in log] == list("ABCDE")

    def test_earlier_due_time_fires_first(self, sim):
        log = []
        sim.schedule(_recorder(sim, log, "late"), after=3.0)
        sim.schedule(_recorder(sim, log, "early"), after=1.0)
        sim.run(5.0)
        assert log == [("early", 1.0), ("late", 3.0)]

    def test_after_and_at_same_instant_follow_registration(self, sim):
        log = []
        sim.schedule(_recorder(sim, log, "A"), after=1.0)
        sim.schedule(_recorder(sim, log, "B"), at=1.0)
        sim.run(2.0)
        assert log == [("A", 1.0), ("B", 1.0)]

    def test_at_then_after_reverses_order(self, sim):
        log = []
        sim.schedule(_recorder(sim, log, "B"), at=1.0)
        sim.schedule(_recorder(sim, log, "A"), after=1.0)
        sim.run(2.0)
        assert [name for name, _ in log] == ["B", "A"]

    def test_at_in_the_past_is_rejected(self, sim):
        sim.run(2.0)
        with pytest.raises(PastSchedule):
            sim.schedule(lambda: None, at=1.0)

    def test_at_now_is_allowed(self, sim):
        sim.run(2.0)
        event = sim.schedule(lambda: None, at=2.0)
        assert event.time == Instant.from_seconds(2.0)

    def test_needs_exactly_one_of_at_and_after(self, sim):
        with pytest.raises(ValueError):
            sim.schedule(lambda: None)
        with pytest.raises(ValueError):
            sim.schedule(lambda: None, at=1.0, after=1.0)

    def test_negative_delay_rejected(self, sim):
        with pytest.raises(ValueError):
            sim.schedule(lambda: None, after=-0.5)

    def test_cancelled_event_never_fires(self, sim):
        log = []
        event = sim.schedule(_recorder(sim, log, "x"), after=1.0)
        sim.cancel(event)
        summary = sim.run(2.0)
        assert log == []
        assert summary.clock_events == 0

    def test_action_can_cancel_later_event(self, sim):
        log = []
        later = sim.schedule(_recorder(sim, log, "later"), after=2.0)
        sim.schedule(later.cancel, after=1.0)
        sim.run(3.0)
        assert log == []


class TestRunLoop:
    def test_reaches_until_exactly_with_empty_queue(self, sim):
        summary = sim.run(30.0)
        assert sim.now == Instant.from_seconds(30.0)
        assert summary.clock_events == 0
        assert summary.sample_steps == 0
        assert summary.sim_time == 30.0

    def test_summary_string(self, sim):
        for delay in (1.0, 2.0, 3.0):
            sim.schedule(lambda: None, after=delay)
        summary = sim.run(30.0)
        assert str(summary) == "run! finished with 3 clock events, 0 sample steps, simulation time: 30.0"

    def test_event_at_until_fires(self, sim):
        log = []
        sim.schedule(_recorder(sim, log, "edge"), at=5.0)
        sim.run(5.0)
        assert log == [("edge", 5.0)]

    def test_event_after_until_stays_pending(self, sim):
        log = []
        sim.schedule(_recorder(sim, log, "later"), at=6.0)
        sim.run(5.0)
        assert log == []
        sim.run(10.0)
        assert log == [("later", 6.0)]

    def test_zero_delay_work_runs_before_clock_advances(self, sim):
        log = []

        def first():
            log.append(("first", sim.current_time()))
            sim.schedule(_recorder(sim, log, "chained"), after=0.0)

        sim.schedule(first, after=1.0)
        sim.schedule(_recorder(sim, log, "next"), after=1.5)
        summary = sim.run(2.0)
        assert log == [("first", 1.0), ("chained", 1.0), ("next", 1.5)]
        assert summary.clock_events == 3

    def test_run_until_past_is_rejected(self, sim):
        sim.run(3.0)
        with pytest.raises(PastSchedule):
            sim.run(1.0)

    def test_run_for_is_relative(self, sim):
        sim.run(2.0)
        sim.run_for(3.0)
        assert sim.current_time() == 5.0

    def test_run_without_until_stops_at_last_event(self, sim):
        sim.schedule(lambda: None, at=1.0)
        sim.schedule(lambda: None, at=4.0)
        summary = sim.run()
        assert summary.sim_time == 4.0
        assert summary.clock_events == 2

    def test_run_without_until_rejected_while_sampling(self):
        sim = Simulation(sample_rate=1.0)
        with pytest.raises(ValueError):
            sim.run()

    def test_stop_ends_run_after_current_instant(self, sim):
        log = []
        sim.schedule(sim.stop, at=3.0)
        sim.schedule(_recorder(sim, log, "same-instant"), at=3.0)
        sim.schedule(_recorder(sim, log, "later"), at=4.0)
        summary = sim.run(10.0)
        assert summary.stopped
        assert sim.current_time() == 3.0
        assert log == [("same-instant", 3.0)]

        summary = sim.run(10.0)
        assert not summary.stopped
        assert log[-1] == ("later", 4.0)

    def test_counts_are_per_run(self, sim):
        sim.schedule(lambda: None, at=1.0)
        sim.schedule(lambda: None, at=2.0)
        assert sim.run(1.5).clock_events == 1
        assert sim.run(3.0).clock_events == 1
        assert sim.events_processed == 2


class TestConditions:
    def test_always_true_condition_waits_for_next_tick(self, sim):
        log = []
        sim.schedule_when(lambda: True, _recorder(sim, log, "cond"))
        sim.schedule(lambda: None, at=2.0)
        sim.run(5.0)
        assert log == [("cond", 2.0)]

    def test_condition_released_on_advance_to_until(self, sim):
        log = []
        sim.schedule_when(lambda: True, _recorder(sim, log, "cond"))
        summary = sim.run(5.0)
        assert log == [("cond", 5.0)]
        assert summary.conditions_released == 1
        assert sim.pending_conditions == 0

    def test_condition_made_true_between_runs(self, sim):
        state = {"open": False}
        log = []
        sim.schedule_when(lambda: state["open"], _recorder(sim, log, "released"))
        sim.run(5.0)
        assert log == []
        state["open"] = True
        sim.run(8.0)
        assert log == [("released", 8.0)]

    def test_condition_checked_on_sample_tick(self):
        sim = Simulation(sample_rate=1.0)
        log = []
        sim.schedule_when(lambda: True, _recorder(sim, log, "cond"))
        summary = sim.run(3.0)
        assert log == [("cond", 1.0)]
        assert summary.sample_steps == 3

    def test_timed_action_satisfies_condition_same_instant(self, sim):
        state = {"open": False}
        log = []
        sim.schedule_when(lambda: state["open"], _recorder(sim, log, "released"))
        sim.schedule(lambda: state.update(open=True), at=4.0)
        summary = sim.run(10.0)
        assert log == [("released", 4.0)]
        assert summary.conditions_released == 1

    def test_cancelled_condition_never_fires(self, sim):
        log = []
        cond = sim.schedule_when(lambda: True, _recorder(sim, log, "cond"))
        sim.cancel(cond)
        sim.schedule(lambda: None, at=1.0)
        sim.run(2.0)
        assert log == []


class TestSampling:
    def test_periodic_actions_run_each_tick(self):
        sim = Simulation(sample_rate=0.5)
        ticks = []
        sim.periodic(lambda: ticks.append(sim.current_time()))
        summary = sim.run(2.0)
        assert ticks == [0.5, 1.0, 1.5, 2.0]
        assert summary.sample_steps == 4

    def test_periodic_interval_sets_rate(self, sim):
        ticks = []
        sim.periodic(lambda: ticks.append(sim.current_time()), interval=1.0)
        assert sim.sample_rate == 1.0
        sim.run(3.0)
        assert ticks == [1.0, 2.0, 3.0]

    def test_sample_tick_runs_before_timed_events(self):
        sim = Simulation(sample_rate=1.0)
        log = []
        sim.schedule(lambda: log.append("event"), at=1.0)
        sim.periodic(lambda: log.append("sample"))
        sim.run(1.0)
        assert log == ["sample", "event"]

    def test_cancelled_sample_action_stops(self):
        sim = Simulation(sample_rate=1.0)
        ticks = []
        handle = sim.periodic(lambda: ticks.append(sim.current_time()))
        sim.schedule(handle.cancel, at=2.5)
        sim.run(5.0)
        assert ticks == [1.0, 2.0]


class TestEvery:
    def test_fires_now_then_every_interval(self, sim):
        times = []
        sim.every(1.0, lambda: times.append(sim.current_time()), count=3)
        sim.run(10.0)
        assert times == [0.0, 1.0, 2.0]

    def test_start_offsets_first_firing(self, sim):
        times = []
        sim.every(2.0, lambda: times.append(sim.current_time()), start=1.0)
        sim.run(6.0)
        assert times == [1.0, 3.0, 5.0]

    def test_cancel_from_inside_action(self, sim):
        times = []
        handle = {}

        def tick():
            times.append(sim.current_time())
            if len(times) == 2:
                handle["series"].cancel()

        handle["series"] = sim.every(1.0, tick)
        sim.run(10.0)
        assert times == [0.0, 1.0]
        assert handle["series"].next_time is None

    def test_rejects_non_positive_interval(self, sim):
        with pytest.raises(ValueError):
            sim.every(0.0, lambda: None)


class TestFailures:
    def test_action_error_aborts_run(self, sim):
        log = []

        def explode():
            raise ZeroDivisionError("bad model")

        sim.schedule(explode, at=2.0, label="explode")
        sim.schedule(_recorder(sim, log, "after"), at=3.0)

        with pytest.raises(ActionFailure) as info:
            sim.run(10.0)

        assert info.value.time == Instant.from_seconds(2.0)
        assert info.value.label == "explode"
        assert isinstance(info.value.__cause__, ZeroDivisionError)
        assert sim.state is KernelState.FAILED
        assert sim.current_time() == 2.0
        assert log == []

    def test_failed_session_needs_reset(self, sim):
        sim.schedule(lambda: 1 / 0, at=1.0)
        with pytest.raises(ActionFailure):
            sim.run(5.0)
        with pytest.raises(RuntimeError):
            sim.run(5.0)
        sim.reset()
        assert sim.state is KernelState.IDLE
        assert sim.run(5.0).clock_events == 0

    def test_predicate_error_reports_condition_label(self, sim):
        sim.schedule_when(lambda: {}["missing"], lambda: None, label="watch")
        sim.schedule(lambda: None, at=1.0)
        with pytest.raises(ActionFailure) as info:
            sim.run(2.0)
        assert info.value.label == "watch"

    def test_nested_run_is_rejected(self, sim):
        seen = []

        def reenter():
            try:
                sim.run(10.0)
            except AlreadyRunning:
                seen.append("rejected")

        sim.schedule(reenter, at=1.0)
        sim.run(2.0)
        assert seen == ["rejected"]
        assert sim.state is KernelState.IDLE

    def test_reset_during_run_is_rejected(self, sim):
        seen = []

        def try_reset():
            try:
                sim.reset()
            except AlreadyRunning:
                seen.append("rejected")

        sim.schedule(try_reset, at=1.0)
        sim.run(2.0)
        assert seen == ["rejected"]


class TestReset:
    def test_reset_message(self, sim):
        assert sim.reset() == "clock reset to t0=0.0, sampling rate dt=0.0."
        assert sim.reset(epoch=2, sample_rate=0.5) == "clock reset to t0=2.0, sampling rate dt=0.5."
        assert sim.current_time() == 2.0
        assert sim.sample_rate == 0.5

    def test_reset_returns_to_configured_epoch(self):
        sim = Simulation(epoch=10.0)
        sim.run(15.0)
        assert sim.reset() == "clock reset to t0=10.0, sampling rate dt=0.0."
        assert sim.current_time() == 10.0
        sim.reset(epoch=3.0)
        sim.reset()
        assert sim.current_time() == 10.0

    def test_reset_discards_pending_work(self, sim):
        log = []
        sim.schedule(_recorder(sim, log, "timed"), at=5.0)
        sim.schedule_when(lambda: True, _recorder(sim, log, "cond"))
        sim.periodic(_recorder(sim, log, "sample"), interval=1.0)
        sim.run(2.0)
        log.clear()

        sim.reset()
        summary = sim.run(10.0)
        assert summary.clock_events == 0
        assert summary.sample_steps == 0
        assert log == []
        assert sim.pending_conditions == 0


class TestEventLog:
    def test_records_fired_work(self):
        log = EventLog()
        sim = Simulation(sample_rate=1.0, event_log=log)
        sim.schedule(lambda: None, at=0.5, label="tick")
        sim.schedule_when(lambda: True, lambda: None, label="ready")
        sim.run(1.0)

        assert [(e.time_s, e.kind, e.label) for e in log.entries] == [
            (0.5, "event", "tick"),
            (0.5, "condition", "ready"),
            (1.0, "sample", "sample"),
        ]
        frame = log.to_dataframe()
        assert list(frame.columns) == ["time_s", "kind", "label"]
        assert len(frame) == 3

    def test_kind_filter(self):
        log = EventLog(kinds={"event"})
        sim = Simulation(sample_rate=1.0, event_log=log)
        sim.schedule(lambda: None, at=0.5, label="tick")
        sim.run(2.0)
        assert log.labels() == ["tick"]

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValueError):
            EventLog(kinds={"bogus"})

    def test_bounded_log_keeps_newest_entries(self):
        log = EventLog(max_entries=2)
        sim = Simulation(event_log=log)
        for t in (1.0, 2.0, 3.0):
            sim.schedule(lambda: None, at=t, label=f"t{t:g}")
        sim.run(5.0)
        assert log.labels() == ["t2", "t3"]
        assert len(log) == 2

    def test_max_entries_must_be_positive(self):
        with pytest.raises(ValueError):
            EventLog(max_entries=0)
