"""Unit tests for the ConditionRegistry."""

import pytest

from simkernel.core.conditions import ConditionRegistry


def test_register_does_not_evaluate() -> None:
    calls = []
    registry = ConditionRegistry()
    registry.register(lambda: calls.append("checked") or True, lambda: calls.append("fired"))
    assert calls == []
    assert len(registry) == 1


def test_evaluate_all_fires_true_predicates_in_registration_order() -> None:
    fired = []
    registry = ConditionRegistry()
    registry.register(lambda: True, lambda: fired.append("a"))
    registry.register(lambda: False, lambda: fired.append("b"))
    registry.register(lambda: True, lambda: fired.append("c"))

    assert registry.evaluate_all() == 2
    assert fired == ["a", "c"]
    assert len(registry) == 1


def test_released_condition_fires_once() -> None:
    fired = []
    registry = ConditionRegistry()
    cond = registry.register(lambda: True, lambda: fired.append(1))
    registry.evaluate_all()
    registry.evaluate_all()
    assert fired == [1]
    assert cond.fired
    assert cond not in registry


def test_cancel_before_release() -> None:
    fired = []
    registry = ConditionRegistry()
    cond = registry.register(lambda: True, lambda: fired.append(1))
    registry.cancel(cond)
    assert registry.evaluate_all() == 0
    assert fired == []


def test_action_can_cancel_later_condition_in_same_pass() -> None:
    fired = []
    registry = ConditionRegistry()
    handles = {}
    registry.register(lambda: True, lambda: registry.cancel(handles["second"]))
    handles["second"] = registry.register(lambda: True, lambda: fired.append("second"))
    assert registry.evaluate_all() == 1
    assert fired == []


def test_registration_during_pass_waits_for_next_pass() -> None:
    fired = []
    registry = ConditionRegistry()
    registry.register(
        lambda: True,
        lambda: registry.register(lambda: True, lambda: fired.append("late")),
    )
    registry.evaluate_all()
    assert fired == []
    registry.evaluate_all()
    assert fired == ["late"]


def test_predicate_error_propagates_with_current_set() -> None:
    registry = ConditionRegistry()

    def broken():
        raise KeyError("boom")

    cond = registry.register(broken, lambda: None, label="broken")
    with pytest.raises(KeyError):
        registry.evaluate_all()
    assert registry.current is cond
