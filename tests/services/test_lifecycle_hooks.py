"""Lifecycle Hooks — registry ordering, removal and error containment."""

import logging

from userstore.services.lifecycle_hooks import HookRegistry


def test_dispatch_runs_in_registration_order():
    registry = HookRegistry("on_login")
    order = []
    registry.register(lambda arg: order.append(("a", arg)))
    registry.register(lambda arg: order.append(("b", arg)))
    assert registry.dispatch(1) == 0
    assert order == [("a", 1), ("b", 1)]


def test_dispatch_counts_failures_and_continues(caplog):
    registry = HookRegistry("on_logout")
    order = []

    def broken(arg):
        raise RuntimeError("boom")

    registry.register(broken)
    registry.register(order.append)
    with caplog.at_level(logging.ERROR):
        assert registry.dispatch("x") == 1
    assert order == ["x"]
    record = next(r for r in caplog.records if "boom" in r.getMessage())
    assert record.hook == "on_logout"


def test_remove_unregisters_and_ignores_unknown():
    registry = HookRegistry("on_change")
    order = []
    registry.register(order.append)
    registry.remove(order.append)
    registry.remove(print)
    registry.dispatch(1)
    assert order == []
    assert len(registry) == 0


def test_callback_may_unregister_itself_during_dispatch():
    registry = HookRegistry("on_change")
    order = []

    def once(arg):
        order.append(arg)
        registry.remove(once)

    registry.register(once)
    registry.dispatch(1)
    registry.dispatch(2)
    assert order == [1]
