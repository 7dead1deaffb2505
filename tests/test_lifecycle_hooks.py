import logging
from dataclasses import dataclass

import pytest

from oem import CallbackListener, Event, EventManager
from oem.runtime.default_logger import attach_console_logger


@dataclass
class Saving(Event):
    name: str


@dataclass
class Deleted(Event):
    name: str


@pytest.fixture
def events():
    return EventManager()


def test_added_hook_receives_type_and_listener(events):
    seen = []
    events.on_listener_added(lambda event_type, listener: seen.append((event_type, listener)))

    listener = events.on(Saving, lambda e: None)
    prepended = events.prepend(CallbackListener(lambda e: None, Deleted))

    assert seen == [(Saving, listener), (Deleted, prepended)]


def test_added_hook_sees_committed_registration(events):
    observed = []
    events.on_listener_added(lambda event_type, listener: observed.append(events.has_listeners(event_type)))

    events.on(Saving, lambda e: None)

    assert observed == [True]


def test_hooks_run_in_registration_order(events):
    order = []
    events.on_dispatched(lambda e: order.append("first"))
    events.on_dispatched(lambda e: order.append("second"))
    events.on(Saving, lambda e: order.append("listener"))

    events.emit(Saving("x"))
    events.emit(Saving("y"))

    assert order == ["listener", "first", "second", "listener", "first", "second"]


def test_removed_hook_fires_once_per_affected_type(events):
    removed = []
    events.on_listener_removed(removed.append)

    def handler(event):
        pass

    events.on(Saving, handler)
    events.on(Saving, handler)
    events.on(Deleted, handler)

    assert events.remove_listener(handler) == 3
    assert removed == [Saving, Deleted]


def test_removed_hook_not_fired_when_nothing_removed(events):
    removed = []
    events.on_listener_removed(removed.append)

    assert events.remove_listener(lambda e: None) == 0
    assert events.remove_all_listeners(Saving) is False
    assert removed == []


def test_removed_hook_on_remove_all(events):
    removed = []
    events.on_listener_removed(removed.append)
    events.on(Saving, lambda e: None)

    assert events.remove_all_listeners(Saving) is True
    assert removed == [Saving]


def test_once_removal_does_not_fire_removed_hook(events):
    removed = []
    events.on_listener_removed(removed.append)
    events.once(Saving, lambda e: None)

    events.emit(Saving("x"))

    assert not events.has_listeners(Saving)
    assert removed == []


def test_hook_exception_leaves_registry_consistent(events):
    def broken_hook(event_type, listener):
        raise RuntimeError("hook failed")

    events.on_listener_added(broken_hook)

    with pytest.raises(RuntimeError):
        events.on(Saving, lambda e: None)

    assert events.has_listeners(Saving)
    assert len(events.get_listeners(Saving)) == 1


def test_console_logger(events, caplog):
    attach_console_logger(events)

    with caplog.at_level(logging.INFO, logger="oem.runtime.default_logger"):
        listener = events.on(Saving, lambda e: None)
        events.emit(Saving("x"))
        events.remove_listener(listener)

    messages = [record.getMessage() for record in caplog.records if record.name == "oem.runtime.default_logger"]
    assert len(messages) == 3
    assert messages[0].startswith("[EVENT] Listener added for ")
    assert messages[1].endswith("Saving")
    assert messages[2].startswith("[EVENT] Listeners removed for ")
