import os
import tempfile
import textwrap
import unittest
from dataclasses import dataclass

from oem import Event, EventManager, EventSubscriber
from oem.plugins.loader import SubscriberLoader


@dataclass
class UserCreated(Event):
    username: str


@dataclass
class UserDeleted(Event):
    username: str


class AuditSubscriber(EventSubscriber):
    def __init__(self):
        self.log = []

    @property
    def name(self) -> str:
        return "audit"

    @property
    def version(self) -> str:
        return "1.0.0"

    def subscribed_events(self):
        return {
            UserCreated: self.on_created,
            UserDeleted: self.on_deleted,
        }

    def on_created(self, event: UserCreated):
        self.log.append(f"created {event.username}")

    def on_deleted(self, event: UserDeleted):
        self.log.append(f"deleted {event.username}")


SUBSCRIBER_MODULE = '''
from oem import Event, EventSubscriber


class Tick(Event):
    pass


class TickCounter(EventSubscriber):
    def __init__(self):
        self.ticks = 0

    @property
    def name(self):
        return "tick_counter"

    def subscribed_events(self):
        return {Tick: self.count}

    def count(self, event):
        self.ticks += 1
'''


class TestSubscribers(unittest.TestCase):

    def setUp(self):
        self.events = EventManager()

    def test_add_subscriber(self):
        audit = AuditSubscriber()

        listeners = self.events.add_subscriber(audit)

        self.assertEqual(len(listeners), 2)
        self.events.emit(UserCreated("ada"))
        self.events.emit(UserDeleted("ada"))
        self.assertEqual(audit.log, ["created ada", "deleted ada"])

    def test_remove_subscriber(self):
        audit = AuditSubscriber()
        other = AuditSubscriber()
        self.events.add_subscriber(audit)
        self.events.add_subscriber(other)

        self.assertEqual(self.events.remove_subscriber(audit), 2)

        self.events.emit(UserCreated("ada"))
        self.assertEqual(audit.log, [])
        self.assertEqual(other.log, ["created ada"])

        self.assertEqual(self.events.remove_subscriber(other), 2)
        self.assertFalse(self.events.has_listeners(UserCreated))
        self.assertFalse(self.events.has_listeners(UserDeleted))


class TestSubscriberLoader(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)

    def write_module(self, filename, source):
        path = os.path.join(self.tmp.name, filename)
        with open(path, "w") as f:
            f.write(textwrap.dedent(source))
        return path

    def test_load_valid_subscriber(self):
        path = self.write_module("oem_test_tick_counter.py", SUBSCRIBER_MODULE)

        subscriber = SubscriberLoader.load(path)

        self.assertIsInstance(subscriber, EventSubscriber)
        self.assertEqual(subscriber.name, "tick_counter")
        self.assertEqual(subscriber.version, "0.0.0")

        events = EventManager()
        events.add_subscriber(subscriber)
        tick_type = next(iter(subscriber.subscribed_events()))
        events.emit(tick_type())
        self.assertEqual(subscriber.ticks, 1)

    def test_load_invalid_subscriber(self):
        path = self.write_module("oem_test_bad_subscriber.py", "class BadSubscriber:\n    pass\n")

        with self.assertLogs("oem.plugins.loader", level="ERROR"):
            subscriber = SubscriberLoader.load(path)

        self.assertIsNone(subscriber, "Loader should return None for invalid subscribers")

    def test_load_missing_module_raises(self):
        with self.assertRaises(ImportError):
            SubscriberLoader.load("oem_test_does_not_exist")

    def test_load_directory(self):
        self.write_module("oem_test_dir_counter.py", SUBSCRIBER_MODULE)
        self.write_module("oem_test_dir_empty.py", "VALUE = 1\n")
        self.write_module("__init__.py", "")

        subscribers = SubscriberLoader.load_directory(self.tmp.name)

        self.assertEqual([s.name for s in subscribers], ["tick_counter"])

    def test_load_directory_missing(self):
        self.assertEqual(SubscriberLoader.load_directory(os.path.join(self.tmp.name, "nope")), [])


if __name__ == "__main__":
    unittest.main()
