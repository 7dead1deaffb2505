import inspect
from typing import Any

from oem.runtime.errors import InvalidArgumentError


class Event:
    """
    Base class for everything that can be emitted through an EventManager.

    Subclasses carry whatever payload the event kind needs and are usually
    dataclasses. The concrete class of an instance is its event type:
    listeners registered for ``Saving`` receive ``Saving`` instances only.
    """


class CancellableEvent(Event):
    """
    Event whose propagation can be stopped by a listener.

    Once ``cancel()`` has been called, the listeners registered after the
    cancelling one are skipped for the current emission.
    """

    _cancelled: bool = False

    def cancel(self) -> None:
        # object.__setattr__ keeps this working on frozen dataclasses
        object.__setattr__(self, "_cancelled", True)

    def is_cancelled(self) -> bool:
        return self._cancelled


def type_name(value: Any) -> str:
    """Fully qualified name of a class, or repr() for anything else."""
    if inspect.isclass(value):
        if value.__module__ == "builtins":
            return value.__qualname__
        return f"{value.__module__}.{value.__qualname__}"
    return repr(value)


def is_event_type(value: Any) -> bool:
    return inspect.isclass(value) and issubclass(value, Event)


def validate_event_type(value: Any) -> type:
    """
    Ensure ``value`` is a subclass of Event.

    Raises InvalidArgumentError naming the offending type otherwise.
    """
    if not is_event_type(value):
        raise InvalidArgumentError(
            f"Expected class to be instance of {type_name(Event)}, got {type_name(value)}."
        )
    return value
