import inspect
import typing
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, Type

from oem.runtime.errors import InvalidArgumentError
from oem.runtime.events import Event, type_name, validate_event_type


_POSITIONAL_KINDS = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


def callback_name(callback: Callable) -> str:
    return getattr(callback, "__qualname__", None) or getattr(callback, "__name__", None) or repr(callback)


def infer_event_type(callback: Callable) -> Type[Event]:
    """
    Determine the event type a callback handles from the annotation of its
    first positional parameter.

    Raises InvalidArgumentError if the callback has no such parameter, the
    parameter is not annotated, or the annotation is not an Event subclass.
    """
    try:
        params = list(inspect.signature(callback).parameters.values())
    except (TypeError, ValueError):
        params = []

    positional = [p for p in params if p.kind in _POSITIONAL_KINDS]
    if not positional:
        raise InvalidArgumentError(
            f"Unable to determine event type of {callback_name(callback)}: "
            f"it takes no positional argument."
        )
    first = positional[0]

    if inspect.isfunction(callback) or inspect.ismethod(callback):
        target = callback
    else:
        target = type(callback).__call__

    try:
        hints = typing.get_type_hints(target)
    except NameError:
        # unresolvable forward reference, fall back to the raw annotation
        hints = {}

    annotation = hints.get(first.name, first.annotation)
    if annotation is inspect.Parameter.empty:
        raise InvalidArgumentError(
            f"Unable to determine event type of {callback_name(callback)}: "
            f"parameter '{first.name}' has no type annotation."
        )
    return validate_event_type(annotation)


class Listener(ABC):
    """
    A unit of work registered with an EventManager for one event type.

    The event type is fixed at construction. A once-listener stops
    listening after its first invocation and is then dropped by the
    manager; any listener can also detach itself by calling
    ``stop_listening()`` while it runs.
    """

    def __init__(self, event_type: Type[Event], once: bool = False):
        self.event_type: Type[Event] = validate_event_type(event_type)
        self.once = once
        self._listening = True

    @property
    @abstractmethod
    def callback(self) -> Callable[..., Any]:
        """The underlying callable, used to match listeners on removal."""
        pass

    @abstractmethod
    def handle(self, event: Event) -> Any:
        pass

    def invoke(self, event: Event) -> Any:
        # a once-listener is consumed as soon as it starts, so a nested
        # emission from inside its callback cannot fire it again
        if self.once:
            self.stop_listening()
        return self.handle(event)

    def is_listening(self) -> bool:
        return self._listening

    def stop_listening(self) -> None:
        self._listening = False

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(event_type={type_name(self.event_type)}, "
            f"callback={callback_name(self.callback)}, once={self.once})"
        )


class CallbackListener(Listener):
    """
    Listener wrapping a plain callable that receives the event.

    When ``event_type`` is omitted it is read from the callback's first
    parameter annotation, so ``CallbackListener(handle_saving)`` with
    ``def handle_saving(e: Saving)`` listens for ``Saving``.
    """

    def __init__(
        self,
        callback: Callable[[Any], Any],
        event_type: Optional[Type[Event]] = None,
        once: bool = False,
    ):
        if not callable(callback):
            raise TypeError("callback must be callable")
        if event_type is None:
            event_type = infer_event_type(callback)
        super().__init__(event_type, once)
        self._callback = callback

    @property
    def callback(self) -> Callable[[Any], Any]:
        return self._callback

    def handle(self, event: Event) -> Any:
        return self._callback(event)


class CallbackOnceListener(CallbackListener):
    """CallbackListener that fires a single time."""

    def __init__(self, callback: Callable[[Any], Any], event_type: Optional[Type[Event]] = None):
        super().__init__(callback, event_type, once=True)
