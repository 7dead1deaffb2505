import contextlib
import inspect
import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Set, Type, TypeVar, Union

import oem.metrics as metrics
from oem.config import ManagerConfig
from oem.plugins.base import EventSubscriber
from oem.runtime.errors import LogicError
from oem.runtime.events import CancellableEvent, Event, type_name, validate_event_type
from oem.runtime.listeners import CallbackListener, CallbackOnceListener, Listener, callback_name
from oem.telemetry import get_tracer

logger = logging.getLogger(__name__)

TEvent = TypeVar("TEvent", bound=Event)

AddedCallback = Callable[[Type[Event], Listener], Any]
RemovedCallback = Callable[[Type[Event]], Any]
DispatchedCallback = Callable[[Event], Any]


def _same_callback(candidate: Callable, target: Callable) -> bool:
    if candidate is target:
        return True
    # bound methods are rebuilt on every attribute access
    for is_bound in (inspect.ismethod, inspect.isbuiltin):
        if is_bound(candidate) and is_bound(target):
            return candidate == target
    return False


class EventManager:
    """
    In-process registry of listeners keyed by event class.

    Listeners for a type run in registration order (``prepend`` puts one in
    front). ``emit`` delivers synchronously, drops once-listeners after they
    fire and stops early when a CancellableEvent is cancelled. Lifecycle
    hooks observe additions, removals and dispatches without affecting them.

    All registration, removal and dispatch happen under a single re-entrant
    lock, so listeners may register, remove or emit from inside a dispatch.
    """

    def __init__(self, config: Optional[ManagerConfig] = None):
        self.config = config or ManagerConfig()
        self._events: Dict[Type[Event], List[Listener]] = {}
        self._added_callbacks: List[AddedCallback] = []
        self._removed_callbacks: List[RemovedCallback] = []
        self._dispatched_callbacks: List[DispatchedCallback] = []
        # bumped on every registry change so dispatch knows when to resync
        self._mutations = 0
        self._lock = threading.RLock() if self.config.thread_safe else contextlib.nullcontext()

    # =====================================================
    # REGISTRATION
    # =====================================================

    def on(self, event_type: Type[TEvent], callback: Callable[[TEvent], Any]) -> Listener:
        return self.append(CallbackListener(callback, validate_event_type(event_type)))

    def once(self, event_type: Type[TEvent], callback: Callable[[TEvent], Any]) -> Listener:
        return self.append(CallbackOnceListener(callback, validate_event_type(event_type)))

    def listen(
        self,
        event_type: Type[TEvent],
        callback: Optional[Callable[[TEvent], Any]] = None,
        *,
        once: bool = False,
    ):
        """
        Register ``callback`` for ``event_type``, or act as a decorator.

            @events.listen(Saving)
            def audit(event: Saving):
                ...

        With a callback the new Listener is returned; as a decorator the
        decorated function is returned unchanged.
        """
        validate_event_type(event_type)

        if callback is not None:
            return self.once(event_type, callback) if once else self.on(event_type, callback)

        def decorator(func: Callable[[TEvent], Any]) -> Callable[[TEvent], Any]:
            self.listen(event_type, func, once=once)
            return func

        return decorator

    def append(self, listener: Listener) -> Listener:
        return self._add(listener, prepend=False)

    def prepend(self, listener: Listener) -> Listener:
        return self._add(listener, prepend=True)

    def _add(self, listener: Listener, prepend: bool) -> Listener:
        if not isinstance(listener, Listener):
            raise TypeError(f"Expected a Listener, got {type_name(type(listener))}.")
        event_type = validate_event_type(listener.event_type)

        with self._lock:
            listeners = self._events.setdefault(event_type, [])
            if prepend:
                listeners.insert(0, listener)
            else:
                listeners.append(listener)
            self._mutations += 1

        self._track_registered(event_type, 1)
        logger.debug(f"{'Prepended' if prepend else 'Appended'} {listener!r}")

        self._invoke_callbacks(self._added_callbacks, event_type, listener)
        return listener

    def add_subscriber(self, subscriber: EventSubscriber) -> List[Listener]:
        """Register every callback a subscriber declares."""
        added = [
            self.on(event_type, callback)
            for event_type, callback in subscriber.subscribed_events().items()
        ]
        logger.info(f"Added subscriber {subscriber.name} v{subscriber.version} ({len(added)} listeners)")
        return added

    # =====================================================
    # DISPATCH
    # =====================================================

    def has_listeners(self, event_type: Type[Event]) -> bool:
        with self._lock:
            return event_type in self._events

    def get_listeners(self, event_type: Type[Event]) -> List[Listener]:
        with self._lock:
            return list(self._events.get(event_type, []))

    def emit(self, event: Event) -> None:
        event_type = type(event)

        with self._lock:
            if event_type not in self._events:
                return
            self._dispatch(event_type, event)

        self._invoke_callbacks(self._dispatched_callbacks, event)

    def emit_if_listening(self, event_type: Type[TEvent], factory: Callable[[], TEvent]) -> None:
        """
        Build an event with ``factory`` and emit it, but only when someone
        listens for ``event_type``.

        Raises LogicError if the factory returns something that is not an
        instance of ``event_type``.
        """
        if not self.has_listeners(event_type):
            return

        # factory and emit run unlocked; emit takes the lock itself
        event = factory()
        if not isinstance(event, event_type):
            raise LogicError(
                f"Expected event to be an instance of {type_name(event_type)}, "
                f"got {type_name(type(event))}."
            )
        self.emit(event)

    def emit_class(self, event_type: Type[TEvent], *args: Any, **kwargs: Any) -> None:
        """Instantiate ``event_type`` with the given arguments and emit it if anyone listens."""
        self.emit_if_listening(event_type, lambda: event_type(*args, **kwargs))

    def _dispatch(self, event_type: Type[Event], event: Event) -> None:
        # iterate over a snapshot so once-removals and re-entrant
        # registrations do not disturb this emission
        snapshot = list(self._events[event_type])
        label = type_name(event_type)

        delivered = 0
        cancelled = False

        span_cm = (
            get_tracer(__name__).start_as_current_span("event_manager.emit")
            if self.config.tracing_enabled
            else contextlib.nullcontext()
        )
        with span_cm as span:
            if span is not None:
                span.set_attribute("event.type", label)
                span.set_attribute("event.listeners", len(snapshot))

            live_ids: Set[int] = set()
            synced_at = None
            try:
                for listener in snapshot:
                    if synced_at != self._mutations:
                        live_ids = {id(registered) for registered in self._events.get(event_type, ())}
                        synced_at = self._mutations
                    if not listener.is_listening() or id(listener) not in live_ids:
                        continue

                    try:
                        listener.invoke(event)
                    finally:
                        if not listener.is_listening():
                            self._discard(event_type, listener)
                    delivered += 1

                    if isinstance(event, CancellableEvent) and event.is_cancelled():
                        cancelled = True
                        logger.debug(f"{label} cancelled by {listener!r}")
                        break
            finally:
                if span is not None:
                    span.set_attribute("event.delivered", delivered)
                    span.set_attribute("event.cancelled", cancelled)
                if self.config.metrics_enabled:
                    metrics.listener_invocations_counter.labels(event_type=label).inc(delivered)

        if self.config.metrics_enabled:
            metrics.events_emitted_counter.labels(event_type=label).inc()
            if cancelled:
                metrics.events_cancelled_counter.labels(event_type=label).inc()

        logger.debug(f"Emitted {label} to {delivered}/{len(snapshot)} listeners")

    def _discard(self, event_type: Type[Event], listener: Listener) -> None:
        listeners = self._events.get(event_type)
        if listeners is None:
            return

        kept = [registered for registered in listeners if registered is not listener]
        removed = len(listeners) - len(kept)
        listeners[:] = kept
        self._mutations += 1
        emptied = not listeners
        if emptied:
            del self._events[event_type]

        self._track_registered(event_type, -removed, emptied)

    # =====================================================
    # REMOVAL
    # =====================================================

    def remove_listener(self, target: Union[Listener, Callable[..., Any]]) -> int:
        """
        Remove every listener built around the same callback as ``target``,
        across all event types.

        Returns the number of listeners removed.
        """
        callback = target.callback if isinstance(target, Listener) else target
        removed: Dict[Type[Event], int] = {}
        emptied: Set[Type[Event]] = set()

        with self._lock:
            for event_type in list(self._events):
                listeners = self._events[event_type]
                kept = [listener for listener in listeners if not _same_callback(listener.callback, callback)]
                count = len(listeners) - len(kept)
                if not count:
                    continue

                removed[event_type] = count
                listeners[:] = kept
                self._mutations += 1
                if not listeners:
                    emptied.add(event_type)
                    del self._events[event_type]

        for event_type, count in removed.items():
            self._track_registered(event_type, -count, event_type in emptied)
            logger.debug(f"Removed {count} listener(s) for {type_name(event_type)} ({callback_name(callback)})")
            self._invoke_callbacks(self._removed_callbacks, event_type)

        return sum(removed.values())

    def remove_all_listeners(self, event_type: Type[Event]) -> bool:
        with self._lock:
            listeners = self._events.pop(event_type, None)
            if listeners is not None:
                self._mutations += 1

        if listeners is None:
            return False

        self._track_registered(event_type, -len(listeners), emptied=True)
        logger.debug(f"Removed all {len(listeners)} listener(s) for {type_name(event_type)}")
        self._invoke_callbacks(self._removed_callbacks, event_type)
        return True

    def remove_subscriber(self, subscriber: EventSubscriber) -> int:
        removed = sum(
            self.remove_listener(callback)
            for callback in subscriber.subscribed_events().values()
        )
        logger.info(f"Removed subscriber {subscriber.name} ({removed} listeners)")
        return removed

    # =====================================================
    # LIFECYCLE HOOKS
    # =====================================================

    def on_listener_added(self, callback: AddedCallback) -> None:
        self._added_callbacks.append(callback)

    def on_listener_removed(self, callback: RemovedCallback) -> None:
        self._removed_callbacks.append(callback)

    def on_dispatched(self, callback: DispatchedCallback) -> None:
        self._dispatched_callbacks.append(callback)

    def _invoke_callbacks(self, callbacks: List[Callable[..., Any]], *args: Any) -> None:
        for callback in list(callbacks):
            callback(*args)

    def _track_registered(self, event_type: Type[Event], delta: int, emptied: bool = False) -> None:
        if not self.config.metrics_enabled:
            return
        label = type_name(event_type)
        if delta:
            metrics.registered_listeners.labels(event_type=label).inc(delta)
        if emptied:
            metrics.drop_empty_registered_label(label)
