import logging
from typing import Type

from oem.runtime.events import Event, type_name
from oem.runtime.listeners import Listener

logger = logging.getLogger(__name__)


def attach_console_logger(manager, level: int = logging.INFO):
    """
    Log every listener addition, removal and dispatch on ``manager``.
    """

    def on_added(event_type: Type[Event], listener: Listener):
        logger.log(level, f"[EVENT] Listener added for {type_name(event_type)}: {listener!r}")

    def on_removed(event_type: Type[Event]):
        logger.log(level, f"[EVENT] Listeners removed for {type_name(event_type)}")

    def on_dispatched(event: Event):
        logger.log(level, f"[EVENT] Dispatched {type_name(type(event))}")

    manager.on_listener_added(on_added)
    manager.on_listener_removed(on_removed)
    manager.on_dispatched(on_dispatched)
