from oem.runtime.event_manager import EventManager
from oem.runtime.events import Event, CancellableEvent
from oem.runtime.listeners import Listener, CallbackListener, CallbackOnceListener
from oem.runtime.errors import EventManagerError, InvalidArgumentError, LogicError
from oem.plugins.base import EventSubscriber
from oem.config import ManagerConfig

__all__ = [
    "EventManager",
    "Event",
    "CancellableEvent",
    "Listener",
    "CallbackListener",
    "CallbackOnceListener",
    "EventManagerError",
    "InvalidArgumentError",
    "LogicError",
    "EventSubscriber",
    "ManagerConfig",
]

__version__ = "1.0.0"
