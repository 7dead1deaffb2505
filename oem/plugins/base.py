from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Type

from oem.runtime.events import Event


class EventSubscriber(ABC):
    """
    Abstract Base Class for objects that bundle several listeners.

    An EventManager registers every callback returned by
    ``subscribed_events`` through ``add_subscriber`` and removes them
    again through ``remove_subscriber``.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique name of the subscriber."""
        pass

    @property
    def version(self) -> str:
        return "0.0.0"

    @abstractmethod
    def subscribed_events(self) -> Dict[Type[Event], Callable[[Any], Any]]:
        """
        Map each event type to the callback that handles it.

        Bound methods are fine here: removal matches them by instance and
        function, not by object identity.
        """
        pass
