import importlib
import inspect
import logging
import os
import sys
from typing import List, Optional

from oem.plugins.base import EventSubscriber

logger = logging.getLogger(__name__)


class SubscriberLoader:
    """
    Loads EventSubscriber implementations from external modules.
    """

    @staticmethod
    def load(subscriber_path: str) -> Optional[EventSubscriber]:
        """
        Load a subscriber from a path (module string or file path).
        The module must define a concrete EventSubscriber subclass.
        """
        try:
            # If path ends with .py, add its dir to sys.path and import name
            if subscriber_path.endswith(".py"):
                directory = os.path.dirname(os.path.abspath(subscriber_path))
                if directory not in sys.path:
                    sys.path.append(directory)

                module_name = os.path.basename(subscriber_path)[:-len(".py")]
                module = importlib.import_module(module_name)
            else:
                module = importlib.import_module(subscriber_path)
        except Exception as e:
            logger.error(f"Error loading {subscriber_path}: {e}")
            raise

        subscriber_class = None
        for _, obj in inspect.getmembers(module, inspect.isclass):
            if (issubclass(obj, EventSubscriber) and
                    obj is not EventSubscriber and
                    not inspect.isabstract(obj)):
                subscriber_class = obj
                break

        if subscriber_class is None:
            logger.error(f"No EventSubscriber implementation found in {subscriber_path}")
            return None

        subscriber = subscriber_class()
        logger.info(f"Loaded subscriber: {subscriber.name} v{subscriber.version}")
        return subscriber

    @staticmethod
    def load_directory(directory: str) -> List[EventSubscriber]:
        """Load every .py subscriber module in a directory."""
        if not os.path.isdir(directory):
            return []

        subscribers = []
        for filename in sorted(os.listdir(directory)):
            if filename.endswith(".py") and not filename.startswith("__"):
                subscriber = SubscriberLoader.load(os.path.join(directory, filename))
                if subscriber is not None:
                    subscribers.append(subscriber)
        return subscribers
