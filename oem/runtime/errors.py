class EventManagerError(Exception):
    """Base class for errors raised by the event manager."""


class InvalidArgumentError(EventManagerError, ValueError):
    """
    Raised at registration time when a type is not a valid event type,
    or when a listener's event type cannot be determined.
    """


class LogicError(EventManagerError, RuntimeError):
    """
    Raised when an event factory produces an event of the wrong type.
    """
