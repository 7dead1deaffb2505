import os
from typing import Any, Dict

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel

_ENV_PREFIX = "OEM_"


class ManagerConfig(BaseModel):
    """
    Settings for an EventManager.

    Every field can be overridden from the environment (or a .env file)
    through ``from_env`` using the ``OEM_`` prefix, e.g. ``OEM_THREAD_SAFE=0``.
    """
    thread_safe: bool = True
    tracing_enabled: bool = True
    metrics_enabled: bool = True
    service_name: str = "open-event-manager"

    @classmethod
    def from_env(cls, **overrides: Any) -> "ManagerConfig":
        load_dotenv(find_dotenv(usecwd=True))

        values: Dict[str, Any] = {}
        for field_name in cls.model_fields:
            raw = os.getenv(f"{_ENV_PREFIX}{field_name.upper()}")
            if raw is not None:
                values[field_name] = raw

        values.update(overrides)
        return cls(**values)
