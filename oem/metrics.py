"""
Prometheus metrics definition for OEM.
"""

from prometheus_client import REGISTRY, Counter, Gauge


# ============================================================================
# Metrics Definitions
# ============================================================================

# Counters
events_emitted_counter = Counter(
    "oem_events_emitted_total",
    "Total number of events emitted to at least one listener",
    ["event_type"]
)

listener_invocations_counter = Counter(
    "oem_listener_invocations_total",
    "Total number of listener invocations",
    ["event_type"]
)

events_cancelled_counter = Counter(
    "oem_events_cancelled_total",
    "Total number of emissions stopped by a cancelling listener",
    ["event_type"]
)

# Gauges
registered_listeners = Gauge(
    "oem_listeners_registered",
    "Number of listeners currently registered",
    ["event_type"]
)


def drop_empty_registered_label(event_type: str):
    """
    Remove the registered-listeners series for an event type once no
    manager in the process holds listeners for it.
    """
    value = REGISTRY.get_sample_value("oem_listeners_registered", {"event_type": event_type})
    if value is not None and value <= 0:
        try:
            registered_listeners.remove(event_type)
        except KeyError:
            # already dropped by a concurrent caller
            pass
