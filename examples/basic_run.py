import logging
from dataclasses import dataclass

from dotenv import load_dotenv

from oem import CallbackListener, CancellableEvent, EventManager, ManagerConfig
from oem.runtime.default_logger import attach_console_logger
from oem.telemetry import init_telemetry

load_dotenv()
logging.basicConfig(level=logging.INFO)


@dataclass
class OrderPlaced(CancellableEvent):
    order_id: str
    total: float


config = ManagerConfig.from_env()
init_telemetry(config.service_name)

events = EventManager(config)
attach_console_logger(events)


def reject_empty(event: OrderPlaced):
    if event.total <= 0:
        print(f"Rejecting empty order {event.order_id}")
        event.cancel()


@events.listen(OrderPlaced)
def send_receipt(event: OrderPlaced):
    print(f"Receipt sent for {event.order_id}: {event.total:.2f}")


events.once(OrderPlaced, lambda e: print("First order of the day!"))
# validation runs before everything else
events.prepend(CallbackListener(reject_empty))

events.emit(OrderPlaced("A-1", 25.0))
events.emit(OrderPlaced("A-2", 0.0))
events.emit_class(OrderPlaced, "A-3", 12.5)
