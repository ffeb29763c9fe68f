"""
In-process event bus for product lifecycle events.

Publishing never fails because of a listener: each listener is awaited in
subscription order and anything it raises is logged and dropped. The
publisher gets nothing back. Events are published after the change is
committed, and listeners never share the publisher's session.

Listeners run inline so the workflow's reload sees what they wrote
(average price, image). A listener that hangs is cut off after
LISTENER_TIMEOUT_SECONDS and treated like one that failed.
"""
import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from catalog.config import get_settings

logger = logging.getLogger(__name__)

# Event names
IMAGE_STORED = "product.image.stored"
IMAGE_UPDATED = "product.image.updated"
PRICE_AVG = "product.price_avg"
PRODUCT_STORED = "product.stored"
PRODUCT_UPDATED = "product.updated"
PRODUCT_DESTROYED = "product.destroyed"
EDITABLE_STORED = "editable.stored"
EDITABLE_UPDATED = "editable.updated"


@dataclass
class ProductEvent:
    product: Any
    attributes: Dict[str, Any] = field(default_factory=dict)
    old_attributes: Optional[Dict[str, Any]] = None
    user: Any = None
    # Listeners that write open their own session from this factory
    session_factory: Optional[Callable[[], AsyncSession]] = None


Listener = Callable[[ProductEvent], Awaitable[None]]


class EventBus:
    def __init__(self, timeout: Optional[float] = None):
        self._listeners: Dict[str, List[Listener]] = defaultdict(list)
        self.timeout = timeout if timeout is not None else get_settings().LISTENER_TIMEOUT_SECONDS

    def subscribe(self, name: str, listener: Listener) -> None:
        self._listeners[name].append(listener)

    def unsubscribe(self, name: str, listener: Listener) -> None:
        if listener in self._listeners.get(name, []):
            self._listeners[name].remove(listener)

    def listeners(self, name: str) -> List[Listener]:
        return list(self._listeners.get(name, []))

    def clear(self) -> None:
        self._listeners.clear()

    async def publish(self, name: str, event: ProductEvent) -> None:
        for listener in self.listeners(name):
            try:
                await asyncio.wait_for(listener(event), timeout=self.timeout)
            except asyncio.TimeoutError:
                logger.error(
                    f"Listener {getattr(listener, '__name__', listener)!r} timed out on {name} "
                    f"after {self.timeout}s (product_id={getattr(event.product, 'id', None)})"
                )
            except Exception:
                logger.exception(
                    f"Listener {getattr(listener, '__name__', listener)!r} failed on {name} "
                    f"(product_id={getattr(event.product, 'id', None)})"
                )


# Singleton instance
event_bus = EventBus()


def get_event_bus() -> EventBus:
    return event_bus
