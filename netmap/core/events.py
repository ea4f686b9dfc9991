# netmap/core/events.py
"""
Publish/subscribe channel used by the TopologyManager to tell observers
(UI panels, statistics widgets, loggers) about topology changes.
"""
from enum import Enum
from typing import Any, Callable, Dict, List, Union

from netmap.utils.logging_config import get_logger

logger = get_logger(__name__)

Handler = Callable[[Any], None]


class Topic(Enum):
    NODE_ADDED = "nodeAdded"
    NODE_REMOVED = "nodeRemoved"
    NODE_MOVED = "nodeMoved"
    CONNECTION_ADDED = "connectionAdded"
    CONNECTION_REMOVED = "connectionRemoved"
    CONNECTION_REJECTED = "connectionRejected"
    TOPOLOGY_RESET = "topologyReset"
    TOPOLOGY_LOADED = "topologyLoaded"


class EventBus:
    """
    Topic-keyed observer registry.

    Subscribing a handler that is already registered for a topic is a
    no-op, as is unsubscribing one that is not. A handler raising during
    emit is logged and skipped; the remaining handlers still run.
    """
    def __init__(self) -> None:
        self._handlers: Dict[Topic, List[Handler]] = {}

    @staticmethod
    def _topic(topic: Union[Topic, str]) -> Topic:
        return topic if isinstance(topic, Topic) else Topic(topic)

    def on(self, topic: Union[Topic, str], handler: Handler) -> "EventBus":
        handlers = self._handlers.setdefault(self._topic(topic), [])
        if handler not in handlers:
            handlers.append(handler)
        return self

    def off(self, topic: Union[Topic, str], handler: Handler) -> "EventBus":
        handlers = self._handlers.get(self._topic(topic))
        if handlers and handler in handlers:
            handlers.remove(handler)
        return self

    def emit(self, topic: Union[Topic, str], payload: Any = None) -> None:
        topic = self._topic(topic)
        for handler in list(self._handlers.get(topic, ())):
            try:
                handler(payload)
            except Exception:
                logger.exception("Handler %r for '%s' failed", handler, topic.value)

    def handler_count(self, topic: Union[Topic, str]) -> int:
        return len(self._handlers.get(self._topic(topic), ()))

    def clear(self) -> None:
        self._handlers.clear()
