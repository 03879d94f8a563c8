"""
Post-commit event delivery.

Handlers run on daemon threads so a slow or failing handler (e.g. an AI call)
never delays or breaks the write that produced the event.
"""
import logging
import threading
from collections import defaultdict

logger = logging.getLogger(__name__)

STREAK_EXTENDED = "streak_extended"
REWARD_GRANTED = "reward_granted"
LEVEL_UP = "level_up"

_handlers = defaultdict(list)
_lock = threading.Lock()


def subscribe(event, handler):
    with _lock:
        if handler not in _handlers[event]:
            _handlers[event].append(handler)


def unsubscribe(event, handler):
    with _lock:
        if handler in _handlers[event]:
            _handlers[event].remove(handler)


def clear():
    with _lock:
        _handlers.clear()


def _deliver(event, handler, payload):
    try:
        handler(payload)
    except Exception:
        logger.exception("Handler %r failed for %s event", handler, event)


def publish(event, payload, background=True):
    """Deliver `payload` to every handler of `event` without waiting on them."""
    with _lock:
        handlers = list(_handlers[event])

    for handler in handlers:
        if background:
            threading.Thread(target=_deliver, args=(event, handler, payload), daemon=True).start()
        else:
            _deliver(event, handler, payload)
    return len(handlers)
