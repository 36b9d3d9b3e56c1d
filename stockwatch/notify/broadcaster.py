# Copyright 2026 StockWatch
# SPDX-License-Identifier: MIT
"""Broadcast channel for watch-list events.

Publishing is fire-and-forget: ``publish`` never waits for subscribers and a slow
or missing subscriber never blocks the caller. Topics used by the watch-list are
``watch``, ``unwatch`` and ``update``.
"""

from __future__ import annotations

import json
import logging
import queue
import threading
from typing import Any, Dict, Iterable, List, Optional, Protocol, runtime_checkable

import requests

logger = logging.getLogger(__name__)

WATCH = "watch"
UNWATCH = "unwatch"
UPDATE = "update"


@runtime_checkable
class Notifier(Protocol):
    """Anything that can publish a payload under a topic name."""

    def publish(self, topic: str, payload: Dict[str, Any]) -> None:
        ...


class Subscription:
    """One subscriber's bounded event queue. Drain it with :meth:`poll`."""

    def __init__(self, hub: "BroadcastHub", maxsize: int) -> None:
        self._hub = hub
        self.queue: "queue.Queue[Dict[str, Any]]" = queue.Queue(maxsize=maxsize)
        self.dropped = 0

    def poll(self) -> Optional[Dict[str, Any]]:
        """Next event without blocking, or None if the queue is empty."""
        try:
            return self.queue.get_nowait()
        except queue.Empty:
            return None

    def close(self) -> None:
        self._hub.unsubscribe(self)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


class BroadcastHub:
    """In-process fan-out to every current subscriber."""

    def __init__(self, queue_size: int = 100) -> None:
        self.queue_size = queue_size
        self._subscribers: List[Subscription] = []
        self._lock = threading.Lock()

    def subscribe(self) -> Subscription:
        sub = Subscription(self, self.queue_size)
        with self._lock:
            self._subscribers.append(sub)
        logger.debug("[NOTIFY] Subscriber added (%d total)", len(self._subscribers))
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        with self._lock:
            if sub in self._subscribers:
                self._subscribers.remove(sub)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def publish(self, topic: str, payload: Dict[str, Any]) -> None:
        event = {"topic": topic, "payload": payload}
        with self._lock:
            subscribers = list(self._subscribers)
        for sub in subscribers:
            try:
                sub.queue.put_nowait(event)
            except queue.Full:
                sub.dropped += 1
                logger.warning("[NOTIFY] Subscriber queue full, dropped %s event", topic)


class WebhookNotifier:
    """POST each event as JSON ``{"topic", "payload"}`` to a webhook URL."""

    def __init__(self, url: str, timeout: float = 10.0) -> None:
        if not url:
            raise ValueError("Webhook URL is required")
        self.url = url
        self.timeout = timeout

    def publish(self, topic: str, payload: Dict[str, Any]) -> None:
        try:
            response = requests.post(
                self.url,
                json={"topic": topic, "payload": payload},
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.warning("[NOTIFY] Webhook delivery of %s failed: %s", topic, exc)


class FanoutNotifier:
    """Publish to several notifiers; one failing does not stop the others."""

    def __init__(self, notifiers: Iterable[Notifier]) -> None:
        self.notifiers = list(notifiers)

    def publish(self, topic: str, payload: Dict[str, Any]) -> None:
        for notifier in self.notifiers:
            try:
                notifier.publish(topic, payload)
            except Exception:
                logger.exception("[NOTIFY] %s failed to publish %s", type(notifier).__name__, topic)


def format_sse(event: Dict[str, Any]) -> str:
    """Render an event as a Server-Sent Events frame."""
    return f"event: {event['topic']}\ndata: {json.dumps(event['payload'])}\n\n"


__all__ = [
    "WATCH",
    "UNWATCH",
    "UPDATE",
    "Notifier",
    "Subscription",
    "BroadcastHub",
    "WebhookNotifier",
    "FanoutNotifier",
    "format_sse",
]
