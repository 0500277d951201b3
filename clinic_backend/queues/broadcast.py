"""
Live queue updates for waiting-room displays and doctor screens.

Two events are published after a queue change has been committed:

    waiting_queue_update   full snapshot of WAITING_CONSULTATION entries
                           [{id, doctor: {id, username}, room: {id, name}, queue_number}]
    called_queue_update    {id, queue_number} of the patient just called in

Every message is a JSON envelope ``{"event": ..., "data": ...}`` published on
the Redis channel ``<channel_prefix>.<event>``. A realtime gateway (socket.io,
SSE, ...) subscribes to those channels and fans the messages out to browsers.

The backend is chosen with ``settings.QUEUE_BROADCASTER``:

    QUEUE_BROADCASTER = {
        'BACKEND': 'clinic_backend.queues.broadcast.RedisBroadcaster',
        'OPTIONS': {'url': 'redis://localhost:6379/2', 'channel_prefix': 'clinic.queue'},
    }
"""

from __future__ import annotations

import json
import logging
from typing import Any

import redis
from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.utils.module_loading import import_string

logger = logging.getLogger(__name__)

WAITING_QUEUE_EVENT = 'waiting_queue_update'
CALLED_QUEUE_EVENT = 'called_queue_update'

DEFAULT_CHANNEL_PREFIX = 'clinic.queue'


def encode_event(event: str, data: Any) -> str:
    return json.dumps({'event': event, 'data': data}, cls=DjangoJSONEncoder)


class QueueBroadcaster:
    """Base class; subclasses implement ``publish``."""

    def __init__(self, channel_prefix: str = DEFAULT_CHANNEL_PREFIX, **options):
        self.channel_prefix = channel_prefix
        self.options = options

    def channel_for(self, event: str) -> str:
        return f"{self.channel_prefix}.{event}"

    def publish(self, event: str, data: Any):
        raise NotImplementedError

    def publish_waiting_queue(self, snapshot: list[dict]):
        return self.publish(WAITING_QUEUE_EVENT, list(snapshot))

    def publish_called(self, session_id: int, queue_number: str):
        return self.publish(CALLED_QUEUE_EVENT, {'id': session_id, 'queue_number': queue_number})


class RedisBroadcaster(QueueBroadcaster):
    """Publish directly to Redis pub/sub from the request process."""

    _clients: dict[str, redis.Redis] = {}

    def __init__(self, url: str | None = None, **options):
        super().__init__(**options)
        self.url = url or f"redis://{settings.REDIS_HOST}:{settings.REDIS_PORT}/2"

    def get_client(self) -> redis.Redis:
        client = self._clients.get(self.url)
        if client is None:
            client = redis.Redis.from_url(self.url, socket_timeout=2, socket_connect_timeout=2)
            self._clients[self.url] = client
        return client

    def publish(self, event: str, data: Any) -> int:
        channel = self.channel_for(event)
        receivers = self.get_client().publish(channel, encode_event(event, data))
        logger.debug('Published %s to %s (%d receivers)', event, channel, receivers)
        return receivers


class CeleryBroadcaster(QueueBroadcaster):
    """Hand the message to a Celery worker, which publishes it to Redis.

    Keeps the Redis round trip out of the request cycle.
    """

    def __init__(self, url: str | None = None, **options):
        super().__init__(**options)
        self.url = url

    def publish(self, event: str, data: Any):
        from clinic_backend.queues.tasks import publish_queue_event

        # Celery's JSON serializer does not know about dates or decimals.
        payload = json.loads(json.dumps(data, cls=DjangoJSONEncoder))
        return publish_queue_event.delay(event, payload, url=self.url, channel_prefix=self.channel_prefix)


# In-memory outbox for tests and local development.
outbox: list[dict[str, Any]] = []


class LocMemBroadcaster(QueueBroadcaster):
    """Collect messages in ``broadcast.outbox`` instead of sending them."""

    def publish(self, event: str, data: Any):
        outbox.append({'event': event, 'channel': self.channel_for(event), 'data': data})
        logger.debug('Stored %s in local outbox (%d messages)', event, len(outbox))
        return len(outbox)


def get_broadcaster() -> QueueBroadcaster:
    config = getattr(settings, 'QUEUE_BROADCASTER', None) or {}
    backend = import_string(config.get('BACKEND', 'clinic_backend.queues.broadcast.LocMemBroadcaster'))
    return backend(**config.get('OPTIONS', {}))
