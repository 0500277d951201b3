"""Celery tasks for the queues app."""

import logging

import redis
from celery import shared_task

from clinic_backend.queues.broadcast import DEFAULT_CHANNEL_PREFIX, RedisBroadcaster

logger = logging.getLogger(__name__)


@shared_task(
    name='clinic_backend.queues.tasks.publish_queue_event',
    autoretry_for=(redis.ConnectionError, redis.TimeoutError),
    retry_backoff=True,
    max_retries=3,
    ignore_result=True,
)
def publish_queue_event(event, data, url=None, channel_prefix=DEFAULT_CHANNEL_PREFIX):
    """Publish one queue event to Redis pub/sub."""
    receivers = RedisBroadcaster(url=url, channel_prefix=channel_prefix).publish(event, data)
    logger.info('Queue event %s delivered to %d receivers', event, receivers)
    return receivers
