"""
Queues app configuration
"""

from django.apps import AppConfig


class QueuesConfig(AppConfig):
    """Patient visit queue: numbering, lifecycle and live display updates."""
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'clinic_backend.queues'
    verbose_name = 'Queues (Care Sessions)'
