"""
Catalog app configuration
"""

from django.apps import AppConfig


class CatalogConfig(AppConfig):
    """Rooms, treatments, drugs and diagnosis codes."""
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'clinic_backend.catalog'
    verbose_name = 'Catalog (Rooms, Treatments, Drugs)'
