"""Django ePharmacy app configuration."""

from django.apps import AppConfig


class DjangoEpharmacyConfig(AppConfig):
    """Configuration for django-epharmacy app."""

    name = "django_epharmacy"
    label = "django_epharmacy"
    verbose_name = "ePharmacy"
    default_auto_field = "django.db.models.BigAutoField"
