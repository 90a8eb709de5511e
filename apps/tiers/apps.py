from django.apps import AppConfig


class TiersConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.tiers'
    verbose_name = 'Tiers'

    def ready(self):
        from .catalog import get_catalog

        # Fail at startup, not per request, when the catalog is inconsistent
        get_catalog()
        import apps.tiers.signals  # noqa: F401
