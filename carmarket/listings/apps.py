from django.apps import AppConfig


class ListingsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'carmarket.listings'

    def ready(self):
        """Import signals when app is ready"""
        import carmarket.listings.signals  # noqa: F401  # Image file cleanup
