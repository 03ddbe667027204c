from django.apps import AppConfig
from django.contrib import admin


class CapstonePortalConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "capstone_portal"
    verbose_name = "Capstone Portal"

    def ready(self) -> None:
        """Configure admin site when the app is ready"""
        from django.conf import settings

        admin.site.site_header = getattr(
            settings, "ADMIN_SITE_HEADER", "Capstone Portal Administration"
        )
        admin.site.site_title = getattr(
            settings, "ADMIN_SITE_TITLE", "Capstone Portal Admin"
        )
        admin.site.index_title = getattr(
            settings, "ADMIN_INDEX_TITLE", "Welcome to Capstone Portal Administration"
        )
