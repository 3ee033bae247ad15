from django.apps import AppConfig


class StampmanConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "stampman"
    verbose_name = "Stampman - Stamp Cards & Coupons"
