from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class StampmanAdminUnfoldConfig(AppConfig):
    name = "stampman.contrib.admin_unfold"
    label = "stampman_admin_unfold"
    verbose_name = _("Stamps admin (Unfold)")
