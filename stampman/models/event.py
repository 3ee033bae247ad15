"""
Event model.

Only what the ledger needs to reference: a name for stamp labels and an end
date for default claim code expiry. Scheduling and search belong to the host
application.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class Event(models.Model):
    name = models.CharField(_("name"), max_length=200)
    end_date = models.DateTimeField(_("ends at"))
    created_at = models.DateTimeField(_("created at"), auto_now_add=True)

    class Meta:
        verbose_name = _("event")
        verbose_name_plural = _("events")
        ordering = ["-end_date"]

    def __str__(self):
        return self.name
