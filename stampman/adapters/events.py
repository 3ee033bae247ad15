"""Model-backed EventCatalog adapter."""

from stampman.protocols.events import EventCatalog, EventInfo


class ModelEventCatalog:
    """
    Adapter that implements EventCatalog by reading stampman's Event table.

    Configuration in settings.py:
        STAMPMAN = {
            "EVENT_CATALOG_BACKEND": "stampman.adapters.events.ModelEventCatalog",
        }
    """

    def get_event(self, event_id: int) -> EventInfo | None:
        from stampman.models import Event

        try:
            event = Event.objects.only("id", "name", "end_date").get(pk=event_id)
        except Event.DoesNotExist:
            return None

        return EventInfo(id=event.pk, name=event.name, end_date=event.end_date)


def get_event_catalog() -> EventCatalog:
    """Instantiate the configured EventCatalog."""
    from django.utils.module_loading import import_string

    from stampman.conf import stampman_settings

    return import_string(stampman_settings.EVENT_CATALOG_BACKEND)()
