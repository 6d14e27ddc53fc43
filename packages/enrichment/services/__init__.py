"""Event dispatch services used by the API process."""

from packages.enrichment.services.event_dispatcher import EventDispatcher

__all__ = ["EventDispatcher"]
