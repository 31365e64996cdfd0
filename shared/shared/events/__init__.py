from shared.events.schemas import ItemActionRecorded, PreferencesUpdated

__all__ = ["ItemActionRecorded", "PreferencesUpdated"]
