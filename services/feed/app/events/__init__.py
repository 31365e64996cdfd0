from app.events.bus import EventBus, EventBusClosedError

__all__ = ["EventBus", "EventBusClosedError"]
