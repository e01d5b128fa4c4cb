"""Human-readable timeline built from an endpoint's state transition events."""

from collections.abc import Sequence

from .models import Event, EventType, TimelineEntry
from .timefmt import Timestamp, pretty_time_ago, pretty_time_difference

_FIRST_EVENT_TEXT = {
    EventType.START: "Monitoring started",
    EventType.HEALTHY: "Endpoint is healthy",
    EventType.UNHEALTHY: "Endpoint is unhealthy",
}

_STATUS_EVENTS = (EventType.HEALTHY, EventType.UNHEALTHY)


def describe_event(event: Event, previous: Event | None) -> str:
    """Return the narrative text for an event.

    Args:
        event: The event to describe.
        previous: The chronologically preceding event, or None for the
            oldest event.
    """
    if previous is None:
        return _FIRST_EVENT_TEXT[event.type]
    if event.type is EventType.HEALTHY:
        return "Endpoint became healthy"
    if event.type is EventType.UNHEALTHY:
        if previous.type in _STATUS_EVENTS and event.timestamp != previous.timestamp:
            duration = pretty_time_difference(previous.timestamp, event.timestamp)
            return f"Endpoint was unhealthy for {duration}"
        return "Endpoint became unhealthy"
    return "Monitoring started"


def build_timeline(events: Sequence[Event], now: Timestamp | None = None) -> list[TimelineEntry]:
    """Annotate events with narrative text and relative time.

    Args:
        events: Events ordered newest first, as delivered by the server.
        now: Reference time for the relative labels; defaults to the clock.

    Returns:
        Timeline entries, newest first.
    """
    entries: list[TimelineEntry] = []
    previous: Event | None = None
    for event in reversed(events):
        entries.append(
            TimelineEntry(
                event=event.type,
                timestamp=event.timestamp,
                fancy_text=describe_event(event, previous),
                fancy_time_ago=pretty_time_ago(event.timestamp, now),
            )
        )
        previous = event
    entries.reverse()
    return entries
